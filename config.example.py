"""
Example configuration file for the Douban API server
Copy this file to config.py and adjust the values you need.
Environment variables and command-line flags override these.
"""

# === Server ===
HOST = '0.0.0.0'
PORT = 8080

# === Search ===
SEARCH_LIMIT = 3  # Results returned to clients that send no User-Agent (Jellyfin plugin)

# === Cache ===
CACHE_SIZE = 100  # Maximum number of cached resources
CACHE_TTL = 600  # Seconds a cached resource stays valid

# === Upstream ===
FETCH_TIMEOUT = 30  # Seconds before an upstream request is abandoned
CONNECT_TIMEOUT = 10
UPSTREAM_BASE = 'https://movie.douban.com'
SEARCH_URL = 'https://www.douban.com/search'
DOUBAN_COOKIE = ''  # e.g. 'bid=xxxx; dbcl2="..."'
PROXY_IMG = ''  # Image proxy base URL, e.g. 'https://img-proxy.example.com'
SELECTORS_FILE = None  # JSON file overriding built-in selector rules

# === Logging ===
LOG_LEVEL = 'INFO'  # Options: DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_FILE = None  # e.g. 'logs/douban_api.log'
