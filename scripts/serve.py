#!/usr/bin/env python3
"""
Douban API server launcher.

Builds a ``ServiceConfig`` from config.py, environment variables and the
flags below, configures logging and serves the FastAPI app with uvicorn.

Usage:
    python3 scripts/serve.py [--host HOST] [--port PORT] [--limit N]
                             [--proxy-img URL] [--cookie COOKIE]
                             [--cache-size N] [--cache-ttl SECONDS]
                             [--timeout SECONDS] [--selectors FILE]
                             [--log-level LEVEL] [--log-file FILE] [--debug]
"""

import os
import sys
import argparse
import logging

# Project root on sys.path so the script runs from any directory
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

import uvicorn

from douban_api.config import load_config
from douban_api.server import create_app
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(description='Douban movie metadata API server')
    parser.add_argument('--host', help='Listen host (default: 0.0.0.0)')
    parser.add_argument('-p', '--port', type=int, help='Listen port (default: 8080)')
    parser.add_argument('-l', '--limit', type=int, dest='search_limit',
                        help='Search result limit for clients without a User-Agent '
                             '(env: DOUBAN_API_LIMIT_SIZE, default: 3)')
    parser.add_argument('-I', '--proxy-img', dest='image_proxy',
                        help='Image proxy base URL (env: DOUBAN_PROXY_IMG)')
    parser.add_argument('-c', '--cookie', help='Douban cookie string (env: DOUBAN_COOKIE)')
    parser.add_argument('--cache-size', type=int, dest='cache_capacity',
                        help='Maximum number of cached resources (default: 100)')
    parser.add_argument('--cache-ttl', type=float, dest='cache_ttl',
                        help='Seconds a cached resource stays valid (default: 600)')
    parser.add_argument('--timeout', type=float, dest='fetch_timeout',
                        help='Upstream request timeout in seconds (default: 30)')
    parser.add_argument('--upstream', dest='upstream_base',
                        help='Override the movie site base URL')
    parser.add_argument('--selectors', dest='selectors_file',
                        help='JSON file overriding the built-in selector rules')
    parser.add_argument('--log-level', help='DEBUG, INFO, WARNING, ERROR (default: INFO)')
    parser.add_argument('--log-file', help='Also write logs to this file')
    parser.add_argument('-d', '--debug', action='store_true', help='Shortcut for --log-level DEBUG')
    return parser


def config_from_args(args):
    overrides = vars(args).copy()
    debug = overrides.pop('debug', False)
    if debug:
        overrides['log_level'] = 'DEBUG'
    return load_config(**overrides)


def main(argv=None):
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    setup_logging(config.log_file, config.log_level)
    logger.info('Starting Douban API on %s:%d', config.host, config.port)

    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_config=None,
    )
    return 0


if __name__ == '__main__':
    sys.exit(main())
