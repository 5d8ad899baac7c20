"""
Pytest configuration and fixtures for Douban API tests.
"""
import os
import sys

# Add project root to path for imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

import asyncio

import pytest

from douban_api.config import ServiceConfig
from douban_api.fetcher import FetchOutcome
from douban_api.models import ResourceKind


SEARCH_HTML = '''
<html>
<head><title>搜索: 乘风破浪</title></head>
<body>
<div id="content">
  <div class="search-result">
    <div class="result-list">
      <div class="result">
        <div class="pic">
          <a class="nbg" href="https://www.douban.com/link2/?url=https%3A%2F%2Fmovie.douban.com%2Fsubject%2F26862259%2F" onclick="moreurl(this,{i: '0', query: '%E4%B9%98%E9%A3%8E%E7%A0%B4%E6%B5%AA', from: 'dou_search_movie', sid: 26862259, qcat: '1002'})" title="乘风破浪"><img src="https://img9.doubanio.com/view/photo/s_ratio_poster/public/p2408407697.jpg"></a>
        </div>
        <div class="content">
          <div class="title">
            <h3><span>[电影]</span>&nbsp;<a href="https://www.douban.com/link2/?url=x" onclick="moreurl(this,{i: '0', query: '%E4%B9%98%E9%A3%8E%E7%A0%B4%E6%B5%AA', from: 'dou_search_movie', sid: 26862259, qcat: '1002'})">乘风破浪</a></h3>
            <div class="rating-info">
              <span class="allstar35"></span>
              <span class="rating_nums">6.8</span>
              <span>(412563人评价)</span>
              <span class="subject-cast">原名:乘风破浪 / 韩寒 / 邓超 / 彭于晏 / 2017</span>
            </div>
          </div>
        </div>
      </div>
      <div class="result">
        <div class="pic">
          <a class="nbg" href="#" onclick="moreurl(this,{i: '1', query: 'x', from: 'dou_search_movie', sid: 35235502, qcat: '1002'})" title="乘风破浪的姐姐"><img src="https://img2.doubanio.com/view/photo/s_ratio_poster/public/p2604297436.jpg"></a>
        </div>
        <div class="content">
          <div class="title">
            <h3><span>[电视剧]</span>&nbsp;<a href="#" onclick="moreurl(this,{i: '1', query: 'x', from: 'dou_search_movie', sid: 35235502, qcat: '1002'})">乘风破浪的姐姐</a></h3>
            <div class="rating-info">
              <span class="rating_nums">6.9</span>
              <span class="subject-cast">主持人:黄晓明 / 2020</span>
            </div>
          </div>
        </div>
      </div>
      <div class="result">
        <div class="pic">
          <a class="nbg" href="#" onclick="moreurl(this,{i: '2', query: 'x', from: 'dou_search_movie', sid: 1299131, qcat: '1002'})" title="乘风破浪"><img src="https://img1.doubanio.com/view/photo/s_ratio_poster/public/p2173577632.jpg"></a>
        </div>
        <div class="content">
          <div class="title">
            <h3><span>[电影]</span>&nbsp;<a href="#" onclick="moreurl(this,{i: '2', query: 'x', from: 'dou_search_movie', sid: 1299131, qcat: '1002'})">乘风破浪</a></h3>
            <div class="rating-info">
              <span class="rating_nums">7.1</span>
              <span class="subject-cast">原名:Riding the Waves / 张三 / 1987</span>
            </div>
          </div>
        </div>
      </div>
    </div>
  </div>
</div>
</body>
</html>
'''

EMPTY_SEARCH_HTML = '''
<html>
<head><title>搜索: zzzzqqq</title></head>
<body>
<div id="content">
  <div class="search-result">
    <div class="result-list"></div>
  </div>
</div>
</body>
</html>
'''

MOVIE_HTML = '''
<html>
<head><title>乘风破浪 (豆瓣)</title></head>
<body>
<div id="content">
  <h1>
    <span property="v:itemreviewed">乘风破浪</span>
    <span class="year">(2017)</span>
  </h1>
  <div class="grid-16-8 clearfix">
    <div class="article">
      <div class="indent clearfix">
        <div class="subjectwrap clearfix">
          <div id="mainpic" class="">
            <a class="nbgnbg" href="https://movie.douban.com/subject/26862259/photos?type=R" title="点击看更多海报">
              <img src="https://img9.doubanio.com/view/photo/s_ratio_poster/public/p2408407697.jpg" title="点击看更多海报" alt="乘风破浪" rel="v:image" />
            </a>
          </div>
          <div id="info">
        <span ><span class='pl'>导演</span>: <span class='attrs'><a href="/celebrity/1274388/" rel="v:directedBy">韩寒</a></span></span><br/>
        <span ><span class='pl'>编剧</span>: <span class='attrs'><a href="/celebrity/1274388/">韩寒</a></span></span><br/>
        <span class="actor"><span class='pl'>主演</span>: <span class='attrs'><a href="/celebrity/1274224/" rel="v:starring">邓超</a> / <a href="/celebrity/1049489/" rel="v:starring">彭于晏</a></span></span><br/>
        <span class="pl">类型:</span> <span property="v:genre">剧情</span> / <span property="v:genre">喜剧</span><br/>
        <span class="pl">制片国家/地区:</span> 中国大陆<br/>
        <span class="pl">语言:</span> 汉语普通话<br/>
        <span class="pl">上映日期:</span> <span property="v:initialReleaseDate" content="2017-01-28(中国大陆)">2017-01-28(中国大陆)</span><br/>
        <span class="pl">片长:</span> <span property="v:runtime" content="102">102分钟</span><br/>
        <span class="pl">又名:</span> Duckweed<br/>
        <span class="pl">IMDb:</span> tt6184894<br/>
          </div>
        </div>
        <div id="interest_sectl">
          <div class="rating_wrap clearbox" rel="v:rating">
            <div class="rating_self clearfix" typeof="v:Rating">
              <strong class="ll rating_num" property="v:average">6.8</strong>
            </div>
          </div>
        </div>
      </div>
      <div class="related-info">
        <div class="indent" id="link-report-intra">
          <span property="v:summary" class="">
            赛车手徐太浪（邓超 饰）一直看不惯父亲徐正太（彭于晏 饰）对自己的管束。©豆瓣
          </span>
        </div>
      </div>
      <div id="celebrities" class="celebrities related-celebrities">
        <ul class="celebrities-list from-subject __oneline">
          <li class="celebrity">
            <div class="info"><span class="name"><a href="https://www.douban.com/personage/1/" class="name">不应出现</a></span></div>
          </li>
        </ul>
      </div>
    </div>
  </div>
  <div class="gtleft">
    <a href="javascript:void(0)" class="lnk-sharing" share-id="26862259" data-mode="plain" data-name="乘风破浪">分享到</a>
  </div>
</div>
</body>
</html>
'''

MOVIE_NO_DIRECTOR_HTML = '''
<html>
<body>
<div id="content">
  <h1><span property="v:itemreviewed">无导演电影</span> <span class="year">(2020)</span></h1>
  <div id="info">
    <span class="pl">类型:</span> <span property="v:genre">纪录片</span><br/>
  </div>
  <a class="lnk-sharing" share-id="30000001">分享到</a>
</div>
</body>
</html>
'''

MOVIE_MISSING_NAME_HTML = '''
<html>
<body>
<div id="content">
  <div id="info">
    <span ><span class='pl'>导演</span>: <span class='attrs'><a href="/celebrity/1/">某人</a></span></span><br/>
  </div>
  <a class="lnk-sharing" share-id="30000002">分享到</a>
</div>
</body>
</html>
'''

CELEBRITIES_HTML = '''
<html>
<body>
<div id="content">
  <div class="list-wrapper">
    <h2>导演 Director</h2>
    <ul class="celebrities-list from-subject">
      <li class="celebrity">
        <a href="https://movie.douban.com/celebrity/1274388/" title="韩寒 Han Han" class="">
          <div class="avatar" style="background-image: url(https://img2.doubanio.com/view/celebrity/raw/public/p1383.jpg)"></div>
        </a>
        <div class="info">
          <span class="name"><a href="https://movie.douban.com/celebrity/1274388/" title="韩寒 Han Han" class="name">韩寒 Han Han</a></span>
          <span class="role" title="导演 Director">导演 Director</span>
        </div>
      </li>
    </ul>
  </div>
  <div class="list-wrapper">
    <h2>演员 Cast</h2>
    <ul class="celebrities-list from-subject">
      <li class="celebrity">
        <a href="https://movie.douban.com/celebrity/1274224/" title="邓超 Chao Deng" class="">
          <div class="avatar" style="background-image: url(https://img9.doubanio.com/view/celebrity/raw/public/p1386.jpg)"></div>
        </a>
        <div class="info">
          <span class="name"><a href="https://movie.douban.com/celebrity/1274224/" class="name">邓超 Chao Deng</a></span>
          <span class="role">演员 Actor (饰 徐太浪)</span>
        </div>
      </li>
      <li class="celebrity">
        <a href="https://movie.douban.com/celebrity/1049489/" class="">
          <div class="avatar" style="background-image: url(https://img1.doubanio.com/view/celebrity/raw/public/p1376.jpg)"></div>
        </a>
        <div class="info">
          <span class="name"><a href="https://movie.douban.com/celebrity/1049489/" class="name">彭于晏 Eddie Peng</a></span>
          <span class="role">演员 Actor (饰 徐正太)</span>
        </div>
      </li>
      <li class="celebrity">
        <div class="avatar" style="background-image: url(https://img1.doubanio.com/view/celebrity/raw/public/p0.jpg)"></div>
        <div class="info">
          <span class="name">无链接演员</span>
          <span class="role">演员 Actor</span>
        </div>
      </li>
    </ul>
  </div>
  <div class="list-wrapper">
    <h2>编剧 Writer</h2>
    <ul class="celebrities-list from-subject">
      <li class="celebrity">
        <div class="avatar" style="background-image: url(https://img2.doubanio.com/view/celebrity/raw/public/p1383.jpg)"></div>
        <div class="info">
          <span class="name"><a href="https://movie.douban.com/celebrity/1274388/" class="name">韩寒 Han Han</a></span>
          <span class="role">编剧 Writer</span>
        </div>
      </li>
    </ul>
  </div>
</div>
</body>
</html>
'''

CELEBRITY_HTML = '''
<html>
<body>
<div id="content">
  <h1>邓超 Chao Deng</h1>
  <div id="headline" class="item">
    <div class="pic">
      <a class="nbg" href="https://img9.doubanio.com/view/celebrity/raw/public/p1386.jpg" title="邓超 Chao Deng">
        <img src="https://img9.doubanio.com/view/celebrity/s_ratio_celebrity/public/p1386.jpg" alt="邓超 Chao Deng" />
      </a>
    </div>
    <div class="info">
      <ul>
        <li>
          <span>性别</span>:
          男
        </li>
        <li>
          <span>星座</span>:
          水瓶座
        </li>
        <li>
          <span>出生日期</span>:
          1979-02-08
        </li>
        <li>
          <span>出生地</span>:
          中国,江西,南昌
        </li>
        <li>
          <span>职业</span>:
          演员 / 导演 / 编剧
        </li>
        <li>
          <span>更多外文名</span>:
          Chao Deng
        </li>
        <li>
          <span>家庭成员</span>:
          孙俪(妻)
        </li>
        <li>
          <span>imdb编号</span>:
          <a href="http://www.imdb.com/name/nm1617685" target="_blank">nm1617685</a>
        </li>
      </ul>
    </div>
  </div>
  <div id="intro" class="mod">
    <h2>影人简介</h2>
    <div class="bd">
      <span class="short">邓超，1979年2月8日出生于江西省南昌市，中国内地男演员。</span>
      <span class="all hidden">邓超，1979年2月8日出生于江西省南昌市，中国内地男演员、导演。完整简介。</span>
    </div>
  </div>
  <div id="photos" class="mod">
    <a href="https://movie.douban.com/celebrity/1274224/photos/">全部</a>
  </div>
</div>
</body>
</html>
'''

WALLPAPERS_HTML = '''
<html>
<body>
<div id="content">
  <ul class="poster-col3 clearfix">
    <li data-id="2408400001">
      <div class="cover"><a href="#"><img src="x.jpg" /></a></div>
      <div class="prop">
        1920x1080
      </div>
    </li>
    <li data-id="2408400002">
      <div class="cover"><a href="#"><img src="y.jpg" /></a></div>
      <div class="prop"></div>
    </li>
    <li>
      <div class="prop">800x600</div>
    </li>
  </ul>
</div>
</body>
</html>
'''


class StubFetcher:
    """Stands in for ``DocumentFetcher``: serves canned outcomes by URL and
    counts every call so tests can assert on upstream traffic."""

    def __init__(self, pages=None, config=None, delay=0.0):
        self.config = config or ServiceConfig()
        self.pages = dict(pages or {})
        self.delay = delay
        self.calls = []
        self.closed = False

    def calls_to(self, url):
        return sum(1 for called, _kind, _params in self.calls if called == url)

    async def fetch(self, url, kind, params=None):
        self.calls.append((url, kind, params))
        if self.delay:
            await asyncio.sleep(self.delay)
        page = self.pages.get(url)
        if page is None:
            return FetchOutcome.not_found(url)
        if isinstance(page, FetchOutcome):
            return page
        if isinstance(page, bytes):
            return FetchOutcome.success(url, page, content_type='image/jpeg')
        return FetchOutcome.success(url, page.encode('utf-8'),
                                    content_type='text/html; charset=utf-8', encoding='utf-8')

    async def aclose(self):
        self.closed = True


BASE = 'https://movie.douban.com'
SEARCH_URL = 'https://www.douban.com/search'


@pytest.fixture
def config():
    return ServiceConfig()


@pytest.fixture
def sample_pages():
    """Upstream pages for movie 26862259, keyed by URL."""
    return {
        SEARCH_URL: SEARCH_HTML,
        f'{BASE}/subject/26862259/': MOVIE_HTML,
        f'{BASE}/subject/26862259/celebrities': CELEBRITIES_HTML,
        f'{BASE}/celebrity/1274224/': CELEBRITY_HTML,
        f'{BASE}/subject/26862259/photos': WALLPAPERS_HTML,
        'https://img9.doubanio.com/view/photo/s_ratio_poster/public/p2408407697.jpg': b'\xff\xd8\xff\xe0poster',
    }


@pytest.fixture
def stub_fetcher(sample_pages):
    return StubFetcher(sample_pages)


@pytest.fixture
def search_html():
    return SEARCH_HTML


@pytest.fixture
def empty_search_html():
    return EMPTY_SEARCH_HTML


@pytest.fixture
def movie_html():
    return MOVIE_HTML


@pytest.fixture
def celebrities_html():
    return CELEBRITIES_HTML


@pytest.fixture
def celebrity_html():
    return CELEBRITY_HTML


@pytest.fixture
def wallpapers_html():
    return WALLPAPERS_HTML


__all__ = ['StubFetcher', 'ResourceKind']
