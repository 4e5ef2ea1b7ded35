"""Upstream video info sources and sequential fallback resolution."""

import logging
import time
from collections import namedtuple

import requests
import yt_dlp

from .config import source_names
from .errors import NoSourceAvailable

logger = logging.getLogger(__name__)

WATCH_URL = 'https://www.youtube.com/watch?v={}'

SourcePayload = namedtuple('SourcePayload', ['source', 'kind', 'data'])


class YtDlpLibrary:
    """Thin wrapper around yt-dlp's info extraction."""

    def __init__(self, socket_timeout=15, user_agent=None):
        self._ydl_opts = {
            'quiet': True,
            'no_warnings': True,
            'noplaylist': True,
            'skip_download': True,
            'socket_timeout': socket_timeout,
        }
        if user_agent:
            self._ydl_opts['http_headers'] = {'User-Agent': user_agent}

    def get_info(self, video_id):
        with yt_dlp.YoutubeDL(self._ydl_opts) as ydl:
            return ydl.extract_info(WATCH_URL.format(video_id), download=False)


class LibrarySource:
    kind = 'library'

    def __init__(self, library, name='library'):
        self.name = name
        self.library = library

    def fetch(self, video_id):
        return self.library.get_info(video_id)


class PlayerApiSource:
    """POSTs to YouTube's internal player endpoint with a client profile."""
    kind = 'player'

    def __init__(self, name, url, client, session, api_key='', timeout=15, user_agent=None):
        self.name = name
        self.url = url
        self.client = client
        self.session = session
        self.api_key = api_key
        self.timeout = timeout
        self.headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        if user_agent:
            self.headers['User-Agent'] = user_agent

    def fetch(self, video_id):
        params = {'key': self.api_key} if self.api_key else None
        body = {'context': {'client': self.client}, 'videoId': video_id}
        resp = self.session.post(self.url, json=body, params=params,
                                 headers=self.headers, timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()
        if not data or not (data.get('streamingData') or data.get('videoDetails')):
            return None
        return data


class MirrorSource:
    """Third-party mirror: fetch an init token, then the video data."""
    kind = 'mirror'

    def __init__(self, base_url, session, init_query='', timeout=15, user_agent=None, name='mirror'):
        self.name = name
        self.base_url = base_url.rstrip('/')
        self.session = session
        self.init_query = init_query
        self.timeout = timeout
        self.headers = {
            'Accept': 'application/json',
            'Referer': self.base_url + '/',
        }
        if user_agent:
            self.headers['User-Agent'] = user_agent

    def _get_json(self, url, params=None):
        resp = self.session.get(url, params=params, headers=self.headers, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def fetch(self, video_id):
        init_url = f"{self.base_url}/api/v1/init?{self.init_query}" if self.init_query \
            else f"{self.base_url}/api/v1/init"
        initial = self._get_json(init_url, params={'_': int(time.time() * 1000)})
        token = (initial or {}).get('token')
        if not token:
            logger.warning(f"Mirror {self.name} returned no token")
            return None

        data = self._get_json(f"{self.base_url}/api/v1/video",
                              params={'url': WATCH_URL.format(video_id), 'token': token})
        if not data or not (data.get('formats') or data.get('title')):
            return None
        return data


class SourceResolver:
    """Tries each source once, in order; the first usable payload wins."""

    def __init__(self, sources):
        self.sources = list(sources)

    def resolve(self, video_id):
        for source in self.sources:
            try:
                data = source.fetch(video_id)
            except Exception as e:
                logger.warning(f"Source {source.name} failed for {video_id}: {e}")
                continue
            if not data:
                logger.warning(f"Source {source.name} returned nothing for {video_id}")
                continue
            logger.info(f"Resolved {video_id} via {source.name}")
            return SourcePayload(source.name, source.kind, data)
        raise NoSourceAvailable('Video not found or cannot be accessed')


def _library(config, library, session):
    return LibrarySource(library)


def _player_web(config, library, session):
    client = {
        'clientName': 'WEB',
        'clientVersion': config['YT_WEB_CLIENT_VERSION'],
        'hl': 'en',
        'gl': 'US',
    }
    return PlayerApiSource('player-web', config['YT_PLAYER_URL_WEB'], client, session,
                           api_key=config['YT_WEB_API_KEY'],
                           timeout=config['UPSTREAM_TIMEOUT'],
                           user_agent=config['USER_AGENT'])


def _player_android(config, library, session):
    client = {
        'clientName': 'ANDROID',
        'clientVersion': config['YT_ANDROID_CLIENT_VERSION'],
        'androidSdkVersion': 33,
    }
    return PlayerApiSource('player-android', config['YT_PLAYER_URL_ANDROID'], client, session,
                           api_key=config['YT_ANDROID_API_KEY'],
                           timeout=config['UPSTREAM_TIMEOUT'],
                           user_agent=config['USER_AGENT'])


def _mirror(config, library, session):
    return MirrorSource(config['MIRROR_BASE_URL'], session,
                        init_query=config['MIRROR_INIT_QUERY'],
                        timeout=config['UPSTREAM_TIMEOUT'],
                        user_agent=config['USER_AGENT'])


SOURCE_FACTORIES = {
    'library': _library,
    'player-web': _player_web,
    'player-android': _player_android,
    'mirror': _mirror,
}


def build_sources(config, library, session=None):
    """Build the ordered source list named by config['SOURCES']."""
    session = session or requests.Session()
    sources = []
    for name in source_names(config['SOURCES']):
        factory = SOURCE_FACTORIES.get(name)
        if factory is None:
            logger.warning(f"Ignoring unknown source: {name}")
            continue
        sources.append(factory(config, library, session))
    return sources
