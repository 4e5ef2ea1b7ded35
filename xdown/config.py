"""Configuration loaded from the environment."""

import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)


def _flag(name, default='false'):
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class Config:
    # Ordered upstream sources, first usable answer wins
    SOURCES = os.getenv('SOURCES', 'library,player-web,player-android,mirror')

    # Internal player API; keys are optional
    YT_PLAYER_URL_WEB = os.getenv('YT_PLAYER_URL_WEB', 'https://www.youtube.com/youtubei/v1/player')
    YT_PLAYER_URL_ANDROID = os.getenv('YT_PLAYER_URL_ANDROID', 'https://youtubei.googleapis.com/youtubei/v1/player')
    YT_WEB_API_KEY = os.getenv('YT_WEB_API_KEY', '')
    YT_ANDROID_API_KEY = os.getenv('YT_ANDROID_API_KEY', '')
    YT_WEB_CLIENT_VERSION = os.getenv('YT_WEB_CLIENT_VERSION', '2.20231219.06.00')
    YT_ANDROID_CLIENT_VERSION = os.getenv('YT_ANDROID_CLIENT_VERSION', '19.05.36')

    # Third-party mirror
    MIRROR_BASE_URL = os.getenv('MIRROR_BASE_URL', 'https://d.ymcdn.org')
    MIRROR_INIT_QUERY = os.getenv('MIRROR_INIT_QUERY', 'p=y&23=1llum1n471')

    USER_AGENT = os.getenv('USER_AGENT', DEFAULT_USER_AGENT)

    # Seconds
    UPSTREAM_TIMEOUT = float(os.getenv('UPSTREAM_TIMEOUT', '15'))
    STREAM_CONNECT_TIMEOUT = float(os.getenv('STREAM_CONNECT_TIMEOUT', '10'))
    STREAM_READ_TIMEOUT = float(os.getenv('STREAM_READ_TIMEOUT', '60'))
    STREAM_CHUNK_SIZE = int(os.getenv('STREAM_CHUNK_SIZE', str(64 * 1024)))

    # Prefix for format download links; empty keeps them relative
    DOWNLOAD_BASE_URL = os.getenv('DOWNLOAD_BASE_URL', '')
    CACHE_MAX_AGE = int(os.getenv('CACHE_MAX_AGE', '3600'))
    MAX_FORMATS = int(os.getenv('MAX_FORMATS', '10'))

    EXPOSE_TRACEBACKS = _flag('EXPOSE_TRACEBACKS')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()


def source_names(value):
    """Split a comma-separated source list."""
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [name.strip() for name in (value or '').split(',') if name.strip()]
