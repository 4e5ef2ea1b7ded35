"""YouTube video info and download proxy service."""

import logging
import time

from flask import Flask

from .config import Config
from .download import StreamProxy
from .routes import bp, not_found
from .sources import SourceResolver, YtDlpLibrary, build_sources

__version__ = '2.0.0'


def create_app(config=None, resolver=None, library=None, proxy=None):
    """Build the Flask app; collaborators may be injected for tests."""
    app = Flask(__name__)
    app.config.from_object(Config)
    app.config['VERSION'] = __version__
    if isinstance(config, dict):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)
    app.logger.setLevel(getattr(logging, app.config['LOG_LEVEL'], logging.INFO))

    if library is None:
        library = YtDlpLibrary(socket_timeout=app.config['UPSTREAM_TIMEOUT'],
                               user_agent=app.config['USER_AGENT'])
    if resolver is None:
        resolver = SourceResolver(build_sources(app.config, library))
    if proxy is None:
        proxy = StreamProxy(connect_timeout=app.config['STREAM_CONNECT_TIMEOUT'],
                            read_timeout=app.config['STREAM_READ_TIMEOUT'],
                            chunk_size=app.config['STREAM_CHUNK_SIZE'])

    app.extensions['xdown'] = {
        'library': library,
        'resolver': resolver,
        'proxy': proxy,
        'started': time.monotonic(),
    }

    app.register_blueprint(bp)
    app.register_error_handler(404, not_found)

    @app.after_request
    def add_cors_headers(response):
        response.headers.setdefault('Access-Control-Allow-Origin', '*')
        return response

    return app
