"""HTTP endpoints."""

import logging
import time
import traceback
from datetime import datetime, timezone

from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context

from .download import choose_format, download_headers
from .errors import InvalidReference, NoSourceAvailable, XdownError, error_response
from .normalize import build_response
from .video_id import extract_video_id, is_valid_video_id

logger = logging.getLogger(__name__)

bp = Blueprint('xdown', __name__)

EXAMPLE_LINK = 'https://youtu.be/dQw4w9WgXcQ'

AVAILABLE_ENDPOINTS = [
    'GET /',
    'GET /api/ytdl?link=YOUTUBE_URL',
    'GET /api/xdown-yt?link=YOUTUBE_URL',
    'GET /api/download/:videoId',
    'GET /health',
]


def _ext(name):
    return current_app.extensions['xdown'][name]


def _server_error(message, exc):
    logger.error(message, exc_info=True)
    extra = {}
    if current_app.config['EXPOSE_TRACEBACKS']:
        extra['traceback'] = traceback.format_exc()
    return error_response(str(exc) or message, 500, **extra)


@bp.route('/')
def home():
    return jsonify({
        'status': 'online',
        'message': 'YouTube Downloader API',
        'version': current_app.config.get('VERSION', ''),
        'endpoints': {
            'documentation': 'GET /',
            'download_info': 'GET /api/ytdl?link=YOUTUBE_URL_OR_ID',
            'download_info_alias': 'GET /api/xdown-yt?link=YOUTUBE_URL_OR_ID',
            'direct_download': 'GET /api/download/:videoId?quality=QUALITY&itag=ITAG&format=FORMAT',
            'health': 'GET /health',
        },
        'usage': {
            'example': f"/api/ytdl?link={EXAMPLE_LINK}",
            'parameters': {
                'link': 'YouTube URL or Video ID (required)',
            },
        },
        'features': [
            'Multiple source fallback',
            'Audio/video formats',
            'File size estimation',
            'CORS enabled',
        ],
    })


@bp.route('/health')
def health():
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'uptime': round(time.monotonic() - _ext('started'), 3),
    })


@bp.route('/api/ytdl')
@bp.route('/api/xdown-yt')
def video_info():
    """Resolve a link to video metadata and ranked formats."""
    link = request.args.get('link')
    if not link:
        return error_response("Missing 'link' parameter", 400,
                              example=f"/api/ytdl?link={EXAMPLE_LINK}")

    video_id = None
    try:
        video_id = extract_video_id(link)
        payload = _ext('resolver').resolve(video_id)
        body = build_response(payload, video_id,
                              base_url=current_app.config['DOWNLOAD_BASE_URL'],
                              limit=current_app.config['MAX_FORMATS'])
    except InvalidReference as e:
        return error_response(e.message, e.status_code)
    except NoSourceAvailable as e:
        return error_response(e.message, e.status_code, videoId=video_id)
    except XdownError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        return _server_error(f"Error resolving {link}", e)

    resp = jsonify(body)
    resp.headers['Cache-Control'] = f"public, max-age={current_app.config['CACHE_MAX_AGE']}"
    return resp


@bp.route('/api/download/<video_id>')
def download(video_id):
    """Stream one format of a video through the server."""
    if not is_valid_video_id(video_id):
        return error_response('Invalid video ID', 400)

    itag = request.args.get('itag')
    quality = request.args.get('quality')
    container = request.args.get('format')

    try:
        info = _ext('library').get_info(video_id)
        fmt = choose_format(info, itag=itag, quality=quality, container=container)
        proxy = _ext('proxy')
        upstream = proxy.open(fmt)
    except XdownError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        return _server_error(f"Download failed for {video_id}", e)

    headers = download_headers(info, fmt)
    if upstream.headers.get('Content-Length'):
        headers['Content-Length'] = upstream.headers['Content-Length']
    logger.info(f"Streaming {video_id} format {fmt.get('format_id')}")
    mimetype = headers.pop('Content-Type')
    return Response(stream_with_context(proxy.iter_bytes(upstream)),
                    mimetype=mimetype, headers=headers, direct_passthrough=True)


def not_found(e):
    return error_response('Endpoint not found', 404, available_endpoints=AVAILABLE_ENDPOINTS)
