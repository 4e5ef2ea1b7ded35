"""Normalize upstream payloads into the canonical video + formats schema."""

import logging
from urllib.parse import urlencode

from .formats import AUDIO, select_formats

logger = logging.getLogger(__name__)

THUMBNAIL_URL = 'https://i.ytimg.com/vi/{}/maxresdefault.jpg'


def format_size(bytes_size):
    """Convert bytes to human readable format"""
    try:
        bytes_size = float(bytes_size)
    except (TypeError, ValueError):
        return 'Unknown'
    if bytes_size <= 0:
        return 'Unknown'
    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_size < 1024.0:
            return f"{bytes_size:.2f} {unit}"
        bytes_size /= 1024.0
    return f"{bytes_size:.2f} TB"


def _int(value, default=0):
    try:
        return max(int(float(value)), 0)
    except (TypeError, ValueError):
        return default


def _kbps(value, scale=1):
    try:
        kbps = round(float(value) / scale)
    except (TypeError, ValueError, OverflowError):
        return None
    return f"{kbps}kbps" if kbps > 0 else None


def _iso_date(value):
    """'20091025' or '2009-10-25T...' -> '2009-10-25'."""
    if not value:
        return None
    value = str(value)
    if len(value) == 8 and value.isdigit():
        return f"{value[:4]}-{value[4:6]}-{value[6:]}"
    if len(value) >= 10 and value[4] == '-' and value[7] == '-':
        return value[:10]
    return None


def default_video(video_id):
    return {
        'id': video_id,
        'title': 'Unknown Title',
        'description': '',
        'duration': 0,
        'uploadDate': None,
        'thumbnail': THUMBNAIL_URL.format(video_id),
        'author': {
            'name': 'Unknown',
            'channelId': '',
            'profileUrl': '',
        },
    }


def download_url(base_url, video_id, **selector):
    return f"{base_url}/api/download/{video_id}?{urlencode(selector)}"


def _id_selector(format_id):
    format_id = str(format_id)
    return {'itag': format_id} if format_id.isdigit() else {'format': format_id}


def normalize_library(info, video_id, base_url=''):
    """yt-dlp info dict."""
    video = default_video(video_id)
    channel_id = info.get('channel_id') or ''
    video.update({
        'title': info.get('title') or video['title'],
        'description': info.get('description') or '',
        'duration': _int(info.get('duration')),
        'uploadDate': _iso_date(info.get('upload_date')),
        'thumbnail': info.get('thumbnail') or video['thumbnail'],
        'author': {
            'name': info.get('channel') or info.get('uploader') or 'Unknown',
            'channelId': channel_id,
            'profileUrl': info.get('channel_url') or info.get('uploader_url') or '',
        },
    })

    formats = []
    for f in info.get('formats') or []:
        has_video = f.get('vcodec') not in (None, 'none')
        has_audio = f.get('acodec') not in (None, 'none')
        if not has_video and not has_audio:
            # storyboards and other non-media entries
            continue
        if has_video and f.get('height'):
            quality = f"{f['height']}p"
        elif has_video:
            quality = f.get('format_note') or 'video'
        else:
            quality = AUDIO
        formats.append({
            'quality': quality,
            'format': f.get('ext') or 'mp4',
            'fps': f.get('fps') or None,
            'bitrate': _kbps(f.get('abr')),
            'size': format_size(f.get('filesize') or f.get('filesize_approx')),
            'downloadUrl': download_url(base_url, video_id, **_id_selector(f.get('format_id'))),
        })
    return video, formats


def normalize_player(data, video_id, base_url=''):
    """Internal player API response (videoDetails + streamingData)."""
    video = default_video(video_id)
    details = data.get('videoDetails') or {}
    micro = (data.get('microformat') or {}).get('playerMicroformatRenderer') or {}
    thumbnails = (details.get('thumbnail') or {}).get('thumbnails') or []
    channel_id = details.get('channelId') or ''

    video.update({
        'title': details.get('title') or video['title'],
        'description': details.get('shortDescription') or '',
        'duration': _int(details.get('lengthSeconds')),
        'uploadDate': _iso_date(micro.get('publishDate') or micro.get('uploadDate')),
        'thumbnail': thumbnails[-1].get('url') if thumbnails else video['thumbnail'],
        'author': {
            'name': details.get('author') or 'Unknown',
            'channelId': channel_id,
            'profileUrl': f"https://www.youtube.com/channel/{channel_id}" if channel_id else '',
        },
    })

    streaming = data.get('streamingData') or {}
    formats = []
    for f in (streaming.get('formats') or []) + (streaming.get('adaptiveFormats') or []):
        if not (f.get('url') or f.get('signatureCipher') or f.get('cipher')):
            continue
        mime = f.get('mimeType') or ''
        if f.get('qualityLabel'):
            quality = f['qualityLabel']
        elif f.get('height'):
            quality = f"{f['height']}p"
        else:
            quality = AUDIO
        container = mime.split('/', 1)[1].split(';')[0].strip() if '/' in mime else 'mp4'
        formats.append({
            'quality': quality,
            'format': container or 'mp4',
            'fps': f.get('fps') or None,
            'bitrate': _kbps(f.get('bitrate'), scale=1000),
            'size': format_size(f.get('contentLength')),
            'downloadUrl': download_url(base_url, video_id, itag=f.get('itag')),
        })
    return video, formats


def normalize_mirror(data, video_id, base_url=''):
    """Flat mirror response."""
    video = default_video(video_id)
    video.update({
        'title': data.get('title') or video['title'],
        'description': data.get('description') or '',
        'duration': _int(data.get('duration')),
        'uploadDate': _iso_date(data.get('upload_date')),
        'thumbnail': data.get('thumbnail') or video['thumbnail'],
        'author': {
            'name': data.get('channel') or data.get('uploader') or 'Unknown',
            'channelId': data.get('channel_id') or '',
            'profileUrl': data.get('channel_url') or '',
        },
    })

    formats = []
    for f in data.get('formats') or []:
        if not f.get('url'):
            continue
        quality = f.get('format_note') or (f"{f['height']}p" if f.get('height') else AUDIO)
        selector = {'format': f['format_id']} if f.get('format_id') else {'quality': quality}
        formats.append({
            'quality': quality,
            'format': f.get('ext') or 'mp4',
            'fps': f.get('fps') or None,
            'bitrate': _kbps(f.get('abr')),
            'size': format_size(f.get('filesize')),
            'downloadUrl': download_url(base_url, video_id, **selector),
        })
    return video, formats


NORMALIZERS = {
    'library': normalize_library,
    'player': normalize_player,
    'mirror': normalize_mirror,
}


def placeholder_formats(video_id, base_url=''):
    return [
        {'quality': '1080p', 'format': 'mp4', 'fps': 30, 'bitrate': None, 'size': '45MB',
         'downloadUrl': download_url(base_url, video_id, quality='1080p')},
        {'quality': '720p', 'format': 'mp4', 'fps': 30, 'bitrate': None, 'size': '25MB',
         'downloadUrl': download_url(base_url, video_id, quality='720p')},
        {'quality': AUDIO, 'format': 'mp3', 'fps': None, 'bitrate': '128kbps', 'size': '4MB',
         'downloadUrl': download_url(base_url, video_id, quality=AUDIO)},
    ]


def normalize(payload, video_id, base_url=''):
    """Dispatch a SourcePayload to the normalizer for its kind."""
    normalizer = NORMALIZERS[payload.kind]
    video, formats = normalizer(payload.data, video_id, base_url)
    if not formats:
        logger.warning(f"No usable formats from {payload.source} for {video_id}, using placeholders")
        formats = placeholder_formats(video_id, base_url)
    return video, formats


def build_response(payload, video_id, base_url='', limit=10):
    video, formats = normalize(payload, video_id, base_url)
    return {
        'status': 'success',
        'data': {
            'video': video,
            'formats': select_formats(formats, limit),
        },
    }
