"""Format selection and upstream byte proxying for downloads."""

import logging
import mimetypes
import re
import unicodedata
from urllib.parse import quote

import requests

from .errors import FormatUnavailable, UpstreamFailure

logger = logging.getLogger(__name__)


def _has_video(f):
    return f.get('vcodec') not in (None, 'none')


def _has_audio(f):
    return f.get('acodec') not in (None, 'none')


def _matches_quality(f, quality):
    if quality == 'audio':
        return _has_audio(f) and not _has_video(f)
    if quality == 'video':
        return _has_video(f) and not _has_audio(f)
    labels = {str(f.get('format_note') or ''), str(f.get('format_id') or '')}
    if f.get('height'):
        labels.add(f"{f['height']}p")
    return quality in labels


def choose_format(info, itag=None, quality=None, container=None):
    """Pick one yt-dlp format for the given selector.

    An itag must match exactly. A quality label may be narrowed by a
    container. A container alone matches a format id first, then an
    extension. With no selector the tallest stream carrying both audio
    and video is used.
    """
    formats = [f for f in info.get('formats') or [] if f.get('url')]

    if itag:
        for f in formats:
            if str(f.get('format_id')) == str(itag):
                return f
        raise FormatUnavailable(f"Format itag={itag} not available")

    if quality:
        candidates = [f for f in formats if _matches_quality(f, quality)]
        if container:
            candidates = [f for f in candidates if f.get('ext') == container]
        if candidates:
            return candidates[0]
        raise FormatUnavailable(f"Quality {quality} not available")

    if container:
        for f in formats:
            if str(f.get('format_id')) == container:
                return f
        by_ext = [f for f in formats if f.get('ext') == container]
        by_ext.sort(key=lambda f: not (_has_audio(f) and _has_video(f)))
        if by_ext:
            return by_ext[0]
        raise FormatUnavailable(f"Format {container} not available")

    muxed = [f for f in formats if _has_audio(f) and _has_video(f)]
    if not muxed:
        raise FormatUnavailable('No format with both audio and video available')
    return max(muxed, key=lambda f: (f.get('height') or 0, f.get('tbr') or 0))


def sanitize_filename(title):
    """Remove invalid characters from filename"""
    cleaned = re.sub(r'[^\w\s-]', '', title or '').strip()
    return cleaned[:100] or 'video'


def content_type_for(container):
    mime, _ = mimetypes.guess_type(f"file.{container}")
    return mime or 'video/mp4'


def content_disposition(filename):
    """Attachment header with an ASCII fallback and an RFC 5987 UTF-8 name."""
    try:
        filename.encode('ascii')
    except UnicodeEncodeError:
        stem, _, ext = filename.rpartition('.')
        simple = unicodedata.normalize('NFKD', stem).encode('ascii', 'ignore').decode('ascii')
        simple = f"{sanitize_filename(simple)}.{ext}"
        quoted = quote(filename, safe="!#$&+^`|~")
        return f"attachment; filename=\"{simple}\"; filename*=UTF-8''{quoted}"
    return f'attachment; filename="{filename}"'


def download_headers(info, fmt):
    container = fmt.get('ext') or 'mp4'
    filename = f"{sanitize_filename(info.get('title'))}.{container}"
    return {
        'Content-Type': content_type_for(container),
        'Content-Disposition': content_disposition(filename),
    }


class StreamProxy:
    """Pipes an upstream format URL to the caller in chunks."""

    def __init__(self, session=None, connect_timeout=10, read_timeout=60, chunk_size=64 * 1024):
        self.session = session or requests.Session()
        self.timeout = (connect_timeout, read_timeout)
        self.chunk_size = chunk_size

    def open(self, fmt):
        try:
            upstream = self.session.get(fmt['url'], headers=fmt.get('http_headers') or {},
                                        stream=True, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamFailure(f"Download failed: {e}")

        if upstream.status_code >= 400:
            upstream.close()
            raise UpstreamFailure(f"Download failed: upstream returned HTTP {upstream.status_code}")
        return upstream

    def iter_bytes(self, upstream):
        # Closing the generator (client disconnect) closes the upstream too
        try:
            for chunk in upstream.iter_content(chunk_size=self.chunk_size):
                if chunk:
                    yield chunk
        except requests.RequestException as e:
            logger.warning(f"Upstream stream interrupted: {e}")
        finally:
            upstream.close()
