"""Extract canonical video IDs from URLs or raw IDs."""

import re

from .errors import InvalidReference

VIDEO_ID_RE = re.compile(r'^[a-zA-Z0-9_-]{11}$')

# Bare input must carry a digit or an uppercase letter; 'not-a-video' is a word, not an ID
_ID_MARKER_RE = re.compile(r'[0-9A-Z]')

PATTERNS = [
    re.compile(r'(?:https?://)?(?:www\.|m\.|music\.)?(?:youtube\.com|youtube-nocookie\.com)/'
               r'(?:watch\?(?:.*&)?v=|embed/|v/|shorts/|live/)([a-zA-Z0-9_-]{11})(?![a-zA-Z0-9_-])'),
    re.compile(r'(?:https?://)?(?:www\.)?youtu\.be/([a-zA-Z0-9_-]{11})(?![a-zA-Z0-9_-])'),
    re.compile(r'(?:[?&]v=|[?&]vi=|/vi/)([a-zA-Z0-9_-]{11})(?![a-zA-Z0-9_-])'),
]


def is_valid_video_id(value):
    """11-character shape check only."""
    return bool(value) and VIDEO_ID_RE.match(value) is not None


def looks_like_video_id(value):
    return is_valid_video_id(value) and _ID_MARKER_RE.search(value) is not None


def extract_video_id(url):
    """Extract YouTube video ID from various URL formats"""
    text = (url or '').strip()
    if looks_like_video_id(text):
        return text

    for pattern in PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    raise InvalidReference('Invalid YouTube URL or ID')
