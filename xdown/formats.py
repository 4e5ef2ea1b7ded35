"""De-duplication and ranking of format variants."""

import re

AUDIO = 'audio'

_LEADING_INT = re.compile(r'^\s*(\d+)')


def quality_number(quality):
    """Leading integer of a quality label ('1080p60' -> 1080), 0 if none."""
    match = _LEADING_INT.match(str(quality or ''))
    return int(match.group(1)) if match else 0


def dedupe_formats(formats):
    # First-seen wins per (quality, container)
    seen = {}
    for fmt in formats:
        key = (fmt.get('quality'), fmt.get('format'))
        if key not in seen:
            seen[key] = fmt
    return list(seen.values())


def rank_formats(formats):
    return sorted(formats, key=lambda f: (f.get('quality') == AUDIO, -quality_number(f.get('quality'))))


def select_formats(formats, limit=10):
    return rank_formats(dedupe_formats(formats))[:limit]
