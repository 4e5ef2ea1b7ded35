import pytest

from xdown import create_app
from xdown.sources import LibrarySource, SourceResolver

VIDEO_ID = 'dQw4w9WgXcQ'


def make_info():
    """A trimmed yt-dlp info dict."""
    return {
        'id': VIDEO_ID,
        'title': 'Rick Astley - Never Gonna Give You Up (Official Video)',
        'description': 'The official video',
        'duration': 213,
        'upload_date': '20091025',
        'thumbnail': f'https://i.ytimg.com/vi/{VIDEO_ID}/maxresdefault.jpg',
        'channel': 'Rick Astley',
        'channel_id': 'UCuAXFkgsw1L7xaCfnd5JJOw',
        'channel_url': 'https://www.youtube.com/channel/UCuAXFkgsw1L7xaCfnd5JJOw',
        'formats': [
            {'format_id': 'sb0', 'ext': 'mhtml', 'vcodec': 'none', 'acodec': 'none',
             'format_note': 'storyboard', 'url': 'https://i.ytimg.com/sb/0'},
            {'format_id': '140', 'ext': 'm4a', 'vcodec': 'none', 'acodec': 'mp4a.40.2',
             'abr': 129.5, 'filesize': 3433514, 'url': 'https://cdn.example/140'},
            {'format_id': '18', 'ext': 'mp4', 'vcodec': 'avc1', 'acodec': 'mp4a.40.2',
             'height': 360, 'fps': 25, 'filesize': 8000000, 'url': 'https://cdn.example/18'},
            {'format_id': '134', 'ext': 'mp4', 'vcodec': 'avc1', 'acodec': 'none',
             'height': 360, 'fps': 25, 'url': 'https://cdn.example/134'},
            {'format_id': '22', 'ext': 'mp4', 'vcodec': 'avc1', 'acodec': 'mp4a.40.2',
             'height': 720, 'fps': 25, 'url': 'https://cdn.example/22',
             'http_headers': {'User-Agent': 'test-agent'}},
            {'format_id': '136', 'ext': 'mp4', 'vcodec': 'avc1', 'acodec': 'none',
             'height': 720, 'fps': 25, 'url': 'https://cdn.example/136'},
            {'format_id': '248', 'ext': 'webm', 'vcodec': 'vp9', 'acodec': 'none',
             'height': 1080, 'fps': 25, 'filesize_approx': 50000000, 'url': 'https://cdn.example/248'},
            {'format_id': '137', 'ext': 'mp4', 'vcodec': 'avc1', 'acodec': 'none',
             'height': 1080, 'fps': 25, 'url': 'https://cdn.example/137'},
        ],
    }


class FakeLibrary:
    def __init__(self, info=None, error=None):
        self.info = info
        self.error = error
        self.calls = []

    def get_info(self, video_id):
        self.calls.append(video_id)
        if self.error:
            raise self.error
        return self.info


class FakeSource:
    def __init__(self, name, kind='library', data=None, error=None):
        self.name = name
        self.kind = kind
        self.data = data
        self.error = error
        self.calls = 0

    def fetch(self, video_id):
        self.calls += 1
        if self.error:
            raise self.error
        return self.data


@pytest.fixture
def library():
    return FakeLibrary(make_info())


@pytest.fixture
def app(library):
    resolver = SourceResolver([LibrarySource(library)])
    app = create_app({'TESTING': True}, resolver=resolver, library=library)
    return app


@pytest.fixture
def client(app):
    return app.test_client()
