import threading
from unittest import mock
from urllib.parse import unquote

import requests
from werkzeug.serving import make_server

from xdown import create_app
from xdown.formats import quality_number
from xdown.sources import SourceResolver

from .conftest import VIDEO_ID, FakeLibrary, FakeSource, make_info


def test_home(client):
    resp = client.get('/')
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['status'] == 'online'
    assert 'download_info' in body['endpoints']
    assert resp.headers['Access-Control-Allow-Origin'] == '*'


def test_health(client):
    resp = client.get('/health')
    body = resp.get_json()
    assert body['status'] == 'healthy'
    assert body['uptime'] >= 0
    assert 'timestamp' in body


def test_info_end_to_end(client, library):
    resp = client.get('/api/ytdl?link=https://youtu.be/dQw4w9WgXcQ')
    assert resp.status_code == 200
    assert resp.headers['Cache-Control'] == 'public, max-age=3600'
    body = resp.get_json()
    assert body['status'] == 'success'
    assert body['data']['video']['id'] == VIDEO_ID
    formats = body['data']['formats']
    assert 0 < len(formats) <= 10
    assert formats[-1]['quality'] == 'audio'
    numbers = [quality_number(f['quality']) for f in formats if f['quality'] != 'audio']
    assert numbers == sorted(numbers, reverse=True)
    assert library.calls == [VIDEO_ID]


def test_info_alias_route(client):
    resp = client.get(f'/api/xdown-yt?link={VIDEO_ID}')
    assert resp.status_code == 200
    assert resp.get_json()['data']['video']['title'].startswith('Rick Astley')


def test_info_missing_link(client):
    resp = client.get('/api/ytdl')
    assert resp.status_code == 400
    body = resp.get_json()
    assert body['status'] == 'error'
    assert 'example' in body


def test_info_invalid_link(client, library):
    resp = client.get('/api/ytdl?link=not-a-video')
    assert resp.status_code == 400
    assert resp.get_json()['status'] == 'error'
    assert library.calls == []


def test_info_all_sources_exhausted():
    sources = [
        FakeSource('library', error=RuntimeError('blocked')),
        FakeSource('player-web', kind='player', data=None),
        FakeSource('mirror', kind='mirror', data={}),
    ]
    app = create_app({'TESTING': True}, resolver=SourceResolver(sources), library=FakeLibrary())
    resp = app.test_client().get(f'/api/ytdl?link={VIDEO_ID}')
    assert resp.status_code == 404
    body = resp.get_json()
    assert body['status'] == 'error'
    assert body['videoId'] == VIDEO_ID
    assert [s.calls for s in sources] == [1, 1, 1]


def test_info_first_source_wins():
    first = FakeSource('mirror', kind='mirror', data={'title': 'From mirror'})
    second = FakeSource('library', error=AssertionError('should not run'))
    app = create_app({'TESTING': True}, resolver=SourceResolver([first, second]),
                     library=FakeLibrary())
    resp = app.test_client().get(f'/api/ytdl?link={VIDEO_ID}')
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['data']['video']['title'] == 'From mirror'
    # mirror gave no formats, so placeholders are served
    assert [f['quality'] for f in body['data']['formats']] == ['1080p', '720p', 'audio']
    assert (first.calls, second.calls) == (1, 0)


def test_info_unexpected_error_is_500():
    resolver = mock.Mock()
    resolver.resolve.return_value = mock.Mock(source='x', kind='unknown', data={})
    app = create_app({'TESTING': True, 'EXPOSE_TRACEBACKS': True}, resolver=resolver,
                     library=FakeLibrary())
    resp = app.test_client().get(f'/api/ytdl?link={VIDEO_ID}')
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['status'] == 'error'
    assert 'traceback' in body


def test_download_short_id_makes_no_network_call(app, library):
    proxy = mock.Mock()
    app.extensions['xdown']['proxy'] = proxy
    resp = app.test_client().get('/api/download/short')
    assert resp.status_code == 400
    assert resp.get_json()['status'] == 'error'
    assert library.calls == []
    proxy.open.assert_not_called()


def test_download_unknown_format(app):
    resp = app.test_client().get(f'/api/download/{VIDEO_ID}?itag=9999')
    assert resp.status_code == 404
    assert resp.get_json()['status'] == 'error'


def test_download_streams_bytes(app, library):
    upstream = mock.Mock()
    upstream.status_code = 200
    upstream.headers = {'Content-Length': '6'}
    upstream.iter_content.return_value = iter([b'abc', b'def'])
    proxy = mock.Mock()
    proxy.open.return_value = upstream
    proxy.iter_bytes.side_effect = lambda up: iter(up.iter_content(chunk_size=4))
    app.extensions['xdown']['proxy'] = proxy

    resp = app.test_client().get(f'/api/download/{VIDEO_ID}?quality=720p')
    assert resp.status_code == 200
    assert resp.data == b'abcdef'
    assert resp.headers['Content-Type'] == 'video/mp4'
    assert resp.headers['Content-Disposition'] == \
        'attachment; filename="Rick Astley - Never Gonna Give You Up Official Video.mp4"'
    assert resp.headers['Content-Length'] == '6'
    assert proxy.open.call_args[0][0]['format_id'] == '22'
    assert library.calls == [VIDEO_ID]


def test_download_upstream_failure(app):
    app.extensions['xdown']['library'] = FakeLibrary(error=RuntimeError('extractor broke'))
    resp = app.test_client().get(f'/api/download/{VIDEO_ID}')
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['status'] == 'error'
    assert 'extractor broke' in body['message']
    assert 'traceback' not in body


def test_unknown_route(client):
    resp = client.get('/nope')
    assert resp.status_code == 404
    body = resp.get_json()
    assert body['status'] == 'error'
    assert 'GET /health' in body['available_endpoints']


def _streaming_proxy(chunks, headers=None):
    upstream = mock.Mock()
    upstream.status_code = 200
    upstream.headers = headers or {}
    upstream.iter_content.return_value = iter(chunks)
    proxy = mock.Mock()
    proxy.open.return_value = upstream
    proxy.iter_bytes.side_effect = lambda up: iter(up.iter_content(chunk_size=4))
    return proxy


def test_download_without_upstream_length_sends_none(app, library):
    # the fixture's itag 140 has a filesize that must not be advertised
    app.extensions['xdown']['proxy'] = _streaming_proxy([b'abc'])
    resp = app.test_client().get(f'/api/download/{VIDEO_ID}?itag=140')
    assert resp.status_code == 200
    assert resp.data == b'abc'
    assert resp.headers.get('Content-Length') != '3433514'


def test_download_non_ascii_title_over_real_server():
    info = make_info()
    info['title'] = '日本語のタイトル ★ "Ελληνικά"'
    app = create_app({'TESTING': True}, resolver=SourceResolver([]), library=FakeLibrary(info),
                     proxy=_streaming_proxy([b'abc', b'def'], {'Content-Length': '6'}))
    server = make_server('127.0.0.1', 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        resp = requests.get(
            f'http://127.0.0.1:{server.server_port}/api/download/{VIDEO_ID}?quality=720p',
            timeout=10)
    finally:
        server.shutdown()
        thread.join(timeout=5)

    assert resp.status_code == 200
    assert resp.content == b'abcdef'
    disposition = resp.headers['Content-Disposition']
    assert disposition.startswith('attachment; filename="video.mp4"; filename*=UTF-8\'\'')
    assert unquote(disposition.split("UTF-8''", 1)[1]) == '日本語のタイトル  Ελληνικά.mp4'
