"""Test configuration and fixtures"""

import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

from spot_lyrics.spotify.session import SERVER_TIME_URL, SessionManager

TEST_COOKIE = "AQ-test-cookie-value"
TEST_SERVER_TIME = 1_700_000_000


class FakeResponse:
    """Minimal stand-in for requests.Response"""

    def __init__(self, status_code=200, payload=None, json_error=False):
        self.status_code = status_code
        self._payload = payload
        self._json_error = json_error

    def json(self):
        if self._json_error:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeHttp:
    """
    Stand-in for requests.Session that routes GET calls by URL.

    Each route holds a queue of responses (or exceptions to raise). The
    last entry of a queue is repeated once the others are used up.
    """

    def __init__(self):
        self.headers = {}
        self.cookies = requests.cookies.RequestsCookieJar()
        self.calls = []
        self.closed = False
        self._routes = {}

    def route(self, url, *responses):
        self._routes.setdefault(url, []).extend(responses)

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        queue = self._routes.get(url)
        if not queue:
            raise AssertionError(f"Unexpected GET {url}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response

    def calls_to(self, url):
        return [kwargs for called_url, kwargs in self.calls if called_url == url]

    def close(self):
        self.closed = True


def token_response(token):
    return FakeResponse(200, {"accessToken": token, "isAnonymous": False})


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def fake_http():
    """FakeHttp with a working server-time endpoint"""
    http = FakeHttp()
    http.route(SERVER_TIME_URL, FakeResponse(200, {"serverTime": TEST_SERVER_TIME}))
    return http


@pytest.fixture
def make_session(fake_http):
    """Factory for SessionManager instances bound to fake_http, with a fake sleep"""
    def factory(**kwargs):
        params = {
            "http": fake_http,
            "retry_pause": 0.5,
            "sleep": Mock(),
            "clock": lambda: 1_234_567_890,
        }
        params.update(kwargs)
        return SessionManager(TEST_COOKIE, **params)
    return factory


@pytest.fixture
def sample_track_data():
    """Sample full track object as returned by the tracks endpoint"""
    return {
        'id': 'track0000000000000001',
        'name': 'Test Song',
        'external_urls': {'spotify': 'https://open.spotify.com/track/track0000000000000001'},
        'artists': [
            {'id': 'artist_123', 'name': 'Test Artist'},
            {'id': 'artist_456', 'name': 'Guest Artist'},
        ],
        'album': {
            'id': 'album_123',
            'name': 'Test Album',
            'album_type': 'album',
            'total_tracks': 12,
            'release_date': '2023-01-01',
            'release_date_precision': 'day',
            'artists': [{'id': 'artist_123', 'name': 'Test Artist'}]
        },
        'duration_ms': 210000,  # 3:30
        'explicit': False,
        'popularity': 75,
        'track_number': 3,
        'disc_number': 1,
    }


@pytest.fixture
def make_track_data(sample_track_data):
    """Factory for track objects with a given id and name"""
    def factory(track_id, name=None):
        data = dict(sample_track_data)
        data['id'] = track_id
        data['name'] = name or f"Song {track_id}"
        data['external_urls'] = {'spotify': f"https://open.spotify.com/track/{track_id}"}
        return data
    return factory


@pytest.fixture
def lyrics_payload():
    """Sample color-lyrics response"""
    return {
        'lyrics': {
            'syncType': 'LINE_SYNCED',
            'lines': [
                {'startTimeMs': '15230', 'words': 'First line of the song', 'syllables': [], 'endTimeMs': '0'},
                {'startTimeMs': '18500', 'words': 'Second line continues', 'syllables': [], 'endTimeMs': '0'},
                {'startTimeMs': '65000', 'words': '♪', 'syllables': [], 'endTimeMs': '0'},
            ],
            'provider': 'MusixMatch',
            'providerDisplayName': 'Musixmatch',
            'language': 'en',
        },
        'colors': {'background': -9013642, 'text': -16777216, 'highlightText': -1},
        'hasVocalRemoval': False,
    }
