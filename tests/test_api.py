"""Tests for FastAPI endpoints.

The browser runner is patched out; these tests only cover request handling.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from scrollshot.models import CaptureResult

from conftest import make_png


def _result(success: bool = True, **overrides) -> CaptureResult:
    defaults = dict(
        success=success,
        source_url='https://example.com',
        duration_ms=900,
        timestamp_iso='2026-01-01T00:00:00Z',
    )
    if success:
        defaults.update(
            image_bytes=make_png(64, 120),
            total_width=64,
            total_height=120,
            frame_count=2,
            stitching_time_ms=15,
        )
    else:
        defaults.update(error='No viewport size available on page')
    defaults.update(overrides)
    return CaptureResult(**defaults)


@pytest.fixture
def mock_capture():
    return AsyncMock(return_value=_result())


@pytest.fixture
def app_client(mock_capture):
    """Test client with the browser runner replaced."""
    from server.app import app

    with patch('server.app.capture_url', mock_capture):
        with TestClient(app) as client:
            yield client


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_ok(self, app_client):
        response = app_client.get('/health')

        assert response.status_code == 200
        assert response.json() == {'status': 'ok'}


class TestCaptureEndpoint:
    """Tests for POST /api/capture."""

    def test_returns_image(self, app_client, mock_capture):
        response = app_client.post('/api/capture', json={'url': 'https://example.com'})

        assert response.status_code == 200
        assert response.headers['content-type'] == 'image/png'
        assert response.headers['x-frame-count'] == '2'
        assert response.content == mock_capture.return_value.image_bytes

    def test_forwards_options(self, app_client, mock_capture):
        """Request config should override the server defaults."""
        app_client.post('/api/capture', json={
            'url': 'example.com',
            'config': {'max_scrolls': 5, 'output_format': 'jpeg'},
        })

        args, kwargs = mock_capture.call_args
        assert args[0] == 'example.com'
        assert kwargs['options'].max_scrolls == 5
        assert kwargs['options'].output_format == 'jpeg'
        assert kwargs['options'].scroll_delay_ms == 500

    def test_failure_returns_500(self, app_client, mock_capture):
        mock_capture.return_value = _result(success=False)
        response = app_client.post('/api/capture', json={'url': 'https://example.com'})

        assert response.status_code == 500
        body = response.json()
        assert body['success'] is False
        assert 'viewport' in body['error']
        assert 'timestamp' in body

    def test_missing_url_rejected(self, app_client):
        response = app_client.post('/api/capture', json={})

        assert response.status_code == 422

    def test_blank_url_rejected(self, app_client, mock_capture):
        response = app_client.post('/api/capture', json={'url': '   '})

        assert response.status_code == 422
        mock_capture.assert_not_called()

    def test_invalid_option_rejected(self, app_client):
        response = app_client.post('/api/capture', json={
            'url': 'https://example.com',
            'config': {'max_scrolls': 0},
        })

        assert response.status_code == 422


class TestMetadataEndpoint:
    """Tests for POST /api/capture/metadata."""

    def test_returns_summary(self, app_client):
        response = app_client.post('/api/capture/metadata', json={'url': 'https://example.com'})

        assert response.status_code == 200
        body = response.json()
        assert body['success'] is True
        assert body['frame_count'] == 2
        assert body['total_height'] == 120
        assert body['image_size_bytes'] > 0

    def test_failure_returns_500(self, app_client, mock_capture):
        mock_capture.return_value = _result(success=False)
        response = app_client.post('/api/capture/metadata', json={'url': 'https://example.com'})

        assert response.status_code == 500
