"""End-to-end tests for capture_full_page against a fake page."""

from unittest.mock import AsyncMock, patch

from scrollshot.analyzer import PageStructureAnalyzer
from scrollshot.cache import MemoryGeometryCache
from scrollshot.capture import FullPageCapture, capture_full_page
from scrollshot.config import Settings
from scrollshot.controller import ScrollCaptureController
from scrollshot.errors import StitchTimeoutError
from scrollshot.models import CaptureOptions
from scrollshot.stitcher import get_metadata

from conftest import FakePage, make_frame


FAST = CaptureOptions(scroll_delay_ms=0, handle_dynamic_content=False)


class TestCaptureFullPage:
    """Tests for the successful capture path."""

    async def test_three_frame_capture(self, fake_page):
        """1500px page at 1024x768 -> 3 frames stitched to 1024x2150."""
        result = await capture_full_page(fake_page, FAST)

        assert result.success is True
        assert result.error is None
        assert result.source_url == 'https://example.com/'
        assert result.frame_count == 3 == len(result.frames)
        assert (result.total_width, result.total_height) == (1024, 2150)
        assert result.page_height == 1500
        info = get_metadata(result.image_bytes)
        assert (info['width'], info['height']) == (1024, 2150)

    async def test_page_left_at_top(self, fake_page):
        await capture_full_page(fake_page, FAST)

        assert fake_page.scroll_y == 0

    async def test_timing_fields(self, fake_page):
        result = await capture_full_page(fake_page, FAST)

        assert result.duration_ms >= result.stitching_time_ms >= 0
        assert result.timestamp_iso.endswith('Z')

    async def test_short_page_single_frame(self):
        page = FakePage(page_height=500)
        result = await capture_full_page(page, FAST)

        assert result.frame_count == 1
        assert (result.total_width, result.total_height) == (1024, 768)

    async def test_jpeg_output(self, fake_page):
        options = CaptureOptions(scroll_delay_ms=0, handle_dynamic_content=False, output_format='jpeg')
        result = await capture_full_page(fake_page, options)

        assert result.image_format == 'jpeg'
        assert get_metadata(result.image_bytes)['format'] == 'jpeg'

    async def test_capturer_reuses_cached_geometry(self, fake_page, fake_clock):
        """A second capture of the same URL within the TTL skips the analysis probes."""
        capturer = FullPageCapture(
            analyzer=PageStructureAnalyzer(cache=MemoryGeometryCache(clock=fake_clock)),
            options=FAST,
        )
        await capturer.capture(fake_page)
        fake_page.page_height = 99999

        result = await capturer.capture(fake_page)

        assert result.page_height == 1500
        assert result.frame_count == 3

    async def test_mismatched_frames_are_normalised(self, fake_page):
        """Frames of different widths should be resized to frame 0's size before stitching."""
        frames = [make_frame(width=1024, height=768), make_frame(width=900, height=768, y=691.2)]
        with patch.object(ScrollCaptureController, 'capture', AsyncMock(return_value=frames)):
            result = await capture_full_page(fake_page, FAST)

        assert result.success is True
        assert all((f.width, f.height) == (1024, 768) for f in result.frames)
        assert (result.total_width, result.total_height) == (1024, 768 + 691)


class TestCaptureFailures:
    """Tests for the all-or-nothing failure shape."""

    async def test_no_viewport(self):
        page = FakePage()
        page.viewport_size = None
        result = await capture_full_page(page, FAST)

        assert result.success is False
        assert 'viewport' in result.error
        assert result.frame_count == 0
        assert result.image_bytes is None
        assert result.frames == []
        assert (result.total_width, result.total_height, result.stitching_time_ms) == (0, 0, 0)

    async def test_stitch_timeout_reported(self, fake_page):
        with patch('scrollshot.capture.stitch_frames', AsyncMock(side_effect=StitchTimeoutError(60000))):
            result = await capture_full_page(fake_page, FAST)

        assert result.success is False
        assert 'timed out' in result.error
        assert result.frame_count == 0

    async def test_screenshot_error_reported(self):
        page = FakePage(failing={'screenshot'})
        result = await capture_full_page(page, FAST)

        assert result.success is False
        assert 'screenshot exploded' in result.error
        assert page.scroll_y == 0

    async def test_no_frames_reported(self, fake_page):
        with patch.object(ScrollCaptureController, 'capture', AsyncMock(return_value=[])):
            result = await capture_full_page(fake_page, FAST)

        assert result.success is False
        assert result.error == 'No frames to stitch'


class TestFromSettings:

    def test_wires_settings(self):
        settings = Settings(scroll_delay_ms=100, overlap_percentage=20, content_timeout_ms=3000,
                            stitch_timeout_ms=9000)
        capturer = FullPageCapture.from_settings(settings)

        assert capturer.options.scroll_delay_ms == 100
        assert capturer.options.overlap_percentage == 20
        assert capturer.network_idle_timeout_ms == 3000
        assert capturer.stitch_timeout_ms == 9000
        assert isinstance(capturer.analyzer.cache, MemoryGeometryCache)

