"""Full-page capture orchestrator: analyse, scroll-capture, align, stitch."""

import asyncio
import logging
import time
from datetime import datetime, timezone

from playwright.async_api import Page

from .analyzer import PageStructureAnalyzer
from .cache import create_geometry_cache
from .controller import DEFAULT_NETWORK_IDLE_TIMEOUT_MS, ScrollCaptureController
from .models import CaptureOptions, CaptureResult
from .stitcher import (
    DEFAULT_STITCH_TIMEOUT_MS,
    convert_format,
    get_metadata,
    normalize_frames,
    stitch_frames,
    validate_alignment,
)

log = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class FullPageCapture:
    """Holds the analyzer (and its cache) across captures in one process."""

    def __init__(self, analyzer: PageStructureAnalyzer = None, options: CaptureOptions = None,
                 network_idle_timeout_ms: int = DEFAULT_NETWORK_IDLE_TIMEOUT_MS,
                 stitch_timeout_ms: int = DEFAULT_STITCH_TIMEOUT_MS):
        self.analyzer = analyzer or PageStructureAnalyzer()
        self.options = options or CaptureOptions()
        self.network_idle_timeout_ms = network_idle_timeout_ms
        self.stitch_timeout_ms = stitch_timeout_ms

    @classmethod
    def from_settings(cls, settings, cache=None) -> 'FullPageCapture':
        """Build a capturer wired to the configured cache and timeouts."""
        return cls(
            analyzer=PageStructureAnalyzer(cache=cache if cache is not None else create_geometry_cache(settings)),
            options=settings.capture_options(),
            network_idle_timeout_ms=settings.content_timeout_ms,
            stitch_timeout_ms=settings.stitch_timeout_ms,
        )

    async def capture(self, page: Page, options: CaptureOptions = None) -> CaptureResult:
        """Capture *page* top to bottom into one image.

        Never raises for capture failures: any error is reported through
        ``CaptureResult.success``/``error`` with zeroed metrics.
        """
        options = options or self.options
        start = time.monotonic()
        source_url = page.url
        log.info('Capturing full page of %s', source_url)

        try:
            geometry = await self.analyzer.analyze(page)

            controller = ScrollCaptureController(options, network_idle_timeout_ms=self.network_idle_timeout_ms)
            frames = await controller.capture(page, geometry.page_height, options)

            if not validate_alignment(frames):
                log.info('Frames have mismatched dimensions, normalising to %dx%d',
                         frames[0].width, frames[0].height)
                frames = await asyncio.to_thread(
                    normalize_frames, frames, frames[0].width, frames[0].height)

            stitch_start = time.monotonic()
            image_bytes = await stitch_frames(frames, options.overlap_percentage,
                                              timeout_ms=self.stitch_timeout_ms)
            if options.output_format != 'png':
                image_bytes = await asyncio.to_thread(convert_format, image_bytes, options.output_format)
            stitching_time_ms = _elapsed_ms(stitch_start)

            info = get_metadata(image_bytes)
        except Exception as exc:
            log.exception('Full-page capture of %s failed', source_url)
            return CaptureResult(
                success=False,
                source_url=source_url,
                error=str(exc) or exc.__class__.__name__,
                duration_ms=_elapsed_ms(start),
                timestamp_iso=_timestamp(),
                image_format=options.output_format,
            )

        duration_ms = _elapsed_ms(start)
        log.info('Captured %s: %d frames, %dx%d, stitched in %dms, total %dms',
                 source_url, len(frames), info['width'], info['height'],
                 stitching_time_ms, duration_ms)
        return CaptureResult(
            success=True,
            source_url=source_url,
            image_bytes=image_bytes,
            duration_ms=duration_ms,
            timestamp_iso=_timestamp(),
            total_height=info['height'],
            total_width=info['width'],
            frame_count=len(frames),
            stitching_time_ms=stitching_time_ms,
            page_height=geometry.page_height,
            image_format=options.output_format,
            frames=frames,
        )


async def capture_full_page(page: Page, options: CaptureOptions = None,
                            capturer: FullPageCapture = None) -> CaptureResult:
    """Capture *page* with a throwaway capturer unless one is supplied."""
    capturer = capturer or FullPageCapture()
    return await capturer.capture(page, options)
