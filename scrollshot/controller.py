"""Scroll-capture loop: scroll, settle, screenshot, advance."""

import logging
import time

from playwright.async_api import Page, TimeoutError as PlaywrightTimeout

from .errors import NoViewportError
from .models import CapturedFrame, CaptureOptions, ScrollPosition, effective_overlap

log = logging.getLogger(__name__)


DEFAULT_NETWORK_IDLE_TIMEOUT_MS = 5000


# ---------------------------------------------------------------------------
# JS snippets
# ---------------------------------------------------------------------------

_SCROLL_TO_JS = '([x, y]) => window.scrollTo(x, y)'

_SCROLL_POSITION_JS = '() => ({x: window.scrollX, y: window.scrollY})'

_WAIT_FOR_IMAGES_JS = '''
async () => {
    await Promise.all(Array.from(document.images).map(img => {
        if (img.complete) return null;
        return new Promise(resolve => {
            img.addEventListener('load', resolve, {once: true});
            img.addEventListener('error', resolve, {once: true});
        });
    }));
}
'''


def _now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Manual scroll helpers
# ---------------------------------------------------------------------------

async def get_scroll_position(page: Page) -> ScrollPosition:
    """Current window scroll offset."""
    position = await page.evaluate(_SCROLL_POSITION_JS)
    return ScrollPosition(x=position['x'], y=position['y'], timestamp_ms=_now_ms())


async def scroll_to_position(page: Page, x: float, y: float) -> None:
    await page.evaluate(_SCROLL_TO_JS, [x, y])


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class ScrollCaptureController:
    """Drives one page through a sequence of overlapping viewport screenshots."""

    def __init__(self, options: CaptureOptions = None,
                 network_idle_timeout_ms: int = DEFAULT_NETWORK_IDLE_TIMEOUT_MS):
        self.options = options or CaptureOptions()
        self.network_idle_timeout_ms = network_idle_timeout_ms

    async def capture(self, page: Page, page_height: int, options: CaptureOptions = None) -> list[CapturedFrame]:
        """Capture frames top to bottom and leave the page scrolled to the top.

        Raises:
            NoViewportError: the page has no viewport size.
        """
        options = options or self.options
        viewport = page.viewport_size
        if not viewport:
            raise NoViewportError()

        if options.handle_dynamic_content:
            await self.wait_for_dynamic_content(page, options)

        viewport_width = viewport['width']
        viewport_height = viewport['height']
        overlap = effective_overlap(options.overlap_percentage)
        scroll_distance = viewport_height * (1 - overlap / 100)

        frames = []
        current_scroll = 0
        scroll_count = 0
        try:
            while current_scroll < page_height and scroll_count < options.max_scrolls:
                await scroll_to_position(page, 0, current_scroll)
                await page.wait_for_timeout(options.scroll_delay_ms)

                image_bytes = await page.screenshot(type='png', scale='css')
                now = _now_ms()
                frames.append(CapturedFrame(
                    image_bytes=image_bytes,
                    scroll_position=ScrollPosition(x=0, y=current_scroll, timestamp_ms=now),
                    timestamp_ms=now,
                    width=viewport_width,
                    height=viewport_height,
                ))
                log.debug('Captured frame %d at y=%.1f', scroll_count + 1, current_scroll)

                current_scroll += scroll_distance
                scroll_count += 1
        finally:
            try:
                await scroll_to_position(page, 0, 0)
            except Exception:
                log.warning('Could not scroll back to top', exc_info=True)

        if scroll_count >= options.max_scrolls and current_scroll < page_height:
            log.warning('Stopped after max_scrolls=%d with %.0fpx of %dpx covered',
                        options.max_scrolls, current_scroll, page_height)
        return frames

    async def wait_for_dynamic_content(self, page: Page, options: CaptureOptions = None) -> None:
        """Wait for pending images and network idle; failures are only logged."""
        options = options or self.options
        if options.wait_for_images:
            try:
                await page.evaluate(_WAIT_FOR_IMAGES_JS)
            except Exception as exc:
                log.warning('Waiting for images failed: %s', exc)

        try:
            await page.wait_for_load_state('networkidle', timeout=self.network_idle_timeout_ms)
        except PlaywrightTimeout:
            log.warning('Network did not go idle within %dms, capturing anyway',
                        self.network_idle_timeout_ms)
        except Exception as exc:
            log.warning('Waiting for network idle failed: %s', exc)
