"""Browser runner: open a URL in Chromium and hand the loaded page to the capture pipeline."""

import asyncio
import logging

from playwright.async_api import Page, async_playwright, TimeoutError as PlaywrightTimeout

from .capture import FullPageCapture
from .config import Settings, settings as default_settings
from .models import CaptureOptions, CaptureResult

log = logging.getLogger(__name__)


# Cookie banners and consent dialogs are usually fixed-position and would
# repeat in every frame.
_POPUP_SELECTORS = [
    'button:has-text("Accept")',
    'button:has-text("Accept All")',
    'button:has-text("Got it")',
    '[aria-label="Close"]',
]


def normalize_url(url: str) -> str:
    url = url.strip()
    if not url.startswith('http'):
        url = 'https://' + url
    return url


async def dismiss_popups(page: Page) -> None:
    """Dismiss common popups (cookie banners, welcome dialogs, etc.)."""
    for selector in _POPUP_SELECTORS:
        try:
            button = await page.query_selector(selector)
            if button and await button.is_visible():
                await button.click()
                await asyncio.sleep(0.3)
        except Exception as exc:
            log.debug('Popup dismissal failed for %s: %s', selector, exc)


async def capture_url(
    url: str,
    options: CaptureOptions = None,
    settings: Settings = None,
    capturer: FullPageCapture = None,
    progress_callback=None,
) -> CaptureResult:
    """Load *url* in a fresh browser and capture it top to bottom.

    Args:
        url: Page to capture; ``https://`` is assumed when no scheme is given.
        options: Capture options; defaults to the ones described by *settings*.
        settings: Browser and timeout settings; defaults to the environment.
        capturer: Reused across calls so the geometry cache survives.
        progress_callback: Optional callable(str) for human-readable progress.
    """
    _progress = progress_callback or (lambda msg: None)
    settings = settings or default_settings
    capturer = capturer or FullPageCapture.from_settings(settings)
    url = normalize_url(url)

    async with async_playwright() as p:
        _progress('LAUNCHING BROWSER...')
        browser = await p.chromium.launch(
            headless=settings.headless,
            args=['--disable-blink-features=AutomationControlled'],
        )
        try:
            context = await browser.new_context(
                viewport={'width': settings.viewport_width, 'height': settings.viewport_height},
            )
            page = await context.new_page()

            _progress(f'NAVIGATING TO {url}')
            try:
                await page.goto(url, wait_until='networkidle', timeout=settings.navigation_timeout_ms)
            except PlaywrightTimeout:
                log.warning('Navigation timed out for %s, capturing anyway', url)
                _progress('NAVIGATION TIMED OUT - CAPTURING ANYWAY')

            await dismiss_popups(page)

            _progress('CAPTURING...')
            result = await capturer.capture(page, options)
        finally:
            await browser.close()

    _progress('CAPTURE COMPLETE' if result.success else f'CAPTURE FAILED: {result.error}')
    return result
