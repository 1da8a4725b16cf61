"""Shared test fixtures: fake Playwright page, PNG frames, deterministic clock."""

import io

import pytest
from PIL import Image
from playwright.async_api import TimeoutError as PlaywrightTimeout

from scrollshot import analyzer, controller
from scrollshot.models import CapturedFrame, ScrollPosition


PALETTE = [
    (220, 40, 40),
    (40, 160, 60),
    (40, 80, 220),
    (230, 200, 40),
    (150, 60, 180),
]


def make_png(width: int, height: int, color=(200, 200, 200)) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), color).save(buffer, format='PNG')
    return buffer.getvalue()


def make_frame(width: int = 1024, height: int = 768, y: float = 0, color=None) -> CapturedFrame:
    return CapturedFrame(
        image_bytes=make_png(width, height, color or PALETTE[0]),
        scroll_position=ScrollPosition(x=0, y=y, timestamp_ms=0),
        timestamp_ms=0,
        width=width,
        height=height,
    )


class FakeClock:
    """Callable clock returning a manually advanced number of seconds."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePage:
    """Stand-in for playwright.async_api.Page.

    Answers the pipeline's JS snippets with canned geometry, records every
    scroll command, and returns a distinctly coloured PNG per screenshot.
    """

    def __init__(
        self,
        url: str = 'https://example.com/',
        viewport=None,
        page_height: int = 1500,
        scrollable=None,
        fixed=None,
        sticky=None,
        infinite_scroll: bool = False,
        failing=(),
        network_idle_timeout: bool = False,
    ):
        self.url = url
        self.viewport_size = viewport if viewport is not None else {'width': 1024, 'height': 768}
        self.page_height = page_height
        self.scrollable = scrollable or []
        self.fixed = fixed or []
        self.sticky = sticky or []
        self.infinite_scroll = infinite_scroll
        self.failing = set(failing)
        self.network_idle_timeout = network_idle_timeout

        self.scroll_x = 0
        self.scroll_y = 0
        self.scroll_calls = []
        self.evaluate_calls = 0
        self.screenshots = 0
        self.waits = []
        self.load_states = []
        self.images_awaited = False

    def _maybe_fail(self, name: str) -> None:
        if name in self.failing:
            raise RuntimeError(f'{name} exploded')

    async def evaluate(self, script: str, arg=None):
        self.evaluate_calls += 1
        if script == analyzer._PAGE_HEIGHT_JS:
            self._maybe_fail('page_height')
            return self.page_height
        if script == analyzer._SCROLLABLE_JS:
            self._maybe_fail('scrollable')
            return self.scrollable
        if script == analyzer._POSITIONED_JS:
            position = arg[0]
            self._maybe_fail(position)
            return self.fixed if position == 'fixed' else self.sticky
        if script == analyzer._INFINITE_SCROLL_JS:
            self._maybe_fail('infinite')
            return self.infinite_scroll
        if script == controller._SCROLL_TO_JS:
            self._maybe_fail('scroll')
            self.scroll_x, self.scroll_y = arg
            self.scroll_calls.append(arg[1])
            return None
        if script == controller._SCROLL_POSITION_JS:
            return {'x': self.scroll_x, 'y': self.scroll_y}
        if script == controller._WAIT_FOR_IMAGES_JS:
            self._maybe_fail('images')
            self.images_awaited = True
            return None
        raise AssertionError(f'Unexpected script: {script[:40]}')

    async def screenshot(self, type='png', scale='device'):
        self._maybe_fail('screenshot')
        color = PALETTE[self.screenshots % len(PALETTE)]
        self.screenshots += 1
        return make_png(self.viewport_size['width'], self.viewport_size['height'], color)

    async def wait_for_timeout(self, ms):
        self.waits.append(ms)

    async def wait_for_load_state(self, state='load', timeout=None):
        self.load_states.append((state, timeout))
        if self.network_idle_timeout:
            raise PlaywrightTimeout(f'Timeout {timeout}ms exceeded.')

    async def query_selector(self, selector):
        return None


@pytest.fixture
def fake_page():
    """Default 1024x768 page with 1500px of content."""
    return FakePage()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def aligned_frames():
    """Three 1024x768 frames in distinct colours."""
    return [make_frame(y=i * 691.2, color=PALETTE[i]) for i in range(3)]
