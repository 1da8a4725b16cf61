"""Page structure analysis: page height, viewport, layout hazards.

Each DOM read is a separate probe that reports a ProbeResult; the analyzer
maps failed probes to defaults so one broken read never aborts a capture.
"""

import logging
import math

from playwright.async_api import Page

from .cache import MemoryGeometryCache
from .models import PageGeometry, ProbeResult, PositionedElement, ScrollableElement

log = logging.getLogger(__name__)


DEFAULT_PAGE_HEIGHT = 1000
DEFAULT_VIEWPORT_HEIGHT = 768
SCROLLABLE_SCAN_LIMIT = 50
POSITIONED_SCAN_LIMIT = 20


# ---------------------------------------------------------------------------
# JS snippets
# ---------------------------------------------------------------------------

_PAGE_HEIGHT_JS = '''
() => Math.max(
    document.documentElement.scrollHeight,
    document.body ? document.body.scrollHeight : 0,
    document.documentElement.clientHeight,
    document.body ? document.body.clientHeight : 0
)
'''

_SCROLLABLE_JS = '''
(limit) => {
    const selectors = [
        '[style*="overflow"]',
        '.scrollable',
        '[class*="scroll"]',
        'div[style*="height"]',
    ];
    const found = [];
    const checked = new Set();
    for (const selector of selectors) {
        let elements;
        try {
            elements = document.querySelectorAll(selector);
        } catch (e) {
            continue;
        }
        for (let i = 0; i < Math.min(elements.length, limit); i++) {
            const el = elements[i];
            if (checked.has(el)) continue;
            checked.add(el);
            const style = window.getComputedStyle(el);
            const overflow = style.overflowY || style.overflow;
            if ((overflow === 'auto' || overflow === 'scroll') && el.scrollHeight > el.clientHeight) {
                found.push({
                    selector: (typeof el.className === 'string' && el.className) || el.tagName.toLowerCase(),
                    height: el.clientHeight,
                    scrollHeight: el.scrollHeight,
                    isVisible: el.getClientRects().length > 0,
                });
            }
        }
    }
    return found;
}
'''

# Fixed elements have a null offsetParent, so visibility is judged by the box.
_POSITIONED_JS = '''
([position, selectors, limit]) => {
    const found = [];
    const checked = new Set();
    for (const selector of selectors) {
        let elements;
        try {
            elements = document.querySelectorAll(selector);
        } catch (e) {
            continue;
        }
        for (let i = 0; i < Math.min(elements.length, limit); i++) {
            const el = elements[i];
            if (checked.has(el)) continue;
            checked.add(el);
            const style = window.getComputedStyle(el);
            if (style.position !== position) continue;
            const rect = el.getBoundingClientRect();
            if (rect.width === 0 || rect.height === 0) continue;
            const top = parseInt(style.top, 10);
            found.push({
                selector: (typeof el.className === 'string' && el.className) || el.tagName.toLowerCase(),
                top: isNaN(top) ? 0 : top,
                height: el.offsetHeight,
                zIndex: parseInt(style.zIndex, 10) || 0,
            });
        }
    }
    return found;
}
'''

_FIXED_SELECTORS = [
    '[style*="position: fixed"]',
    '[style*="position:fixed"]',
    '.fixed',
    '[class*="fixed"]',
    'header',
    'nav',
]

_STICKY_SELECTORS = [
    '[style*="position: sticky"]',
    '[style*="position:sticky"]',
    '.sticky',
    '[class*="sticky"]',
    'header',
    'nav',
    'thead',
]

_INFINITE_SCROLL_JS = '''
() => {
    const hasIntersectionObserver = 'IntersectionObserver' in window;
    const hasMutationObserver = 'MutationObserver' in window;
    const hasScrollListener = window.onscroll !== null;
    const hasLoadMore = document.querySelector('[class*="load-more"]') !== null;
    const hasInfiniteMarker = document.querySelector('[class*="infinite"]') !== null;
    return hasIntersectionObserver
        && (hasScrollListener || hasMutationObserver || hasLoadMore || hasInfiniteMarker);
}
'''


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------

async def _probe(name: str, reader) -> ProbeResult:
    """Await *reader* and capture either its value or the error it raised."""
    try:
        return ProbeResult(name, value=await reader)
    except Exception as exc:
        return ProbeResult(name, error=exc)


async def read_page_height(page: Page) -> int:
    return int(await page.evaluate(_PAGE_HEIGHT_JS))


async def read_viewport_height(page: Page) -> int:
    viewport = page.viewport_size
    if not viewport or not viewport.get('height'):
        raise ValueError('page has no viewport size')
    return int(viewport['height'])


async def scan_scrollable_elements(page: Page, limit: int = SCROLLABLE_SCAN_LIMIT) -> list[ScrollableElement]:
    raw = await page.evaluate(_SCROLLABLE_JS, limit)
    return [
        ScrollableElement(
            selector=item['selector'],
            height=int(item['height']),
            scroll_height=int(item['scrollHeight']),
            is_visible=bool(item['isVisible']),
        )
        for item in raw
    ]


async def scan_positioned_elements(
    page: Page,
    position: str,
    selectors: list,
    limit: int = POSITIONED_SCAN_LIMIT,
) -> list[PositionedElement]:
    raw = await page.evaluate(_POSITIONED_JS, [position, selectors, limit])
    return [
        PositionedElement(
            selector=item['selector'],
            top=int(item['top']),
            height=int(item['height']),
            z_index=int(item['zIndex']),
        )
        for item in raw
    ]


async def detect_infinite_scroll(page: Page) -> bool:
    return bool(await page.evaluate(_INFINITE_SCROLL_JS))


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

class PageStructureAnalyzer:
    """Builds PageGeometry snapshots, cached per URL."""

    def __init__(self, cache=None, scan_limit: int = SCROLLABLE_SCAN_LIMIT):
        self.cache = cache if cache is not None else MemoryGeometryCache()
        self.scan_limit = scan_limit

    async def analyze(self, page: Page) -> PageGeometry:
        """Return the geometry of *page*, from cache when still fresh."""
        url = page.url
        cached = await self.cache.get(url)
        if cached is not None:
            log.debug('Using cached page geometry for %s', url)
            return cached

        log.debug('Analysing page structure of %s', url)
        probes = [
            await _probe('page_height', read_page_height(page)),
            await _probe('viewport_height', read_viewport_height(page)),
            await _probe('scrollable_elements', scan_scrollable_elements(page, self.scan_limit)),
            await _probe('fixed_elements', scan_positioned_elements(page, 'fixed', _FIXED_SELECTORS)),
            await _probe('sticky_elements', scan_positioned_elements(page, 'sticky', _STICKY_SELECTORS)),
            await _probe('has_infinite_scroll', detect_infinite_scroll(page)),
        ]
        geometry = self.build_geometry(probes)

        await self.cache.set(url, geometry)
        log.debug(
            'Page geometry for %s: height=%d viewport=%d scrolls=%d infinite=%s',
            url, geometry.page_height, geometry.viewport_height,
            geometry.estimated_scrolls, geometry.has_infinite_scroll,
        )
        return geometry

    @staticmethod
    def build_geometry(probes: list[ProbeResult]) -> PageGeometry:
        """Aggregate probe results, substituting defaults for failed probes."""
        defaults = {
            'page_height': DEFAULT_PAGE_HEIGHT,
            'viewport_height': DEFAULT_VIEWPORT_HEIGHT,
            'scrollable_elements': [],
            'fixed_elements': [],
            'sticky_elements': [],
            'has_infinite_scroll': False,
        }
        values = dict(defaults)
        for probe in probes:
            if probe.ok:
                values[probe.name] = probe.value
            else:
                log.warning('Page probe %s failed, using default %r: %s',
                            probe.name, defaults[probe.name], probe.error)

        page_height = values['page_height'] or DEFAULT_PAGE_HEIGHT
        viewport_height = values['viewport_height'] or DEFAULT_VIEWPORT_HEIGHT
        return PageGeometry(
            page_height=page_height,
            viewport_height=viewport_height,
            scrollable_elements=tuple(values['scrollable_elements']),
            fixed_elements=tuple(values['fixed_elements']),
            sticky_elements=tuple(values['sticky_elements']),
            has_infinite_scroll=values['has_infinite_scroll'],
            estimated_scrolls=math.ceil(page_height / viewport_height),
        )

    async def clear_cache(self) -> None:
        await self.cache.clear()
        log.debug('Page geometry cache cleared')
