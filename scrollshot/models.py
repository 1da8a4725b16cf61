"""Data classes used throughout the capture pipeline.

Geometry snapshots, frames, options and the terminal capture result live
here so they can be imported cleanly by every other module.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


DEFAULT_OVERLAP_PERCENTAGE = 10
OUTPUT_FORMATS = ('png', 'jpeg', 'webp')


def effective_overlap(overlap_percentage: float) -> float:
    """Return *overlap_percentage*, or the default when it is outside [0, 100]."""
    if overlap_percentage is None or not 0 <= overlap_percentage <= 100:
        return DEFAULT_OVERLAP_PERCENTAGE
    return overlap_percentage


# ---------------------------------------------------------------------------
# Page geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScrollableElement:
    """A nested scroll container found on the page."""
    selector: str         # className or tag name of the element
    height: int           # visible box height (clientHeight)
    scroll_height: int    # full content height (scrollHeight)
    is_visible: bool


@dataclass(frozen=True)
class PositionedElement:
    """A fixed or sticky element that repeats across viewport captures."""
    selector: str
    top: int
    height: int
    z_index: int = 0


@dataclass(frozen=True)
class PageGeometry:
    """Read-only snapshot of the page layout used to plan a capture."""
    page_height: int
    viewport_height: int
    scrollable_elements: tuple = ()   # tuple[ScrollableElement, ...]
    fixed_elements: tuple = ()        # tuple[PositionedElement, ...]
    sticky_elements: tuple = ()       # tuple[PositionedElement, ...]
    has_infinite_scroll: bool = False
    estimated_scrolls: int = 1

    def to_dict(self) -> dict:
        return {
            'page_height': self.page_height,
            'viewport_height': self.viewport_height,
            'scrollable_elements': [vars(el) for el in self.scrollable_elements],
            'fixed_elements': [vars(el) for el in self.fixed_elements],
            'sticky_elements': [vars(el) for el in self.sticky_elements],
            'has_infinite_scroll': self.has_infinite_scroll,
            'estimated_scrolls': self.estimated_scrolls,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PageGeometry':
        return cls(
            page_height=data['page_height'],
            viewport_height=data['viewport_height'],
            scrollable_elements=tuple(ScrollableElement(**el) for el in data.get('scrollable_elements', [])),
            fixed_elements=tuple(PositionedElement(**el) for el in data.get('fixed_elements', [])),
            sticky_elements=tuple(PositionedElement(**el) for el in data.get('sticky_elements', [])),
            has_infinite_scroll=data.get('has_infinite_scroll', False),
            estimated_scrolls=data.get('estimated_scrolls', 1),
        )


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single page probe: either a value or the error raised."""
    name: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: Any) -> Any:
        return self.value if self.ok else default


# ---------------------------------------------------------------------------
# Frames
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScrollPosition:
    """Point-in-time scroll offset."""
    x: float
    y: float
    timestamp_ms: int


@dataclass(frozen=True)
class CapturedFrame:
    """One viewport screenshot taken at a specific scroll offset."""
    image_bytes: bytes
    scroll_position: ScrollPosition
    timestamp_ms: int
    width: int
    height: int


# ---------------------------------------------------------------------------
# Options and results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CaptureOptions:
    """Per-capture configuration."""
    scroll_delay_ms: int = 500
    overlap_percentage: float = DEFAULT_OVERLAP_PERCENTAGE
    max_scrolls: int = 100
    handle_dynamic_content: bool = True
    wait_for_images: bool = True
    output_format: str = 'png'

    def __post_init__(self):
        if self.scroll_delay_ms < 0:
            raise ValueError('scroll_delay_ms must be >= 0')
        if self.max_scrolls < 1:
            raise ValueError('max_scrolls must be >= 1')
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f'output_format must be one of: {", ".join(OUTPUT_FORMATS)}')


@dataclass
class CaptureResult:
    """Terminal artifact of a full-page capture."""
    success: bool
    source_url: str
    duration_ms: int
    timestamp_iso: str
    total_height: int = 0
    total_width: int = 0
    frame_count: int = 0
    stitching_time_ms: int = 0
    page_height: int = 0
    image_format: str = 'png'
    image_bytes: Optional[bytes] = None
    error: Optional[str] = None
    frames: list = field(default_factory=list)  # List[CapturedFrame]

    def summary(self) -> dict:
        """JSON-friendly view without image payloads."""
        return {
            'success': self.success,
            'source_url': self.source_url,
            'error': self.error,
            'duration_ms': self.duration_ms,
            'timestamp': self.timestamp_iso,
            'total_height': self.total_height,
            'total_width': self.total_width,
            'page_height': self.page_height,
            'frame_count': self.frame_count,
            'stitching_time_ms': self.stitching_time_ms,
            'image_format': self.image_format,
            'image_size_bytes': len(self.image_bytes) if self.image_bytes else 0,
        }
