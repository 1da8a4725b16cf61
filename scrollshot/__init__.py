"""scrollshot – full-page scroll capture and stitching.

Re-exports the public symbols so consumers can do:
    from scrollshot import capture_full_page, CaptureOptions
"""

# Models
from .models import (  # noqa: F401
    ScrollableElement,
    PositionedElement,
    PageGeometry,
    ProbeResult,
    ScrollPosition,
    CapturedFrame,
    CaptureOptions,
    CaptureResult,
)

# Errors
from .errors import (  # noqa: F401
    CaptureError,
    NoViewportError,
    StitchError,
    NoFramesError,
    StitchTimeoutError,
)

# Geometry caches
from .cache import (  # noqa: F401
    MemoryGeometryCache,
    NullGeometryCache,
    RedisGeometryCache,
    create_geometry_cache,
)

# Analysis
from .analyzer import PageStructureAnalyzer  # noqa: F401

# Scroll capture
from .controller import (  # noqa: F401
    ScrollCaptureController,
    get_scroll_position,
    scroll_to_position,
)

# Stitching
from .stitcher import (  # noqa: F401
    validate_alignment,
    normalize_frames,
    remove_overlaps,
    concatenate_frames,
    stitch_frames,
    convert_format,
    get_metadata,
)

# Orchestration
from .capture import FullPageCapture, capture_full_page  # noqa: F401
