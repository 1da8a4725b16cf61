"""Frame alignment, overlap handling and compositing.

The default policy used by full-page captures is the overwrite composite in
``stitch_frames``: each frame is pasted over the tail of the previous one.
``remove_overlaps`` + ``concatenate_frames`` is the alternate crop-then-stack
policy for callers that want frames joined with no shared rows.
"""

import asyncio
import dataclasses
import logging
import math

from . import codec
from .errors import NoFramesError, StitchError, StitchTimeoutError
from .models import CapturedFrame, DEFAULT_OVERLAP_PERCENTAGE, effective_overlap

log = logging.getLogger(__name__)


DEFAULT_STITCH_TIMEOUT_MS = 60000


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def overlap_pixels(frame_height: int, overlap_percentage: float) -> int:
    """Rows shared between neighbouring frames."""
    return _round_half_up(frame_height * overlap_percentage / 100)


def stitched_size(frame_width: int, frame_height: int, frame_count: int,
                  overlap_percentage: float) -> tuple[int, int]:
    """(width, height) of the composite for *frame_count* equal frames."""
    effective_height = frame_height - overlap_pixels(frame_height, overlap_percentage)
    return frame_width, frame_height + (frame_count - 1) * effective_height


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------

def validate_alignment(frames: list[CapturedFrame]) -> bool:
    """True when every frame shares the first frame's width and height."""
    if len(frames) <= 1:
        return True
    first = frames[0]
    return all(f.width == first.width and f.height == first.height for f in frames[1:])


def normalize_frames(frames: list[CapturedFrame], target_width: int, target_height: int) -> list[CapturedFrame]:
    """Stretch frames to exactly target_width x target_height.

    Frames already at the target size are returned as-is.
    """
    normalized = []
    for index, frame in enumerate(frames):
        if frame.width == target_width and frame.height == target_height:
            normalized.append(frame)
            continue
        log.debug('Resizing frame %d from %dx%d to %dx%d', index,
                  frame.width, frame.height, target_width, target_height)
        normalized.append(dataclasses.replace(
            frame,
            image_bytes=codec.resize(frame.image_bytes, target_width, target_height),
            width=target_width,
            height=target_height,
        ))
    return normalized


# ---------------------------------------------------------------------------
# Crop-then-stack policy
# ---------------------------------------------------------------------------

def remove_overlaps(frames: list[CapturedFrame],
                    overlap_percentage: float = DEFAULT_OVERLAP_PERCENTAGE) -> list[CapturedFrame]:
    """Crop the shared rows off the top of every frame after the first."""
    if len(frames) <= 1:
        return list(frames)

    cropped_rows = overlap_pixels(frames[0].height, effective_overlap(overlap_percentage))
    processed = [frames[0]]
    for frame in frames[1:]:
        height = frame.height - cropped_rows
        processed.append(dataclasses.replace(
            frame,
            image_bytes=codec.crop(frame.image_bytes, 0, cropped_rows, frame.width, height),
            height=height,
        ))
    return processed


def concatenate_frames(frames: list[CapturedFrame], fmt: str = 'png') -> bytes:
    """Stack frames top to bottom with no overlap."""
    if not frames:
        raise NoFramesError()
    try:
        return codec.stack([frame.image_bytes for frame in frames], fmt)
    except (OSError, ValueError) as exc:
        raise StitchError(f'Failed to concatenate frames: {exc}') from exc


# ---------------------------------------------------------------------------
# Overwrite composite
# ---------------------------------------------------------------------------

async def _compose(frames: list[CapturedFrame], effective_height: int,
                   total_width: int, total_height: int) -> bytes:
    canvas = codec.create_canvas(total_width, total_height)
    try:
        for index, frame in enumerate(frames):
            # One thread hop per frame so a timeout cancels between pastes.
            await asyncio.to_thread(codec.composite_paste, canvas, frame.image_bytes, index * effective_height)
        return await asyncio.to_thread(codec.encode, canvas, 'png')
    except (OSError, ValueError) as exc:
        raise StitchError(f'Failed to composite frames: {exc}') from exc


async def stitch_frames(frames: list[CapturedFrame],
                        overlap_percentage: float = DEFAULT_OVERLAP_PERCENTAGE,
                        timeout_ms: int = DEFAULT_STITCH_TIMEOUT_MS) -> bytes:
    """Composite ordered frames into one PNG.

    Later frames overwrite the overlapping tail of earlier ones. An overlap
    outside [0, 100] falls back to the default.

    Raises:
        NoFramesError: *frames* is empty.
        StitchTimeoutError: compositing took longer than *timeout_ms*.
        StitchError: a frame could not be decoded or the result encoded.
    """
    if not frames:
        raise NoFramesError()
    if len(frames) == 1:
        return frames[0].image_bytes

    overlap = effective_overlap(overlap_percentage)
    if overlap != overlap_percentage:
        log.warning('Overlap %s%% is out of range, using %s%%', overlap_percentage, overlap)

    frame_width = frames[0].width
    frame_height = frames[0].height
    effective_height = frame_height - overlap_pixels(frame_height, overlap)
    total_width, total_height = stitched_size(frame_width, frame_height, len(frames), overlap)
    log.debug('Stitching %d frames into %dx%d', len(frames), total_width, total_height)

    try:
        return await asyncio.wait_for(
            _compose(frames, effective_height, total_width, total_height),
            timeout=timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        raise StitchTimeoutError(timeout_ms) from None


# ---------------------------------------------------------------------------
# Format utilities
# ---------------------------------------------------------------------------

def convert_format(data: bytes, fmt: str = 'png') -> bytes:
    """Re-encode *data* as png, jpeg or webp."""
    return codec.encode(codec.decode(data), fmt)


def get_metadata(data: bytes) -> dict:
    return codec.metadata(data)
