"""Exceptions raised by the capture pipeline."""


class CaptureError(Exception):
    """Base class for capture pipeline failures."""


class NoViewportError(CaptureError):
    """The page session reports no viewport size."""

    def __init__(self, message: str = 'No viewport size available on page'):
        super().__init__(message)


class StitchError(CaptureError):
    """Frames could not be composited into one image."""


class NoFramesError(StitchError):
    """There was nothing to composite."""

    def __init__(self, message: str = 'No frames to stitch'):
        super().__init__(message)


class StitchTimeoutError(StitchError):
    """Compositing did not finish within the stitch timeout."""

    def __init__(self, timeout_ms: int):
        super().__init__(f'Stitching timed out after {timeout_ms}ms')
        self.timeout_ms = timeout_ms
