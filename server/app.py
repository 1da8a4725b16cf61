"""FastAPI app exposing full-page captures over HTTP."""

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response

from scrollshot.browser import capture_url
from scrollshot.capture import FullPageCapture
from scrollshot.config import settings

from .schemas import CaptureRequest


app = FastAPI(title='scrollshot')
capturer = FullPageCapture.from_settings(settings)


def _error_response(error: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            'success': False,
            'error': error,
            'timestamp': datetime.now(timezone.utc).isoformat(),
        },
    )


async def _run_capture(payload: CaptureRequest):
    options = payload.config.to_options(capturer.options)
    return await capture_url(payload.url, options=options, settings=settings, capturer=capturer)


@app.get('/health')
def health() -> dict:
    """Health check."""
    return {'status': 'ok'}


@app.post('/api/capture')
async def capture(payload: CaptureRequest):
    """Capture a page and return the stitched image."""
    result = await _run_capture(payload)
    if not result.success:
        return _error_response(result.error)
    return Response(
        content=result.image_bytes,
        media_type=f'image/{result.image_format}',
        headers={
            'X-Frame-Count': str(result.frame_count),
            'X-Capture-Duration-Ms': str(result.duration_ms),
        },
    )


@app.post('/api/capture/metadata')
async def capture_metadata(payload: CaptureRequest):
    """Capture a page and return the result summary without the image."""
    result = await _run_capture(payload)
    if not result.success:
        return _error_response(result.error)
    return result.summary()
