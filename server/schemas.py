"""Pydantic schemas for API."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from scrollshot.models import CaptureOptions


class CaptureConfig(BaseModel):
    """Capture options accepted by the API.

    Fields mirror CaptureOptions; anything left unset falls back to the
    server's environment settings.
    """
    scroll_delay_ms: Optional[int] = Field(default=None, ge=0)
    overlap_percentage: Optional[float] = None
    max_scrolls: Optional[int] = Field(default=None, ge=1)
    handle_dynamic_content: Optional[bool] = None
    wait_for_images: Optional[bool] = None
    output_format: Optional[Literal['png', 'jpeg', 'webp']] = None

    def to_options(self, defaults: CaptureOptions) -> CaptureOptions:
        overrides = self.model_dump(exclude_none=True)
        return CaptureOptions(**{**vars(defaults), **overrides})


class CaptureRequest(BaseModel):
    """Capture request payload."""
    url: str
    config: CaptureConfig = CaptureConfig()

    @field_validator('url')
    @classmethod
    def url_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError('URL is required')
        return value.strip()
