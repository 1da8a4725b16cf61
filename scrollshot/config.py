"""Environment-backed configuration for capture runs, the CLI and the API server."""

import logging
import os
from dataclasses import dataclass

from .models import CaptureOptions, OUTPUT_FORMATS


LOG_FORMAT = '[%(levelname)s] %(message)s'
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if not value:
        return default
    return value.lower() == 'true' or value == '1'


@dataclass
class Settings:
    """Environment-backed settings."""
    scroll_delay_ms: int = 500
    overlap_percentage: int = 10
    max_scrolls: int = 100
    wait_for_images: bool = True
    handle_dynamic_content: bool = True
    output_format: str = 'png'
    navigation_timeout_ms: int = 30000
    content_timeout_ms: int = 5000
    stitch_timeout_ms: int = 60000
    cache_ttl_seconds: int = 60
    redis_url: str = ''
    viewport_width: int = 1280
    viewport_height: int = 800
    headless: bool = True
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'Settings':
        """Read settings from the process environment."""
        return cls(
            scroll_delay_ms=_env_int('SCROLL_DELAY', 500),
            overlap_percentage=_env_int('OVERLAP_PERCENTAGE', 10),
            max_scrolls=_env_int('MAX_SCROLLS', 100),
            wait_for_images=_env_bool('WAIT_FOR_IMAGES', True),
            handle_dynamic_content=_env_bool('HANDLE_DYNAMIC_CONTENT', True),
            output_format=os.getenv('OUTPUT_FORMAT', 'png').lower(),
            navigation_timeout_ms=_env_int('NAV_TIMEOUT', 30000),
            content_timeout_ms=_env_int('CONTENT_TIMEOUT', 5000),
            stitch_timeout_ms=_env_int('STITCH_TIMEOUT', 60000),
            cache_ttl_seconds=_env_int('CACHE_TTL', 60),
            redis_url=os.getenv('REDIS_URL', ''),
            viewport_width=_env_int('VIEWPORT_WIDTH', 1280),
            viewport_height=_env_int('VIEWPORT_HEIGHT', 800),
            headless=_env_bool('HEADLESS', True),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        )

    def validate(self) -> None:
        """Raise ValueError listing every invalid setting."""
        errors = []
        if self.scroll_delay_ms < 0:
            errors.append('SCROLL_DELAY must be >= 0')
        if not 0 <= self.overlap_percentage <= 100:
            errors.append('OVERLAP_PERCENTAGE must be between 0 and 100')
        if self.max_scrolls < 1:
            errors.append('MAX_SCROLLS must be >= 1')
        if self.navigation_timeout_ms < 1000:
            errors.append('NAV_TIMEOUT must be >= 1000ms')
        if self.stitch_timeout_ms < 5000:
            errors.append('STITCH_TIMEOUT must be >= 5000ms')
        if self.cache_ttl_seconds < 0:
            errors.append('CACHE_TTL must be >= 0')
        if self.output_format not in OUTPUT_FORMATS:
            errors.append(f'OUTPUT_FORMAT must be one of: {", ".join(OUTPUT_FORMATS)}')
        if self.log_level not in LOG_LEVELS:
            errors.append(f'LOG_LEVEL must be one of: {", ".join(LOG_LEVELS)}')

        if errors:
            raise ValueError('Configuration validation failed:\n' + '\n'.join(errors))

    def capture_options(self) -> CaptureOptions:
        """Build the CaptureOptions these settings describe."""
        return CaptureOptions(
            scroll_delay_ms=self.scroll_delay_ms,
            overlap_percentage=self.overlap_percentage,
            max_scrolls=self.max_scrolls,
            handle_dynamic_content=self.handle_dynamic_content,
            wait_for_images=self.wait_for_images,
            output_format=self.output_format,
        )


def configure_logging(level: str = 'INFO') -> None:
    """Route pipeline logs to stderr in the CLI format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


settings = Settings.from_env()
