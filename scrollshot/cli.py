"""Command-line entry point.

    scrollshot <url> [output-path]   capture a page and write the image
    scrollshot serve [port]          run the HTTP API
"""

import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from urllib.parse import urlparse

from .browser import capture_url, normalize_url
from .config import configure_logging, settings

log = logging.getLogger(__name__)

USAGE = 'usage: scrollshot <url> [output-path] | scrollshot serve [port]'


def default_output_path(url: str, fmt: str) -> Path:
    domain = urlparse(normalize_url(url)).netloc.replace('.', '_').replace(':', '_')
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    return Path(f'fullpage_{domain}_{timestamp}.{fmt}')


def serve(port: int = 8000) -> None:
    """Start the HTTP API with uvicorn."""
    import uvicorn

    from server.app import app

    uvicorn.run(app, host='0.0.0.0', port=port, log_level=settings.log_level.lower())


def main(argv: list = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    configure_logging(settings.log_level)

    if not argv or argv[0] in ('-h', '--help'):
        print(USAGE)
        return 0 if argv else 2

    try:
        settings.validate()
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 2

    if argv[0] == 'serve':
        serve(int(argv[1]) if len(argv) > 1 else 8000)
        return 0

    url = argv[0]
    output = Path(argv[1]) if len(argv) > 1 else default_output_path(url, settings.output_format)

    print('\nscrollshot full-page capture')
    print(f'Target: {normalize_url(url)}')
    print('-' * 40)

    result = asyncio.run(capture_url(url, settings=settings, progress_callback=print))
    if not result.success:
        log.error('Capture failed: %s', result.error)
        return 1

    output.write_bytes(result.image_bytes)
    print(f'Frames:   {result.frame_count}')
    print(f'Size:     {result.total_width}x{result.total_height}')
    print(f'Duration: {result.duration_ms}ms (stitching {result.stitching_time_ms}ms)')
    log.info('Image saved to: %s', output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
