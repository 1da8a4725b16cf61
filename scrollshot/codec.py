"""Image codec helpers backed by Pillow.

Every function takes or returns encoded image bytes except the canvas
helpers, which hand out a mutable ``PIL.Image.Image`` to paste into.
"""

import io

from PIL import Image


WHITE = (255, 255, 255)
LOSSY_QUALITY = 90

_PIL_FORMATS = {
    'png': 'PNG',
    'jpeg': 'JPEG',
    'jpg': 'JPEG',
    'webp': 'WEBP',
}


def _pil_format(fmt: str) -> str:
    try:
        return _PIL_FORMATS[fmt.lower()]
    except KeyError:
        raise ValueError(f'Unsupported image format: {fmt}') from None


def decode(data: bytes) -> Image.Image:
    """Decode *data* and load the pixels eagerly."""
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def create_canvas(width: int, height: int, background=WHITE) -> Image.Image:
    """Blank opaque 3-channel canvas."""
    return Image.new('RGB', (width, height), background)


def composite_paste(canvas: Image.Image, data: bytes, top: int, left: int = 0) -> Image.Image:
    """Draw *data* onto *canvas* at (left, top), replacing what is underneath."""
    image = decode(data)
    if image.mode != 'RGB':
        image = image.convert('RGB')
    canvas.paste(image, (left, top))
    return canvas


def encode(image: Image.Image, fmt: str = 'png') -> bytes:
    """Encode a PIL image; lossy formats use a fixed quality."""
    pil_format = _pil_format(fmt)
    if pil_format == 'JPEG' and image.mode not in ('RGB', 'L'):
        image = image.convert('RGB')

    buffer = io.BytesIO()
    if pil_format == 'PNG':
        image.save(buffer, format=pil_format)
    else:
        image.save(buffer, format=pil_format, quality=LOSSY_QUALITY)
    return buffer.getvalue()


def _source_format(image: Image.Image) -> str:
    return (image.format or 'PNG').lower()


def resize(data: bytes, width: int, height: int) -> bytes:
    """Stretch to exactly width x height, ignoring aspect ratio."""
    image = decode(data)
    resized = image.resize((width, height), Image.Resampling.LANCZOS)
    return encode(resized, _source_format(image))


def crop(data: bytes, left: int, top: int, width: int, height: int) -> bytes:
    image = decode(data)
    cropped = image.crop((left, top, left + width, top + height))
    return encode(cropped, _source_format(image))


def stack(images: list, fmt: str = 'png') -> bytes:
    """Concatenate encoded images top to bottom on a white canvas."""
    decoded = [decode(data) for data in images]
    width = max(image.width for image in decoded)
    height = sum(image.height for image in decoded)

    canvas = create_canvas(width, height)
    top = 0
    for image in decoded:
        canvas.paste(image.convert('RGB'), (0, top))
        top += image.height
    return encode(canvas, fmt)


def metadata(data: bytes) -> dict:
    """Basic header information without decoding the pixel data."""
    with Image.open(io.BytesIO(data)) as image:
        return {
            'width': image.width,
            'height': image.height,
            'format': (image.format or '').lower(),
            'mode': image.mode,
            'size_bytes': len(data),
        }
