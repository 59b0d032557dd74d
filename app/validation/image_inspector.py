import io

from PIL import Image, UnidentifiedImageError


class ImageOpenError(Exception):
    """Raised when image bytes cannot be decoded."""


def read_image_size(image_bytes: bytes) -> tuple[int, int, str]:
    """Return (width, height, format) of an encoded image.

    Only the header is decoded; pixel data is never loaded.

    Raises:
        ImageOpenError: if Pillow cannot identify the image.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            width, height = img.size
            return width, height, (img.format or "unknown").lower()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageOpenError(f"Cannot open image: {exc}") from exc
