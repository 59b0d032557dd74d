import io

import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


def _pdf(
    pagesize: tuple[float, float] = letter, pages: int = 1, encrypt: str | None = None
) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=pagesize, encrypt=encrypt)
    for number in range(1, pages + 1):
        c.drawString(36, 36, f"Invoice page {number}")
        c.showPage()
    c.save()
    return buf.getvalue()


def _image(size: tuple[int, int], image_format: str) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color="white").save(buf, format=image_format)
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Single letter-size page (612x792 points)."""
    return _pdf()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Three letter-size pages."""
    return _pdf(pages=3)


@pytest.fixture()
def small_page_pdf_bytes() -> bytes:
    """Single 400x400 point page, below the default minimum."""
    return _pdf(pagesize=(400, 400))


@pytest.fixture()
def encrypted_pdf_bytes() -> bytes:
    return _pdf(encrypt="secret")


@pytest.fixture()
def png_bytes() -> bytes:
    return _image((1000, 800), "PNG")


@pytest.fixture()
def jpeg_bytes() -> bytes:
    return _image((1200, 900), "JPEG")


@pytest.fixture()
def webp_bytes() -> bytes:
    return _image((1024, 768), "WEBP")


@pytest.fixture()
def small_png_bytes() -> bytes:
    """400x300 image, below the default minimum."""
    return _image((400, 300), "PNG")
