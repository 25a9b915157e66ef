import io

from PIL import Image


def image_bytes(fmt: str = "PNG", size: tuple[int, int] = (4, 4)) -> bytes:
    """Encode a tiny solid image in the given Pillow format."""
    buffer = io.BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


def mpo_bytes(size: tuple[int, int] = (8, 8)) -> bytes:
    """Encode a two-frame multi-picture JPEG, as phone cameras write."""
    buffer = io.BytesIO()
    first = Image.new("RGB", size, (10, 120, 200))
    second = Image.new("RGB", size, (200, 120, 10))
    first.save(buffer, format="MPO", save_all=True, append_images=[second])
    return buffer.getvalue()
