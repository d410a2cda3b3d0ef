# thumbnail.py
import io

from PIL import Image, ImageOps

# MIME type -> Pillow decoder; anything else is not thumbnailed
SUPPORTED_TYPES = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/gif": "GIF",
    "image/webp": "WEBP",
    "image/bmp": "BMP",
    "image/tiff": "TIFF",
}


class ThumbnailError(Exception):
    pass


# Strip parameters and normalize case, e.g. "Image/JPEG; q=1" -> "image/jpeg"
def media_type(mime_type):
    if not mime_type:
        raise ThumbnailError("empty MIME type")
    essence = mime_type.split(";", 1)[0].strip().lower()
    kind, sep, subtype = essence.partition("/")
    if not sep or not kind or not subtype or "/" in subtype:
        raise ThumbnailError(f"unparseable MIME type: {mime_type!r}")
    return essence


def is_supported(mime_type):
    try:
        return media_type(mime_type) in SUPPORTED_TYPES
    except ThumbnailError:
        return False


def generate(data: bytes, mime_type: str, size: int) -> bytes:
    """Return a size x size PNG thumbnail of the encoded image in data.

    The image is centre-cropped to a square before resizing so the output
    always has the exact requested dimensions. Raises ThumbnailError when the
    type is unknown or the bytes cannot be decoded.
    """
    fmt = SUPPORTED_TYPES.get(media_type(mime_type))
    if fmt is None:
        raise ThumbnailError(f"no decoder for {mime_type}")
    if size <= 0:
        raise ThumbnailError(f"invalid thumbnail size: {size}")

    try:
        with Image.open(io.BytesIO(data), formats=[fmt]) as img:
            img.load()
            if img.mode in ("P", "PA"):
                img = img.convert("RGBA")
            elif img.mode not in ("RGB", "RGBA", "L", "LA"):
                img = img.convert("RGB")
            thumb = ImageOps.fit(img, (size, size), method=Image.LANCZOS)
            out = io.BytesIO()
            thumb.save(out, format="PNG", optimize=True)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ThumbnailError(f"cannot thumbnail {mime_type} image: {e}") from e

    result = out.getvalue()
    if not result:
        raise ThumbnailError("no thumbnail produced")
    return result
