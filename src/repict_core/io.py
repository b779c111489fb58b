# load/save adapter between image files and raw pixel buffers

from __future__ import annotations

from pathlib import Path
import numpy as np
from PIL import Image

from .buffer import ImageBuffer
from .errors import ImageIOError
from .pipeline import FilterPipeline

FORMATS_BY_EXT = {
    ".png": "PNG",
    ".bmp": "BMP",
    ".tga": "TGA",
    ".tif": "TIFF",
    ".tiff": "TIFF",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".webp": "WEBP",
}
SUPPORTED_IMAGE_EXTS = set(FORMATS_BY_EXT)

MODE_CHANNELS = {"L": 1, "LA": 2, "RGB": 3, "RGBA": 4}
_GRAY_MODES = {"1", "I", "I;16", "I;16B", "I;16L", "F"}
# formats that cannot store every channel layout
_WRITABLE_MODES = {
    "JPEG": {"L", "RGB"},
    "BMP": {"L", "RGB", "RGBA"},
}
_DROP_ALPHA = {"LA": "L", "RGBA": "RGB"}


def format_for_path(path: Path) -> str:
    fmt = FORMATS_BY_EXT.get(Path(path).suffix.lower())
    if fmt is None:
        raise ImageIOError(f"Unsupported image format: {path}")
    return fmt


def load_image(path: Path) -> Image.Image:
    try:
        img = Image.open(path)
        img.load()
        return img
    except Exception as e:
        raise ImageIOError(f"Failed to load image: {path} ({e})") from e


def ensure_supported_mode(img: Image.Image) -> Image.Image:
    if img.mode in MODE_CHANNELS:
        return img
    if img.mode in _GRAY_MODES:
        return img.convert("L")
    if img.mode in ("P", "PA") and ("transparency" in img.info or img.mode == "PA"):
        return img.convert("RGBA")
    return img.convert("RGB")


def image_to_buffer(img: Image.Image) -> ImageBuffer:
    img = ensure_supported_mode(img)
    arr = np.asarray(img, dtype=np.uint8)
    return ImageBuffer.from_array(arr, copy=True)


def buffer_to_image(image: ImageBuffer) -> Image.Image:
    px = image.pixels
    if image.channels == 1:
        px = px[:, :, 0]
    return Image.fromarray(np.ascontiguousarray(px))


def load_pixels(path: Path) -> tuple[np.ndarray, int, int, int]:
    """Decode a file into (flat uint8 samples, width, height, channels)."""
    buf = image_to_buffer(load_image(path))
    return buf.data, buf.width, buf.height, buf.channels


def save_image(img: Image.Image, path: Path, *, overwrite: bool = False) -> None:
    path = Path(path)
    fmt = format_for_path(path)
    if path.exists() and not overwrite:
        raise ImageIOError(f"Refusing to overwrite existing file: {path}")

    allowed = _WRITABLE_MODES.get(fmt)
    if allowed is not None and img.mode not in allowed:
        img = img.convert(_DROP_ALPHA.get(img.mode, "RGB"))

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        img.save(path, format=fmt)
    except Exception as e:
        raise ImageIOError(f"Failed to save image: {path} ({e})") from e


def save_pixels(
    buffer,
    width: int,
    height: int,
    channels: int,
    path: Path,
    *,
    overwrite: bool = False,
) -> None:
    image = buffer if isinstance(buffer, ImageBuffer) else ImageBuffer.from_source(
        buffer, width, height, channels, copy=False
    )
    save_image(buffer_to_image(image), path, overwrite=overwrite)


def load_into(pipeline: FilterPipeline, path: Path) -> FilterPipeline:
    data, w, h, c = load_pixels(path)
    pipeline.set_source(data, w, h, c, copy=False)
    return pipeline


def save_result(pipeline: FilterPipeline, path: Path, *, overwrite: bool = False) -> None:
    save_image(buffer_to_image(pipeline.get_result()), path, overwrite=overwrite)

