"""Image loading and section cropping."""

from pathlib import Path
from typing import Union

from PIL import Image, ImageOps

from .schemas import RegionDescriptor


def load_scan_image(image_ref: Union[str, Path], max_edge: int = 2048) -> Image.Image:
    """
    Open a shelf photo, apply EXIF orientation, convert to RGB and
    downsample so the longest edge is at most max_edge.

    Raises FileNotFoundError / PIL.UnidentifiedImageError for bad paths.
    """
    path = Path(image_ref).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"Image not found: {path}")

    with Image.open(path) as img:
        img = ImageOps.exif_transpose(img)
        img = img.convert("RGB")

    if max(img.size) > max_edge:
        img.thumbnail((max_edge, max_edge), Image.Resampling.LANCZOS)

    return img


def crop_to_region(img: Image.Image, region: RegionDescriptor) -> Image.Image:
    """Crop to a region given in percent; the whole-image region is a no-op."""
    if region.is_whole_image:
        return img

    width, height = img.size
    left = int(round(width * region.x / 100))
    top = int(round(height * region.y / 100))
    right = int(round(width * min(100.0, region.x + region.width) / 100))
    bottom = int(round(height * min(100.0, region.y + region.height) / 100))

    # Keep at least one pixel in each direction
    right = max(right, left + 1)
    bottom = max(bottom, top + 1)

    return img.crop((left, top, min(right, width), min(bottom, height)))
