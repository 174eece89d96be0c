"""
Coarse pre-trim and final autocrop on Pillow images
"""

from PIL import Image, ImageChops

from .types import RGB


def pretrim_to_content(
    image: Image.Image, background: RGB, threshold: int = 15, margin: int = 1
) -> Image.Image:
    """
    Crop to the bounding box of pixels that differ from the background

    A pixel counts as content when any channel differs from the background
    by more than `threshold`, a 0-255 per-channel difference rather than a
    delta-E distance. `margin` pixels of surrounding background are
    kept so the flood fill still has a background ring to start from.
    An image with no content is returned unchanged.
    """
    rgb = image.convert("RGB")
    solid = Image.new("RGB", rgb.size, background.as_tuple())
    r, g, b = ImageChops.difference(rgb, solid).split()
    spread = ImageChops.lighter(ImageChops.lighter(r, g), b)

    cutoff = max(0, int(threshold))
    content = spread.point(lambda v: 255 if v > cutoff else 0)
    bbox = content.getbbox()
    if bbox is None:
        return image

    left, top, right, bottom = bbox
    width, height = image.size
    box = (
        max(0, left - margin),
        max(0, top - margin),
        min(width, right + margin),
        min(height, bottom + margin),
    )
    if box == (0, 0, width, height):
        return image
    return image.crop(box)


def autocrop(image: Image.Image) -> Image.Image:
    """Crop an RGBA image to its non-transparent bounding box"""
    bbox = image.getchannel("A").getbbox()
    if bbox is None:
        return image
    return image.crop(bbox)
