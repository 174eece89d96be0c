"""
sRGB -> CIE L*a*b* conversion and perceptual distance maps
"""

from collections import OrderedDict

import cv2
import numpy as np

from .types import RGB, Lab

# get_many skips per-key lookups above this many keys per cache slot
BULK_FACTOR = 4


def rgb_array_to_lab(rgb: np.ndarray) -> np.ndarray:
    """
    Convert an array of 8-bit RGB triples to Lab

    Uses OpenCV's float path, which returns unscaled L in 0-100 and signed
    a/b (D65 white).

    Args:
        rgb: Array of shape (..., 3), values 0-255

    Returns:
        float64 array of shape (..., 3) holding (L, a, b)
    """
    rgb = np.asarray(rgb)
    if rgb.size == 0:
        return np.zeros(rgb.shape, dtype=np.float64)

    scaled = (rgb.astype(np.float32) / 255.0).reshape(-1, 1, 3)
    lab = cv2.cvtColor(scaled, cv2.COLOR_RGB2Lab)
    return lab.reshape(rgb.shape).astype(np.float64)


def rgb_to_lab(color: RGB) -> Lab:
    """Convert a single RGB color to Lab"""
    l, a, b = rgb_array_to_lab(np.array(color.as_tuple(), dtype=np.float64))  # noqa: E741
    return Lab(float(l), float(a), float(b))


def pack_rgb(rgb: np.ndarray) -> np.ndarray:
    """Pack (..., 3) uint8 RGB into (...) uint32 keys 0xRRGGBB"""
    rgb = np.asarray(rgb, dtype=np.uint32)
    return (rgb[..., 0] << 16) | (rgb[..., 1] << 8) | rgb[..., 2]


def unpack_rgb(keys: np.ndarray) -> np.ndarray:
    keys = np.asarray(keys, dtype=np.uint32)
    return np.stack([(keys >> 16) & 0xFF, (keys >> 8) & 0xFF, keys & 0xFF], axis=-1).astype(
        np.uint8
    )


class LabCache:
    """
    Bounded LRU memo of RGB -> Lab conversions

    Meant to live for one pipeline invocation. Conversion is a pure
    function of the color, so entries never go stale; the bound only
    caps memory.
    """

    def __init__(self, max_entries: int = 4096):
        self.max_entries = max(1, int(max_entries))
        self._entries: "OrderedDict[int, tuple[float, float, float]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, color: RGB) -> Lab:
        key = (color.r << 16) | (color.g << 8) | color.b
        cached = self._entries.get(key)
        if cached is not None:
            self._entries.move_to_end(key)
            self.hits += 1
            return Lab(*cached)

        self.misses += 1
        lab = rgb_to_lab(color)
        self._store(key, lab.as_tuple())
        return lab

    def get_many(self, keys: np.ndarray) -> np.ndarray:
        """
        Look up Lab values for packed RGB keys

        Misses are converted in one vectorized call and stored.

        Returns:
            float64 array of shape (N, 3)
        """
        keys = np.asarray(keys, dtype=np.uint32).ravel()

        # Far more colors than the bound: per-key lookups cannot pay off
        if len(keys) > BULK_FACTOR * self.max_entries:
            result = rgb_array_to_lab(unpack_rgb(keys))
            self.misses += len(keys)
            tail = slice(len(keys) - self.max_entries, None)
            for key, value in zip(keys[tail].tolist(), result[tail].tolist()):
                self._store(key, tuple(value))
            return result

        result = np.empty((len(keys), 3), dtype=np.float64)
        missing = []

        for i, key in enumerate(keys.tolist()):
            cached = self._entries.get(key)
            if cached is None:
                missing.append(i)
            else:
                self._entries.move_to_end(key)
                result[i] = cached

        self.hits += len(keys) - len(missing)
        self.misses += len(missing)

        if missing:
            idx = np.array(missing, dtype=np.intp)
            converted = rgb_array_to_lab(unpack_rgb(keys[idx]))
            result[idx] = converted
            # Only the tail can survive the bound anyway
            for i in missing[-self.max_entries :]:
                self._store(int(keys[i]), tuple(result[i].tolist()))

        return result

    def clear(self):
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def _store(self, key: int, value: tuple[float, float, float]):
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)


def delta_e_map(rgb_image: np.ndarray, background: RGB, cache: LabCache) -> np.ndarray:
    """
    Per-pixel CIE76 distance to the background color

    Each distinct color in the image is converted once. Pixels whose RGB
    equals the background are exactly 0.

    Args:
        rgb_image: uint8 array (H, W, 3)
        background: Background color
        cache: Invocation-scoped Lab cache

    Returns:
        float32 array (H, W)
    """
    h, w = rgb_image.shape[:2]
    if h == 0 or w == 0:
        return np.zeros((h, w), dtype=np.float32)

    keys = pack_rgb(rgb_image[..., :3]).ravel()
    unique_keys, inverse = np.unique(keys, return_inverse=True)

    unique_lab = cache.get_many(unique_keys)
    bg_lab = np.array(cache.get(background).as_tuple(), dtype=np.float64)

    distances = np.sqrt(np.sum((unique_lab - bg_lab) ** 2, axis=1))
    bg_key = (background.r << 16) | (background.g << 8) | background.b
    distances[unique_keys == bg_key] = 0.0

    return distances[inverse.ravel()].reshape(h, w).astype(np.float32)
