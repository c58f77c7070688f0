from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from lfmatch.errors import OutOfBounds


def round_half_away(v: float) -> int:
    """Nearest integer, ties rounded away from zero (numpy rounds ties to even)."""
    v = float(v)
    a = abs(v)
    f = math.floor(a)
    # No `a + 0.5`: it rounds up values just below .5.
    return int(math.copysign(f + (1 if a - f >= 0.5 else 0), v))


@dataclass
class Patch:
    """
    Samples of a (2R+1)x(2R+1) window, flattened row-major, then column, then channel.

    `samples` is int32 so differences of uint8 values never wrap around.
    """

    radius: int
    channels: int
    samples: np.ndarray  # (channels * (2R+1)**2,) int32

    @classmethod
    def zeros(cls, radius: int, channels: int) -> "Patch":
        size = 2 * int(radius) + 1
        return cls(
            radius=int(radius),
            channels=int(channels),
            samples=np.zeros((size * size * int(channels),), dtype=np.int32),
        )

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    def as_window(self) -> np.ndarray:
        """View of the samples shaped (2R+1, 2R+1, C)."""
        size = 2 * self.radius + 1
        return self.samples.reshape(size, size, self.channels)


def patch_distance(a: Patch, b: Patch) -> float:
    """
    Sum of squared differences (SSD) between two patches; lower is more similar.
    """
    if a.samples.shape != b.samples.shape or a.channels != b.channels:
        raise ValueError(f"cannot compare patches of shapes {a.samples.shape} and {b.samples.shape}")
    diff = a.samples.astype(np.int64) - b.samples.astype(np.int64)
    return float(np.dot(diff, diff))


class PatchExtractor:
    """
    Samples fixed-radius patches at rounded pixel positions.

    The window must lie entirely inside the image; clamped or partial patches
    are never produced.
    """

    def __init__(self, radius: int, channels: int) -> None:
        if int(radius) != radius or radius < 0:
            raise ValueError(f"patch radius must be a non-negative integer, got {radius!r}")
        if int(channels) < 1:
            raise ValueError(f"channels must be >= 1, got {channels!r}")
        self.radius = int(radius)
        self.channels = int(channels)

    def new_patch(self) -> Patch:
        return Patch.zeros(self.radius, self.channels)

    def window(self, position: np.ndarray | tuple[float, float]) -> tuple[int, int]:
        """Rounded integer centre (cx, cy) of the window at `position` = (x, y)."""
        x, y = position[0], position[1]
        return round_half_away(x), round_half_away(y)

    def fits(self, width: int, height: int, position: np.ndarray | tuple[float, float]) -> bool:
        """True if the window at `position` lies inside a `width` x `height` image."""
        cx, cy = self.window(position)
        r = self.radius
        return cx - r >= 0 and cy - r >= 0 and cx + r < width and cy + r < height

    def extract(
        self,
        image: np.ndarray,
        position: np.ndarray | tuple[float, float],
        out: Optional[Patch] = None,
    ) -> Patch:
        """
        Fill `out` (or a fresh patch) with the window centred on `position`.

        Raises OutOfBounds, leaving `out` untouched, if any part of the window
        falls outside [0, W) x [0, H).
        """
        if image.ndim == 2:
            image = image[:, :, None]
        h, w, c = image.shape
        if c != self.channels:
            raise ValueError(f"image has {c} channels, extractor expects {self.channels}")

        cx, cy = self.window(position)
        r = self.radius
        if not self.fits(w, h, position):
            raise OutOfBounds((cx, cy), r, (w, h))

        if out is None:
            out = self.new_patch()
        elif out.radius != r or out.channels != c:
            raise ValueError("output patch does not match the extractor radius/channels")
        out.samples[:] = image[cy - r : cy + r + 1, cx - r : cx + r + 1, :].reshape(-1)
        return out


def extract_patch(image: np.ndarray, position: np.ndarray | tuple[float, float], radius: int) -> Patch:
    img = np.asarray(image)
    channels = 1 if img.ndim == 2 else int(img.shape[2])
    return PatchExtractor(radius, channels).extract(img, position)
