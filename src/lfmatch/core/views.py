from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

import numpy as np

from lfmatch.errors import EmptyViewSet, InconsistentViewGeometry


def _as_image_u8(image: np.ndarray) -> np.ndarray:
    img = np.asarray(image)
    if img.dtype != np.uint8:
        raise TypeError(f"view images must be uint8, got {img.dtype}")
    if img.ndim == 2:
        img = img[:, :, None]
    if img.ndim != 3:
        raise ValueError(f"view images must be (H,W) or (H,W,C), got shape {img.shape}")
    img = np.ascontiguousarray(img)
    if img.flags.writeable:
        img = img.copy()
        img.flags.writeable = False
    return img


@dataclass(frozen=True)
class View:
    """
    One camera of the light field: a 2D camera position and its image.

    Convention: position is (x, y) in the light-field plane; image is stored as
    a read-only uint8 array shaped (H, W, C).
    """

    position: np.ndarray  # (2,)
    image: np.ndarray  # (H,W,C) uint8

    @classmethod
    def create(cls, position: Sequence[float], image: np.ndarray) -> "View":
        pos = np.array(position, dtype=np.float64).reshape(2)
        if not np.all(np.isfinite(pos)):
            raise ValueError("view position must be finite")
        pos.flags.writeable = False
        return cls(position=pos, image=_as_image_u8(image))

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def channels(self) -> int:
        return int(self.image.shape[2])

    def channel_samples_at(self, x: int, y: int) -> tuple[int, ...]:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel {(x, y)} outside {self.width}x{self.height} image")
        return tuple(int(v) for v in self.image[y, x])


class ViewSet(Sequence[View]):
    """
    Ordered, non-empty collection of views.

    Views are identified by their index in the set; the index assigned at
    construction is the only identity used by the search.
    """

    def __init__(self, views: Iterable[View]) -> None:
        self._views: tuple[View, ...] = tuple(views)
        if not self._views:
            raise EmptyViewSet("a light field needs at least one view")

    @classmethod
    def from_arrays(cls, positions: Sequence[Sequence[float]], images: Sequence[np.ndarray]) -> "ViewSet":
        if len(positions) != len(images):
            raise ValueError("positions and images must have the same length")
        return cls(View.create(p, im) for p, im in zip(positions, images))

    def __len__(self) -> int:
        return len(self._views)

    def __getitem__(self, index):  # type: ignore[override]
        return self._views[index]

    def __iter__(self) -> Iterator[View]:
        return iter(self._views)

    @property
    def image_shape(self) -> tuple[int, int, int]:
        """(H, W, C) of the first view; equal for all views once validated."""
        first = self._views[0]
        return first.height, first.width, first.channels

    def validate(self) -> "ViewSet":
        h, w, c = self.image_shape
        for i, view in enumerate(self._views):
            if (view.height, view.width, view.channels) != (h, w, c):
                raise InconsistentViewGeometry(
                    f"view {i} has shape {(view.height, view.width, view.channels)}, expected {(h, w, c)}"
                )
        return self
