from __future__ import annotations

from typing import Sequence

import numpy as np

from lfmatch.core.views import View
from lfmatch.errors import DegenerateGeometry, EmptyViewSet


def average_position(views: Sequence[View]) -> np.ndarray:
    """Arithmetic mean of all camera positions, shape (2,)."""
    if len(views) == 0:
        raise EmptyViewSet("cannot average the positions of an empty view set")
    # Accumulate offsets from the first view so identical positions average exactly.
    origin = np.asarray(views[0].position, dtype=np.float64)
    total = np.zeros((2,), dtype=np.float64)
    for view in views:
        total += view.position - origin
    return origin + total / float(len(views))


def closest_view(views: Sequence[View], target_position: np.ndarray) -> int:
    """
    Index of the view whose position is nearest to `target_position`.

    Single left-to-right scan with a strict comparison: on ties the lowest index wins.
    """
    if len(views) == 0:
        raise EmptyViewSet("cannot pick a view from an empty view set")
    target = np.asarray(target_position, dtype=np.float64).reshape(2)
    best = 0
    best_sqdist = np.inf
    for i, view in enumerate(views):
        d = view.position - target
        sqdist = float(d @ d)
        if sqdist < best_sqdist:
            best_sqdist = sqdist
            best = i
    return best


def search_step(reference_position: np.ndarray, target_position: np.ndarray) -> np.ndarray:
    """
    Per-sample displacement along the search line in the target view.

    The camera offset (reference - target) is scaled so the dominant axis moves
    exactly one pixel per sample. Only depends on the two camera positions.
    """
    offset = np.asarray(reference_position, dtype=np.float64).reshape(2) - np.asarray(
        target_position, dtype=np.float64
    ).reshape(2)
    extent = float(np.max(np.abs(offset)))
    if extent == 0.0:
        raise DegenerateGeometry("reference and target views share the same position")
    return offset * (1.0 / extent)
