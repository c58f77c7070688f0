from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional

import numpy as np

from lfmatch.config import DebugHook
from lfmatch.core.patch import Patch, PatchExtractor, patch_distance
from lfmatch.core.views import View
from lfmatch.errors import OutOfBounds

logger = logging.getLogger(__name__)

ViewStatus = Literal["match", "no_match", "degenerate"]


@dataclass(frozen=True)
class MatchCandidate:
    position: tuple[int, int]  # rounded (x, y) in the target view
    score: float  # SSD against the reference patch


@dataclass(frozen=True)
class ViewResult:
    """
    Outcome of the line search in one target view.

    - "match": `best` holds the minimum-score candidate of the walk
    - "no_match": the first sample was already out of bounds
    - "degenerate": the view shares the reference camera position; nothing was sampled
    """

    view_index: int
    status: ViewStatus
    best: Optional[MatchCandidate] = None
    step: Optional[tuple[float, float]] = None
    steps_taken: int = 0
    truncated: bool = False

    @property
    def found(self) -> bool:
        return self.status == "match"

    @classmethod
    def degenerate(cls, view_index: int) -> "ViewResult":
        return cls(view_index=int(view_index), status="degenerate")


class DirectionalSearch:
    """
    Walks a straight line in a target view and keeps the best-matching patch.

    Starting at the reference pixel, positions advance by a fixed step derived
    from the camera offset. The walk ends at the first out-of-bounds window or
    after `max_walk_steps` samples.
    """

    def __init__(
        self,
        extractor: PatchExtractor,
        max_walk_steps: int,
        debug_hook: Optional[DebugHook] = None,
    ) -> None:
        if int(max_walk_steps) < 1:
            raise ValueError("max_walk_steps must be >= 1")
        self.extractor = extractor
        self.max_walk_steps = int(max_walk_steps)
        self.debug_hook = debug_hook

    def search(
        self,
        reference_patch: Patch,
        reference_pixel: tuple[float, float],
        target_index: int,
        target: View,
        step: Optional[np.ndarray],
    ) -> ViewResult:
        if step is None:
            return ViewResult.degenerate(target_index)

        step = np.asarray(step, dtype=np.float64).reshape(2)
        current = np.asarray(reference_pixel, dtype=np.float64).reshape(2).copy()
        candidate = self.extractor.new_patch()

        best: Optional[MatchCandidate] = None
        taken = 0
        truncated = False
        while True:
            if taken >= self.max_walk_steps:
                # Only a walk that could have continued counts as truncated.
                truncated = self.extractor.fits(target.width, target.height, current)
                break
            try:
                self.extractor.extract(target.image, current, out=candidate)
            except OutOfBounds:
                break
            taken += 1
            pixel = self.extractor.window(current)
            if self.debug_hook is not None:
                self.debug_hook(target_index, pixel, False)

            score = patch_distance(reference_patch, candidate)
            # Strict comparison: first-seen candidate wins on equal scores.
            if best is None or score < best.score:
                best = MatchCandidate(position=pixel, score=score)
            current += step

        if truncated:
            logger.warning(
                "walk in view %d stopped after %d samples (step %s)", target_index, taken, step.tolist()
            )

        return ViewResult(
            view_index=int(target_index),
            status="match" if best is not None else "no_match",
            best=best,
            step=(float(step[0]), float(step[1])),
            steps_taken=taken,
            truncated=truncated,
        )
