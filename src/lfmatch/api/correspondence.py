from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from lfmatch.config import SearchConfig
from lfmatch.core.geometry import average_position, closest_view, search_step
from lfmatch.core.line_search import DirectionalSearch, ViewResult
from lfmatch.core.patch import PatchExtractor
from lfmatch.core.views import ViewSet
from lfmatch.errors import DegenerateGeometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorrespondenceRecord:
    """
    Result of one query: the reference pixel and one ViewResult per other view.

    `results` follows view-set order and never contains the reference view.
    """

    reference_view_index: int
    reference_pixel: tuple[float, float]
    results: tuple[ViewResult, ...]

    def result_for(self, view_index: int) -> ViewResult:
        for r in self.results:
            if r.view_index == view_index:
                return r
        raise KeyError(view_index)

    @property
    def matches(self) -> tuple[ViewResult, ...]:
        return tuple(r for r in self.results if r.found)


def center_view_index(viewset: Sequence) -> int:
    """Index of the view closest to the mean camera position."""
    return closest_view(viewset, average_position(viewset))


class CorrespondenceSearch:
    """
    Correspondence queries against one validated light field.

    Search steps depend only on camera positions, so they are computed once per
    (reference, target) pair and reused for every queried pixel.
    """

    def __init__(self, viewset: ViewSet, config: Optional[SearchConfig] = None) -> None:
        self.viewset = viewset.validate()
        self.config = config if config is not None else SearchConfig()
        h, w, c = self.viewset.image_shape
        self.config.check_image_size(w, h)
        self.extractor = PatchExtractor(self.config.patch_radius, c)
        self.walk_limit = self.config.walk_limit(w, h)
        self._steps: dict[tuple[int, int], Optional[np.ndarray]] = {}

    def step_for(self, reference_index: int, target_index: int) -> Optional[np.ndarray]:
        """Search step from reference to target, None for coinciding cameras."""
        key = (int(reference_index), int(target_index))
        if key not in self._steps:
            try:
                step = search_step(self.viewset[key[0]].position, self.viewset[key[1]].position)
            except DegenerateGeometry:
                step = None
            if step is not None:
                step.flags.writeable = False
            self._steps[key] = step
            logger.debug("views %d -> %d: search step %s", key[0], key[1], None if step is None else step.tolist())
        return self._steps[key]

    def find(self, reference_view_index: int, reference_pixel: Sequence[float]) -> CorrespondenceRecord:
        n = len(self.viewset)
        ref = int(reference_view_index)
        if not 0 <= ref < n:
            raise IndexError(f"reference view {reference_view_index} outside view set of size {n}")
        pixel = (float(reference_pixel[0]), float(reference_pixel[1]))

        reference_view = self.viewset[ref]
        # OutOfBounds on the reference pixel aborts the query.
        reference_patch = self.extractor.extract(reference_view.image, pixel)
        hook = self.config.debug_hook
        if hook is not None:
            hook(ref, self.extractor.window(pixel), True)

        engine = DirectionalSearch(self.extractor, self.walk_limit, hook)
        targets = [i for i in range(n) if i != ref]
        steps = {i: self.step_for(ref, i) for i in targets}

        def run(i: int) -> ViewResult:
            return engine.search(reference_patch, pixel, i, self.viewset[i], steps[i])

        workers = min(int(self.config.workers), max(1, len(targets)))
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(run, targets))
        else:
            results = [run(i) for i in targets]
        results.sort(key=lambda r: r.view_index)

        degenerate = sum(1 for r in results if r.status == "degenerate")
        missing = sum(1 for r in results if r.status == "no_match")
        logger.info(
            "pixel %s in view %d: %d matches, %d no-match, %d degenerate",
            pixel,
            ref,
            len(results) - degenerate - missing,
            missing,
            degenerate,
        )
        return CorrespondenceRecord(reference_view_index=ref, reference_pixel=pixel, results=tuple(results))


def find_correspondences(
    viewset: ViewSet,
    reference_view_index: int,
    reference_pixel: Sequence[float],
    config: Optional[SearchConfig] = None,
) -> CorrespondenceRecord:
    return CorrespondenceSearch(viewset, config).find(reference_view_index, reference_pixel)
