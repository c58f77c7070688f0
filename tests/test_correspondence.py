from __future__ import annotations

import numpy as np
import pytest

from lfmatch.api.correspondence import CorrespondenceSearch, center_view_index, find_correspondences
from lfmatch.config import ConfigValidationError, SearchConfig
from lfmatch.core.trace import SampleTrace
from lfmatch.core.views import View, ViewSet
from lfmatch.errors import EmptyViewSet, InconsistentViewGeometry, OutOfBounds


def _texture(h: int = 48, w: int = 48, seed: int = 0) -> np.ndarray:
    return np.random.default_rng(seed).integers(0, 256, size=(h, w, 3), dtype=np.uint8)


def _shifted_lightfield() -> ViewSet:
    """
    Views on a horizontal baseline; a scene plane with 2 px disparity per unit
    of camera offset, plus one view at the reference position.
    """
    base = _texture()
    positions = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (0.0, 0.0)]
    images = [base, np.roll(base, -2, axis=1), np.roll(base, -4, axis=1), base]
    return ViewSet.from_arrays(positions, images)


def test_find_correspondences_orders_results_and_skips_reference():
    viewset = _shifted_lightfield()
    record = find_correspondences(viewset, 0, (24, 24), SearchConfig(patch_radius=2))

    assert record.reference_view_index == 0
    assert record.reference_pixel == (24.0, 24.0)
    assert [r.view_index for r in record.results] == [1, 2, 3]

    assert record.result_for(1).best.position == (22, 24)
    assert record.result_for(1).best.score == 0.0
    assert record.result_for(2).best.position == (20, 24)
    assert record.result_for(3).status == "degenerate"
    assert record.result_for(3).best is None
    assert [r.view_index for r in record.matches] == [1, 2]


def test_reference_pixel_out_of_bounds_is_fatal():
    viewset = _shifted_lightfield()
    with pytest.raises(OutOfBounds):
        find_correspondences(viewset, 0, (1, 24), SearchConfig(patch_radius=2))


def test_reference_index_must_exist():
    search = CorrespondenceSearch(_shifted_lightfield(), SearchConfig(patch_radius=1))
    with pytest.raises(IndexError):
        search.find(4, (10, 10))


def test_inconsistent_views_are_rejected():
    viewset = ViewSet.from_arrays([(0.0, 0.0), (1.0, 0.0)], [_texture(32, 32), _texture(32, 30)])
    with pytest.raises(InconsistentViewGeometry):
        CorrespondenceSearch(viewset)

    viewset = ViewSet.from_arrays([(0.0, 0.0), (1.0, 0.0)], [_texture(32, 32), _texture(32, 32)[:, :, 0]])
    with pytest.raises(InconsistentViewGeometry):
        CorrespondenceSearch(viewset)


def test_radius_must_fit_image():
    viewset = ViewSet.from_arrays([(0.0, 0.0)], [_texture(6, 6)])
    with pytest.raises(ConfigValidationError):
        CorrespondenceSearch(viewset, SearchConfig(patch_radius=3))


def test_empty_viewset_is_rejected():
    with pytest.raises(EmptyViewSet):
        ViewSet([])


def test_parallel_search_matches_serial():
    viewset = _shifted_lightfield()
    serial = find_correspondences(viewset, 1, (30, 20), SearchConfig(patch_radius=2))
    parallel = find_correspondences(viewset, 1, (30, 20), SearchConfig(patch_radius=2, workers=3))
    assert serial == parallel


def test_debug_hook_sees_reference_once_and_every_sample():
    viewset = _shifted_lightfield()
    trace = SampleTrace()
    record = find_correspondences(viewset, 0, (24, 24), SearchConfig(patch_radius=2, debug_hook=trace))

    ref_events = [e for e in trace.events if e.is_reference]
    assert len(ref_events) == 1
    assert ref_events[0].view_index == 0
    assert ref_events[0].pixel == (24, 24)
    assert trace.positions_for(3) == []
    for r in record.results:
        assert len(trace.positions_for(r.view_index)) == r.steps_taken
    assert trace.views() == [0, 1, 2]
    assert set(trace.to_dict()["views"]) == {"0", "1", "2"}


def test_search_steps_are_cached_per_view_pair():
    search = CorrespondenceSearch(_shifted_lightfield(), SearchConfig(patch_radius=1))
    s = search.step_for(0, 2)
    assert s is search.step_for(0, 2)
    np.testing.assert_allclose(s, [-1.0, 0.0])
    assert search.step_for(0, 3) is None


def test_default_walk_limit_follows_image_diagonal():
    search = CorrespondenceSearch(_shifted_lightfield())
    assert search.walk_limit == int(np.ceil(np.hypot(48, 48))) + 1
    search = CorrespondenceSearch(_shifted_lightfield(), SearchConfig(patch_radius=1, max_walk_steps=5))
    record = search.find(0, (24, 24))
    assert all(r.steps_taken <= 5 for r in record.results)
    assert record.result_for(1).truncated


def test_center_view_index_on_grid():
    img = np.zeros((8, 8), dtype=np.uint8)
    viewset = ViewSet(View.create((float(x), float(y)), img) for y in range(3) for x in range(3))
    assert center_view_index(viewset) == 4


def test_views_are_read_only():
    viewset = _shifted_lightfield()
    with pytest.raises(ValueError):
        viewset[0].image[0, 0, 0] = 1
    assert viewset[0].channel_samples_at(3, 2) == tuple(int(v) for v in _texture()[2, 3])
