from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

# hook(view_index, (x, y), is_reference); called for the reference pixel and for
# every in-bounds sample of a walk, never for the out-of-bounds position that ends it.
DebugHook = Callable[[int, tuple[int, int], bool], None]

SCHEMA_VERSION = "lfmatch.search_config.v0"
DEFAULT_PATCH_RADIUS = 3


class ConfigValidationError(ValueError):
    pass


@dataclass(frozen=True)
class SearchConfig:
    """
    Parameters of a correspondence query.

    - patch_radius: half-size R of the (2R+1)x(2R+1) comparison window
    - max_walk_steps: safety bound on the number of positions sampled per view;
      None derives it from the image diagonal
    - workers: thread pool size for the per-view searches (1 = serial)
    - debug_hook: optional observer called for every sampled position
    """

    patch_radius: int = DEFAULT_PATCH_RADIUS
    max_walk_steps: Optional[int] = None
    workers: int = 1
    debug_hook: Optional[DebugHook] = None

    def __post_init__(self) -> None:
        _require(int(self.patch_radius) == self.patch_radius, "patch_radius must be an integer")
        _require(self.patch_radius >= 0, "patch_radius must be >= 0")
        if self.max_walk_steps is not None:
            _require(int(self.max_walk_steps) >= 1, "max_walk_steps must be >= 1")
        _require(int(self.workers) >= 1, "workers must be >= 1")
        _require(self.debug_hook is None or callable(self.debug_hook), "debug_hook must be callable")

    @property
    def patch_size(self) -> int:
        return 2 * int(self.patch_radius) + 1

    def walk_limit(self, width: int, height: int) -> int:
        if self.max_walk_steps is not None:
            return int(self.max_walk_steps)
        # A unit step along the dominant axis crosses the image in at most this many samples.
        return int(math.ceil(math.hypot(width, height))) + 1

    def check_image_size(self, width: int, height: int) -> None:
        _require(
            self.patch_size <= min(int(width), int(height)),
            f"patch_radius {self.patch_radius} does not fit a {width}x{height} image",
        )


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigValidationError(msg)


def load_search_config(path: Path, *, debug_hook: Optional[DebugHook] = None) -> SearchConfig:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return parse_search_config(data, debug_hook=debug_hook)


def parse_search_config(data: dict[str, Any], *, debug_hook: Optional[DebugHook] = None) -> SearchConfig:
    _require(isinstance(data, dict), "search config must be a JSON object")
    schema_version = data.get("schema_version", SCHEMA_VERSION)
    _require(schema_version == SCHEMA_VERSION, f"schema_version must be {SCHEMA_VERSION}")

    radius_raw = data.get("patch_radius", DEFAULT_PATCH_RADIUS)
    _require(isinstance(radius_raw, int) and not isinstance(radius_raw, bool), "patch_radius must be an integer")

    steps_raw = data.get("max_walk_steps")
    if steps_raw is not None:
        _require(isinstance(steps_raw, int) and not isinstance(steps_raw, bool), "max_walk_steps must be an integer")

    workers_raw = data.get("workers", 1)
    _require(isinstance(workers_raw, int) and not isinstance(workers_raw, bool), "workers must be an integer")

    return SearchConfig(
        patch_radius=radius_raw,
        max_walk_steps=steps_raw,
        workers=workers_raw,
        debug_hook=debug_hook,
    )


def search_config_to_dict(config: SearchConfig) -> dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "patch_radius": int(config.patch_radius),
        "max_walk_steps": None if config.max_walk_steps is None else int(config.max_walk_steps),
        "workers": int(config.workers),
    }
