from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path

from lfmatch.api.correspondence import CorrespondenceSearch, center_view_index
from lfmatch.api.record_io import save_correspondence_record
from lfmatch.config import ConfigValidationError, SearchConfig, load_search_config
from lfmatch.core.geometry import average_position
from lfmatch.core.trace import SampleTrace
from lfmatch.errors import CorrespondenceError
from lfmatch.io.lightfield import load_lightfield

logger = logging.getLogger(__name__)


def _build_config(args: argparse.Namespace, trace: SampleTrace | None) -> SearchConfig:
    config = load_search_config(args.config) if args.config is not None else SearchConfig()
    overrides: dict = {}
    if args.radius is not None:
        overrides["patch_radius"] = args.radius
    if args.max_walk_steps is not None:
        overrides["max_walk_steps"] = args.max_walk_steps
    if args.workers is not None:
        overrides["workers"] = args.workers
    if trace is not None:
        overrides["debug_hook"] = trace
    return replace(config, **overrides)


def run_find_correspondences(args: argparse.Namespace) -> int:
    viewset = load_lightfield(args.lightfield, mode=args.mode)
    ref = args.reference if args.reference is not None else center_view_index(viewset)
    h, w, _c = viewset.image_shape
    x = args.x if args.x is not None else w // 2
    y = args.y if args.y is not None else h // 2

    trace = SampleTrace() if args.trace_json is not None else None
    search = CorrespondenceSearch(viewset, _build_config(args, trace))
    record = search.find(ref, (x, y))

    for r in record.results:
        if r.best is not None:
            print(f"view {r.view_index}: best {r.best.position} ssd={r.best.score:.1f} ({r.steps_taken} samples)")
        else:
            print(f"view {r.view_index}: {r.status}")

    if args.out is not None:
        save_correspondence_record(args.out, record, viewset)
        print(f"Wrote {args.out}")
    if trace is not None:
        args.trace_json.parent.mkdir(parents=True, exist_ok=True)
        args.trace_json.write_text(json.dumps(trace.to_dict(), indent=2), encoding="utf-8")
        print(f"Wrote {args.trace_json}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="lfmatch")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="cmd", required=True)

    val = sub.add_parser("validate-lightfield", help="Load a light field and check that all views share one shape.")
    val.add_argument("lightfield", type=Path, help="Directory or .zip archive of view images.")

    center = sub.add_parser("center-view", help="Print the mean camera position and the view closest to it.")
    center.add_argument("lightfield", type=Path)

    corr = sub.add_parser(
        "find-correspondences",
        help="Line-search a reference pixel in every other view and report the best patch matches.",
    )
    corr.add_argument("lightfield", type=Path)
    corr.add_argument("--x", type=float, default=None, help="Reference pixel x (default: image centre).")
    corr.add_argument("--y", type=float, default=None, help="Reference pixel y (default: image centre).")
    corr.add_argument("--reference", type=int, default=None, help="Reference view index (default: centre view).")
    corr.add_argument("--mode", type=str, default="RGB", choices=["RGB", "L"], help="Decode views as RGB or grayscale.")
    corr.add_argument("--config", type=Path, default=None, help="Search config JSON (lfmatch.search_config.v0).")
    corr.add_argument("--radius", type=int, default=None, help="Patch radius R (window 2R+1).")
    corr.add_argument("--max-walk-steps", type=int, default=None, help="Safety cap on samples per view.")
    corr.add_argument("--workers", type=int, default=None, help="Threads for the per-view searches.")
    corr.add_argument("--out", type=Path, default=None, help="Write the correspondence record as JSON.")
    corr.add_argument("--trace-json", type=Path, default=None, help="Write every sampled pixel per view as JSON.")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        if args.cmd == "validate-lightfield":
            viewset = load_lightfield(args.lightfield)
            h, w, c = viewset.image_shape
            print(f"{len(viewset)} views, {w}x{h}x{c}")
            return 0

        if args.cmd == "center-view":
            viewset = load_lightfield(args.lightfield)
            centerpos = average_position(viewset)
            idx = center_view_index(viewset)
            print(f"centerpos = {centerpos.tolist()}")
            print(f"closest = view {idx} at {viewset[idx].position.tolist()}")
            return 0

        if args.cmd == "find-correspondences":
            return run_find_correspondences(args)
    except (CorrespondenceError, ConfigValidationError) as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 2

    raise AssertionError(f"Unhandled cmd: {args.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
