from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from lfmatch.api.correspondence import CorrespondenceRecord
from lfmatch.core.line_search import MatchCandidate, ViewResult
from lfmatch.core.views import ViewSet

SCHEMA_VERSION = "lfmatch.correspondences.v0"


def _result_to_dict(r: ViewResult, viewset: Optional[ViewSet]) -> dict[str, Any]:
    out: dict[str, Any] = {
        "view_index": int(r.view_index),
        "status": r.status,
        "step": None if r.step is None else [float(r.step[0]), float(r.step[1])],
        "steps_taken": int(r.steps_taken),
        "truncated": bool(r.truncated),
        "best": None,
    }
    if r.best is not None:
        out["best"] = {"pixel": [int(r.best.position[0]), int(r.best.position[1])], "ssd": float(r.best.score)}
    if viewset is not None:
        out["camera_position"] = [float(v) for v in viewset[r.view_index].position]
    return out


def record_to_dict(record: CorrespondenceRecord, viewset: Optional[ViewSet] = None) -> dict[str, Any]:
    meta: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "reference": {
            "view_index": int(record.reference_view_index),
            "pixel": [float(record.reference_pixel[0]), float(record.reference_pixel[1])],
        },
        "views": [_result_to_dict(r, viewset) for r in record.results],
    }
    if viewset is not None:
        h, w, c = viewset.image_shape
        meta["image"] = {"width_px": w, "height_px": h, "channels": c}
        meta["reference"]["camera_position"] = [float(v) for v in viewset[record.reference_view_index].position]
    return meta


def save_correspondence_record(path: Path, record: CorrespondenceRecord, viewset: Optional[ViewSet] = None) -> Path:
    """
    Save a correspondence record as JSON.

    Camera positions and the image shape are included when `viewset` is given.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(record_to_dict(record, viewset), indent=2, sort_keys=True), encoding="utf-8")
    return path


def record_from_dict(meta: dict[str, Any]) -> CorrespondenceRecord:
    if str(meta.get("schema_version")) != SCHEMA_VERSION:
        raise ValueError("unsupported correspondence record schema")

    ref = meta["reference"]
    results = []
    for v in meta["views"]:
        best = v.get("best")
        step = v.get("step")
        results.append(
            ViewResult(
                view_index=int(v["view_index"]),
                status=str(v["status"]),  # type: ignore[arg-type]
                best=None
                if best is None
                else MatchCandidate(position=(int(best["pixel"][0]), int(best["pixel"][1])), score=float(best["ssd"])),
                step=None if step is None else (float(step[0]), float(step[1])),
                steps_taken=int(v.get("steps_taken", 0)),
                truncated=bool(v.get("truncated", False)),
            )
        )
    return CorrespondenceRecord(
        reference_view_index=int(ref["view_index"]),
        reference_pixel=(float(ref["pixel"][0]), float(ref["pixel"][1])),
        results=tuple(results),
    )


def load_correspondence_record(path: Path) -> CorrespondenceRecord:
    meta = json.loads(Path(path).read_text(encoding="utf-8"))
    return record_from_dict(meta)
