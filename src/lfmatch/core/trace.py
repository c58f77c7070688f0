from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SampleEvent:
    view_index: int
    pixel: tuple[int, int]
    is_reference: bool


@dataclass
class SampleTrace:
    """
    Debug hook that records every sampled pixel, per view.

    Usable as `SearchConfig(debug_hook=trace)`; safe to share between the
    worker threads of one query.
    """

    events: list[SampleEvent] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __call__(self, view_index: int, pixel: tuple[int, int], is_reference: bool) -> None:
        event = SampleEvent(view_index=int(view_index), pixel=(int(pixel[0]), int(pixel[1])), is_reference=bool(is_reference))
        with self._lock:
            self.events.append(event)

    def positions_for(self, view_index: int) -> list[tuple[int, int]]:
        with self._lock:
            return [e.pixel for e in self.events if e.view_index == view_index]

    def views(self) -> list[int]:
        with self._lock:
            return sorted({e.view_index for e in self.events})

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"schema_version": "lfmatch.sample_trace.v0", "views": {}}
        with self._lock:
            events = list(self.events)
        for e in events:
            entry = out["views"].setdefault(str(e.view_index), {"is_reference": e.is_reference, "pixels": []})
            entry["pixels"].append([e.pixel[0], e.pixel[1]])
        return out
