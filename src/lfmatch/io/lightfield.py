from __future__ import annotations

import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional

from lfmatch.core.image_io import ColorMode, decode_u8, load_u8
from lfmatch.core.views import View, ViewSet
from lfmatch.errors import EmptyViewSet

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".webp", ".bmp", ".tif", ".tiff")

# Stanford light field archive naming: out_<row>_<col>_<y>_<x>_.<ext>
_FLOAT = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_VIEW_NAME = re.compile(rf"^out_(\d+)_(\d+)_({_FLOAT})_({_FLOAT})_?$")


@dataclass(frozen=True)
class ViewName:
    row: int
    col: int
    x: float
    y: float


def parse_view_filename(name: str) -> Optional[ViewName]:
    """
    Parse the grid index and camera position encoded in a view file name.

    Returns None for names that do not follow the archive convention.
    """
    p = PurePosixPath(name)
    if p.suffix.lower() not in IMAGE_SUFFIXES:
        return None
    m = _VIEW_NAME.match(p.stem)
    if m is None:
        return None
    row, col, y, x = m.groups()
    return ViewName(row=int(row), col=int(col), x=float(x), y=float(y))


def load_lightfield(path: str | Path, *, mode: ColorMode = "RGB") -> ViewSet:
    """
    Load a light field from a directory or a .zip archive of view images.

    Views are ordered by (row, col) of their file names, then validated to share
    one image shape.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing {p}")

    if p.is_dir():
        entries = _load_directory(p, mode)
    elif zipfile.is_zipfile(p):
        entries = _load_zip(p, mode)
    else:
        raise ValueError(f"{p} is neither a directory nor a zip archive")

    if not entries:
        raise EmptyViewSet(f"{p} contains no light-field views")

    entries.sort(key=lambda e: (e[0].row, e[0].col))
    viewset = ViewSet(View.create((name.x, name.y), image) for name, image in entries).validate()
    h, w, c = viewset.image_shape
    logger.info("loaded %d views (%dx%dx%d) from %s", len(viewset), w, h, c, p)
    return viewset


def _load_directory(root: Path, mode: ColorMode) -> list:
    entries = []
    for f in sorted(root.iterdir()):
        if not f.is_file():
            continue
        name = parse_view_filename(f.name)
        if name is None:
            logger.debug("skipping %s", f)
            continue
        entries.append((name, load_u8(f, mode)))
    return entries


def _load_zip(archive: Path, mode: ColorMode) -> list:
    entries = []
    with zipfile.ZipFile(archive) as zf:
        for info in sorted(zf.infolist(), key=lambda i: i.filename):
            if info.is_dir():
                continue
            # Archives often nest the views in a top-level folder.
            name = parse_view_filename(PurePosixPath(info.filename).name)
            if name is None:
                logger.debug("skipping %s:%s", archive, info.filename)
                continue
            entries.append((name, decode_u8(zf.read(info), mode)))
    return entries
