from __future__ import annotations

import io
from pathlib import Path
from typing import Literal

import numpy as np
from PIL import Image

ColorMode = Literal["L", "RGB"]


def _as_hwc(arr: np.ndarray) -> np.ndarray:
    if arr.ndim == 2:
        arr = arr[:, :, None]
    if arr.dtype != np.uint8:
        arr = np.clip(arr, 0, 255).astype(np.uint8)
    return np.ascontiguousarray(arr)


def _from_cv2(img: np.ndarray, mode: ColorMode) -> np.ndarray:
    import cv2  # type: ignore

    if mode == "RGB":
        img = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    return _as_hwc(img)


def load_u8(path: str | Path, mode: ColorMode = "RGB") -> np.ndarray:
    """
    Load an image file as uint8 shaped (H, W, C), C=1 for "L" and C=3 for "RGB".

    Primary backend is OpenCV (if installed). Pillow is used as a fallback.
    """
    p = Path(path)
    try:
        import cv2  # type: ignore

        flag = cv2.IMREAD_GRAYSCALE if mode == "L" else cv2.IMREAD_COLOR
        img = cv2.imread(str(p), flag)
        if img is not None:
            return _from_cv2(img, mode)
    except ImportError:
        # Fall back to Pillow below.
        pass

    with Image.open(p) as im:
        arr = np.asarray(im.convert(mode), dtype=np.uint8)
    return _as_hwc(arr)


def decode_u8(data: bytes, mode: ColorMode = "RGB") -> np.ndarray:
    """Same as `load_u8` for an in-memory encoded image (e.g. a zip member)."""
    try:
        import cv2  # type: ignore

        flag = cv2.IMREAD_GRAYSCALE if mode == "L" else cv2.IMREAD_COLOR
        img = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), flag)
        if img is not None:
            return _from_cv2(img, mode)
    except ImportError:
        pass

    with Image.open(io.BytesIO(data)) as im:
        arr = np.asarray(im.convert(mode), dtype=np.uint8)
    return _as_hwc(arr)
