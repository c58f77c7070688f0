from __future__ import annotations


class CorrespondenceError(Exception):
    """Base class for every error raised by the correspondence search."""


class EmptyViewSet(CorrespondenceError, ValueError):
    pass


class InconsistentViewGeometry(CorrespondenceError, ValueError):
    pass


class DegenerateGeometry(CorrespondenceError, ValueError):
    """Reference and target views sit at the same camera position."""


class OutOfBounds(CorrespondenceError, IndexError):
    """
    The (2R+1)x(2R+1) window around a rounded pixel does not fit inside the image.

    Inside a directional walk this is the normal termination signal; on the
    reference pixel it aborts the query.
    """

    def __init__(self, position: tuple[int, int], radius: int, size: tuple[int, int]) -> None:
        self.position = position
        self.radius = radius
        self.size = size
        super().__init__(f"patch of radius {radius} at {position} exceeds image size {size}")
