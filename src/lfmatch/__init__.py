from lfmatch import errors
from lfmatch.api import (
    CorrespondenceRecord,
    CorrespondenceSearch,
    center_view_index,
    find_correspondences,
    load_correspondence_record,
    save_correspondence_record,
)
from lfmatch.config import SearchConfig
from lfmatch.core.geometry import average_position, closest_view
from lfmatch.core.views import View, ViewSet

__all__ = [
    "errors",
    "SearchConfig",
    "View",
    "ViewSet",
    "average_position",
    "closest_view",
    "center_view_index",
    "CorrespondenceRecord",
    "CorrespondenceSearch",
    "find_correspondences",
    "load_correspondence_record",
    "save_correspondence_record",
]
