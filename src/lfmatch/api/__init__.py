from lfmatch.api.correspondence import CorrespondenceRecord, CorrespondenceSearch, center_view_index, find_correspondences
from lfmatch.api.record_io import load_correspondence_record, save_correspondence_record

__all__ = [
    "CorrespondenceRecord",
    "CorrespondenceSearch",
    "center_view_index",
    "find_correspondences",
    "load_correspondence_record",
    "save_correspondence_record",
]
