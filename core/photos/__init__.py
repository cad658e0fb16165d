"""
Lead Photos

Photo storage, condition analysis (vision model with a deterministic
heuristic fallback) and the merge/engine/adjust pipeline that turns photo
evidence into a valuation.
"""

from core.photos.storage import PhotoRecord, PhotoStorage, get_photo_storage
from core.photos.analysis import (
    HEURISTIC_MODEL,
    heuristic_from_photo_count,
    parse_vision_payload,
)
from core.photos.vision import VisionAPIError, VisionClient
from core.photos.pipeline import (
    PipelineResult,
    SignalMerge,
    merge_photo_signals,
    run_photo_pipeline,
)

__all__ = [
    # Storage
    "PhotoRecord",
    "PhotoStorage",
    "get_photo_storage",
    # Analysis
    "HEURISTIC_MODEL",
    "heuristic_from_photo_count",
    "parse_vision_payload",
    "VisionAPIError",
    "VisionClient",
    # Pipeline
    "PipelineResult",
    "SignalMerge",
    "merge_photo_signals",
    "run_photo_pipeline",
]
