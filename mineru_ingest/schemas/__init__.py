from mineru_ingest.schemas.archives import (
    ErrorDetail,
    ErrorResponse,
    ExtractionErrors,
    ExtractionResponse,
    PipelineProgressEvent,
    PipelineStage,
    SegmentPayload,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "ExtractionErrors",
    "ExtractionResponse",
    "PipelineProgressEvent",
    "PipelineStage",
    "SegmentPayload",
]
