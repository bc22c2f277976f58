"""
Content Processor Package

Orchestration of reformat and rewrite requests: the chunking decision, the
chunk loop, response cleaning and result merging.

Components:
- config: ProcessingConfig thresholds and merge windows
- types: Request state machine, cancellation and response objects
- cleaning: Response cleaning rules
- merge: Chunk result merging
- processor: ContentProcessor
"""

from .config import ProcessingConfig
from .types import (
    ProcessingState,
    ProcessingRequest,
    CancellationToken,
    MergeAccumulator,
    RewriteContext,
    ReformatResponse,
    RewriteResponse,
    ProgressCallback,
)
from .cleaning import CleaningRule, CleaningReport, clean_response, clean_response_with_report
from .merge import find_overlap, merge_texts, merge_all
from .processor import ContentProcessor

__all__ = [
    "ProcessingConfig",
    "ProcessingState",
    "ProcessingRequest",
    "CancellationToken",
    "MergeAccumulator",
    "RewriteContext",
    "ReformatResponse",
    "RewriteResponse",
    "ProgressCallback",
    "CleaningRule",
    "CleaningReport",
    "clean_response",
    "clean_response_with_report",
    "find_overlap",
    "merge_texts",
    "merge_all",
    "ContentProcessor",
]
