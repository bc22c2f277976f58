"""
Content Processor Types

Per-request state, cancellation, caller-facing request/response objects and
the fold accumulator used by the chunk loop.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional

from ...exceptions import InvalidStateTransitionError, ProcessingCancelledError
from ..document_processor.analysis import DocumentAnalysis

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class ProcessingState(Enum):
    """Lifecycle of one processing request."""
    IDLE = "idle"
    ANALYZING = "analyzing"
    SINGLE_SHOT = "single_shot"
    CHUNKING = "chunking"
    MERGING = "merging"
    DONE = "done"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


ALLOWED_TRANSITIONS: Dict[ProcessingState, FrozenSet[ProcessingState]] = {
    ProcessingState.IDLE: frozenset({ProcessingState.ANALYZING, ProcessingState.FAILED}),
    ProcessingState.ANALYZING: frozenset({
        ProcessingState.SINGLE_SHOT, ProcessingState.CHUNKING, ProcessingState.FAILED
    }),
    ProcessingState.SINGLE_SHOT: frozenset({ProcessingState.MERGING, ProcessingState.FAILED}),
    ProcessingState.CHUNKING: frozenset({ProcessingState.MERGING, ProcessingState.FAILED}),
    ProcessingState.MERGING: frozenset({ProcessingState.DONE, ProcessingState.FAILED}),
    ProcessingState.DONE: frozenset(),
    ProcessingState.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({ProcessingState.DONE, ProcessingState.FAILED})


@dataclass
class ProcessingRequest:
    """
    Mutable state of a single reformat or rewrite call.

    Created per call and never shared; the processor itself holds no
    per-request state.
    """
    mode: str
    state: ProcessingState = ProcessingState.IDLE
    history: List[ProcessingState] = field(default_factory=list)
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    def transition(self, target: ProcessingState) -> None:
        """
        Move to target.

        Raises:
            InvalidStateTransitionError: If target is not reachable from the current state
        """
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidStateTransitionError(self.state.value, target.value)
        logger.debug(f"[{self.request_id}] {self.mode}: {self.state.value} -> {target.value}")
        self.history.append(self.state)
        self.state = target

    def fail(self) -> None:
        """Move to FAILED unless the request already finished."""
        if self.state not in TERMINAL_STATES:
            self.transition(ProcessingState.FAILED)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


class CancellationToken:
    """
    Caller-owned cancellation flag, safe to set from another thread.

    Example:
        >>> token = CancellationToken()
        >>> token.cancel()
        >>> token.is_cancelled
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, chunks_processed: int = 0, total_chunks: int = 0) -> None:
        """
        Raises:
            ProcessingCancelledError: If cancel() has been called
        """
        if self._event.is_set():
            raise ProcessingCancelledError(
                chunks_processed=chunks_processed,
                total_chunks=total_chunks
            )


@dataclass(frozen=True)
class MergeAccumulator:
    """Fold state of the chunk loop."""
    merged_text: str = ""
    chunks_processed: int = 0


@dataclass
class RewriteContext:
    """
    Text surrounding the region being rewritten.

    Attributes:
        before: Document text preceding the region
        after: Document text following the region
        document_structure: Optional caller-supplied outline of the document
        full_document: The whole document; before + content + after when omitted
    """
    before: str = ""
    after: str = ""
    document_structure: str = ""
    full_document: Optional[str] = None


@dataclass
class ReformatResponse:
    """Result of a reformat request. On failure content holds the unchanged input."""
    success: bool
    content: str
    error: Optional[str] = None
    chunks_processed: int = 0
    total_chunks: int = 1
    state: ProcessingState = ProcessingState.DONE


@dataclass
class RewriteResponse(ReformatResponse):
    """Result of a rewrite request, with the document profile used to build prompts."""
    analysis: Optional[DocumentAnalysis] = None
