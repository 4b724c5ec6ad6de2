from .resolution import (
    ExtractedFile,
    FetchError,
    FetchOutcome,
    MediaKind,
    ResolutionErrorKind,
    ResolutionRequest,
    ResolvedStream,
    StageError,
    StageInput,
    StageOutcome,
    TerminalResult,
)

__all__ = [
    "ExtractedFile",
    "FetchError",
    "FetchOutcome",
    "MediaKind",
    "ResolutionErrorKind",
    "ResolutionRequest",
    "ResolvedStream",
    "StageError",
    "StageInput",
    "StageOutcome",
    "TerminalResult",
]
