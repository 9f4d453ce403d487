"""Application-level error types."""


class PipetopoError(Exception):
    """Base error for pipetopo."""


class PipelineError(PipetopoError):
    """Raised when pipeline loading/validation fails."""


class TranslationError(PipetopoError):
    """Raised when a decomposition cannot be translated into manifests."""


class NodeResolutionError(TranslationError):
    """Raised when a chain member does not resolve to a function reference."""
