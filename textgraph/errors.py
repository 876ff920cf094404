"""Error kinds raised by the extraction and graph synthesis engine."""


class GraphError(Exception):
    """Base exception for textgraph operations."""
    pass


class TextProcessingError(GraphError):
    """Raised when input text is empty or cannot be processed."""
    pass


class EntityExtractionError(GraphError):
    """Raised when extraction cannot run at all."""
    pass


class LLMExtractionError(EntityExtractionError):
    """Raised by the LLM adapter on request, status or parse failures.

    The extraction orchestrator always recovers from this by falling back to
    pattern-based extraction for the affected fact kind.
    """
    pass


class ConfigurationError(GraphError):
    """Raised for invalid configuration values."""
    pass


class PatternCompileError(EntityExtractionError, ConfigurationError):
    """Raised when a configured regular expression does not compile."""

    def __init__(self, pattern: str, error: str) -> None:
        super().__init__(f"Invalid pattern {pattern!r}: {error}")
        self.pattern = pattern


class GraphBuildingError(GraphError):
    """Raised when a built graph would violate its structural invariants."""
    pass


class ExportError(GraphError):
    """Raised when a graph cannot be exported."""
    pass
