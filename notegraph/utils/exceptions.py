"""
Custom exception hierarchy for NoteGraph.

Provides structured error types for the indexing pipeline.
All exceptions inherit from NoteGraphError for easy catching.
"""


class NoteGraphError(Exception):
    """
    Base exception for all NoteGraph errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize NoteGraph error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StoreError(NoteGraphError):
    """
    Base exception for store operations.
    Used for errors related to data storage operations.
    """

    pass


class RecordStoreError(StoreError):
    """
    Record store operation errors.
    Raised when note, knowledge, topic or interest persistence fails.
    """

    pass


class VectorStoreError(StoreError):
    """
    Vector store operation errors.
    Raised when note vector persistence fails.
    """

    pass


class ValidationError(NoteGraphError):
    """
    Validation errors.
    Raised when input validation fails or data is invalid.
    """

    pass


class NotFoundError(NoteGraphError):
    """
    Resource not found errors.
    Raised when a requested note, topic or portfolio doesn't exist.
    """

    pass


class ConfigurationError(NoteGraphError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass


class EmbeddingError(NoteGraphError):
    """
    Embedding generation errors.
    Raised when embedding generation fails.
    """

    pass


class LLMError(NoteGraphError):
    """
    LLM operation errors.
    Raised when LLM operations fail (API errors, timeouts, etc.).
    """

    pass


class ExtractionError(LLMError):
    """
    Extraction errors.
    Raised when the extraction call fails or its output cannot be parsed.
    """

    pass


class VisionError(NoteGraphError):
    """
    Vision description errors.
    Raised by vision providers when an image cannot be described.
    """

    pass


class IndexingError(NoteGraphError):
    """
    Indexing run errors.
    Raised when a fatal step of a note indexing run fails.
    """

    pass
