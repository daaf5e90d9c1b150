"""Domain exceptions for the video enrichment hub."""


class DomainException(Exception):
    """Base exception for domain errors."""


class ValidationException(DomainException):
    """Raised when client input is rejected. Never retried."""


class InvalidVideoUrlException(ValidationException):
    """Raised when a video source URL is empty or malformed."""

    def __init__(self, url: str, reason: str = "Invalid URL") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid video URL '{url}': {reason}")


class InvalidCallbackPayloadException(ValidationException):
    """Raised when a worker callback does not match the callback contract."""

    def __init__(self, artifact: str, reason: str) -> None:
        self.artifact = artifact
        self.reason = reason
        super().__init__(f"Invalid {artifact} payload: {reason}")


class VideoNotFoundException(DomainException):
    """Raised when a requested video is not found."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Video not found: {video_id}")


class DurationExceededException(DomainException):
    """Raised when a video is longer than the configured ceiling."""

    def __init__(self, url: str, duration_seconds: int, limit_seconds: int) -> None:
        self.url = url
        self.duration_seconds = duration_seconds
        self.limit_seconds = limit_seconds
        super().__init__(
            f"Video '{url}' is {duration_seconds}s long, "
            f"exceeding the limit of {limit_seconds}s"
        )


class StorageException(DomainException):
    """Raised when the persistence layer fails. Fatal for the request."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Storage failure during {operation}: {reason}")


class ExternalServiceException(DomainException):
    """Raised when an external collaborator fails or times out."""

    def __init__(self, service: str, reason: str) -> None:
        self.service = service
        self.reason = reason
        super().__init__(f"{service} failed: {reason}")


class MetadataUnavailableException(ExternalServiceException):
    """Raised when video metadata cannot be fetched."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__("metadata_provider", reason)


class WorkerDispatchException(ExternalServiceException):
    """Raised when the enrichment worker does not acknowledge a dispatch."""

    def __init__(self, video_id: str, reason: str) -> None:
        self.video_id = video_id
        super().__init__("enrichment_worker", reason)


class EmbeddingException(ExternalServiceException):
    """Raised when embedding generation fails."""

    def __init__(self, reason: str) -> None:
        super().__init__("embedding_service", reason)


class VectorStoreException(ExternalServiceException):
    """Raised when a vector index operation fails."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        super().__init__("vector_store", f"{operation}: {reason}")


class EmptyTranscriptException(DomainException):
    """Raised when a transcript has no indexable text."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Transcript for video {video_id} is empty")
