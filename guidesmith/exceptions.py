"""Custom exceptions for the Guidesmith application."""


class GuidesmithError(Exception):
    """Base exception for Guidesmith."""

    status_code = 500


class NotFoundError(GuidesmithError):
    """Exception raised when a requested record does not exist."""

    status_code = 404


class SessionNotFoundError(NotFoundError):
    """Exception raised for unknown session ids."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class PreconditionFailedError(GuidesmithError):
    """Exception raised when a workflow stage is attempted too early."""

    status_code = 409


class GenerationError(GuidesmithError):
    """Exception raised when the language model call fails."""

    status_code = 502


class StorageError(GuidesmithError):
    """Exception raised for persistence failures."""

    pass


class CaptureError(StorageError):
    """Exception raised when a research page cannot be fetched or extracted."""

    status_code = 502

    def __init__(self, url: str, message: str):
        self.url = url
        self.message = message
        super().__init__(f"Capture failed for {url}: {message}")
