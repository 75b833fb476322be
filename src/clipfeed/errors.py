"""Error taxonomy shared by the services and their HTTP, MCP and CLI wrappers."""


class ClipFeedError(Exception):
    """Base class for every error clipfeed raises on purpose.

    ``status_code`` and ``reason`` are what the HTTP layer reports
    back to clients; the message is the human-readable part.
    """

    status_code = 500
    reason = "error"


class ValidationError(ClipFeedError):
    """A required field is missing or empty."""

    status_code = 400
    reason = "validation"


class UnsupportedMediaError(ClipFeedError):
    """The upload's declared MIME type is not in the allow-set."""

    status_code = 400
    reason = "unsupported_media"


class PayloadTooLargeError(ClipFeedError):
    """The upload exceeds the configured size ceiling."""

    status_code = 400
    reason = "payload_too_large"


class NotFoundError(ClipFeedError):
    """No video exists with the requested id."""

    status_code = 404
    reason = "not_found"


class StorageFailure(ClipFeedError):
    """A file write or a store operation failed.

    Safe for the client to retry; never retried server-side.
    """

    status_code = 500
    reason = "storage_failure"
