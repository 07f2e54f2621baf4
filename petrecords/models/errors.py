from __future__ import annotations


class RecordServiceError(Exception):
    """A medical-record operation failed at a known step.

    ``message`` is safe to show to the end user; ``status_code`` is the
    backend HTTP status, or 0 when no response was received.
    """

    def __init__(
        self,
        kind: str,
        step: str,
        message: str,
        status_code: int = 0,
        request_id: str | None = None,
    ):
        self.kind = kind
        self.step = step
        self.message = message
        self.status_code = status_code
        self.request_id = request_id or ""
        super().__init__(message)


class StorageError(Exception):
    def __init__(self, key: str, message: str):
        self.key = key
        self.message = message
        super().__init__(f"{key}: {message}")
