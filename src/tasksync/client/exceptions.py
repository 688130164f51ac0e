class ApiError(Exception):
    """Raised when the task API answers with a non-success status."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        super().__init__(f"Task API returned {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class CredentialRejectedError(Exception):
    """The server refused the session credential (HTTP 401 or a refused handshake)."""


class RealtimeDisconnectedError(Exception):
    """The realtime channel could not be opened or dropped; safe to retry."""
