"""Error types shared by the function handlers and the REST routers."""
from typing import Optional


class FunctionError(Exception):
    """A handled failure that maps directly to a JSON error response.

    ``extra`` keys are merged into the response body next to ``error`` and
    ``code`` (e.g. ``distance`` for geofence rejections).
    """

    def __init__(self, status_code: int, message: str, code: Optional[str] = None, **extra):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.code:
            body["code"] = self.code
        body.update(self.extra)
        return body


class BackendError(Exception):
    """Raised by BackendClient for non-2xx answers and transport failures."""

    def __init__(self, status_code: int, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error_code = error_code

    @property
    def already_registered(self) -> bool:
        if self.error_code == "email_exists":
            return True
        # "User already registered" / "...has already been registered"
        message = (self.message or "").lower()
        return "already" in message and "registered" in message

    def __str__(self):
        return f"{self.message} (status {self.status_code})"
