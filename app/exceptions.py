# app/exceptions.py
from typing import List, Optional


class OrderServiceError(Exception):
    """Base class for errors the API turns into a JSON ``{message}`` body."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_body(self, include_detail: bool = False) -> dict:
        body = {"message": self.message}
        if include_detail and self.detail:
            body["error"] = self.detail
        return body


class ValidationError(OrderServiceError):
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])

    def to_body(self, include_detail: bool = False) -> dict:
        return {"message": self.message, "errors": self.errors}


class NotFoundError(OrderServiceError):
    status_code = 404

    def __init__(self, message: str = "Order not found"):
        super().__init__(message)


class DuplicateKeyError(OrderServiceError):
    status_code = 400

    def __init__(self, message: str = "Order number already exists", detail: Optional[str] = None):
        super().__init__(message, detail)


class NotificationError(OrderServiceError):
    status_code = 500

    def __init__(self, message: str = "Failed to send email", detail: Optional[str] = None):
        super().__init__(message, detail)


class StoreError(OrderServiceError):
    status_code = 500
