from typing import Any, Dict, List, Optional

from fastapi import status


class PlantCareError(Exception):
    """
    Base class for errors the API reports to clients.

    Each subclass fixes the HTTP status it maps to; the handler in main.py
    renders ``to_dict()`` as the response body.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message}


class AuthenticationError(PlantCareError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class PermissionDeniedError(PlantCareError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You don't have permission to perform this action"


class NotFoundError(PlantCareError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ValidationError(PlantCareError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        self.errors = list(errors or [])
        if message is None and self.errors:
            message = self.errors[0].message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.errors:
            data["errors"] = [{"field": e.field, "message": e.message} for e in self.errors]
        return data


class ConflictError(PlantCareError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Conflict"


class RateLimitError(PlantCareError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."

    def __init__(self, message: Optional[str] = None, retry_after: int = 0):
        self.retry_after = retry_after
        super().__init__(message)


class FeatureDisabledError(PlantCareError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "This feature is not configured"


class IntegrationError(PlantCareError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "External service error"
