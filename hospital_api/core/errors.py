from fastapi import HTTPException, status


class HospitalError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: str = None, headers: dict = None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.default_message,
            headers=headers,
        )

    @property
    def message(self) -> str:
        return self.detail


class ValidationError(HospitalError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class InvalidTransitionError(ValidationError):
    default_message = "Invalid status transition"


class InvalidPaymentError(ValidationError):
    default_message = "Invalid payment"


class InsufficientStockError(ValidationError):
    def __init__(self, name: str, available: int, requested: int):
        self.item_name = name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {name}. Available: {available}, requested: {requested}"
        )


class AuthenticationError(HospitalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"

    def __init__(self, message: str = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class AccountDisabledError(AuthenticationError):
    default_message = "Account is deactivated. Please contact administrator."


class AuthorizationError(HospitalError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(HospitalError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(HospitalError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"
