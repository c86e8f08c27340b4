"""Mi Store exception hierarchy."""


class StoreError(Exception):
    """Base exception for all Mi Store errors."""

    def __init__(self, message: str = "", code: str = "STORE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(StoreError):
    """Raised when input is missing or malformed. Never retried."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, code="VALIDATION")


class NotFoundError(StoreError):
    """Raised when a record cannot be found in the database."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND")


class AppNotFoundError(NotFoundError):
    """Raised when an app record cannot be found."""

    def __init__(self, message: str = "App not found"):
        super().__init__(message)


class AuthenticationError(StoreError):
    """Raised when credentials or a session cookie are missing or wrong."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="UNAUTHENTICATED")


class PaymentRequiredError(StoreError):
    """Raised when a paid artifact is requested without a confirmed payment."""

    def __init__(self, message: str = "Payment required"):
        super().__init__(message, code="PAYMENT_REQUIRED")


class GatewayError(StoreError):
    """Raised when the object store or payment processor call fails."""

    def __init__(self, message: str = "Upstream service failed", code: str = "GATEWAY"):
        super().__init__(message, code=code)


class UploadError(GatewayError):
    """Raised when an object upload fails."""

    def __init__(self, message: str = "Upload failed"):
        super().__init__(message, code="UPLOAD")


class SignatureError(StoreError):
    """Raised when a webhook payload fails its authenticity check."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, code="BAD_SIGNATURE")
