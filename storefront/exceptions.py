"""
Exception classes for the storefront.

Handlers translate these into rendered pages or redirects; none of them
carry details that are shown to the client.
"""


class StorefrontException(Exception):
    """
    Base exception for all storefront errors.

    Attributes:
        message: Human-readable error message (server side only)
        details: Optional dict with additional context for logs
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class LoginRequired(StorefrontException):
    """Raised when an anonymous visitor hits a route that needs a session user."""

    def __init__(self, path: str | None = None):
        super().__init__("login required", details={'path': path} if path else None)


class UserException(StorefrontException):
    """Base exception for account errors."""
    pass


class DuplicateEmailError(UserException):
    """Raised when registering an email that already has an account."""

    def __init__(self, email: str):
        super().__init__(f"Email {email} already in use", details={'email': email})
        self.email = email


class PaymentException(StorefrontException):
    """Base exception for payment-verification errors."""
    pass


class PaymentConfigurationError(PaymentException):
    """Raised when the gateway secret key is missing or unusable."""

    def __init__(self, setting: str = "PAYSTACK_SECRET_KEY", problem: str = "is not set"):
        super().__init__(f"{setting} {problem}", details={'setting': setting})


class PaymentVerificationError(PaymentException):
    """Raised when the gateway could not be reached or answered with garbage."""

    def __init__(self, reference: str, reason: str):
        super().__init__(
            f"Could not verify payment {reference}: {reason}",
            details={'reference': reference},
        )
        self.reference = reference
        self.reason = reason
