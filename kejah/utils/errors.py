"""Error handling utilities."""


class KejahError(Exception):
    """Base exception for the Kejah listings backend."""
    pass


class ValidationError(KejahError, ValueError):
    """Malformed listing, filter or submission input."""
    pass


class NotFoundError(KejahError):
    """Operation targets a record that does not exist."""
    pass


class ProviderMismatch(KejahError):
    """Account is bound to a different authentication provider."""

    def __init__(self, bound_provider: str, attempted_provider: str):
        self.bound_provider = bound_provider
        self.attempted_provider = attempted_provider
        super().__init__(
            f"This account was created with {bound_provider}. "
            f"Please sign in with {bound_provider} instead of {attempted_provider}."
        )


class AuthenticationError(KejahError):
    """Credentials, verification code or session rejected."""
    pass


class BackendUnavailable(KejahError):
    """Remote backend call failed or no backend could be configured."""
    pass
