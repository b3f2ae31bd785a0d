"""Exception hierarchy for upstream service and configuration failures."""


class WalletPnLError(Exception):
    """Base class for all walletpnl errors."""


class ConfigurationError(WalletPnLError):
    """A required setting (API key, wallet list) is missing."""


class ExternalServiceError(WalletPnLError):
    """An upstream API returned an error that retrying will not fix."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientServiceError(ExternalServiceError):
    """Rate limit (429) or server-side (5xx) failure. Safe to retry."""
