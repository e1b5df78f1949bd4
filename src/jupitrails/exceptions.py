"""Error taxonomy for quoting, routing and swap execution."""

from typing import Optional


class JupitrailsError(Exception):
    """Base class for all package errors."""

    pass


class NetworkError(JupitrailsError):
    """Transport failure or non-success HTTP response.

    Carries the HTTP status and response body when the server answered.
    """

    def __init__(
        self,
        message: str,
        http_status: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.http_status = http_status
        self.body = body

    def __str__(self) -> str:
        detail = []
        if self.http_status is not None:
            detail.append(f"status={self.http_status}")
        if self.body:
            detail.append(f"body={self.body[:200]}")
        if detail:
            return f"{self.message} ({', '.join(detail)})"
        return self.message


class InvalidQuoteError(JupitrailsError):
    """Response carried no usable quote or swap payload."""

    pass


class WalletNotConnected(JupitrailsError):
    """Wallet is not connected or has no address."""

    pass


class SigningRejected(JupitrailsError):
    """User rejected signing or the wallet failed to sign."""

    pass


class SubmissionError(JupitrailsError):
    """Signed transaction could not be submitted to the chain."""

    pass


class ConfirmationTimeout(JupitrailsError):
    """Transaction was not resolved within the confirmation bound."""

    pass


class ConfirmationFailed(JupitrailsError):
    """Transaction landed but failed on-chain."""

    pass


class SwapInProgressError(JupitrailsError):
    """A swap execution is already pending or confirming."""

    pass
