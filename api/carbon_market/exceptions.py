"""
Business-rule errors raised by the ledger services.

Every error carries the HTTP status it maps to; the API layer turns any
CarbonMarketError into a JSON response, so services never import FastAPI.
"""


class CarbonMarketError(Exception):
    """Base class for all marketplace rejections."""

    status_code = 400
    message = "Request rejected"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class NotFoundError(CarbonMarketError):
    status_code = 404
    message = "Not found"


class AlreadySoldError(CarbonMarketError):
    status_code = 409
    message = "Listing already sold"


class SelfTradeError(CarbonMarketError):
    status_code = 400
    message = "Organizations cannot buy their own listings"


class InsufficientFundsError(CarbonMarketError):
    status_code = 400
    message = "Insufficient funds"


class InsufficientCreditsError(CarbonMarketError):
    status_code = 400
    message = "Insufficient credits"


class InvalidOrganizationError(CarbonMarketError):
    status_code = 400
    message = "Invalid organization"


class UnauthorizedError(CarbonMarketError):
    status_code = 403
    message = "Unauthorized"


class DuplicateLogError(CarbonMarketError):
    status_code = 409
    message = "Commute already logged for this date"


class DuplicateUsernameError(CarbonMarketError):
    status_code = 409
    message = "Username already registered"


class InvalidTransitionError(CarbonMarketError):
    """Organization review is terminal: pending -> approved|rejected once."""

    status_code = 409
    message = "Organization has already been reviewed"


class CommuteDistanceRequiredError(CarbonMarketError):
    status_code = 400
    message = "Set your commute distance before logging commutes"


class CommuteDistanceLockedError(CarbonMarketError):
    status_code = 409
    message = "Commute distance has already been set"


class InvalidRequestError(CarbonMarketError):
    status_code = 400
    message = "Invalid request"
