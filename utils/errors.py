class CarbonTrackerError(Exception):
    """Base error. Carries the HTTP status the API answers with."""
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'error': self.message}


class InvalidInput(CarbonTrackerError):
    status_code = 400


class NotFound(CarbonTrackerError):
    status_code = 404


class ProviderError(CarbonTrackerError):
    """Raised for failures of the mapping/search provider."""
    status_code = 502


class ProviderUnavailable(ProviderError):
    status_code = 503


class QuotaExceeded(ProviderError):
    status_code = 429


class BillingDisabled(ProviderError):
    status_code = 403
