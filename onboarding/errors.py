from typing import Any, Optional


class OnboardingError(Exception):
    """Base error; carries the HTTP status returned to callers"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(OnboardingError):
    """Network failure, non-2xx status or unreadable body from the provider"""

    def __init__(self, message: str, upstream_status: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class NotFoundError(OnboardingError):
    """No session stored for the identifier, or the identifier is malformed"""

    status_code = 400


class CorruptError(OnboardingError):
    """Stored session payload could not be parsed"""

    status_code = 400


class ValidationError(OnboardingError):
    """Required caller input is missing"""

    status_code = 400


class MalformedUpstreamResponse(OnboardingError):
    """Provider answered 2xx but an expected field is absent"""


class ContractSourceError(OnboardingError):
    """Contract document could not be loaded from disk"""
