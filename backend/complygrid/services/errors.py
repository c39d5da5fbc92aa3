"""
Domain exceptions raised by ComplyGrid services.

Routes translate these into HTTP responses. Anything that escapes a route is
mapped by ErrorHandlingMiddleware (NotFoundError -> 404, ValueError -> 400).
"""

from typing import Optional


class ComplyGridError(Exception):
    """Base class for service-layer errors"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ComplyGridError):
    """A referenced resource does not exist or belongs to another organization"""

    resource = "Resource"

    def __init__(self, identifier: Optional[str] = None, message: Optional[str] = None):
        self.identifier = identifier
        super().__init__(message or f"{self.resource} not found")


class FrameworkNotFoundError(NotFoundError):
    resource = "Framework"


class VendorNotFoundError(NotFoundError):
    resource = "Vendor"


class RiskNotFoundError(NotFoundError):
    resource = "Risk"


class RegulatoryChangeNotFoundError(NotFoundError):
    resource = "Regulatory change"


class InvalidRiskParameterError(ComplyGridError, ValueError):
    """Likelihood, impact or effectiveness outside the accepted scale"""
