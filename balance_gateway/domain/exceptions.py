"""Domain-specific exceptions"""

from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class BackendAPIError(DomainException):
    """Payments backend returned an error or is unavailable"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class BalanceLoadError(DomainException):
    """One of the balance datasets could not be loaded"""

    pass


class SimulationError(DomainException):
    """Settlement simulation failed"""

    pass


class InvalidSimulationInputError(SimulationError):
    """Simulation input rejected before or by the backend"""

    pass


class InvalidIncidentConfirmationError(DomainException):
    """Incident confirmation is incomplete"""

    pass
