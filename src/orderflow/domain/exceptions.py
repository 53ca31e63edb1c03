"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

Failures of the payment gateway or the shipping carrier derive from
ExternalServiceError and are flagged ``retryable``: the operator (or the
reconciler) may re-invoke the operation.  Everything else is terminal for
the current call.
"""


class DomainException(Exception):
    """Base class for all domain errors."""

    retryable = False


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InvalidTransitionError(DomainException):
    """The requested status is not an allowed successor of the current one."""


class NotApplicableError(DomainException):
    """The operation does not apply to this order (e.g. refund on COD)."""


class AlreadyRefundedError(DomainException):
    """A refund is already in progress or completed for this order."""


class AlreadyExistsError(DomainException):
    """The entity (e.g. a carrier shipment) has already been created."""


class ConcurrencyError(DomainException):
    """The record was modified by someone else since it was loaded."""


class ExternalServiceError(DomainException):
    """An external collaborator failed or timed out."""

    retryable = True


class GatewayFailure(ExternalServiceError):
    """The payment gateway rejected the call, failed, or timed out."""


class CarrierFailure(ExternalServiceError):
    """The shipping carrier rejected the call, failed, or timed out."""
