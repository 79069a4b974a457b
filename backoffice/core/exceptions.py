class BackofficeError(Exception):
    """Base exception for back-office domain errors."""

    default_message = "An error occurred in the back-office service"
    default_code = "backoffice_error"

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Error message
            code: Machine readable error code
            details: Additional error details
        """
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        return self.message

    def to_dict(self):
        """Convert the exception to the error body used in API responses."""
        error_dict = {
            'code': self.code,
            'message': self.message,
        }
        if self.details:
            error_dict['details'] = self.details
        return error_dict


class NotFoundError(BackofficeError):
    """A referenced item, dish, bill, dispute or menu does not exist."""

    default_message = "Resource not found"
    default_code = "not_found"


class ValidationError(BackofficeError):
    """Malformed input or a state that forbids the operation."""

    default_message = "Validation error"
    default_code = "validation_error"


class LedgerError(BackofficeError):
    """Raised inside an atomic ledger update; the transaction is rolled back."""

    default_message = "Ledger update failed"
    default_code = "ledger_error"
