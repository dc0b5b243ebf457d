"""Custom exceptions for the invoicing service."""


class MedAssistException(Exception):
    """Base exception for the invoicing service."""

    error_code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MedAssistException):
    """Raised when invoice input is malformed."""

    error_code = "validation_error"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class MissingEntityError(MedAssistException):
    """Raised when an invoice or one of its parties cannot be loaded."""

    error_code = "not_found"

    def __init__(self, entity: str, entity_id: object = None) -> None:
        detail = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(detail)
        self.entity = entity
        self.entity_id = entity_id


class StateConflictError(MedAssistException):
    """Raised when a mutation is attempted on a locked invoice."""

    error_code = "state_conflict"


class SendEventNotFoundError(MissingEntityError, StateConflictError):
    """Raised when a provider callback references an unknown send event."""

    error_code = "send_event_not_found"

    def __init__(self, send_id: object) -> None:
        MissingEntityError.__init__(self, "Send event", send_id)


class TransportFailure(MedAssistException):
    """Raised when the email provider rejected or could not deliver a send."""

    error_code = "transport_failure"

    def __init__(self, message: str, send_id: int | None = None) -> None:
        super().__init__(message)
        self.send_id = send_id


class RenderFailure(MedAssistException):
    """Raised when document layout or PDF output fails unexpectedly."""

    error_code = "render_failure"


class ConfigurationError(MedAssistException):
    """Raised when configuration is invalid."""

    error_code = "configuration_error"
