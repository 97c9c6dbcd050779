"""Custom exception hierarchy for prime-crm."""


class CrmError(Exception):
    """Base exception for all prime-crm errors."""


class ValidationError(CrmError):
    """Raised when user input is rejected before any state change."""


class MissingRequiredFieldError(ValidationError):
    """Raised when a stage submission lacks a required field."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"Missing required field: {field_name}")
        self.field_name = field_name


class InvalidFieldValueError(ValidationError):
    """Raised when a captured field does not match its declared type."""

    def __init__(self, field_name: str, value: str, reason: str = "invalid value") -> None:
        super().__init__(f"Invalid value for {field_name!r}: {value!r} ({reason})")
        self.field_name = field_name
        self.value = value


class MissingFeedbackError(ValidationError):
    """Raised when a document is rejected without a reason."""


class UnknownStageError(CrmError):
    """Raised when a stage identifier is not in the catalog."""

    def __init__(self, stage_id: object) -> None:
        super().__init__(f"Unknown stage: {stage_id}")
        self.stage_id = stage_id


class EntityNotFoundError(CrmError):
    """Raised when a referenced entity does not exist."""


class ProcessNotFoundError(EntityNotFoundError):
    """Raised when a process id is not in the store."""


class DocumentNotFoundError(EntityNotFoundError):
    """Raised when a document id is not in a process checklist."""


class InvalidEntityStateError(CrmError):
    """Raised when an entity is in an invalid state for the operation."""


class UnauthorizedError(CrmError):
    """Raised when the acting role may not perform the operation."""


class NotificationDeliveryError(CrmError):
    """Raised when a message sender fails to deliver."""


class ConfigurationError(CrmError):
    """Raised when configuration is invalid or missing."""


class StoreError(CrmError):
    """Raised when a persistence backend operation fails."""
