class ORMError(Exception):
    """Base class for every error raised by safeorm."""


class ConfigurationError(ORMError):
    pass


class ForbiddenAttributeError(ORMError):
    """Raised by the strict sanitizer when protected attributes are mass-assigned."""

    def __init__(self, model_name, attributes):
        self.model_name = model_name
        self.attributes = list(attributes)
        super().__init__(
            f"Can't mass-assign protected attributes for {model_name}: {', '.join(self.attributes)}"
        )


class UnknownAttributeError(ORMError):
    def __init__(self, record, name):
        self.record = record
        self.name = name
        super().__init__(f"unknown attribute '{name}' for {record.__class__.__name__}")


class RecordNotSaved(ORMError):
    pass


class RecordInvalid(ORMError):
    """Carries the record that failed validation."""

    def __init__(self, record):
        self.record = record
        messages = ", ".join(record.errors.full_messages()) or "record is invalid"
        super().__init__(f"Validation failed: {messages}")


class UnsupportedNestedThroughError(ORMError):
    def __init__(self, owner, reflection):
        self.owner = owner
        self.reflection = reflection
        super().__init__(
            f"Cannot modify association '{owner.__class__.__name__}#{reflection.name}' "
            f"because it goes through more than one other association."
        )


class AssociationTypeMismatch(ORMError):
    pass


class SessionRequiredError(ORMError):
    pass


class Rollback(ORMError):
    """Raise inside Session.transaction() to roll back without propagating."""
