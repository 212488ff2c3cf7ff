"""Exceptions raised while resolving deferred references."""


class TidyfnError(Exception):
    """Base class for all tidyfn errors."""


class UnresolvedReferenceError(TidyfnError, NameError):
    """A reference could not be found in the data it was resolved against.

    Also raised when a plain value reaches a position that expects an
    embraced (deferred) reference.
    """

    def __init__(self, operation: str, name: str, detail: str | None = None):
        self.operation = operation
        self.name = name
        msg = f"{operation}(): object '{name}' not found"
        if detail:
            msg = f"{msg}. {detail}"
        super().__init__(msg)


class ContextMismatchError(TidyfnError, TypeError):
    """A selection was used where a computation was expected, or the reverse."""

    def __init__(self, operation: str, name: str, detail: str):
        self.operation = operation
        self.name = name
        super().__init__(f"{operation}(): can't use '{name}' here. {detail}")


class LabelError(TidyfnError, KeyError):
    """A label template references a field that was not supplied."""

    def __init__(self, field: str, template: str):
        self.field = field
        self.template = template
        super().__init__(field)

    def __str__(self) -> str:
        return f"Field '{self.field}' used in label template {self.template!r} was not supplied"


class InvalidExpressionError(TidyfnError, ValueError):
    """Expression text could not be parsed."""

    def __init__(self, text: str, reason: str):
        self.text = text
        super().__init__(f"Could not parse expression {text!r}: {reason}")
