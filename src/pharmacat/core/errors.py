"""Error taxonomy shared by the record stores, the API and the UI."""


class CatalogError(Exception):
    """Base class for all product catalog errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """A required field is missing or a value is invalid.

    ``fields`` maps the canonical field name (``generic_name``, ``price``...) to
    a human-readable message so the form can show it next to the input.
    """

    def __init__(self, fields: dict[str, str], message: str | None = None) -> None:
        self.fields = dict(fields)
        if message is None:
            message = "; ".join(f"{name}: {msg}" for name, msg in self.fields.items())
        super().__init__(message or "Invalid product data")


class NotFoundError(CatalogError):
    """No product exists with the given code."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Product '{code}' not found")


class StorageError(CatalogError):
    """The underlying persistence layer failed."""


class TransportError(CatalogError):
    """A network or file transfer failed before the store could answer."""
