class ContactBookError(Exception):
    """Base error surfaced to HTTP clients as ``{"error": message}``."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ContactBookError):
    status_code = 400


class ConflictError(ContactBookError):
    status_code = 409


class StorageError(ContactBookError):
    status_code = 500
