class ServiceError(Exception):
    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or code
        super().__init__(self.message)


class NotFoundError(ServiceError):
    def __init__(self, message: str = "event not found") -> None:
        super().__init__("NOT_FOUND", message)


class ValidationError(ServiceError):
    def __init__(self, message: str, required: list[str] | None = None) -> None:
        super().__init__("VALIDATION_ERROR", message)
        self.required = required or []


class StoreUnavailableError(ServiceError):
    """The backing store could not be reached or rejected the request."""

    def __init__(self, message: str = "event store unavailable", details: str | None = None) -> None:
        super().__init__("STORE_UNAVAILABLE", message)
        self.details = details
