"""Arena data-service exceptions."""


class ArenaError(Exception):
    """Base exception for all Arena data-layer operations."""
    pass


class ArenaAPIError(ArenaError):
    """HTTP error from the Arena data service.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")
