# ofertai/errors.py

"""Exception types raised across the relay."""


class OfertaiError(Exception):
    """Base class for all relay errors."""


class ConfigurationError(OfertaiError):
    """Required configuration is missing or invalid."""


class UpstreamSearchError(OfertaiError):
    """The marketplace search API failed or was unreachable."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is not None:
            base = f"{base} (HTTP {self.status})"
        if self.body:
            base = f"{base}: {self.body[:200]}"
        return base


class DeliveryError(OfertaiError):
    """A Telegram Bot API call failed, timed out or was rejected."""

    def __init__(
        self,
        method: str,
        description: str,
        status: int | None = None,
    ) -> None:
        super().__init__(f"{method} failed: {description}")
        self.method = method
        self.description = description
        self.status = status
