"""Exceptions raised by Depth Client."""


class DepthClientError(Exception):
    """Base class for every error the CLI reports to the user."""


class ConfigError(DepthClientError):
    """Environment or .env value that does not parse."""


class ValidationError(DepthClientError):
    """Bad command-line input, raised before any network activity."""


class InvalidLimit(ValidationError):
    """Requested limit is not one of the values allowed for the transport."""


class MissingSymbol(ValidationError):
    def __init__(self) -> None:
        super().__init__("symbol cannot be empty")


class TransportError(DepthClientError):
    """Connection or request failure, including non-2xx HTTP responses."""


class DecodeError(DepthClientError):
    """Payload is not valid JSON or not shaped like a depth snapshot."""
