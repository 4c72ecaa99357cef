from __future__ import annotations


class BridgeError(Exception):
    """Base class for assistant bridge failures."""


class ConfigurationError(BridgeError):
    """Settings or the assistant profile are missing or invalid."""


class ProvisioningError(BridgeError):
    """Creating the assistant, vector store or uploading files failed."""


class DispatchError(BridgeError):
    """The streamed run could not be opened."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class EmptyResponseError(BridgeError):
    """The run stream ended without producing any answer text."""


class ChatTransportError(BridgeError):
    """The chat platform rejected or failed a request."""


class MalformedEventError(BridgeError):
    """A ``data:`` line in the run stream could not be parsed."""
