"""
Exception hierarchy for grocery-list.
"""


class GroceryListError(Exception):
    """Base class for all grocery-list errors."""


class CredentialError(GroceryListError):
    """A credential is missing, blank, or could not be read or stored."""


class FetchError(GroceryListError):
    """An enrichment fetch failed at the transport or HTTP level."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class HttpStatusError(FetchError):
    """The service answered with a non-success HTTP status."""

    def __init__(self, status: int, service: str = "service"):
        super().__init__(f"{service} returned HTTP {status}", status=status)
        self.service = service


class TransportError(FetchError):
    """The request never produced a response (DNS, connect, timeout, ...)."""
