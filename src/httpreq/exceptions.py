from __future__ import annotations

import typing

_TYPE_REDUCE_RESULT = typing.Tuple[
    typing.Callable[..., object], typing.Tuple[object, ...]
]

# Base Exceptions


class HTTPError(Exception):
    """Base exception used by this module."""

    pass


class TransportError(HTTPError):
    """Base exception for failures reported by the transport layer.

    :param message: Human readable description of the failure.
    :param errno: The operating system error code, when one is known.
    """

    def __init__(self, message: str, errno: int | None = None) -> None:
        super().__init__(message)
        self.errno = errno

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (str(self), self.errno)


class TimeoutError(HTTPError):
    """Raised when the deadline of an operation elapses.

    Catching this error will catch :exc:`ConnectTimeoutError`,
    :exc:`TransmitTimeoutError` and :exc:`ReadTimeoutError`.
    """

    pass


class RedirectError(HTTPError):
    """Base exception for redirects that cannot be followed."""

    pass


# Leaf Exceptions


class LocationValueError(ValueError, HTTPError):
    """Raised when there is something wrong with a given URL input."""

    pass


class InvalidURI(LocationValueError):
    """Raised when a URI cannot be used to build a request."""

    pass


class LocationParseError(InvalidURI):
    """Raised when a URI or URI-reference fails to parse."""

    def __init__(self, location: str) -> None:
        message = f"Failed to parse: {location}"
        super().__init__(message)

        self.location = location

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.location,)


class URLSchemeUnknown(InvalidURI):
    """Raised when a URI has an unsupported scheme."""

    def __init__(self, scheme: str | None) -> None:
        if scheme is None:
            message = "URI missing scheme"
        else:
            message = f"Not supported URL scheme {scheme}"
        super().__init__(message)

        self.scheme = scheme

    def __reduce__(self) -> _TYPE_REDUCE_RESULT:
        # For pickling purposes.
        return self.__class__, (self.scheme,)


class InvalidRequest(ValueError, HTTPError):
    """Raised when headers and URI do not form a valid request, e.g. a CONNECT
    request with a path."""

    pass


class RedirectLimitExceeded(RedirectError):
    """Raised when a redirect is received after the redirect budget ran out."""

    pass


class MissingLocation(RedirectError):
    """Raised when a redirect response has no ``location`` header."""

    pass


class ConnectError(TransportError):
    """Raised when a stream to the remote host cannot be opened."""

    pass


class NewConnectionError(ConnectError):
    """Raised when we fail to establish a new connection. Usually ECONNREFUSED."""

    pass


class NameResolutionError(NewConnectionError):
    """Raised when host name resolution fails."""

    pass


class ConnectTimeoutError(TimeoutError, ConnectError):
    """Raised when the deadline elapses while connecting to a server"""

    pass


class TransmitError(TransportError):
    """Raised when sending request headers or body fails."""

    pass


class TransmitTimeoutError(TimeoutError, TransmitError):
    """Raised when the deadline elapses while sending data to a server"""

    pass


class ReceiveError(TransportError):
    """Raised when receiving response headers or body fails."""

    pass


class ReadTimeoutError(TimeoutError, ReceiveError):
    """Raised when the deadline elapses while receiving data from a server"""

    pass


class UnrewindableBodyError(HTTPError):
    """httpreq encountered an error when trying to rewind a body"""

    pass
