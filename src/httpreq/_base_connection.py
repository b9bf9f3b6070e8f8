from __future__ import annotations

import typing

from ._collections import HTTPHeaderDict

#: Bodies accepted by :meth:`httpreq.request.Request.set_body`.
_TYPE_BODY = typing.Union[
    bytes,
    str,
    typing.IO[typing.Any],
    typing.Callable[[typing.Optional[float]], typing.Optional[bytes]],
]


class Stream(typing.Protocol):
    """A single bidirectional request/response exchange.

    Every blocking method takes a ``timeout`` in seconds, ``None`` meaning
    wait forever. Implementations raise
    :class:`~httpreq.exceptions.TimeoutError` subclasses when it elapses and
    other :class:`~httpreq.exceptions.TransportError` subclasses for the rest.
    """

    def write_headers(
        self, headers: HTTPHeaderDict, end_stream: bool, timeout: float | None
    ) -> None:
        """Send the header block. ``end_stream`` half-closes the send side."""

    def get_headers(self, timeout: float | None) -> HTTPHeaderDict:
        """Receive the next header block, informational ones included. The
        status is available as the ``:status`` pseudo-header."""

    def write_body_from_bytes(self, data: bytes, timeout: float | None) -> None:
        """Send the whole body and half-close the send side."""

    def write_body_from_file(
        self, fp: typing.IO[typing.Any], timeout: float | None
    ) -> None:
        """Stream the remainder of ``fp`` as the body and half-close the send
        side."""

    def write_chunk(self, data: bytes, end_stream: bool, timeout: float | None) -> None:
        """Send one piece of the body. ``end_stream`` half-closes the send
        side after it."""

    def shutdown(self) -> None:
        """Tear the exchange down. Must be safe to call more than once."""


class Dialer(typing.Protocol):
    def __call__(
        self, host: str, port: int, tls: bool, timeout: float | None
    ) -> Stream:
        ...
