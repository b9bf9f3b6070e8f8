"""
The default transport: one HTTP/1.1 exchange per socket.

Unlike in http.client, the stream here is an object that is responsible
for a very small number of tasks:

    1. Serializing/deserializing data to/from the network.
    2. Mapping the pseudo-header fields onto the HTTP/1.1 request line and
       ``Host`` header, and the status line back onto ``:status``.
    3. Enforcing the timeout of every blocking operation.

This object knows very little about the semantics of HTTP: redirects,
``100-continue`` negotiation and deadlines spanning several operations are
handled by :mod:`httpreq.engine`. The HTTP/1.1 framing itself is delegated to
the h11 state machine.
"""
from __future__ import annotations

import logging
import socket
import ssl
import typing

import h11

from ._collections import HTTPHeaderDict
from .exceptions import (
    ConnectTimeoutError,
    NameResolutionError,
    NewConnectionError,
    ReadTimeoutError,
    ReceiveError,
    TransmitError,
    TransmitTimeoutError,
)
from .util.timeout import Deadline

__all__ = ["HTTP1Stream", "dial"]

log = logging.getLogger(__name__)

_TYPE_SOCKET_OPTIONS = typing.Sequence[typing.Tuple[int, int, typing.Union[int, bytes]]]


def _headers_to_native_string(
    headers: typing.Iterable[tuple[bytes, bytes]],
) -> typing.Iterator[tuple[str, str]]:
    """All headers coming from h11 are bytes; decode them the way http.client
    does, using Latin-1."""
    for name, value in headers:
        yield name.decode("latin-1"), value.decode("latin-1")


def _check_timeout(
    timeout: float | None, exc_cls: type[Exception], message: str
) -> None:
    # A zero timeout would turn the socket non-blocking instead.
    if timeout is not None and timeout <= 0:
        raise exc_cls(message)


class HTTP1Stream:
    """
    A synchronous :class:`~httpreq._base_connection.Stream` over a single
    HTTP/1.1 connection.

    :param sock:
        A connected socket, possibly wrapped in TLS.
    """

    #: Size of the reads from the socket and from file bodies.
    blocksize = 8192

    def __init__(self, sock: socket.socket) -> None:
        self.sock: socket.socket | None = sock
        self._state_machine = h11.Connection(our_role=h11.CLIENT)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} our_state={self._state_machine.our_state} "
            f"their_state={self._state_machine.their_state}>"
        )

    def _get_sock(self) -> socket.socket:
        if self.sock is None:
            raise TransmitError("Stream has been shut down")
        return self.sock

    def _send(self, event: typing.Any, timeout: float | None) -> None:
        _check_timeout(timeout, TransmitTimeoutError, "Send timed out")
        sock = self._get_sock()
        try:
            data = self._state_machine.send(event)
        except h11.LocalProtocolError as e:
            raise TransmitError(f"Invalid request: {e}") from e
        if not data:
            return
        sock.settimeout(timeout)
        try:
            sock.sendall(data)
        except socket.timeout as e:
            raise TransmitTimeoutError(
                f"Send timed out. (timeout={timeout})"
            ) from e
        except OSError as e:
            raise TransmitError(f"Send failed: {e}", e.errno) from e

    def _next_event(self, deadline: Deadline) -> typing.Any:
        """Feed data from the socket into h11 until it has an event for us."""
        while True:
            try:
                event = self._state_machine.next_event()
            except h11.RemoteProtocolError as e:
                raise ReceiveError(f"Invalid response: {e}") from e
            if event is not h11.NEED_DATA:
                return event

            timeout = deadline.remaining()
            _check_timeout(timeout, ReadTimeoutError, "Read timed out")
            if self.sock is None:
                raise ReceiveError("Stream has been shut down")
            self.sock.settimeout(timeout)
            try:
                data = self.sock.recv(self.blocksize)
            except socket.timeout as e:
                raise ReadTimeoutError(f"Read timed out. (timeout={timeout})") from e
            except OSError as e:
                raise ReceiveError(f"Receive failed: {e}", e.errno) from e
            # An empty read tells h11 that the peer closed the connection.
            self._state_machine.receive_data(data)

    def write_headers(
        self, headers: HTTPHeaderDict, end_stream: bool, timeout: float | None
    ) -> None:
        method = headers.get(":method")
        authority = headers.get(":authority")
        if method is None or authority is None:
            raise TransmitError("Request needs :method and :authority")
        target = authority if method == "CONNECT" else headers.get(":path", "/")

        h11_headers = [("host", authority)]
        h11_headers.extend(
            (name, value)
            for name, value in headers.regular_headers()
            if name.lower() != "host"
        )
        if (
            not end_stream
            and "content-length" not in headers
            and "transfer-encoding" not in headers
        ):
            h11_headers.append(("transfer-encoding", "chunked"))

        try:
            event = h11.Request(method=method, target=target, headers=h11_headers)
        except h11.LocalProtocolError as e:
            raise TransmitError(f"Invalid request: {e}") from e

        deadline = Deadline(timeout)
        self._send(event, deadline.remaining())
        if end_stream:
            self._send(h11.EndOfMessage(), deadline.remaining())

    def get_headers(self, timeout: float | None) -> HTTPHeaderDict:
        event = self._next_event(Deadline(timeout))
        if not isinstance(event, (h11.InformationalResponse, h11.Response)):
            raise ReceiveError(f"Unexpected event while waiting for headers: {event!r}")

        headers = HTTPHeaderDict()
        headers.add(":status", str(event.status_code))
        headers.extend(_headers_to_native_string(event.headers))
        return headers

    def write_body_from_bytes(self, data: bytes, timeout: float | None) -> None:
        deadline = Deadline(timeout)
        self._send(h11.Data(data=data), deadline.remaining())
        self._send(h11.EndOfMessage(), deadline.remaining())

    def write_body_from_file(
        self, fp: typing.IO[typing.Any], timeout: float | None
    ) -> None:
        deadline = Deadline(timeout)
        while True:
            datablock = fp.read(self.blocksize)
            if not datablock:
                break
            if isinstance(datablock, str):
                datablock = datablock.encode("utf-8")
            self._send(h11.Data(data=datablock), deadline.remaining())
        self._send(h11.EndOfMessage(), deadline.remaining())

    def write_chunk(self, data: bytes, end_stream: bool, timeout: float | None) -> None:
        deadline = Deadline(timeout)
        if data:
            self._send(h11.Data(data=data), deadline.remaining())
        if end_stream:
            self._send(h11.EndOfMessage(), deadline.remaining())

    def iter_body(self, timeout: float | None = None) -> typing.Iterator[bytes]:
        """
        Iterate over the response body bytes until end of message.
        """
        deadline = Deadline(timeout)
        while True:
            event = self._next_event(deadline)
            if isinstance(event, h11.Data):
                yield bytes(event.data)
            elif isinstance(event, h11.EndOfMessage):
                return
            else:
                raise ReceiveError(f"Unexpected event while reading body: {event!r}")

    def read_body(self, timeout: float | None = None) -> bytes:
        return b"".join(self.iter_body(timeout))

    def shutdown(self) -> None:
        """
        Close the underlying socket. Safe to call more than once.
        """
        if self.sock is not None:
            # Make sure self.sock is None even if closing raises an exception
            sock, self.sock = self.sock, None
            try:
                sock.close()
            except OSError:
                log.debug("Error closing socket", exc_info=True)

    @property
    def is_closed(self) -> bool:
        return self.sock is None


#: Disable Nagle's algorithm by default.
#: ``[(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)]``
default_socket_options: _TYPE_SOCKET_OPTIONS = [
    (socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
]


def dial(
    host: str,
    port: int,
    tls: bool,
    timeout: float | None = None,
    *,
    ssl_context: ssl.SSLContext | None = None,
    socket_options: _TYPE_SOCKET_OPTIONS | None = None,
) -> HTTP1Stream:
    """
    Connect to ``host``:``port`` and return a stream ready for one exchange.

    :param tls:
        Wrap the connection with ``ssl_context``, or the default context of
        the :mod:`ssl` module, verifying the certificate for ``host``.

    :param timeout:
        Seconds the connection and TLS handshake may take.
    """
    _check_timeout(
        timeout,
        ConnectTimeoutError,
        f"Connection to {host} timed out. (connect timeout={timeout})",
    )
    if socket_options is None:
        socket_options = default_socket_options

    try:
        sock = socket.create_connection((host, port), timeout)
    except socket.gaierror as e:
        raise NameResolutionError(f"Failed to resolve '{host}' ({e})", e.errno) from e
    except socket.timeout as e:
        raise ConnectTimeoutError(
            f"Connection to {host} timed out. (connect timeout={timeout})"
        ) from e
    except OSError as e:
        raise NewConnectionError(
            f"Failed to establish a new connection: {e}", e.errno
        ) from e

    try:
        for opt in socket_options:
            sock.setsockopt(*opt)
        if tls:
            context = ssl_context or ssl.create_default_context()
            sock = context.wrap_socket(sock, server_hostname=host)
    except socket.timeout as e:
        sock.close()
        raise ConnectTimeoutError(
            f"TLS handshake with {host} timed out. (connect timeout={timeout})"
        ) from e
    except OSError as e:
        sock.close()
        raise NewConnectionError(
            f"Failed to establish a new connection: {e}", e.errno
        ) from e

    return HTTP1Stream(sock)
