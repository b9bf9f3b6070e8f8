"""
The execution driver: sends a :class:`~httpreq.request.Request` over a
:class:`~httpreq._base_connection.Stream` and follows redirects.

One exchange goes through these states::

    Dialing -> HeadersSent -> [AwaitingContinue] -> [BodySending]
        -> AwaitingFinalHeaders -> Done | Redirecting -> Dialing | Failed

Every blocking step is bounded by the time left on a single
:class:`~httpreq.util.timeout.Deadline`, so redirects and their retransmitted
bodies all share the caller's timeout.
"""
from __future__ import annotations

import logging
import typing

from . import connection
from ._base_connection import Dialer, Stream
from ._collections import HTTPHeaderDict
from .exceptions import TimeoutError
from .redirect import resolve_redirect
from .request import BodyKind, Request, RequestBody
from .util.request import rewind_body
from .util.timeout import Deadline

__all__ = ["execute"]

log = logging.getLogger(__name__)


def _status(headers: HTTPHeaderDict) -> str:
    return typing.cast(str, headers.get(":status", ""))


def _is_informational(headers: HTTPHeaderDict) -> bool:
    # 101 Switching Protocols is the final response of an upgrade.
    status = _status(headers)
    return status.startswith("1") and status != "101"


def _expects_continue(headers: HTTPHeaderDict) -> bool:
    return any(v.lower() == "100-continue" for v in headers.getlist("expect"))


def _write_body(
    stream: Stream, body: RequestBody, deadline: Deadline, rewind: bool
) -> None:
    if body.kind is BodyKind.BUFFER:
        stream.write_body_from_bytes(body.value, deadline.remaining())
    elif body.kind is BodyKind.FILE:
        if rewind and body.position is not None:
            rewind_body(body.value, body.position)
        stream.write_body_from_file(body.value, deadline.remaining())
    elif body.kind is BodyKind.SOURCE:
        if rewind:
            log.debug(
                "Pull-function body cannot be rewound, it is called again for "
                "this redirect"
            )
        # None marks the end of the body.
        while True:
            chunk = body.value(deadline.remaining())
            if chunk is None:
                stream.write_chunk(b"", True, deadline.remaining())
                break
            if chunk:
                stream.write_chunk(chunk, False, deadline.remaining())
    else:  # Defensive: RequestBody only has three kinds
        raise TypeError(f"Unknown body kind {body.kind!r}")


def _exchange(
    request: Request, deadline: Deadline, dial: Dialer, rewind: bool
) -> tuple[HTTPHeaderDict, Stream]:
    """Send ``request`` on a new stream and wait for its final headers."""
    log.debug(
        "Starting new %s connection: %s:%s",
        "HTTPS" if request.tls else "HTTP",
        request.host,
        request.port,
    )
    stream = dial(request.host, request.port, request.tls, deadline.remaining())
    try:
        body = request.body
        stream.write_headers(request.headers, body is None, deadline.remaining())

        headers: HTTPHeaderDict | None = None
        if body is not None:
            if _expects_continue(request.headers):
                # Give the server a chance to refuse the body.
                try:
                    headers = stream.get_headers(
                        deadline.remaining_within(
                            request.options.expect_continue_timeout
                        )
                    )
                except TimeoutError:
                    if deadline.expired:
                        raise
                    log.debug(
                        "No 100 Continue after %ss, sending the body anyway",
                        request.options.expect_continue_timeout,
                    )
            _write_body(stream, body, deadline, rewind)

        # Informational responses can arrive in any number.
        while headers is None or _is_informational(headers):
            headers = stream.get_headers(deadline.remaining())
    except BaseException:
        stream.shutdown()
        raise

    log.debug(
        '"%s %s" %s', request.method, request.to_url(), _status(headers) or "-"
    )
    return headers, stream


def execute(
    request: Request,
    timeout: float | None = None,
    *,
    dial: Dialer | None = None,
) -> tuple[HTTPHeaderDict, Stream]:
    """
    Execute ``request`` and return the final response headers together with
    the stream, positioned to read the response body. The caller owns the
    stream and must shut it down.

    3xx responses are followed while ``request.options.follow_redirects``
    is set; each followed redirect costs one of ``max_redirects``.

    :param timeout:
        Seconds the whole execution may take, redirects included. ``None``
        waits forever.

    :param dial:
        Opens a :class:`~httpreq._base_connection.Stream`. Defaults to
        :func:`httpreq.connection.dial`.

    :raises RedirectLimitExceeded: too many redirects.
    :raises MissingLocation: a redirect without ``location``.
    :raises InvalidURI: a redirect to an unusable ``location``.
    :raises TimeoutError: the deadline elapsed.
    :raises TransportError: the stream failed.
    """
    deadline = Deadline(timeout)
    if dial is None:
        dial = connection.dial

    # A body is only rewound once it may have been consumed by a previous hop.
    rewind = False
    while True:
        headers, stream = _exchange(request, deadline, dial, rewind)

        if not (request.options.follow_redirects and _status(headers).startswith("3")):
            return headers, stream

        stream.shutdown()
        new_request = resolve_redirect(request, headers)
        log.info("Redirecting %s -> %s", request.to_url(), new_request.to_url())
        rewind = rewind or request.body is not None
        request = new_request
