from __future__ import annotations

import typing

from httpreq._collections import HTTPHeaderDict

# Timeouts used when a test talks to a real socket and must never hang.
LONG_TIMEOUT = 5.0

_TYPE_FAKE_RESPONSE = typing.Union[
    HTTPHeaderDict, BaseException, typing.Callable[[], HTTPHeaderDict]
]


def response_headers(status: int | str, **fields: str) -> HTTPHeaderDict:
    """A response header block with ``:status`` first."""
    headers = HTTPHeaderDict()
    headers.add(":status", str(status))
    for name, value in fields.items():
        headers.add(name.replace("_", "-"), value)
    return headers


class FakeStream:
    """
    A :class:`~httpreq.Stream` that records every call and replays scripted
    responses.

    Each item of ``responses`` is returned by one ``get_headers`` call. An
    exception is raised instead, and a callable is invoked first, which lets
    a test move the clock while the stream is "waiting".
    """

    def __init__(self, *responses: _TYPE_FAKE_RESPONSE) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[typing.Any, ...]] = []
        self.is_shutdown = False

    def _next_response(self) -> HTTPHeaderDict:
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            response = response()
            if isinstance(response, BaseException):
                raise response
        return response

    def write_headers(
        self, headers: HTTPHeaderDict, end_stream: bool, timeout: float | None
    ) -> None:
        self.calls.append(("write_headers", headers.copy(), end_stream, timeout))

    def get_headers(self, timeout: float | None) -> HTTPHeaderDict:
        self.calls.append(("get_headers", timeout))
        return self._next_response()

    def write_body_from_bytes(self, data: bytes, timeout: float | None) -> None:
        self.calls.append(("write_body_from_bytes", data, timeout))

    def write_body_from_file(
        self, fp: typing.IO[typing.Any], timeout: float | None
    ) -> None:
        self.calls.append(("write_body_from_file", fp.read(), timeout))

    def write_chunk(self, data: bytes, end_stream: bool, timeout: float | None) -> None:
        self.calls.append(("write_chunk", data, end_stream, timeout))

    def shutdown(self) -> None:
        self.is_shutdown = True

    @property
    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    @property
    def sent_headers(self) -> HTTPHeaderDict:
        for call in self.calls:
            if call[0] == "write_headers":
                return typing.cast(HTTPHeaderDict, call[1])
        raise AssertionError("no headers were written")


class FakeDialer:
    """Hands out the given streams in order and records the dial arguments."""

    def __init__(self, *streams: FakeStream | BaseException) -> None:
        self.streams = list(streams)
        self.dialed: list[tuple[str, int, bool, float | None]] = []

    def __call__(
        self, host: str, port: int, tls: bool, timeout: float | None
    ) -> FakeStream:
        self.dialed.append((host, port, tls, timeout))
        stream = self.streams.pop(0)
        if isinstance(stream, BaseException):
            raise stream
        return stream
