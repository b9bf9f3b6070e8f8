from __future__ import annotations

import enum
import typing

from ._base_connection import _TYPE_BODY
from ._collections import HTTPHeaderDict
from .exceptions import InvalidRequest, InvalidURI, URLSchemeUnknown
from .util.request import (
    DEFAULT_USER_AGENT,
    _TYPE_BODY_POSITION,
    basic_auth_value,
    set_file_position,
)
from .util.url import (
    DEFAULT_PORTS,
    SUPPORTED_SCHEMES,
    Url,
    encode_path,
    encode_query,
    parse_url,
    to_authority,
)

__all__ = ["BodyKind", "Request", "RequestBody", "RequestOptions"]

#: Buffer bodies up to this many bytes are sent without waiting for
#: ``100 Continue``.
BODY_FAST_PATH_LIMIT = 1024

_TLS_SCHEMES = frozenset(["https", "wss"])


class RequestOptions(typing.NamedTuple):
    """Per-request policy. Redirect requests receive a copy with
    ``max_redirects`` decremented.

    :param expect_continue_timeout:
        Seconds to wait for a ``100 Continue`` before sending the body anyway.

    :param follow_redirects:
        Whether a 3xx response is followed automatically.

    :param max_redirects:
        How many more redirects may be followed.

    :param treat_301_as_post:
        Keep the ``POST`` method and body on a 301. By default the redirected
        request becomes a body-less ``GET``, like browsers do.

    :param treat_302_as_post:
        Same as ``treat_301_as_post`` for 302.

    :param remove_headers_on_redirect:
        Header names (lowercase) removed when a redirect changes host.
    """

    expect_continue_timeout: float = 1
    follow_redirects: bool = True
    max_redirects: int = 5
    treat_301_as_post: bool = False
    treat_302_as_post: bool = False
    remove_headers_on_redirect: typing.FrozenSet[str] = frozenset(
        ["authorization", "cookie", "proxy-authorization"]
    )


class BodyKind(enum.Enum):
    #: An in-memory byte string.
    BUFFER = "buffer"
    #: A readable file-like object.
    FILE = "file"
    #: A pull function returning successive chunks and ``None`` when done.
    SOURCE = "source"


class RequestBody(typing.NamedTuple):
    kind: BodyKind
    value: typing.Any
    #: Position of a ``FILE`` body when it was attached, used to rewind it.
    position: _TYPE_BODY_POSITION | None = None

    @property
    def length(self) -> int | None:
        if self.kind is BodyKind.BUFFER:
            return len(self.value)
        return None

    @classmethod
    def from_value(cls, body: _TYPE_BODY) -> RequestBody:
        if isinstance(body, str):
            return cls(BodyKind.BUFFER, body.encode("utf-8"))
        if isinstance(body, (bytes, bytearray, memoryview)):
            return cls(BodyKind.BUFFER, bytes(body))
        if hasattr(body, "read"):
            return cls(BodyKind.FILE, body, set_file_position(body))
        if callable(body):
            return cls(BodyKind.SOURCE, body)
        raise TypeError(
            f"Unacceptable body type: {type(body).__name__}, expected bytes, "
            "str, a readable file object or a callable"
        )


class Request:
    """
    A single outbound HTTP request.

    Requests are normally built with :meth:`from_url`, :meth:`from_uri` or
    :meth:`connect` and executed with :func:`httpreq.engine.execute`.

    :param host:
        Host to dial. This can differ from the ``:authority`` sent on the wire.

    :param port:
        Port to dial.

    :param tls:
        Whether the connection must be encrypted.

    :param headers:
        The header block, pseudo-headers included.

    :param options:
        A :class:`RequestOptions`, defaults apply when omitted.
    """

    def __init__(
        self,
        host: str,
        port: int,
        tls: bool,
        headers: HTTPHeaderDict,
        options: RequestOptions | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.tls = tls
        self.headers = headers
        self.body: RequestBody | None = None
        self.options = options if options is not None else RequestOptions()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.method} {self.to_url()}>"

    @classmethod
    def from_uri(
        cls,
        uri: Url,
        headers: HTTPHeaderDict | None = None,
        options: RequestOptions | None = None,
    ) -> Request:
        """
        Build a request for a parsed URI.

        When ``headers`` is given it is used, and mutated, as the header
        block; a ``:method`` of ``CONNECT`` in it makes this a CONNECT
        request, whose ``:authority`` must already be set.
        """
        scheme = uri.scheme
        if scheme not in SUPPORTED_SCHEMES:
            raise URLSchemeUnknown(scheme)
        host = uri.host
        if not host:
            raise InvalidURI("URI must include a host")
        port = uri.port if uri.port is not None else DEFAULT_PORTS[scheme]

        # CONNECT requests are a bit special, see RFC 7540 Section 8.3
        if headers is None:
            headers = HTTPHeaderDict()
            headers.add(":method", "GET")
            is_connect = False
        else:
            is_connect = headers.get(":method") == "CONNECT"

        if is_connect:
            if uri.path:
                raise InvalidRequest("CONNECT requests cannot have a path")
            if uri.query is not None:
                raise InvalidRequest("CONNECT requests cannot have a query")
            if ":authority" not in headers:
                raise InvalidRequest(":authority required for CONNECT requests")
        else:
            headers[":authority"] = to_authority(host, port, scheme)
            query = encode_query(uri.query) if uri.query is not None else None
            headers[":path"] = uri._replace(
                path=encode_path(uri.path or ""), query=query
            ).request_uri
            headers[":scheme"] = scheme

        if uri.auth is not None:
            field = "proxy-authorization" if is_connect else "authorization"
            headers.add(field, basic_auth_value(uri.auth))

        if "user-agent" not in headers:
            headers.add("user-agent", DEFAULT_USER_AGENT)

        return cls(host, port, scheme in _TLS_SCHEMES, headers, options)

    @classmethod
    def from_url(
        cls,
        url: str,
        headers: HTTPHeaderDict | None = None,
        options: RequestOptions | None = None,
    ) -> Request:
        """Build a request for an absolute URI string.

        .. code-block:: python

            req = Request.from_url("https://example.com/search?q=httpreq")
            req.method = "POST"
            req.set_body(b"payload")
        """
        return cls.from_uri(parse_url(url), headers, options)

    @classmethod
    def connect(
        cls, url: str, authority: str, options: RequestOptions | None = None
    ) -> Request:
        """Build a ``CONNECT`` request for ``authority`` sent to the proxy at
        ``url``. Credentials in ``url`` become a ``proxy-authorization``
        header."""
        headers = HTTPHeaderDict()
        headers.add(":authority", authority)
        headers.add(":method", "CONNECT")
        return cls.from_uri(parse_url(url), headers, options)

    @property
    def method(self) -> str:
        return typing.cast(str, self.headers.get(":method"))

    @method.setter
    def method(self, value: str) -> None:
        self.headers[":method"] = value

    @property
    def is_connect(self) -> bool:
        return self.method == "CONNECT"

    def set_body(self, body: _TYPE_BODY) -> None:
        """
        Attach ``body`` to the request.

        Bodies of known length get a ``content-length`` header. Bodies of
        unknown length, or longer than ``BODY_FAST_PATH_LIMIT`` bytes, also get
        ``expect: 100-continue`` so the server can refuse them before they are
        sent.

        File bodies are rewound when a 307 or 308 redirect sends them again.
        A pull function is simply called again, so one that is already
        exhausted sends an empty body.
        """
        self.body = RequestBody.from_value(body)
        length = self.body.length
        if length is not None:
            self.headers["content-length"] = str(length)
        if length is None or length > BODY_FAST_PATH_LIMIT:
            self.headers.add("expect", "100-continue")

    def to_url(self) -> str:
        """Reconstruct the absolute URL this request is for."""
        if self.is_connect:
            scheme = "https" if self.tls else "http"
            return Url(scheme, host=self.host, port=self.port).url

        # :path already carries the query.
        return Url(
            self.headers.get(":scheme"),
            host=self.host,
            port=self.port,
            path=self.headers.get(":path"),
        ).url
