"""
HTTP request execution engine with redirect following, 100-continue handling
and deadline propagation
"""
from __future__ import annotations

# Set default logging handler to avoid "No handler found" warnings.
import logging
import typing
from logging import NullHandler

from . import exceptions
from ._base_connection import _TYPE_BODY, Dialer, Stream
from ._collections import HTTPHeaderDict
from ._version import __version__
from .engine import execute
from .redirect import resolve_redirect
from .request import BodyKind, Request, RequestBody, RequestOptions

__license__ = "MIT"
__version__ = __version__

__all__ = (
    "BodyKind",
    "Dialer",
    "HTTPHeaderDict",
    "Request",
    "RequestBody",
    "RequestOptions",
    "Stream",
    "add_stderr_logger",
    "execute",
    "request",
    "resolve_redirect",
)

logging.getLogger(__name__).addHandler(NullHandler())


def add_stderr_logger(
    level: int = logging.DEBUG,
) -> logging.StreamHandler[typing.TextIO]:
    """
    Helper for quickly adding a StreamHandler to the logger. Useful for
    debugging.

    Returns the handler after adding it.
    """
    # This method needs to be in this __init__.py to get the __name__ correct
    # even if httpreq is vendored within another package.
    logger = logging.getLogger(__name__)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.debug("Added a stderr logging handler to logger: %s", __name__)
    return handler


# ... Clean up.
del NullHandler


def request(
    method: str,
    url: str,
    *,
    body: _TYPE_BODY | None = None,
    headers: typing.Mapping[str, str] | None = None,
    timeout: float | None = None,
    options: RequestOptions | None = None,
    dial: Dialer | None = None,
) -> tuple[HTTPHeaderDict, Stream]:
    """
    A convenience, top-level request function. Builds a
    :class:`~httpreq.request.Request` for ``url``, attaches ``body`` and runs
    it with :func:`~httpreq.engine.execute`.

    Returns the final response headers and the stream to read the body from.

    .. code-block:: python

        import httpreq

        headers, stream = httpreq.request("GET", "https://example.com/", timeout=10)
        try:
            print(headers[":status"], stream.read_body())
        finally:
            stream.shutdown()
    """
    header_block = HTTPHeaderDict()
    header_block.add(":method", method)
    if headers:
        header_block.extend(headers)

    req = Request.from_url(url, header_block, options)
    if body is not None:
        req.set_body(body)
    return execute(req, timeout, dial=dial)
