from __future__ import annotations

import logging
import typing

from ._collections import HTTPHeaderDict
from .exceptions import MissingLocation, RedirectLimitExceeded
from .request import Request
from .util.url import (
    encode_path,
    parse_uri_reference,
    resolve_relative_path,
    split_authority,
)

__all__ = ["resolve_redirect"]

log = logging.getLogger(__name__)

# Headers which make no sense once the body is gone: those requiring a body,
# then the representation metadata of RFC 7231 Section 3.1.
_BODY_HEADERS = (
    "transfer-encoding",
    "content-length",
    "content-encoding",
    "content-language",
    "content-location",
    "content-type",
)


def _downgrades_to_get(request: Request, status: str | None) -> bool:
    """Whether a redirect with ``status`` turns ``request`` into a body-less
    ``GET``. RFC 7231 Section 6.4 allows it for 301 and 302 and every browser
    does it, so this is the default unless the ``treat_30x_as_post`` option is
    set. 303 always does."""
    if request.method != "POST":
        return False
    options = request.options
    return (
        status == "303"
        or (status == "301" and not options.treat_301_as_post)
        or (status == "302" and not options.treat_302_as_post)
    )


def resolve_redirect(
    request: Request, response_headers: typing.Mapping[str, str]
) -> Request:
    """
    Build the request which follows ``request`` after it received the 3xx
    ``response_headers``.

    ``request`` is left untouched; the returned request has its own header
    block and one less redirect in its budget.

    :raises RedirectLimitExceeded: ``request`` has no redirect budget left.
    :raises MissingLocation: there is no ``location`` header.
    :raises InvalidURI: the ``location`` cannot be used.
    """
    max_redirects = request.options.max_redirects
    if max_redirects <= 0:
        raise RedirectLimitExceeded("maximum redirects exceeded")

    location = response_headers.get("location")
    if not location:
        raise MissingLocation("missing location header for redirect")

    target = parse_uri_reference(location)
    orig_scheme = request.headers.get(":scheme")
    if target.scheme is None:
        target = target._replace(scheme=orig_scheme)
    # parse_uri_reference rejects empty hosts, so no host means no authority.
    same_authority = target.host is None
    if same_authority:
        host, port = split_authority(request.headers[":authority"], orig_scheme)
        target = target._replace(host=host, port=port)
    path = encode_path(target.path or "")
    if same_authority and not path.startswith("/"):
        base = parse_uri_reference(request.headers.get(":path", ""))
        if not path and target.query is None:
            # A fragment-only reference keeps the whole target.
            target = target._replace(query=base.query)
        path = resolve_relative_path(encode_path(base.path), path)
    target = target._replace(path=path)

    headers = request.headers.copy()
    # Credentials in the location's userinfo are added back by from_uri.
    if target.host != request.host:
        for header in request.options.remove_headers_on_redirect:
            headers.discard(header)

    new_request = Request.from_uri(
        target,
        headers,
        request.options._replace(max_redirects=max_redirects - 1),
    )

    if request.tls and not new_request.tls:
        # RFC 7231 Section 5.5.2: A user agent MUST NOT send a Referer header
        # field in an unsecured HTTP request if the referring page was received
        # with a secure protocol.
        headers.discard("referer")
    else:
        headers["referer"] = request.to_url()

    new_request.body = request.body

    if _downgrades_to_get(request, response_headers.get(":status")):
        headers[":method"] = "GET"
        for header in _BODY_HEADERS:
            headers.discard(header)
        if _is_expect_continue(headers):
            headers.discard("expect")
        new_request.body = None

    log.debug(
        "Resolved redirect %s -> %s (%d redirects left)",
        request.to_url(),
        new_request.to_url(),
        new_request.options.max_redirects,
    )
    return new_request


def _is_expect_continue(headers: HTTPHeaderDict) -> bool:
    expect = headers.get("expect")
    return expect is not None and expect.lower() == "100-continue"
