from __future__ import annotations

import typing
from base64 import b64encode
from enum import Enum

from .._version import __version__
from ..exceptions import UnrewindableBodyError

#: Value of the ``user-agent`` header when the caller supplied none.
DEFAULT_USER_AGENT = f"python-httpreq/{__version__}"


class _TYPE_FAILEDTELL(Enum):
    token = 0


_FAILEDTELL: typing.Final[_TYPE_FAILEDTELL] = _TYPE_FAILEDTELL.token

_TYPE_BODY_POSITION = typing.Union[int, _TYPE_FAILEDTELL]


def basic_auth_value(userinfo: str) -> str:
    """
    Value of an ``authorization`` or ``proxy-authorization`` header for the
    ``userinfo`` component of a URI. The userinfo is encoded verbatim, any
    percent-encoding it carries is kept.

    >>> basic_auth_value("user:pass")
    'Basic dXNlcjpwYXNz'
    """
    return f"Basic {b64encode(userinfo.encode('latin-1')).decode()}"


def set_file_position(body: typing.Any) -> _TYPE_BODY_POSITION | None:
    """
    Attempt to record the position of ``body`` so it can be rewound for a
    redirect. ``None`` when the body has no ``tell``.
    """
    pos: _TYPE_BODY_POSITION | None = None
    if getattr(body, "tell", None) is not None:
        try:
            pos = body.tell()
        except OSError:
            # This differentiates from None, allowing us to catch
            # a failed `tell()` later when trying to rewind the body.
            pos = _FAILEDTELL

    return pos


def rewind_body(body: typing.IO[typing.AnyStr], body_pos: _TYPE_BODY_POSITION) -> None:
    """
    Attempt to rewind body to a certain position.
    Primarily used for request redirects.

    :param body:
        File-like object that supports seek.

    :param int pos:
        Position to seek to in file.
    """
    body_seek = getattr(body, "seek", None)
    if body_seek is not None and isinstance(body_pos, int):
        try:
            body_seek(body_pos)
        except OSError as e:
            raise UnrewindableBodyError(
                "An error occurred when rewinding request body for redirect."
            ) from e
    elif body_pos is _FAILEDTELL:
        raise UnrewindableBodyError(
            "Unable to record file position for rewinding "
            "request body during a redirect."
        )
    else:
        raise ValueError(
            f"body_pos must be of type integer, instead it was {type(body_pos)}."
        )
