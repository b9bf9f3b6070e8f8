from __future__ import annotations

from .request import DEFAULT_USER_AGENT, basic_auth_value, rewind_body, set_file_position
from .timeout import Deadline
from .url import (
    DEFAULT_PORTS,
    SUPPORTED_SCHEMES,
    Url,
    encode_path,
    encode_query,
    parse_uri_reference,
    parse_url,
    resolve_relative_path,
    split_authority,
    to_authority,
)

__all__ = (
    "DEFAULT_PORTS",
    "DEFAULT_USER_AGENT",
    "Deadline",
    "SUPPORTED_SCHEMES",
    "Url",
    "basic_auth_value",
    "encode_path",
    "encode_query",
    "parse_uri_reference",
    "parse_url",
    "resolve_relative_path",
    "rewind_body",
    "set_file_position",
    "split_authority",
    "to_authority",
)
