from __future__ import annotations

import typing
from collections import OrderedDict
from collections.abc import Mapping, MutableMapping

__all__ = ["HTTPHeaderDict"]


ValidHTTPHeaderSource = typing.Union[
    "HTTPHeaderDict",
    typing.Mapping[str, str],
    typing.Iterable[typing.Tuple[str, str]],
]


class _Sentinel:
    pass


_MARKER = _Sentinel()


class HTTPHeaderDict(MutableMapping[str, str]):
    """
    :param headers:
        An iterable of field-value pairs. Duplicate field names are kept as
        separate values of the same field.

    :param kwargs:
        Additional field-value pairs to pass in to ``extend``.

    A ``dict`` like container for storing HTTP header fields, including the
    ``:``-prefixed pseudo-header fields (``:method``, ``:path``, ``:scheme``,
    ``:authority`` on requests and ``:status`` on responses).

    Field names are stored and compared case-insensitively in compliance with
    RFC 7230. Iteration provides the first case-sensitive key seen for each
    case-insensitive pair, in insertion order.

    Using ``__setitem__`` syntax upserts: every existing value of a field is
    replaced by the new one, and the field keeps its original position. Use
    ``.add`` to append an additional value.

    >>> headers = HTTPHeaderDict()
    >>> headers.add(':method', 'GET')
    >>> headers.add('Set-Cookie', 'foo=bar')
    >>> headers.add('set-cookie', 'baz=quxx')
    >>> headers['content-length'] = '7'
    >>> headers['SET-cookie']
    'foo=bar, baz=quxx'
    >>> headers.getlist('set-cookie')
    ['foo=bar', 'baz=quxx']
    >>> headers[':method']
    'GET'
    """

    _container: typing.MutableMapping[str, typing.List[str]]

    def __init__(
        self, headers: ValidHTTPHeaderSource | None = None, **kwargs: str
    ) -> None:
        super().__init__()
        self._container = OrderedDict()
        if headers is not None:
            if isinstance(headers, HTTPHeaderDict):
                self._copy_from(headers)
            else:
                self.extend(headers)
        if kwargs:
            self.extend(kwargs)

    def __setitem__(self, key: str, val: str) -> None:
        key_lower = key.lower()
        existing = self._container.get(key_lower)
        if existing is not None:
            # Keep the original casing and position of the field.
            self._container[key_lower] = [existing[0], val]
        else:
            self._container[key_lower] = [key, val]

    def __getitem__(self, key: str) -> str:
        val = self._container[key.lower()]
        return ", ".join(val[1:])

    def __delitem__(self, key: str) -> None:
        del self._container[key.lower()]

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return key.lower() in self._container
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping) and not hasattr(other, "keys"):
            return False
        if not isinstance(other, type(self)):
            other = type(self)(other)  # type: ignore[arg-type]
        return {k.lower(): v for k, v in self.itermerged()} == {
            k.lower(): v for k, v in other.itermerged()
        }

    def __ne__(self, other: object) -> bool:
        return not self.__eq__(other)

    def __len__(self) -> int:
        return len(self._container)

    def __iter__(self) -> typing.Iterator[str]:
        # Only provide the originally cased names
        for vals in self._container.values():
            yield vals[0]

    def get(self, key: str, default: typing.Any = None) -> typing.Any:  # type: ignore[override]
        """Returns the merged value of the named field, or ``default``."""
        try:
            return self[key]
        except KeyError:
            return default

    def discard(self, key: str) -> None:
        try:
            del self[key]
        except KeyError:
            pass

    def add(self, key: str, val: str) -> None:
        """Adds a (name, value) pair, doesn't overwrite the value if it already
        exists.

        >>> headers = HTTPHeaderDict(foo='bar')
        >>> headers.add('Foo', 'baz')
        >>> headers['foo']
        'bar, baz'
        """
        key_lower = key.lower()
        new_vals = [key, val]
        # Keep the common case aka no item present as fast as possible
        vals = self._container.setdefault(key_lower, new_vals)
        if new_vals is not vals:
            vals.append(val)

    def extend(self, *args: ValidHTTPHeaderSource, **kwargs: str) -> None:
        """Generic import function for any type of header-like object.
        Adapted version of MutableMapping.update in order to insert items
        with self.add instead of self.__setitem__
        """
        if len(args) > 1:
            raise TypeError(
                f"extend() takes at most 1 positional arguments ({len(args)} given)"
            )
        other = args[0] if len(args) >= 1 else ()

        if isinstance(other, HTTPHeaderDict):
            for key, val in other.iteritems():
                self.add(key, val)
        elif isinstance(other, Mapping):
            for key, val in other.items():
                self.add(key, val)
        else:
            for key, value in other:
                self.add(key, value)

        for key, value in kwargs.items():
            self.add(key, value)

    def getlist(self, key: str) -> list[str]:
        """Returns a list of all the values for the named field. Returns an
        empty list if the key doesn't exist."""
        try:
            vals = self._container[key.lower()]
        except KeyError:
            return []
        else:
            return vals[1:]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.itermerged())})"

    def _copy_from(self, other: HTTPHeaderDict) -> None:
        for key in other:
            self._container[key.lower()] = [key, *other.getlist(key)]

    def copy(self) -> HTTPHeaderDict:
        clone = type(self)()
        clone._copy_from(self)
        return clone

    def iteritems(self) -> typing.Iterator[tuple[str, str]]:
        """Iterate over all header lines, including duplicate ones."""
        for key in self:
            vals = self._container[key.lower()]
            for val in vals[1:]:
                yield vals[0], val

    def itermerged(self) -> typing.Iterator[tuple[str, str]]:
        """Iterate over all headers, merging duplicate ones together."""
        for key in self:
            val = self._container[key.lower()]
            yield val[0], ", ".join(val[1:])

    def items(self) -> list[tuple[str, str]]:  # type: ignore[override]
        return list(self.iteritems())

    def pseudo_headers(self) -> typing.Iterator[tuple[str, str]]:
        """Iterate over the ``:``-prefixed fields only."""
        for key, val in self.iteritems():
            if key.startswith(":"):
                yield key, val

    def regular_headers(self) -> typing.Iterator[tuple[str, str]]:
        """Iterate over every field that is not a pseudo-header."""
        for key, val in self.iteritems():
            if not key.startswith(":"):
                yield key, val
