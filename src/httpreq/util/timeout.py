from __future__ import annotations

from time import monotonic


class Deadline:
    """An absolute point in time shared by a sequence of blocking operations.

    Each operation asks for :meth:`remaining` right before it blocks, so the
    budget decays across every step instead of being granted afresh to each
    of them.

    :param timeout:
        Seconds from now until the deadline, or ``None`` to never expire.

    .. code-block:: python

        deadline = Deadline(5.0)
        stream = dial(host, port, tls, deadline.remaining())
        headers = stream.get_headers(deadline.remaining())
    """

    __slots__ = ("_expires_at",)

    def __init__(self, timeout: float | None = None) -> None:
        if timeout is None:
            self._expires_at: float | None = None
        else:
            self._expires_at = monotonic() + timeout

    def __repr__(self) -> str:
        return f"{type(self).__name__}(remaining={self.remaining()!r})"

    def remaining(self) -> float | None:
        """Seconds left before the deadline, never negative. ``None`` when
        unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - monotonic())

    def remaining_within(self, bound: float) -> float:
        """Like :meth:`remaining`, but never more than ``bound``."""
        remaining = self.remaining()
        if remaining is None:
            return bound
        return min(bound, remaining)

    @property
    def expired(self) -> bool:
        if self._expires_at is None:
            return False
        return monotonic() >= self._expires_at
