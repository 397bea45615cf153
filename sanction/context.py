"""
Request-scoped identity for Sanction.

Hosts that authenticate per request (web handlers, task workers) bind the
acting user for the duration of the request with acting_as(). The binding
lives in a context variable, so concurrent threads and asyncio tasks each
see their own actor and nothing leaks from one request to the next.
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sanction.types import Actor, as_actor

# Context variable for the actor bound to the current request
_current_actor: contextvars.ContextVar[Actor | None] = contextvars.ContextVar(
    "sanction_actor", default=None
)


def get_current_actor() -> Actor | None:
    """Get the actor bound to the current context, if any."""
    return _current_actor.get()


@contextmanager
def acting_as(actor: Any) -> Iterator[Actor]:
    """
    Context manager to bind the acting identity for the current context.

    Checks made inside the block use this actor unless a check passes
    its own. Raw identities are wrapped in AuthenticatedUser and None
    binds GUEST explicitly.

    Yields:
        The bound actor.

    Example:
        >>> with acting_as(AuthenticatedUser(request.user_id)):
        ...     engine.check("update", post).please()
    """
    bound = as_actor(actor)
    token = _current_actor.set(bound)
    try:
        yield bound
    finally:
        _current_actor.reset(token)
