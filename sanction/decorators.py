"""
Decorators for Sanction authorization.

This module provides a decorator that guards a function with an engine
check, so the body only runs when the action is granted.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

if TYPE_CHECKING:
    from sanction.engine import DecisionEngine

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def requires(
    engine: DecisionEngine,
    verb: str,
    noun: str | None = None,
    resource_param: str | None = None,
    actor_param: str = "actor",
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator that authorizes a call before running it.

    The target is the argument named resource_param when given (a noun
    string or a ProtectedResource), otherwise the fixed noun, which
    defaults to the function name. The actor is the argument named
    actor_param when the function has one and it is not None; otherwise
    the engine resolves the identity as usual.

    Args:
        engine: The DecisionEngine answering the check.
        verb: The action the function performs.
        noun: Fixed noun to check.
        resource_param: Parameter holding the resource to check.
        actor_param: Parameter holding the acting user.

    Returns:
        A decorator function.

    Raises:
        AuthorizationDenied: From the wrapped function, before its body
            runs, when the action is not granted.

    Example:
        >>> @requires(engine, "update", resource_param="post")
        ... def update_post(post: Post, body: str, actor=None):
        ...     post.body = body
        >>>
        >>> update_post(post, "edited", actor=alice)
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        is_async = inspect.iscoroutinefunction(func)
        signature = inspect.signature(func)
        fixed_noun = noun or func.__name__

        if resource_param is not None and resource_param not in signature.parameters:
            raise ValueError(
                f"{func.__name__}() has no parameter named '{resource_param}'"
            )

        def authorize(args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
            bound = signature.bind_partial(*args, **kwargs)
            bound.apply_defaults()
            target: Any = fixed_noun
            if resource_param is not None:
                target = bound.arguments.get(resource_param)
                if target is None:
                    raise ValueError(
                        f"{func.__name__}() called without '{resource_param}' to authorize"
                    )
            actor = bound.arguments.get(actor_param)
            logger.debug(f"Authorizing {func.__name__}(): {verb}")
            engine.authorize_or_raise(verb, target, actor)

        if is_async:
            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                authorize(args, kwargs)
                return await func(*args, **kwargs)

            return async_wrapper  # type: ignore
        else:
            @functools.wraps(func)
            def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                authorize(args, kwargs)
                return func(*args, **kwargs)

            return sync_wrapper  # type: ignore

    return decorator
