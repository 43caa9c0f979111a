"""Hook system for Shield API calls.

Every client operation runs inside ``invoke_with_hooks``: pre-hooks before the
call, error-hooks when it raises, post-hooks in all cases. Hooks receive the
frozen call context of the operation.
"""

import contextlib
from collections.abc import Callable, Generator, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Hooks:
    """Hook lists for a client instance.

    Attributes:
        pre_hooks: Called before the API call
        post_hooks: Called after the API call (finally semantics)
        error_hooks: Called when the API call raises
    """

    pre_hooks: Iterable[Callable[[Any], None]] = field(default_factory=list)
    post_hooks: Iterable[Callable[[Any], None]] = field(default_factory=list)
    error_hooks: Iterable[Callable[[Any], None]] = field(default_factory=list)

    def merge(self, other: "Hooks | None") -> "Hooks":
        """Return new Hooks with ``other`` appended after these hooks."""
        if other is None:
            return self
        return Hooks(
            pre_hooks=[*self.pre_hooks, *other.pre_hooks],
            post_hooks=[*self.post_hooks, *other.post_hooks],
            error_hooks=[*self.error_hooks, *other.error_hooks],
        )


@contextlib.contextmanager
def invoke_with_hooks(
    context: T,
    pre_hooks: Iterable[Callable[[T], None]] | None = None,
    post_hooks: Iterable[Callable[[T], None]] | None = None,
    error_hooks: Iterable[Callable[[T], None]] | None = None,
) -> Generator[None, Any, None]:
    for hook in pre_hooks or []:
        hook(context)
    try:
        yield
    except BaseException:
        for hook in error_hooks or []:
            hook(context)
        raise
    finally:
        for hook in post_hooks or []:
            hook(context)
