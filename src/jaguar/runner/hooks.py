"""
Hook composition and invocation.

Merged per-test hook chains are computed once per suite and cached on the
tree. Later changes to ancestor hooks are not picked up by a suite whose
chains were already cached; the cache is dropped only by ``SuiteTree.reset``.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from jaguar.dsl.models import Hook, SuiteTree


@dataclass(frozen=True)
class HookChains:
    """Ordered per-test hooks for one suite, ancestors included."""

    before: tuple[Hook, ...] = ()
    after: tuple[Hook, ...] = ()


def merge_hooks(
    tree: SuiteTree,
    suite_id: int,
    inherited_before: Sequence[Hook] = (),
    inherited_after: Sequence[Hook] = (),
) -> HookChains:
    """
    Compose a suite's before/after chains with its ancestors'.

    ``before`` runs ancestors first, then the suite's own hooks; ``after``
    runs the suite's own hooks first, then ancestors'.
    """
    cached = tree.hook_cache.get(suite_id)
    if cached is not None:
        return cached

    hooks = tree.suite(suite_id).hooks
    chains = HookChains(
        before=(*inherited_before, *hooks.before_each),
        after=(*hooks.after_each, *inherited_after),
    )
    tree.hook_cache[suite_id] = chains
    return chains


def accepts_context(fn: Callable[..., Any]) -> bool:
    """Whether a hook or test body takes the run context as its first argument."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return False

    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            return True
    return False


async def call_with_context(fn: Callable[..., Any], context: dict[str, Any]) -> Any:
    """Call a sync or async hook/body, passing the context if it accepts one."""
    result = fn(context) if accepts_context(fn) else fn()
    if inspect.isawaitable(result):
        result = await result
    return result


async def run_hooks(hooks: Sequence[Hook], context: dict[str, Any]) -> None:
    """Run hooks one after another; the first failure propagates."""
    for hook in hooks:
        await call_with_context(hook, context)
