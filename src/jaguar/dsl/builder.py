"""
Declarative suite-building API.

``describe`` / ``it`` / ``test`` / ``each`` and hook registration populate a
``SuiteTree``. ``describe`` and ``it`` accept the callable positionally or
can be used as decorators, and expose ``.only`` / ``.skip`` variants.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Iterable, Sequence, TypeVar

import structlog

from jaguar.dsl.models import Hook, SuiteTree, TestBody, TestOptions
from jaguar.errors import JaguarError

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class _Registrar:
    """Callable with ``.only`` and ``.skip`` variants."""

    def __init__(self, register: Callable[..., Any]) -> None:
        self._register = register

    def __call__(self, title: str, fn: Callable[..., Any] | None = None, **options: Any) -> Any:
        return self._register(title, fn, **options)

    def only(self, title: str, fn: Callable[..., Any] | None = None, **options: Any) -> Any:
        return self._register(title, fn, only=True, **options)

    def skip(self, title: str, fn: Callable[..., Any] | None = None, **options: Any) -> Any:
        return self._register(title, fn, skip=True, **options)


class SuiteBuilder:
    """
    Builds a suite tree from nested ``describe`` callbacks.

    Usage:
        builder = SuiteBuilder(tree)

        @builder.describe("Math")
        def _():
            builder.before_each(lambda ctx: ctx.update(base=1))
            builder.it("adds", lambda ctx: ...)
    """

    def __init__(self, tree: SuiteTree | None = None) -> None:
        self.tree = tree or SuiteTree()
        self._stack: list[int] = [self.tree.root_id]
        self.describe = _Registrar(self._describe)
        self.it = _Registrar(self._it)
        self.test = self.it
        self._log = logger.bind(component="suite_builder")

    @property
    def current_suite_id(self) -> int:
        return self._stack[-1]

    def reset(self) -> None:
        """Reset the tree and start collecting into a fresh root suite."""
        self.tree.reset()
        self._stack = [self.tree.root_id]

    def _describe(
        self,
        title: str,
        fn: Callable[[], Any] | None = None,
        *,
        only: bool = False,
        skip: bool = False,
        context: dict[str, Any] | None = None,
    ) -> Any:
        if fn is None:
            def decorator(func: F) -> F:
                self._describe(title, func, only=only, skip=skip, context=context)
                return func

            return decorator

        suite_id = self.tree.add_suite(
            self.current_suite_id,
            title,
            only=only,
            skip=skip,
            context=context,
        )
        self._stack.append(suite_id)
        try:
            result = fn()
            if inspect.isawaitable(result):
                # Close the coroutine so it is not reported as never awaited
                close = getattr(result, "close", None)
                if close is not None:
                    close()
                raise JaguarError(f"describe callback for '{title}' must be synchronous")
        finally:
            self._stack.pop()

        self._log.debug("Suite registered", suite=title, suite_id=suite_id)
        return suite_id

    def _it(
        self,
        title: str,
        fn: TestBody | None = None,
        *,
        only: bool = False,
        skip: bool = False,
        timeout_ms: float | None = None,
        retry: int = 0,
        tags: Iterable[str] | str | None = None,
    ) -> Any:
        if fn is None:
            def decorator(func: F) -> F:
                self._it(
                    title,
                    func,
                    only=only,
                    skip=skip,
                    timeout_ms=timeout_ms,
                    retry=retry,
                    tags=tags,
                )
                return func

            return decorator

        if not callable(fn):
            raise TypeError(f"Test body for '{title}' must be callable")

        options = TestOptions(timeout_ms=timeout_ms, retry=retry, tags=tags)
        return self.tree.add_test(
            self.current_suite_id,
            title,
            fn,
            options,
            only=only,
            skip=skip,
        )

    def each(self, cases: Sequence[Any]) -> Callable[..., Any]:
        """
        Register one test per case.

        ``each([2, 3])("is positive", fn)`` registers ``"is positive [case 0]"``
        and ``"is positive [case 1]"`` calling ``fn(2)`` and ``fn(3)``.
        """
        items = list(cases)

        def register(title: str, fn: Callable[[Any], Any] | None = None, **options: Any) -> Any:
            if fn is None:
                def decorator(func: F) -> F:
                    register(title, func, **options)
                    return func

                return decorator

            ids = []
            for index, item in enumerate(items):
                ids.append(
                    self._it(f"{title} [case {index}]", _bind_case(fn, item), **options)
                )
            return ids

        return register

    def _add_hook(self, kind: str, fn: Hook) -> Hook:
        if not callable(fn):
            raise TypeError(f"{kind} hook must be callable")
        hooks = self.tree.suite(self.current_suite_id).hooks
        getattr(hooks, kind).append(fn)
        return fn

    def before_all(self, fn: Hook) -> Hook:
        return self._add_hook("before_all", fn)

    def after_all(self, fn: Hook) -> Hook:
        return self._add_hook("after_all", fn)

    def before_each(self, fn: Hook) -> Hook:
        return self._add_hook("before_each", fn)

    def after_each(self, fn: Hook) -> Hook:
        return self._add_hook("after_each", fn)


def _bind_case(fn: Callable[[Any], Any], item: Any) -> Callable[[], Any]:
    def run_case() -> Any:
        return fn(item)

    run_case.__name__ = getattr(fn, "__name__", "run_case")
    return run_case
