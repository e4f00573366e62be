"""Call capture for expectest.

Replaces a set of functions with recording stand-ins for the duration of a
body and returns the argument lists of every call, in call order. Dotted
targets are patched with unittest.mock.patch; bare names are only handed to the
body as injected stand-ins.

The patching is process-wide and not thread-safe.
"""

from __future__ import annotations

from contextlib import ExitStack, contextmanager
from typing import Any, Callable, Generator, Iterator
from unittest.mock import MagicMock, patch

from expectest.diagnostics import DiagnosticContext, UsageError, debug
from expectest.expander import positional_arity


class CallLog:
    """Shared, ordered accumulator of call argument lists."""

    def __init__(self) -> None:
        self.calls: list[list[Any]] = []
        self.stubs = Stubs()

    def record(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        call = list(args)
        if kwargs:
            call.append(dict(kwargs))
        self.calls.append(call)

    def snapshot(self) -> list[list[Any]]:
        return [list(call) for call in self.calls]

    def __len__(self) -> int:
        return len(self.calls)


class Stubs:
    """Stand-ins by identifier; also reachable as attributes by their last name segment."""

    def __init__(self) -> None:
        self._stand_ins: dict[str, MagicMock] = {}

    def __setitem__(self, identifier: str, stand_in: MagicMock) -> None:
        self._stand_ins[identifier] = stand_in

    def __getitem__(self, identifier: str) -> MagicMock:
        return self._stand_ins[identifier]

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._stand_ins

    def __iter__(self) -> Iterator[str]:
        return iter(self._stand_ins)

    def __len__(self) -> int:
        return len(self._stand_ins)

    def __getattr__(self, name: str) -> MagicMock:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._stand_ins:
            return self._stand_ins[name]
        for identifier, stand_in in self._stand_ins.items():
            if identifier.rsplit(".", 1)[-1] == name:
                return stand_in
        raise AttributeError(name)


def parse_mock_specs(mocks: Any) -> list[tuple[str, Any]]:
    """Normalize function specs into (identifier, return value) pairs.

    A spec is an identifier or an (identifier, return_value) pair. An
    identifier is a dotted import path, a bare name, or a module-level function.
    """
    if not isinstance(mocks, (list, tuple)):
        ctx = DiagnosticContext(target="side_effects")
        ctx.add_note(f"got {type(mocks).__name__}")
        ctx.add_suggestion("Wrap the function specs in a list: side_effects(['pkg.mod.fn'], body)")
        raise UsageError("side_effects requires a sequence of function specs", context=ctx)

    if not mocks:
        raise UsageError("side_effects requires at least one function spec")

    specs: list[tuple[str, Any]] = []
    for spec in mocks:
        if isinstance(spec, (list, tuple)):
            if len(spec) not in (1, 2):
                raise UsageError(f"Invalid function spec {spec!r}: expected (identifier, return_value)")
            identifier = _identifier(spec[0])
            returns = spec[1] if len(spec) == 2 else None
        else:
            identifier = _identifier(spec)
            returns = None
        specs.append((identifier, returns))

    seen = set()
    for identifier, _ in specs:
        if identifier in seen:
            raise UsageError(f"Function {identifier!r} is listed more than once")
        seen.add(identifier)

    return specs


@contextmanager
def capturing(mocks: Any) -> Generator[CallLog, None, None]:
    """Context manager installing recording stand-ins.

    Usage:
        with capturing(["myapp.mail.send"]) as log:
            notify_user(42)

        assert log.calls == [["user-42@example.com", "hello"]]
    """
    specs = parse_mock_specs(mocks)
    log = CallLog()

    with ExitStack() as stack:
        for identifier, returns in specs:
            stand_in = _make_stand_in(log, identifier, returns)
            if "." in identifier:
                debug(f"Installing stand-in: {identifier} -> {returns!r}")
                stack.enter_context(patch(identifier, stand_in))
            log.stubs[identifier] = stand_in

        yield log


def side_effects(mocks: Any, body: Callable[..., Any]) -> list[list[Any]]:
    """Run ``body`` with ``mocks`` replaced and return the captured calls.

    Args:
        mocks: Sequence of function specs: ``"pkg.mod.fn"``, ``("pkg.mod.fn", 42)``,
            or a bare ``"name"`` for a stand-in that is only injected.
        body: Zero-argument callable, or one taking the ``Stubs`` namespace.

    Returns:
        Argument lists of every call, in call order across all stand-ins.
    """
    with capturing(mocks) as log:
        if positional_arity(body) >= 1:
            body(log.stubs)
        else:
            body()
    return log.snapshot()


def _make_stand_in(log: CallLog, identifier: str, returns: Any) -> MagicMock:
    def record(*args: Any, **kwargs: Any) -> Any:
        log.record(args, kwargs)
        return returns

    return MagicMock(name=identifier, side_effect=record)


def _identifier(spec: Any) -> str:
    if isinstance(spec, str) and spec:
        return spec
    if callable(spec) and hasattr(spec, "__module__") and hasattr(spec, "__qualname__"):
        if "<locals>" in spec.__qualname__:
            raise UsageError(f"Cannot patch local function {spec.__qualname__!r}; pass a bare name and inject it")
        return f"{spec.__module__}.{spec.__qualname__}"
    raise UsageError(f"Invalid function identifier {spec!r}")
