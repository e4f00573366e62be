"""Accessor paths for threaded chains.

Uses lark to parse strings like ``"['items'][0].name|len"`` into a callable
that walks a value step by step.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from lark import Lark, Transformer, v_args
from lark.exceptions import LarkError

from expectest.diagnostics import DiagnosticContext, UsageError

# Load grammar from file adjacent to this module
GRAMMAR_PATH = Path(__file__).parent / "path.lark"

# Builtins reachable through "|name"
PIPE_FUNCTIONS: dict[str, Any] = {
    "bool": bool,
    "dict": dict,
    "float": float,
    "int": int,
    "len": len,
    "list": list,
    "max": max,
    "min": min,
    "repr": repr,
    "set": set,
    "sorted": sorted,
    "str": str,
    "sum": sum,
    "tuple": tuple,
    "type": type,
}


@dataclass(frozen=True)
class Step:
    """A single accessor step."""

    op: str  # "attr", "call", "item" or "pipe"
    arg: Any

    def apply(self, value: Any) -> Any:
        if self.op == "attr":
            return getattr(value, self.arg)
        if self.op == "call":
            return getattr(value, self.arg)()
        if self.op == "item":
            return value[self.arg]
        return PIPE_FUNCTIONS[self.arg](value)

    def __str__(self) -> str:
        if self.op == "attr":
            return f".{self.arg}"
        if self.op == "call":
            return f".{self.arg}()"
        if self.op == "item":
            return f"[{self.arg!r}]"
        return f"|{self.arg}"


@dataclass(frozen=True)
class AccessorPath:
    """A compiled accessor path; calling it walks the steps in order."""

    steps: tuple[Step, ...]

    def __call__(self, value: Any) -> Any:
        for step in self.steps:
            value = step.apply(value)
        return value

    def __str__(self) -> str:
        return "".join(str(s) for s in self.steps)


class PathTransformer(Transformer[Any, Any]):
    """Transform lark parse tree into accessor steps."""

    def start(self, items: list[Step]) -> AccessorPath:
        return AccessorPath(tuple(items))

    @v_args(inline=True)
    def attr_call(self, name: Any) -> Step:
        return Step("call", str(name))

    @v_args(inline=True)
    def attr(self, name: Any) -> Step:
        return Step("attr", str(name))

    @v_args(inline=True)
    def item(self, index: Any) -> Step:
        return Step("item", index)

    @v_args(inline=True)
    def pipe(self, name: Any) -> Step:
        return Step("pipe", str(name))

    @v_args(inline=True)
    def int_index(self, token: Any) -> int:
        return int(token)

    @v_args(inline=True)
    def str_index(self, token: Any) -> str:
        return str(token)[1:-1]  # Remove surrounding quotes


class PathParser:
    """Parser for accessor paths."""

    def __init__(self) -> None:
        """Initialize the parser with the grammar."""
        self._parser = Lark(
            GRAMMAR_PATH.read_text(),
            parser="lalr",
            transformer=PathTransformer(),
        )

    def parse(self, text: str) -> AccessorPath:
        """Parse an accessor path."""
        try:
            path: AccessorPath = self._parser.parse(text)  # type: ignore[assignment]
        except LarkError as e:
            ctx = DiagnosticContext(target=f"accessor path {text!r}")
            ctx.add_note(str(e).strip().splitlines()[0])
            ctx.add_suggestion("Use steps like .name, .method(), [0], ['key'] or |len")
            raise UsageError(f"Invalid accessor path: {text!r}", context=ctx) from e

        for step in path.steps:
            if step.op == "pipe" and step.arg not in PIPE_FUNCTIONS:
                raise UsageError(f"Unknown pipe function {step.arg!r}", context=_pipe_context(step.arg))
        return path


# Module-level parser instance for convenience
_parser: PathParser | None = None


def get_parser() -> PathParser:
    """Get or create the module-level parser instance."""
    global _parser
    if _parser is None:
        _parser = PathParser()
    return _parser


@lru_cache(maxsize=256)
def compile_path(text: str) -> AccessorPath:
    """Compile an accessor path string."""
    return get_parser().parse(text)


def _pipe_context(name: str) -> DiagnosticContext:
    ctx = DiagnosticContext(target=f"|{name}")
    ctx.add_suggestion(f"Available: {', '.join(sorted(PIPE_FUNCTIONS))}")
    return ctx
