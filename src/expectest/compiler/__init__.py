"""expectest compiler - classifies expectation forms into IR."""

from expectest.compiler.ir import (
    ActualForm,
    ActualKind,
    ExpectationIR,
    ExpectedForm,
    ExpectedKind,
    ThreadStep,
)
from expectest.compiler.parser import ExpectationParser, parse
from expectest.compiler.path import AccessorPath, compile_path

__all__ = [
    # IR models
    "ActualForm",
    "ActualKind",
    "ExpectationIR",
    "ExpectedForm",
    "ExpectedKind",
    "ThreadStep",
    # Parser
    "ExpectationParser",
    "parse",
    # Accessor paths
    "AccessorPath",
    "compile_path",
]
