"""Spec registry for expectest.

A spec is registered under a keyword-shaped name (``":user/email"``) and is
validated through pydantic. Expected forms naming a registered spec are
checked by conformance rather than equality.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError

from expectest.diagnostics import DiagnosticContext, UsageError


def is_keyword(name: Any) -> bool:
    """Whether ``name`` is keyword-shaped (a string starting with ':')."""
    return isinstance(name, str) and len(name) > 1 and name.startswith(":")


@dataclass
class RegisteredSpec:
    """A spec and how to explain non-conformance."""

    name: str
    schema: Any
    explainer: Callable[[Any], str] | None = None
    _adapter: TypeAdapter[Any] | None = None

    @property
    def is_predicate(self) -> bool:
        return callable(self.schema) and not isinstance(self.schema, type) and not _is_annotation(self.schema)

    def adapter(self) -> TypeAdapter[Any]:
        if self._adapter is None:
            self._adapter = TypeAdapter(self.schema)
        return self._adapter

    def is_valid(self, value: Any) -> bool:
        if self.is_predicate:
            return bool(self.schema(value))
        try:
            self.adapter().validate_python(value, strict=True)
        except ValidationError:
            return False
        return True

    def explain(self, value: Any) -> str | None:
        """Why ``value`` does not conform, or None when it does."""
        if self.is_valid(value):
            return None
        if self.explainer is not None:
            return self.explainer(value)
        if self.is_predicate:
            name = getattr(self.schema, "__name__", repr(self.schema))
            return f"{value!r} - failed: {name} spec: {self.name}"
        try:
            self.adapter().validate_python(value, strict=True)
        except ValidationError as e:
            return str(e)
        return None


class SpecRegistry:
    """Registry of keyword-named specs."""

    def __init__(self) -> None:
        self._specs: dict[str, RegisteredSpec] = {}

    def register(
        self,
        name: str,
        schema: Any,
        explain: Callable[[Any], str] | None = None,
    ) -> RegisteredSpec:
        """Register a spec.

        Args:
            name: Keyword-shaped name, e.g. ":user/email".
            schema: A type or annotation understood by pydantic, or a predicate.
            explain: Optional function producing the explanation for a value.

        Returns:
            The registered spec.
        """
        if not is_keyword(name):
            ctx = DiagnosticContext(target="register_spec")
            ctx.add_note(f"name {name!r} is not keyword-shaped")
            ctx.add_suggestion(f"Use a name starting with ':', e.g. ':{name}'")
            raise UsageError(f"Invalid spec name: {name!r}", context=ctx)

        spec = RegisteredSpec(name=name, schema=schema, explainer=explain)
        self._specs[name] = spec
        return spec

    def unregister(self, name: str) -> None:
        self._specs.pop(name, None)

    def is_registered(self, name: Any) -> bool:
        return is_keyword(name) and name in self._specs

    def get(self, name: str) -> RegisteredSpec:
        if name not in self._specs:
            raise UsageError(f"Spec {name!r} is not registered")
        return self._specs[name]

    def is_valid(self, name: str, value: Any) -> bool:
        return self.get(name).is_valid(value)

    def explain(self, name: str, value: Any) -> str | None:
        return self.get(name).explain(value)

    def names(self) -> list[str]:
        return sorted(self._specs)

    def clear(self) -> None:
        self._specs.clear()


def _is_annotation(obj: Any) -> bool:
    # typing constructs such as list[int] or Annotated[...] are callable in some cases
    return hasattr(obj, "__origin__")


# Default registry consulted by the parser
_registry = SpecRegistry()


def get_registry() -> SpecRegistry:
    """Get the default spec registry."""
    return _registry


def register_spec(name: str, schema: Any, explain: Callable[[Any], str] | None = None) -> RegisteredSpec:
    """Register a spec in the default registry."""
    return _registry.register(name, schema, explain)
