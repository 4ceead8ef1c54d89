"""Property values: Concrete(value) or Deferred(token)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterator, Union

TOKEN_REF_KEY: str = "$ref"
TOKEN_ATTR_KEY: str = "$attr"

_SCALARS = (str, int, float, bool, type(None))


@dataclass(frozen=True, slots=True)
class Concrete:
    """A value known at synthesis time."""

    value: Any


@dataclass(frozen=True, slots=True)
class Deferred:
    """
    A value only known after `ref` has been deployed.

    Resolved by the orchestrator from the attributes returned for `ref`.
    """

    ref: str
    attribute: str = "id"

    @property
    def path(self) -> str:
        return f"{self.ref}.{self.attribute}"

    def to_token(self) -> dict[str, str]:
        """Serialized token form used inside plans."""
        return {TOKEN_REF_KEY: self.ref, TOKEN_ATTR_KEY: self.attribute}


PropertyValue = Union[Concrete, Deferred]


def ref(identifier: str, attribute: str = "id") -> Deferred:
    """Declare a reference to another resource's deployed attribute."""
    return Deferred(ref=identifier, attribute=attribute)


def parse_ref_path(path: str) -> Deferred:
    """Parse ``"network.id"`` (or just ``"network"``) into a Deferred."""
    if not isinstance(path, str) or not path.strip():
        raise ValueError("reference path must be a non-empty string")
    identifier, _, attribute = path.strip().partition(".")
    if not identifier:
        raise ValueError(f"invalid reference path: {path!r}")
    return Deferred(ref=identifier, attribute=attribute or "id")


def is_token(value: Any) -> bool:
    """Return True if value is a serialized Deferred token."""
    return (
        isinstance(value, dict)
        and set(value.keys()) == {TOKEN_REF_KEY, TOKEN_ATTR_KEY}
        and isinstance(value[TOKEN_REF_KEY], str)
        and isinstance(value[TOKEN_ATTR_KEY], str)
    )


def deferred_from_token(value: dict[str, str]) -> Deferred:
    return Deferred(ref=value[TOKEN_REF_KEY], attribute=value[TOKEN_ATTR_KEY])


def classify(value: Any) -> PropertyValue:
    """Tag a top-level property value as Concrete or Deferred."""
    if isinstance(value, (Concrete, Deferred)):
        return value
    if is_token(value):
        return deferred_from_token(value)
    return Concrete(value)


def iter_references(value: Any) -> Iterator[Deferred]:
    """Yield every Deferred reference inside a (possibly nested) value."""
    if isinstance(value, Deferred):
        yield value
    elif isinstance(value, Concrete):
        yield from iter_references(value.value)
    elif is_token(value):
        yield deferred_from_token(value)
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_references(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_references(item)


def to_plan_value(value: Any) -> Any:
    """
    Convert a declared value into its plan form.

    Deferred becomes a token dict, Concrete is unwrapped, tuples become lists.

    Raises:
        ValueError: if a value is not JSON-compatible.
    """
    if isinstance(value, Deferred):
        return value.to_token()
    if isinstance(value, Concrete):
        return to_plan_value(value.value)
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValueError(f"property keys must be strings, got {key!r}")
            out[key] = to_plan_value(item)
        return out
    if isinstance(value, (list, tuple)):
        return [to_plan_value(item) for item in value]
    if isinstance(value, _SCALARS):
        return value
    raise ValueError(f"unsupported property value type: {type(value).__name__}")


def resolve_value(value: Any, lookup: Callable[[Deferred], Any]) -> Any:
    """Replace every token in a plan value with ``lookup(deferred)``."""
    if is_token(value):
        return lookup(deferred_from_token(value))
    if isinstance(value, dict):
        return {key: resolve_value(item, lookup) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_value(item, lookup) for item in value]
    return value
