"""
Positional parameter values for prepared statements.

Each value knows which setter of the prepared handle binds it, so binding is
a method call rather than a type switch. Plain Python scalars are converted
once at the API boundary by ``to_param``.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol, Union


class Bindable(Protocol):
    def set_number(self, pos: int, value: int | float | Decimal) -> None: ...
    def set_string(self, pos: int, value: str) -> None: ...
    def set_bool(self, pos: int, value: bool) -> None: ...
    def set_null(self, pos: int) -> None: ...


@dataclass(frozen=True)
class Number:
    value: int | float | Decimal

    def bind(self, handle: Bindable, pos: int) -> None:
        handle.set_number(pos, self.value)


@dataclass(frozen=True)
class Text:
    value: str

    def bind(self, handle: Bindable, pos: int) -> None:
        handle.set_string(pos, self.value)


@dataclass(frozen=True)
class Boolean:
    value: bool

    def bind(self, handle: Bindable, pos: int) -> None:
        handle.set_bool(pos, self.value)


@dataclass(frozen=True)
class Null:
    def bind(self, handle: Bindable, pos: int) -> None:
        handle.set_null(pos)


ParamValue = Union[Number, Text, Boolean, Null]

_PARAM_TYPES = (Number, Text, Boolean, Null)


def to_param(value: Any) -> ParamValue:
    """Convert a scalar to its ParamValue. Raises TypeError for anything else."""
    if isinstance(value, _PARAM_TYPES):
        return value
    if value is None:
        return Null()
    # bool before numbers: bool is an int subclass
    if isinstance(value, bool):
        return Boolean(value)
    if isinstance(value, (int, float, Decimal)):
        return Number(value)
    if isinstance(value, str):
        return Text(value)
    raise TypeError(f"unsupported parameter type {type(value).__name__}")
