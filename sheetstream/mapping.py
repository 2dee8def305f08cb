"""Column-to-field binding and record mapping."""

# Module responsibilities:
# - Declare column bindings on dataclass record shapes via column().
# - Build an immutable BindingTable once per shape, resolving a converter per field.
# - Map RawRow cells onto new record instances, leaving unconvertible fields at their defaults.

from __future__ import annotations

import dataclasses
import enum
import types
import typing
from dataclasses import MISSING, dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Type, TypeVar, Union

import yaml
from openpyxl.utils import column_index_from_string

from .errors import CoercionError, MappingError, RecordError
from .schema import RawRow
from .utils.log import get_logger

logger = get_logger("mapping")

T = TypeVar("T")
Converter = Callable[[str], Any]
ColumnRef = Union[int, str]

COLUMN_KEY = "sheetstream.column"
CONVERTER_KEY = "sheetstream.converter"

TRUE_WORDS = frozenset({"true", "1", "yes", "y"})
FALSE_WORDS = frozenset({"false", "0", "no", "n"})

DATE_LAYOUTS = ("%Y/%m/%d", "%m/%d/%Y", "%m/%d/%y", "%d.%m.%Y", "%Y%m%d")
DATETIME_LAYOUTS = (
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%y %H:%M",
)
TIME_LAYOUTS = ("%H:%M", "%I:%M %p", "%I:%M:%S %p")


def resolve_column(ref: ColumnRef) -> int:
    """Return the 0-based column index for an int index or an Excel letter."""

    if isinstance(ref, bool):
        raise MappingError(f"Invalid column reference: {ref!r}")
    if isinstance(ref, int):
        if ref < 0:
            raise MappingError(f"Column index must be non-negative: {ref}")
        return ref
    if isinstance(ref, str):
        text = ref.strip()
        if text.isdigit():
            return int(text)
        try:
            return column_index_from_string(text.upper()) - 1
        except ValueError as exc:
            raise MappingError(f"Invalid column reference: {ref!r}") from exc
    raise MappingError(f"Invalid column reference: {ref!r}")


def column(
    ref: ColumnRef,
    *,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    converter: Optional[Converter] = None,
) -> Any:
    """Declare a dataclass field bound to a sheet column.

    Args:
        ref: 0-based column index or Excel column letter (``"A"``, ``"AB"``).
        default: Value kept when the column is absent or cannot be converted;
            ``None`` when omitted.
        default_factory: Alternative to ``default`` for mutable defaults.
        converter: Optional callable overriding the type-derived converter.
    """

    metadata: Dict[str, Any] = {COLUMN_KEY: resolve_column(ref)}
    if converter is not None:
        metadata[CONVERTER_KEY] = converter
    if default is not MISSING and default_factory is not MISSING:
        raise MappingError("column() accepts either default or default_factory, not both")
    if default_factory is not MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=None if default is MISSING else default, metadata=metadata)


# Converters ------------------------------------------------------------------


def _plain_number(text: str) -> str:
    return text.strip().replace(",", "")


def to_str(text: str) -> str:
    return text


def to_int(text: str) -> int:
    try:
        number = Decimal(_plain_number(text))
    except InvalidOperation as exc:
        raise CoercionError(f"Not an integer: {text!r}") from exc
    if number != number.to_integral_value():
        raise CoercionError(f"Not an integer: {text!r}")
    return int(number)


def to_float(text: str) -> float:
    plain = _plain_number(text)
    scale = 1.0
    if plain.endswith("%"):
        plain = plain[:-1]
        scale = 0.01
    try:
        return float(plain) * scale
    except ValueError as exc:
        raise CoercionError(f"Not a number: {text!r}") from exc


def to_decimal(text: str) -> Decimal:
    try:
        return Decimal(_plain_number(text))
    except InvalidOperation as exc:
        raise CoercionError(f"Not a decimal: {text!r}") from exc


def to_bool(text: str) -> bool:
    word = text.strip().lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    raise CoercionError(f"Not a boolean: {text!r}")


def _strptime_any(text: str, layouts: tuple[str, ...]) -> Optional[datetime]:
    for layout in layouts:
        try:
            return datetime.strptime(text, layout)
        except ValueError:
            continue
    return None


def to_datetime(text: str) -> datetime:
    value = text.strip()
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    parsed = _strptime_any(value, DATETIME_LAYOUTS + DATE_LAYOUTS)
    if parsed is None:
        raise CoercionError(f"Not a datetime: {text!r}")
    return parsed


def to_date(text: str) -> date:
    value = text.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    parsed = _strptime_any(value, DATE_LAYOUTS)
    if parsed is None:
        return to_datetime(value).date()
    return parsed.date()


def to_time(text: str) -> time:
    value = text.strip()
    try:
        return time.fromisoformat(value)
    except ValueError:
        pass
    parsed = _strptime_any(value, TIME_LAYOUTS)
    if parsed is None:
        return to_datetime(value).time()
    return parsed.time()


def _enum_converter(enum_type: Type[enum.Enum]) -> Converter:
    def convert(text: str) -> enum.Enum:
        try:
            return enum_type(text)
        except ValueError:
            pass
        try:
            return enum_type[text.strip()]
        except KeyError as exc:
            raise CoercionError(f"Not a {enum_type.__name__}: {text!r}") from exc

    return convert


def _passthrough(text: str) -> Any:
    return text


CONVERTERS: Mapping[Any, Converter] = types.MappingProxyType(
    {
        str: to_str,
        int: to_int,
        float: to_float,
        Decimal: to_decimal,
        bool: to_bool,
        datetime: to_datetime,
        date: to_date,
        time: to_time,
        Any: _passthrough,
        object: _passthrough,
    }
)


def _unwrap_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def converter_for(annotation: Any) -> Optional[Converter]:
    """Return the converter for a field annotation, or ``None`` when unsupported."""

    target = _unwrap_optional(annotation)
    if isinstance(target, type) and issubclass(target, enum.Enum):
        return _enum_converter(target)
    return CONVERTERS.get(target)


# Binding table ---------------------------------------------------------------


@dataclass(frozen=True)
class FieldBinding:
    """Target field descriptor for one bound column."""

    name: str
    column: int
    converter: Converter


@dataclass(frozen=True)
class BindingTable(Generic[T]):
    """Immutable ``column_index -> FieldBinding`` table for one record shape."""

    shape: Type[T]
    bindings: Mapping[int, FieldBinding]

    @classmethod
    def for_shape(
        cls,
        shape: Type[T],
        overrides: Optional[Mapping[str, ColumnRef]] = None,
    ) -> "BindingTable[T]":
        """Build the binding table from a dataclass shape.

        Args:
            shape: Dataclass type whose fields declare columns via :func:`column`.
            overrides: Optional ``field_name -> column`` mapping replacing the
                declared columns (and binding undeclared fields).

        Raises:
            MappingError: When the shape cannot be mapped safely.
        """

        if not (isinstance(shape, type) and dataclasses.is_dataclass(shape)):
            raise MappingError(f"Record shape must be a dataclass type, got {shape!r}")
        try:
            hints = typing.get_type_hints(shape)
        except Exception as exc:  # noqa: BLE001
            raise MappingError(f"Cannot resolve type hints of {shape.__name__}: {exc}") from exc

        overrides = dict(overrides or {})
        fields = {f.name: f for f in dataclasses.fields(shape)}
        unknown = set(overrides) - fields.keys()
        if unknown:
            raise MappingError(
                f"{shape.__name__} has no fields named: {', '.join(sorted(unknown))}"
            )

        bindings: Dict[int, FieldBinding] = {}
        for name, fld in fields.items():
            if fld.init and fld.default is MISSING and fld.default_factory is MISSING:
                raise MappingError(f"Field {shape.__name__}.{name} needs a default value")
            if name in overrides:
                index = resolve_column(overrides[name])
            elif COLUMN_KEY in fld.metadata:
                index = fld.metadata[COLUMN_KEY]
            else:
                continue
            if not fld.init:
                raise MappingError(f"Field {shape.__name__}.{name} is bound but not an init field")
            converter = fld.metadata.get(CONVERTER_KEY) or converter_for(hints.get(name, Any))
            if converter is None:
                raise MappingError(
                    f"No converter for {shape.__name__}.{name} of type {hints.get(name)!r}"
                )
            if index in bindings:
                raise MappingError(
                    f"Column {index} bound twice: {bindings[index].name} and {name}"
                )
            bindings[index] = FieldBinding(name=name, column=index, converter=converter)

        logger.debug(
            "Binding table built",
            extra={"shape": shape.__name__, "columns": sorted(bindings)},
        )
        return cls(shape=shape, bindings=types.MappingProxyType(dict(sorted(bindings.items()))))

    @classmethod
    def from_yaml(cls, shape: Type[T], path: Path) -> "BindingTable[T]":
        """Load ``columns: {field: column}`` overrides from YAML and build the table."""

        with Path(path).open("r", encoding="utf-8") as fh:
            payload = yaml.safe_load(fh)
        if not isinstance(payload, dict) or not isinstance(payload.get("columns"), dict):
            raise MappingError("Binding YAML must contain a 'columns' mapping")
        overrides = {str(name): ref for name, ref in payload["columns"].items()}
        return cls.for_shape(shape, overrides)

    def field_for(self, column_index: int) -> Optional[FieldBinding]:
        return self.bindings.get(column_index)


class RecordMapper(Generic[T]):
    """Apply a BindingTable to RawRows.

    Coercion policy: a cell whose text cannot be converted leaves its field at
    the shape's default; the failure is logged at DEBUG and mapping continues.
    """

    def __init__(self, table: BindingTable[T]) -> None:
        self._table = table

    @property
    def table(self) -> BindingTable[T]:
        return self._table

    def map(self, row: RawRow) -> T:
        values: Dict[str, Any] = {}
        for column_index, text in row:
            binding = self._table.bindings.get(column_index)
            if binding is None:
                continue
            try:
                values[binding.name] = binding.converter(text)
            except Exception as exc:  # noqa: BLE001
                logger.debug(
                    "Field left at default",
                    extra={"row": row.index, "field": binding.name, "error": str(exc)},
                )
        try:
            return self._table.shape(**values)
        except Exception as exc:  # noqa: BLE001
            raise RecordError(
                f"Row {row.index}: {self._table.shape.__name__} rejected mapped values: {exc}"
            ) from exc
