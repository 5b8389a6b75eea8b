"""
Host-side buffer encoding.

Serialises Python and numpy values into the byte layout the GPU expects for a
type, and reads them back. Placement comes from :mod:`pywgsl.data.layout`;
padding bytes are written as zeros.

Example:
    >>> Particle = struct({"position": vec3f, "mass": f32})
    >>> data = write_value(Particle, {"position": (1, 2, 3), "mass": 0.5})
    >>> len(data)
    16
"""

from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
from loguru import logger

from pywgsl.data.layout import align_of, layout_of, round_up, size_of
from pywgsl.data.types import (
    DataType,
    LayoutRule,
    Matrix,
    Scalar,
    Struct,
    TypedValue,
    TypeKind,
)
from pywgsl.errors import ConfigurationError, ShapeMismatchError


def _storage_dtype(scalar: Scalar) -> np.dtype:
    # Booleans occupy a full 32-bit word.
    if scalar.dtype == "bool":
        return np.dtype("<u4")
    return np.dtype(scalar.dtype)


def _components(data_type: DataType, value: Any, count: int) -> np.ndarray:
    if isinstance(value, TypedValue):
        if value.data_type != data_type:
            raise ShapeMismatchError(
                "Value has the wrong type",
                expected=data_type.wgsl_name,
                actual=value.data_type.wgsl_name,
            )
        value = value.data
    data = np.ravel(np.asarray(value))
    if data.size != count:
        raise ShapeMismatchError(
            f"Wrong number of components for {data_type.wgsl_name}",
            expected=count,
            actual=data.size,
        )
    return data


def _column_stride(matrix: Matrix, rule: LayoutRule) -> int:
    column = matrix.column_type
    return round_up(size_of(column, rule), align_of(column, rule))


def _field_value(value: Any, name: str, struct: Struct) -> Any:
    if isinstance(value, Mapping):
        if name not in value:
            raise ShapeMismatchError(f"Missing value for field '{name}'", struct)
        return value[name]
    if hasattr(value, name):
        return getattr(value, name)
    raise ShapeMismatchError(f"Missing value for field '{name}'", struct)


def _write(
    buffer: bytearray, offset: int, data_type: DataType, value: Any, rule: LayoutRule
) -> None:
    kind = data_type.kind
    if kind is TypeKind.DECORATED:
        _write(buffer, offset, data_type.inner, value, rule)
    elif kind is TypeKind.ATOMIC:
        _write(buffer, offset, data_type.inner, value, rule)
    elif kind is TypeKind.SCALAR:
        raw = _components(data_type, value, 1).astype(_storage_dtype(data_type))
        buffer[offset : offset + data_type.size] = raw.tobytes()
    elif kind is TypeKind.VECTOR:
        component = data_type.component
        raw = _components(data_type, value, data_type.count)
        raw = raw.astype(_storage_dtype(component)).tobytes()
        buffer[offset : offset + len(raw)] = raw
    elif kind is TypeKind.MATRIX:
        data = _components(data_type, value, data_type.columns * data_type.rows)
        data = data.reshape(data_type.columns, data_type.rows)
        stride = _column_stride(data_type, rule)
        for index, column in enumerate(data):
            _write(buffer, offset + index * stride, data_type.column_type, column, rule)
    elif kind is TypeKind.ARRAY:
        if isinstance(value, np.ndarray) and value.ndim >= 1:
            items = list(value)
        elif isinstance(value, Sequence) and not isinstance(value, str):
            items = list(value)
        else:
            raise ShapeMismatchError(
                f"Expected a sequence for {data_type.wgsl_name}",
                actual=type(value).__name__,
            )
        if len(items) != data_type.count:
            raise ShapeMismatchError(
                f"Wrong number of elements for {data_type.wgsl_name}",
                expected=data_type.count,
                actual=len(items),
            )
        stride = layout_of(data_type).stride
        for index, item in enumerate(items):
            _write(
                buffer, offset + index * stride, data_type.element, item, data_type.rule
            )
    elif kind is TypeKind.STRUCT:
        for field_layout in layout_of(data_type).fields:
            field_value = _field_value(value, field_layout.name, data_type)
            _write(
                buffer,
                offset + field_layout.offset,
                field_layout.data_type,
                field_value,
                data_type.rule,
            )
    else:
        raise ConfigurationError(f"Cannot encode values of kind {kind}")


def write_value(data_type: DataType, value: Any) -> bytes:
    """Encode a host value with the memory layout of ``data_type``.

    Args:
        data_type: Type descriptor
        value: Python number, sequence, numpy array, typed value, mapping
            (for structs) or object with matching attributes

    Returns:
        Exactly ``size_of(data_type)`` bytes

    Raises:
        ShapeMismatchError: If the value does not have the shape of the type
    """
    size = layout_of(data_type).size
    buffer = bytearray(size)
    _write(buffer, 0, data_type, value, LayoutRule.ALIGNED)
    logger.debug(f"Encoded {size} bytes of {data_type}")
    return bytes(buffer)


def _read(data: bytes, offset: int, data_type: DataType, rule: LayoutRule) -> Any:
    kind = data_type.kind
    if kind in (TypeKind.DECORATED, TypeKind.ATOMIC):
        return _read(data, offset, data_type.inner, rule)
    if kind is TypeKind.SCALAR:
        raw = np.frombuffer(data, _storage_dtype(data_type), 1, offset)[0]
        if data_type.dtype == "bool":
            return bool(raw)
        return raw.item()
    if kind is TypeKind.VECTOR:
        component = data_type.component
        raw = np.frombuffer(data, _storage_dtype(component), data_type.count, offset)
        return TypedValue(data_type, raw.astype(component.dtype))
    if kind is TypeKind.MATRIX:
        stride = _column_stride(data_type, rule)
        columns = [
            _read(data, offset + index * stride, data_type.column_type, rule).data
            for index in range(data_type.columns)
        ]
        return TypedValue(data_type, np.stack(columns))
    if kind is TypeKind.ARRAY:
        stride = layout_of(data_type).stride
        return [
            _read(data, offset + index * stride, data_type.element, data_type.rule)
            for index in range(data_type.count)
        ]
    if kind is TypeKind.STRUCT:
        return {
            f.name: _read(data, offset + f.offset, f.data_type, data_type.rule)
            for f in layout_of(data_type).fields
        }
    raise ConfigurationError(f"Cannot decode values of kind {kind}")


def read_value(data_type: DataType, data: bytes) -> Any:
    """Decode bytes written with the memory layout of ``data_type``.

    Scalars decode to Python numbers, vectors and matrices to typed values,
    arrays to lists and structs to dictionaries.

    Raises:
        ShapeMismatchError: If ``data`` is not exactly ``size_of(data_type)`` bytes
    """
    size = layout_of(data_type).size
    if len(data) != size:
        raise ShapeMismatchError(
            f"Wrong buffer size for {data_type}", expected=size, actual=len(data)
        )
    return _read(bytes(data), 0, data_type, LayoutRule.ALIGNED)
