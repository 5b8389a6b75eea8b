"""
Type/Layout registry.

Computes byte size, alignment, array stride and struct field offsets for type
descriptors. All functions here are pure and memoised, so independent
resolution passes can share them freely.

Rules (WGSL host-shareable memory model unless a packed rule applies):

- scalars use their own size and alignment
- ``vecN<T>`` has size ``N * size(T)`` and alignment ``size(T)`` times 2 for
  ``N == 2`` or 4 for ``N in (3, 4)``; packed vectors align to ``T``
- ``matCxR<T>`` is ``C`` columns of ``vecR<T>``, each rounded up to its alignment
- arrays use ``stride = round_up(size(E), align(E))`` and ``size = stride * N``
- structs lay fields out in order, each offset rounded up to the field's
  alignment, and round the total up to the largest field alignment
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from loguru import logger

from pywgsl.data.types import (
    Align,
    Array,
    DataType,
    Decorated,
    LayoutRule,
    Size,
    Struct,
    TypeKind,
)
from pywgsl.errors import ConfigurationError

# Entries kept per layout cache; evicted structs can be garbage collected.
LAYOUT_CACHE_SIZE = 1024


def round_up(value: int, alignment: int) -> int:
    """Round ``value`` up to the next multiple of ``alignment``."""
    return -(-value // alignment) * alignment


@dataclass(frozen=True)
class FieldLayout:
    """Placement of one struct field.

    Attributes:
        name: Field name
        offset: Byte offset from the start of the struct
        size: Bytes occupied by the field (without trailing padding)
        alignment: Alignment the field was placed with
        data_type: Field type descriptor
    """

    name: str
    offset: int
    size: int
    alignment: int
    data_type: DataType


@dataclass(frozen=True)
class Layout:
    """Computed memory layout of a type.

    Attributes:
        size: Total size in bytes
        alignment: Required alignment in bytes
        stride: Element stride for arrays, None otherwise
        fields: Field placements for structs, in declaration order
    """

    size: int
    alignment: int
    stride: int | None = None
    fields: tuple[FieldLayout, ...] = ()

    @property
    def offsets(self) -> dict[str, int]:
        return {f.name: f.offset for f in self.fields}


@lru_cache(maxsize=LAYOUT_CACHE_SIZE)
def _size_and_alignment(data_type: DataType, rule: LayoutRule) -> tuple[int, int]:
    kind = data_type.kind
    if kind is TypeKind.SCALAR:
        return data_type.size, data_type.alignment
    if kind is TypeKind.VECTOR:
        component = data_type.component
        size = component.size * data_type.count
        if rule is LayoutRule.PACKED:
            return size, component.alignment
        factor = 2 if data_type.count == 2 else 4
        return size, component.alignment * factor
    if kind is TypeKind.MATRIX:
        column_size, column_align = _size_and_alignment(data_type.column_type, rule)
        return data_type.columns * round_up(column_size, column_align), column_align
    if kind is TypeKind.ARRAY:
        layout = _array_layout(data_type)
        return layout.size, layout.alignment
    if kind is TypeKind.STRUCT:
        layout = _struct_layout(data_type)
        return layout.size, layout.alignment
    if kind is TypeKind.ATOMIC:
        return _size_and_alignment(data_type.inner, rule)
    if kind is TypeKind.DECORATED:
        return _decorated_size_and_alignment(data_type, rule)
    raise ConfigurationError(f"Unknown type kind: {kind}")


def _decorated_size_and_alignment(
    data_type: Decorated, rule: LayoutRule
) -> tuple[int, int]:
    size, alignment = _size_and_alignment(data_type.inner, rule)
    align_attr = data_type.find(Align)
    size_attr = data_type.find(Size)
    if align_attr is not None:
        alignment = align_attr.value
    if size_attr is not None:
        size = size_attr.value
    return size, alignment


@lru_cache(maxsize=LAYOUT_CACHE_SIZE)
def _array_layout(array: Array) -> Layout:
    element_size, element_align = _size_and_alignment(array.element, array.rule)
    stride = round_up(element_size, element_align)
    return Layout(size=stride * array.count, alignment=element_align, stride=stride)


@lru_cache(maxsize=LAYOUT_CACHE_SIZE)
def _struct_layout(struct: Struct) -> Layout:
    offset = 0
    alignment = 1
    fields = []
    for name, field_type in struct.fields.items():
        field_size, field_align = _size_and_alignment(field_type, struct.rule)
        offset = round_up(offset, field_align)
        fields.append(FieldLayout(name, offset, field_size, field_align, field_type))
        offset += field_size
        alignment = max(alignment, field_align)

    layout = Layout(
        size=round_up(offset, alignment), alignment=alignment, fields=tuple(fields)
    )
    logger.debug(
        f"Laid out struct {struct.label or '<unnamed>'}: size={layout.size}, "
        f"alignment={layout.alignment}, offsets={layout.offsets}"
    )
    return layout


def layout_of(data_type: DataType, rule: LayoutRule = LayoutRule.ALIGNED) -> Layout:
    """Compute the memory layout of a type.

    Args:
        data_type: Type descriptor
        rule: Memory model for non-composite types; arrays and structs carry
            their own rule

    Returns:
        Layout with size, alignment and, where relevant, stride or fields
    """
    if data_type.kind is TypeKind.ARRAY:
        return _array_layout(data_type)
    if data_type.kind is TypeKind.STRUCT:
        return _struct_layout(data_type)
    size, alignment = _size_and_alignment(data_type, rule)
    return Layout(size=size, alignment=alignment)


def size_of(data_type: DataType, rule: LayoutRule = LayoutRule.ALIGNED) -> int:
    return _size_and_alignment(data_type, rule)[0]


def align_of(data_type: DataType, rule: LayoutRule = LayoutRule.ALIGNED) -> int:
    return _size_and_alignment(data_type, rule)[1]


def stride_of(array: Array) -> int:
    return _array_layout(array).stride


def layout_descriptor(
    data_type: DataType, rule: LayoutRule = LayoutRule.ALIGNED
) -> dict[str, Any]:
    """Describe a type's layout as plain JSON-ready data.

    Nested structs and arrays are expanded recursively, so a buffer writer can
    place every value without consulting the descriptors again.

    Args:
        data_type: Type descriptor
        rule: Memory model of the enclosing container

    Returns:
        Dictionary with ``type``, ``size`` and ``alignment`` keys, plus
        ``stride``/``element`` for arrays and ``fields`` for structs
    """
    layout = layout_of(data_type, rule)
    inner = data_type.inner if isinstance(data_type, Decorated) else data_type
    descriptor: dict[str, Any] = {
        "type": inner.wgsl_name,
        "size": layout.size,
        "alignment": layout.alignment,
    }
    if isinstance(inner, Array):
        descriptor["stride"] = _array_layout(inner).stride
        descriptor["count"] = inner.count
        descriptor["element"] = layout_descriptor(inner.element, inner.rule)
    elif isinstance(inner, Struct):
        descriptor["fields"] = {
            f.name: {"offset": f.offset, **layout_descriptor(f.data_type, inner.rule)}
            for f in _struct_layout(inner).fields
        }
    return descriptor


def check_size_override(data_type: Decorated) -> None:
    """Reject ``@size`` overrides smaller than the natural size."""
    size_attr = data_type.find(Size)
    if size_attr is None:
        return
    natural = size_of(data_type.inner)
    if size_attr.value < natural:
        raise ConfigurationError(
            f"Size override {size_attr.value} is smaller than the natural size "
            f"{natural} of {data_type.inner.wgsl_name}"
        )


def check_align_override(data_type: Decorated) -> None:
    """Reject ``@align`` overrides that are not a multiple of the natural alignment."""
    align_attr = data_type.find(Align)
    if align_attr is None:
        return
    natural = align_of(data_type.inner)
    if align_attr.value < natural or align_attr.value % natural:
        raise ConfigurationError(
            f"Align override {align_attr.value} is not a multiple of the natural "
            f"alignment {natural} of {data_type.inner.wgsl_name}"
        )
