"""GPU data types, attributes and memory layout."""

from pywgsl.data.attributes import (
    align,
    attribute,
    get_builtin,
    get_location,
    interpolate,
    is_builtin,
    location,
    size,
)
from pywgsl.data.builtin import builtin
from pywgsl.data.layout import (
    Layout,
    align_of,
    layout_descriptor,
    layout_of,
    size_of,
    stride_of,
)
from pywgsl.data.numeric import (
    bool_,
    f16,
    f32,
    i32,
    mat2x2f,
    mat2x3f,
    mat2x4f,
    mat3x2f,
    mat3x3f,
    mat3x4f,
    mat4x2f,
    mat4x3f,
    mat4x4f,
    u32,
    vec2b,
    vec2f,
    vec2h,
    vec2i,
    vec2u,
    vec3b,
    vec3f,
    vec3h,
    vec3i,
    vec3u,
    vec4b,
    vec4f,
    vec4h,
    vec4i,
    vec4u,
)
from pywgsl.data.types import (
    Array,
    Atomic,
    DataType,
    Decorated,
    LayoutRule,
    Matrix,
    Scalar,
    Struct,
    Vector,
)


def struct(fields: dict[str, DataType], label: str | None = None) -> Struct:
    """Struct laid out with the WGSL host-shareable rules."""
    return Struct(fields, label)


def unstruct(fields: dict[str, DataType], label: str | None = None) -> Struct:
    """Packed struct for vertex data; fields align to their component type."""
    return Struct(fields, label, rule=LayoutRule.PACKED)


def array_of(element: DataType, count: int) -> Array:
    return Array(element, count)


def disarray_of(element: DataType, count: int) -> Array:
    """Packed array for vertex data; elements align to their component type."""
    return Array(element, count, rule=LayoutRule.PACKED)


def atomic(inner: Scalar) -> Atomic:
    return Atomic(inner)


__all__ = [
    "Array",
    "Atomic",
    "DataType",
    "Decorated",
    "Layout",
    "LayoutRule",
    "Matrix",
    "Scalar",
    "Struct",
    "Vector",
    "align",
    "align_of",
    "array_of",
    "atomic",
    "attribute",
    "bool_",
    "builtin",
    "disarray_of",
    "f16",
    "f32",
    "get_builtin",
    "get_location",
    "i32",
    "interpolate",
    "is_builtin",
    "layout_descriptor",
    "layout_of",
    "location",
    "mat2x2f",
    "mat2x3f",
    "mat2x4f",
    "mat3x2f",
    "mat3x3f",
    "mat3x4f",
    "mat4x2f",
    "mat4x3f",
    "mat4x4f",
    "size",
    "size_of",
    "stride_of",
    "struct",
    "u32",
    "unstruct",
    "vec2b",
    "vec2f",
    "vec2h",
    "vec2i",
    "vec2u",
    "vec3b",
    "vec3f",
    "vec3h",
    "vec3i",
    "vec3u",
    "vec4b",
    "vec4f",
    "vec4h",
    "vec4i",
    "vec4u",
]
