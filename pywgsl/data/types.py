"""
GPU data type descriptors.

Every descriptor is immutable. Scalars, vectors, matrices, arrays and atomics
compare by value, so ``Vector(f32, 3) == vec3f``. Structs are resolvable nodes
and compare by identity: two structs with identical fields are still two
distinct WGSL declarations.

Size and alignment math lives in :mod:`pywgsl.data.layout`; this module only
validates what can be checked when a descriptor is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, ClassVar

import numpy as np

from pywgsl.errors import ConfigurationError, ResolutionError
from pywgsl.resolution.nodes import NodeKind, Resolvable

if TYPE_CHECKING:
    from pywgsl.resolution.context import ResolutionContext


class TypeKind(Enum):
    """Closed set of descriptor shapes."""

    SCALAR = auto()
    VECTOR = auto()
    MATRIX = auto()
    ARRAY = auto()
    STRUCT = auto()
    ATOMIC = auto()
    DECORATED = auto()


class LayoutRule(Enum):
    """Memory model used to lay out a composite type.

    ALIGNED follows the WGSL host-shareable rules (``vec3f`` aligns to 16).
    PACKED aligns vectors and matrices to their component type, which is how
    vertex buffers are laid out.
    """

    ALIGNED = auto()
    PACKED = auto()


def is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


def check_alignment(alignment: int, node: Any = None) -> int:
    """Validate an alignment value.

    Raises:
        ConfigurationError: If the alignment is not a positive power of two
    """
    if not isinstance(alignment, int) or not is_power_of_two(alignment):
        raise ConfigurationError(
            f"Alignment must be a positive power of two, got {alignment!r}", node
        )
    return alignment


def format_literal(value: Any, scalar: Scalar | None = None) -> str:
    """Format a Python number as a WGSL literal."""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if scalar is not None and scalar.is_float:
        text = repr(float(value))
        if "inf" in text or "nan" in text:
            raise ConfigurationError(f"Cannot express {text} as a WGSL literal")
        return text
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    text = repr(float(value))
    if "inf" in text or "nan" in text:
        raise ConfigurationError(f"Cannot express {text} as a WGSL literal")
    return text


class DataType:
    """Base class of all type descriptors."""

    kind: ClassVar[TypeKind]

    @property
    def wgsl_name(self) -> str:
        raise NotImplementedError

    def resolve(self, ctx: ResolutionContext) -> str:
        return self.wgsl_name

    def __str__(self) -> str:
        return self.wgsl_name


@dataclass(frozen=True)
class Scalar(DataType):
    """Scalar type such as ``f32``."""

    kind: ClassVar[TypeKind] = TypeKind.SCALAR

    name: str
    size: int
    alignment: int
    dtype: str
    is_float: bool = False

    def __post_init__(self) -> None:
        check_alignment(self.alignment, self.name)
        if self.size % self.alignment:
            raise ConfigurationError(
                f"Scalar size {self.size} is not a multiple of its alignment "
                f"{self.alignment}",
                self.name,
            )

    @property
    def wgsl_name(self) -> str:
        return self.name

    def __call__(self, value: Any) -> TypedValue:
        return TypedValue(self, np.asarray([value], dtype=self.dtype))


_SHORT_SUFFIX = {"f32": "f", "i32": "i", "u32": "u", "f16": "h"}


@dataclass(frozen=True)
class Vector(DataType):
    """Vector of 2, 3 or 4 scalar components."""

    kind: ClassVar[TypeKind] = TypeKind.VECTOR

    component: Scalar
    count: int

    def __post_init__(self) -> None:
        if self.count not in (2, 3, 4):
            raise ConfigurationError(
                f"Vectors have 2, 3 or 4 components, got {self.count}"
            )

    @property
    def wgsl_name(self) -> str:
        suffix = _SHORT_SUFFIX.get(self.component.name)
        if suffix is None:
            return f"vec{self.count}<{self.component.name}>"
        return f"vec{self.count}{suffix}"

    def __call__(self, *components: Any) -> TypedValue:
        if len(components) == 1 and np.ndim(components[0]) == 0:
            values = [components[0]] * self.count
        else:
            values = np.concatenate(
                [np.ravel(getattr(c, "data", c)) for c in components]
            )
        data = np.asarray(values, dtype=self.component.dtype)
        if data.size != self.count:
            raise ConfigurationError(
                f"Invalid input size for {self.wgsl_name}. "
                f"Expected {self.count}, got {data.size}"
            )
        return TypedValue(self, data)


@dataclass(frozen=True)
class Matrix(DataType):
    """Column-major ``matCxR`` of floating point components."""

    kind: ClassVar[TypeKind] = TypeKind.MATRIX

    component: Scalar
    columns: int
    rows: int

    def __post_init__(self) -> None:
        if self.columns not in (2, 3, 4) or self.rows not in (2, 3, 4):
            raise ConfigurationError(
                f"Invalid matrix size: {self.columns}x{self.rows}"
            )
        if not self.component.is_float:
            raise ConfigurationError(
                f"Matrix components must be floating point, got {self.component}"
            )

    @property
    def column_type(self) -> Vector:
        return Vector(self.component, self.rows)

    @property
    def wgsl_name(self) -> str:
        suffix = _SHORT_SUFFIX[self.component.name]
        return f"mat{self.columns}x{self.rows}{suffix}"

    def __call__(self, *components: Any) -> TypedValue:
        data = np.asarray(
            np.concatenate([np.ravel(getattr(c, "data", c)) for c in components]),
            dtype=self.component.dtype,
        )
        if data.size != self.columns * self.rows:
            raise ConfigurationError(
                f"Invalid input size for {self.wgsl_name}. "
                f"Expected {self.columns * self.rows}, got {data.size}"
            )
        return TypedValue(self, data.reshape(self.columns, self.rows))


@dataclass(frozen=True)
class Array(DataType):
    """Fixed-size array. Packed arrays are only usable as host-side layouts."""

    kind: ClassVar[TypeKind] = TypeKind.ARRAY

    element: DataType
    count: int
    rule: LayoutRule = LayoutRule.ALIGNED

    def __post_init__(self) -> None:
        if not isinstance(self.count, int) or self.count < 1:
            raise ConfigurationError(
                f"Array length must be a positive integer, got {self.count!r}"
            )
        if not isinstance(self.element, DataType):
            raise ConfigurationError(f"Invalid array element type: {self.element!r}")

    @property
    def wgsl_name(self) -> str:
        return f"array<{self.element.wgsl_name}, {self.count}>"

    def resolve(self, ctx: ResolutionContext) -> str:
        if self.rule is LayoutRule.PACKED:
            raise ResolutionError(
                f"Packed array {self.wgsl_name} cannot be used in WGSL code"
            )
        return f"array<{ctx.resolve(self.element)}, {self.count}>"


@dataclass(frozen=True)
class Atomic(DataType):
    """``atomic<u32>`` or ``atomic<i32>``."""

    kind: ClassVar[TypeKind] = TypeKind.ATOMIC

    inner: Scalar

    def __post_init__(self) -> None:
        if self.inner.name not in ("u32", "i32"):
            raise ConfigurationError(
                f"Atomics wrap u32 or i32, got {self.inner.name}"
            )

    @property
    def wgsl_name(self) -> str:
        return f"atomic<{self.inner.name}>"


@dataclass(frozen=True)
class Location:
    value: int

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or self.value < 0:
            raise ConfigurationError(f"Invalid location: {self.value!r}")

    def render(self) -> str:
        return f"@location({self.value})"


@dataclass(frozen=True)
class Builtin:
    name: str

    def render(self) -> str:
        return f"@builtin({self.name})"


@dataclass(frozen=True)
class Align:
    value: int

    def __post_init__(self) -> None:
        check_alignment(self.value)

    def render(self) -> str:
        return f"@align({self.value})"


@dataclass(frozen=True)
class Size:
    value: int

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or self.value < 1:
            raise ConfigurationError(f"Invalid size override: {self.value!r}")

    def render(self) -> str:
        return f"@size({self.value})"


_SAMPLING_MODES = ("center", "centroid", "sample", "first", "either")


@dataclass(frozen=True)
class Interpolate:
    type: str
    sampling: str | None = None

    def __post_init__(self) -> None:
        if self.type not in ("perspective", "linear", "flat"):
            raise ConfigurationError(f"Unknown interpolation type: {self.type!r}")
        if self.sampling not in (None, *_SAMPLING_MODES):
            raise ConfigurationError(
                f"Unknown interpolation sampling: {self.sampling!r}"
            )

    def render(self) -> str:
        if self.sampling is None:
            return f"@interpolate({self.type})"
        return f"@interpolate({self.type}, {self.sampling})"


AttributeValue = Location | Builtin | Align | Size | Interpolate


@dataclass(frozen=True)
class Decorated(DataType):
    """A type carrying structural attributes.

    Build these through :func:`pywgsl.data.attributes.attribute`, which
    enforces the combination rules.
    """

    kind: ClassVar[TypeKind] = TypeKind.DECORATED

    inner: DataType
    attributes: tuple[AttributeValue, ...] = ()

    @property
    def wgsl_name(self) -> str:
        return self.inner.wgsl_name

    def resolve(self, ctx: ResolutionContext) -> str:
        return ctx.resolve(self.inner)

    def find(self, attribute_type: type) -> Any:
        for attr in self.attributes:
            if isinstance(attr, attribute_type):
                return attr
        return None


class Struct(DataType, Resolvable):
    """Struct with ordered named fields.

    A struct is a resolvable node: the first reference during resolution emits
    its declaration, later references reuse the generated identifier.
    """

    kind: ClassVar[TypeKind] = TypeKind.STRUCT
    node_kind = NodeKind.STRUCT
    # IO structs of entry functions are not backed by buffers.
    buffer_backed: ClassVar[bool] = True

    def __init__(
        self,
        fields: dict[str, DataType],
        label: str | None = None,
        rule: LayoutRule = LayoutRule.ALIGNED,
    ):
        super().__init__(label)
        if not fields:
            raise ConfigurationError("Structs need at least one field", label)
        for name, field_type in fields.items():
            if not name.isidentifier():
                raise ConfigurationError(f"Invalid struct field name: {name!r}", label)
            if not isinstance(field_type, DataType):
                raise ConfigurationError(
                    f"Field '{name}' has invalid type {field_type!r}", label
                )
        self.fields: dict[str, DataType] = dict(fields)
        self.rule = rule

    @property
    def wgsl_name(self) -> str:
        return self.label or "struct"

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}: {v}" for k, v in self.fields.items())
        return f"Struct({self.label or '<unnamed>'}, {{{fields}}})"

    __str__ = DataType.__str__

    def resolve(self, ctx: ResolutionContext) -> str:
        from pywgsl.data.attributes import render_attributes

        if self.rule is LayoutRule.PACKED:
            raise ResolutionError("Packed structs cannot be used in WGSL code", self)

        field_lines = [
            f"  {render_attributes(field_type)}{name}: {ctx.resolve(field_type)},"
            for name, field_type in self.fields.items()
        ]
        identifier = ctx.name_for(self)
        ctx.add_declaration("\n".join([f"struct {identifier} {{", *field_lines, "}"]))
        if self.buffer_backed:
            ctx.register_struct(identifier, self)
        return identifier


@dataclass(frozen=True, eq=False)
class TypedValue:
    """A host-side value of a known WGSL type, e.g. ``vec3f(1, 2, 3)``."""

    data_type: DataType
    data: np.ndarray

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypedValue):
            return False
        return self.data_type == other.data_type and np.array_equal(
            self.data, other.data
        )

    def __hash__(self) -> int:
        return hash((self.data_type, self.data.tobytes()))

    def resolve(self, ctx: ResolutionContext) -> str:
        scalar = getattr(self.data_type, "component", self.data_type)
        parts = ", ".join(format_literal(v, scalar) for v in self.data.ravel())
        return f"{ctx.resolve(self.data_type)}({parts})"

    def __repr__(self) -> str:
        vals = ", ".join(f"{x:.3f}" for x in self.data.ravel().astype(float))
        return f"{self.data_type.wgsl_name}({vals})"
