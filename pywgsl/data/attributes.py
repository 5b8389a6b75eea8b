"""
Structural attributes attached to types.

``location``, ``builtin`` and ``interpolate`` only matter when a type is used
in an entry function's input/output shape; they never change memory layout.
``align`` and ``size`` are the WGSL struct member attributes and do change
the layout of the enclosing struct.
"""

from collections.abc import Callable

from loguru import logger

from pywgsl.data.layout import check_align_override, check_size_override
from pywgsl.data.numeric import bool_, f32, u32, vec3u, vec4f
from pywgsl.data.types import (
    Align,
    Array,
    AttributeValue,
    Builtin,
    DataType,
    Decorated,
    Interpolate,
    Location,
    Size,
)
from pywgsl.errors import (
    AttributeConflictError,
    ConfigurationError,
    ShapeMismatchError,
)


def _is_clip_distances(data_type: DataType) -> bool:
    return (
        isinstance(data_type, Array)
        and data_type.element == f32
        and 1 <= data_type.count <= 8
    )


# Builtin name -> (description of the required type, predicate on the base type)
BUILTIN_TYPES: dict[str, tuple[str, Callable[[DataType], bool]]] = {
    "vertex_index": ("u32", lambda t: t == u32),
    "instance_index": ("u32", lambda t: t == u32),
    "position": ("vec4f", lambda t: t == vec4f),
    "front_facing": ("bool", lambda t: t == bool_),
    "sample_index": ("u32", lambda t: t == u32),
    "sample_mask": ("u32", lambda t: t == u32),
    "local_invocation_id": ("vec3u", lambda t: t == vec3u),
    "local_invocation_index": ("u32", lambda t: t == u32),
    "global_invocation_id": ("vec3u", lambda t: t == vec3u),
    "workgroup_id": ("vec3u", lambda t: t == vec3u),
    "num_workgroups": ("vec3u", lambda t: t == vec3u),
    "clip_distances": ("array<f32, N> with 1 <= N <= 8", _is_clip_distances),
    "frag_depth": ("f32", lambda t: t == f32),
}


def _unwrap(data_type: DataType) -> tuple[DataType, tuple[AttributeValue, ...]]:
    if isinstance(data_type, Decorated):
        return data_type.inner, data_type.attributes
    return data_type, ()


def _check_builtin(inner: DataType, attr: Builtin) -> None:
    if attr.name not in BUILTIN_TYPES:
        raise ConfigurationError(f"Unknown builtin: {attr.name!r}")
    expected, accepts = BUILTIN_TYPES[attr.name]
    if not accepts(inner):
        raise ShapeMismatchError(
            f"Builtin '{attr.name}' has the wrong type",
            attr.name,
            expected=expected,
            actual=inner.wgsl_name,
        )


def attribute(base: DataType, attr: AttributeValue) -> Decorated:
    """Return ``base`` decorated with one more attribute.

    Applying an attribute of a kind the value already carries overwrites it.
    A value can never carry both a ``location`` and a ``builtin``.

    Args:
        base: Type to decorate, possibly already decorated
        attr: Attribute to attach

    Returns:
        New decorated type with unchanged size and alignment (unless the
        attribute is an ``align``/``size`` override)

    Raises:
        AttributeConflictError: If ``builtin`` and ``location`` would be combined
        ShapeMismatchError: If a builtin is applied to the wrong base type
        ConfigurationError: If the attribute value itself is invalid
    """
    if not isinstance(base, DataType):
        raise ConfigurationError(f"Cannot decorate {base!r}, expected a data type")

    inner, existing = _unwrap(base)
    kept = [a for a in existing if type(a) is not type(attr)]

    conflicting = Location if isinstance(attr, Builtin) else Builtin
    if isinstance(attr, (Builtin, Location)) and any(
        isinstance(a, conflicting) for a in kept
    ):
        raise AttributeConflictError(
            "A value cannot carry both a builtin and a location attribute",
            inner.wgsl_name,
        )
    if isinstance(attr, Builtin):
        _check_builtin(inner, attr)

    decorated = Decorated(inner, (*kept, attr))
    check_align_override(decorated)
    check_size_override(decorated)
    logger.debug(f"Decorated {inner.wgsl_name} with {attr.render()}")
    return decorated


def location(index: int, data_type: DataType) -> Decorated:
    return attribute(data_type, Location(index))


def builtin_attribute(name: str, data_type: DataType) -> Decorated:
    return attribute(data_type, Builtin(name))


def align(alignment: int, data_type: DataType) -> Decorated:
    return attribute(data_type, Align(alignment))


def size(byte_size: int, data_type: DataType) -> Decorated:
    return attribute(data_type, Size(byte_size))


def interpolate(
    interpolation: str, data_type: DataType, sampling: str | None = None
) -> Decorated:
    return attribute(data_type, Interpolate(interpolation, sampling))


def get_builtin(data_type: DataType) -> str | None:
    if isinstance(data_type, Decorated):
        attr = data_type.find(Builtin)
        return attr.name if attr else None
    return None


def get_location(data_type: DataType) -> int | None:
    if isinstance(data_type, Decorated):
        attr = data_type.find(Location)
        return attr.value if attr else None
    return None


def is_builtin(data_type: DataType) -> bool:
    return get_builtin(data_type) is not None


def render_attributes(data_type: DataType) -> str:
    """Render a type's attributes as a WGSL prefix, e.g. ``"@location(0) "``."""
    if not isinstance(data_type, Decorated) or not data_type.attributes:
        return ""
    return " ".join(a.render() for a in data_type.attributes) + " "
