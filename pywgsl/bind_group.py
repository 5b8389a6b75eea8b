"""
Bind-group layouts.

A layout is declared from an ordered schema of named resources; binding
indices follow declaration order. ``layout.bound[name]`` is a resolvable node
that emits the matching ``@group(g) @binding(i) var ...`` declaration, and
``layout.describe()`` produces the binding table a graphics API needs to
create the bind group layout object.

Example:
    >>> layout = bind_group_layout({
    ...     "camera": uniform(Camera),
    ...     "particles": storage(array_of(Particle, 1024), access="read_write"),
    ... })
    >>> layout.describe()[0]["kind"]
    'uniform'
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from pywgsl.data.layout import layout_of
from pywgsl.data.types import DataType, Struct
from pywgsl.errors import ConfigurationError
from pywgsl.resolution.nodes import NodeKind, Resolvable

if TYPE_CHECKING:
    from pywgsl.resolution.context import ResolutionContext


class ResourceKind(Enum):
    UNIFORM = "uniform"
    STORAGE = "storage"
    TEXTURE = "texture"
    SAMPLER = "sampler"


_ALL_STAGES = ("vertex", "fragment", "compute")

_SAMPLE_TYPES = {
    "float": "f32",
    "unfilterable-float": "f32",
    "sint": "i32",
    "uint": "u32",
    "depth": None,
}

_VIEW_DIMENSIONS = ("1d", "2d", "2d-array", "cube", "cube-array", "3d")


@dataclass(frozen=True)
class UniformEntry:
    data_type: DataType
    visibility: tuple[str, ...] = _ALL_STAGES
    kind = ResourceKind.UNIFORM


@dataclass(frozen=True)
class StorageEntry:
    data_type: DataType
    access: str = "read"
    visibility: tuple[str, ...] = _ALL_STAGES
    kind = ResourceKind.STORAGE

    def __post_init__(self) -> None:
        if self.access not in ("read", "read_write"):
            raise ConfigurationError(f"Unknown storage access mode: {self.access!r}")
        if self.access == "read_write" and "vertex" in self.visibility:
            raise ConfigurationError(
                "Writable storage buffers are not visible to vertex shaders"
            )


@dataclass(frozen=True)
class TextureEntry:
    sample_type: str = "float"
    view_dimension: str = "2d"
    multisampled: bool = False
    visibility: tuple[str, ...] = _ALL_STAGES
    kind = ResourceKind.TEXTURE

    def __post_init__(self) -> None:
        if self.sample_type not in _SAMPLE_TYPES:
            raise ConfigurationError(
                f"Unknown texture sample type: {self.sample_type!r}"
            )
        if self.view_dimension not in _VIEW_DIMENSIONS:
            raise ConfigurationError(
                f"Unknown texture view dimension: {self.view_dimension!r}"
            )

    @property
    def wgsl_type(self) -> str:
        dimension = self.view_dimension.replace("-", "_")
        component = _SAMPLE_TYPES[self.sample_type]
        if component is None:
            if self.multisampled:
                return f"texture_depth_multisampled_{dimension}"
            return f"texture_depth_{dimension}"
        prefix = "texture_multisampled" if self.multisampled else "texture"
        return f"{prefix}_{dimension}<{component}>"


@dataclass(frozen=True)
class SamplerEntry:
    sampler_type: str = "filtering"
    visibility: tuple[str, ...] = _ALL_STAGES
    kind = ResourceKind.SAMPLER

    def __post_init__(self) -> None:
        if self.sampler_type not in ("filtering", "non-filtering", "comparison"):
            raise ConfigurationError(f"Unknown sampler type: {self.sampler_type!r}")

    @property
    def wgsl_type(self) -> str:
        return "sampler_comparison" if self.sampler_type == "comparison" else "sampler"


Entry = UniformEntry | StorageEntry | TextureEntry | SamplerEntry
_ENTRY_TYPES = (UniformEntry, StorageEntry, TextureEntry, SamplerEntry)


def uniform(
    data_type: DataType, visibility: tuple[str, ...] = _ALL_STAGES
) -> UniformEntry:
    return UniformEntry(data_type, visibility)


def storage(
    data_type: DataType,
    access: str = "read",
    visibility: tuple[str, ...] | None = None,
) -> StorageEntry:
    if visibility is None:
        visibility = ("fragment", "compute") if access == "read_write" else _ALL_STAGES
    return StorageEntry(data_type, access, visibility)


def texture(
    sample_type: str = "float",
    view_dimension: str = "2d",
    multisampled: bool = False,
    visibility: tuple[str, ...] = _ALL_STAGES,
) -> TextureEntry:
    return TextureEntry(sample_type, view_dimension, multisampled, visibility)


def sampler(
    sampler_type: str = "filtering", visibility: tuple[str, ...] = _ALL_STAGES
) -> SamplerEntry:
    return SamplerEntry(sampler_type, visibility)


class BoundResource(Resolvable):
    """A resource of a bind group layout as referenced from shader code."""

    node_kind = NodeKind.BOUND_RESOURCE

    def __init__(self, layout: "BindGroupLayout", name: str, index: int, entry: Entry):
        super().__init__(name)
        self.layout = layout
        self.name = name
        self.index = index
        self.entry = entry

    def _declared_type(self, ctx: "ResolutionContext") -> str:
        entry = self.entry
        if entry.kind is ResourceKind.UNIFORM:
            return f"var<uniform> {{}}: {ctx.resolve(entry.data_type)}"
        if entry.kind is ResourceKind.STORAGE:
            return f"var<storage, {entry.access}> {{}}: {ctx.resolve(entry.data_type)}"
        if entry.kind in (ResourceKind.TEXTURE, ResourceKind.SAMPLER):
            return f"var {{}}: {entry.wgsl_type}"
        raise ConfigurationError(f"Unknown resource kind: {entry.kind}", self)

    def resolve(self, ctx: "ResolutionContext") -> str:
        ctx.register_bind_group(self.layout)
        identifier = ctx.name_for(self)
        declaration = self._declared_type(ctx).format(identifier)
        ctx.add_declaration(
            f"@group({self.layout.group}) @binding({self.index}) {declaration};"
        )
        return identifier


class BindGroupLayout:
    """Ordered schema of resources sharing one ``@group`` index."""

    def __init__(
        self, entries: dict[str, Entry], group: int = 0, label: str | None = None
    ):
        if not entries:
            raise ConfigurationError(
                "Bind group layouts need at least one entry", label
            )
        if not isinstance(group, int) or group < 0:
            raise ConfigurationError(f"Invalid bind group index: {group!r}", label)
        for name, entry in entries.items():
            if not name.isidentifier():
                raise ConfigurationError(f"Invalid resource name: {name!r}", label)
            if not isinstance(entry, _ENTRY_TYPES):
                raise ConfigurationError(
                    f"Resource '{name}' has invalid entry {entry!r}", label
                )
        self.entries = dict(entries)
        self.group = group
        self.label = label
        self.bound: dict[str, BoundResource] = {
            name: BoundResource(self, name, index, entry)
            for index, (name, entry) in enumerate(self.entries.items())
        }

    def describe(self) -> dict[int, dict[str, Any]]:
        """Binding index -> resource description, in declaration order."""
        description: dict[int, dict[str, Any]] = {}
        for index, (name, entry) in enumerate(self.entries.items()):
            item: dict[str, Any] = {
                "name": name,
                "kind": entry.kind.value,
                "visibility": list(entry.visibility),
            }
            if isinstance(entry, (UniformEntry, StorageEntry)):
                data_type = entry.data_type
                item["type"] = (
                    data_type.label
                    if isinstance(data_type, Struct)
                    else data_type.wgsl_name
                )
                item["min_binding_size"] = layout_of(data_type).size
            if isinstance(entry, StorageEntry):
                item["access"] = entry.access
            if isinstance(entry, TextureEntry):
                item["sample_type"] = entry.sample_type
                item["view_dimension"] = entry.view_dimension
                item["multisampled"] = entry.multisampled
            if isinstance(entry, SamplerEntry):
                item["sampler_type"] = entry.sampler_type
            description[index] = item
        return description

    def __repr__(self) -> str:
        return f"BindGroupLayout(group={self.group}, entries={list(self.entries)})"


def bind_group_layout(
    entries: dict[str, Entry], group: int = 0, label: str | None = None
) -> BindGroupLayout:
    return BindGroupLayout(entries, group, label)
