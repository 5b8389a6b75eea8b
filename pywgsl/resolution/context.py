"""
Resolution context: the per-pass state of one WGSL compile.

A context walks the node graph depth-first from the requested roots. Each
node's dependencies are resolved, and their declarations emitted, before the
node's own declaration, so the accumulated declarations are already in
declare-before-use order.

Slots are looked up in an explicit binding stack owned by the context (dynamic
scope). Memo entries remember which slot values a node read while it was
resolved; a later request for the same node reuses the entry only if those
slots still hold the same values. The same function reached under two
different bindings is therefore emitted twice, under two identifiers.
"""

import re
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np
from loguru import logger

from pywgsl.data.types import DataType, Struct, TypedValue, format_literal
from pywgsl.errors import (
    CyclicDependencyError,
    ResolutionError,
    UnresolvedSlotError,
)
from pywgsl.resolution.models import ResolveConfig
from pywgsl.resolution.nodes import NodeKind, Resolvable, describe
from pywgsl.resolution.slot import Derived, Slot

if TYPE_CHECKING:
    from pywgsl.bind_group import BindGroupLayout

# Keywords, reserved words and predeclared names (types, type aliases and
# builtin functions) that generated identifiers must not shadow. ``input`` is
# the parameter name of every entry function.
_KEYWORDS = {
    "alias", "array", "atomic", "bitcast", "bool", "break", "case", "const",
    "const_assert", "continue", "continuing", "default", "diagnostic",
    "discard", "else", "enable", "f16", "f32", "false", "fn", "for", "i32",
    "if", "let", "loop", "mat2x2", "mat2x3", "mat2x4", "mat3x2", "mat3x3",
    "mat3x4", "mat4x2", "mat4x3", "mat4x4", "override", "ptr", "requires",
    "return", "sampler", "sampler_comparison", "struct", "switch", "true",
    "u32", "var", "vec2", "vec3", "vec4", "while", "self", "super", "this",
    "input",
}  # fmt: skip

_TYPE_ALIASES = {f"vec{n}{suffix}" for n in (2, 3, 4) for suffix in "fhiu"} | {
    f"mat{c}x{r}{suffix}" for c in (2, 3, 4) for r in (2, 3, 4) for suffix in "fh"
}

_TEXTURE_TYPES = {
    "texture_1d", "texture_2d", "texture_2d_array", "texture_3d", "texture_cube",
    "texture_cube_array", "texture_multisampled_2d", "texture_depth_2d",
    "texture_depth_2d_array", "texture_depth_cube", "texture_depth_cube_array",
    "texture_depth_multisampled_2d", "texture_external", "texture_storage_1d",
    "texture_storage_2d", "texture_storage_2d_array", "texture_storage_3d",
}  # fmt: skip

_BUILTIN_FUNCTIONS = {
    "abs", "acos", "acosh", "all", "any", "arrayLength", "asin", "asinh",
    "atan", "atan2", "atanh", "ceil", "clamp", "cos", "cosh",
    "countLeadingZeros", "countOneBits", "countTrailingZeros", "cross",
    "degrees", "determinant", "distance", "dot", "dot4I8Packed", "dot4U8Packed",
    "exp", "exp2", "extractBits", "faceForward", "firstLeadingBit",
    "firstTrailingBit", "floor", "fma", "fract", "frexp", "insertBits",
    "inverseSqrt", "ldexp", "length", "log", "log2", "max", "min", "mix",
    "modf", "normalize", "pow", "quantizeToF16", "radians", "reflect",
    "refract", "reverseBits", "round", "saturate", "select", "sign", "sin",
    "sinh", "smoothstep", "sqrt", "step", "tan", "tanh", "transpose", "trunc",
    "dpdx", "dpdxCoarse", "dpdxFine", "dpdy", "dpdyCoarse", "dpdyFine",
    "fwidth", "fwidthCoarse", "fwidthFine", "textureDimensions",
    "textureGather", "textureGatherCompare", "textureLoad", "textureNumLayers",
    "textureNumLevels", "textureNumSamples", "textureSample",
    "textureSampleBaseClampToEdge", "textureSampleBias", "textureSampleCompare",
    "textureSampleCompareLevel", "textureSampleGrad", "textureSampleLevel",
    "textureStore", "atomicAdd", "atomicAnd", "atomicCompareExchangeWeak",
    "atomicExchange", "atomicLoad", "atomicMax", "atomicMin", "atomicOr",
    "atomicStore", "atomicSub", "atomicXor", "pack2x16float", "pack2x16snorm",
    "pack2x16unorm", "pack4x8snorm", "pack4x8unorm", "unpack2x16float",
    "unpack2x16snorm", "unpack2x16unorm", "unpack4x8snorm", "unpack4x8unorm",
    "storageBarrier", "textureBarrier", "workgroupBarrier",
    "workgroupUniformLoad",
}  # fmt: skip

RESERVED_WORDS = frozenset(
    _KEYWORDS | _TYPE_ALIASES | _TEXTURE_TYPES | _BUILTIN_FUNCTIONS
)

_MEMOIZED_KINDS = frozenset(
    {
        NodeKind.VARIABLE,
        NodeKind.CONSTANT,
        NodeKind.FUNCTION,
        NodeKind.ENTRY_FUNCTION,
        NodeKind.STRUCT,
        NodeKind.BOUND_RESOURCE,
    }
)


def sanitize_identifier(label: str | None) -> str:
    """Turn a label into a valid WGSL identifier base."""
    if not label:
        return "item"
    name = re.sub(r"[^0-9A-Za-z_]", "_", label).lstrip("_")
    if not name:
        return "item"
    if name[0].isdigit():
        name = f"n{name}"
    return name


def _same_value(current: Any, recorded: Any) -> bool:
    if current is recorded:
        return True
    if isinstance(current, Resolvable) or isinstance(recorded, Resolvable):
        return False
    if type(current) is not type(recorded):
        return False
    if isinstance(current, np.ndarray):
        return np.array_equal(current, recorded)
    return bool(current == recorded)


@dataclass
class _Frame:
    """A node currently being resolved."""

    node: Resolvable
    binding_depth: int
    used_slots: dict[int, tuple[Slot, Any]] = field(default_factory=dict)


@dataclass
class _MemoEntry:
    slot_values: dict[int, tuple[Slot, Any]]
    result: Any


class ResolutionContext:
    """State of a single resolution pass.

    A context is created for one compile, owned by one caller, and discarded
    afterwards. It never mutates the nodes it resolves.
    """

    def __init__(self, config: ResolveConfig | None = None) -> None:
        """Initialize an empty context.

        Args:
            config: Options for assembling the final source text
        """
        self.config = config or ResolveConfig()
        self.structs: dict[str, Struct] = {}
        self.bind_group_layouts: dict[int, "BindGroupLayout"] = {}
        self._bindings: list[list[tuple[Slot, Any]]] = []
        self._frames: list[_Frame] = []
        self._in_progress: set[int] = set()
        self._resolved: dict[int, list[_MemoEntry]] = {}
        self._derived_values: dict[int, list[_MemoEntry]] = {}
        self._names: set[str] = set()
        self._local_scopes: list[frozenset[str]] = []
        self._declarations: list[str] = []

    # Declarations and naming

    @property
    def declarations(self) -> list[str]:
        return list(self._declarations)

    def add_declaration(self, declaration: str) -> None:
        self._declarations.append(declaration)

    def name_for(self, node: Resolvable) -> str:
        """Generate an identifier no other node in this pass has received."""
        base = sanitize_identifier(node.label)
        name = base
        suffix = 0
        while (
            name in self._names
            or name in RESERVED_WORDS
            or self.is_local_name(name)
        ):
            suffix += 1
            name = f"{base}_{suffix}"
        self._names.add(name)
        return name

    @contextmanager
    def local_names(self, names: Iterable[str]) -> Iterator[None]:
        """Keep module-scope identifiers clear of names bound inside a body."""
        self._local_scopes.append(frozenset(names))
        try:
            yield
        finally:
            self._local_scopes.pop()

    def is_local_name(self, name: str) -> bool:
        return any(name in scope for scope in self._local_scopes)

    def register_struct(self, identifier: str, struct: Struct) -> None:
        self.structs[identifier] = struct

    def register_bind_group(self, layout: "BindGroupLayout") -> None:
        existing = self.bind_group_layouts.get(layout.group)
        if existing is not None and existing is not layout:
            raise ResolutionError(
                f"Two different bind group layouts use group {layout.group}", layout
            )
        self.bind_group_layouts[layout.group] = layout

    def source(self, tail: str | None = None) -> str:
        """Join the accumulated declarations into the final source text."""
        parts = []
        if self.config.header:
            lines = self.config.header.splitlines()
            parts.append("\n".join(f"// {line}" for line in lines))
        parts.extend(self._declarations)
        if tail:
            parts.append(tail)
        return self.config.separator.join(parts)

    # Slot bindings

    @contextmanager
    def with_slots(self, pairs: Iterable[tuple[Slot, Any]]) -> Iterator[None]:
        """Bind slots for the duration of the ``with`` block."""
        layer = list(pairs)
        for bound, _ in layer:
            if not isinstance(bound, Slot):
                raise ResolutionError(f"Can only bind slots, got {bound!r}")
        self._bindings.append(layer)
        try:
            yield
        finally:
            self._bindings.pop()

    def _lookup_slot(self, slot: Slot) -> tuple[bool, Any, int]:
        """Find a slot's value: innermost binding first, then its default.

        Returns:
            Tuple of (found, value, index of the providing binding layer or -1)
        """
        for index in range(len(self._bindings) - 1, -1, -1):
            for bound, value in reversed(self._bindings[index]):
                if bound is slot:
                    return True, value, index
        if slot.has_default:
            return True, slot.default, -1
        return False, None, -1

    def _record_slot(self, slot: Slot, value: Any, provider_index: int) -> None:
        # Only frames that started inside the providing binding are independent of it.
        for frame in self._frames:
            if frame.binding_depth > provider_index:
                frame.used_slots[slot.node_id] = (slot, value)

    # Memoization and cycle detection

    @contextmanager
    def _frame(self, node: Resolvable) -> Iterator[_Frame]:
        if node.node_id in self._in_progress:
            start = next(
                i for i, frame in enumerate(self._frames) if frame.node is node
            )
            cycle = [describe(f.node) for f in self._frames[start:]] + [describe(node)]
            raise CyclicDependencyError("Cyclic dependency detected", node, cycle)

        frame = _Frame(node, len(self._bindings))
        self._frames.append(frame)
        self._in_progress.add(node.node_id)
        try:
            yield frame
        finally:
            self._frames.pop()
            self._in_progress.discard(node.node_id)

    def _lookup_memo(
        self, table: dict[int, list[_MemoEntry]], node: Resolvable
    ) -> _MemoEntry | None:
        for entry in table.get(node.node_id, ()):
            current = {}
            for slot_id, (slot, recorded) in entry.slot_values.items():
                found, value, index = self._lookup_slot(slot)
                if not found or not _same_value(value, recorded):
                    break
                current[slot_id] = (slot, value, index)
            else:
                # The cached result depends on these slots, so do the callers.
                for slot, value, index in current.values():
                    self._record_slot(slot, value, index)
                return entry
        return None

    def _resolve_memoized(self, node: Resolvable) -> str:
        entry = self._lookup_memo(self._resolved, node)
        if entry is not None:
            return entry.result

        with self._frame(node) as frame:
            result = node.resolve(self)
        self._resolved.setdefault(node.node_id, []).append(
            _MemoEntry(dict(frame.used_slots), result)
        )
        logger.debug(f"Resolved {describe(node)} as '{result}'")
        return result

    def _compute_derived(self, node: Derived) -> Any:
        entry = self._lookup_memo(self._derived_values, node)
        if entry is not None:
            return entry.result

        with self._frame(node) as frame:
            value = node.compute(self)
        self._derived_values.setdefault(node.node_id, []).append(
            _MemoEntry(dict(frame.used_slots), value)
        )
        logger.debug(
            f"Computed {node!r} under "
            f"{ {describe(s): v for s, v in frame.used_slots.values()} }"
        )
        return value

    # Public API

    def unwrap(self, item: Any) -> Any:
        """Follow slots and derived values down to a concrete value.

        Raises:
            UnresolvedSlotError: If a slot has neither a binding nor a default
            CyclicDependencyError: If slots or derived values refer to themselves
        """
        seen: list[Slot] = []
        while True:
            if isinstance(item, Slot):
                if item in seen:
                    cycle = [describe(s) for s in seen[seen.index(item) :]]
                    raise CyclicDependencyError(
                        "Cyclic slot binding detected", item, [*cycle, describe(item)]
                    )
                seen.append(item)
                found, value, index = self._lookup_slot(item)
                if not found:
                    raise UnresolvedSlotError(
                        f"Missing value for slot '{describe(item)}'", item
                    )
                self._record_slot(item, value, index)
                item = value
            elif isinstance(item, Derived):
                item = self._compute_derived(item)
            else:
                return item

    def resolve(self, item: Any) -> str:
        """Resolve a node, type or plain value to the text that references it.

        Declarations the item needs are added to the context on first use.

        Args:
            item: Resolvable node, data type, typed value, Python number or
                raw WGSL text

        Returns:
            Identifier or expression text for ``item``

        Raises:
            ResolutionError: If the item (or anything it depends on) cannot be
                resolved
        """
        if isinstance(item, Resolvable):
            kind = item.node_kind
            if kind in _MEMOIZED_KINDS:
                return self._resolve_memoized(item)
            if kind in (NodeKind.SLOT, NodeKind.DERIVED):
                return self.resolve(self.unwrap(item))
            if kind in (NodeKind.CODE, NodeKind.BUILTIN_FUNCTION):
                with self._frame(item):
                    return item.resolve(self)
            raise ResolutionError(f"Unhandled node kind: {kind}", item)
        if isinstance(item, (DataType, TypedValue)):
            return item.resolve(self)
        if isinstance(item, (bool, int, float, np.number, np.bool_)):
            return format_literal(item)
        if isinstance(item, str):
            return item
        raise ResolutionError(f"Cannot resolve value {item!r}")
