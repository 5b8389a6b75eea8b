"""
Shader functions and entry points.

Function bodies are WGSL blocks that reference other nodes through ``$name``
placeholders, looked up in the function's externals:

    >>> double = fn({"x": f32}, f32).does(
    ...     "{ return $scale * x; }", uses={"scale": 2.0}
    ... )

Entry functions take their inputs and outputs as shapes (field name to type).
Shapes become generated ``<name>_Input``/``<name>_Output`` structs with
``@location``/``@builtin`` annotations, available to the body as ``$In`` and
``$Out``.
"""

import copy
from enum import Enum
from typing import TYPE_CHECKING, Any

from pywgsl.data.attributes import (
    get_builtin,
    get_location,
    is_builtin,
    location,
    render_attributes,
)
from pywgsl.data.types import DataType, Struct
from pywgsl.errors import (
    AttributeConflictError,
    ConfigurationError,
    NotInResolutionError,
)
from pywgsl.resolution.code import render_template, split_template
from pywgsl.resolution.nodes import NodeKind, Resolvable, describe, next_node_id
from pywgsl.resolution.slot import Slot

if TYPE_CHECKING:
    from pywgsl.resolution.context import ResolutionContext


class ShaderStage(Enum):
    VERTEX = "vertex"
    FRAGMENT = "fragment"
    COMPUTE = "compute"


def _as_block(body: str) -> str:
    body = body.strip()
    if body.startswith("{"):
        return body
    return "{\n  " + body + "\n}"


def _check_params(params: dict[str, DataType], node: Any) -> None:
    for name, param_type in params.items():
        if not name.isidentifier():
            raise ConfigurationError(f"Invalid parameter name: {name!r}", node)
        if not isinstance(param_type, DataType):
            raise ConfigurationError(
                f"Parameter '{name}' has invalid type {param_type!r}", node
            )


class Function(Resolvable):
    """A WGSL function emitted once per resolution pass and binding set."""

    node_kind = NodeKind.FUNCTION

    def __init__(
        self,
        params: dict[str, DataType],
        returns: DataType | None,
        body: str,
        externals: dict[str, Any] | None = None,
        label: str | None = None,
    ):
        super().__init__(label)
        _check_params(params, label)
        split_template(body, label)
        self.params = dict(params)
        self.returns = returns
        self.body = _as_block(body)
        self.externals = dict(externals or {})
        self.bindings: tuple[tuple[Slot, Any], ...] = ()

    def uses(self, externals: dict[str, Any]) -> "Function":
        """Add externals the body refers to."""
        self.externals.update(externals)
        return self

    def with_(self, slot: Slot, value: Any) -> "Function":
        """Return a variant of this function that resolves with ``slot`` bound.

        The variant is a separate node and gets its own identifier. As with
        derived values, the first binding applied is the innermost one.
        """
        variant = copy.copy(self)
        variant.node_id = next_node_id()
        variant.bindings = (*self.bindings, (slot, value))
        return variant

    def __call__(self, *args: Any) -> Any:
        raise NotInResolutionError(
            f"Function '{describe(self)}' can only be called from shader code", self
        )

    def _signature(self, ctx: "ResolutionContext", identifier: str) -> str:
        params = ", ".join(
            f"{name}: {ctx.resolve(param_type)}"
            for name, param_type in self.params.items()
        )
        returns = f" -> {ctx.resolve(self.returns)}" if self.returns else ""
        return f"fn {identifier}({params}){returns}"

    def resolve(self, ctx: "ResolutionContext") -> str:
        with ctx.with_slots(reversed(self.bindings)):
            identifier = ctx.name_for(self)
            signature = self._signature(ctx, identifier)
            with ctx.local_names(self.params):
                body = render_template(ctx, self.body, self.externals, self)
            ctx.add_declaration(f"{signature} {body}")
        return identifier


class _IOStruct(Struct):
    buffer_backed = False


def io_fields(shape: dict[str, DataType], node: Any = None) -> dict[str, DataType]:
    """Decorate a shape's plain fields with locations in declaration order.

    Explicit locations and builtins are kept; the remaining fields get the
    lowest locations not already taken.

    Raises:
        AttributeConflictError: If two fields share a location or a builtin
    """
    used_locations: dict[int, str] = {}
    used_builtins: dict[str, str] = {}
    for name, field_type in shape.items():
        loc = get_location(field_type)
        if loc is not None:
            if loc in used_locations:
                raise AttributeConflictError(
                    f"Location {loc} is used by both '{used_locations[loc]}' "
                    f"and '{name}'",
                    node,
                )
            used_locations[loc] = name
        builtin_name = get_builtin(field_type)
        if builtin_name is not None:
            if builtin_name in used_builtins:
                raise AttributeConflictError(
                    f"Builtin '{builtin_name}' is used by both "
                    f"'{used_builtins[builtin_name]}' and '{name}'",
                    node,
                )
            used_builtins[builtin_name] = name

    fields: dict[str, DataType] = {}
    next_location = 0
    for name, field_type in shape.items():
        if is_builtin(field_type) or get_location(field_type) is not None:
            fields[name] = field_type
            continue
        while next_location in used_locations:
            next_location += 1
        used_locations[next_location] = name
        fields[name] = location(next_location, field_type)
    return fields


class EntryFunction(Function):
    """A ``@vertex``, ``@fragment`` or ``@compute`` entry point."""

    node_kind = NodeKind.ENTRY_FUNCTION

    def __init__(
        self,
        stage: ShaderStage,
        body: str,
        in_shape: dict[str, DataType] | None = None,
        out_shape: dict[str, DataType] | DataType | None = None,
        workgroup_size: tuple[int, ...] | None = None,
        externals: dict[str, Any] | None = None,
        label: str | None = None,
    ):
        super().__init__({}, None, body, externals, label or f"{stage.value}_main")
        self.stage = stage
        self.in_shape = dict(in_shape) if in_shape else None
        self.out_shape = dict(out_shape) if isinstance(out_shape, dict) else out_shape
        self.workgroup_size = workgroup_size
        self._validate()

    def _validate(self) -> None:
        for shape in (self.in_shape, self.out_shape):
            if isinstance(shape, dict):
                _check_params(shape, self.label)
                io_fields(shape, self.label)

        if self.stage is ShaderStage.COMPUTE:
            size = self.workgroup_size or ()
            if not 1 <= len(size) <= 3 or any(
                not isinstance(n, int) or n < 1 for n in size
            ):
                raise ConfigurationError(
                    f"Invalid workgroup size: {self.workgroup_size!r}", self.label
                )
            if self.out_shape is not None:
                raise ConfigurationError(
                    "Compute entry points cannot return values", self.label
                )
            for name, field_type in (self.in_shape or {}).items():
                if not is_builtin(field_type):
                    raise ConfigurationError(
                        f"Compute input '{name}' must be a builtin", self.label
                    )

        if self.stage is ShaderStage.VERTEX:
            outputs = self.out_shape if isinstance(self.out_shape, dict) else {}
            if not any(get_builtin(t) == "position" for t in outputs.values()):
                raise ConfigurationError(
                    "Vertex outputs must include a builtin position", self.label
                )

    def _stage_attribute(self) -> str:
        if self.stage is ShaderStage.COMPUTE:
            sizes = ", ".join(str(n) for n in self.workgroup_size)
            return f"@compute @workgroup_size({sizes})"
        return f"@{self.stage.value}"

    def resolve(self, ctx: "ResolutionContext") -> str:
        with ctx.with_slots(reversed(self.bindings)):
            identifier = ctx.name_for(self)
            externals = dict(self.externals)

            params = ""
            if self.in_shape:
                input_struct = _IOStruct(
                    io_fields(self.in_shape, self), label=f"{identifier}_Input"
                )
                externals.setdefault("In", input_struct)
                params = f"input: {ctx.resolve(input_struct)}"

            returns = ""
            if isinstance(self.out_shape, dict):
                output_struct = _IOStruct(
                    io_fields(self.out_shape, self), label=f"{identifier}_Output"
                )
                externals.setdefault("Out", output_struct)
                returns = f" -> {ctx.resolve(output_struct)}"
            elif self.out_shape is not None:
                out_type = self.out_shape
                if not is_builtin(out_type) and get_location(out_type) is None:
                    out_type = location(0, out_type)
                returns = f" -> {render_attributes(out_type)}{ctx.resolve(out_type)}"

            body = render_template(ctx, self.body, externals, self)
            ctx.add_declaration(
                f"{self._stage_attribute()}\nfn {identifier}({params}){returns} {body}"
            )
        return identifier


class FunctionShell:
    """Signature waiting for an implementation, see :func:`fn`."""

    def __init__(self, params: dict[str, DataType], returns: DataType | None):
        self.params = params
        self.returns = returns

    def does(
        self, body: str, uses: dict[str, Any] | None = None, label: str | None = None
    ) -> Function:
        return Function(self.params, self.returns, body, uses, label)


class EntryShell:
    """Entry point signature waiting for an implementation."""

    def __init__(
        self,
        stage: ShaderStage,
        in_shape: dict[str, DataType] | None,
        out_shape: dict[str, DataType] | DataType | None,
        workgroup_size: tuple[int, ...] | None = None,
    ):
        self.stage = stage
        self.in_shape = in_shape
        self.out_shape = out_shape
        self.workgroup_size = workgroup_size

    def does(
        self, body: str, uses: dict[str, Any] | None = None, label: str | None = None
    ) -> EntryFunction:
        return EntryFunction(
            self.stage,
            body,
            self.in_shape,
            self.out_shape,
            self.workgroup_size,
            uses,
            label,
        )


def fn(
    params: dict[str, DataType] | None = None, returns: DataType | None = None
) -> FunctionShell:
    return FunctionShell(params or {}, returns)


def vertex_fn(
    in_: dict[str, DataType] | None = None,
    out: dict[str, DataType] | None = None,
) -> EntryShell:
    return EntryShell(ShaderStage.VERTEX, in_, out)


def fragment_fn(
    in_: dict[str, DataType] | None = None,
    out: dict[str, DataType] | DataType | None = None,
) -> EntryShell:
    return EntryShell(ShaderStage.FRAGMENT, in_, out)


def compute_fn(
    in_: dict[str, DataType] | None = None,
    workgroup_size: tuple[int, ...] = (1,),
) -> EntryShell:
    return EntryShell(ShaderStage.COMPUTE, in_, None, tuple(workgroup_size))
