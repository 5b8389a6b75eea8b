"""Module-scope variables and constants."""

from enum import Enum
from typing import TYPE_CHECKING, Any

from pywgsl.data.types import DataType
from pywgsl.errors import ConfigurationError
from pywgsl.resolution.nodes import NodeKind, Resolvable

if TYPE_CHECKING:
    from pywgsl.resolution.context import ResolutionContext


class AddressSpace(Enum):
    PRIVATE = "private"
    WORKGROUP = "workgroup"


class Variable(Resolvable):
    """A ``var<private>`` or ``var<workgroup>`` declaration."""

    node_kind = NodeKind.VARIABLE

    def __init__(
        self,
        data_type: DataType,
        initial: Any = None,
        scope: AddressSpace | str = AddressSpace.PRIVATE,
        label: str | None = None,
    ):
        super().__init__(label)
        if not isinstance(data_type, DataType):
            raise ConfigurationError(f"Invalid variable type: {data_type!r}", label)
        self.data_type = data_type
        self.initial = initial
        try:
            self.scope = AddressSpace(scope)
        except ValueError as e:
            raise ConfigurationError(f"Unknown address space: {scope!r}", label) from e
        if self.scope is AddressSpace.WORKGROUP and initial is not None:
            raise ConfigurationError(
                "Workgroup variables cannot have an initializer", label
            )

    def resolve(self, ctx: "ResolutionContext") -> str:
        identifier = ctx.name_for(self)
        type_name = ctx.resolve(self.data_type)
        declaration = f"var<{self.scope.value}> {identifier}: {type_name}"
        if self.initial is not None:
            declaration += f" = {ctx.resolve(self.initial)}"
        ctx.add_declaration(f"{declaration};")
        return identifier


class Constant(Resolvable):
    """A module-scope ``const`` declaration."""

    node_kind = NodeKind.CONSTANT

    def __init__(self, data_type: DataType, value: Any, label: str | None = None):
        super().__init__(label)
        if not isinstance(data_type, DataType):
            raise ConfigurationError(f"Invalid constant type: {data_type!r}", label)
        if value is None:
            raise ConfigurationError("Constants need a value", label)
        self.data_type = data_type
        self.value = value

    def resolve(self, ctx: "ResolutionContext") -> str:
        identifier = ctx.name_for(self)
        type_name = ctx.resolve(self.data_type)
        ctx.add_declaration(
            f"const {identifier}: {type_name} = {ctx.resolve(self.value)};"
        )
        return identifier


def var(
    data_type: DataType,
    initial: Any = None,
    scope: AddressSpace | str = AddressSpace.PRIVATE,
    label: str | None = None,
) -> Variable:
    return Variable(data_type, initial, scope, label)


def const(data_type: DataType, value: Any, label: str | None = None) -> Constant:
    return Constant(data_type, value, label)
