"""Resolvable nodes and their identity scheme.

Every node receives a stable integer id when it is built. Resolution contexts
key their memo tables and naming on these ids rather than on object identity.
"""

import itertools
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pywgsl.resolution.context import ResolutionContext

_node_ids = itertools.count(1)


def next_node_id() -> int:
    return next(_node_ids)


class NodeKind(Enum):
    """Closed set of resolvable node kinds."""

    VARIABLE = auto()
    CONSTANT = auto()
    FUNCTION = auto()
    ENTRY_FUNCTION = auto()
    SLOT = auto()
    DERIVED = auto()
    STRUCT = auto()
    BOUND_RESOURCE = auto()
    CODE = auto()
    BUILTIN_FUNCTION = auto()


class Resolvable:
    """Something that has to appear in emitted WGSL source."""

    node_kind: NodeKind

    def __init__(self, label: str | None = None):
        self.node_id = next_node_id()
        self.label = label

    def named(self, label: str) -> "Resolvable":
        """Set the human readable label used for identifier generation."""
        self.label = label
        return self

    def resolve(self, ctx: "ResolutionContext") -> str:
        """Emit any declarations into the context and return the reference text."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label or '<unnamed>'}#{self.node_id})"


def describe(item: Any) -> str:
    """Short human readable description of a node, used in error messages."""
    if isinstance(item, Resolvable):
        return item.label or f"<unnamed {item.node_kind.name.lower()}>"
    return repr(item)
