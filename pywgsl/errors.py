"""
Exceptions raised while defining GPU data types and resolving WGSL code.

Definition-time problems (malformed types, bad decorations) raise as soon as
the offending object is built. Resolution-time problems abort the whole
resolve call, so no partial source text ever reaches the caller.
"""

from typing import Any


def _label_of(node: Any) -> str | None:
    if node is None:
        return None
    if isinstance(node, str):
        return node
    return getattr(node, "label", None)


class WGSLError(Exception):
    """Base class for every error raised by pywgsl.

    The optional node is the object being defined or resolved when the error
    happened. Its label, when it has one, is appended to the message.

    Examples:
        >>> raise WGSLError("Something went wrong", node="particles")
        WGSLError: Something went wrong (at 'particles')
    """

    def __init__(self, message: str, node: Any = None):
        """Initialize the exception with a message and optional node.

        Args:
            message: The error message
            node: Object (or plain label) the error refers to
        """
        self.message = message
        self.node = node
        self.label = _label_of(node)

        location_info = f" (at '{self.label}')" if self.label else ""
        super().__init__(f"{message}{location_info}")

    def with_node(self, node: Any) -> "WGSLError":
        """Create a new error of the same class pointing at a different node."""
        return type(self)(self.message, node)


class ConfigurationError(WGSLError):
    """A type descriptor or decoration is malformed."""


class ShapeMismatchError(WGSLError):
    """A decoration was applied to a value of the wrong underlying type."""

    def __init__(
        self, message: str, node: Any = None, expected: Any = None, actual: Any = None
    ):
        self.expected = expected
        self.actual = actual
        if expected is not None or actual is not None:
            message = f"{message}: expected {expected}, got {actual}"
        super().__init__(message, node)

    def with_node(self, node: Any) -> "ShapeMismatchError":
        error = ShapeMismatchError(self.message, node)
        error.expected = self.expected
        error.actual = self.actual
        return error


class ResolutionError(WGSLError):
    """Resolution of a shader module failed."""


class UnresolvedSlotError(ResolutionError):
    """A slot was read with no binding in scope and no default value."""


class CyclicDependencyError(ResolutionError):
    """A node transitively depends on itself."""

    def __init__(self, message: str, node: Any = None, cycle: list[str] | None = None):
        self.cycle = cycle or []
        if self.cycle:
            message = f"{message}: {' -> '.join(self.cycle)}"
        super().__init__(message, node)

    def with_node(self, node: Any) -> "CyclicDependencyError":
        error = CyclicDependencyError(self.message, node)
        error.cycle = self.cycle
        return error


class NotInResolutionError(ResolutionError):
    """A GPU-time value was accessed from host-time control flow."""


class AttributeConflictError(ResolutionError):
    """A value carries attributes that cannot be combined."""
