"""Slots and derived values.

A slot is a placeholder whose value is looked up in the resolution context's
binding stack (dynamic scope). A derived value runs a compute function during
resolution; its result is cached per combination of the slot values the
computation actually read.

Example:
    >>> scale = slot(1.0, label="scale")
    >>> scaled = derived(lambda ctx: ctx.unwrap(scale) * 2)
    >>> doubled_twice = scaled.with_(scale, 2.0)
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pywgsl.errors import NotInResolutionError
from pywgsl.resolution.nodes import NodeKind, Resolvable, describe

if TYPE_CHECKING:
    from pywgsl.resolution.context import ResolutionContext


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class Slot(Resolvable):
    """Placeholder resolved through the active bindings of a context."""

    node_kind = NodeKind.SLOT

    def __init__(self, default: Any = MISSING, label: str | None = None):
        super().__init__(label)
        self.default = default

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def value(self) -> Any:
        raise NotInResolutionError(
            "Cannot access a slot's value outside of resolution, "
            "read it with ctx.unwrap(slot) inside a derived computation",
            self,
        )

    def resolve(self, ctx: "ResolutionContext") -> str:
        return ctx.resolve(ctx.unwrap(self))

    def __repr__(self) -> str:
        return f"slot:{describe(self)}"


class Derived(Resolvable):
    """Value computed during resolution, optionally under extra slot bindings."""

    node_kind = NodeKind.DERIVED

    def __init__(
        self,
        compute: Callable[["ResolutionContext"], Any],
        label: str | None = None,
        inner: "Derived | None" = None,
        binding: tuple[Slot, Any] | None = None,
    ):
        super().__init__(label)
        self._compute = compute
        self._inner = inner
        self._binding = binding

    def compute(self, ctx: "ResolutionContext") -> Any:
        """Run the computation in ``ctx``. Use ``ctx.unwrap`` to get a cached value."""
        if self._inner is None:
            return self._compute(ctx)
        with ctx.with_slots([self._binding]):
            return ctx.unwrap(self._inner)

    def with_(self, slot: Slot, value: Any) -> "Derived":
        """Return a derived value that binds ``slot`` to ``value`` around this one.

        Chained calls nest: in ``d.with_(a, 1).with_(a, 2)`` the computation
        sees ``a == 1``, because the first binding applied is the innermost.
        """
        return Derived(self._compute, self.label, inner=self, binding=(slot, value))

    @property
    def value(self) -> Any:
        raise NotInResolutionError(
            "Cannot access a derived value outside of resolution", self
        )

    def resolve(self, ctx: "ResolutionContext") -> str:
        return ctx.resolve(ctx.unwrap(self))

    def __repr__(self) -> str:
        if self._binding is None:
            return f"derived:{describe(self)}"
        slot, value = self._binding
        return f"derived[{describe(slot)}={value!r}]"


def slot(default: Any = MISSING, label: str | None = None) -> Slot:
    return Slot(default, label)


def derived(
    compute: Callable[["ResolutionContext"], Any], label: str | None = None
) -> Derived:
    return Derived(compute, label)
