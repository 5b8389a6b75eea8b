"""WGSL builtin functions usable as externals of function bodies.

Builtin functions need no declaration; they resolve to their WGSL name:

    >>> lit = fn({"n": vec3f, "l": vec3f}, f32).does(
    ...     "{ return $max($dot(n, l), 0.0); }", uses={"max": std.max, "dot": std.dot}
    ... )

Calling one from Python raises, since it only exists on the GPU.
"""

from typing import TYPE_CHECKING, Any

from pywgsl.errors import NotInResolutionError
from pywgsl.resolution.nodes import NodeKind, Resolvable

if TYPE_CHECKING:
    from pywgsl.resolution.context import ResolutionContext


class BuiltinFunction(Resolvable):
    """A function predeclared by WGSL."""

    node_kind = NodeKind.BUILTIN_FUNCTION

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __call__(self, *args: Any) -> Any:
        raise NotInResolutionError(
            f"'{self.name}' is a GPU builtin and can only be used in shader code",
            self,
        )

    def resolve(self, ctx: "ResolutionContext") -> str:
        return self.name

    def __repr__(self) -> str:
        return f"std.{self.name}"


class Discard(BuiltinFunction):
    """The ``discard`` statement of fragment shaders."""

    def __init__(self) -> None:
        super().__init__("discard")

    def __call__(self, *args: Any) -> Any:
        raise NotInResolutionError(
            "discard can only be used in fragment shader code", self
        )


abs = BuiltinFunction("abs")
atan2 = BuiltinFunction("atan2")
clamp = BuiltinFunction("clamp")
cos = BuiltinFunction("cos")
cross = BuiltinFunction("cross")
distance = BuiltinFunction("distance")
dot = BuiltinFunction("dot")
exp = BuiltinFunction("exp")
floor = BuiltinFunction("floor")
fract = BuiltinFunction("fract")
length = BuiltinFunction("length")
max = BuiltinFunction("max")
min = BuiltinFunction("min")
mix = BuiltinFunction("mix")
normalize = BuiltinFunction("normalize")
pow = BuiltinFunction("pow")
select = BuiltinFunction("select")
sign = BuiltinFunction("sign")
sin = BuiltinFunction("sin")
smoothstep = BuiltinFunction("smoothstep")
sqrt = BuiltinFunction("sqrt")
step = BuiltinFunction("step")
tan = BuiltinFunction("tan")
atomic_add = BuiltinFunction("atomicAdd")
atomic_load = BuiltinFunction("atomicLoad")
atomic_store = BuiltinFunction("atomicStore")
texture_sample = BuiltinFunction("textureSample")
workgroup_barrier = BuiltinFunction("workgroupBarrier")

discard = Discard()
