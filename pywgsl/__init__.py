"""Typed WGSL shader module generation from Python."""

from pywgsl import data, std
from pywgsl.bind_group import (
    BindGroupLayout,
    bind_group_layout,
    sampler,
    storage,
    texture,
    uniform,
)
from pywgsl.errors import (
    AttributeConflictError,
    ConfigurationError,
    CyclicDependencyError,
    NotInResolutionError,
    ResolutionError,
    ShapeMismatchError,
    UnresolvedSlotError,
    WGSLError,
)
from pywgsl.resolution.code import code
from pywgsl.resolution.context import ResolutionContext
from pywgsl.resolution.function import compute_fn, fn, fragment_fn, vertex_fn
from pywgsl.resolution.models import ResolveConfig, ShaderModule
from pywgsl.resolution.resolve import resolve, resolve_module
from pywgsl.resolution.slot import derived, slot
from pywgsl.resolution.variable import const, var

__version__ = "0.1.0"

__all__ = [
    "AttributeConflictError",
    "BindGroupLayout",
    "ConfigurationError",
    "CyclicDependencyError",
    "NotInResolutionError",
    "ResolutionContext",
    "ResolutionError",
    "ResolveConfig",
    "ShaderModule",
    "ShapeMismatchError",
    "UnresolvedSlotError",
    "WGSLError",
    "bind_group_layout",
    "code",
    "compute_fn",
    "const",
    "data",
    "derived",
    "fn",
    "fragment_fn",
    "resolve",
    "resolve_module",
    "sampler",
    "slot",
    "std",
    "storage",
    "texture",
    "uniform",
    "var",
    "vertex_fn",
]
