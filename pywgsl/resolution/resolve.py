"""
Top-level interface for turning resolvable nodes into WGSL.

Each call creates a fresh :class:`ResolutionContext`, resolves the requested
roots (and optional template) through it, and throws the context away. Nothing
is shared between calls.
"""

from typing import Any

from loguru import logger

from pywgsl.data.layout import layout_descriptor
from pywgsl.resolution.code import render_template
from pywgsl.resolution.context import ResolutionContext
from pywgsl.resolution.models import ResolveConfig, ShaderModule
from pywgsl.resolution.nodes import describe


def resolve_module(
    *roots: Any,
    template: str | None = None,
    externals: dict[str, Any] | None = None,
    config: ResolveConfig | None = None,
) -> ShaderModule:
    """Resolve roots into WGSL source plus layout descriptors.

    Args:
        *roots: Nodes to emit, typically entry functions
        template: Optional WGSL text appended after all declarations, with
            ``$name`` references resolved through ``externals``
        externals: Names available to ``template``
        config: Options for assembling the source text

    Returns:
        ShaderModule with the code, a layout descriptor per emitted struct and
        a description of every referenced bind group layout

    Raises:
        ResolutionError: If any node cannot be resolved; no partial output is
            returned
    """
    ctx = ResolutionContext(config)
    logger.debug(f"Resolving roots: {[describe(root) for root in roots]}")

    for root in roots:
        ctx.resolve(root)
    tail = render_template(ctx, template, externals or {}) if template else None

    code = ctx.source(tail)
    layouts = {
        identifier: layout_descriptor(struct)
        for identifier, struct in ctx.structs.items()
    }
    bind_groups = {
        group: layout.describe()
        for group, layout in sorted(ctx.bind_group_layouts.items())
    }
    logger.debug(
        f"Resolved {len(ctx.declarations)} declarations, "
        f"{len(layouts)} buffer layouts, {len(bind_groups)} bind groups"
    )
    return ShaderModule(code=code, layouts=layouts, bind_groups=bind_groups)


def resolve(
    *roots: Any,
    template: str | None = None,
    externals: dict[str, Any] | None = None,
    config: ResolveConfig | None = None,
) -> str:
    """Resolve roots into WGSL source text.

    Example:
        >>> resolve(main_vertex, main_fragment)
    """
    return resolve_module(
        *roots, template=template, externals=externals, config=config
    ).code
