"""WGSL code templates with ``$name`` references to other nodes."""

from string import Template
from typing import TYPE_CHECKING, Any

from pywgsl.errors import ConfigurationError, ResolutionError, WGSLError
from pywgsl.resolution.nodes import NodeKind, Resolvable

if TYPE_CHECKING:
    from pywgsl.resolution.context import ResolutionContext


def split_template(template: str, node: Any = None) -> list[str | tuple[str]]:
    """Split a template into literal text and ``(name,)`` placeholders.

    ``$name`` and ``${name}`` are placeholders, ``$$`` is a literal dollar sign.

    Raises:
        ConfigurationError: If the template contains a malformed placeholder
    """
    parts: list[str | tuple[str]] = []
    position = 0
    for match in Template.pattern.finditer(template):
        parts.append(template[position : match.start()])
        position = match.end()
        if match.group("escaped") is not None:
            parts.append("$")
        elif match.group("invalid") is not None:
            raise ConfigurationError(
                f"Invalid placeholder at offset {match.start('invalid')}", node
            )
        else:
            parts.append((match.group("named") or match.group("braced"),))
    parts.append(template[position:])
    return [p for p in parts if p != ""]


def render_template(
    ctx: "ResolutionContext",
    template: str,
    externals: dict[str, Any],
    node: Any = None,
) -> str:
    """Resolve every placeholder of ``template`` through ``ctx``.

    Errors raised while resolving an external that carry no label of their
    own are re-pointed at ``node``.

    Raises:
        ResolutionError: If a placeholder has no matching external, or a node
            it names resolves to an identifier shadowed by a parameter
    """
    rendered = []
    for part in split_template(template, node):
        if isinstance(part, str):
            rendered.append(part)
            continue
        name = part[0]
        if name not in externals:
            raise ResolutionError(f"Missing external '{name}'", node)
        external = externals[name]
        try:
            resolved = ctx.resolve(external)
        except WGSLError as e:
            if e.label is not None or node is None:
                raise
            raise e.with_node(node) from e
        if isinstance(external, Resolvable) and ctx.is_local_name(resolved):
            raise ResolutionError(
                f"External '{name}' resolves to '{resolved}', which is shadowed "
                "by a parameter",
                node,
            )
        rendered.append(resolved)
    return "".join(rendered)


class Code(Resolvable):
    """Inline WGSL snippet; resolves to its text without a declaration."""

    node_kind = NodeKind.CODE

    def __init__(
        self,
        template: str,
        externals: dict[str, Any] | None = None,
        label: str | None = None,
    ):
        super().__init__(label)
        split_template(template, self)
        self.template = template
        self.externals = dict(externals or {})

    def resolve(self, ctx: "ResolutionContext") -> str:
        return render_template(ctx, self.template, self.externals, self)


def code(template: str, **externals: Any) -> Code:
    """Build an inline WGSL snippet, e.g. ``code("$scale * 2.0", scale=scale_slot)``."""
    return Code(template, externals)
