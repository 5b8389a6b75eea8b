"""
Data models for resolution configuration and results.

This module contains the dataclass definitions shared by the resolution
context and the top-level resolve functions.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ResolveConfig:
    """Options controlling how resolved source text is assembled.

    Attributes:
        header: Optional comment placed at the top of the emitted source
        separator: Text placed between consecutive declarations
    """

    header: str | None = None
    separator: str = "\n\n"


@dataclass
class ShaderModule:
    """Result of resolving a shader module.

    Attributes:
        code: WGSL source text
        layouts: Layout descriptor per emitted struct identifier
        bind_groups: Bind-group layout description per group index
    """

    code: str
    layouts: dict[str, dict[str, Any]] = field(default_factory=dict)
    bind_groups: dict[int, dict[int, dict[str, Any]]] = field(default_factory=dict)
