"""Command line interface for pywgsl.

Loads a Python file that defines shader nodes and writes the resolved WGSL
source, plus optional layout descriptors, to stdout or to files.
"""

import importlib.util
import json
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional, TypeVar, cast

import arrow
import typer
from loguru import logger

from pywgsl import __version__
from pywgsl.data.layout import layout_descriptor
from pywgsl.data.types import DataType
from pywgsl.errors import WGSLError
from pywgsl.resolution.function import EntryFunction
from pywgsl.resolution.models import ResolveConfig
from pywgsl.resolution.nodes import Resolvable
from pywgsl.resolution.resolve import resolve_module

F = TypeVar("F", bound=Callable[..., Any])


def typed_command(app_command: Any) -> Callable[[F], F]:
    """Wrap typer command with proper typing for mypy."""

    def decorator(func: F) -> F:
        return cast(F, app_command(func))

    return decorator


app = typer.Typer(
    name="pywgsl",
    help=(
        "Generate WGSL shader modules from Python definitions. "
        "Commands: export, layout."
    ),
    add_completion=False,
)


@app.callback()
def configure_logging(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log resolution details"
    ),
) -> None:
    """Generate WGSL shader modules from Python definitions."""
    level = "DEBUG" if verbose else os.environ.get("PYWGSL_LOG_LEVEL", "WARNING")
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _load_shader_module(file_path: str) -> Any:
    """Load a Python file as a module.

    Args:
        file_path: Path to the Python file

    Returns:
        Loaded module
    """
    abs_path = os.path.abspath(file_path)
    module_dir = os.path.dirname(abs_path)
    module_name = os.path.splitext(os.path.basename(abs_path))[0]

    # Sibling modules of the shader file must be importable
    if module_dir not in sys.path:
        sys.path.insert(0, module_dir)

    spec = importlib.util.spec_from_file_location(module_name, abs_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Could not load module from {file_path}")

    shader_module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(shader_module)

    return shader_module


def _find_roots(module: Any, names: list[str]) -> list[Resolvable]:
    """Pick the nodes to resolve from a loaded module.

    Args:
        module: The imported shader module
        names: Explicitly requested module attributes; when empty, every
            module-level entry function is used in definition order

    Returns:
        List of root nodes
    """
    if names:
        roots = []
        for name in names:
            item = getattr(module, name, None)
            if not isinstance(item, Resolvable):
                raise ValueError(f"'{name}' is not a shader node in {module.__name__}")
            roots.append(item)
        return roots

    roots = [
        item
        for name, item in vars(module).items()
        if not name.startswith("_") and isinstance(item, EntryFunction)
    ]
    if not roots:
        raise ValueError(f"No entry functions found in {module.__name__}")
    logger.info(f"Found entry functions: {[root.label for root in roots]}")
    return roots


def _header(source_file: str) -> str:
    timestamp = arrow.utcnow().format("YYYY-MM-DD HH:mm:ss UTC")
    return (
        f"Generated by pywgsl v{__version__}\n"
        f"Generation time: {timestamp}\n"
        f"Source file: {os.path.basename(source_file)}"
    )


SHADER_FILE_ARG = typer.Argument(..., help="Python file defining shader nodes")


@typed_command(app.command("export"))
def export_shader(
    shader_file: str = SHADER_FILE_ARG,
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="WGSL output file (stdout if omitted)"
    ),
    layout: Optional[Path] = typer.Option(
        None, "--layout", "-l", help="Write buffer layouts and bind groups as JSON"
    ),
    roots: Optional[list[str]] = typer.Option(
        None, "--root", "-r", help="Module attribute to resolve (repeatable)"
    ),
    header: bool = typer.Option(
        False, "--header", help="Prepend a generation header comment"
    ),
) -> None:
    """Export a shader module to WGSL.

    Example: pywgsl export particles.py -o particles.wgsl --layout particles.json
    """
    try:
        module = _load_shader_module(shader_file)
        nodes = _find_roots(module, roots or [])
        config = ResolveConfig(header=_header(shader_file) if header else None)
        shader = resolve_module(*nodes, config=config)
    except (ImportError, OSError) as e:
        logger.error(f"Failed to load shader module: {e}")
        raise typer.Exit(1) from e
    except ValueError as e:
        logger.error(f"Invalid shader module: {e}")
        raise typer.Exit(1) from e
    except WGSLError as e:
        logger.error(f"Resolution error: {e}")
        raise typer.Exit(1) from e

    if output is None:
        typer.echo(shader.code)
    else:
        output.write_text(shader.code + "\n")
        logger.info(f"WGSL exported to {output}")

    if layout is not None:
        descriptors = {"layouts": shader.layouts, "bind_groups": shader.bind_groups}
        layout.write_text(json.dumps(descriptors, indent=2) + "\n")
        logger.info(f"Layouts exported to {layout}")


@typed_command(app.command("layout"))
def show_layout(
    shader_file: str = SHADER_FILE_ARG,
    type_name: str = typer.Argument(..., help="Module attribute holding a data type"),
) -> None:
    """Print the memory layout of a data type as JSON.

    Example: pywgsl layout shaders/particles.py Particle
    """
    try:
        module = _load_shader_module(shader_file)
    except (ImportError, OSError) as e:
        logger.error(f"Failed to load shader module: {e}")
        raise typer.Exit(1) from e

    data_type = getattr(module, type_name, None)
    if not isinstance(data_type, DataType):
        logger.error(f"'{type_name}' is not a data type in {shader_file}")
        raise typer.Exit(1)

    typer.echo(json.dumps(layout_descriptor(data_type), indent=2))


if __name__ == "__main__":
    app()
