"""Fixtures and configuration for pytest."""

import pytest

from pywgsl.data import f32, struct, unstruct, vec2f, vec3f
from pywgsl.resolution.context import ResolutionContext


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "cli: mark test as exercising the CLI")


@pytest.fixture
def ctx():
    """Fixture providing a fresh resolution context."""
    return ResolutionContext()


@pytest.fixture
def particle():
    """Fixture providing a struct laid out with the WGSL rules."""
    return struct(
        {"position": vec3f, "velocity": vec3f, "mass": f32}, label="Particle"
    )


@pytest.fixture
def vertex():
    """Fixture providing a packed vertex struct."""
    return unstruct({"position": vec3f, "normal": vec3f, "uv": vec2f}, label="Vertex")
