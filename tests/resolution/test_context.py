"""Tests for the resolution context: naming, emission and ordering."""

import numpy as np
import pytest

from pywgsl import std
from pywgsl.data import f32, struct, u32, vec3f
from pywgsl.errors import ResolutionError
from pywgsl.resolution.context import (
    RESERVED_WORDS,
    ResolutionContext,
    sanitize_identifier,
)
from pywgsl.resolution.function import fn
from pywgsl.resolution.models import ResolveConfig
from pywgsl.resolution.resolve import resolve
from pywgsl.resolution.slot import Slot


class TestNaming:
    """Test identifier generation."""

    def test_sanitize_identifier(self):
        """Test labels are turned into valid identifiers."""
        assert sanitize_identifier("Particle") == "Particle"
        assert sanitize_identifier("my-thing") == "my_thing"
        assert sanitize_identifier("3d") == "n3d"
        assert sanitize_identifier("__hidden") == "hidden"
        assert sanitize_identifier(None) == "item"
        assert sanitize_identifier("---") == "item"

    def test_collisions_get_suffix(self, ctx):
        """Test that equal labels produce distinct identifiers."""
        names = [ctx.name_for(Slot(label="color")) for _ in range(3)]
        assert names == ["color", "color_1", "color_2"]

    def test_reserved_words_avoided(self, ctx):
        """Test that keywords and type names are never generated."""
        assert ctx.name_for(Slot(label="fn")) == "fn_1"
        assert ctx.name_for(Slot(label="array")) == "array_1"
        assert ctx.name_for(Slot(label="f32")) == "f32_1"

    @pytest.mark.parametrize(
        "label",
        ["normalize", "textureSample", "vec3f", "mat4x4f", "texture_2d", "input"],
    )
    def test_predeclared_names_avoided(self, ctx, label):
        """Test that builtin functions, type aliases and `input` are never generated."""
        assert ctx.name_for(Slot(label=label)) == f"{label}_1"

    def test_std_functions_reserved(self):
        """Test that every builtin function handle names a reserved identifier."""
        handles = [v for v in vars(std).values() if isinstance(v, std.BuiltinFunction)]

        assert handles
        assert {handle.name for handle in handles} <= RESERVED_WORDS

    def test_function_named_like_builtin(self):
        """Test a user function and the builtin of the same name stay distinct."""
        # Arrange
        halve = fn({"v": vec3f}, vec3f).does("{ return v / 2.0; }", label="normalize")
        shade = fn({"n": vec3f}, vec3f).does(
            "{ return $halve($normalize(n)); }",
            uses={"halve": halve, "normalize": std.normalize},
            label="shade",
        )

        # Act
        code = resolve(shade)

        # Assert
        assert "fn normalize_1(v: vec3f) -> vec3f { return v / 2.0; }" in code
        assert "{ return normalize_1(normalize(n)); }" in code

    def test_struct_named_like_type_alias(self):
        """Test a struct labelled like a predeclared alias."""
        assert resolve(struct({"a": f32}, label="vec3f")).startswith("struct vec3f_1 {")

    def test_unlabelled_node(self, ctx):
        """Test the fallback identifier for unlabelled nodes."""
        assert ctx.name_for(Slot()) == "item"
        assert ctx.name_for(Slot()) == "item_1"


class TestEmission:
    """Test declaration emission."""

    def test_struct_declaration(self, particle):
        """Test the emitted struct declaration."""
        assert resolve(particle) == (
            "struct Particle {\n"
            "  position: vec3f,\n"
            "  velocity: vec3f,\n"
            "  mass: f32,\n"
            "}"
        )

    def test_idempotent_within_pass(self, ctx, particle):
        """Test that resolving a node twice emits it once."""
        # Act
        first = ctx.resolve(particle)
        second = ctx.resolve(particle)

        # Assert
        assert first == second == "Particle"
        assert len(ctx.declarations) == 1
        assert ctx.structs == {"Particle": particle}

    def test_fresh_across_passes(self, particle):
        """Test that separate passes do not share state."""
        assert resolve(particle) == resolve(particle)

    def test_distinct_structs_same_label(self):
        """Test two structs with the same label get two identifiers."""
        first = struct({"x": f32}, label="Data")
        second = struct({"x": f32}, label="Data")

        code = resolve(first, second)

        assert "struct Data {" in code
        assert "struct Data_1 {" in code

    def test_dependencies_first(self, particle):
        """Test nested structs are declared before the struct using them."""
        outer = struct({"count": u32, "particle": particle}, label="Outer")

        code = resolve(outer)

        assert code.index("struct Particle") < code.index("struct Outer")
        assert "  particle: Particle," in code

    def test_header_and_separator(self, particle):
        """Test assembling the source with a header comment."""
        config = ResolveConfig(header="Generated\nfor tests", separator="\n")

        code = resolve(particle, config=config)

        assert code.startswith("// Generated\n// for tests\nstruct Particle {")


class TestValues:
    """Test resolution of plain values."""

    def test_literals(self, ctx):
        """Test Python scalars resolve to WGSL literals."""
        assert ctx.resolve(True) == "true"
        assert ctx.resolve(3) == "3"
        assert ctx.resolve(0.5) == "0.5"
        assert ctx.resolve(np.float32(2.0)) == "2.0"

    def test_types_and_text(self, ctx):
        """Test type descriptors and raw text resolve verbatim."""
        assert ctx.resolve(vec3f) == "vec3f"
        assert ctx.resolve("input.uv") == "input.uv"
        assert ctx.declarations == []

    def test_unsupported_value(self, ctx):
        """Test that unknown values are rejected."""
        with pytest.raises(ResolutionError):
            ctx.resolve(object())


def test_context_is_independent():
    """Test that two contexts share no naming state."""
    first = ResolutionContext()
    second = ResolutionContext()

    assert first.name_for(Slot(label="x")) == "x"
    assert second.name_for(Slot(label="x")) == "x"
