"""Tests for functions and entry points."""

import pytest

from pywgsl.data import builtin, f32, location, u32, vec2f, vec4f
from pywgsl.errors import (
    AttributeConflictError,
    ConfigurationError,
    NotInResolutionError,
    ResolutionError,
)
from pywgsl.resolution.function import (
    ShaderStage,
    compute_fn,
    fn,
    fragment_fn,
    io_fields,
    vertex_fn,
)
from pywgsl.resolution.resolve import resolve, resolve_module
from pywgsl.resolution.slot import slot
from pywgsl.resolution.variable import var


@pytest.fixture
def vertex_out():
    """Fixture providing a vertex output shape."""
    return {"position": builtin.position, "uv": vec2f}


class TestFunctions:
    """Test plain WGSL functions."""

    def test_signature_and_body(self):
        """Test the emitted function declaration."""
        add = fn({"a": f32, "b": f32}, f32).does("{ return a + b; }", label="add")
        assert resolve(add) == "fn add(a: f32, b: f32) -> f32 { return a + b; }"

    def test_body_without_braces(self):
        """Test that a bare statement list is wrapped in a block."""
        one = fn({}, f32).does("return 1.0;", label="one")
        assert resolve(one) == "fn one() -> f32 {\n  return 1.0;\n}"

    def test_no_return_type(self):
        """Test functions without a return type."""
        noop = fn().does("{ }", label="noop")
        assert resolve(noop) == "fn noop() { }"

    def test_dependencies_emitted_first_and_once(self):
        """Test that shared helpers are declared once, before their users."""
        # Arrange
        square = fn({"x": f32}, f32).does("{ return x * x; }", label="square")
        area = fn({"r": f32}, f32).does(
            "{ return 3.14159 * $square(r); }", uses={"square": square}, label="area"
        )
        volume = fn({"r": f32}, f32).does(
            "{ return $area(r) * $square(r); }",
            uses={"area": area, "square": square},
            label="volume",
        )

        # Act
        code = resolve(volume)

        # Assert
        assert code.count("fn square(") == 1
        assert code.index("fn square(") < code.index("fn area(")
        assert code.index("fn area(") < code.index("fn volume(")
        assert "return area(r) * square(r);" in code

    def test_uses_and_named(self):
        """Test adding externals and a label after construction."""
        half = fn({"x": f32}, f32).does("{ return x * $factor; }")
        half.uses({"factor": 0.5}).named("half")
        assert resolve(half) == "fn half(x: f32) -> f32 { return x * 0.5; }"

    def test_missing_external(self):
        """Test that an unknown placeholder fails resolution."""
        broken = fn({}, f32).does("{ return $nothing; }", label="broken")
        with pytest.raises(ResolutionError, match="nothing"):
            resolve(broken)

    def test_invalid_parameters(self):
        """Test parameter validation."""
        with pytest.raises(ConfigurationError):
            fn({"not valid": f32}, f32).does("{ }")
        with pytest.raises(ConfigurationError):
            fn({"x": "f32"}, f32).does("{ }")

    def test_call_from_host(self):
        """Test that calling a shader function from Python raises."""
        add = fn({"a": f32, "b": f32}, f32).does("{ return a + b; }")
        with pytest.raises(NotInResolutionError):
            add(1.0, 2.0)

    def test_with_binding(self):
        """Test specialising a function with a slot binding."""
        scale = slot(1.0, label="scale")
        scaled = fn({"x": f32}, f32).does(
            "{ return x * $scale; }", uses={"scale": scale}, label="scaled"
        )

        code = resolve(scaled.with_(scale, 3.0), scaled)

        assert "fn scaled(x: f32) -> f32 { return x * 3.0; }" in code
        assert "fn scaled_1(x: f32) -> f32 { return x * 1.0; }" in code

    def test_with_first_binding_wins(self):
        """Test the innermost binding rule for chained function bindings."""
        value = slot(label="value")
        read = fn({}, u32).does("{ return $value; }", uses={"value": value})

        code = resolve(read.with_(value, 1).with_(value, 2).named("read"))

        assert code == "fn read() -> u32 { return 1; }"

    def test_external_avoids_parameter_names(self):
        """Test that a module-scope node never takes a parameter's name."""
        offset = var(f32, 1.0, label="x")
        shifted = fn({"x": f32}, f32).does(
            "{ return x + $offset; }", uses={"offset": offset}, label="shifted"
        )

        code = resolve(shifted)

        assert "var<private> x_1: f32 = 1.0;" in code
        assert "fn shifted(x: f32) -> f32 { return x + x_1; }" in code

    def test_external_shadowed_by_parameter(self):
        """Test that an identifier taken before the function is resolved fails."""
        offset = var(f32, 1.0, label="x")
        shifted = fn({"x": f32}, f32).does(
            "{ return x + $offset; }", uses={"offset": offset}, label="shifted"
        )

        with pytest.raises(ResolutionError, match="shadowed"):
            resolve(offset, shifted)

    def test_unresolvable_external_names_the_function(self):
        """Test that errors from an external point at the function using it."""
        broken = fn({}, f32).does(
            "{ return $bad; }", uses={"bad": object()}, label="broken"
        )
        with pytest.raises(ResolutionError, match="at 'broken'"):
            resolve(broken)


class TestIOShapes:
    """Test location assignment for entry function shapes."""

    def test_auto_locations(self):
        """Test plain fields get locations in declaration order."""
        fields = io_fields({"a": f32, "b": vec2f, "c": vec4f})
        assert [field.attributes[0].value for field in fields.values()] == [0, 1, 2]

    def test_explicit_locations_are_skipped(self):
        """Test that auto locations skip explicitly used ones."""
        fields = io_fields({"a": location(0, f32), "b": f32, "c": vec2f})
        assert fields["b"] == location(1, f32)
        assert fields["c"] == location(2, vec2f)

    def test_builtins_take_no_location(self, vertex_out):
        """Test that builtin fields keep their builtin."""
        fields = io_fields(vertex_out)
        assert fields["position"] == builtin.position
        assert fields["uv"] == location(0, vec2f)

    def test_duplicate_locations(self):
        """Test that two fields cannot share a location."""
        with pytest.raises(AttributeConflictError):
            io_fields({"a": location(1, f32), "b": location(1, vec2f)})

    def test_duplicate_builtins(self):
        """Test that two fields cannot share a builtin."""
        with pytest.raises(AttributeConflictError):
            io_fields({"a": builtin.position, "b": builtin.position})


class TestEntryFunctions:
    """Test vertex, fragment and compute entry points."""

    def test_vertex_entry(self, vertex_out):
        """Test a vertex entry point with generated IO structs."""
        # Arrange
        main_vertex = vertex_fn(in_={"index": builtin.vertex_index}, out=vertex_out)
        main_vertex = main_vertex.does(
            "{ var out: $Out; out.uv = vec2f(0.0); return out; }",
            label="main_vertex",
        )

        # Act
        code = resolve(main_vertex)

        # Assert
        assert code == (
            "struct main_vertex_Input {\n"
            "  @builtin(vertex_index) index: u32,\n"
            "}\n\n"
            "struct main_vertex_Output {\n"
            "  @builtin(position) position: vec4f,\n"
            "  @location(0) uv: vec2f,\n"
            "}\n\n"
            "@vertex\n"
            "fn main_vertex(input: main_vertex_Input) -> main_vertex_Output "
            "{ var out: main_vertex_Output; out.uv = vec2f(0.0); return out; }"
        )

    def test_fragment_single_output(self):
        """Test that a single fragment output is returned at location 0."""
        main_fragment = fragment_fn(in_={"uv": vec2f}, out=vec4f).does(
            "{ return vec4f(input.uv, 0.0, 1.0); }"
        )

        code = resolve(main_fragment)

        assert "struct fragment_main_Input {\n  @location(0) uv: vec2f,\n}" in code
        assert (
            "@fragment\nfn fragment_main(input: fragment_main_Input) "
            "-> @location(0) vec4f {" in code
        )

    def test_fragment_without_input(self):
        """Test an entry point without inputs."""
        solid = fragment_fn(out=vec4f).does("{ return vec4f(1.0); }", label="solid")
        assert resolve(solid) == (
            "@fragment\nfn solid() -> @location(0) vec4f { return vec4f(1.0); }"
        )

    def test_compute_entry(self):
        """Test a compute entry point with a workgroup size."""
        main_compute = compute_fn(
            in_={"gid": builtin.global_invocation_id}, workgroup_size=(8, 8)
        ).does("{ let x = input.gid.x; }", label="main_compute")

        code = resolve(main_compute)

        assert "  @builtin(global_invocation_id) gid: vec3u," in code
        assert "@compute @workgroup_size(8, 8)\nfn main_compute(" in code
        assert main_compute.stage is ShaderStage.COMPUTE

    def test_vertex_requires_position(self):
        """Test that vertex outputs must include the position builtin."""
        with pytest.raises(ConfigurationError, match="position"):
            vertex_fn(out={"uv": vec2f}).does("{ }")

    def test_compute_inputs_must_be_builtins(self):
        """Test compute input validation."""
        with pytest.raises(ConfigurationError):
            compute_fn(in_={"value": f32}).does("{ }")

    def test_invalid_workgroup_size(self):
        """Test workgroup size validation."""
        with pytest.raises(ConfigurationError):
            compute_fn(workgroup_size=(0,)).does("{ }")
        with pytest.raises(ConfigurationError):
            compute_fn(workgroup_size=(1, 1, 1, 1)).does("{ }")

    def test_duplicate_location_in_shape(self):
        """Test that conflicting locations fail when the entry is built."""
        with pytest.raises(AttributeConflictError):
            fragment_fn(
                in_={"a": location(0, f32), "b": location(0, f32)}, out=vec4f
            ).does("{ return vec4f(1.0); }")

    def test_entry_input_parameter_is_reserved(self):
        """Test a node labelled `input` does not collide with the entry parameter."""
        # Arrange
        tint = var(f32, 0.0, label="input")
        main = fragment_fn(in_={"uv": vec2f}, out=vec4f).does(
            "{ return vec4f(input.uv, $tint, 1.0); }", uses={"tint": tint}, label="main"
        )

        # Act
        code = resolve(main)

        # Assert
        assert "var<private> input_1: f32 = 0.0;" in code
        assert "{ return vec4f(input.uv, input_1, 1.0); }" in code

    def test_io_structs_not_in_layouts(self, vertex_out):
        """Test that IO structs are not reported as buffer layouts."""
        main_vertex = vertex_fn(out=vertex_out).does(
            "{ var out: $Out; return out; }", label="main_vertex"
        )

        shader = resolve_module(main_vertex)

        assert shader.layouts == {}
        assert "struct main_vertex_Output" in shader.code
