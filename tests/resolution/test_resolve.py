"""Integration tests for resolving whole shader modules."""

import pytest

from pywgsl.bind_group import bind_group_layout, storage, uniform
from pywgsl.data import array_of, builtin, f32, struct, vec2f, vec4f
from pywgsl.errors import ResolutionError
from pywgsl.resolution.function import compute_fn, fn, fragment_fn, vertex_fn
from pywgsl.resolution.resolve import resolve, resolve_module
from pywgsl.resolution.slot import derived, slot
from pywgsl.resolution.variable import var


@pytest.fixture
def brightness():
    """Fixture providing a slot read by a shared helper."""
    return slot(1.0, label="brightness")


@pytest.fixture
def shade(brightness):
    """Fixture providing a helper whose body depends on a slot."""
    return fn({"color": vec4f}, vec4f).does(
        "{ return color * $brightness; }",
        uses={"brightness": brightness},
        label="shade",
    )


def _fragment(shade, label):
    return fragment_fn(out=vec4f).does(
        "{ return $shade(vec4f(1.0)); }", uses={"shade": shade}, label=label
    )


class TestSpecialisation:
    """Test emission of nodes reached under different bindings."""

    def test_different_values_give_distinct_functions(self, brightness, shade):
        """Test two entries binding the same slot differently."""
        # Arrange
        dim = _fragment(shade, "dim").with_(brightness, 0.5)
        bright = _fragment(shade, "bright").with_(brightness, 2.0)

        # Act
        code = resolve(dim, bright)

        # Assert
        assert "fn shade(color: vec4f) -> vec4f { return color * 0.5; }" in code
        assert "fn shade_1(color: vec4f) -> vec4f { return color * 2.0; }" in code
        assert "{ return shade(vec4f(1.0)); }" in code
        assert "{ return shade_1(vec4f(1.0)); }" in code

    def test_equal_values_share_one_function(self, brightness, shade):
        """Test two entries binding the same value reuse the helper."""
        first = _fragment(shade, "first").with_(brightness, 0.5)
        second = _fragment(shade, "second").with_(brightness, 0.5)

        code = resolve(first, second)

        assert code.count("fn shade") == 1

    def test_unrelated_binding_does_not_duplicate(self, shade):
        """Test that bindings of slots a helper never reads do not matter."""
        unrelated = slot(label="unrelated")
        first = _fragment(shade, "first").with_(unrelated, 1)
        second = _fragment(shade, "second").with_(unrelated, 2)

        code = resolve(first, second)

        assert code.count("fn shade") == 1

    def test_derived_shared_by_entries(self):
        """Test a derived function specialised per entry point."""
        # Arrange
        steps = slot(label="steps")
        march = derived(
            lambda c: fn({}, f32).does(
                f"{{ return {c.unwrap(steps)}.0; }}", label="march"
            ),
            label="march",
        )
        low = _fragment(march, "low").with_(steps, 16)
        high = _fragment(march, "high").with_(steps, 64)

        # Act
        code = resolve(low, high)

        # Assert
        assert "fn march() -> f32 { return 16.0; }" in code
        assert "fn march_1() -> f32 { return 64.0; }" in code


class TestModuleOutput:
    """Test the assembled module and its descriptors."""

    def test_layouts_and_bind_groups(self):
        """Test resolve_module reports buffer layouts and bind groups."""
        # Arrange
        Particle = struct({"position": vec2f, "velocity": vec2f}, label="Particle")
        Params = struct({"dt": f32}, label="Params")
        layout = bind_group_layout(
            {
                "params": uniform(Params),
                "particles": storage(array_of(Particle, 128), access="read_write"),
            }
        )
        step = compute_fn(
            in_={"gid": builtin.global_invocation_id}, workgroup_size=(64,)
        ).does(
            "{ $particles[input.gid.x].position += "
            "$particles[input.gid.x].velocity * $params.dt; }",
            uses={
                "particles": layout.bound["particles"],
                "params": layout.bound["params"],
            },
            label="step",
        )

        # Act
        shader = resolve_module(step)

        # Assert
        assert set(shader.layouts) == {"Particle", "Params"}
        assert shader.layouts["Particle"]["fields"]["velocity"]["offset"] == 8
        assert shader.bind_groups == {0: layout.describe()}
        assert (
            "@group(0) @binding(1) var<storage, read_write> particles: "
            "array<Particle, 128>;" in shader.code
        )
        assert "@group(0) @binding(0) var<uniform> params: Params;" in shader.code
        assert shader.code.index("struct Particle") < shader.code.index(
            "var<storage, read_write> particles"
        )

    def test_template_tail(self):
        """Test a free-form template appended after all declarations."""
        time = var(f32, 0.0, label="time")

        code = resolve(
            template="fn tick() { $time += 0.016; }", externals={"time": time}
        )

        assert code == "var<private> time: f32 = 0.0;\n\nfn tick() { time += 0.016; }"

    def test_deterministic_output(self):
        """Test that resolving the same roots twice gives the same text."""
        main_vertex = vertex_fn(out={"position": builtin.position}).does(
            "{ var out: $Out; out.position = vec4f(0.0); return out; }"
        )
        main_fragment = fragment_fn(out=vec4f).does("{ return vec4f(1.0); }")

        assert resolve(main_vertex, main_fragment) == resolve(
            main_vertex, main_fragment
        )

    def test_conflicting_bind_groups(self):
        """Test two different layouts cannot share a group index."""
        first = bind_group_layout({"a": uniform(f32)})
        second = bind_group_layout({"b": uniform(f32)})

        with pytest.raises(ResolutionError, match="group 0"):
            resolve(first.bound["a"], second.bound["b"])
