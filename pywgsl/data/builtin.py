"""Ready-made builtin-decorated values for entry function shapes.

``clip_distances`` takes the array length, since WGSL lets a vertex shader
write between 1 and 8 clip distances.

Example:
    >>> VertexOutput = {"position": builtin.position, "uv": vec2f}
    >>> ClippedOutput = {"clip": builtin.clip_distances(2)}
"""

from types import SimpleNamespace

from pywgsl.data.attributes import builtin_attribute
from pywgsl.data.numeric import bool_, f32, u32, vec3u, vec4f
from pywgsl.data.types import Array, Decorated


def clip_distances(count: int = 8) -> Decorated:
    return builtin_attribute("clip_distances", Array(f32, count))


builtin = SimpleNamespace(
    vertex_index=builtin_attribute("vertex_index", u32),
    instance_index=builtin_attribute("instance_index", u32),
    position=builtin_attribute("position", vec4f),
    clip_distances=clip_distances,
    front_facing=builtin_attribute("front_facing", bool_),
    frag_depth=builtin_attribute("frag_depth", f32),
    sample_index=builtin_attribute("sample_index", u32),
    sample_mask=builtin_attribute("sample_mask", u32),
    local_invocation_id=builtin_attribute("local_invocation_id", vec3u),
    local_invocation_index=builtin_attribute("local_invocation_index", u32),
    global_invocation_id=builtin_attribute("global_invocation_id", vec3u),
    workgroup_id=builtin_attribute("workgroup_id", vec3u),
    num_workgroups=builtin_attribute("num_workgroups", vec3u),
)
