"""Predefined scalar, vector and matrix types."""

from pywgsl.data.types import Matrix, Scalar, Vector

f32 = Scalar("f32", size=4, alignment=4, dtype="<f4", is_float=True)
f16 = Scalar("f16", size=2, alignment=2, dtype="<f2", is_float=True)
i32 = Scalar("i32", size=4, alignment=4, dtype="<i4")
u32 = Scalar("u32", size=4, alignment=4, dtype="<u4")
# Not host-shareable in WGSL; laid out like u32 for private/function storage.
bool_ = Scalar("bool", size=4, alignment=4, dtype="bool")

vec2f = Vector(f32, 2)
vec3f = Vector(f32, 3)
vec4f = Vector(f32, 4)
vec2h = Vector(f16, 2)
vec3h = Vector(f16, 3)
vec4h = Vector(f16, 4)
vec2i = Vector(i32, 2)
vec3i = Vector(i32, 3)
vec4i = Vector(i32, 4)
vec2u = Vector(u32, 2)
vec3u = Vector(u32, 3)
vec4u = Vector(u32, 4)
vec2b = Vector(bool_, 2)
vec3b = Vector(bool_, 3)
vec4b = Vector(bool_, 4)

mat2x2f = Matrix(f32, 2, 2)
mat2x3f = Matrix(f32, 2, 3)
mat2x4f = Matrix(f32, 2, 4)
mat3x2f = Matrix(f32, 3, 2)
mat3x3f = Matrix(f32, 3, 3)
mat3x4f = Matrix(f32, 3, 4)
mat4x2f = Matrix(f32, 4, 2)
mat4x3f = Matrix(f32, 4, 3)
mat4x4f = Matrix(f32, 4, 4)
