"""Resolution engine: nodes, slots, derived values and the resolution context.

Submodules are imported directly (``pywgsl.resolution.context`` etc.); the
data type modules depend on :mod:`pywgsl.resolution.nodes`, so this package
initializer stays empty.
"""
