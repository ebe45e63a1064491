"""Taichi-based metaball ray tracer.

This package renders metaball isosurfaces with Taichi, with support for:
- Exact field-based surface search along each ray (no voxel grids)
- Environment-mapped reflections (gradient, checker, lit variants)
- Directional lights blended into the reflected color
- Animated frames written as PNG or raw packed pixels

Subpackages:
    core: Ray utilities, the isosurface sweep, shading, and frame rendering
    geometry: Bounding spheres and the metaball field function
    scene: Metaball storage, scene management, animation, and presets
    environment: Gradients, lights, and environment maps
    camera: Pinhole camera with ray generation
    preview: Raw pixel and PNG export

Modules that create Taichi fields must be imported after ti.init().
"""

__version__ = "0.1.0"
