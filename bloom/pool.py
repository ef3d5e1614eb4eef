"""Immutable cache of shared petal, leaf and thorn resources.

Instances refer to pooled resources by integer id only. A pool is built
once per style and never mutated, so regenerating a layout with another
seed cannot disturb geometry that other flowers already share.
"""

import functools
import logging
from dataclasses import dataclass

from bloom.config import LeafStyle, Material, PetalBlueprint, PetalStyleConfig
from bloom.deform import deform, deform_leaf
from bloom.mesh import PetalMesh, cone_mesh, extrude_outline, sphere_mesh
from bloom.shapes import PetalShapeFactory, leaf_profile

logger = logging.getLogger(__name__)


def clamp_index(index: int, size: int) -> int:
    """Clamp an id into [0, size); an empty pool always yields 0."""
    if size <= 0:
        return 0
    clamped = min(max(int(index), 0), size - 1)
    if clamped != index:
        logger.debug("id %s clamped to %s (pool size %s)", index, clamped, size)
    return clamped


@dataclass(frozen=True, eq=False)
class ResourcePool:
    blueprints: tuple[PetalBlueprint, ...]
    petal_geometries: tuple[PetalMesh, ...]
    materials: tuple[Material, ...]
    leaf_geometry: PetalMesh
    thorn_geometry: PetalMesh
    center_geometry: PetalMesh
    layers: int
    variants: int

    @property
    def geometry_count(self) -> int:
        return len(self.petal_geometries)

    @property
    def material_count(self) -> int:
        return len(self.materials)

    def clamp_geometry_id(self, geometry_id: int) -> int:
        return clamp_index(geometry_id, self.geometry_count)

    def clamp_material_id(self, material_id: int) -> int:
        return clamp_index(material_id, self.material_count)

    def geometry_id(self, layer: int, variant: int) -> int:
        layer = min(max(int(layer), 0), self.layers - 1)
        variant = min(max(int(variant), 0), self.variants - 1)
        return self.clamp_geometry_id(layer * self.variants + variant)

    def geometry(self, geometry_id: int) -> PetalMesh:
        return self.petal_geometries[self.clamp_geometry_id(geometry_id)]

    def material(self, material_id: int) -> Material:
        return self.materials[self.clamp_material_id(material_id)]

    def blueprint(self, geometry_id: int) -> PetalBlueprint:
        return self.blueprints[self.clamp_geometry_id(geometry_id)]


def make_blueprint(
    style: PetalStyleConfig,
    layer: int,
    variant: int,
    factory: PetalShapeFactory = None,
) -> PetalBlueprint:
    if factory is None:
        factory = PetalShapeFactory(style.profile)
    outline = factory.profile(layer, style.layers)
    return PetalBlueprint(
        layer=layer,
        variant=variant,
        outline=tuple(map(tuple, outline.tolist())),
        params=style.params_for_layer(layer),
        depth=style.depth,
        bevel_thickness=style.bevel_thickness,
        bevel_size=style.bevel_size,
        bevel_segments=style.bevel_segments,
        cap_rings=style.cap_rings,
    )


def build_petal_geometry(blueprint: PetalBlueprint) -> PetalMesh:
    base = extrude_outline(
        blueprint.outline,
        depth=blueprint.depth,
        bevel_thickness=blueprint.bevel_thickness,
        bevel_size=blueprint.bevel_size,
        bevel_segments=blueprint.bevel_segments,
        cap_rings=blueprint.cap_rings,
    )
    return deform(base, blueprint.params, blueprint.variant)


def build_leaf_geometry(leaf: LeafStyle) -> PetalMesh:
    outline = leaf_profile(
        leaf.half_width, leaf.length, leaf.edge_segments,
        leaf.serration, leaf.serration_frequency,
    )
    base = extrude_outline(
        outline, depth=leaf.depth, bevel_thickness=leaf.bevel,
        bevel_size=leaf.bevel, bevel_segments=2, cap_rings=3,
    )
    return deform_leaf(base, leaf.half_width, leaf.length)


@functools.lru_cache(maxsize=32)
def build_resource_pool(
    style: PetalStyleConfig,
    palette: tuple[Material, ...],
    leaf: LeafStyle = LeafStyle(),
    thorn_radius: float = 0.012,
    thorn_length: float = 0.05,
    center_radius: float = 0.035,
) -> ResourcePool:
    """Build every (layer, variant) petal geometry plus shared organ meshes.

    Cached on its (hashable) arguments: the same style always returns the
    same pool object.
    """
    layers = max(int(style.layers), 1)
    variants = max(int(style.variants), 1)
    if not palette:
        palette = (Material("default", "#cc3355"),)

    factory = PetalShapeFactory(style.profile)
    blueprints = tuple(
        make_blueprint(style, layer, variant, factory)
        for layer in range(layers)
        for variant in range(variants)
    )
    geometries = tuple(build_petal_geometry(bp) for bp in blueprints)
    logger.debug("built %d petal geometries (%d layers x %d variants)",
                 len(geometries), layers, variants)

    return ResourcePool(
        blueprints=blueprints,
        petal_geometries=geometries,
        materials=tuple(palette),
        leaf_geometry=build_leaf_geometry(leaf),
        thorn_geometry=cone_mesh(thorn_radius, thorn_length, 6),
        center_geometry=sphere_mesh(center_radius),
        layers=layers,
        variants=variants,
    )
