"""Radar projection: trait weights to chart geometry."""

from personaengine.projection.projector import (
    DEFAULT_GEOMETRY,
    DISCO_COLORS,
    INACTIVE_COLOR,
    MAX_WEIGHT,
    MIN_WEIGHT,
    TRAIT_COLORS,
    ChartGeometry,
    ProjectedPoint,
    RadarFrame,
    image_size,
    label_point,
    layout,
    normalize,
    project,
    ring_polygons,
    trait_color,
    triangle_path,
)

__all__ = [
    "DEFAULT_GEOMETRY",
    "DISCO_COLORS",
    "INACTIVE_COLOR",
    "MAX_WEIGHT",
    "MIN_WEIGHT",
    "TRAIT_COLORS",
    "ChartGeometry",
    "ProjectedPoint",
    "RadarFrame",
    "image_size",
    "label_point",
    "layout",
    "normalize",
    "project",
    "ring_polygons",
    "trait_color",
    "triangle_path",
]
