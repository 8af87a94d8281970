"""
Named numeric settings for body generation.

Callers supply generation knobs as a flat set of named values (taper
exponents, bulge/asymmetry/twist magnitudes, sample and ring-side counts,
layout iteration count and area, complexity-scale bounds). This module
validates them and converts them to the option dataclasses used by the core
stages.
"""

from pydantic import BaseModel, Field, model_validator

from ..core.accessories import AccessoryOptions
from ..core.asymmetry import AsymmetryOptions
from ..core.body import BodyOptions, ComplexityOptions
from ..core.force_layout import LayoutOptions
from ..core.generator import GeneratorOptions
from ..core.spine import SpineOptions
from .settings import settings


class LayoutSettings(BaseModel):
    """Force layout settings."""

    iterations: int = Field(default=120, ge=0, le=10000, description="Layout iteration count")
    area: float = Field(default=1.0, gt=0, description="Layout area")
    initial_step: float = Field(default=0.1, gt=0, description="Initial step budget relative to sqrt(area)")
    cooling: float = Field(default=0.96, gt=0, le=1, description="Step budget decay per iteration")


class ShapeSettings(BaseModel):
    """Spine and body cross-section settings."""

    samples: int = Field(default=48, ge=4, le=1024, description="Spine sample count")
    sides: int = Field(default=16, ge=3, le=256, description="Ring side count")
    camber: float = Field(default=0.08, description="Camber height relative to spine length")
    radius_a: float = Field(default=0.12, gt=0, description="Head semi-axis along the normal")
    radius_b: float = Field(default=0.09, gt=0, description="Head semi-axis along the binormal")
    taper_a: float = Field(default=0.6, ge=0, le=8, description="Taper exponent for the normal axis")
    taper_b: float = Field(default=0.8, ge=0, le=8, description="Taper exponent for the binormal axis")
    bulge_amp: float = Field(default=0.35, ge=0, description="Bulge magnitude")
    bulge_center: float = Field(default=0.3, ge=0, le=1, description="Bulge centre along the spine")
    bulge_sigma: float = Field(default=0.18, gt=0, description="Bulge width")
    asym_amp: float = Field(default=0.25, ge=0, le=1, description="Asymmetry magnitude")
    asym_sigma: float = Field(default=0.12, gt=0, description="Asymmetry Gaussian width")
    degree_bias: float = Field(default=0.5, ge=0, description="Degree weighting exponent")
    twist: float = Field(default=0.0, description="Total twist in radians")
    min_radius: float = Field(default=0.01, gt=0, description="Minimum semi-axis")


class AccessorySettings(BaseModel):
    """Limb and fin settings."""

    tube_radius: float = Field(default=0.018, gt=0, description="Limb tube radius")
    tube_segments: int = Field(default=6, ge=3, le=64, description="Limb tube side count")
    fin_length: float = Field(default=0.16, ge=0, description="Fin length")
    fin_height: float = Field(default=0.12, ge=0, description="Fin height")
    include_limbs: bool = Field(default=True, description="Emit limb tubes")
    include_fins: bool = Field(default=True, description="Emit fins")


class ComplexitySettings(BaseModel):
    """Complexity scale settings."""

    base_complexity: float = Field(default=12.0, gt=0, description="Node+2*edge count giving scale 1")
    min_scale: float = Field(default=0.6, gt=0, description="Lower scale clamp")
    max_scale: float = Field(default=2.5, gt=0, description="Upper scale clamp")

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min_scale > self.max_scale:
            raise ValueError("min_scale must not exceed max_scale")
        return self


class GenerationSettings(BaseModel):
    """All generation settings."""

    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    shape: ShapeSettings = Field(default_factory=ShapeSettings)
    accessories: AccessorySettings = Field(default_factory=AccessorySettings)
    complexity: ComplexitySettings = Field(default_factory=ComplexitySettings)
    body_length: float = Field(default=1.0, gt=0, description="Body length before complexity scaling")
    weld_tolerance: float = Field(default_factory=lambda: settings.weld_tolerance, gt=0,
                                  description="Vertex weld distance")

    def to_options(self) -> GeneratorOptions:
        """Convert to the core option dataclasses."""
        shape = self.shape
        acc = self.accessories
        return GeneratorOptions(
            layout=LayoutOptions(**self.layout.model_dump()),
            spine=SpineOptions(samples=shape.samples, camber=shape.camber),
            asymmetry=AsymmetryOptions(sigma=shape.asym_sigma, degree_bias=shape.degree_bias),
            body=BodyOptions(
                sides=shape.sides,
                radius_a=shape.radius_a,
                radius_b=shape.radius_b,
                taper_a=shape.taper_a,
                taper_b=shape.taper_b,
                bulge_amp=shape.bulge_amp,
                bulge_center=shape.bulge_center,
                bulge_sigma=shape.bulge_sigma,
                asym_amp=shape.asym_amp,
                twist=shape.twist,
                min_radius=shape.min_radius,
            ),
            accessories=AccessoryOptions(
                tube_radius=acc.tube_radius,
                tube_segments=acc.tube_segments,
                fin_length=acc.fin_length,
                fin_height=acc.fin_height,
            ),
            complexity=ComplexityOptions(**self.complexity.model_dump()),
            body_length=self.body_length,
            weld_tolerance=self.weld_tolerance,
            include_limbs=acc.include_limbs,
            include_fins=acc.include_fins,
        )


def load_generation_settings(values: dict = None) -> GenerationSettings:
    """Validate a (possibly nested) mapping of named settings."""
    return GenerationSettings.model_validate(values or {})
