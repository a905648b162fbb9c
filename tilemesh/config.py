from dataclasses import dataclass, field
from typing import Dict, Iterable, Tuple

from .errors import ConfigurationError
from .utils import (
    TEXEL_BIAS, COLLISION_ONLY_PROPERTY, FILL_RULE, CIRCLE_SEGMENTS, OBJ_HEADER,
    PREVIEW_GRID_SIZE, PREVIEW_MAX_SIDE, PREVIEW_FALLBACK_SIZE, PREVIEW_MAX_SCALE,
)

FILL_RULES = ('nonzero', 'evenodd')


@dataclass
class ExportConfig:
    """
    Options for one export call.

    Args:
        texel_bias: Denominator of the inward texture coordinate bias (bias = 1 / texel_bias).
            0 or None disables the bias, for atlases that already tile seamlessly.
        collision_only_property: Layer property that keeps a layer out of the mesh.
        fill_rule: 'nonzero' or 'evenodd' for the collision union.
        circle_segments: Segments per quarter circle used for circular colliders.
        header: Comment written at the top of the mesh text.
    """
    texel_bias: float | None = TEXEL_BIAS
    collision_only_property: str = COLLISION_ONLY_PROPERTY
    fill_rule: str = FILL_RULE
    circle_segments: int = CIRCLE_SEGMENTS
    header: str = OBJ_HEADER

    def __post_init__(self):
        if self.texel_bias is not None and self.texel_bias < 0:
            raise ConfigurationError(f"texel_bias must be positive, 0 or None (got {self.texel_bias})")
        if self.fill_rule not in FILL_RULES:
            raise ConfigurationError(f"Unknown fill rule '{self.fill_rule}', expected one of {FILL_RULES}")
        if self.circle_segments < 1:
            raise ConfigurationError("circle_segments must be at least 1")

    @property
    def bias(self) -> float:
        if not self.texel_bias:
            return 0.0
        return 1.0 / self.texel_bias


@dataclass
class PreviewConfig:
    scale: float = 1.0
    grid_size: float = PREVIEW_GRID_SIZE
    max_side: int = PREVIEW_MAX_SIDE
    fallback_size: int = PREVIEW_FALLBACK_SIZE
    enabled_layers: Iterable[str] | None = None
    layer_colors: Dict[str, Tuple[int, int, int]] = field(default_factory=dict)

    def __post_init__(self):
        # Same range the viewer accepts for its zoom levels
        if self.scale <= 0.0 or self.scale > PREVIEW_MAX_SCALE:
            self.scale = 1.0
        if self.enabled_layers is not None:
            self.enabled_layers = set(self.enabled_layers)

    def is_layer_enabled(self, name: str) -> bool:
        return self.enabled_layers is None or name in self.enabled_layers
