"""
Configuration for adaptive label positioning.

Module constants hold the defaults; PlacementConfig bundles them so a
different clearance or priority order can be passed to the evaluator or
read from ADAPTIVE_LABELS_* environment variables.
"""

import os
from typing import Optional, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .orientation import ALIGNMENTS, Orientation


# Gap between the shape's edge and the relocated label's box (0 = edges touch)
ELEMENT_LABEL_DISTANCE = 0

# Slack when classifying a label or waypoint against the shape's center
APPROXIMATE_TOLERANCE = 5

# Slack when checking a hypothetical label center against a host's box
HOST_INTERSECT_TOLERANCE = 20

ENV_PREFIX = "ADAPTIVE_LABELS_"


class PlacementConfig(BaseModel):
    """Tunable values for the placement evaluator."""
    model_config = ConfigDict(frozen=True)

    label_distance: float = Field(default=ELEMENT_LABEL_DISTANCE, ge=0)
    approximate_tolerance: float = Field(default=APPROXIMATE_TOLERANCE, ge=0)
    host_tolerance: float = Field(default=HOST_INTERSECT_TOLERANCE, ge=0)
    alignments: tuple[Orientation, ...] = ALIGNMENTS
    # When the host filter eliminates every free side, use the first free
    # side anyway instead of leaving the label where it is
    fallback_to_first_free: bool = False

    @field_validator('alignments', mode='before')
    @classmethod
    def parse_alignments(cls, value):
        """Accept a comma-separated string as well as a sequence."""
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        return value

    @field_validator('alignments')
    @classmethod
    def check_alignments(cls, value: tuple[Orientation, ...]) -> tuple[Orientation, ...]:
        """The priority order must name each of the four sides exactly once."""
        if sorted(value) != sorted(ALIGNMENTS):
            raise ValueError(
                "alignments must be a permutation of top, bottom, left, right"
            )
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PlacementConfig":
        """
        Build a config from ADAPTIVE_LABELS_* variables.

        Unset variables keep their defaults, e.g.
        ADAPTIVE_LABELS_LABEL_DISTANCE=4 or
        ADAPTIVE_LABELS_ALIGNMENTS=left,top,bottom,right.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            key = ENV_PREFIX + name.upper()
            if key in environ:
                values[name] = environ[key]
        return cls(**values)


DEFAULT_CONFIG = PlacementConfig()
