"""
Core data models for labelled diagrams.

These models define the canonical schema the placement logic reads:
- Shapes with a top-left position and a size, optionally attached to a host
- External labels, which are shapes of their own pointing back at an owner
- Connections with an ordered list of waypoints

Field Naming Convention:
- Connections use `source` and `target` shape ids
- Labels use `owner` for the id of the shape they describe
- Back-references (shape -> label, shape -> connections) are not stored on the
  models; the DiagramManager keeps them as lookup indexes
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field, model_validator
import uuid


class ShapeType(str, Enum):
    """Common semantic types for shapes (any string is accepted)."""
    TASK = "task"
    EVENT = "event"
    BOUNDARY_EVENT = "boundary-event"
    GATEWAY = "gateway"
    DATA_OBJECT = "data-object"


def generate_shape_id() -> str:
    """Generate a unique shape ID."""
    return f"s{uuid.uuid4().hex[:8]}"


def generate_label_id() -> str:
    """Generate a unique label ID."""
    return f"l{uuid.uuid4().hex[:8]}"


def generate_connection_id() -> str:
    """Generate a unique connection ID."""
    return f"c{uuid.uuid4().hex[:8]}"


class Point(BaseModel):
    """
    An immutable 2-D point.

    Accepts `(x, y)` / `[x, y]` on input as well as `{"x": .., "y": ..}`.
    """
    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    @model_validator(mode='before')
    @classmethod
    def convert_sequence(cls, data: Any) -> Any:
        """Convert a two-item sequence into x/y fields."""
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError(f"A point needs exactly two coordinates, got {len(data)}")
            return {"x": data[0], "y": data[1]}
        return data


class Shape(BaseModel):
    """A rectangular element on the canvas."""
    id: str = Field(default_factory=generate_shape_id)
    type: str = ShapeType.TASK.value
    x: float = 100
    y: float = 100
    width: float = 100
    height: float = 80
    # Id of the shape this one is attached to (e.g. a boundary event's activity)
    host: Optional[str] = None


class Label(Shape):
    """An external text label, positioned independently of its owner."""
    id: str = Field(default_factory=generate_label_id)
    type: str = "label"
    width: float = 90
    height: float = 20
    owner: str  # Id of the labelled shape
    text: str = ""


class Connection(BaseModel):
    """
    A connection between two shapes.

    The first waypoint sits at the source's boundary, the last one at the
    target's boundary.
    """
    id: str = Field(default_factory=generate_connection_id)
    source: str  # Source shape ID
    target: str  # Target shape ID
    waypoints: list[Point] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "waypoints": [{"x": p.x, "y": p.y} for p in self.waypoints],
        }


class Diagram(BaseModel):
    """
    The complete diagram structure.
    This is what the history snapshots are made of.
    """
    id: str = Field(default_factory=lambda: f"diagram-{uuid.uuid4().hex[:8]}")
    name: str = "Untitled Diagram"
    shapes: list[Shape] = Field(default_factory=list)
    labels: list[Label] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict with proper field names."""
        return {
            "id": self.id,
            "name": self.name,
            "shapes": [s.model_dump() for s in self.shapes],
            "labels": [l.model_dump() for l in self.labels],
            "connections": [c.to_json_dict() for c in self.connections],
        }

    @classmethod
    def from_json_dict(cls, data: dict) -> "Diagram":
        """Create a Diagram from a JSON dict."""
        return cls(
            id=data.get('id', f"diagram-{uuid.uuid4().hex[:8]}"),
            name=data.get('name', 'Untitled Diagram'),
            shapes=[Shape(**s) for s in data.get('shapes', [])],
            labels=[Label(**l) for l in data.get('labels', [])],
            connections=[Connection(**c) for c in data.get('connections', [])],
        )

