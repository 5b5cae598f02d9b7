"""
Simulator Configuration
=======================
Central registry of the tunable constants of a simulation session: pool and
trail sizes, the frame-time clamp applied by the render loop, the cannon
placement, and the preview arc resolution.

Values can be overridden from a JSON file:

    {"max_projectiles": 8, "launch_angle_deg": 30, "preset": "tennis"}
"""

import json
import logging
from dataclasses import dataclass, fields, asdict
from typing import Any, Dict, Tuple

from .physics import PRESETS
from .scheduler import MAX_PROJECTILES
from .trail import TRAIL_CAPACITY

logger = logging.getLogger(__name__)


@dataclass
class SimulatorConfig:
    max_projectiles: int = MAX_PROJECTILES
    trail_capacity: int = TRAIL_CAPACITY
    max_frame_dt: float = 0.1                  # s, longest step the loop will take
    launch_origin: Tuple[float, float, float] = (-10.0, 1.0, 0.0)   # barrel tip
    launch_angle_deg: float = 45.0
    preset: str = 'custom'
    preview_points: int = 100
    preview_dt: float = 0.05

    def __post_init__(self):
        self.launch_origin = tuple(float(c) for c in self.launch_origin)
        self.validate()

    def validate(self) -> None:
        if self.max_projectiles <= 0:
            raise ValueError(f"max_projectiles must be positive, got {self.max_projectiles}")
        if self.trail_capacity <= 0:
            raise ValueError(f"trail_capacity must be positive, got {self.trail_capacity}")
        if self.max_frame_dt <= 0:
            raise ValueError(f"max_frame_dt must be positive, got {self.max_frame_dt}")
        if len(self.launch_origin) != 3:
            raise ValueError(f"launch_origin must have 3 components, got {self.launch_origin}")
        if not 0.0 <= self.launch_angle_deg <= 90.0:
            raise ValueError(f"launch_angle_deg must be in [0, 90], got {self.launch_angle_deg}")
        if self.preset not in PRESETS:
            raise ValueError(
                f"Unknown preset '{self.preset}'. "
                f"Available: {list(PRESETS.keys())}"
            )
        if self.preview_points <= 0 or self.preview_dt <= 0:
            raise ValueError("preview_points and preview_dt must be positive")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimulatorConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(
                f"Unknown config keys {sorted(unknown)}. "
                f"Available: {sorted(known)}"
            )
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['launch_origin'] = list(self.launch_origin)
        return data


def load_config(path: str) -> SimulatorConfig:
    """Read a SimulatorConfig from a JSON file."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")

    config = SimulatorConfig.from_dict(data)
    logger.info("Loaded config from %s", path)
    return config
