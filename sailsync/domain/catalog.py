"""Fleet and activity catalog entries (read-only for the scheduling core)"""
from dataclasses import dataclass


BOAT_SAILING = "SAILING"
BOAT_POWER = "POWER"


@dataclass(frozen=True)
class Boat:
    id: str
    name: str
    boat_type: str = BOAT_SAILING


@dataclass(frozen=True)
class Activity:
    id: str
    name: str
    default_duration_days: int = 1
    is_general: bool = False
