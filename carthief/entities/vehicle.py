"""Garage vehicles."""

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from ..catalogs.vehicle_mods import VehicleModProfile, build_mod_profile, get_vehicle_mod
from ..constants import VEHICLE
from ..utils.helpers import clamp, to_finite


def _generate_vehicle_id() -> str:
    return f"vehicle-{uuid.uuid4().hex[:7]}"


@dataclass
class Vehicle:
    """A car in the garage."""

    model: str = "Compact Cruiser"
    id: str = field(default_factory=_generate_vehicle_id)
    top_speed: float = 120.0
    acceleration: float = 5.0
    handling: float = 5.0
    heat: float = 0.0
    condition: float = 1.0
    is_stolen: bool = False
    status: str = "idle"
    in_use: bool = False
    mods: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.condition = clamp(to_finite(self.condition, 1.0), 0.0, 1.0)
        self.heat = max(0.0, to_finite(self.heat, 0.0))

    def is_operational(self) -> bool:
        """Check if the vehicle can be driven on a job."""
        return self.condition > VEHICLE.OPERATIONAL_CONDITION

    def is_available(self) -> bool:
        """Check if the vehicle is idle and operational."""
        return not self.in_use and self.is_operational()

    def set_status(self, status: str) -> None:
        """Set status; 'in-mission' marks the vehicle as in use."""
        self.status = status
        self.in_use = status == "in-mission"

    def mark_stolen(self) -> None:
        """Flag as a freshly stolen reward."""
        self.is_stolen = True
        self.set_status("idle")

    def apply_wear(self, amount: float) -> float:
        """Reduce condition, clamped to 0..1. Returns the new condition."""
        self.condition = clamp(self.condition - to_finite(amount, 0), 0.0, 1.0)
        return self.condition

    def modify_heat(self, amount: float) -> float:
        """Shift vehicle heat, never below zero. Returns the new heat."""
        self.heat = max(0.0, self.heat + to_finite(amount, 0))
        return self.heat

    def get_mod_profile(self) -> VehicleModProfile:
        """Aggregate effect of installed mods."""
        return build_mod_profile(self.mods)

    def has_mod(self, mod_id: str) -> bool:
        """Check if a mod is installed."""
        return mod_id in self.mods

    def install_mod(self, mod_id: str) -> bool:
        """Install a catalogued mod. Returns False if unknown or present."""
        if get_vehicle_mod(mod_id) is None or self.has_mod(mod_id):
            return False
        self.mods.append(mod_id)
        return True

    @property
    def effective_top_speed(self) -> float:
        return self.top_speed + self.get_mod_profile().top_speed_bonus

    @property
    def effective_acceleration(self) -> float:
        return self.acceleration + self.get_mod_profile().acceleration_bonus

    @property
    def effective_handling(self) -> float:
        return self.handling + self.get_mod_profile().handling_bonus

    def get_resale_value(self) -> int:
        """Estimate what a fence pays for the car.

        Condition scales the base value, heat drags it down and each mod adds
        back a share of its fabrication cost.
        """
        condition_factor = 0.4 + 0.6 * self.condition
        heat_factor = max(0.3, 1 - 0.08 * self.heat)
        mod_value = 500 * len(self.mods)
        return round(VEHICLE.BASE_RESALE_VALUE * condition_factor * heat_factor + mod_value)

    def get_scrap_parts(self) -> int:
        """Parts recovered by scrapping the car."""
        return VEHICLE.SCRAP_BASE_PARTS + round(VEHICLE.SCRAP_PARTS_PER_CONDITION * self.condition)

    def snapshot(self) -> dict[str, Any]:
        """Pre-mission state used for delta reporting."""
        return {
            "id": self.id,
            "model": self.model,
            "condition": self.condition,
            "heat": self.heat,
            "status": self.status,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "model": self.model,
            "top_speed": self.top_speed,
            "acceleration": self.acceleration,
            "handling": self.handling,
            "heat": self.heat,
            "condition": self.condition,
            "is_stolen": self.is_stolen,
            "status": self.status,
            "mods": list(self.mods),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vehicle":
        """Create from dictionary."""
        vehicle = cls(
            model=data.get("model", "Compact Cruiser"),
            top_speed=data.get("top_speed", 120.0),
            acceleration=data.get("acceleration", 5.0),
            handling=data.get("handling", 5.0),
            heat=data.get("heat", 0.0),
            condition=data.get("condition", 1.0),
            is_stolen=data.get("is_stolen", False),
            mods=list(data.get("mods", [])),
        )
        if data.get("id"):
            vehicle.id = data["id"]
        vehicle.set_status(data.get("status", "idle"))
        return vehicle


@dataclass(frozen=True)
class VehicleReward:
    """Blueprint for a car handed over when a contract succeeds."""

    model: str
    top_speed: float = 120.0
    acceleration: float = 5.0
    handling: float = 5.0
    heat: float = 0.0

    def build(self, vehicle_id: Optional[str] = None) -> Vehicle:
        """Create the stolen vehicle."""
        vehicle = Vehicle(
            model=self.model,
            top_speed=self.top_speed,
            acceleration=self.acceleration,
            handling=self.handling,
            heat=self.heat,
        )
        if vehicle_id:
            vehicle.id = vehicle_id
        vehicle.mark_stolen()
        return vehicle

    @classmethod
    def from_dict(cls, data: Any) -> Optional["VehicleReward"]:
        """Sanitize raw reward data, None if there is no model."""
        if isinstance(data, VehicleReward):
            return data
        if not isinstance(data, dict) or not data.get("model"):
            return None
        return cls(
            model=str(data["model"]),
            top_speed=to_finite(data.get("top_speed"), 120.0),
            acceleration=to_finite(data.get("acceleration"), 5.0),
            handling=to_finite(data.get("handling"), 5.0),
            heat=max(0.0, to_finite(data.get("heat"), 0.0)),
        )
