"""Configuration loading utilities for the scene engine."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml


DATA_PATH = Path(__file__).parent / "data"
DEFAULT_SETTINGS_PATH = DATA_PATH / "settings.yaml"


class ConfigurationError(ValueError):
    """Raised when a static table is missing or malformed."""


def load_yaml_resource(name: str, data_path: Path | None = None) -> Dict[str, Any]:
    path = (data_path or DATA_PATH) / name
    if not path.exists():
        raise ConfigurationError(f"Missing configuration file: {path}")
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    return data


@dataclass(frozen=True)
class Settings:
    """Typed view over the settings YAML file."""

    ticket_min_price: int
    ticket_max_price: int
    ticket_sweet_spot: float
    bar_revenue_per_person: float
    average_venue_rent: float
    average_act_fee: float
    act_booking_fee: float
    average_capacity: int
    assumed_fill_rate: float
    affinity_min: float
    affinity_max: float
    success_delta: float
    failure_delta: float
    conflict_refuse_threshold: float
    conflict_tension_threshold: float
    relationship_drama_threshold: float
    reference_year: int
    drama_reputation_penalty: int
    show_quality: Dict[str, float]

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Settings":
        economy = dict(data.get("economy", {}))
        tickets = economy.get("tickets", {})
        relationships = data.get("relationships", {})
        bounds = relationships.get("bounds", {})
        deltas = relationships.get("show_deltas", {})
        conflicts = relationships.get("conflicts", {})
        bills = data.get("bills", {})
        quality = data.get(
            "show_quality", {"great": 0.9, "good": 0.7, "average": 0.5, "poor": 0.3}
        )
        settings = Settings(
            ticket_min_price=int(tickets.get("min_price", 5)),
            ticket_max_price=int(tickets.get("max_price", 50)),
            ticket_sweet_spot=float(tickets.get("sweet_spot", 15)),
            bar_revenue_per_person=float(economy.get("bar_revenue_per_person", 5)),
            average_venue_rent=float(economy.get("average_venue_rent", 300)),
            average_act_fee=float(economy.get("average_act_fee", 150)),
            act_booking_fee=float(economy.get("act_booking_fee", 50)),
            average_capacity=int(economy.get("average_capacity", 200)),
            assumed_fill_rate=float(economy.get("assumed_fill_rate", 0.7)),
            affinity_min=float(bounds.get("min", -100)),
            affinity_max=float(bounds.get("max", 100)),
            success_delta=float(deltas.get("success", 10)),
            failure_delta=float(deltas.get("failure", -5)),
            conflict_refuse_threshold=float(conflicts.get("refuse", -50)),
            conflict_tension_threshold=float(conflicts.get("tension", -30)),
            relationship_drama_threshold=float(relationships.get("drama_threshold", 70)),
            reference_year=int(bills.get("reference_year", 2024)),
            drama_reputation_penalty=int(bills.get("drama_reputation_penalty", 5)),
            show_quality={k: float(v) for k, v in quality.items()},
        )
        if settings.ticket_min_price > settings.ticket_max_price:
            raise ConfigurationError("Ticket min_price exceeds max_price")
        if settings.affinity_min >= settings.affinity_max:
            raise ConfigurationError("Affinity bounds are inverted")
        return settings


class SettingsLoader:
    """Loads and caches settings from YAML configuration files."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH
        self._cache: Settings | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False) -> Settings:
        if self._cache is not None and not force:
            return self._cache
        data = load_yaml_resource(self._path.name, self._path.parent)
        self._cache = Settings.from_dict(data)
        return self._cache


def get_settings() -> Settings:
    """Convenience accessor for default settings."""

    return SettingsLoader().load()


__all__ = [
    "ConfigurationError",
    "DATA_PATH",
    "Settings",
    "SettingsLoader",
    "get_settings",
    "load_yaml_resource",
]
