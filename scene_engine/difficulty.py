"""Round-based difficulty tiers and the economy formulas that use them."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Dict, List, Optional

from .config import ConfigurationError, Settings, get_settings, load_yaml_resource
from .models import DifficultyTier, EconomicProjection, ScalingAxis

logger = logging.getLogger(__name__)

SCENARIOS = ("perfect_show", "average_show", "disaster_show")

_SCENARIO_REVENUE = {"perfect_show": 1.5, "average_show": 1.0, "disaster_show": 0.3}
_SCENARIO_REPUTATION = {"perfect_show": 5, "average_show": 1, "disaster_show": -5}


class DifficultyTable:
    """Ordered tiers covering every non-negative round."""

    def __init__(self, data_path: Path | None = None) -> None:
        data = load_yaml_resource("difficulty_tiers.yaml", data_path)
        self._tiers = [self._parse_tier(entry) for entry in data.get("tiers") or []]
        self._validate()
        self._milestones: Dict[int, str] = {
            int(round_number): str(message)
            for round_number, message in (data.get("milestones") or {}).items()
        }

    @staticmethod
    def _parse_tier(entry: Dict) -> DifficultyTier:
        try:
            multipliers = entry["multipliers"]
            end = entry.get("end")
            return DifficultyTier(
                name=str(entry["name"]),
                start=int(entry["start"]),
                end=None if end is None else int(end),
                cost_multiplier=float(multipliers["cost"]),
                expectation_multiplier=float(multipliers["expectation"]),
                risk_multiplier=float(multipliers["risk"]),
                survival_rate=float(entry.get("survival_rate", 0.0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError(f"Malformed difficulty tier: {entry!r}") from exc

    def _validate(self) -> None:
        if not self._tiers:
            raise ConfigurationError("Difficulty table has no tiers")
        if self._tiers[0].start != 0:
            raise ConfigurationError("First difficulty tier must start at round 0")
        for previous, current in zip(self._tiers, self._tiers[1:]):
            if previous.end is None:
                raise ConfigurationError(
                    f"Tier {previous.name} is unbounded but is not the last tier"
                )
            if current.start != previous.end + 1:
                raise ConfigurationError(
                    f"Tier {current.name} does not continue from {previous.name}"
                )
        if self._tiers[-1].end is not None:
            raise ConfigurationError("Last difficulty tier must be unbounded")

    @property
    def tiers(self) -> List[DifficultyTier]:
        return list(self._tiers)

    def tier_for(self, round_number: int) -> DifficultyTier:
        for tier in self._tiers:
            if tier.contains(round_number):
                return tier
        logger.debug("Round %s matched no tier; using %s", round_number, self._tiers[-1].name)
        return self._tiers[-1]

    def milestone(self, round_number: int) -> Optional[str]:
        return self._milestones.get(round_number)


class DifficultyScaler:
    """Applies tier multipliers to costs, expectations and risk."""

    def __init__(
        self,
        table: DifficultyTable | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.table = table or DifficultyTable()
        self._settings = settings or get_settings()

    def tier_for(self, round_number: int) -> DifficultyTier:
        return self.table.tier_for(round_number)

    def scale(self, base_amount: float, round_number: int, axis: ScalingAxis | str) -> float:
        try:
            axis = ScalingAxis(axis)
        except ValueError:
            raise ValueError(f"Unknown scaling axis {axis!r}") from None
        return base_amount * self.tier_for(round_number).multiplier(axis)

    def optimal_ticket_price(self, round_number: int) -> int:
        settings = self._settings
        expectation = self.tier_for(round_number).expectation_multiplier
        price = settings.ticket_sweet_spot * (1 + round_number / 100)
        price /= math.sqrt(expectation)
        return math.floor(
            max(settings.ticket_min_price, min(settings.ticket_max_price, price))
        )

    def survival_rate(self, round_number: int) -> float:
        return self.tier_for(round_number).survival_rate

    def show_rating(self, attendance: float, capacity: float) -> str:
        ratio = attendance / capacity if capacity > 0 else 0.0
        for rating in ("great", "good", "average", "poor"):
            if ratio >= self._settings.show_quality.get(rating, 1.0):
                return rating.upper()
        return "DISASTER"

    def projected_economics(self, round_number: int) -> EconomicProjection:
        settings = self._settings
        tier = self.tier_for(round_number)
        rent = self.scale(settings.average_venue_rent, round_number, ScalingAxis.COST)
        fees = self.scale(settings.average_act_fee, round_number, ScalingAxis.COST)
        attendance = settings.average_capacity * settings.assumed_fill_rate
        price = self.optimal_ticket_price(round_number)
        revenue = attendance * price + attendance * settings.bar_revenue_per_person
        cost = rent + fees
        margin = (revenue - cost) / revenue if revenue else 0.0
        return EconomicProjection(
            round=round_number,
            tier=tier.name,
            average_show_revenue=revenue,
            average_show_cost=cost,
            profit_margin=margin,
            survival_rate=tier.survival_rate,
            optimal_ticket_price=price,
        )

    def analyze_balance(
        self, start: int = 0, end: int = 100, step: int = 5
    ) -> Dict[int, EconomicProjection]:
        if step <= 0:
            raise ValueError("step must be positive")
        return {
            round_number: self.projected_economics(round_number)
            for round_number in range(start, end + 1, step)
        }

    def scenario(self, kind: str, round_number: int) -> Dict[str, float]:
        if kind not in _SCENARIO_REVENUE:
            raise ValueError(f"Unknown scenario {kind!r}; expected one of {SCENARIOS}")
        projection = self.projected_economics(round_number)
        revenue = projection.average_show_revenue * _SCENARIO_REVENUE[kind]
        return {
            "revenue": revenue,
            "cost": projection.average_show_cost,
            "net_profit": revenue - projection.average_show_cost,
            "reputation_gain": _SCENARIO_REPUTATION[kind],
        }


def balance_recommendations(analysis: Dict[int, EconomicProjection]) -> List[str]:
    """Flag balance problems in a sampled economy curve."""

    warnings: List[str] = []
    early = analysis.get(10)
    if early is not None and early.profit_margin < 0.2:
        warnings.append("Early game may be too difficult - profit margin below 20%")
    late = analysis.get(50)
    if late is not None and late.profit_margin > 0.5:
        warnings.append("Late game may be too easy - profit margin above 50%")
    mid = analysis.get(25)
    if mid is not None and mid.survival_rate < 0.5:
        warnings.append("Difficulty spike too harsh - less than 50% reach round 25")
    return warnings


__all__ = [
    "DifficultyScaler",
    "DifficultyTable",
    "SCENARIOS",
    "balance_recommendations",
]
