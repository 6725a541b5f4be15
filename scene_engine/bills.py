"""Bill analysis: headliner selection and lineup dynamics."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .config import Settings, get_settings, load_yaml_resource
from .models import Act, Bill, BillDynamics, DramaOutcome
from .rng import DeterministicRNG

logger = logging.getLogger(__name__)

_VETERAN_TAGS = ("veteran", "legend")
_STRAIGHT_EDGE_TAGS = ("straight edge",)
_PARTY_TAGS = ("party", "wild")
_ATTRIBUTES = ("popularity", "authenticity", "energy", "technical_skill")

_DRAMA_POOL: Optional[List[str]] = None


def _load_drama_pool() -> List[str]:
    global _DRAMA_POOL
    if _DRAMA_POOL is None:
        _DRAMA_POOL = list(load_yaml_resource("drama.yaml").get("bill_drama", []))
    return _DRAMA_POOL


class EmptyBillError(ValueError):
    """Raised when a bill is requested for an empty lineup."""


def _clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    return max(lower, min(upper, value))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


class BillAnalyzer:
    """Builds a :class:`Bill` for a lineup and derives its modifiers."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def headliner_score(self, act: Act) -> float:
        score = act.popularity * 2
        score += act.energy * 0.5
        score += act.technical_skill * 0.3
        if act.formed_year is not None:
            years_active = max(0, self._settings.reference_year - act.formed_year)
            score += min(years_active * 5, 50)
        if act.has_trait(*_VETERAN_TAGS):
            score += 30
        return score

    def analyze(self, acts: Sequence[Act]) -> Bill:
        if not acts:
            raise EmptyBillError("Cannot create a bill with no acts")
        self._warn_out_of_range(acts)

        if len(acts) == 1:
            act = acts[0]
            return Bill(
                headliner=act.id,
                openers=[],
                dynamics=BillDynamics(
                    chemistry_score=100,
                    drama_risk=0,
                    crowd_appeal=_clamp(act.popularity),
                    scene_alignment=_clamp(act.authenticity),
                ),
            )

        # sorted() is stable, so the first act wins a tie.
        ranked = sorted(acts, key=self.headliner_score, reverse=True)
        headliner = ranked[0]
        logger.debug(
            "Headliner %s chosen from %d acts (score %.1f)",
            headliner.id,
            len(acts),
            self.headliner_score(headliner),
        )
        return Bill(
            headliner=headliner.id,
            openers=[act.id for act in ranked[1:]],
            dynamics=self._dynamics(acts, headliner, ranked[1:]),
        )

    def _dynamics(
        self, acts: Sequence[Act], headliner: Act, openers: Sequence[Act]
    ) -> BillDynamics:
        genres = {act.genre for act in acts}

        if len(genres) == 1:
            chemistry = 100.0
        elif len(genres) == len(acts):
            chemistry = 40.0
        else:
            chemistry = 70.0
        subgenres = [sub for act in acts for sub in act.subgenres]
        duplicated = len(subgenres) - len(set(subgenres))
        chemistry += min(duplicated * 5, 20)

        drama = 0.0
        high_popularity = sum(1 for act in acts if act.popularity > 70)
        if high_popularity > 1:
            drama += (high_popularity - 1) * 15
        # Penalties stack once per opener.
        for opener in openers:
            if opener.popularity > headliner.popularity - 10:
                drama += 20
            if opener.energy > headliner.energy + 20:
                drama += 15
        authenticity = [act.authenticity for act in acts]
        if max(authenticity) - min(authenticity) > 50:
            drama += 25
        straight_edge = any(act.has_trait(*_STRAIGHT_EDGE_TAGS) for act in acts)
        party = any(act.has_trait(*_PARTY_TAGS) for act in acts)
        if straight_edge and party:
            drama += 30

        appeal = _mean([act.popularity for act in acts])
        energy = [act.energy for act in acts]
        if all(energy[i] >= energy[i - 1] - 10 for i in range(1, len(energy))):
            appeal += 20
        if 1 < len(genres) < len(acts):
            appeal += 10

        return BillDynamics(
            chemistry_score=_clamp(chemistry),
            drama_risk=_clamp(drama),
            crowd_appeal=_clamp(appeal),
            scene_alignment=_clamp(_mean(authenticity)),
        )

    @staticmethod
    def attendance_modifier(dynamics: BillDynamics) -> float:
        modifier = 0.8 + dynamics.chemistry_score / 100 * 0.4
        modifier *= 0.7 + dynamics.crowd_appeal / 100 * 0.6
        if dynamics.scene_alignment > 80:
            modifier *= 1.2
        elif dynamics.scene_alignment < 40:
            modifier *= 0.8
        return modifier

    @staticmethod
    def reputation_modifier(dynamics: BillDynamics) -> float:
        modifier = 0.8 + dynamics.chemistry_score / 100 * 0.4
        if dynamics.scene_alignment > 70:
            modifier *= 1.3
        return modifier

    def roll_drama(
        self,
        dynamics: BillDynamics,
        rng: DeterministicRNG,
        *,
        risk_multiplier: float = 1.0,
    ) -> DramaOutcome:
        risk = _clamp(dynamics.drama_risk * risk_multiplier)
        if rng.roll_percent() >= risk:
            return DramaOutcome(occurred=False)
        pool = _load_drama_pool()
        return DramaOutcome(occurred=True, description=rng.choice(pool) if pool else None)

    @staticmethod
    def _warn_out_of_range(acts: Sequence[Act]) -> None:
        for act in acts:
            for attribute in _ATTRIBUTES:
                value = getattr(act, attribute)
                if not 0 <= value <= 100:
                    logger.warning(
                        "Act %s has %s=%s outside 0..100; derived scores will be clamped",
                        act.id,
                        attribute,
                        value,
                    )


__all__ = ["BillAnalyzer", "EmptyBillError"]
