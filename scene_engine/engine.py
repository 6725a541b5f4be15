"""Show resolution and the per-session engine that owns the ledger."""

from __future__ import annotations

import logging
import math
from itertools import combinations
from typing import List, Optional, Sequence

from .bills import BillAnalyzer
from .config import Settings, get_settings
from .difficulty import DifficultyScaler
from .models import Act, RelationshipUpdate, ScalingAxis, ShowResult, Venue
from .relationships import LedgerView, RelationshipLedger, unique_pairs
from .rng import DeterministicRNG, SeedSequence
from .synergy import VenueSynergyResolver, describe_rules

logger = logging.getLogger(__name__)


def resolve_show(
    acts: Sequence[Act],
    venue: Venue,
    round_number: int,
    ledger: LedgerView,
    rng: DeterministicRNG,
    *,
    analyzer: BillAnalyzer,
    synergies: VenueSynergyResolver,
    scaler: DifficultyScaler,
    settings: Settings,
    ticket_price: Optional[int] = None,
) -> ShowResult:
    """Fold bill dynamics, venue synergies and difficulty into one result.

    Reads the ledger but never writes to it; the returned
    ``relationship_updates`` describe what the ledger should receive if the
    show is actually played.
    """

    bill = analyzer.analyze(acts)
    dynamics = bill.dynamics
    tier = scaler.tier_for(round_number)
    act_ids = [act.id for act in acts]
    names = {act.id: act.name for act in acts}

    mean_popularity = sum(act.popularity for act in acts) / len(acts)
    attendance = venue.capacity * (mean_popularity / 100) * (venue.atmosphere / 100)
    attendance *= analyzer.attendance_modifier(dynamics)
    attendance *= ledger.lineup_multiplier(act_ids)
    relationship_events: List[str] = []
    for first, second in combinations(acts, 2):
        for synergy in ledger.synergy_for(first.id, second.id, names=names):
            attendance *= synergy.modifier
            relationship_events.append(f"{synergy.name}: {synergy.description}")
        event = ledger.drama_event(first, second, rng)
        if event:
            relationship_events.append(event)
    attendance /= tier.expectation_multiplier

    rules = synergies.resolve(venue, acts)
    effects = synergies.combine(rules)
    attendance = math.floor(attendance * effects.attendance_multiplier)
    # Everything below is derived from the people actually admitted.
    attendance = max(0, min(venue.capacity, attendance))

    price = ticket_price if ticket_price is not None else scaler.optimal_ticket_price(round_number)
    revenue = attendance * price
    if venue.has_bar:
        revenue += attendance * settings.bar_revenue_per_person
    revenue = max(0, math.floor(revenue * effects.revenue_multiplier))

    reputation = math.floor(attendance / 10 * analyzer.reputation_modifier(dynamics))
    reputation += math.floor(effects.reputation_bonus)
    fans = math.floor(attendance // 5 * effects.fan_conversion_multiplier)

    drama = analyzer.roll_drama(dynamics, rng, risk_multiplier=tier.risk_multiplier)
    if drama.occurred:
        reputation -= settings.drama_reputation_penalty

    costs = scaler.scale(venue.rent, round_number, ScalingAxis.COST)
    costs += scaler.scale(settings.act_booking_fee * len(acts), round_number, ScalingAxis.COST)
    success = revenue > costs
    delta = settings.success_delta if success else settings.failure_delta
    updates = [RelationshipUpdate(a, b, delta) for a, b in unique_pairs(act_ids)]

    logger.debug(
        "Resolved show at %s round %d: attendance=%d revenue=%d success=%s",
        venue.id,
        round_number,
        attendance,
        revenue,
        success,
    )
    return ShowResult(
        attendance=attendance,
        revenue=revenue,
        reputation_delta=reputation,
        fans_delta=fans,
        dynamics=dynamics,
        headliner=bill.headliner,
        openers=list(bill.openers),
        costs=math.floor(costs),
        success=success,
        tier=tier.name,
        ticket_price=price,
        atmosphere_bonus=effects.atmosphere_bonus,
        synergies=describe_rules(rules),
        drama=drama.description if drama.occurred else None,
        relationship_events=relationship_events,
        relationship_updates=updates,
    )


class SceneEngine:
    """One game session: static tables, the relationship ledger and a seed source."""

    def __init__(
        self,
        seed: int,
        *,
        settings: Settings | None = None,
        ledger: RelationshipLedger | None = None,
        analyzer: BillAnalyzer | None = None,
        synergies: VenueSynergyResolver | None = None,
        scaler: DifficultyScaler | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.ledger = ledger or RelationshipLedger(settings=self.settings)
        self.analyzer = analyzer or BillAnalyzer(self.settings)
        self.synergies = synergies or VenueSynergyResolver()
        self.scaler = scaler or DifficultyScaler(settings=self.settings)
        self._seeds = SeedSequence(seed)

    def _resolve(
        self,
        acts: Sequence[Act],
        venue: Venue,
        round_number: int,
        ledger: LedgerView,
        rng: DeterministicRNG,
        ticket_price: Optional[int],
    ) -> ShowResult:
        return resolve_show(
            acts,
            venue,
            round_number,
            ledger,
            rng,
            analyzer=self.analyzer,
            synergies=self.synergies,
            scaler=self.scaler,
            settings=self.settings,
            ticket_price=ticket_price,
        )

    def preview_show(
        self,
        acts: Sequence[Act],
        venue: Venue,
        round_number: int,
        *,
        seed: int = 0,
        ticket_price: Optional[int] = None,
    ) -> ShowResult:
        """Resolve a hypothetical booking against a ledger snapshot."""

        return self._resolve(
            acts,
            venue,
            round_number,
            self.ledger.snapshot(),
            DeterministicRNG(seed),
            ticket_price,
        )

    def play_show(
        self,
        acts: Sequence[Act],
        venue: Venue,
        round_number: int,
        *,
        ticket_price: Optional[int] = None,
    ) -> ShowResult:
        """Resolve the show that actually happened and record it in the ledger."""

        rng = self._seeds.spawn()
        result = self._resolve(acts, venue, round_number, self.ledger, rng, ticket_price)
        self.ledger.batch_update_from_show(
            [act.id for act in acts], result.success, round_number
        )
        return result

    def new_game(self) -> None:
        self.ledger.clear()
        self._seeds = SeedSequence(self._seeds.session_seed)


__all__ = ["SceneEngine", "resolve_show"]
