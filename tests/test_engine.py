"""Tests for show resolution and session state."""
from __future__ import annotations

import json
import math

import pytest

from scene_engine.bills import EmptyBillError
from scene_engine.engine import SceneEngine
from scene_engine.models import Act, ActTrait, Venue
from scene_engine.relationships import RelationshipLedger
from scene_engine.synergy import VenueTraitCatalog


def build_venue(capacity: int = 120, *, rent: float = 100, has_bar: bool = True) -> Venue:
    catalog = VenueTraitCatalog()
    return Venue(
        id="mildew",
        name="Mildew Basement",
        capacity=capacity,
        acoustics=30,
        authenticity=90,
        atmosphere=80,
        traits=catalog.default_traits_for("basement"),
        rent=rent,
        has_bar=has_bar,
        venue_type="basement",
    )


def build_lineup() -> list:
    return [
        Act(id="gash", name="Gash", genre="punk", subgenres=["hardcore"],
            popularity=70, authenticity=80, energy=60, technical_skill=40),
        Act(id="moth", name="Moth", genre="punk", subgenres=["hardcore"],
            popularity=55, authenticity=75, energy=70, technical_skill=35),
        Act(id="rot", name="Rot", genre="punk", subgenres=["crust"],
            popularity=40, authenticity=90, energy=80, technical_skill=30,
            traits=[ActTrait("DIY Ethics")]),
    ]


def test_preview_does_not_touch_ledger():
    engine = SceneEngine(seed=1)

    result = engine.preview_show(build_lineup(), build_venue(), 3)

    assert len(engine.ledger) == 0
    assert len(result.relationship_updates) == 3


def test_preview_is_repeatable():
    engine = SceneEngine(seed=1)

    first = engine.preview_show(build_lineup(), build_venue(), 3, seed=99)
    second = engine.preview_show(build_lineup(), build_venue(), 3, seed=99)

    assert first == second


def test_play_show_records_relationships():
    engine = SceneEngine(seed=2)

    result = engine.play_show(build_lineup(), build_venue(), 4)

    expected = 10 if result.success else -5
    assert [(u.first_id, u.second_id) for u in result.relationship_updates] == [
        ("gash", "moth"),
        ("gash", "rot"),
        ("moth", "rot"),
    ]
    for update in result.relationship_updates:
        assert update.delta == expected
        assert engine.ledger.get(update.first_id, update.second_id) == expected
        assert engine.ledger.history(update.first_id, update.second_id)[-1].round == 4


def test_result_respects_capacity_and_floor():
    engine = SceneEngine(seed=3)
    venue = build_venue(capacity=20)

    for round_number in (0, 15, 40, 90, 150):
        result = engine.play_show(build_lineup(), venue, round_number)
        assert 0 <= result.attendance <= venue.capacity
        assert result.revenue >= 0
        assert result.success == (result.revenue > result.costs)


def test_same_seed_replays_identically():
    first = SceneEngine(seed=1234)
    second = SceneEngine(seed=1234)

    for round_number in range(5):
        assert first.play_show(build_lineup(), build_venue(), round_number) == second.play_show(
            build_lineup(), build_venue(), round_number
        )


def test_empty_lineup_is_rejected():
    engine = SceneEngine(seed=1)

    with pytest.raises(EmptyBillError):
        engine.play_show([], build_venue(), 1)
    assert len(engine.ledger) == 0


def test_result_carries_bill_and_synergies():
    result = SceneEngine(seed=5).preview_show(build_lineup(), build_venue(), 2)

    names = [item["name"] for item in result.synergies]
    assert "Authentic Punk Experience" in names
    assert "Dive Bar Legends" in names
    assert result.headliner == "gash"
    assert result.openers == ["moth", "rot"]
    assert result.tier == "easy"
    assert result.ticket_price == 15


def test_costs_scale_with_difficulty():
    engine = SceneEngine(seed=6)
    venue = build_venue(rent=200)

    early = engine.preview_show(build_lineup(), venue, 0)
    late = engine.preview_show(build_lineup(), venue, 60)

    # rent plus three booking fees, times the tier cost multiplier
    assert early.costs == 350
    assert late.costs == 700


def test_explicit_ticket_price_is_used():
    result = SceneEngine(seed=7).preview_show(build_lineup(), build_venue(), 0, ticket_price=22)

    assert result.ticket_price == 22


def test_strong_friendship_shows_up_in_events():
    ledger = RelationshipLedger()
    ledger.update("gash", "moth", 95)
    engine = SceneEngine(seed=8, ledger=ledger)

    result = engine.preview_show(build_lineup(), build_venue(), 1)

    assert any(event.startswith("Perfect Harmony") for event in result.relationship_events)


def test_result_serializes_with_profit():
    result = SceneEngine(seed=9).preview_show(build_lineup(), build_venue(), 1)
    payload = result.to_dict()

    assert payload["profit"] == result.revenue - result.costs
    assert payload["dynamics"]["chemistry_score"] == result.dynamics.chemistry_score
    json.dumps(payload)


def test_new_game_resets_ledger_and_seeds():
    engine = SceneEngine(seed=10)
    first = engine.play_show(build_lineup(), build_venue(), 1)

    engine.new_game()

    assert len(engine.ledger) == 0
    assert engine.play_show(build_lineup(), build_venue(), 1) == first


def build_packed_room(*, has_bar: bool) -> Venue:
    catalog = VenueTraitCatalog()
    return Venue(
        id="riot-cellar",
        name="Riot Cellar",
        capacity=50,
        acoustics=20,
        authenticity=95,
        atmosphere=100,
        traits=[catalog.get("GRIMY_FLOORS"), catalog.get("RIOT_HISTORY")],
        rent=50,
        has_bar=has_bar,
    )


def build_headliners() -> list:
    return [
        Act(id=name, name=name.title(), genre="punk", subgenres=["hardcore"],
            popularity=100, authenticity=90, energy=70, technical_skill=50)
        for name in ("gash", "moth", "rot")
    ]


def test_sold_out_show_only_charges_admitted_crowd():
    engine = SceneEngine(seed=11)
    venue = build_packed_room(has_bar=False)
    acts = build_headliners()

    result = engine.preview_show(acts, venue, 0, ticket_price=10)
    effects = engine.synergies.combine(engine.synergies.resolve(venue, acts))

    assert result.attendance == venue.capacity
    assert effects.revenue_multiplier > 1.0
    assert result.revenue <= result.attendance * 10 * effects.revenue_multiplier
    assert result.revenue == math.floor(50 * 10 * effects.revenue_multiplier)
    assert result.fans_delta == math.floor(50 // 5 * effects.fan_conversion_multiplier)
    assert result.success == (result.revenue > result.costs)


def test_bar_revenue_counts_admitted_crowd_only():
    engine = SceneEngine(seed=12)
    venue = build_packed_room(has_bar=True)
    acts = build_headliners()

    result = engine.preview_show(acts, venue, 0, ticket_price=10)
    effects = engine.synergies.combine(engine.synergies.resolve(venue, acts))

    per_head = 10 + engine.settings.bar_revenue_per_person
    assert result.attendance == venue.capacity
    assert result.revenue <= result.attendance * per_head * effects.revenue_multiplier


def test_ledger_records_success_judged_on_capped_revenue():
    engine = SceneEngine(seed=13)
    venue = build_packed_room(has_bar=False)
    acts = build_headliners()

    # 50 admitted at $1 with a 1.2 revenue bonus cannot cover the booking costs.
    result = engine.play_show(acts, venue, 0, ticket_price=1)
    effects = engine.synergies.combine(engine.synergies.resolve(venue, acts))

    assert result.revenue == math.floor(50 * 1 * effects.revenue_multiplier)
    assert result.revenue <= 60
    assert result.costs == 200
    assert not result.success
    assert engine.ledger.get("gash", "moth") == -5


def test_reputation_scales_admitted_crowd_before_flooring():
    engine = SceneEngine(seed=14)
    venue = Venue(id="hall", name="Plain Hall", capacity=100, atmosphere=100)
    solo = Act(id="solo", name="Solo", genre="folk", popularity=80, authenticity=90)

    result = engine.preview_show([solo], venue, 0)

    # Single act: chemistry 100 and alignment 90, so the modifier is 1.2 * 1.3.
    assert result.attendance == 100
    assert result.drama is None
    assert result.reputation_delta == math.floor(100 / 10 * 1.2 * 1.3)
    assert result.fans_delta == 20
    assert result.synergies == []
