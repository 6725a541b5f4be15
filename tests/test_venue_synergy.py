"""Tests for venue traits and venue/act synergy rules."""
from __future__ import annotations

import pytest

from scene_engine.bills import BillAnalyzer
from scene_engine.config import ConfigurationError
from scene_engine.models import (
    Act,
    ActTrait,
    BillDynamics,
    ShowResult,
    SynergyEffects,
    SynergyRule,
    Venue,
    VenueTrait,
    VenueTraitType,
    VenueUpgrade,
)
from scene_engine.rng import DeterministicRNG
from scene_engine.synergy import (
    SynergyRuleTable,
    VenueSynergyResolver,
    VenueTraitCatalog,
    act_matches,
)


@pytest.fixture(scope="module")
def catalog() -> VenueTraitCatalog:
    return VenueTraitCatalog()


@pytest.fixture(scope="module")
def resolver(catalog) -> VenueSynergyResolver:
    return VenueSynergyResolver(SynergyRuleTable(catalog=catalog))


def build_venue(catalog, *trait_ids: str, capacity: int = 150) -> Venue:
    return Venue(
        id="basement-1",
        name="Mildew Basement",
        capacity=capacity,
        acoustics=30,
        authenticity=90,
        atmosphere=70,
        traits=[catalog.get(trait_id) for trait_id in trait_ids],
        venue_type="basement",
    )


def build_act(act_id: str, genre: str = "punk", subgenres=(), traits=()) -> Act:
    return Act(
        id=act_id,
        name=act_id.title(),
        genre=genre,
        subgenres=list(subgenres),
        popularity=50,
        authenticity=70,
        energy=60,
        technical_skill=40,
        traits=list(traits),
    )


def base_result(**overrides) -> ShowResult:
    values = dict(
        attendance=100,
        revenue=1000,
        reputation_delta=10,
        fans_delta=20,
        dynamics=BillDynamics(
            chemistry_score=80, drama_risk=10, crowd_appeal=60, scene_alignment=70
        ),
    )
    values.update(overrides)
    return ShowResult(**values)


def rule_names(rules) -> list:
    return sorted(rule.name for rule in rules)


def test_punk_lineup_in_grimy_basement(catalog, resolver):
    venue = build_venue(catalog, "GRIMY_FLOORS")
    acts = [build_act(name, subgenres=["hardcore"]) for name in ("gash", "moth", "rot")]

    dynamics = BillAnalyzer().analyze(acts).dynamics
    rules = resolver.resolve(venue, acts)
    boosted = resolver.apply(base_result(), rules)

    assert dynamics.chemistry_score == 100
    assert "Authentic Punk Experience" in rule_names(rules)
    assert boosted.attendance > 100
    assert boosted.atmosphere_bonus == 20
    assert {"name": "Authentic Punk Experience",
            "description": "Punk bands thrive in grimy venues"} in boosted.synergies


def test_resolution_ignores_act_order(catalog, resolver):
    venue = build_venue(catalog, "GRIMY_FLOORS", "INTIMATE_SETTING", "BLOWN_SPEAKERS")
    acts = [
        build_act("gash"),
        build_act("hum", genre="noise"),
        build_act("cry", genre="emo", traits=[ActTrait("Emotional", "Wears it on the sleeve")]),
    ]
    shuffled = list(acts)
    DeterministicRNG(11).shuffle(shuffled)

    assert rule_names(resolver.resolve(venue, acts)) == rule_names(
        resolver.resolve(venue, shuffled)
    )
    assert rule_names(resolver.resolve(venue, acts)) == [
        "Authentic Punk Experience",
        "Emotional Connection",
        "Noise Perfection",
    ]


def test_unrelated_genre_gets_nothing(catalog, resolver):
    venue = build_venue(catalog, "GRIMY_FLOORS")

    assert resolver.resolve(venue, [build_act("combo", genre="jazz")]) == []


def test_trait_text_unlocks_rule(catalog, resolver):
    venue = build_venue(catalog, "ARTIST_FRIENDLY")
    act = build_act("zine", genre="folk", traits=[ActTrait("DIY Ethics", "Books its own tours")])

    assert rule_names(resolver.resolve(venue, [act])) == ["DIY Ethics Match"]


def test_genre_matching_is_exact(catalog, resolver):
    venue = build_venue(catalog, "GRIMY_FLOORS")

    assert resolver.resolve(venue, [build_act("wire", genre="post-punk")]) == []
    assert rule_names(
        resolver.resolve(venue, [build_act("wire", genre="rock", subgenres=["Punk"])])
    ) == ["Authentic Punk Experience"]


def test_canonical_trait_tags_match(catalog, resolver):
    venue = build_venue(catalog, "BLOWN_SPEAKERS")
    act = build_act("static", genre="rock", traits=[ActTrait("Feedback Worship", tags=frozenset({"noise"}))])

    assert act_matches(act, "noise")
    assert rule_names(resolver.resolve(venue, [act])) == ["Noise Perfection"]


def test_trait_tags_are_normalised_once():
    trait = ActTrait("Feedback Worship", tags=frozenset({"NOISE", "Drone"}))

    assert trait.tags == frozenset({"noise", "drone"})
    assert trait.matches("Noise")
    assert trait.matches("drone")
    assert not trait.matches("doom")


def test_combine_with_no_rules_is_neutral():
    totals = VenueSynergyResolver.combine([])

    assert totals.attendance_multiplier == 1.0
    assert totals.revenue_multiplier == 1.0
    assert totals.fan_conversion_multiplier == 1.0
    assert totals.reputation_bonus == 0.0
    assert totals.atmosphere_bonus == 0.0


def test_rule_fires_once_per_show(catalog, resolver):
    venue = build_venue(catalog, "GRIMY_FLOORS", "GRIMY_FLOORS")
    acts = [build_act("gash"), build_act("moth")]

    assert rule_names(resolver.resolve(venue, acts)) == ["Authentic Punk Experience"]


def test_preview_describes_rules(catalog, resolver):
    venue = build_venue(catalog, "GRIMY_FLOORS")

    assert resolver.preview(venue, [build_act("gash", subgenres=["hardcore"])]) == [
        {"name": "Authentic Punk Experience", "description": "Punk bands thrive in grimy venues"},
        {"name": "Dive Bar Legends", "description": "Grimy venues love grimy bands"},
    ]


def test_apply_combines_effects():
    rules = [
        SynergyRule(
            id="one",
            venue_trait="X",
            name="One",
            description="first",
            effects=SynergyEffects(attendance_multiplier=1.5, reputation_bonus=10,
                                   atmosphere_bonus=5),
        ),
        SynergyRule(
            id="two",
            venue_trait="X",
            name="Two",
            description="second",
            effects=SynergyEffects(attendance_multiplier=2.0, revenue_multiplier=1.25,
                                   fan_conversion_multiplier=1.5, reputation_bonus=5),
        ),
    ]

    result = VenueSynergyResolver.apply(base_result(), rules)

    assert result.attendance == 300
    assert result.revenue == 1250
    assert result.fans_delta == 30
    assert result.reputation_delta == 25
    assert result.atmosphere_bonus == 5
    assert [item["name"] for item in result.synergies] == ["One", "Two"]


def test_apply_without_rules_is_identity():
    base = base_result()

    assert VenueSynergyResolver.apply(base, []) == base


def test_valuation():
    venue = Venue(
        id="hall",
        name="Old Hall",
        capacity=100,
        acoustics=50,
        authenticity=40,
        atmosphere=60,
        traits=[
            VenueTrait("HALLOWED_GROUND", "Hallowed Ground", VenueTraitType.LEGENDARY),
            VenueTrait("GRIMY_FLOORS", "Grimy Floors", VenueTraitType.ATMOSPHERE),
        ],
        upgrades=[VenueUpgrade("pa", "New PA", 100)],
    )

    assert VenueSynergyResolver.valuation(venue) == 980


def test_default_traits_for_venue_type(catalog):
    assert [trait.id for trait in catalog.default_traits_for("basement")] == [
        "GRIMY_FLOORS",
        "INTIMATE_SETTING",
    ]
    assert catalog.default_traits_for("stadium") == []


def test_unknown_trait_lookup_raises(catalog):
    with pytest.raises(ValueError):
        catalog.get("GOLD_PLATED_TOILETS")


def test_duplicate_rule_id_is_rejected(tmp_path):
    (tmp_path / "synergy_rules.yaml").write_text(
        "synergy_rules:\n"
        "  - {id: twice, venue_trait: GRIMY_FLOORS, tag: punk, name: A, effects: {}}\n"
        "  - {id: twice, venue_trait: GRIMY_FLOORS, tag: punk, name: B, effects: {}}\n",
        encoding="utf-8",
    )

    with pytest.raises(ConfigurationError):
        SynergyRuleTable(data_path=tmp_path)


def test_rule_for_unknown_trait_is_rejected(tmp_path, catalog):
    (tmp_path / "synergy_rules.yaml").write_text(
        "synergy_rules:\n"
        "  - {id: ghost, venue_trait: NOT_A_TRAIT, name: Ghost, effects: {}}\n",
        encoding="utf-8",
    )

    with pytest.raises(ConfigurationError):
        SynergyRuleTable(data_path=tmp_path, catalog=catalog)
