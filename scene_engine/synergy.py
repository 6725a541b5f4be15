"""Venue trait catalogue and venue/act synergy resolution."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .config import ConfigurationError, load_yaml_resource
from .models import (
    Act,
    ShowResult,
    SynergyEffects,
    SynergyRule,
    Venue,
    VenueTrait,
    VenueTraitType,
)

logger = logging.getLogger(__name__)

_TRAIT_VALUES: Dict[VenueTraitType, int] = {
    VenueTraitType.LEGENDARY: 500,
    VenueTraitType.TECHNICAL: 200,
    VenueTraitType.SOCIAL: 150,
}
_DEFAULT_TRAIT_VALUE = 100
_UPGRADE_RETENTION = 0.8


class VenueTraitCatalog:
    """Known venue traits keyed by their stable identifier."""

    def __init__(self, data_path: Path | None = None) -> None:
        data = load_yaml_resource("venue_traits.yaml", data_path)
        self._traits: Dict[str, VenueTrait] = {}
        for trait_id, entry in (data.get("venue_traits") or {}).items():
            try:
                trait_type = VenueTraitType(str(entry["type"]).lower())
            except (KeyError, ValueError) as exc:
                raise ConfigurationError(f"Venue trait {trait_id} has an invalid type") from exc
            self._traits[trait_id] = VenueTrait(
                id=trait_id,
                name=entry.get("name", trait_id),
                type=trait_type,
                description=entry.get("description", ""),
                synergy_tags=list(entry.get("synergy_tags", [])),
            )
        self._defaults: Dict[str, List[str]] = {
            venue_type: list(trait_ids)
            for venue_type, trait_ids in (data.get("default_traits") or {}).items()
        }
        for venue_type, trait_ids in self._defaults.items():
            unknown = [trait_id for trait_id in trait_ids if trait_id not in self._traits]
            if unknown:
                raise ConfigurationError(
                    f"Default traits for {venue_type} reference unknown traits: {unknown}"
                )

    def __contains__(self, trait_id: object) -> bool:
        return trait_id in self._traits

    def get(self, trait_id: str) -> VenueTrait:
        try:
            return self._traits[trait_id]
        except KeyError:
            raise ValueError(f"Unknown venue trait {trait_id}") from None

    def ids(self) -> List[str]:
        return list(self._traits)

    def default_traits_for(self, venue_type: str) -> List[VenueTrait]:
        return [self._traits[trait_id] for trait_id in self._defaults.get(venue_type, [])]


class SynergyRuleTable:
    """Immutable synergy rules grouped by venue trait."""

    def __init__(
        self,
        data_path: Path | None = None,
        catalog: VenueTraitCatalog | None = None,
    ) -> None:
        data = load_yaml_resource("synergy_rules.yaml", data_path)
        self.version = int(data.get("version", 1))
        self._by_trait: Dict[str, List[SynergyRule]] = {}
        seen: set[str] = set()
        for entry in data.get("synergy_rules") or []:
            rule = self._parse_rule(entry)
            if rule.id in seen:
                raise ConfigurationError(f"Duplicate synergy rule id {rule.id}")
            if catalog is not None and rule.venue_trait not in catalog:
                raise ConfigurationError(
                    f"Synergy rule {rule.id} references unknown venue trait {rule.venue_trait}"
                )
            seen.add(rule.id)
            self._by_trait.setdefault(rule.venue_trait, []).append(rule)

    @staticmethod
    def _parse_rule(entry: Dict) -> SynergyRule:
        try:
            effects = entry.get("effects") or {}
            return SynergyRule(
                id=str(entry["id"]),
                venue_trait=str(entry["venue_trait"]),
                name=entry.get("name", entry["id"]),
                description=entry.get("description", ""),
                tag=entry.get("tag"),
                effects=SynergyEffects(**effects),
            )
        except (KeyError, TypeError) as exc:
            raise ConfigurationError(f"Malformed synergy rule: {entry!r}") from exc

    def rules_for(self, trait_id: str) -> List[SynergyRule]:
        return list(self._by_trait.get(trait_id, []))

    def __iter__(self):
        for rules in self._by_trait.values():
            yield from rules

    def __len__(self) -> int:
        return sum(len(rules) for rules in self._by_trait.values())


def act_matches(act: Act, tag: Optional[str]) -> bool:
    """Whether an act carries a synergy tag.

    Traits match on canonical tags or a case-insensitive substring of their
    name/description; genre and subgenres must match the tag exactly.
    """

    if not tag:
        return True
    needle = tag.lower()
    if any(trait.matches(needle) for trait in act.traits):
        return True
    if act.genre.lower() == needle:
        return True
    return any(sub.lower() == needle for sub in act.subgenres)


class VenueSynergyResolver:
    """Finds and applies the synergy rules a lineup unlocks at a venue."""

    def __init__(self, rules: SynergyRuleTable | None = None) -> None:
        self._rules = rules or SynergyRuleTable()

    def resolve(self, venue: Venue, acts: Sequence[Act]) -> List[SynergyRule]:
        active: List[SynergyRule] = []
        fired: set[str] = set()
        for trait in venue.traits:
            for rule in self._rules.rules_for(trait.id):
                if rule.id in fired:
                    continue
                if any(act_matches(act, rule.tag) for act in acts):
                    fired.add(rule.id)
                    active.append(rule)
        logger.debug(
            "Venue %s fired %d synergy rules: %s",
            venue.id,
            len(active),
            [rule.id for rule in active],
        )
        return active

    def preview(self, venue: Venue, acts: Sequence[Act]) -> List[Dict[str, str]]:
        return describe_rules(self.resolve(venue, acts))

    @staticmethod
    def combine(rules: Iterable[SynergyRule]) -> SynergyEffects:
        """Fold rule effects: multipliers multiply, bonuses add.

        Every field of the returned effects is set; with no rules the
        multipliers are 1.0 and the bonuses 0.0.
        """

        attendance = revenue = fans = 1.0
        reputation = atmosphere = 0.0
        for rule in rules:
            effects = rule.effects
            if effects.attendance_multiplier is not None:
                attendance *= effects.attendance_multiplier
            if effects.revenue_multiplier is not None:
                revenue *= effects.revenue_multiplier
            if effects.fan_conversion_multiplier is not None:
                fans *= effects.fan_conversion_multiplier
            if effects.reputation_bonus is not None:
                reputation += effects.reputation_bonus
            if effects.atmosphere_bonus is not None:
                atmosphere += effects.atmosphere_bonus
        return SynergyEffects(
            attendance_multiplier=attendance,
            revenue_multiplier=revenue,
            reputation_bonus=reputation,
            fan_conversion_multiplier=fans,
            atmosphere_bonus=atmosphere,
        )

    @staticmethod
    def apply(base: ShowResult, rules: Iterable[SynergyRule]) -> ShowResult:
        rules = list(rules)
        if not rules:
            return base
        totals = VenueSynergyResolver.combine(rules)
        return replace(
            base,
            attendance=math.floor(base.attendance * totals.attendance_multiplier),
            revenue=math.floor(base.revenue * totals.revenue_multiplier),
            fans_delta=math.floor(base.fans_delta * totals.fan_conversion_multiplier),
            reputation_delta=base.reputation_delta + math.floor(totals.reputation_bonus),
            atmosphere_bonus=base.atmosphere_bonus + totals.atmosphere_bonus,
            synergies=list(base.synergies) + describe_rules(rules),
        )

    @staticmethod
    def valuation(venue: Venue) -> int:
        """Informational worth of a venue; plays no part in resolution."""

        value = venue.capacity * 0.5
        value += venue.acoustics * 2
        value += venue.authenticity * 1.5
        value += venue.atmosphere * 1.5
        for trait in venue.traits:
            value += _TRAIT_VALUES.get(trait.type, _DEFAULT_TRAIT_VALUE)
        value += _UPGRADE_RETENTION * sum(upgrade.cost for upgrade in venue.upgrades)
        return math.floor(value)


def describe_rules(rules: Iterable[SynergyRule]) -> List[Dict[str, str]]:
    return [{"name": rule.name, "description": rule.description} for rule in rules]


__all__ = [
    "SynergyRuleTable",
    "VenueSynergyResolver",
    "VenueTraitCatalog",
    "act_matches",
    "describe_rules",
]
