"""Pairwise relationship ledger between acts."""

from __future__ import annotations

import copy
import logging
from itertools import combinations
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .config import Settings, get_settings, load_yaml_resource
from .models import (
    Act,
    Relationship,
    RelationshipEvent,
    RelationshipEventType,
    RelationshipSynergy,
    RelationshipUpdate,
)
from .rng import DeterministicRNG

logger = logging.getLogger(__name__)

PairKey = Tuple[str, str]

_DRAMA_TEMPLATES: Optional[Dict[str, List[str]]] = None


def _load_drama_templates() -> Dict[str, List[str]]:
    global _DRAMA_TEMPLATES
    if _DRAMA_TEMPLATES is None:
        data = load_yaml_resource("drama.yaml").get("relationship_drama", {})
        _DRAMA_TEMPLATES = {
            "rivals": list(data.get("rivals", [])),
            "allies": list(data.get("allies", [])),
        }
    return _DRAMA_TEMPLATES


def pair_key(first_id: str, second_id: str) -> PairKey:
    """Order-independent key for a pair of acts."""

    if first_id <= second_id:
        return first_id, second_id
    return second_id, first_id


def unique_pairs(act_ids: Iterable[str]) -> Iterator[PairKey]:
    seen: List[str] = []
    for act_id in act_ids:
        if act_id not in seen:
            seen.append(act_id)
    for first, second in combinations(seen, 2):
        yield first, second


class LedgerView:
    """Read-only queries over a set of relationships."""

    def __init__(
        self,
        relationships: Mapping[PairKey, Relationship] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._relationships: Dict[PairKey, Relationship] = dict(relationships or {})

    def __len__(self) -> int:
        return len(self._relationships)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return pair_key(*pair) in self._relationships

    def get(self, first_id: str, second_id: str) -> float:
        relationship = self._relationships.get(pair_key(first_id, second_id))
        return relationship.affinity if relationship else 0.0

    def history(self, first_id: str, second_id: str) -> List[RelationshipEvent]:
        relationship = self._relationships.get(pair_key(first_id, second_id))
        return list(relationship.history) if relationship else []

    def relationships(self) -> List[Relationship]:
        return [copy.deepcopy(item) for item in self._relationships.values()]

    def relationships_of(self, act_id: str) -> List[Tuple[str, float]]:
        results: List[Tuple[str, float]] = []
        for relationship in self._relationships.values():
            other = relationship.other(act_id)
            if other is not None:
                results.append((other, relationship.affinity))
        return results

    def synergy_for(
        self,
        first_id: str,
        second_id: str,
        *,
        names: Mapping[str, str] | None = None,
    ) -> List[RelationshipSynergy]:
        """Named modifiers unlocked by how two acts get along."""

        affinity = self.get(first_id, second_id)
        names = names or {}
        first_name = names.get(first_id, first_id)
        second_name = names.get(second_id, second_id)
        if affinity > 80:
            return [
                RelationshipSynergy(
                    "Perfect Harmony",
                    f"{first_name} and {second_name} are in perfect sync",
                    1.5,
                )
            ]
        if affinity > 50:
            return [RelationshipSynergy("Good Chemistry", "Bands work well together", 1.2)]
        if affinity < -80:
            # Drama sells tickets.
            return [
                RelationshipSynergy(
                    "Bitter Rivals", "The tension is palpable but draws a crowd", 1.3
                )
            ]
        if affinity < -50:
            return [RelationshipSynergy("Bad Blood", "Bands clearly don't get along", 0.8)]
        return []

    def lineup_conflicts(self, act_ids: Iterable[str]) -> List[str]:
        conflicts: List[str] = []
        for first, second in unique_pairs(act_ids):
            affinity = self.get(first, second)
            if affinity < self._settings.conflict_refuse_threshold:
                conflicts.append(f"{first} and {second} won't play together due to bad blood")
            elif affinity < self._settings.conflict_tension_threshold:
                conflicts.append(f"Tension between {first} and {second} may cause problems")
        return conflicts

    def lineup_multiplier(self, act_ids: Iterable[str]) -> float:
        """Average pair affinity mapped onto 0.5..1.5."""

        affinities = [self.get(a, b) for a, b in unique_pairs(act_ids)]
        if not affinities:
            return 1.0
        return 1 + (sum(affinities) / len(affinities)) / 200

    def drama_event(
        self, first: Act, second: Act, rng: DeterministicRNG
    ) -> Optional[str]:
        affinity = self.get(first.id, second.id)
        threshold = self._settings.relationship_drama_threshold
        templates = _load_drama_templates()
        if affinity < -threshold:
            pool = templates["rivals"]
        elif affinity > threshold:
            pool = templates["allies"]
        else:
            return None
        if not pool:
            return None
        return rng.choice(pool).format(first=first.name, second=second.name)

    def to_dict(self) -> Dict[str, object]:
        return {
            "relationships": [
                {
                    "first_id": item.first_id,
                    "second_id": item.second_id,
                    "affinity": item.affinity,
                    "history": [
                        {
                            "type": event.type.value,
                            "description": event.description,
                            "impact": event.impact,
                            "round": event.round,
                        }
                        for event in item.history
                    ],
                }
                for item in self._relationships.values()
            ]
        }


class RelationshipLedger(LedgerView):
    """The canonical, mutable relationship store for one game session."""

    def update(
        self,
        first_id: str,
        second_id: str,
        delta: float,
        event_type: RelationshipEventType = RelationshipEventType.COLLABORATION,
        description: str = "",
        round_number: int = 0,
    ) -> float:
        """Adjust affinity within bounds and append the event. Returns the new affinity."""

        if first_id == second_id:
            raise ValueError(f"Act {first_id} cannot have a relationship with itself")
        key = pair_key(first_id, second_id)
        relationship = self._relationships.get(key)
        if relationship is None:
            relationship = Relationship(first_id=key[0], second_id=key[1])
            self._relationships[key] = relationship
        relationship.affinity = max(
            self._settings.affinity_min,
            min(self._settings.affinity_max, relationship.affinity + delta),
        )
        relationship.history.append(
            RelationshipEvent(
                type=RelationshipEventType(event_type),
                description=description,
                impact=delta,
                round=round_number,
            )
        )
        return relationship.affinity

    def batch_update_from_show(
        self, act_ids: Iterable[str], success: bool, round_number: int
    ) -> List[RelationshipUpdate]:
        if success:
            delta = self._settings.success_delta
            event_type = RelationshipEventType.SHOW_TOGETHER
            description = "Successful show together"
        else:
            delta = self._settings.failure_delta
            event_type = RelationshipEventType.CONFLICT
            description = "Show didn't go well, tensions rose"
        updates: List[RelationshipUpdate] = []
        for first, second in unique_pairs(act_ids):
            self.update(first, second, delta, event_type, description, round_number)
            updates.append(RelationshipUpdate(first, second, delta))
        logger.debug(
            "Applied %d relationship updates for round %d (success=%s)",
            len(updates),
            round_number,
            success,
        )
        return updates

    def snapshot(self) -> LedgerView:
        """Detached read-only copy for hypothetical resolutions."""

        return LedgerView(copy.deepcopy(self._relationships), self._settings)

    def clear(self) -> None:
        self._relationships.clear()

    @classmethod
    def from_dict(
        cls, data: Mapping[str, object], settings: Settings | None = None
    ) -> "RelationshipLedger":
        ledger = cls(settings=settings)
        for entry in data.get("relationships", []) or []:
            key = pair_key(entry["first_id"], entry["second_id"])
            ledger._relationships[key] = Relationship(
                first_id=key[0],
                second_id=key[1],
                affinity=float(entry.get("affinity", 0.0)),
                history=[
                    RelationshipEvent(
                        type=RelationshipEventType(event["type"]),
                        description=event.get("description", ""),
                        impact=event.get("impact", 0),
                        round=int(event.get("round", 0)),
                    )
                    for event in entry.get("history", [])
                ],
            )
        return ledger


__all__ = ["LedgerView", "RelationshipLedger", "pair_key", "unique_pairs"]
