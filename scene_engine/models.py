"""Core data models for the scene engine."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional


@dataclass(frozen=True)
class ActTrait:
    """A named act characteristic.

    ``tags`` holds canonical symbolic tags. When present they are matched
    exactly; the free-text name and description are always searched as a
    fallback so hand-authored traits keep working.
    """

    name: str
    description: str = ""
    tags: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", frozenset(item.lower() for item in self.tags))

    def matches(self, tag: str) -> bool:
        needle = tag.lower()
        if needle in self.tags:
            return True
        return needle in self.name.lower() or needle in self.description.lower()


@dataclass(frozen=True)
class Act:
    id: str
    name: str
    genre: str
    subgenres: List[str] = field(default_factory=list)
    popularity: float = 0
    authenticity: float = 0
    energy: float = 0
    technical_skill: float = 0
    traits: List[ActTrait] = field(default_factory=list)
    formed_year: Optional[int] = None

    def has_trait(self, *tags: str) -> bool:
        return any(trait.matches(tag) for trait in self.traits for tag in tags)


class VenueTraitType(str, Enum):
    ATMOSPHERE = "atmosphere"
    TECHNICAL = "technical"
    SOCIAL = "social"
    LEGENDARY = "legendary"


@dataclass(frozen=True)
class VenueTrait:
    id: str
    name: str
    type: VenueTraitType
    description: str = ""
    synergy_tags: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class VenueUpgrade:
    id: str
    name: str
    cost: float


@dataclass(frozen=True)
class Venue:
    id: str
    name: str
    capacity: int
    acoustics: float = 0
    authenticity: float = 0
    atmosphere: float = 0
    traits: List[VenueTrait] = field(default_factory=list)
    upgrades: List[VenueUpgrade] = field(default_factory=list)
    rent: float = 0
    has_bar: bool = False
    venue_type: Optional[str] = None


@dataclass(frozen=True)
class BillDynamics:
    """Lineup quality scores, each clamped to 0..100."""

    chemistry_score: float
    drama_risk: float
    crowd_appeal: float
    scene_alignment: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class Bill:
    headliner: str
    openers: List[str]
    dynamics: BillDynamics


@dataclass(frozen=True)
class DramaOutcome:
    occurred: bool
    description: Optional[str] = None


class RelationshipEventType(str, Enum):
    SHOW_TOGETHER = "show_together"
    CONFLICT = "conflict"
    COLLABORATION = "collaboration"
    DRAMA = "drama"


@dataclass(frozen=True)
class RelationshipEvent:
    type: RelationshipEventType
    description: str
    impact: float
    round: int = 0


@dataclass
class Relationship:
    """Pairwise history between two acts; ``first_id`` sorts before ``second_id``."""

    first_id: str
    second_id: str
    affinity: float = 0.0
    history: List[RelationshipEvent] = field(default_factory=list)

    def other(self, act_id: str) -> Optional[str]:
        if act_id == self.first_id:
            return self.second_id
        if act_id == self.second_id:
            return self.first_id
        return None


@dataclass(frozen=True)
class RelationshipSynergy:
    name: str
    description: str
    modifier: float


@dataclass(frozen=True)
class RelationshipUpdate:
    first_id: str
    second_id: str
    delta: float


@dataclass(frozen=True)
class SynergyEffects:
    attendance_multiplier: Optional[float] = None
    revenue_multiplier: Optional[float] = None
    reputation_bonus: Optional[float] = None
    fan_conversion_multiplier: Optional[float] = None
    atmosphere_bonus: Optional[float] = None


@dataclass(frozen=True)
class SynergyRule:
    id: str
    venue_trait: str
    name: str
    description: str
    effects: SynergyEffects
    tag: Optional[str] = None


class ScalingAxis(str, Enum):
    COST = "cost"
    EXPECTATION = "expectation"
    RISK = "risk"


@dataclass(frozen=True)
class DifficultyTier:
    name: str
    start: int
    end: Optional[int]
    cost_multiplier: float
    expectation_multiplier: float
    risk_multiplier: float
    survival_rate: float = 0.0

    def contains(self, round_number: int) -> bool:
        if round_number < self.start:
            return False
        return self.end is None or round_number <= self.end

    def multiplier(self, axis: ScalingAxis) -> float:
        return {
            ScalingAxis.COST: self.cost_multiplier,
            ScalingAxis.EXPECTATION: self.expectation_multiplier,
            ScalingAxis.RISK: self.risk_multiplier,
        }[axis]


@dataclass(frozen=True)
class EconomicProjection:
    round: int
    tier: str
    average_show_revenue: float
    average_show_cost: float
    profit_margin: float
    survival_rate: float
    optimal_ticket_price: int


@dataclass(frozen=True)
class ShowResult:
    """Outcome of one resolved show. Plain data, safe to serialize."""

    attendance: int
    revenue: int
    reputation_delta: int
    fans_delta: int
    dynamics: BillDynamics
    headliner: str = ""
    openers: List[str] = field(default_factory=list)
    costs: int = 0
    success: bool = False
    tier: str = ""
    ticket_price: int = 0
    atmosphere_bonus: float = 0
    synergies: List[Dict[str, str]] = field(default_factory=list)
    drama: Optional[str] = None
    relationship_events: List[str] = field(default_factory=list)
    relationship_updates: List[RelationshipUpdate] = field(default_factory=list)

    @property
    def profit(self) -> int:
        return self.revenue - self.costs

    def to_dict(self) -> Dict[str, object]:
        payload = asdict(self)
        payload["profit"] = self.profit
        return payload


__all__ = [
    "Act",
    "ActTrait",
    "Bill",
    "BillDynamics",
    "DifficultyTier",
    "DramaOutcome",
    "EconomicProjection",
    "Relationship",
    "RelationshipEvent",
    "RelationshipEventType",
    "RelationshipSynergy",
    "RelationshipUpdate",
    "ScalingAxis",
    "ShowResult",
    "SynergyEffects",
    "SynergyRule",
    "Venue",
    "VenueTrait",
    "VenueTraitType",
    "VenueUpgrade",
]
