"""Simulation core for booking acts into venues.

Scores lineups, resolves venue synergies, tracks relationships between
acts across shows and scales the economy by difficulty tier.
"""

from .bills import BillAnalyzer, EmptyBillError
from .config import ConfigurationError, Settings, SettingsLoader, get_settings
from .difficulty import DifficultyScaler, DifficultyTable
from .engine import SceneEngine, resolve_show
from .relationships import LedgerView, RelationshipLedger
from .rng import DeterministicRNG, SeedSequence
from .state import LedgerStore
from .synergy import SynergyRuleTable, VenueSynergyResolver, VenueTraitCatalog

__all__ = [
    "BillAnalyzer",
    "ConfigurationError",
    "DeterministicRNG",
    "DifficultyScaler",
    "DifficultyTable",
    "EmptyBillError",
    "LedgerStore",
    "LedgerView",
    "RelationshipLedger",
    "SceneEngine",
    "SeedSequence",
    "Settings",
    "SettingsLoader",
    "SynergyRuleTable",
    "VenueSynergyResolver",
    "VenueTraitCatalog",
    "get_settings",
    "resolve_show",
]
