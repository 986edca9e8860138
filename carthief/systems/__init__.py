"""Collaborating systems: heat, economy, crackdown policy, notoriety."""

from .heat import HeatSystem, HeatTier, HeatMitigationRecord, execute_heat_mitigation
from .economy import EconomySystem, ExpenseReport
from .crackdown import CrackdownPolicyService, CrackdownPolicy, TierChange, TIER_PRESSURE
from .notoriety import NotorietyService, NotorietyLevel, NotorietyChange, NOTORIETY_LEVELS

__all__ = [
    "HeatSystem",
    "HeatTier",
    "HeatMitigationRecord",
    "execute_heat_mitigation",
    "EconomySystem",
    "ExpenseReport",
    "CrackdownPolicyService",
    "CrackdownPolicy",
    "TierChange",
    "TIER_PRESSURE",
    "NotorietyService",
    "NotorietyLevel",
    "NotorietyChange",
    "NOTORIETY_LEVELS",
]
