"""Classification layer - Vendor faults to typed errors."""

from .classifier import ErrorClassifier
from .rules import CODE_RULES, TEXT_RULES, ClassificationRule, FaultView

__all__ = [
    "ErrorClassifier",
    "ClassificationRule",
    "FaultView",
    "CODE_RULES",
    "TEXT_RULES",
]
