"""
Automation Module

Provides:
- Automation engine lifecycle and facade
- State providers for time-triggered rules
"""

from .engine import AutomationEngine
from .state import StateProvider, StaticStateProvider

__all__ = [
    "AutomationEngine",
    "StateProvider",
    "StaticStateProvider"
]
