"""
Actions Module

Provides:
- Action execution against external collaborators
"""

from .executor import ActionExecutor, ActionSkipped

__all__ = [
    "ActionExecutor",
    "ActionSkipped"
]
