"""
Configuration Module

Provides:
- Engine settings with defaults
- Environment overrides
"""

from .settings import AutomationConfig, ENV_PREFIX

__all__ = [
    "AutomationConfig",
    "ENV_PREFIX"
]
