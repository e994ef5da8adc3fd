"""
State Providers

Time-triggered rules are evaluated against a snapshot of current domain
state: a list of context trees such as
{"appointment": {"id": "A1", "fecha": "tomorrow", "estado": "programada"}}.
Providers normalize appointment dates into the "today" / "tomorrow" tokens
the default rules compare against.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any


class StateProvider(ABC):
    """Supplies the state snapshot for one tick"""

    @abstractmethod
    async def snapshot(self) -> List[Dict[str, Any]]:
        """Current context trees, one per candidate entity"""


class StaticStateProvider(StateProvider):
    """Returns a fixed list of contexts until replaced"""

    def __init__(self, contexts: Optional[List[Dict[str, Any]]] = None):
        self._contexts: List[Dict[str, Any]] = list(contexts or [])

    def set(self, contexts: List[Dict[str, Any]]) -> None:
        self._contexts = list(contexts)

    async def snapshot(self) -> List[Dict[str, Any]]:
        return list(self._contexts)
