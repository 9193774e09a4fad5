"""Installed-state oracle interface and an in-memory implementation."""

from typing import Dict, Iterable, Mapping, Optional, Protocol, Tuple


class InstalledStateOracle(Protocol):
    """Reports the content identity of what is currently installed."""

    def get_installed_identity(self, name: str, triplet: str) -> Optional[str]:
        """Return the installed ABI hash of ``name`` on ``triplet``, or None."""
        ...


class NothingInstalled:
    """Oracle for a clean install tree."""

    def get_installed_identity(self, name: str, triplet: str) -> Optional[str]:
        return None


class DictInstalledState:
    """Oracle backed by a ``(name, triplet) -> abi`` mapping."""

    def __init__(self, installed: Optional[Mapping[Tuple[str, str], str]] = None):
        self._installed: Dict[Tuple[str, str], str] = dict(installed or {})

    @classmethod
    def from_actions(cls, actions: Iterable) -> "DictInstalledState":
        """Treat every action of a previous plan as installed."""
        return cls({(a.name, a.triplet): a.abi for a in actions})

    def get_installed_identity(self, name: str, triplet: str) -> Optional[str]:
        return self._installed.get((name, triplet))
