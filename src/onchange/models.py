"""Data models for onchange."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Optional

from .template import Template


@dataclass(frozen=True)
class WatchTarget:
    """A filesystem path to watch. Recursion is decided process-wide."""

    path: Path


@dataclass(frozen=True)
class RawNotification:
    """A single low-level change reported by the event source."""

    path: str
    kind: str
    timestamp: float


@dataclass(frozen=True)
class LogicalChangeEvent:
    """A notification that made it through the debouncer."""

    path: str
    description: str


@dataclass(frozen=True)
class ExtensionRule:
    """Templates configured for a set of file extensions."""

    name: str
    extensions: FrozenSet[str] = field(default_factory=frozenset)
    command: Optional[Template] = None
    variables: Optional[Template] = None


@dataclass(frozen=True)
class DispatchDecision:
    """What the dispatcher will do with a rendered command."""

    run: bool
    command: str
    delay: float = 0.0
    run_async: bool = False
