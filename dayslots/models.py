from __future__ import annotations

from dataclasses import dataclass, field

Address = tuple[int, ...]


@dataclass(frozen=True)
class RootSlot:
    index: int
    start: int


@dataclass(frozen=True)
class ActivityCode:
    code: str
    description: str


@dataclass(frozen=True)
class SummaryLine:
    code: str
    description: str
    seconds: int


@dataclass(frozen=True)
class Summary:
    lines: tuple[SummaryLine, ...] = field(default_factory=tuple)
    total_seconds: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.lines
