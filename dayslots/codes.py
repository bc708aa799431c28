from __future__ import annotations

from typing import Iterable, Iterator, Mapping

from .models import ActivityCode

DEFAULT_CODES = (
    ActivityCode("HMTB1", "Quick gym visit"),
    ActivityCode("HMTB2", "Vibe coding"),
    ActivityCode("HMTB3", "Nap"),
    ActivityCode("HMTB4", "Reading"),
    ActivityCode("HMTB5", "Watching a movie"),
    ActivityCode("HMTB6", "Watching a drama"),
    ActivityCode("HMTB7", "Watching short videos"),
    ActivityCode("HMTB8", "Eating a meal"),
    ActivityCode("HMTB9", "Eating a snack"),
)


class CodeCatalog:
    """Ordered set of activity codes a user can tag slots with."""

    def __init__(self, codes: Iterable[ActivityCode] = DEFAULT_CODES):
        self._codes: dict[str, ActivityCode] = {}
        for item in codes:
            code = item.code.strip()
            if not code:
                raise ValueError("Activity codes must not be blank.")
            if code in self._codes:
                raise ValueError(f"Duplicate activity code: {code}")
            self._codes[code] = ActivityCode(code, item.description.strip())

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "CodeCatalog":
        return cls(ActivityCode(str(code), str(description)) for code, description in mapping.items())

    def __contains__(self, code: object) -> bool:
        return code in self._codes

    def __iter__(self) -> Iterator[ActivityCode]:
        return iter(self._codes.values())

    def __len__(self) -> int:
        return len(self._codes)

    def describe(self, code: str) -> str:
        item = self._codes.get(code)
        return item.description if item is not None else ""
