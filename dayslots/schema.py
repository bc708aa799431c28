from __future__ import annotations

from dataclasses import dataclass

from .models import RootSlot

DEFAULT_LEVEL_DURATIONS = (1800, 600, 60, 10)
DEFAULT_DAY_START = 7 * 3600 + 30 * 60
DEFAULT_DAY_END = 23 * 3600 + 30 * 60
SECONDS_PER_DAY = 24 * 3600


@dataclass(frozen=True)
class LevelSchema:
    """Durations of each nesting depth, coarsest first.

    Every duration must divide its parent's exactly; the quotient is the
    number of children a node at the coarser depth splits into.
    """

    durations: tuple[int, ...] = DEFAULT_LEVEL_DURATIONS

    def __post_init__(self) -> None:
        durations = tuple(int(value) for value in self.durations)
        if not durations:
            raise ValueError("At least one level is required.")
        if any(value <= 0 for value in durations):
            raise ValueError(f"Level durations must be positive: {durations}")
        for coarse, fine in zip(durations, durations[1:]):
            if fine >= coarse or coarse % fine:
                raise ValueError(
                    f"Level duration {fine}s does not evenly subdivide {coarse}s."
                )
        object.__setattr__(self, "durations", durations)

    @property
    def max_depth(self) -> int:
        return len(self.durations) - 1

    @property
    def root_duration(self) -> int:
        return self.durations[0]

    def duration(self, depth: int) -> int:
        return self.durations[depth]

    def branching(self, depth: int) -> int:
        if depth >= self.max_depth:
            return 0
        return self.durations[depth] // self.durations[depth + 1]

    def leaf_count(self, depth: int) -> int:
        """Number of depth-``depth`` intervals inside one root slot."""
        count = 1
        for level in range(depth):
            count *= self.branching(level)
        return count


def build_root_schedule(
    schema: LevelSchema,
    day_start: int = DEFAULT_DAY_START,
    day_end: int = DEFAULT_DAY_END,
) -> list[RootSlot]:
    step = schema.root_duration
    span = int(day_end) - int(day_start)
    if day_start < 0 or day_end > SECONDS_PER_DAY:
        raise ValueError("Day range must lie within a single day.")
    if span <= 0 or span % step:
        raise ValueError(
            f"Day range {format_clock_label(day_start)}-{format_clock_label(day_end)} "
            f"is not a positive multiple of {step}s."
        )
    return [
        RootSlot(index=index, start=int(day_start) + index * step)
        for index in range(span // step)
    ]


def parse_clock(value: str) -> int:
    """Parse ``H:MM`` or ``H:MM:SS`` into seconds since midnight."""
    text = (value or "").strip()
    parts = text.split(":")
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"Expected H:MM or H:MM:SS, got {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0
    if minutes >= 60 or seconds >= 60 or hours > 24:
        raise ValueError(f"Invalid clock time: {value!r}")
    total = hours * 3600 + minutes * 60 + seconds
    if total > SECONDS_PER_DAY:
        raise ValueError(f"Invalid clock time: {value!r}")
    return total


def format_clock_label(seconds: int) -> str:
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    if secs:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{hours}:{minutes:02d}"

