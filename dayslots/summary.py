from __future__ import annotations

from collections import defaultdict
from typing import Mapping

from .codes import CodeCatalog
from .models import Summary, SummaryLine
from .tree import PartitionTree

REPORT_TITLE = "Today's activity report"


def aggregate(tree: PartitionTree) -> dict[str, int]:
    totals: dict[str, int] = defaultdict(int)
    for _address, depth, leaf in tree.visible_leaves():
        if leaf.value is not None:
            totals[leaf.value] += tree.schema.duration(depth)
    return dict(totals)


def truncate_totals(raw: Mapping[str, int]) -> dict[str, int]:
    # Each code is floored on its own; the grand total is the sum of these.
    return {code: (int(seconds) // 60) * 60 for code, seconds in raw.items()}


def summarize(tree: PartitionTree, catalog: CodeCatalog | None = None) -> Summary:
    truncated = truncate_totals(aggregate(tree))
    ordered = sorted(truncated.items(), key=lambda item: (-item[1], item[0]))
    lines = tuple(
        SummaryLine(
            code=code,
            description=catalog.describe(code) if catalog is not None else "",
            seconds=seconds,
        )
        for code, seconds in ordered
    )
    return Summary(lines=lines, total_seconds=sum(line.seconds for line in lines))


def format_duration(total_seconds: int) -> str:
    hours, minutes = divmod(max(0, int(total_seconds)) // 60, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    return f"{minutes}m"


def format_clock(total_seconds: int) -> str:
    minutes = max(0, int(total_seconds)) // 60
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def build_report(summary: Summary) -> str | None:
    """Plain-text report meant for pasting elsewhere, or None when empty."""
    if summary.is_empty:
        return None

    lines = [REPORT_TITLE, ""]
    for line in summary.lines:
        lines.append(f"{line.code}: {format_clock(line.seconds)} ({line.description})")
    lines.append("")
    lines.append(f"Total: {format_clock(summary.total_seconds)}")
    return "\n".join(lines)
