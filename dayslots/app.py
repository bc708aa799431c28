from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
from datetime import datetime
from pathlib import Path
from typing import Iterable, Sequence

from . import __version__
from .config import AppConfig, load_config
from .database import SlotStore
from .fill import OutOfRangeError, start_now
from .models import Address, Summary
from .paths import config_path, database_path, ensure_directories
from .render import save_day_image
from .schema import parse_clock
from .selection import resolve_range
from .snapshot import load_snapshot, save_snapshot
from .summary import aggregate, build_report, format_duration, summarize
from .tree import ConfirmCallback, MergeOutcome, PartitionTree

logger = logging.getLogger(__name__)


class DaySession:
    """Command surface over one day's partition tree.

    Every mutating command runs to completion on the tree first and only
    then writes the snapshot to the store, if there is one.
    """

    def __init__(self, config: AppConfig, store: SlotStore | None = None):
        self.config = config
        self.catalog = config.catalog()
        self.tree = PartitionTree(config.schema(), config.root_schedule())
        self.store = store
        if store is not None:
            load_snapshot(store, self.tree)

    @classmethod
    def open(cls, data_dir: Path | None = None) -> "DaySession":
        base = ensure_directories(data_dir)
        config = load_config(config_path(base))
        try:
            store = SlotStore(database_path(base))
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Slot store unavailable, keeping the day in memory: %s", exc)
            store = None
        return cls(config, store)

    def leaves(self) -> list[Address]:
        return self.tree.leaves()

    def select_range(self, anchor: Sequence[int], target: Sequence[int]) -> list[Address]:
        return resolve_range(self.tree, anchor, target)

    def split(self, address: Sequence[int]) -> bool:
        changed = self.tree.split(address)
        if changed:
            self._persist()
        return changed

    def merge(
        self,
        address: Sequence[int],
        target_depth: int,
        confirm: ConfirmCallback | None = None,
    ) -> MergeOutcome:
        outcome = self.tree.merge(address, target_depth, confirm)
        if outcome in (MergeOutcome.MERGED, MergeOutcome.CLEARED):
            self._persist()
        return outcome

    def assign(self, addresses: Iterable[Sequence[int]], code: str | None) -> int:
        written = self.tree.assign(addresses, code)
        if written:
            self._persist()
        return written

    def clear(self, addresses: Iterable[Sequence[int]]) -> int:
        return self.assign(addresses, None)

    def start_now(self, code: str, now: datetime | int | None = None) -> Address:
        if now is None:
            now = datetime.now()
        seconds = _seconds_of_day(now) if isinstance(now, datetime) else int(now)
        address = start_now(self.tree, code, seconds)
        self._persist()
        return address

    def aggregate(self) -> dict[str, int]:
        return aggregate(self.tree)

    def summary(self) -> Summary:
        return summarize(self.tree, self.catalog)

    def report(self) -> str | None:
        return build_report(self.summary())

    def export_image(self, path: Path) -> Path:
        return save_day_image(self.tree, self.catalog, path)

    def reset(self) -> None:
        self.tree.reset()
        self._persist()

    def _persist(self) -> None:
        if self.store is not None and save_snapshot(self.store, self.tree):
            logger.debug("Saved snapshot to %s", self.store.path)


def _seconds_of_day(moment: datetime) -> int:
    return moment.hour * 3600 + moment.minute * 60 + moment.second


def _leaf_for(tree: PartitionTree, text: str) -> Address:
    address = tree.leaf_at_time(parse_clock(text))
    if address is None:
        raise OutOfRangeError(f"{text} is outside the tracked day.")
    return address


def _time_range(tree: PartitionTree, start: str, end: str | None) -> list[Address]:
    anchor = _leaf_for(tree, start)
    if end is None:
        return [anchor]
    return resolve_range(tree, anchor, _leaf_for(tree, end))


def _prompt_yes_no(question: str) -> bool:
    if not sys.stdin.isatty():
        return False
    answer = input(f"{question} [y/N] ").strip().lower()
    return answer in {"y", "yes"}


def _require_code(session: DaySession, code: str) -> str:
    if code not in session.catalog:
        known = ", ".join(item.code for item in session.catalog)
        raise ValueError(f"Unknown activity code {code!r}. Known codes: {known}")
    return code


def _print_leaves(session: DaySession) -> None:
    tree = session.tree
    for address, depth, leaf in tree.visible_leaves():
        label = "  " * depth + tree.label(address)
        if leaf.value is None:
            display = "--"
        else:
            display = f"{leaf.value}  {session.catalog.describe(leaf.value)}".rstrip()
        print(f"{label:<14}{display}")


def _print_summary(summary: Summary) -> None:
    if summary.is_empty:
        print("No records yet.")
        return
    for line in summary.lines:
        print(f"{line.code:<8}{format_duration(line.seconds):>9}  {line.description}")
    print(f"{'Total':<8}{format_duration(summary.total_seconds):>9}")


def _run(session: DaySession, args: argparse.Namespace) -> int:
    tree = session.tree
    command = args.command

    if command == "show":
        _print_leaves(session)
    elif command == "codes":
        for item in session.catalog:
            print(f"{item.code:<8}{item.description}")
    elif command == "split":
        address = _leaf_for(tree, args.time)
        if not session.split(address):
            print(f"{tree.label(address)} is already at the finest granularity.")
            return 1
        print(f"Split {tree.label(address)}.")
    elif command == "merge":
        address = _leaf_for(tree, args.time)

        def confirm(codes: frozenset) -> bool:
            if args.yes:
                return True
            return _prompt_yes_no(f"Mixed codes ({', '.join(sorted(codes))}) will be cleared. Continue?")

        outcome = session.merge(address, args.depth, confirm)
        if outcome is MergeOutcome.NOOP:
            print("Nothing to merge.")
        elif outcome is MergeOutcome.ABORTED:
            print("Merge cancelled.")
            return 1
        elif outcome is MergeOutcome.CLEARED:
            print(f"Merged {tree.label(address[: args.depth + 1])}; mixed codes were cleared.")
        else:
            print(f"Merged {tree.label(address[: args.depth + 1])}.")
    elif command == "assign":
        code = _require_code(session, args.code)
        written = session.assign(_time_range(tree, args.start, args.end), code)
        print(f"Tagged {written} slot(s) with {code}.")
    elif command == "clear":
        written = session.clear(_time_range(tree, args.start, args.end))
        print(f"Cleared {written} slot(s).")
    elif command == "now":
        code = _require_code(session, args.code)
        now = parse_clock(args.at) if args.at else None
        address = session.start_now(code, now)
        print(f"Started {code} at {tree.label(address)}.")
    elif command == "summary":
        _print_summary(session.summary())
    elif command == "report":
        report = session.report()
        if report is None:
            print("No records yet.")
            return 1
        print(report)
    elif command == "render":
        path = session.export_image(Path(args.output))
        print(f"Wrote {path}")
    elif command == "reset":
        session.reset()
        print("Cleared the day.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dayslots")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding config and state")
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("show", help="List visible slots and their codes")
    commands.add_parser("codes", help="List activity codes")

    split = commands.add_parser("split", help="Split the slot containing TIME")
    split.add_argument("time")

    merge = commands.add_parser("merge", help="Merge the slot containing TIME back up")
    merge.add_argument("time")
    merge.add_argument("--depth", type=int, default=0, help="Depth to merge into (0 = root slot)")
    merge.add_argument("--yes", action="store_true", help="Clear mixed codes without asking")

    assign = commands.add_parser("assign", help="Tag slots from START through END with CODE")
    assign.add_argument("code")
    assign.add_argument("start")
    assign.add_argument("end", nargs="?")

    clear = commands.add_parser("clear", help="Clear slots from START through END")
    clear.add_argument("start")
    clear.add_argument("end", nargs="?")

    now = commands.add_parser("now", help="Start CODE now and fill one slot ahead")
    now.add_argument("code")
    now.add_argument("--at", default=None, help="Use this time instead of the clock")

    commands.add_parser("summary", help="Show totals per code")
    commands.add_parser("report", help="Print the plain-text report")

    render = commands.add_parser("render", help="Write the day as a PNG image")
    render.add_argument("output")

    commands.add_parser("reset", help="Clear every slot")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.version:
        print(__version__)
        return 0
    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        session = DaySession.open(args.data_dir)
        return _run(session, args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
