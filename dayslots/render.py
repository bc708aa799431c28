from __future__ import annotations

import hashlib
from pathlib import Path

from PIL import Image, ImageDraw

from .codes import CodeCatalog
from .tree import PartitionTree

PADDING = 12
ROW_HEIGHT = 22
LABEL_WIDTH = 56
BAR_WIDTH = 360
COLUMN_GAP = 24
BACKGROUND = "#ffffff"
EMPTY_FILL = "#e6e6e6"
LABEL_FILL = "#333333"
PALETTE_START = "#4f7cff"
PALETTE_END = "#ff8a3d"


def code_colors(catalog: CodeCatalog) -> dict[str, str]:
    codes = [item.code for item in catalog]
    if len(codes) == 1:
        return {codes[0]: PALETTE_START}
    return {
        code: _mix_hex(PALETTE_START, PALETTE_END, index / (len(codes) - 1))
        for index, code in enumerate(codes)
    }


def render_day(tree: PartitionTree, catalog: CodeCatalog) -> Image.Image:
    """Draw the day as two columns of root rows, each row split by its leaves."""
    colors = code_colors(catalog)
    left, right = tree.columns()
    rows = (tree.root_count + 1) // 2
    column_width = LABEL_WIDTH + BAR_WIDTH
    width = PADDING * 2 + column_width * 2 + COLUMN_GAP
    height = PADDING * 2 + rows * ROW_HEIGHT

    image = Image.new("RGB", (width, height), BACKGROUND)
    draw = ImageDraw.Draw(image)
    root_duration = tree.schema.root_duration

    for column_index, column in enumerate((left, right)):
        x0 = PADDING + column_index * (column_width + COLUMN_GAP)
        first_root = column_index * rows
        labelled: set[int] = set()
        for address in column:
            root_index = address[0]
            y0 = PADDING + (root_index - first_root) * ROW_HEIGHT
            if root_index not in labelled:
                draw.text((x0, y0 + 5), tree.label((root_index,)), fill=LABEL_FILL)
                labelled.add(root_index)

            root_start = tree.roots[root_index].start
            start, end = tree.span(address)
            bar_x = x0 + LABEL_WIDTH
            left_px = bar_x + (start - root_start) * BAR_WIDTH // root_duration
            right_px = bar_x + (end - root_start) * BAR_WIDTH // root_duration - 1
            value = tree.value_at(address)
            fill = EMPTY_FILL if value is None else colors.get(value) or _hash_color(value)
            draw.rectangle(
                [left_px, y0 + 2, max(left_px, right_px), y0 + ROW_HEIGHT - 3],
                fill=fill,
            )

    return image


def save_day_image(tree: PartitionTree, catalog: CodeCatalog, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    render_day(tree, catalog).save(path, format="PNG")
    return path


def _hash_color(value: str) -> str:
    return "#" + hashlib.md5(value.encode("utf-8")).hexdigest()[:6]


def _mix_hex(start_hex: str, end_hex: str, ratio: float) -> str:
    ratio = max(0.0, min(1.0, float(ratio)))
    s = _hex_to_rgb(start_hex)
    e = _hex_to_rgb(end_hex)
    mixed = (
        int(s[0] + (e[0] - s[0]) * ratio),
        int(s[1] + (e[1] - s[1]) * ratio),
        int(s[2] + (e[2] - s[2]) * ratio),
    )
    return f"#{mixed[0]:02x}{mixed[1]:02x}{mixed[2]:02x}"


def _hex_to_rgb(value: str) -> tuple[int, int, int]:
    h = value.strip().lstrip("#")
    if len(h) != 6:
        return (0, 0, 0)
    try:
        return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))
    except ValueError:
        return (0, 0, 0)
