"""
Output formatting shared by the simulated tools

Fixed-width tables, JSON/YAML documents and ANSI status colouring. All
output is plain strings with embedded escape codes; rendering them is the
host's job.
"""

import re
import json
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union

from colorama import Fore, Style

RESET = Style.RESET_ALL
BOLD = Style.BRIGHT
RED = Fore.RED
GREEN = Fore.GREEN
YELLOW = Fore.YELLOW
BLUE = Fore.BLUE
CYAN = Fore.CYAN
GRAY = Fore.LIGHTBLACK_EX
WHITE = Fore.WHITE

# Extra width a coloured cell declares so the escape codes don't eat padding
COLOR_ALLOWANCE = 9

ANSI_PATTERN = re.compile(r'\x1b\[[0-9;]*m')

Cell = Union[str, Tuple[str, int]]


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{RESET}"


def strip_ansi(text: str) -> str:
    """Remove colour escape codes"""
    return ANSI_PATTERN.sub('', text)


def pad_right(text: str, width: int) -> str:
    return text if len(text) >= width else text + ' ' * (width - len(text))


def table_row(cells: Sequence[Tuple[str, int]]) -> str:
    """Pad each (value, width) cell and join with two spaces"""
    return '  '.join(pad_right(str(value), width) for value, width in cells)


def colored_cell(text: str, color: str, width: int) -> Tuple[str, int]:
    """Cell whose declared width includes the escape code allowance"""
    return colorize(text, color), width + COLOR_ALLOWANCE


def render_table(columns: Sequence[Tuple[str, int]], rows: Iterable[Sequence[Cell]]) -> str:
    """
    Render a table with a bold header row

    Args:
        columns: (header, width) pairs
        rows: Row cells; a plain string takes the column width, a
            (value, width) tuple overrides it

    Returns:
        Header and rows joined by newlines
    """
    lines = [colorize(table_row(columns), BOLD)]
    for row in rows:
        cells = []
        for (_, width), cell in zip(columns, row):
            if isinstance(cell, tuple):
                cells.append(cell)
            else:
                cells.append((cell, width))
        lines.append(table_row(cells))
    return '\n'.join(lines)


def pod_status_color(status: str) -> str:
    if status == 'Running':
        return GREEN
    if status in ('Pending', 'ContainerCreating'):
        return YELLOW
    return RED


def _yaml_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(',', ':'))
    return str(value)


def format_output(items: List[Dict[str, Any]], output_format: str) -> str:
    """
    Format raw records for ``-o json`` or ``-o yaml``

    JSON wraps the records in an ``items`` array. YAML is a flat
    ``key: value`` dump per record, nested values inlined as compact JSON,
    records separated by ``---``.
    """
    if output_format == 'json':
        return json.dumps({"items": items}, indent=2)
    if output_format == 'yaml':
        return '\n---\n'.join(
            '\n'.join(f"{key}: {_yaml_scalar(value)}" for key, value in item.items())
            for item in items
        )
    return ''


def format_age(created: float, now: float) -> str:
    """
    Format an age the way kubectl does

    Args:
        created: Creation timestamp
        now: Current timestamp

    Returns:
        Age string, e.g. "45s", "3m", "2h", "7d"
    """
    seconds = max(int(now - created), 0)
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    return f"{hours // 24}d"


def humanize_duration(created: float, now: float) -> str:
    """Relative time as docker prints it, e.g. "2 weeks", "About a minute" """
    seconds = max(int(now - created), 0)
    if seconds < 1:
        return "Less than a second"
    if seconds < 60:
        return f"{seconds} seconds"
    minutes = seconds // 60
    if minutes == 1:
        return "About a minute"
    if minutes < 60:
        return f"{minutes} minutes"
    hours = minutes // 60
    if hours == 1:
        return "About an hour"
    if hours < 48:
        return f"{hours} hours"
    days = hours // 24
    if days < 14:
        return f"{days} days"
    if days < 60:
        return f"{days // 7} weeks"
    if days < 730:
        return f"{days // 30} months"
    return f"{days // 365} years"


def time_ago(created: float, now: float) -> str:
    return f"{humanize_duration(created, now)} ago"


def render_error(error) -> str:
    """Display text for a KubeSimError"""
    text = colorize(error.message, RED) if error.highlight else error.message
    if error.hint:
        text += f"\n{error.hint}"
    return text
