"""
Command line parser for the simulator shell

Turns a raw input line into a Command: the tool name, the first positional
(subcommand), the remaining positionals and a flag map.
"""

import shlex
import logging
from typing import Dict, List, Optional, Union

from ..exceptions import ParseError

logger = logging.getLogger(__name__)

FlagValue = Union[str, bool]


class Command:
    """Parsed command line"""

    def __init__(self, tool: str, subcommand: str = '', args: Optional[List[str]] = None,
                 flags: Optional[Dict[str, FlagValue]] = None, raw: str = '',
                 dash_index: Optional[int] = None):
        """
        Initialize a command

        Args:
            tool: First token of the line
            subcommand: First positional argument
            args: Remaining positional arguments
            flags: Flag name to value, or True for flags given without one
            raw: The input line
            dash_index: Index into ``args`` where tokens after a bare ``--`` begin
        """
        self.tool = tool
        self.subcommand = subcommand
        self.args = list(args or [])
        self.flags = dict(flags or {})
        self.raw = raw
        self.dash_index = dash_index
        # every value given for each flag, for repeatable flags
        self.repeated: Dict[str, List[FlagValue]] = {}
        # flag name -> position of its captured value among all positionals
        self._captured: Dict[str, int] = {}

    def __repr__(self):
        return (f"Command(tool={self.tool!r}, subcommand={self.subcommand!r}, "
                f"args={self.args!r}, flags={self.flags!r})")

    def has(self, *names: str) -> bool:
        return any(name in self.flags for name in names)

    def flag(self, *names: str, default: Optional[FlagValue] = None) -> Optional[FlagValue]:
        """Value of the first of ``names`` that was given"""
        for name in names:
            if name in self.flags:
                return self.flags[name]
        return default

    def value(self, *names: str, default: Optional[str] = None) -> Optional[str]:
        """String value of a flag; None when absent or given without a value"""
        value = self.flag(*names)
        if isinstance(value, str):
            return value
        return default

    def values(self, *names: str) -> List[str]:
        """All string values given for a repeatable flag, in order"""
        values = []
        for name in names:
            values.extend(v for v in self.repeated.get(name, []) if isinstance(v, str))
        return values

    def switch(self, *names: str) -> bool:
        """
        Read a boolean flag.

        A short flag followed by a positional captures it as its value
        (``docker run -d nginx`` parses as ``d="nginx"``). Reading the flag as
        a switch puts the captured token back among the positionals.
        Single-dash clusters such as ``-it`` also count.
        """
        found = False
        for name in names:
            if name not in self.flags:
                continue
            found = True
            value = self.flags[name]
            if isinstance(value, str) and name in self._captured:
                self._restore(name, value)
        if found:
            return True
        return any(name in self.clusters() for name in names if len(name) == 1)

    def _restore(self, name: str, value: str):
        position = self._captured.pop(name)
        positionals = ([self.subcommand] if self.subcommand else []) + self.args
        position = min(position, len(positionals))
        positionals.insert(position, value)
        for other, index in self._captured.items():
            if index >= position:
                self._captured[other] = index + 1
        if self.dash_index is not None and position <= self.dash_index + 1:
            self.dash_index += 1
        self.subcommand, self.args = positionals[0], positionals[1:]
        self.flags[name] = True
        logger.debug(f"Restored '{value}' captured by -{name}")

    def clusters(self) -> str:
        """Letters of single-dash option clusters (``-it``) among the args"""
        letters = ''
        for arg in self.args[:self.dash_index]:
            if arg.startswith('-') and not arg.startswith('--') and len(arg) > 2:
                letters += arg[1:]
        return letters

    @property
    def operands(self) -> List[str]:
        """Positional arguments without option clusters"""
        head = self.args[:self.dash_index]
        operands = [arg for arg in head if not (arg.startswith('-') and len(arg) > 1)]
        if self.dash_index is not None:
            operands.extend(self.args[self.dash_index:])
        return operands

    @property
    def trailing(self) -> List[str]:
        """Arguments after a bare ``--``"""
        if self.dash_index is None:
            return []
        return self.args[self.dash_index:]


def tokenize(raw: str) -> List[str]:
    """
    Split a line on whitespace outside of quotes, dropping the quotes.

    Raises:
        ParseError: on an unterminated quote
    """
    try:
        return shlex.split(raw)
    except ValueError as e:
        quote = '"' if raw.count('"') % 2 else "'"
        logger.debug(f"Failed to tokenize {raw!r}: {e}")
        raise ParseError(f"bash: unexpected EOF while looking for matching `{quote}'")


def parse(raw: str) -> Command:
    """
    Parse an input line into a Command

    Args:
        raw: Input line

    Returns:
        Command
    """
    raw = raw.strip()
    tokens = tokenize(raw)
    if not tokens:
        return Command('', raw=raw)

    tool = tokens[0]
    positionals: List[str] = []
    flags: Dict[str, FlagValue] = {}
    captured: Dict[str, int] = {}
    repeated: Dict[str, List[FlagValue]] = {}
    dash_index = None

    i = 1
    while i < len(tokens):
        token = tokens[i]
        if dash_index is not None:
            positionals.append(token)
        elif token == '--':
            dash_index = len(positionals)
        elif token.startswith('--') or (token.startswith('-') and len(token) == 2):
            if token.startswith('--') and '=' in token:
                name, value = token[2:].split('=', 1)
                flags[name] = value
            else:
                name = token.lstrip('-') if token.startswith('--') else token[1:]
                if i + 1 < len(tokens) and not tokens[i + 1].startswith('-'):
                    i += 1
                    flags[name] = tokens[i]
                    captured[name] = len(positionals)
                else:
                    flags[name] = True
            repeated.setdefault(name, []).append(flags[name])
        else:
            positionals.append(token)
        i += 1

    subcommand = positionals[0] if positionals else ''
    args = positionals[1:]
    if dash_index is not None:
        dash_index = max(dash_index - 1, 0) if subcommand else dash_index

    command = Command(tool, subcommand, args, flags, raw, dash_index)
    command._captured = captured
    command.repeated = repeated
    return command
