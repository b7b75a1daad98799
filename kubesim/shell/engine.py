"""
Command simulation engine

The engine is the single entry point hosts talk to: it parses an input
line, routes it to the registered tool handler or a built-in utility and
returns the text to display. Handlers are plain callables taking a parsed
Command; tool modules add theirs through register_commands().
"""

import re
import logging
from typing import Callable, Dict, List, Optional

from ..config import SimulatorSettings
from ..core.state import StateStore
from ..exceptions import ParseError
from .files import Workspace
from .formatting import BOLD, RESET, RED, GREEN, CYAN, GRAY, colorize, render_error
from .parser import Command, parse, tokenize

logger = logging.getLogger(__name__)

# Returned by `clear`; the host clears its screen instead of printing it
CLEAR_SENTINEL = '\x1b[CLEAR]'

TOP_LEVEL_COMMANDS = ['kubectl', 'docker', 'clear', 'help', 'history', 'whoami', 'cat', 'ls', 'echo']

KUBECTL_COMPLETIONS = ['get', 'apply', 'delete', 'describe', 'scale', 'rollout', 'logs', 'exec',
                       'top', 'create', 'expose']

KUBECTL_RESOURCE_COMPLETIONS = ['pods', 'deployments', 'services', 'nodes', 'namespaces', 'replicasets',
                                'configmaps', 'secrets', 'events', 'all']

DOCKER_COMPLETIONS = ['run', 'ps', 'stop', 'rm', 'images', 'build', 'logs', 'network', 'volume',
                      'pull', 'exec']


def help_text() -> str:
    return '\n'.join([
        f"{BOLD}{CYAN}K8s & Docker Learning Platform - Terminal Simulator{RESET}",
        "",
        f"{BOLD}Available commands:{RESET}",
        "",
        f"  {GREEN}kubectl{RESET}  - Kubernetes command-line tool",
        "    get, apply, delete, describe, scale, rollout, logs, exec, top, create, expose",
        "",
        f"  {GREEN}docker{RESET}   - Docker container management",
        "    run, ps, stop, rm, images, build, logs, network, volume, pull, exec",
        "",
        f"  {GREEN}Utilities:{RESET}",
        "    help, clear, history, whoami, hostname, pwd, ls, cat, echo",
        "",
        colorize("Use arrow keys for command history. Tab for auto-completion.", GRAY),
    ])


class SimulatorEngine:
    """
    Parses and executes simulator input lines.

    Each engine owns its StateStore; two engines never share state.
    """

    def __init__(self, store: Optional[StateStore] = None,
                 settings: Optional[SimulatorSettings] = None,
                 workspace: Optional[Workspace] = None):
        """
        Initialize the engine and register the tool commands.

        Args:
            store: State store; a freshly seeded one when omitted
            settings: Simulator settings, used when creating the store
            workspace: Files visible to ls, cat and -f
        """
        self.store = store or StateStore(settings)
        self.settings = self.store.settings
        self.workspace = workspace or Workspace()
        self.history: List[str] = []
        self.commands: Dict[str, Callable[[Command], str]] = {}
        self.utilities: Dict[str, Callable[[Command], str]] = {
            'clear': lambda cmd: CLEAR_SENTINEL,
            'help': lambda cmd: help_text(),
            'whoami': lambda cmd: self.settings.user,
            'hostname': lambda cmd: self.settings.hostname,
            'pwd': lambda cmd: self.settings.home,
            'ls': lambda cmd: self.workspace.listing(),
            'cat': self._cat,
            'echo': self._echo,
            'history': self._history,
        }
        self._load_commands()

    def _load_commands(self):
        """Load the tool command modules"""
        from ..cli.commands import kubectl
        from .commands import container_utils

        kubectl.register_commands(self)
        container_utils.register_commands(self)

    def register_command(self, name: str, handler: Callable[[Command], str]):
        self.commands[name] = handler
        logger.debug(f"Registered command '{name}'")

    def init_lab_state(self, fixture=None):
        """
        Start a lab: restore the seeded cluster, then merge the lab's fixture.

        Args:
            fixture: ClusterFixture or fixture dict; None keeps the seeded cluster
        """
        self.store.reset()
        if fixture is not None:
            self.store.load_fixture(fixture)
        logger.info("Lab state initialized")

    def execute(self, raw: str) -> str:
        """
        Execute one input line

        Args:
            raw: The line as typed

        Returns:
            Text to display, possibly with ANSI colour codes; CLEAR_SENTINEL
            for `clear`
        """
        self.store.tick()

        line = raw.strip()
        if not line:
            return ''
        self.history.append(line)

        try:
            cmd = parse(line)
        except ParseError as e:
            return render_error(e)

        try:
            handler = self.commands.get(cmd.tool) or self.utilities.get(cmd.tool)
            if handler is None:
                return (f"{RED}bash: {cmd.tool}: command not found{RESET}\n"
                        f"Try {CYAN}help{RESET} to see available commands.")
            return handler(cmd)
        except Exception as e:
            logger.exception(f"Unhandled error executing {line!r}")
            return colorize(f"internal error: {e}", RED)

    def _cat(self, cmd: Command) -> str:
        names = ([cmd.subcommand] if cmd.subcommand else []) + cmd.args
        if not names:
            return ''
        output = []
        for name in names:
            content = self.workspace.read(name)
            output.append(content if content is not None else f"cat: {name}: No such file or directory")
        return '\n'.join(output)

    def _echo(self, cmd: Command) -> str:
        return ' '.join(tokenize(cmd.raw)[1:])

    def _history(self, cmd: Command) -> str:
        return '\n'.join(f"  {i}  {line}" for i, line in enumerate(self.history, 1))

    def get_completions(self, partial: str) -> List[str]:
        """
        Tab completions for a partial input line

        Returns:
            Full candidate lines for kubectl/docker subcommands and kubectl
            resource kinds; bare names for the first word
        """
        parts = re.split(r'\s+', partial)
        tool = parts[0]

        if len(parts) <= 1:
            return [c for c in TOP_LEVEL_COMMANDS if c.startswith(partial)]

        if tool == 'kubectl':
            if len(parts) == 2:
                return [f"kubectl {c}" for c in KUBECTL_COMPLETIONS if c.startswith(parts[1])]
            sub = parts[1]
            if sub in ('get', 'describe', 'delete') and len(parts) == 3:
                return [f"kubectl {sub} {r}" for r in KUBECTL_RESOURCE_COMPLETIONS if r.startswith(parts[2])]

        if tool == 'docker' and len(parts) == 2:
            return [f"docker {c}" for c in DOCKER_COMPLETIONS if c.startswith(parts[1])]

        return []


_default_engine: Optional[SimulatorEngine] = None


def get_engine() -> SimulatorEngine:
    """Engine used by execute_command and get_completions when none is passed"""
    global _default_engine
    if _default_engine is None:
        _default_engine = SimulatorEngine()
    return _default_engine


def execute_command(raw: str, engine: Optional[SimulatorEngine] = None) -> str:
    return (engine or get_engine()).execute(raw)


def get_completions(partial: str, engine: Optional[SimulatorEngine] = None) -> List[str]:
    return (engine or get_engine()).get_completions(partial)
