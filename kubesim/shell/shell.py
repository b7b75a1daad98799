"""
kubesim shell
Interactive front end that feeds lines to the simulation engine
"""

import cmd
import logging
from typing import List, Optional

from rich.console import Console
from rich.text import Text

from .engine import SimulatorEngine, CLEAR_SENTINEL

logger = logging.getLogger(__name__)


class KubeSimShell(cmd.Cmd):
    """
    Read-eval-print loop around a SimulatorEngine.

    Every line except exit/quit goes to the engine, including `help` and
    `clear`, so the shell behaves exactly like the embedded simulator.
    """

    intro = """
╔══════════════════════════════════════════════╗
║      K8s & Docker Terminal Simulator         ║
╚══════════════════════════════════════════════╝
Type 'help' for available commands
Type 'exit' to quit
"""

    prompt = 'user@control-plane:~$ '

    def __init__(self, engine: Optional[SimulatorEngine] = None, console: Optional[Console] = None):
        super().__init__()
        self.engine = engine or SimulatorEngine()
        self.console = console or Console(highlight=False)
        settings = self.engine.settings
        self.prompt = f"user@{settings.hostname}:~$ "

    def render(self, output: str):
        """Print engine output, translating its ANSI codes for rich"""
        if output == CLEAR_SENTINEL:
            self.console.clear()
        elif output:
            self.console.print(Text.from_ansi(output))

    def onecmd(self, line: str):
        command = line.strip()
        if command in ('exit', 'quit'):
            return self.do_exit(command)
        if command == 'EOF':
            self.console.print()
            return self.do_exit(command)
        self.render(self.engine.execute(line))
        return False

    def emptyline(self):
        """Do nothing on empty line"""
        pass

    def do_exit(self, arg):
        """Exit the simulator"""
        self.console.print("Goodbye!")
        return True

    def completenames(self, text: str, *ignored) -> List[str]:
        return self.engine.get_completions(text)

    def completedefault(self, text: str, line: str, begidx: int, endidx: int) -> List[str]:
        # Engine candidates are whole lines; readline wants the current word
        return [c.rsplit(' ', 1)[-1] for c in self.engine.get_completions(line[:endidx])]


def run_command(engine: SimulatorEngine, line: str, console: Optional[Console] = None):
    """Execute a single line and print its output"""
    KubeSimShell(engine, console).render(engine.execute(line))
