"""
Unit tests for the simulation engine and the interactive shell
"""

import io
import unittest
import sys
import os

from rich.console import Console

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from kubesim import execute_command, get_completions
from kubesim.config import SimulatorSettings
from kubesim.core.ids import IdGenerator
from kubesim.core.scheduler import ManualClock
from kubesim.core.state import StateStore
from kubesim.shell.engine import SimulatorEngine, CLEAR_SENTINEL
from kubesim.shell.files import DEPLOYMENT_YAML
from kubesim.shell.formatting import strip_ansi
from kubesim.shell.shell import KubeSimShell


class EngineTestCase(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.clock = ManualClock()
        self.engine = SimulatorEngine(StateStore(SimulatorSettings(), IdGenerator(42), self.clock))

    def run_line(self, line):
        return strip_ansi(self.engine.execute(line))


class TestExecute(EngineTestCase):
    """Test line handling and the built-in utilities"""

    def test_empty_input(self):
        self.assertEqual(self.engine.execute(''), '')
        self.assertEqual(self.engine.execute('   '), '')
        self.assertEqual(self.engine.history, [])

    def test_history(self):
        self.engine.execute('whoami')
        self.engine.execute('  pwd  ')
        self.assertEqual(self.run_line('history'), '  1  whoami\n  2  pwd\n  3  history')

    def test_clear(self):
        self.assertEqual(self.engine.execute('clear'), CLEAR_SENTINEL)

    def test_help(self):
        output = self.run_line('help')
        self.assertIn('kubectl', output)
        self.assertIn('docker', output)

    def test_command_not_found(self):
        self.assertEqual(self.run_line('foo bar'),
                         'bash: foo: command not found\nTry help to see available commands.')

    def test_identity_utilities(self):
        self.assertEqual(self.run_line('whoami'), 'kubernetes-admin')
        self.assertEqual(self.run_line('hostname'), 'control-plane')
        self.assertEqual(self.run_line('pwd'), '/home/user')

    def test_files(self):
        self.assertEqual(self.run_line('ls'), 'deployment.yaml  service.yaml  configmap.yaml  pod.yaml')
        self.assertEqual(self.run_line('cat deployment.yaml'), DEPLOYMENT_YAML)
        self.assertEqual(self.run_line('cat missing.txt'), 'cat: missing.txt: No such file or directory')

    def test_echo_drops_quotes(self):
        self.assertEqual(self.run_line('echo "hello   world" again'), 'hello   world again')

    def test_parse_error(self):
        self.assertEqual(self.run_line('echo "oops'), "bash: unexpected EOF while looking for matching `\"'")

    def test_removal_follows_clock(self):
        self.run_line('kubectl create deployment web --image=nginx')
        self.run_line('kubectl delete deployment web')

        self.clock.advance(0.1)
        self.assertIn('Terminating', self.run_line('kubectl get pods'))

        self.clock.advance(0.5)
        self.assertEqual(self.run_line('kubectl get pods'), 'No resources found in default namespace.')

    def test_engines_are_isolated(self):
        other = SimulatorEngine(StateStore(SimulatorSettings(), IdGenerator(43), ManualClock()))
        self.run_line('docker run -d nginx')
        self.assertEqual(len(self.engine.store.containers), 1)
        self.assertEqual(other.store.containers, [])

    def test_internal_error_is_reported(self):
        self.engine.register_command('boom', lambda cmd: 1 / 0)
        with self.assertLogs('kubesim.shell.engine', 'ERROR'):
            self.assertEqual(self.run_line('boom'), 'internal error: division by zero')

    def test_module_level_execute(self):
        self.assertEqual(strip_ansi(execute_command('whoami')), 'kubernetes-admin')

    def test_module_level_execute_on_given_engine(self):
        self.run_line('kubectl create namespace dev')
        self.assertIn('dev', strip_ansi(execute_command('kubectl get ns dev', engine=self.engine)))
        self.assertEqual(get_completions('ku', engine=self.engine), ['kubectl'])
        self.assertEqual(self.engine.history[-1], 'kubectl get ns dev')


class TestCompletions(EngineTestCase):
    """Test tab completion candidates"""

    def test_top_level(self):
        self.assertEqual(self.engine.get_completions('ku'), ['kubectl'])
        self.assertEqual(self.engine.get_completions('h'), ['help', 'history'])

    def test_subcommands(self):
        self.assertEqual(self.engine.get_completions('kubectl g'), ['kubectl get'])
        self.assertEqual(self.engine.get_completions('docker r'), ['docker run', 'docker rm'])

    def test_resource_kinds(self):
        self.assertEqual(self.engine.get_completions('kubectl get po'), ['kubectl get pods'])
        self.assertEqual(self.engine.get_completions('kubectl scale de'), [])

    def test_unknown_tool(self):
        self.assertEqual(self.engine.get_completions('git c'), [])


class TestShell(EngineTestCase):
    """Test the interactive front end"""

    def setUp(self):
        super().setUp()
        self.buffer = io.StringIO()
        self.shell = KubeSimShell(self.engine, Console(file=self.buffer, force_terminal=False, highlight=False))

    def test_output_is_printed(self):
        self.assertFalse(self.shell.onecmd('whoami'))
        self.assertEqual(self.buffer.getvalue().strip(), 'kubernetes-admin')

    def test_exit(self):
        self.assertTrue(self.shell.onecmd('exit'))
        self.assertIn('Goodbye!', self.buffer.getvalue())

    def test_help_goes_to_engine(self):
        self.shell.onecmd('help')
        self.assertIn('Available commands:', self.buffer.getvalue())

    def test_prompt_uses_hostname(self):
        self.assertEqual(self.shell.prompt, 'user@control-plane:~$ ')

    def test_completion_returns_current_word(self):
        self.assertEqual(self.shell.completedefault('g', 'kubectl g', 8, 9), ['get'])


if __name__ == '__main__':
    unittest.main()
