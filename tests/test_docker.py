"""
Unit tests for the simulated docker CLI
"""

import json
import re
import unittest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from kubesim.config import SimulatorSettings
from kubesim.core.ids import IdGenerator
from kubesim.core.scheduler import ManualClock
from kubesim.core.state import StateStore
from kubesim.shell.engine import SimulatorEngine
from kubesim.shell.formatting import strip_ansi


class DockerTestCase(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.clock = ManualClock()
        self.store = StateStore(SimulatorSettings(), IdGenerator(7), self.clock)
        self.engine = SimulatorEngine(self.store)

    def docker(self, line):
        return strip_ansi(self.engine.execute(f"docker {line}"))


class TestContainers(DockerTestCase):
    """Test container lifecycle commands"""

    def test_run_foreground(self):
        self.assertEqual(self.docker('run nginx'), "/docker-entrypoint.sh: Configuration complete; ready for start up")
        self.assertEqual(len(self.store.containers), 1)

    def test_run_detached_prints_id(self):
        output = self.docker('run -d --name web nginx')
        self.assertTrue(re.fullmatch(r'[0-9a-f]{12}', output))
        self.assertEqual(self.store.find_container('web').id, output)

    def test_run_interactive(self):
        self.assertIn('(simulated interactive container', self.docker('run -it alpine sh'))

    def test_run_requires_image(self):
        self.assertEqual(self.docker('run'), 'docker: "run" requires at least 1 argument.\n'
                                             "See 'docker run --help'.")

    def test_run_name_conflict(self):
        self.docker('run -d --name web nginx')
        self.assertIn('The container name "/web" is already in use', self.docker('run -d --name web nginx'))
        self.assertEqual(len(self.store.containers), 1)

    def test_run_missing_network(self):
        self.assertEqual(self.docker('run -d --network nope nginx'),
                         "docker: Error response from daemon: network nope not found.\n"
                         "See 'docker run --help'.")

    def test_ps(self):
        self.assertEqual(len(self.docker('ps').splitlines()), 1)

        self.docker('run -d --name web -p 8080:80 nginx')
        output = self.docker('ps')
        self.assertTrue(output.startswith('CONTAINER ID'))
        self.assertIn('0.0.0.0:8080->80/tcp', output)
        self.assertIn('Up', output)

        self.docker('stop web')
        self.assertEqual(len(self.docker('ps').splitlines()), 1)
        self.assertIn('Exited (0)', self.docker('ps -a'))

    def test_ps_quiet(self):
        container_id = self.docker('run -d nginx')
        self.assertEqual(self.docker('ps -q'), container_id)

    def test_stop_start_rm(self):
        self.docker('run -d --name web nginx')
        self.assertIn('cannot remove running container', self.docker('rm web'))

        self.assertEqual(self.docker('stop web'), 'web')
        self.assertEqual(self.docker('start web'), 'web')
        self.assertEqual(self.docker('restart web'), 'web')
        self.assertEqual(self.docker('rm -f web'), 'web')
        self.assertEqual(self.store.containers, [])

    def test_rm_missing(self):
        self.assertEqual(self.docker('rm nonexistent'), 'Error response from daemon: No such container: nonexistent')

    def test_rm_several_reports_each(self):
        self.docker('run -d --name web nginx')
        self.docker('stop web')
        self.assertEqual(self.docker('rm web ghost'),
                         'web\nError response from daemon: No such container: ghost')

    def test_stop_requires_args(self):
        self.assertEqual(self.docker('stop'), '"docker stop" requires at least 1 argument.\n'
                                              "See 'docker stop --help'.")

    def test_auto_remove(self):
        self.docker('run -d --rm --name tmp alpine')
        self.docker('stop tmp')
        self.assertNotIn('tmp', self.docker('ps -a'))

    def test_logs(self):
        self.docker('run -d --name web nginx')
        self.assertIn('nginx/1.25.3', self.docker('logs web'))
        self.assertEqual(len(self.docker('logs --tail 2 web').splitlines()), 2)

    def test_exec(self):
        container_id = self.docker('run -d --name web -e MODE=test nginx')
        output = self.docker('exec web env')
        self.assertIn(f'HOSTNAME={container_id}', output)
        self.assertIn('MODE=test', output)
        self.assertEqual(self.docker('exec web hostname'), container_id)

    def test_exec_stopped_container(self):
        self.docker('run -d --name web nginx')
        self.docker('stop web')
        self.assertIn('is not running', self.docker('exec web ls'))

    def test_inspect(self):
        self.docker('run -d --name web nginx')
        documents = json.loads(self.docker('inspect web'))
        self.assertEqual(documents[0]['Name'], '/web')
        self.assertTrue(documents[0]['State']['Running'])
        self.assertEqual(self.docker('inspect nope'), 'Error: No such object: nope')


class TestImages(DockerTestCase):
    """Test image commands"""

    def test_images(self):
        output = self.docker('images')
        self.assertEqual(len(output.splitlines()), 9)
        self.assertTrue(output.startswith('REPOSITORY'))

    def test_pull_new_image(self):
        output = self.docker('pull httpd')
        self.assertTrue(output.startswith('Using default tag: latest'))
        self.assertIn('Status: Downloaded newer image for httpd:latest', output)
        self.assertEqual(len(self.store.images), 9)

    def test_pull_existing_image(self):
        output = self.docker('pull nginx:latest')
        self.assertNotIn('Using default tag', output)
        self.assertIn('Status: Image is up to date for nginx:latest', output)
        self.assertEqual(len(self.store.images), 8)

    def test_build(self):
        self.assertIn('Successfully built myapp:1.0', self.docker('build -t myapp:1.0 .'))
        self.assertEqual(len(self.store.images), 9)
        self.docker('build .')
        self.assertEqual(len(self.store.images), 9)

    def test_rmi(self):
        self.docker('run -d --name web redis:alpine')
        self.assertIn('must force', self.docker('rmi redis:alpine'))
        self.docker('rm -f web')
        self.assertTrue(self.docker('rmi redis:alpine').startswith('Untagged: redis:alpine'))
        self.assertEqual(len(self.store.images), 7)


class TestNetworksAndVolumes(DockerTestCase):
    """Test network and volume commands"""

    def test_network_lifecycle(self):
        network_id = self.docker('network create frontend')
        self.assertIn('frontend', self.docker('network ls'))

        documents = json.loads(self.docker('network inspect frontend'))
        self.assertEqual(documents[0]['Id'], network_id)
        self.assertEqual(documents[0]['IPAM']['Config'][0]['Subnet'], '172.18.0.0/16')

        self.assertEqual(self.docker('network rm frontend'), 'frontend')
        self.assertNotIn('frontend', self.docker('network ls'))

    def test_predefined_network_is_protected(self):
        self.assertEqual(self.docker('network rm bridge'),
                         'Error response from daemon: bridge is a pre-defined network and cannot be removed')

    def test_network_connect(self):
        self.docker('network create backend')
        self.docker('run -d --name web nginx')
        self.assertEqual(self.docker('network connect backend web'), '')
        self.assertIn('has active endpoints', self.docker('network rm backend'))
        self.docker('network disconnect backend web')
        self.assertEqual(self.docker('network rm backend'), 'backend')

    def test_volume_in_use(self):
        self.assertEqual(self.docker('volume create data'), 'data')
        self.docker('run -d --name db -v data:/var/lib/postgresql/data postgres')
        self.assertIn('volume is in use', self.docker('volume rm data'))

        self.docker('rm -f db')
        self.assertEqual(self.docker('volume rm data'), 'data')

    def test_anonymous_volume(self):
        self.assertTrue(re.fullmatch(r'[0-9a-f]{64}', self.docker('volume create')))


class TestDaemon(DockerTestCase):
    """Test version, info and command routing"""

    def test_version(self):
        self.assertIn('Version:           27.0.3', self.docker('version'))

    def test_info(self):
        self.docker('run -d --name web nginx')
        self.docker('run -d --name api node')
        self.docker('stop api')
        output = self.docker('info').splitlines()
        self.assertIn('Containers: 2', output)
        self.assertIn(' Running: 1', output)
        self.assertIn(' Stopped: 1', output)

    def test_unknown_subcommand(self):
        self.assertEqual(self.docker('frob'), "docker: 'frob' is not a docker command.\nSee 'docker --help'")

    def test_missing_subcommand(self):
        self.assertEqual(self.docker(''), "Usage: docker [OPTIONS] COMMAND\n"
                                          "Run 'docker --help' for more information.")


if __name__ == '__main__':
    unittest.main()
