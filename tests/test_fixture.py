"""
Unit tests for lab fixtures
"""

import io
import os
import sys
import tempfile
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from kubesim.config import SimulatorSettings
from kubesim.core.fixture import ClusterFixture, load_fixture_file
from kubesim.core.ids import IdGenerator
from kubesim.core.orchestration import PodStatus, ServiceType
from kubesim.core.scheduler import ManualClock
from kubesim.core.state import StateStore
from kubesim.exceptions import FixtureError
from kubesim.main import main
from kubesim.shell.engine import SimulatorEngine
from kubesim.shell.formatting import strip_ansi


LAB_FIXTURE = {
    'namespaces': ['default', 'lab'],
    'nodes': [{'name': 'worker-3', 'internalIP': '192.168.1.23'}],
    'pods': [
        {'name': 'api-0', 'namespace': 'lab', 'image': 'node:18', 'labels': {'app': 'api'}},
        {'name': 'broken', 'namespace': 'lab', 'image': 'busybox',
         'status': 'CrashLoopBackOff', 'restarts': 4},
    ],
    'deployments': [{'name': 'web', 'namespace': 'lab', 'image': 'nginx', 'replicas': 2, 'ports': [80]}],
    'services': [{'name': 'web', 'namespace': 'lab', 'type': 'NodePort',
                  'ports': [{'port': 80, 'targetPort': 8080}], 'selector': {'app': 'web'}}],
    'configMaps': [{'name': 'settings', 'namespace': 'lab', 'data': {'RETRIES': 3}}],
    'secrets': [{'name': 'creds', 'namespace': 'lab', 'data': {'password': 'hunter2'}}],
}

LAB_YAML = """namespaces:
  - lab
pods:
  - name: api-0
    namespace: lab
    image: node:18
    status: Pending
services:
  - name: api
    namespace: lab
    ports:
      - port: 8080
"""


class FixtureTestCase(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.clock = ManualClock()
        self.store = StateStore(SimulatorSettings(), IdGenerator(7), self.clock)
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Clean up test fixtures"""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write(self, content):
        path = os.path.join(self.temp_dir, 'lab.yaml')
        with open(path, 'w') as f:
            f.write(content)
        return path


class TestLoadFixture(FixtureTestCase):
    """Test merging fixtures into the store"""

    def test_collections_are_merged(self):
        self.store.load_fixture(LAB_FIXTURE)

        self.assertTrue(self.store.namespace_exists('lab'))
        self.assertEqual(self.store.find_node('worker-3').internal_ip, '192.168.1.23')
        self.assertEqual(len([p for p in self.store.list_pods('lab') if p.owner_ref]), 2)

        service = self.store.find_service('web', 'lab')
        self.assertEqual(service.type, ServiceType.NODE_PORT)
        self.assertEqual(self.store.find_config_map('settings', 'lab').data, {'RETRIES': '3'})
        self.assertIsNotNone(self.store.find_secret('creds', 'lab'))

    def test_pod_status_and_restarts(self):
        self.store.load_fixture(LAB_FIXTURE)

        broken = self.store.find_pod('broken', 'lab')
        self.assertEqual(broken.status, PodStatus.CRASH_LOOP_BACK_OFF)
        self.assertEqual(broken.restarts, 4)
        self.assertEqual(broken.ready, '0/1')
        self.assertEqual(self.store.find_pod('api-0', 'lab').ready, '1/1')

    def test_existing_namespaces_are_kept(self):
        namespaces = len(self.store.list_namespaces())
        self.store.load_fixture({'namespaces': ['default', 'kube-system', 'lab']})
        self.assertEqual(len(self.store.list_namespaces()), namespaces + 1)

    def test_duplicates_are_skipped(self):
        self.store.load_fixture(LAB_FIXTURE)
        pods = len(self.store.list_pods('lab'))

        with self.assertLogs('kubesim.core.state', 'WARNING'):
            self.store.load_fixture(LAB_FIXTURE)
        self.assertEqual(len(self.store.list_pods('lab')), pods)

    def test_unknown_service_type_is_skipped(self):
        with self.assertLogs('kubesim.core.state', 'WARNING'):
            self.store.load_fixture({'services': [{'name': 'odd', 'type': 'Headless'}]})
        self.assertIsNone(self.store.find_service('odd', 'default'))

    def test_accepts_model(self):
        self.store.load_fixture(ClusterFixture(namespaces=['lab']))
        self.assertTrue(self.store.namespace_exists('lab'))


class TestFixtureFile(FixtureTestCase):
    """Test reading fixtures from YAML"""

    def test_read(self):
        fixture = load_fixture_file(self.write(LAB_YAML))
        self.assertEqual(fixture.namespaces, ['lab'])
        self.assertEqual(fixture.pods[0].status, 'Pending')
        self.assertIsNone(fixture.services[0].ports[0].target_port)

    def test_missing_file(self):
        with self.assertRaises(FixtureError):
            load_fixture_file(os.path.join(self.temp_dir, 'nope.yaml'))

    def test_invalid_records(self):
        with self.assertRaises(FixtureError):
            load_fixture_file(self.write("pods:\n  - name: web\n"))
        with self.assertRaises(FixtureError):
            load_fixture_file(self.write("pods:\n  - name: web\n    image: nginx\n    status: Sleeping\n"))
        with self.assertRaises(FixtureError):
            load_fixture_file(self.write("deployments:\n  - name: web\n    image: nginx\n    replicas: -1\n"))

    def test_not_a_mapping(self):
        with self.assertRaises(FixtureError):
            load_fixture_file(self.write("- lab\n- dev\n"))

    def test_bad_yaml(self):
        with self.assertRaises(FixtureError):
            load_fixture_file(self.write("pods: [\n"))


class TestLabState(FixtureTestCase):
    """Test starting a lab through the engine and the command line"""

    def test_init_lab_state_resets_first(self):
        engine = SimulatorEngine(self.store)
        engine.execute('kubectl create deployment old --image=nginx')

        engine.init_lab_state(LAB_FIXTURE)
        self.assertEqual(strip_ansi(engine.execute('kubectl get deployments')),
                         'No resources found in default namespace.')

        row = [r for r in strip_ansi(engine.execute('kubectl get pods -n lab')).splitlines()
               if r.startswith('broken')][0]
        self.assertEqual(row.split()[:4], ['broken', '0/1', 'CrashLoopBackOff', '4'])

    def test_init_without_fixture(self):
        engine = SimulatorEngine(self.store)
        engine.execute('kubectl create namespace dev')
        engine.init_lab_state()
        self.assertFalse(self.store.namespace_exists('dev'))

    def test_main_loads_fixture(self):
        path = self.write(LAB_YAML)
        with patch('sys.stdout', new_callable=io.StringIO) as stdout:
            self.assertEqual(main(['--fixture', path, '-c', 'kubectl get pods -n lab']), 0)
        self.assertIn('api-0', stdout.getvalue())
        self.assertIn('Pending', stdout.getvalue())

    def test_main_rejects_bad_fixture(self):
        with patch('sys.stderr', new_callable=io.StringIO) as stderr:
            self.assertEqual(main(['--fixture', os.path.join(self.temp_dir, 'nope.yaml'), '-c', 'whoami']), 1)
        self.assertIn('cannot read fixture', stderr.getvalue())


if __name__ == '__main__':
    unittest.main()
