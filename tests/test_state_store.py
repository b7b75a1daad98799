"""
Unit tests for the simulated infrastructure state store
"""

import re
import unittest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from kubesim.config import SimulatorSettings
from kubesim.core.ids import IdGenerator
from kubesim.core.scheduler import ManualClock
from kubesim.core.state import StateStore, ALL_NAMESPACES
from kubesim.core.orchestration import EventType, PodStatus, POD_TEMPLATE_HASH
from kubesim.exceptions import AmbiguousMatch


def live(pods):
    return [p for p in pods if p.status != PodStatus.TERMINATING]


class StoreTestCase(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.clock = ManualClock()
        self.store = StateStore(SimulatorSettings(), IdGenerator(1234), self.clock)


class TestSeededState(StoreTestCase):
    """Test the freshly initialized cluster"""

    def test_seed_counts(self):
        store = self.store
        self.assertEqual(len(store.nodes), 3)
        self.assertEqual(sorted(n.name for n in store.list_namespaces()),
                         ['default', 'kube-node-lease', 'kube-public', 'kube-system'])
        self.assertEqual(len(store.list_pods('kube-system')), 9)
        self.assertEqual(store.list_pods('default'), [])
        self.assertEqual([s.name for s in store.services], ['kubernetes', 'kube-dns'])
        self.assertEqual(len(store.config_maps), 2)
        self.assertEqual(len(store.images), 8)
        self.assertEqual([n.name for n in store.networks], ['bridge', 'host', 'none'])

    def test_reset_discards_changes(self):
        self.store.create_deployment('web', 'default', 'nginx', 2)
        self.store.docker_run('nginx')
        self.store.reset()
        self.assertEqual(self.store.list_deployments(), [])
        self.assertEqual(self.store.containers, [])
        self.assertEqual(len(self.store.pods), 9)

    def test_namespace_filtering(self):
        self.store.create_deployment('web', 'default', 'nginx', 2)
        self.assertTrue(all(p.namespace == 'kube-system' for p in self.store.list_pods('kube-system')))
        self.assertEqual(len(self.store.list_pods(ALL_NAMESPACES)), 11)


class TestDeployments(StoreTestCase):
    """Test deployment, replica set and pod cascades"""

    def test_create_deployment(self):
        dep = self.store.create_deployment('web', 'default', 'nginx:1.25', 3, ports=[80])
        rs = self.store.replicaset_for(dep)
        pods = self.store.pods_owned_by(rs)

        self.assertEqual(len(pods), 3)
        self.assertTrue(rs.name.startswith('web-'))
        self.assertEqual(rs.labels[POD_TEMPLATE_HASH], rs.name[len('web-'):])
        for pod in pods:
            self.assertTrue(pod.name.startswith(rs.name + '-'))
            self.assertEqual(pod.owner_ref, rs.name)
            self.assertEqual(pod.containers[0].ports, [80])
        # system pods hold 10.244.0.10 - 10.244.0.18
        self.assertEqual([p.ip for p in pods], ['10.244.0.19', '10.244.0.20', '10.244.0.21'])

        reasons = [e.reason for e in self.store.events.for_object(f"pod/{pods[0].name}", 'default')]
        self.assertEqual(reasons, ['Scheduled', 'Pulled', 'Created', 'Started'])
        self.assertEqual(self.store.events.for_object('deployment/web', 'default')[0].reason, 'ScalingReplicaSet')

    def test_scale_up_and_down(self):
        dep = self.store.create_deployment('web', 'default', 'nginx', 2)
        rs = self.store.replicaset_for(dep)

        self.assertTrue(self.store.scale_deployment('web', 'default', 5))
        self.assertEqual(len(self.store.pods_owned_by(rs)), 5)

        self.assertTrue(self.store.scale_deployment('web', 'default', 1))
        self.assertEqual(len(self.store.pods_owned_by(rs)), 1)
        self.assertEqual(len(self.store.pods_owned_by(rs, live_only=False)), 5)
        self.assertEqual((dep.replicas, dep.ready_replicas, dep.available_replicas), (1, 1, 1))

        self.store.settle()
        self.assertEqual(len(self.store.list_pods('default')), 1)

    def test_scale_down_removes_newest(self):
        dep = self.store.create_deployment('web', 'default', 'nginx', 3)
        first = self.store.list_pods('default')[0]
        self.store.scale_deployment('web', 'default', 1)
        self.assertEqual(live(self.store.list_pods('default')), [first])

    def test_scale_missing_deployment(self):
        self.assertFalse(self.store.scale_deployment('nope', 'default', 3))

    def test_owned_pod_is_replaced(self):
        self.store.create_deployment('web', 'default', 'nginx', 2)
        victim = self.store.list_pods('default')[0]

        self.assertTrue(self.store.delete_pod(victim.name, 'default'))
        self.assertEqual(victim.status, PodStatus.TERMINATING)
        self.assertEqual(len(live(self.store.list_pods('default'))), 2)

        self.store.settle()
        names = [p.name for p in self.store.list_pods('default')]
        self.assertEqual(len(names), 2)
        self.assertNotIn(victim.name, names)

    def test_delete_deployment_cascades(self):
        self.store.create_deployment('web', 'default', 'nginx', 3)
        self.assertTrue(self.store.delete_deployment('web', 'default'))
        self.assertTrue(all(p.terminating for p in self.store.list_pods('default')))

        self.clock.advance(self.store.settings.settle_delay)
        self.store.tick()
        self.assertEqual(self.store.list_deployments('default'), [])
        self.assertEqual(self.store.list_replicasets('default'), [])
        self.assertEqual(self.store.list_pods('default'), [])

    def test_delete_missing_deployment(self):
        self.assertFalse(self.store.delete_deployment('nope', 'default'))

    def test_removal_waits_for_settle_delay(self):
        self.store.create_deployment('web', 'default', 'nginx', 1)
        self.store.delete_deployment('web', 'default')
        self.store.tick()
        self.assertEqual(len(self.store.list_pods('default')), 1)

    def test_restart_bumps_revision(self):
        dep = self.store.create_deployment('web', 'default', 'nginx', 2)
        before = {p.name for p in self.store.list_pods('default')}
        self.assertTrue(self.store.restart_deployment('web', 'default'))
        self.store.settle()

        after = {p.name for p in self.store.list_pods('default')}
        self.assertEqual(dep.revision, 2)
        self.assertEqual(len(after), 2)
        self.assertFalse(before & after)

    def test_update_deployment_image(self):
        dep = self.store.create_deployment('web', 'default', 'nginx:1.24', 2)
        self.store.update_deployment('web', 'default', image='nginx:1.25', replicas=3)
        self.store.settle()
        pods = self.store.list_pods('default')
        self.assertEqual(dep.image, 'nginx:1.25')
        self.assertEqual(len(pods), 3)
        self.assertTrue(all(p.image == 'nginx:1.25' for p in pods))


class TestNamespaces(StoreTestCase):
    """Test namespace lifecycle"""

    def test_create_duplicate(self):
        self.assertTrue(self.store.create_namespace('dev'))
        self.assertFalse(self.store.create_namespace('dev'))

    def test_delete_cascades(self):
        self.store.create_namespace('dev')
        self.store.create_deployment('api', 'dev', 'node', 2)
        self.store.create_config_map('settings', 'dev', {'a': '1'})

        self.assertTrue(self.store.delete_namespace('dev'))
        self.assertEqual(self.store.namespace_status('dev'), 'Terminating')

        self.store.settle()
        self.assertFalse(self.store.namespace_exists('dev'))
        self.assertEqual(self.store.list_pods('dev'), [])
        self.assertEqual(self.store.list_deployments('dev'), [])
        self.assertEqual(self.store.list_config_maps('dev'), [])

    def test_purge_removes_pods_added_while_terminating(self):
        self.store.create_namespace('dev')
        self.store.delete_namespace('dev')
        self.store.add_pod('late', 'dev', 'nginx')

        self.store.settle()
        self.assertFalse(self.store.namespace_exists('dev'))
        self.assertIsNone(self.store.find_pod('late', 'dev'))


class TestEvents(StoreTestCase):
    """Test the bounded event log"""

    def test_keeps_newest_events(self):
        for i in range(60):
            self.store.add_event(EventType.NORMAL, 'Pulled', f'pod/p{i}', f'event {i}', 'default')

        events = list(self.store.events)
        self.assertEqual(len(self.store.events), 50)
        self.assertEqual(events[0].message, 'event 59')
        self.assertEqual(events[-1].message, 'event 10')

    def test_limit_follows_settings(self):
        store = StateStore(SimulatorSettings(event_limit=5), IdGenerator(1), self.clock)
        store.create_deployment('web', 'default', 'nginx', 3)
        self.assertEqual(len(store.events), 5)


class TestRuntime(StoreTestCase):
    """Test containers, images, networks and volumes"""

    def test_run_adds_one_container(self):
        container = self.store.docker_run('nginx')
        self.assertEqual(len(self.store.containers), 1)
        self.assertTrue(re.fullmatch(r'[0-9a-f]{12}', container.id))
        self.assertTrue(container.running)
        self.assertEqual(container.ip_address, '172.17.0.2')
        self.assertIn(container.id, self.store.find_network('bridge').containers)

    def test_run_does_not_duplicate_images(self):
        self.store.docker_run('nginx')
        self.store.docker_run('nginx:latest')
        self.assertEqual(len(self.store.images), 8)
        self.store.docker_run('httpd')
        self.assertEqual(len(self.store.images), 9)

    def test_find_container_by_prefix(self):
        container = self.store.docker_run('nginx', name='web')
        self.assertIs(self.store.find_container('web'), container)
        self.assertIs(self.store.find_container(container.id[:4]), container)
        self.assertIsNone(self.store.find_container('nonexistent'))

    def test_ambiguous_prefix(self):
        a = self.store.docker_run('nginx')
        b = self.store.docker_run('redis')
        a.id, b.id = 'abc111111111', 'abc222222222'
        with self.assertRaises(AmbiguousMatch):
            self.store.find_container('abc')

    def test_stop_start_rm(self):
        container = self.store.docker_run('nginx', name='web')
        self.assertTrue(self.store.docker_stop('web'))
        self.assertFalse(container.running)
        self.assertTrue(self.store.docker_start('web'))
        self.assertTrue(container.running)
        self.assertTrue(self.store.docker_rm('web'))
        self.assertEqual(self.store.containers, [])
        self.assertFalse(self.store.docker_rm('web'))

    def test_auto_remove_on_stop(self):
        self.store.docker_run('alpine', name='tmp', auto_remove=True)
        self.store.docker_stop('tmp')
        self.assertIsNone(self.store.find_container('tmp'))

    def test_networks(self):
        first = self.store.docker_create_network('frontend')
        second = self.store.docker_create_network('backend')
        self.assertEqual(first.subnet, '172.18.0.0/16')
        self.assertEqual(second.subnet, '172.19.0.0/16')

        container = self.store.docker_run('nginx', network='frontend')
        self.assertEqual(container.networks, ['frontend'])
        self.store.docker_connect(second, container)
        self.assertEqual(container.networks, ['frontend', 'backend'])
        self.store.docker_disconnect(second, container)
        self.assertNotIn(container.id, second.containers)

    def test_volumes(self):
        volume = self.store.docker_create_volume('data')
        self.assertIs(self.store.docker_create_volume('data'), volume)
        self.store.docker_run('postgres', mounts=[{"Type": "volume", "Name": "data",
                                                   "Source": volume.mountpoint, "Destination": "/var/lib/data"}])
        self.assertEqual(len(self.store.containers_using_volume('data')), 1)
        self.assertTrue(self.store.docker_remove_volume('data'))
        self.assertFalse(self.store.docker_remove_volume('data'))


if __name__ == '__main__':
    unittest.main()
