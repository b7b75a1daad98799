"""
Simulated infrastructure state store

The StateStore owns every simulated object, cluster side and runtime side,
and implements the composite operations that keep them consistent: a
deployment owns one replica set which owns its pods, scaling reconciles the
pod count, and deletes cascade through the ownership chain in two phases
(Terminating now, removed after the settle delay).

Lookups return None/False for missing objects; turning that into the right
tool-specific message is the handlers' job.
"""

import time
import logging
from typing import Callable, Dict, List, Optional, Tuple

from ..config import SimulatorSettings
from ..exceptions import AmbiguousMatch
from .ids import IdGenerator
from .scheduler import SettleScheduler
from .orchestration import (
    Pod, PodStatus, Deployment, ReplicaSet, POD_TEMPLATE_HASH,
    Service, ServicePort, ServiceType, ConfigMap, Secret,
    Node, Namespace, Event, EventLog, EventType
)
from .container import Container, ContainerState, Image, Network, Volume, split_image_reference
from .fixture import ClusterFixture

logger = logging.getLogger(__name__)

# Namespace sentinel meaning "every namespace"
ALL_NAMESPACES = '__all__'

DAY = 86400.0

SYSTEM_NAMESPACES = ('default', 'kube-system', 'kube-public', 'kube-node-lease')

# Seed images: repository, tag, size, age in days
DEFAULT_IMAGES = [
    ('nginx', 'latest', '187MB', 14),
    ('nginx', 'alpine', '43MB', 14),
    ('node', '20-alpine', '128MB', 21),
    ('redis', 'alpine', '32MB', 30),
    ('postgres', '16-alpine', '238MB', 30),
    ('python', '3.12-slim', '155MB', 21),
    ('alpine', 'latest', '7.8MB', 30),
    ('busybox', 'latest', '4.26MB', 30),
]

# Generated container names, "<adjective>_<scientist>"
NAME_ADJECTIVES = ["happy", "jolly", "dreamy", "sad", "angry", "pensive", "focused",
                   "brave", "clever", "eager", "gifted", "quirky", "vibrant", "zealous"]
NAME_SCIENTISTS = ["einstein", "newton", "tesla", "feynman", "turing", "hawking", "curie",
                   "lovelace", "hopper", "darwin", "noether", "ritchie", "kepler", "bohr"]


def default_command_for(image: str) -> str:
    """Quoted launch command `docker ps` shows for an image"""
    if 'nginx' in image:
        return '"nginx -g \'daemon off;\'"'
    if 'redis' in image:
        return '"redis-server"'
    if 'postgres' in image:
        return '"postgres"'
    if 'node' in image:
        return '"node"'
    if 'python' in image:
        return '"python3"'
    return '"/bin/sh"'


class StateStore:
    """
    In-memory backing store for both simulated tools.

    Handlers must not hold on to objects returned from here across commands;
    they query the store fresh on each invocation.
    """

    def __init__(self, settings: Optional[SimulatorSettings] = None,
                 ids: Optional[IdGenerator] = None,
                 clock: Callable[[], float] = time.time):
        """
        Initialize the store with the default seeded cluster.

        Args:
            settings: Simulator settings
            ids: Id/address generator; seeded from settings.seed when omitted
            clock: Time source used for ages and settle due times
        """
        self.settings = settings or SimulatorSettings()
        self.ids = ids or IdGenerator(self.settings.seed)
        self.clock = clock
        self.scheduler = SettleScheduler(clock)
        self.reset()

    # ------------------------------------------------------------------
    # Seeding

    def reset(self):
        """Restore the freshly initialized cluster and daemon"""
        now = self.clock()
        seeded = now - 7 * DAY

        self.scheduler.clear()
        self._next_pod_ip = 10
        self._next_subnet = 18
        self.current_namespace = self.settings.default_namespace

        self.namespaces: Dict[str, float] = {ns: seeded for ns in SYSTEM_NAMESPACES}
        self.terminating_namespaces = set()

        version = self.settings.kubernetes_version
        self.nodes: List[Node] = [
            Node('control-plane', 'Ready', ['control-plane'], version, '192.168.1.10', 'linux', '4', '8Gi', seeded),
            Node('worker-1', 'Ready', ['worker'], version, '192.168.1.11', 'linux', '4', '16Gi', seeded),
            Node('worker-2', 'Ready', ['worker'], version, '192.168.1.12', 'linux', '4', '16Gi', seeded),
        ]

        self.pods: List[Pod] = []
        self.deployments: List[Deployment] = []
        self.replicasets: List[ReplicaSet] = []
        self.services: List[Service] = []
        self.config_maps: List[ConfigMap] = []
        self.secrets: List[Secret] = []
        self.events = EventLog(self.settings.event_limit)

        system_pods = [
            ('coredns-5d78c9869d-abc12', 'coredns:1.11.1', 'control-plane', {'k8s-app': 'kube-dns'}),
            ('coredns-5d78c9869d-def34', 'coredns:1.11.1', 'control-plane', {'k8s-app': 'kube-dns'}),
            ('etcd-control-plane', 'etcd:3.5.12', 'control-plane', {'component': 'etcd'}),
            ('kube-apiserver-control-plane', f'kube-apiserver:{version}', 'control-plane', {'component': 'kube-apiserver'}),
            ('kube-controller-manager-control-plane', f'kube-controller-manager:{version}', 'control-plane', {'component': 'kube-controller-manager'}),
            ('kube-scheduler-control-plane', f'kube-scheduler:{version}', 'control-plane', {'component': 'kube-scheduler'}),
            ('kube-proxy-abc12', f'kube-proxy:{version}', 'control-plane', {'k8s-app': 'kube-proxy'}),
            ('kube-proxy-def34', f'kube-proxy:{version}', 'worker-1', {'k8s-app': 'kube-proxy'}),
            ('kube-proxy-ghi56', f'kube-proxy:{version}', 'worker-2', {'k8s-app': 'kube-proxy'}),
        ]
        for name, image, node, labels in system_pods:
            self.pods.append(Pod(name, 'kube-system', image, node, self._new_pod_ip(), seeded,
                                 labels=labels, uid=self.ids.uid()))

        self.services = [
            Service('kubernetes', 'default', ServiceType.CLUSTER_IP, '10.96.0.1',
                    [ServicePort(443, 6443, 'TCP', name='https')], {}, seeded),
            Service('kube-dns', 'kube-system', ServiceType.CLUSTER_IP, '10.96.0.10',
                    [ServicePort(53, 53, 'UDP', name='dns'), ServicePort(53, 53, 'TCP', name='dns-tcp')],
                    {'k8s-app': 'kube-dns'}, seeded),
        ]
        self.config_maps = [
            ConfigMap('kube-root-ca.crt', 'default', {'ca.crt': '...'}, seeded),
            ConfigMap('coredns', 'kube-system', {'Corefile': '...'}, seeded),
        ]

        self.containers: List[Container] = []
        self.images: List[Image] = [
            Image(repo, tag, self.ids.hex_id(), size, now - days * DAY)
            for repo, tag, size, days in DEFAULT_IMAGES
        ]
        self.networks: List[Network] = [
            Network('bridge', self.ids.hex_id(), 'bridge', 'local', '172.17.0.0/16', '172.17.0.1', seeded),
            Network('host', self.ids.hex_id(), 'host', 'local', created=seeded),
            Network('none', self.ids.hex_id(), 'null', 'local', created=seeded),
        ]
        self.volumes: List[Volume] = []

    def load_fixture(self, fixture):
        """
        Merge a lab's starting state into the cluster.

        Namespaces already present are skipped; every other record is
        created through the normal store operations, so pods get addresses
        and deployments get their replica sets. Records whose name is
        already taken in their namespace are skipped with a warning.

        Args:
            fixture: ClusterFixture, or a dict in the fixture file layout
        """
        if not isinstance(fixture, ClusterFixture):
            fixture = ClusterFixture.model_validate(fixture)

        def ensure_namespace(name):
            if self.create_namespace(name):
                return
            if name in self.terminating_namespaces:
                logger.warning(f"Fixture namespace {name} is being terminated")

        for name in fixture.namespaces:
            ensure_namespace(name)

        for node in fixture.nodes:
            if self.find_node(node.name):
                logger.warning(f"Fixture node {node.name} already exists, skipping")
                continue
            self.nodes.append(Node(node.name, node.status, list(node.roles),
                                   node.version or self.settings.kubernetes_version,
                                   node.internal_ip, node.os, node.cpu, node.memory, self.clock()))

        for pod in fixture.pods:
            ensure_namespace(pod.namespace)
            if self.find_pod(pod.name, pod.namespace):
                logger.warning(f"Fixture pod {pod.namespace}/{pod.name} already exists, skipping")
                continue
            created = self.add_pod(pod.name, pod.namespace, pod.image, dict(pod.labels), ports=pod.ports)
            created.restarts = pod.restarts
            if pod.status != PodStatus.RUNNING.value:
                created.status = PodStatus(pod.status)
                for container in created.containers:
                    container.ready = False
                    container.state = pod.status

        for dep in fixture.deployments:
            ensure_namespace(dep.namespace)
            if self.find_deployment(dep.name, dep.namespace):
                logger.warning(f"Fixture deployment {dep.namespace}/{dep.name} already exists, skipping")
                continue
            self.create_deployment(dep.name, dep.namespace, dep.image, dep.replicas,
                                   ports=dep.ports, labels=dict(dep.labels) or None)

        for svc in fixture.services:
            ensure_namespace(svc.namespace)
            service_type = ServiceType.parse(svc.type)
            if not service_type:
                logger.warning(f"Fixture service {svc.namespace}/{svc.name} has unknown type {svc.type}, skipping")
                continue
            if self.find_service(svc.name, svc.namespace):
                logger.warning(f"Fixture service {svc.namespace}/{svc.name} already exists, skipping")
                continue
            ports = [(p.port, p.target_port or p.port) for p in svc.ports]
            protocol = svc.ports[0].protocol if svc.ports else 'TCP'
            self.create_service(svc.name, svc.namespace, service_type, ports, dict(svc.selector),
                                external_name=svc.external_name, protocol=protocol)

        for cm in fixture.configmaps:
            ensure_namespace(cm.namespace)
            if self.find_config_map(cm.name, cm.namespace):
                logger.warning(f"Fixture configmap {cm.namespace}/{cm.name} already exists, skipping")
                continue
            self.create_config_map(cm.name, cm.namespace, dict(cm.data))

        for secret in fixture.secrets:
            ensure_namespace(secret.namespace)
            if self.find_secret(secret.name, secret.namespace):
                logger.warning(f"Fixture secret {secret.namespace}/{secret.name} already exists, skipping")
                continue
            self.create_secret(secret.name, secret.namespace, dict(secret.data))

        logger.info(f"Loaded fixture: {len(fixture.pods)} pods, {len(fixture.deployments)} deployments, "
                    f"{len(fixture.services)} services")

    # ------------------------------------------------------------------
    # Settle processing

    def tick(self, now: Optional[float] = None) -> int:
        """Run settle tasks that are due"""
        return self.scheduler.tick(now)

    def settle(self) -> int:
        """Run every pending settle task now"""
        return self.scheduler.settle()

    def _schedule_removal(self, key: str, action: Callable[[], None]):
        self.scheduler.schedule(key, self.settings.settle_delay, action)

    # ------------------------------------------------------------------
    # Namespaces

    def namespace_exists(self, name: str) -> bool:
        return name in self.namespaces

    def create_namespace(self, name: str) -> bool:
        if name in self.namespaces:
            return False
        self.namespaces[name] = self.clock()
        logger.info(f"Created namespace {name}")
        return True

    def delete_namespace(self, name: str) -> bool:
        """
        Delete a namespace and everything in it.

        Pods go through the usual two-phase delete; every other object in
        the namespace is removed together with the namespace record.
        """
        if name not in self.namespaces:
            return False
        if name in self.terminating_namespaces:
            return True

        self.terminating_namespaces.add(name)
        for dep in self._in_namespace(self.deployments, name):
            dep.deleting = True
        for rs in self._in_namespace(self.replicasets, name):
            rs.deleting = True
        for pod in self._in_namespace(self.pods, name):
            self._terminate_pod(pod)

        def purge():
            self.pods = [p for p in self.pods if p.namespace != name]
            self.deployments = [d for d in self.deployments if d.namespace != name]
            self.replicasets = [r for r in self.replicasets if r.namespace != name]
            self.services = [s for s in self.services if s.namespace != name]
            self.config_maps = [c for c in self.config_maps if c.namespace != name]
            self.secrets = [s for s in self.secrets if s.namespace != name]
            self.namespaces.pop(name, None)
            self.terminating_namespaces.discard(name)
            logger.info(f"Removed namespace {name}")

        self._schedule_removal(f"namespace/{name}", purge)
        return True

    def namespace_status(self, name: str) -> str:
        return 'Terminating' if name in self.terminating_namespaces else 'Active'

    def list_namespaces(self) -> List[Namespace]:
        return [Namespace(name, created, self.namespace_status(name))
                for name, created in self.namespaces.items()]

    def find_namespace(self, name: str) -> Optional[Namespace]:
        if name not in self.namespaces:
            return None
        return Namespace(name, self.namespaces[name], self.namespace_status(name))

    # ------------------------------------------------------------------
    # Queries

    @staticmethod
    def _in_namespace(items, namespace: str):
        if namespace == ALL_NAMESPACES:
            return list(items)
        return [item for item in items if item.namespace == namespace]

    @staticmethod
    def _find(items, name: str, namespace: str):
        for item in items:
            if item.name == name and (namespace == ALL_NAMESPACES or item.namespace == namespace):
                return item
        return None

    def list_pods(self, namespace: str = ALL_NAMESPACES,
                  selector: Optional[Dict[str, str]] = None) -> List[Pod]:
        pods = self._in_namespace(self.pods, namespace)
        if selector:
            pods = [p for p in pods if p.matches(selector)]
        return pods

    def find_pod(self, name: str, namespace: str) -> Optional[Pod]:
        return self._find(self.pods, name, namespace)

    def list_deployments(self, namespace: str = ALL_NAMESPACES) -> List[Deployment]:
        return self._in_namespace(self.deployments, namespace)

    def find_deployment(self, name: str, namespace: str) -> Optional[Deployment]:
        return self._find(self.deployments, name, namespace)

    def list_replicasets(self, namespace: str = ALL_NAMESPACES) -> List[ReplicaSet]:
        return self._in_namespace(self.replicasets, namespace)

    def find_replicaset(self, name: str, namespace: str) -> Optional[ReplicaSet]:
        return self._find(self.replicasets, name, namespace)

    def replicaset_for(self, deployment: Deployment) -> Optional[ReplicaSet]:
        """The live replica set owned by a deployment"""
        for rs in self.replicasets:
            if rs.deployment == deployment.name and rs.namespace == deployment.namespace and not rs.deleting:
                return rs
        return None

    def pods_owned_by(self, rs: ReplicaSet, live_only: bool = True) -> List[Pod]:
        return [
            p for p in self.pods
            if p.namespace == rs.namespace and p.owner_ref == rs.name
            and not (live_only and p.terminating)
        ]

    def list_services(self, namespace: str = ALL_NAMESPACES) -> List[Service]:
        return self._in_namespace(self.services, namespace)

    def find_service(self, name: str, namespace: str) -> Optional[Service]:
        return self._find(self.services, name, namespace)

    def list_config_maps(self, namespace: str = ALL_NAMESPACES) -> List[ConfigMap]:
        return self._in_namespace(self.config_maps, namespace)

    def find_config_map(self, name: str, namespace: str) -> Optional[ConfigMap]:
        return self._find(self.config_maps, name, namespace)

    def list_secrets(self, namespace: str = ALL_NAMESPACES) -> List[Secret]:
        return self._in_namespace(self.secrets, namespace)

    def find_secret(self, name: str, namespace: str) -> Optional[Secret]:
        return self._find(self.secrets, name, namespace)

    def list_events(self, namespace: str = ALL_NAMESPACES) -> List[Event]:
        return self._in_namespace(self.events, namespace)

    def find_node(self, name: str) -> Optional[Node]:
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    # ------------------------------------------------------------------
    # Events

    def add_event(self, event_type: str, reason: str, obj: str, message: str, namespace: str):
        self.events.record(Event(event_type, reason, obj, message, namespace, self.clock()))

    # ------------------------------------------------------------------
    # Pods

    def _new_pod_ip(self) -> str:
        n = self._next_pod_ip
        self._next_pod_ip += 1
        return f"10.244.{n // 256}.{n % 256}"

    def _pick_worker(self) -> str:
        workers = [n.name for n in self.nodes if n.is_worker]
        return self.ids.choice(workers) if workers else self.nodes[0].name

    def add_pod(self, name: str, namespace: str, image: str,
                labels: Optional[Dict[str, str]] = None,
                owner_ref: Optional[str] = None,
                ports: Optional[List[int]] = None) -> Pod:
        """
        Create a running pod and record its scheduling events.

        Args:
            name: Pod name
            namespace: Namespace
            image: Container image
            labels: Pod labels
            owner_ref: Name of the owning ReplicaSet, if any
            ports: Container ports

        Returns:
            The new Pod
        """
        node = self._pick_worker()
        pod = Pod(name, namespace, image, node, self._new_pod_ip(), self.clock(),
                  labels=labels, owner_ref=owner_ref, uid=self.ids.uid())
        pod.containers[0].ports = list(ports or [])
        self.pods.append(pod)

        container = pod.containers[0].name
        obj = f"pod/{name}"
        self.add_event(EventType.NORMAL, 'Scheduled', obj, f"Successfully assigned {namespace}/{name} to {node}", namespace)
        self.add_event(EventType.NORMAL, 'Pulled', obj, f'Container image "{image}" already present on machine', namespace)
        self.add_event(EventType.NORMAL, 'Created', obj, f"Created container {container}", namespace)
        self.add_event(EventType.NORMAL, 'Started', obj, f"Started container {container}", namespace)
        logger.info(f"Created pod {namespace}/{name} on {node}")
        return pod

    def _terminate_pod(self, pod: Pod):
        """Mark a pod Terminating and schedule its removal"""
        if not pod.terminating:
            pod.mark_terminating()
            self.add_event(EventType.NORMAL, 'Killing', f"pod/{pod.name}",
                           f"Stopping container {pod.containers[0].name}", pod.namespace)

        def purge():
            self.pods = [p for p in self.pods if p is not pod]
            logger.info(f"Removed pod {pod.namespace}/{pod.name}")

        self._schedule_removal(f"pod/{pod.uid}", purge)

    def delete_pod(self, name: str, namespace: str) -> bool:
        """
        Delete a pod (two-phase).

        A pod owned by a live replica set is replaced right away, the way the
        replica set controller would.
        """
        pod = self.find_pod(name, namespace)
        if not pod:
            return False
        if pod.terminating:
            return True

        self._terminate_pod(pod)
        if pod.owner_ref:
            rs = self.find_replicaset(pod.owner_ref, namespace)
            if rs and not rs.deleting:
                self._reconcile(rs)
        return True

    # ------------------------------------------------------------------
    # Deployments and replica sets

    def _spawn_pod(self, deployment: Deployment, rs: ReplicaSet) -> Pod:
        taken = [p.name for p in self.pods if p.namespace == rs.namespace]
        name = self.ids.unique(lambda: f"{rs.name}-{self.ids.suffix(5)}", taken)
        labels = dict(deployment.labels)
        labels[POD_TEMPLATE_HASH] = rs.template_hash
        return self.add_pod(name, rs.namespace, deployment.image, labels, rs.name, deployment.ports)

    def _reconcile(self, rs: ReplicaSet):
        """
        Bring the live pod count of a replica set to its replica count.

        Surplus pods are terminated starting from the most recently listed.
        """
        deployment = self.find_deployment(rs.deployment, rs.namespace)
        if not deployment:
            return

        active = self.pods_owned_by(rs)
        if len(active) < rs.replicas:
            to_create = rs.replicas - len(active)
            logger.debug(f"ReplicaSet {rs.namespace}/{rs.name} scaling up: {to_create} pods")
            for _ in range(to_create):
                self._spawn_pod(deployment, rs)
        elif len(active) > rs.replicas:
            to_delete = len(active) - rs.replicas
            logger.debug(f"ReplicaSet {rs.namespace}/{rs.name} scaling down: {to_delete} pods")
            for pod in reversed(active[-to_delete:]):
                self._terminate_pod(pod)

    def create_deployment(self, name: str, namespace: str, image: str, replicas: int,
                          ports: Optional[List[int]] = None,
                          labels: Optional[Dict[str, str]] = None) -> Deployment:
        """
        Create a deployment, its replica set and its pods.

        Args:
            name: Deployment name
            namespace: Namespace
            image: Container image
            replicas: Number of pods
            ports: Container ports
            labels: Pod template labels; defaults to {"app": name}

        Returns:
            The new Deployment
        """
        now = self.clock()
        deployment = Deployment(name, namespace, image, replicas, now, labels=labels, ports=ports)
        self.deployments.append(deployment)

        template_hash = self.ids.suffix(5)
        rs_labels = dict(deployment.labels)
        rs_labels[POD_TEMPLATE_HASH] = template_hash
        rs = ReplicaSet(f"{name}-{template_hash}", namespace, name, replicas, rs_labels, now)
        self.replicasets.append(rs)

        for _ in range(replicas):
            self._spawn_pod(deployment, rs)

        self.add_event(EventType.NORMAL, 'ScalingReplicaSet', f"deployment/{name}",
                       f"Scaled up replica set {rs.name} to {replicas}", namespace)
        logger.info(f"Created deployment {namespace}/{name} with {replicas} replicas")
        return deployment

    def scale_deployment(self, name: str, namespace: str, replicas: int) -> bool:
        """
        Scale a deployment to ``replicas`` pods.

        Returns:
            bool: False if the deployment or its replica set does not exist
        """
        deployment = self.find_deployment(name, namespace)
        if not deployment or deployment.deleting:
            return False
        rs = self.replicaset_for(deployment)
        if not rs:
            return False

        current = len(self.pods_owned_by(rs))
        deployment.set_replicas(replicas)
        rs.set_replicas(replicas)
        self._reconcile(rs)

        if replicas > current:
            message = f"Scaled up replica set {rs.name} to {replicas} from {current}"
        elif replicas < current:
            message = f"Scaled down replica set {rs.name} to {replicas} from {current}"
        else:
            message = f"Scaled replica set {rs.name} to {replicas}"
        self.add_event(EventType.NORMAL, 'ScalingReplicaSet', f"deployment/{name}", message, namespace)
        logger.info(f"Scaled deployment {namespace}/{name} from {current} to {replicas}")
        return True

    def restart_deployment(self, name: str, namespace: str) -> bool:
        """Replace every pod of a deployment and bump its revision"""
        deployment = self.find_deployment(name, namespace)
        if not deployment or deployment.deleting:
            return False
        rs = self.replicaset_for(deployment)
        if not rs:
            return False

        for pod in self.pods_owned_by(rs):
            self._terminate_pod(pod)
        for _ in range(rs.replicas):
            self._spawn_pod(deployment, rs)
        deployment.revision += 1
        logger.info(f"Restarted deployment {namespace}/{name}, revision {deployment.revision}")
        return True

    def update_deployment(self, name: str, namespace: str, image: Optional[str] = None,
                          replicas: Optional[int] = None,
                          ports: Optional[List[int]] = None) -> bool:
        """
        Apply changed fields to an existing deployment.

        A new image rolls every pod; a new replica count scales.

        Returns:
            bool: False if the deployment does not exist
        """
        deployment = self.find_deployment(name, namespace)
        if not deployment or deployment.deleting:
            return False

        if ports is not None:
            deployment.ports = list(ports)
        if image and image != deployment.image:
            deployment.image = image
            self.restart_deployment(name, namespace)
        if replicas is not None and replicas != deployment.replicas:
            self.scale_deployment(name, namespace, replicas)
        return True

    def delete_deployment(self, name: str, namespace: str) -> bool:
        """
        Delete a deployment, cascading to its replica sets and their pods.

        Returns:
            bool: False if the deployment does not exist
        """
        deployment = self.find_deployment(name, namespace)
        if not deployment:
            return False
        if deployment.deleting:
            return True

        deployment.deleting = True
        owned = [rs for rs in self.replicasets if rs.deployment == name and rs.namespace == namespace]
        for rs in owned:
            rs.deleting = True
            for pod in self.pods_owned_by(rs, live_only=False):
                self._terminate_pod(pod)

        def purge():
            self.replicasets = [rs for rs in self.replicasets if rs not in owned]
            self.deployments = [d for d in self.deployments if d is not deployment]
            logger.info(f"Removed deployment {namespace}/{name} and {len(owned)} replica set(s)")

        self._schedule_removal(f"deployment/{namespace}/{name}", purge)
        return True

    # ------------------------------------------------------------------
    # Services, config maps and secrets

    def _new_cluster_ip(self) -> str:
        taken = [s.cluster_ip for s in self.services]
        return self.ids.unique(lambda: f"10.96.{self.ids.randint(1, 254)}.{self.ids.randint(1, 254)}", taken)

    def _new_node_port(self) -> int:
        taken = [str(p.node_port) for s in self.services for p in s.ports if p.node_port]
        return int(self.ids.unique(lambda: str(self.ids.randint(30000, 32767)), taken))

    def create_service(self, name: str, namespace: str, service_type: ServiceType,
                       ports: List[Tuple[int, int]],
                       selector: Optional[Dict[str, str]] = None,
                       external_name: Optional[str] = None,
                       protocol: str = 'TCP') -> Service:
        """
        Create a service.

        Args:
            name: Service name
            namespace: Namespace
            service_type: Service type
            ports: (port, target_port) pairs
            selector: Pod selector, kept for display only
            external_name: DNS name for ExternalName services
            protocol: Port protocol

        Returns:
            The new Service
        """
        service_ports = []
        for port, target_port in ports:
            node_port = None
            if service_type in (ServiceType.NODE_PORT, ServiceType.LOAD_BALANCER):
                node_port = self._new_node_port()
            service_ports.append(ServicePort(port, target_port, protocol, node_port))

        cluster_ip = None if service_type == ServiceType.EXTERNAL_NAME else self._new_cluster_ip()
        external_ip = None
        if service_type == ServiceType.LOAD_BALANCER:
            external_ip = f"203.0.113.{self.ids.randint(1, 254)}"

        service = Service(name, namespace, service_type, cluster_ip, service_ports, selector,
                          self.clock(), external_ip=external_ip, external_name=external_name)
        self.services.append(service)
        logger.info(f"Created service {namespace}/{name} ({service_type.value})")
        return service

    def delete_service(self, name: str, namespace: str) -> bool:
        service = self.find_service(name, namespace)
        if not service:
            return False
        self.services.remove(service)
        logger.info(f"Deleted service {namespace}/{name}")
        return True

    def create_config_map(self, name: str, namespace: str, data: Dict[str, str]) -> ConfigMap:
        config_map = ConfigMap(name, namespace, data, self.clock())
        self.config_maps.append(config_map)
        logger.info(f"Created configmap {namespace}/{name}")
        return config_map

    def delete_config_map(self, name: str, namespace: str) -> bool:
        config_map = self.find_config_map(name, namespace)
        if not config_map:
            return False
        self.config_maps.remove(config_map)
        return True

    def create_secret(self, name: str, namespace: str, data: Dict[str, str]) -> Secret:
        secret = Secret(name, namespace, data, self.clock())
        self.secrets.append(secret)
        logger.info(f"Created secret {namespace}/{name}")
        return secret

    def delete_secret(self, name: str, namespace: str) -> bool:
        secret = self.find_secret(name, namespace)
        if not secret:
            return False
        self.secrets.remove(secret)
        return True

    # ------------------------------------------------------------------
    # Runtime: containers

    def find_container(self, ref: str) -> Optional[Container]:
        """
        Find a container by name, full id or unique id prefix.

        Raises:
            AmbiguousMatch: if ``ref`` is a prefix of more than one id
        """
        for container in self.containers:
            if container.name == ref or container.id == ref:
                return container
        matches = [c for c in self.containers if c.id.startswith(ref)]
        if len(matches) > 1:
            raise AmbiguousMatch(f"Error response from daemon: multiple IDs found with provided prefix: {ref}")
        return matches[0] if matches else None

    def find_network(self, ref: str) -> Optional[Network]:
        for network in self.networks:
            if network.name == ref:
                return network
        matches = [n for n in self.networks if n.id.startswith(ref)]
        return matches[0] if len(matches) == 1 else None

    def find_volume(self, name: str) -> Optional[Volume]:
        for volume in self.volumes:
            if volume.name == name:
                return volume
        return None

    def find_image(self, ref: str) -> Optional[Image]:
        repository, tag = split_image_reference(ref)
        for image in self.images:
            if image.repository == repository and image.tag == tag:
                return image
        matches = [i for i in self.images if i.matches(ref)]
        return matches[0] if len(matches) == 1 else None

    def _generate_container_name(self) -> str:
        taken = [c.name for c in self.containers]
        return self.ids.unique(
            lambda: f"{self.ids.choice(NAME_ADJECTIVES)}_{self.ids.choice(NAME_SCIENTISTS)}", taken)

    def ensure_image(self, reference: str, size: str = '100MB') -> Tuple[Image, bool]:
        """
        Make sure an image record exists for ``reference``.

        Returns:
            (image, created) where created is False if it was already present
        """
        repository, tag = split_image_reference(reference)
        for image in self.images:
            if image.repository == repository and image.tag == tag:
                return image, False
        image = Image(repository, tag, self.ids.unique(self.ids.hex_id, [i.id for i in self.images]),
                      size, self.clock())
        self.images.append(image)
        logger.info(f"Added image {image.reference}")
        return image, True

    def remove_image(self, image: Image):
        self.images = [i for i in self.images if i is not image]
        logger.info(f"Removed image {image.reference}")

    def docker_run(self, image: str, name: Optional[str] = None, ports: str = '',
                   network: Optional[str] = None, command: Optional[str] = None,
                   mounts: Optional[List[Dict[str, str]]] = None,
                   env: Optional[Dict[str, str]] = None,
                   auto_remove: bool = False) -> Container:
        """
        Create and start a container, pulling its image record if needed.

        Args:
            image: Image reference
            name: Container name; generated when omitted
            ports: Port mapping string
            network: Network to attach to (default "bridge")
            command: Launch command; the image default when omitted
            mounts: Volume mounts
            env: Environment variables
            auto_remove: Remove the container when it stops

        Returns:
            The new Container
        """
        container_id = self.ids.unique(self.ids.hex_id, [c.id for c in self.containers])
        net = self.find_network(network or 'bridge')
        container = Container(
            container_id,
            name or self._generate_container_name(),
            image,
            f'"{command}"' if command else default_command_for(image),
            self.clock(),
            ports=ports,
            networks=[net.name] if net else [network or 'bridge'],
            mounts=mounts,
            env=env,
            ip_address=net.next_address() if net else '',
            auto_remove=auto_remove
        )
        if net:
            net.containers.append(container_id)
        self.containers.append(container)
        self.ensure_image(image)
        logger.info(f"Started container {container.name} ({container_id}) from {image}")
        return container

    def docker_stop(self, ref: str) -> bool:
        container = self.find_container(ref)
        if not container:
            return False
        if container.running:
            container.stop(self.clock())
            logger.info(f"Stopped container {container.name}")
        if container.auto_remove:
            self.docker_rm(container.id)
        return True

    def docker_start(self, ref: str) -> bool:
        container = self.find_container(ref)
        if not container:
            return False
        if not container.running:
            container.start(self.clock())
            logger.info(f"Started container {container.name}")
        return True

    def docker_rm(self, ref: str) -> bool:
        container = self.find_container(ref)
        if not container:
            return False
        for network in self.networks:
            if container.id in network.containers:
                network.containers.remove(container.id)
        self.containers = [c for c in self.containers if c is not container]
        logger.info(f"Removed container {container.name}")
        return True

    # ------------------------------------------------------------------
    # Runtime: networks and volumes

    def docker_create_network(self, name: str, driver: str = 'bridge') -> Network:
        n = self._next_subnet
        self._next_subnet += 1
        network = Network(name, self.ids.unique(self.ids.hex_id, [net.id for net in self.networks]),
                          driver, 'swarm' if driver == 'overlay' else 'local',
                          f"172.{n}.0.0/16", f"172.{n}.0.1", self.clock())
        self.networks.append(network)
        logger.info(f"Created network {name} ({driver})")
        return network

    def docker_remove_network(self, network: Network):
        self.networks = [n for n in self.networks if n is not network]
        logger.info(f"Removed network {network.name}")

    def docker_connect(self, network: Network, container: Container):
        if container.id not in network.containers:
            network.containers.append(container.id)
        if network.name not in container.networks:
            container.networks.append(network.name)

    def docker_disconnect(self, network: Network, container: Container):
        if container.id in network.containers:
            network.containers.remove(container.id)
        if network.name in container.networks:
            container.networks.remove(network.name)

    def docker_create_volume(self, name: str) -> Volume:
        """Create a named volume; an existing volume is returned unchanged"""
        volume = self.find_volume(name)
        if volume:
            return volume
        volume = Volume(name, self.clock())
        self.volumes.append(volume)
        logger.info(f"Created volume {name}")
        return volume

    def docker_remove_volume(self, name: str) -> bool:
        volume = self.find_volume(name)
        if not volume:
            return False
        self.volumes.remove(volume)
        logger.info(f"Removed volume {name}")
        return True

    def containers_using_volume(self, name: str) -> List[Container]:
        return [c for c in self.containers if any(m.get('Name') == name for m in c.mounts)]

    def running_containers(self) -> List[Container]:
        return [c for c in self.containers if c.state == ContainerState.RUNNING]

    def node_pod_count(self, node: str) -> int:
        return sum(1 for p in self.pods if p.node == node and p.status != PodStatus.TERMINATING)
