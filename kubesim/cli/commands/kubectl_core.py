"""
kubectl_core.py - Core functionality for the simulated kubectl

This module provides what every kubectl subcommand needs: namespace
resolution, resource kind aliases, lookups against the state store and the
table/describe renderers that reproduce kubectl's output.
"""

import base64
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from kubesim.core.state import StateStore, ALL_NAMESPACES
from kubesim.core.orchestration import PodStatus, EventType, ServiceType
from kubesim.core.orchestration.meta import format_labels
from kubesim.core.orchestration.pod import container_name_for_image
from kubesim.exceptions import ConflictError, ForbiddenError, NotFoundError, UnsupportedError, UsageError
from kubesim.shell.formatting import (
    BOLD, RESET, GREEN, YELLOW,
    colored_cell, format_age, format_output, pad_right, pod_status_color, render_table
)
from kubesim.shell.parser import Command
from kubesim.shell.files import Workspace

logger = logging.getLogger(__name__)

KERNEL_VERSION = "5.15.0-91-generic"
OS_IMAGE = "Ubuntu 22.04.3 LTS"
CONTAINER_RUNTIME = "containerd://1.7.11"

# Rows shown by `kubectl get events`
EVENT_ROWS = 20


class OutputFormat:
    """Output formats for kubectl commands."""
    YAML = "yaml"
    JSON = "json"
    TABLE = "table"
    WIDE = "wide"
    NAME = "name"

    ALL = (YAML, JSON, WIDE, NAME)


# Accepted spellings -> canonical plural kind
KIND_ALIASES = {
    'pods': 'pods', 'pod': 'pods', 'po': 'pods',
    'deployments': 'deployments', 'deployment': 'deployments', 'deploy': 'deployments',
    'services': 'services', 'service': 'services', 'svc': 'services',
    'nodes': 'nodes', 'node': 'nodes', 'no': 'nodes',
    'namespaces': 'namespaces', 'namespace': 'namespaces', 'ns': 'namespaces',
    'replicasets': 'replicasets', 'replicaset': 'replicasets', 'rs': 'replicasets',
    'configmaps': 'configmaps', 'configmap': 'configmaps', 'cm': 'configmaps',
    'secrets': 'secrets', 'secret': 'secrets',
    'events': 'events', 'event': 'events', 'ev': 'events',
}

# Kind -> resource name the API server uses in error messages
API_NAMES = {
    'pods': 'pods',
    'deployments': 'deployments.apps',
    'services': 'services',
    'nodes': 'nodes',
    'namespaces': 'namespaces',
    'replicasets': 'replicasets.apps',
    'configmaps': 'configmaps',
    'secrets': 'secrets',
    'events': 'events',
}

# Kind -> prefix used by `-o name` and confirmation lines
TYPE_PREFIXES = {
    'pods': 'pod',
    'deployments': 'deployment.apps',
    'services': 'service',
    'nodes': 'node',
    'namespaces': 'namespace',
    'replicasets': 'replicaset.apps',
    'configmaps': 'configmap',
    'secrets': 'secret',
    'events': 'event',
}

CLUSTER_SCOPED = ('nodes', 'namespaces')

PROTECTED_NAMESPACES = ('default', 'kube-system', 'kube-public', 'kube-node-lease')

# Manifest kind -> canonical kind
MANIFEST_KINDS = {
    'Pod': 'pods',
    'Deployment': 'deployments',
    'Service': 'services',
    'Namespace': 'namespaces',
    'ConfigMap': 'configmaps',
    'Secret': 'secrets',
}


def resolve_kind(resource: str) -> str:
    """
    Map a resource argument to its canonical kind

    Raises:
        UnsupportedError: for unknown resource types
    """
    kind = KIND_ALIASES.get(resource.lower())
    if not kind:
        raise UnsupportedError(f'error: the server doesn\'t have a resource type "{resource}"')
    return kind


def split_type_name(arg: str) -> Tuple[str, str]:
    """Split "deployment/web" into ("deployment", "web")"""
    if '/' in arg:
        resource, name = arg.split('/', 1)
        return resource, name
    return '', arg


def parse_selector(selector: str) -> Dict[str, str]:
    """
    Parse a single key=value label selector

    Raises:
        UsageError: if the selector is not key=value
    """
    key, sep, value = selector.partition('=')
    if not sep or not key:
        raise UsageError(f'error: unable to parse requirement: "{selector}": only key=value selectors are supported')
    return {key: value.lstrip('=')}


def not_found(kind: str, name: str) -> NotFoundError:
    return NotFoundError(f'Error from server (NotFound): {API_NAMES[kind]} "{name}" not found')


def no_resources(namespace: str) -> str:
    if namespace == ALL_NAMESPACES:
        return "No resources found"
    return f"No resources found in {namespace} namespace."


def _field(label: str, value: Any, width: int) -> str:
    """Bold "Label:" padded so the value starts at column ``width``"""
    return f"{BOLD}{label}:{RESET}" + ' ' * max(width - len(label) - 1, 1) + str(value)


def _multiline_labels(labels: Dict[str, str], width: int) -> str:
    if not labels:
        return '<none>'
    return ('\n' + ' ' * width).join(f"{k}={v}" for k, v in labels.items())


class KubectlCore:
    """
    Core functionality for the simulated kubectl.

    Holds the state store and renders its objects; it keeps no cluster
    state of its own and re-reads the store on every call.
    """

    def __init__(self, store: StateStore, workspace: Optional[Workspace] = None):
        """
        Initialize kubectl core.

        Args:
            store: State store to query and mutate
            workspace: Files readable with -f
        """
        self.store = store
        self.workspace = workspace or Workspace()

    @property
    def now(self) -> float:
        return self.store.clock()

    def age(self, created: float) -> str:
        return format_age(created, self.now)

    def namespace_for(self, cmd: Command) -> str:
        """
        Resolve the namespace a command acts on.

        ``-A``/``--all-namespaces`` wins, then ``-n``/``--namespace``, then the
        store's current namespace.
        """
        if cmd.switch('A', 'all-namespaces'):
            return ALL_NAMESPACES
        namespace = cmd.value('n', 'namespace')
        if cmd.has('n', 'namespace') and not namespace:
            raise UsageError("error: flag needs an argument: 'n' in -n")
        return namespace or self.store.current_namespace

    def require_namespace(self, namespace: str, kind: str, name: str):
        """
        Check that a new object can be created in a namespace.

        Raises:
            NotFoundError: if the namespace does not exist
            ForbiddenError: if the namespace is being deleted
        """
        if not self.store.namespace_exists(namespace):
            raise NotFoundError(f'Error from server (NotFound): namespaces "{namespace}" not found')
        if self.store.namespace_status(namespace) == 'Terminating':
            raise ForbiddenError(f'Error from server (Forbidden): {API_NAMES[kind]} "{name}" is forbidden: '
                                 f'unable to create new content in namespace {namespace} '
                                 'because it is being terminated')

    def get_current_namespace(self) -> str:
        return self.store.current_namespace

    def set_namespace(self, namespace: str):
        self.store.current_namespace = namespace
        logger.info(f"Switched current namespace to {namespace}")

    # ------------------------------------------------------------------
    # Lookups

    def list_resources(self, kind: str, namespace: str,
                       selector: Optional[Dict[str, str]] = None) -> List[Any]:
        """All objects of a kind in a namespace, optionally label-filtered"""
        store = self.store
        if kind == 'pods':
            return store.list_pods(namespace, selector)
        if kind == 'deployments':
            objects = store.list_deployments(namespace)
        elif kind == 'services':
            objects = store.list_services(namespace)
        elif kind == 'nodes':
            objects = list(store.nodes)
        elif kind == 'namespaces':
            objects = store.list_namespaces()
        elif kind == 'replicasets':
            objects = store.list_replicasets(namespace)
        elif kind == 'configmaps':
            objects = store.list_config_maps(namespace)
        elif kind == 'secrets':
            objects = store.list_secrets(namespace)
        elif kind == 'events':
            objects = store.list_events(namespace)
        else:
            raise UnsupportedError(f'error: the server doesn\'t have a resource type "{kind}"')

        if selector:
            objects = [
                o for o in objects
                if all(getattr(o, 'labels', {}).get(k) == v for k, v in selector.items())
            ]
        return objects

    def get_resource(self, kind: str, name: str, namespace: str) -> Any:
        """
        Find one object by name

        Raises:
            NotFoundError: if it does not exist
        """
        store = self.store
        if kind == 'pods':
            obj = store.find_pod(name, namespace)
        elif kind == 'deployments':
            obj = store.find_deployment(name, namespace)
        elif kind == 'services':
            obj = store.find_service(name, namespace)
        elif kind == 'nodes':
            obj = store.find_node(name)
        elif kind == 'namespaces':
            obj = store.find_namespace(name)
        elif kind == 'replicasets':
            obj = store.find_replicaset(name, namespace)
        elif kind == 'configmaps':
            obj = store.find_config_map(name, namespace)
        elif kind == 'secrets':
            obj = store.find_secret(name, namespace)
        else:
            raise UnsupportedError(f'error: the server doesn\'t have a resource type "{kind}"')

        if obj is None:
            raise not_found(kind, name)
        return obj

    # ------------------------------------------------------------------
    # Output

    def format_output(self, kind: str, objects: List[Any], namespace: str,
                      output_format: str = OutputFormat.TABLE,
                      show_labels: bool = False) -> str:
        """
        Format objects for display.

        Args:
            kind: Canonical kind
            objects: Objects to format
            namespace: Namespace the listing was made in
            output_format: Output format
            show_labels: Append a LABELS column to tables

        Returns:
            Formatted output string
        """
        if output_format in (OutputFormat.JSON, OutputFormat.YAML):
            return format_output([o.to_dict() for o in objects], output_format)
        if output_format == OutputFormat.NAME:
            return '\n'.join(self.object_name(kind, o) for o in objects)
        return self.format_table(kind, objects, namespace,
                                 wide=output_format == OutputFormat.WIDE,
                                 show_labels=show_labels)

    def object_name(self, kind: str, obj: Any) -> str:
        if kind == 'events':
            return f"event/{obj.object.replace('/', '.')}"
        return f"{TYPE_PREFIXES[kind]}/{obj.name}"

    def format_table(self, kind: str, objects: List[Any], namespace: str,
                     wide: bool = False, show_labels: bool = False,
                     name_prefix: str = '') -> str:
        """
        Format objects as a table.

        Args:
            kind: Canonical kind
            objects: Objects to format
            namespace: Namespace of the listing; ``__all__`` adds a NAMESPACE column
            wide: Whether to use wide format
            show_labels: Append a LABELS column
            name_prefix: Prefix for the NAME cells, as `get all` prints them

        Returns:
            Formatted table string
        """
        columns, row = self._table_spec(kind, wide)
        all_namespaces = namespace == ALL_NAMESPACES and kind not in CLUSTER_SCOPED
        if all_namespaces:
            columns = [('NAMESPACE', 16)] + columns
        if show_labels:
            columns = columns + [('LABELS', 30)]

        rows = []
        for obj in objects:
            cells = row(obj, name_prefix)
            if all_namespaces:
                cells = [obj.namespace] + cells
            if show_labels:
                cells.append(format_labels(getattr(obj, 'labels', {})))
            rows.append(cells)
        return render_table(columns, rows)

    def _table_spec(self, kind: str, wide: bool) -> Tuple[List[Tuple[str, int]], Callable]:
        specs = {
            'pods': self._pod_table,
            'deployments': self._deployment_table,
            'services': self._service_table,
            'nodes': self._node_table,
            'namespaces': self._namespace_table,
            'replicasets': self._replicaset_table,
            'configmaps': self._configmap_table,
            'secrets': self._secret_table,
            'events': self._event_table,
        }
        return specs[kind](wide)

    def _pod_table(self, wide):
        columns = [('NAME', 48), ('READY', 8), ('STATUS', 18), ('RESTARTS', 10), ('AGE', 6)]
        if wide:
            columns += [('IP', 16), ('NODE', 16), ('NOMINATED NODE', 16), ('READINESS GATES', 16)]

        def row(pod, prefix):
            status = pod.status.value
            cells = [prefix + pod.name, pod.ready, colored_cell(status, pod_status_color(status), 18),
                     str(pod.restarts), self.age(pod.created)]
            if wide:
                cells += [pod.ip, pod.node, '<none>', '<none>']
            return cells
        return columns, row

    def _deployment_table(self, wide):
        columns = [('NAME', 30), ('READY', 10), ('UP-TO-DATE', 12), ('AVAILABLE', 12), ('AGE', 6)]
        if wide:
            columns += [('CONTAINERS', 16), ('IMAGES', 24), ('SELECTOR', 30)]

        def row(dep, prefix):
            cells = [prefix + dep.name, f"{dep.ready_replicas}/{dep.replicas}", str(dep.replicas),
                     str(dep.available_replicas), self.age(dep.created)]
            if wide:
                cells += [container_name_for_image(dep.image), dep.image, format_labels(dep.selector)]
            return cells
        return columns, row

    def _service_table(self, wide):
        columns = [('NAME', 24), ('TYPE', 14), ('CLUSTER-IP', 18), ('EXTERNAL-IP', 16),
                   ('PORT(S)', 24), ('AGE', 6)]
        if wide:
            columns += [('SELECTOR', 30)]

        def row(svc, prefix):
            cells = [prefix + svc.name, svc.type.value, svc.cluster_ip or '<none>', svc.external_column,
                     svc.ports_column, self.age(svc.created)]
            if wide:
                cells.append(format_labels(svc.selector))
            return cells
        return columns, row

    def _node_table(self, wide):
        columns = [('NAME', 20), ('STATUS', 10), ('ROLES', 16), ('AGE', 6), ('VERSION', 10)]
        if wide:
            columns += [('INTERNAL-IP', 16), ('EXTERNAL-IP', 12), ('OS-IMAGE', 20),
                        ('KERNEL-VERSION', 20), ('CONTAINER-RUNTIME', 20)]

        def row(node, prefix):
            color = GREEN if node.status == 'Ready' else YELLOW
            cells = [prefix + node.name, colored_cell(node.status, color, 10), ','.join(node.roles),
                     self.age(node.created), node.version]
            if wide:
                cells += [node.internal_ip, '<none>', OS_IMAGE, KERNEL_VERSION, CONTAINER_RUNTIME]
            return cells
        return columns, row

    def _namespace_table(self, wide):
        columns = [('NAME', 24), ('STATUS', 10), ('AGE', 6)]

        def row(ns, prefix):
            color = GREEN if ns.status == 'Active' else YELLOW
            return [prefix + ns.name, colored_cell(ns.status, color, 10), self.age(ns.created)]
        return columns, row

    def _replicaset_table(self, wide):
        columns = [('NAME', 36), ('DESIRED', 10), ('CURRENT', 10), ('READY', 8), ('AGE', 6)]
        if wide:
            columns += [('CONTAINERS', 16), ('IMAGES', 24), ('SELECTOR', 40)]

        def row(rs, prefix):
            current = len(self.store.pods_owned_by(rs))
            cells = [prefix + rs.name, str(rs.replicas), str(current), str(min(current, rs.ready_replicas)),
                     self.age(rs.created)]
            if wide:
                dep = self.store.find_deployment(rs.deployment, rs.namespace)
                image = dep.image if dep else ''
                cells += [container_name_for_image(image), image, format_labels(rs.labels)]
            return cells
        return columns, row

    def _configmap_table(self, wide):
        columns = [('NAME', 30), ('DATA', 6), ('AGE', 6)]

        def row(cm, prefix):
            return [prefix + cm.name, str(len(cm.data)), self.age(cm.created)]
        return columns, row

    def _secret_table(self, wide):
        columns = [('NAME', 30), ('TYPE', 10), ('DATA', 6), ('AGE', 6)]

        def row(secret, prefix):
            return [prefix + secret.name, secret.type, str(len(secret.data)), self.age(secret.created)]
        return columns, row

    def _event_table(self, wide):
        columns = [('LAST SEEN', 10), ('TYPE', 10), ('REASON', 22), ('OBJECT', 40), ('MESSAGE', 60)]

        def row(event, prefix):
            color = GREEN if event.type == EventType.NORMAL else YELLOW
            return [self.age(event.created), colored_cell(event.type, color, 10), event.reason,
                    event.object, event.message[:58]]
        return columns, row

    def format_all(self, namespace: str) -> str:
        """Tables for `kubectl get all`: pods, services, deployments, replica sets"""
        sections = []
        for kind in ('pods', 'services', 'deployments', 'replicasets'):
            objects = self.list_resources(kind, namespace)
            if objects:
                sections.append(self.format_table(kind, objects, namespace,
                                                  name_prefix=f"{TYPE_PREFIXES[kind]}/"))
        return '\n\n'.join(sections) or no_resources(namespace)

    # ------------------------------------------------------------------
    # Describe

    def describe(self, kind: str, obj: Any) -> str:
        describers = {
            'pods': self._describe_pod,
            'deployments': self._describe_deployment,
            'services': self._describe_service,
            'nodes': self._describe_node,
            'namespaces': self._describe_namespace,
            'replicasets': self._describe_replicaset,
            'configmaps': self._describe_configmap,
            'secrets': self._describe_secret,
        }
        describer = describers.get(kind)
        if not describer:
            raise UnsupportedError(f'error: the server doesn\'t have a resource type "{kind}"')
        return describer(obj)

    def _describe_events(self, obj_ref: str, namespace: Optional[str]) -> str:
        events = self.store.events.for_object(obj_ref, namespace)
        if not events:
            return f"{BOLD}Events:{RESET}  <none>"

        rows = [('Type', 'Reason', 'Age', 'Message'), ('----', '------', '----', '-------')]
        rows += [(e.type, e.reason, self.age(e.created), e.message) for e in events]
        widths = [max(len(r[i]) for r in rows) for i in range(3)]
        lines = [f"{BOLD}Events:{RESET}"]
        for r in rows:
            lines.append('  ' + '  '.join(pad_right(r[i], widths[i]) for i in range(3)) + '  ' + r[3])
        return '\n'.join(lines)

    def _describe_pod(self, pod) -> str:
        w = 14
        container = pod.containers[0]
        lines = [
            _field('Name', pod.name, w),
            _field('Namespace', pod.namespace, w),
            _field('Node', f"{pod.node}", w),
            _field('Start Time', self.age(pod.created) + ' ago', w),
            _field('Labels', _multiline_labels(pod.labels, w), w),
            _field('Status', pod.status.value, w),
            _field('IP', pod.ip, w),
        ]
        if pod.owner_ref:
            lines.append(_field('Controlled By', f"ReplicaSet/{pod.owner_ref}", w))
        lines.append(f"{BOLD}Containers:{RESET}")
        for c in pod.containers:
            lines += [
                f"  {c.name}:",
                f"    Image:          {c.image}",
                f"    Port:           {', '.join(f'{p}/TCP' for p in c.ports) or '<none>'}",
                f"    State:          {c.state if pod.status != PodStatus.TERMINATING else 'Terminating'}",
                f"    Ready:          {'True' if c.ready else 'False'}",
                f"    Restart Count:  {pod.restarts}",
            ]
        lines.append(self._describe_events(f"pod/{pod.name}", pod.namespace))
        return '\n'.join(lines)

    def _describe_deployment(self, dep) -> str:
        w = 20
        rs = self.store.replicaset_for(dep)
        lines = [
            _field('Name', dep.name, w),
            _field('Namespace', dep.namespace, w),
            _field('CreationTimestamp', self.age(dep.created) + ' ago', w),
            _field('Labels', _multiline_labels(dep.labels, w), w),
            _field('Selector', format_labels(dep.selector), w),
            _field('Replicas', f"{dep.replicas} desired | {dep.replicas} updated | "
                               f"{dep.available_replicas} available", w),
            _field('StrategyType', dep.strategy.value, w),
            f"{BOLD}Pod Template:{RESET}",
            f"  Labels:  {format_labels(dep.labels, ', ')}",
            "  Containers:",
            f"   {container_name_for_image(dep.image)}:",
            f"    Image:      {dep.image}",
            f"    Port:       {', '.join(f'{p}/TCP' for p in dep.ports) or '<none>'}",
            _field('NewReplicaSet', f"{rs.name} ({rs.replicas}/{rs.replicas} replicas created)"
                   if rs else '<none>', w),
            self._describe_events(f"deployment/{dep.name}", dep.namespace),
        ]
        return '\n'.join(lines)

    def _describe_service(self, svc) -> str:
        w = 19
        endpoints = '<none>'
        if svc.selector:
            pods = [p for p in self.store.list_pods(svc.namespace, svc.selector) if not p.terminating]
            targets = [f"{p.ip}:{port.target_port}" for p in pods for port in svc.ports]
            endpoints = ','.join(targets) or '<none>'

        lines = [
            _field('Name', svc.name, w),
            _field('Namespace', svc.namespace, w),
            _field('Selector', format_labels(svc.selector), w),
            _field('Type', svc.type.value, w),
            _field('IP', svc.cluster_ip or 'None', w),
        ]
        if svc.external_name:
            lines.append(_field('External Name', svc.external_name, w))
        if svc.external_ip:
            lines.append(_field('LoadBalancer Ingress', svc.external_ip, w))
        lines += [
            _field('Port', ', '.join(f"{p.name or '<unset>'}  {p.port}/{p.protocol}" for p in svc.ports)
                   or '<none>', w),
            _field('TargetPort', ', '.join(f"{p.target_port}/{p.protocol}" for p in svc.ports) or '<none>', w),
        ]
        node_ports = [p for p in svc.ports if p.node_port]
        if node_ports:
            lines.append(_field('NodePort', ', '.join(f"{p.name or '<unset>'}  {p.node_port}/{p.protocol}"
                                                      for p in node_ports), w))
        lines += [
            _field('Endpoints', endpoints, w),
            _field('Session Affinity', 'None', w),
            self._describe_events(f"service/{svc.name}", svc.namespace),
        ]
        return '\n'.join(lines)

    def _describe_node(self, node) -> str:
        w = 20
        pods = [p for p in self.store.pods if p.node == node.name and not p.terminating]
        lines = [
            _field('Name', node.name, w),
            _field('Roles', ','.join(node.roles), w),
            _field('Status', node.status, w),
            _field('InternalIP', node.internal_ip, w),
            _field('CreationTimestamp', self.age(node.created) + ' ago', w),
            f"{BOLD}Capacity:{RESET}",
            f"  cpu:     {node.cpu}",
            f"  memory:  {node.memory}",
            f"  pods:    110",
            f"{BOLD}System Info:{RESET}",
            f"  OS:                    {node.os}",
            f"  OS Image:              {OS_IMAGE}",
            f"  Kernel Version:        {KERNEL_VERSION}",
            f"  Container Runtime:     {CONTAINER_RUNTIME}",
            f"  Kubelet Version:       {node.version}",
            _field('Non-terminated Pods', f"({len(pods)} in total)", w + 2),
        ]
        for p in pods:
            lines.append(f"  {pad_right(p.namespace, 16)}  {p.name}")
        return '\n'.join(lines)

    def _describe_namespace(self, ns) -> str:
        w = 14
        return '\n'.join([
            _field('Name', ns.name, w),
            _field('Labels', _multiline_labels(ns.labels, w), w),
            _field('Annotations', '<none>', w),
            _field('Status', ns.status, w),
            '',
            'No resource quota.',
            '',
            'No LimitRange resource.',
        ])

    def _describe_replicaset(self, rs) -> str:
        w = 14
        live = self.store.pods_owned_by(rs)
        running = sum(1 for p in live if p.status == PodStatus.RUNNING)
        dep = self.store.find_deployment(rs.deployment, rs.namespace)
        image = dep.image if dep else ''
        return '\n'.join([
            _field('Name', rs.name, w),
            _field('Namespace', rs.namespace, w),
            _field('Selector', format_labels(rs.labels), w),
            _field('Labels', _multiline_labels(rs.labels, w), w),
            _field('Controlled By', f"Deployment/{rs.deployment}", w),
            _field('Replicas', f"{len(live)} current / {rs.replicas} desired", w),
            _field('Pods Status', f"{running} Running / {len(live) - running} Waiting / 0 Succeeded / 0 Failed", w),
            f"{BOLD}Pod Template:{RESET}",
            "  Containers:",
            f"   {container_name_for_image(image)}:",
            f"    Image:      {image}",
            self._describe_events(f"replicaset/{rs.name}", rs.namespace),
        ])

    def _describe_configmap(self, cm) -> str:
        w = 14
        lines = [
            _field('Name', cm.name, w),
            _field('Namespace', cm.namespace, w),
            _field('Labels', '<none>', w),
            _field('Annotations', '<none>', w),
            '',
            'Data',
            '====',
        ]
        for key, value in cm.data.items():
            lines += [f"{key}:", '----', str(value), '']
        lines += ['', 'BinaryData', '====', '', f"{BOLD}Events:{RESET}  <none>"]
        return '\n'.join(lines)

    def _describe_secret(self, secret) -> str:
        w = 14
        lines = [
            _field('Name', secret.name, w),
            _field('Namespace', secret.namespace, w),
            _field('Labels', '<none>', w),
            _field('Annotations', '<none>', w),
            '',
            _field('Type', secret.type, w),
            '',
            'Data',
            '====',
        ]
        lines += [f"{key}:  {len(value.encode())} bytes" for key, value in secret.data.items()]
        return '\n'.join(lines)

    # ------------------------------------------------------------------
    # Manifests

    def load_manifests(self, filename: str) -> List[Dict[str, Any]]:
        """
        Read the YAML documents in a workspace file.

        Raises:
            UsageError: if the file is missing or is not valid YAML
        """
        content = self.workspace.read(filename)
        if content is None:
            raise UsageError(f'error: the path "{filename}" does not exist')
        try:
            documents = [d for d in yaml.safe_load_all(content) if d]
        except yaml.YAMLError as e:
            raise UsageError(f'error: error parsing {filename}: {e}')
        for doc in documents:
            if not isinstance(doc, dict) or 'kind' not in doc:
                raise UsageError(f'error: error validating "{filename}": kind not set')
            if not (doc.get('metadata') or {}).get('name'):
                raise UsageError(f'error: error validating "{filename}": metadata.name is required')
        return documents

    def manifest_target(self, doc: Dict[str, Any], namespace: str) -> Tuple[str, str, str]:
        """(kind, name, namespace) a manifest refers to"""
        kind = MANIFEST_KINDS.get(doc['kind'])
        metadata = doc.get('metadata') or {}
        if not kind:
            raise UnsupportedError(
                f'error: resource mapping not found for name: "{metadata.get("name")}" namespace: "" '
                f'from "{doc.get("apiVersion", "")}": no matches for kind "{doc["kind"]}"')
        if namespace == ALL_NAMESPACES:
            namespace = self.store.current_namespace
        return kind, metadata['name'], metadata.get('namespace') or namespace

    def resource_exists(self, kind: str, name: str, namespace: str) -> bool:
        try:
            self.get_resource(kind, name, namespace)
        except NotFoundError:
            return False
        return True

    def apply_resource(self, doc: Dict[str, Any], namespace: str) -> str:
        """
        Create or update the object a manifest describes.

        Args:
            doc: Parsed manifest
            namespace: Namespace used when the manifest does not set one

        Returns:
            Confirmation line, "<type>/<name> created" or "... configured"
        """
        kind, name, namespace = self.manifest_target(doc, namespace)
        existing = self.resource_exists(kind, name, namespace)
        if kind != 'namespaces' and not existing:
            self.require_namespace(namespace, kind, name)

        spec = doc.get('spec') or {}
        store = self.store

        if kind == 'deployments':
            template = spec.get('template') or {}
            container = _first_container(template.get('spec') or {})
            image = container.get('image', 'nginx:latest')
            ports = _container_ports(container)
            replicas = int(spec.get('replicas', 1))
            if existing:
                if not store.update_deployment(name, namespace, image=image, replicas=replicas, ports=ports):
                    raise ConflictError('Error from server (Conflict): error when applying patch: '
                                        f'Operation cannot be fulfilled on deployments.apps "{name}": '
                                        'the object is being deleted')
            else:
                labels = (template.get('metadata') or {}).get('labels') or {"app": name}
                store.create_deployment(name, namespace, image, replicas, ports=ports, labels=labels)

        elif kind == 'services':
            service_type = ServiceType.parse(spec.get('type', 'ClusterIP')) or ServiceType.CLUSTER_IP
            ports = [(int(p.get('port', 80)), int(p.get('targetPort', p.get('port', 80))))
                     for p in spec.get('ports') or []]
            selector = spec.get('selector') or {}
            if existing:
                service = store.find_service(name, namespace)
                service.selector = dict(selector)
            else:
                protocol = ((spec.get('ports') or [{}])[0]).get('protocol', 'TCP')
                store.create_service(name, namespace, service_type, ports, selector,
                                     external_name=spec.get('externalName'), protocol=protocol)

        elif kind == 'configmaps':
            data = {k: str(v) for k, v in (doc.get('data') or {}).items()}
            if existing:
                store.find_config_map(name, namespace).data = data
            else:
                store.create_config_map(name, namespace, data)

        elif kind == 'secrets':
            try:
                data = {k: base64.b64decode(v).decode() for k, v in (doc.get('data') or {}).items()}
            except ValueError as e:
                raise UsageError(f'error: error decoding secret "{name}": {e}')
            data.update({k: str(v) for k, v in (doc.get('stringData') or {}).items()})
            if existing:
                store.find_secret(name, namespace).data = data
            else:
                store.create_secret(name, namespace, data)

        elif kind == 'pods':
            if not existing:
                container = _first_container(spec)
                labels = (doc.get('metadata') or {}).get('labels') or {}
                store.add_pod(name, namespace, container.get('image', 'nginx:latest'), labels,
                              ports=_container_ports(container))

        elif kind == 'namespaces':
            if not existing:
                store.create_namespace(name)

        action = 'configured' if existing else 'created'
        logger.debug(f"Applied {kind} {namespace}/{name}: {action}")
        return f"{TYPE_PREFIXES[kind]}/{name} {action}"

    def delete_resource(self, kind: str, name: str, namespace: str) -> str:
        """
        Delete one object

        Returns:
            Confirmation line, e.g. 'pod "web" deleted'

        Raises:
            NotFoundError: if the object does not exist
            ForbiddenError: for the system namespaces
        """
        store = self.store
        if kind == 'pods':
            deleted = store.delete_pod(name, namespace)
        elif kind == 'deployments':
            deleted = store.delete_deployment(name, namespace)
        elif kind == 'services':
            deleted = store.delete_service(name, namespace)
        elif kind == 'configmaps':
            deleted = store.delete_config_map(name, namespace)
        elif kind == 'secrets':
            deleted = store.delete_secret(name, namespace)
        elif kind == 'namespaces':
            if name in PROTECTED_NAMESPACES:
                raise ForbiddenError(
                    f'Error from server (Forbidden): namespaces "{name}" is forbidden: '
                    f'this namespace may not be deleted')
            deleted = store.delete_namespace(name)
        else:
            raise UnsupportedError(
                'Error from server (MethodNotAllowed): the server does not allow this method on the requested resource')

        if not deleted:
            raise not_found(kind, name)
        return f'{TYPE_PREFIXES[kind]} "{name}" deleted'


def _first_container(pod_spec: Dict[str, Any]) -> Dict[str, Any]:
    containers = pod_spec.get('containers') or [{}]
    return containers[0] or {}


def _container_ports(container: Dict[str, Any]) -> List[int]:
    return [int(p['containerPort']) for p in container.get('ports') or [] if 'containerPort' in p]
