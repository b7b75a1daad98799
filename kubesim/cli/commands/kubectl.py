"""
kubectl.py - Simulated kubectl command handlers

This module maps kubectl subcommands to handler functions. Each handler
takes the KubectlCore and a parsed Command and returns the text kubectl
would print; failures are raised as KubeSimError and rendered by
handle_kubectl.
"""

import re
import logging
from typing import Callable, Dict, List, Optional

import yaml

from .kubectl_core import (
    KubectlCore, OutputFormat, EVENT_ROWS, API_NAMES, TYPE_PREFIXES,
    resolve_kind, split_type_name, parse_selector, not_found, no_resources
)
from kubesim.core.state import ALL_NAMESPACES
from kubesim.core.orchestration import ServiceType
from kubesim.exceptions import (
    KubeSimError, UsageError, UnsupportedError, AlreadyExistsError, ConflictError, NotFoundError
)
from kubesim.shell.formatting import (
    GREEN, CYAN, GRAY, YELLOW, colorize, render_error, render_table
)
from kubesim.shell.parser import Command

logger = logging.getLogger(__name__)

NGINX_LOGS = [
    "/docker-entrypoint.sh: /docker-entrypoint.d/ is not empty, will attempt to perform configuration",
    "/docker-entrypoint.sh: Configuration complete; ready for start up",
    '2024/01/15 10:23:45 [notice] 1#1: using the "epoll" event method',
    "2024/01/15 10:23:45 [notice] 1#1: nginx/1.25.3",
    "2024/01/15 10:23:45 [notice] 1#1: start worker processes",
    '10.244.0.1 - - [15/Jan/2024:10:24:00 +0000] "GET / HTTP/1.1" 200 615 "-" "curl/8.1.2"',
    '10.244.0.1 - - [15/Jan/2024:10:24:01 +0000] "GET /favicon.ico HTTP/1.1" 404 153 "-" "Mozilla/5.0"',
]

GENERIC_LOGS = [
    "Container started successfully",
    "Listening on port 8080",
    "Ready to accept connections",
]

ROOT_LISTING = "bin  dev  etc  home  lib  proc  root  run  sbin  srv  sys  tmp  usr  var"


def _type_and_name(operands: List[str]):
    """Accept both "deployment web" and "deployment/web" """
    if not operands:
        return '', ''
    resource, name = split_type_name(operands[0])
    if resource:
        return resource, name
    return operands[0], operands[1] if len(operands) > 1 else ''


def _parse_int(value: str, flag: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise UsageError(f'error: invalid argument "{value}" for "--{flag}" flag: strconv.ParseInt: parsing "{value}": invalid syntax')


def _require_namespace(kubectl: KubectlCore, namespace: str, kind: str, name: str):
    if namespace != ALL_NAMESPACES:
        kubectl.require_namespace(namespace, kind, name)


def _selector_for(cmd: Command) -> Optional[Dict[str, str]]:
    value = cmd.value('l', 'selector')
    if cmd.has('l', 'selector') and not value:
        raise UsageError("error: flag needs an argument: 'l' in -l")
    return parse_selector(value) if value else None


def cmd_get(kubectl: KubectlCore, cmd: Command) -> str:
    """Display one or many resources"""
    namespace = kubectl.namespace_for(cmd)
    show_labels = cmd.switch('show-labels')
    output = cmd.flag('o', 'output', default=OutputFormat.TABLE)
    if output is True or (output != OutputFormat.TABLE and output not in OutputFormat.ALL):
        raise UsageError(f'error: unable to match a printer suitable for the output format "{output}", '
                         f'allowed formats are: json,name,wide,yaml')
    selector = _selector_for(cmd)

    operands = cmd.operands
    if not operands:
        raise UsageError("error: Required resource not specified.",
                         hint="Use \"kubectl explain <resource>\" for a detailed description of that resource (e.g. kubectl explain pods).")

    resource, name = split_type_name(operands[0])
    names = [name] if resource else operands[1:]
    resource = resource or operands[0]

    if resource == 'all':
        return kubectl.format_all(namespace)

    kind = resolve_kind(resource)
    if names:
        if namespace == ALL_NAMESPACES and kind not in ('nodes', 'namespaces'):
            raise UsageError("error: a resource cannot be retrieved by name across all namespaces")
        objects = [kubectl.get_resource(kind, n, namespace) for n in names]
    else:
        objects = kubectl.list_resources(kind, namespace, selector)
        if kind == 'events':
            objects = objects[:EVENT_ROWS]
        if not objects:
            return no_resources(namespace)

    return kubectl.format_output(kind, objects, namespace, output, show_labels)


def cmd_describe(kubectl: KubectlCore, cmd: Command) -> str:
    """Show details of a resource or group of resources"""
    namespace = kubectl.namespace_for(cmd)
    selector = _selector_for(cmd)
    resource, name = _type_and_name(cmd.operands)
    if not resource:
        raise UsageError("error: You must specify the type of resource to describe. "
                         "Use \"kubectl api-resources\" for a complete list of supported resources.")

    kind = resolve_kind(resource)
    if name:
        objects = [kubectl.get_resource(kind, name, namespace)]
    else:
        objects = kubectl.list_resources(kind, namespace, selector)
        if not objects:
            return no_resources(namespace)
    return '\n\n'.join(kubectl.describe(kind, obj) for obj in objects)


def cmd_apply(kubectl: KubectlCore, cmd: Command) -> str:
    """Apply a configuration to a resource by file name"""
    filename = cmd.value('f', 'filename')
    if not filename:
        raise UsageError("error: must specify one of -f and -k")
    namespace = kubectl.namespace_for(cmd)
    documents = kubectl.load_manifests(filename)
    return '\n'.join(kubectl.apply_resource(doc, namespace) for doc in documents)


def _create_from_file(kubectl: KubectlCore, filename: str, namespace: str) -> str:
    results = []
    for doc in kubectl.load_manifests(filename):
        kind, name, ns = kubectl.manifest_target(doc, namespace)
        if kubectl.resource_exists(kind, name, ns):
            raise AlreadyExistsError(
                f'Error from server (AlreadyExists): error when creating "{filename}": '
                f'{API_NAMES[kind]} "{name}" already exists')
        results.append(kubectl.apply_resource(doc, ns))
    return '\n'.join(results)


def _parse_literals(values: List[str]) -> Dict[str, str]:
    data = {}
    for literal in values:
        key, sep, value = literal.partition('=')
        if not sep or not key:
            raise UsageError(f"error: invalid literal source {literal}, expected key=value")
        data[key] = value
    return data


def cmd_create(kubectl: KubectlCore, cmd: Command) -> str:
    """Create a resource from a file or from arguments"""
    store = kubectl.store
    namespace = kubectl.namespace_for(cmd)
    if namespace == ALL_NAMESPACES:
        namespace = store.current_namespace

    filename = cmd.value('f', 'filename')
    if filename:
        return _create_from_file(kubectl, filename, namespace)

    operands = cmd.operands
    if not operands:
        raise UsageError("error: must specify one of -f and -k")
    resource = operands[0]

    if resource in ('namespace', 'ns'):
        if len(operands) < 2:
            raise UsageError("error: exactly one NAME is required, got 0")
        name = operands[1]
        if not store.create_namespace(name):
            raise AlreadyExistsError(f'Error from server (AlreadyExists): namespaces "{name}" already exists')
        return f"namespace/{name} created"

    if resource in ('deployment', 'deploy'):
        if len(operands) < 2:
            raise UsageError("error: exactly one NAME is required, got 0")
        name = operands[1]
        image = cmd.value('image')
        if not image:
            raise UsageError('error: required flag(s) "image" not set')
        replicas = _parse_int(cmd.value('replicas', default='1'), 'replicas')
        ports = [_parse_int(cmd.value('port'), 'port')] if cmd.has('port') else []
        _require_namespace(kubectl, namespace, 'deployments', name)
        if store.find_deployment(name, namespace):
            raise AlreadyExistsError(f'Error from server (AlreadyExists): deployments.apps "{name}" already exists')
        store.create_deployment(name, namespace, image, replicas, ports=ports)
        return f"deployment.apps/{name} created"

    if resource in ('configmap', 'cm'):
        if len(operands) < 2:
            raise UsageError("error: exactly one NAME is required, got 0")
        name = operands[1]
        data = _parse_literals(cmd.values('from-literal'))
        _require_namespace(kubectl, namespace, 'configmaps', name)
        if store.find_config_map(name, namespace):
            raise AlreadyExistsError(f'Error from server (AlreadyExists): configmaps "{name}" already exists')
        store.create_config_map(name, namespace, data)
        return f"configmap/{name} created"

    if resource == 'secret':
        if len(operands) < 2 or operands[1] != 'generic':
            raise UsageError('error: unknown secret type, only "generic" secrets are supported',
                             hint="Usage: kubectl create secret generic NAME [--from-literal=key1=value1]")
        if len(operands) < 3:
            raise UsageError("error: exactly one NAME is required, got 0")
        name = operands[2]
        data = _parse_literals(cmd.values('from-literal'))
        _require_namespace(kubectl, namespace, 'secrets', name)
        if store.find_secret(name, namespace):
            raise AlreadyExistsError(f'Error from server (AlreadyExists): secrets "{name}" already exists')
        store.create_secret(name, namespace, data)
        return f"secret/{name} created"

    if resource in ('service', 'svc'):
        return _create_service(kubectl, cmd, operands, namespace)

    raise UnsupportedError(f'error: unknown resource type "{resource}"')


def _create_service(kubectl: KubectlCore, cmd: Command, operands: List[str], namespace: str) -> str:
    store = kubectl.store
    service_type = ServiceType.parse(operands[1]) if len(operands) > 1 else None
    if not service_type:
        raise UsageError("error: must specify a service type: clusterip, externalname, loadbalancer or nodeport")
    if len(operands) < 3:
        raise UsageError("error: exactly one NAME is required, got 0")
    name = operands[2]

    ports = []
    external_name = None
    if service_type == ServiceType.EXTERNAL_NAME:
        external_name = cmd.value('external-name')
        if not external_name:
            raise UsageError('error: required flag(s) "external-name" not set')
    else:
        specs = [s for value in cmd.values('tcp') for s in value.split(',')]
        if not specs:
            raise UsageError("error: at least one tcp port specifier must be provided")
        for spec in specs:
            port, _, target = spec.partition(':')
            ports.append((_parse_int(port, 'tcp'), _parse_int(target or port, 'tcp')))

    _require_namespace(kubectl, namespace, 'services', name)
    if store.find_service(name, namespace):
        raise AlreadyExistsError(f'Error from server (AlreadyExists): services "{name}" already exists')
    store.create_service(name, namespace, service_type, ports, {"app": name}, external_name=external_name)
    return f"service/{name} created"


def cmd_delete(kubectl: KubectlCore, cmd: Command) -> str:
    """Delete resources by file name, by type and name, or by selector"""
    namespace = kubectl.namespace_for(cmd)
    delete_all = cmd.switch('all')
    cmd.switch('now')
    selector = _selector_for(cmd)

    filename = cmd.value('f', 'filename')
    if filename:
        results = []
        for doc in kubectl.load_manifests(filename):
            kind, name, ns = kubectl.manifest_target(doc, namespace)
            try:
                results.append(kubectl.delete_resource(kind, name, ns))
            except NotFoundError as e:
                results.append(e.message)
        return '\n'.join(results)

    operands = cmd.operands
    if not operands:
        raise UsageError("error: You must provide one or more resources by argument or filename.")

    resource, name = split_type_name(operands[0])
    names = [name] if resource else operands[1:]
    kind = resolve_kind(resource or operands[0])

    if not names:
        if not delete_all and not selector:
            raise UsageError("error: resource(s) were provided, but no name was specified")
        objects = [
            o for o in kubectl.list_resources(kind, namespace, selector)
            if not getattr(o, 'terminating', False)
        ]
        if not objects:
            return "No resources found"
        targets = [(o.name, getattr(o, 'namespace', namespace)) for o in objects]
    else:
        if namespace == ALL_NAMESPACES:
            namespace = kubectl.store.current_namespace
        targets = [(n, namespace) for n in names]

    results = []
    for name, ns in targets:
        try:
            results.append(kubectl.delete_resource(kind, name, ns))
        except NotFoundError as e:
            if len(targets) == 1:
                raise
            results.append(e.message)
    return '\n'.join(results)


def cmd_scale(kubectl: KubectlCore, cmd: Command) -> str:
    """Set a new size for a deployment"""
    namespace = kubectl.namespace_for(cmd)
    replicas_value = cmd.value('replicas')
    try:
        replicas = int(replicas_value)
    except (TypeError, ValueError):
        replicas = -1
    if replicas < 0:
        raise UsageError("error: The --replicas=COUNT flag is required, and COUNT must be greater than or equal to 0")

    resource, name = _type_and_name(cmd.operands)
    if not resource:
        raise UsageError("error: You must provide one or more resources by argument or filename.")
    if not name:
        raise UsageError("error: resource(s) were provided, but no name was specified")
    kind = resolve_kind(resource)
    if kind != 'deployments':
        raise UnsupportedError(f'error: {TYPE_PREFIXES[kind]}/{name} is not scalable')

    if not kubectl.store.scale_deployment(name, namespace, replicas):
        raise not_found('deployments', name)
    return f"deployment.apps/{name} scaled"


def cmd_rollout(kubectl: KubectlCore, cmd: Command) -> str:
    """Manage the rollout of a deployment"""
    namespace = kubectl.namespace_for(cmd)
    operands = cmd.operands
    if not operands:
        raise UsageError("error: must specify a subcommand",
                         hint="Available commands: history, restart, status, undo")
    action = operands[0]
    if action not in ('status', 'history', 'restart', 'undo'):
        raise UsageError(f'error: unknown command "{action}" for "kubectl rollout"')

    resource, name = _type_and_name(operands[1:])
    if not name:
        raise UsageError("error: required resource not specified")
    if resolve_kind(resource) != 'deployments':
        raise UnsupportedError(f'error: no rollout support for "{resource}"')
    dep = kubectl.get_resource('deployments', name, namespace)

    if action == 'status':
        return f'deployment "{name}" successfully rolled out'
    if action == 'history':
        rows = [f"{revision:<10}<none>" for revision in range(1, dep.revision + 1)]
        return f"deployment.apps/{name}\nREVISION  CHANGE-CAUSE\n" + '\n'.join(rows)
    if action == 'undo':
        if dep.revision < 2:
            raise ConflictError(f'error: no rollout history found for deployment "{name}"')
        kubectl.store.restart_deployment(name, namespace)
        return f"deployment.apps/{name} rolled back"

    kubectl.store.restart_deployment(name, namespace)
    return f"deployment.apps/{name} restarted"


def cmd_logs(kubectl: KubectlCore, cmd: Command) -> str:
    """Print the logs for a container in a pod"""
    namespace = kubectl.namespace_for(cmd)
    cmd.switch('f', 'follow')
    cmd.switch('p', 'previous')
    tail = cmd.value('tail')

    operands = cmd.operands
    if not operands:
        raise UsageError("error: expected 'logs [-f] [-p] (POD | TYPE/NAME) [-c CONTAINER]'.",
                         hint="POD or TYPE/NAME is a required argument for the logs command")

    resource, name = split_type_name(operands[0])
    if resource and resolve_kind(resource) == 'deployments':
        dep = kubectl.get_resource('deployments', name, namespace)
        rs = kubectl.store.replicaset_for(dep)
        pods = kubectl.store.pods_owned_by(rs) if rs else []
        if not pods:
            raise NotFoundError(f'error: timed out waiting for the condition on deployments/{name}')
        pod = pods[0]
    else:
        pod = kubectl.get_resource('pods', name, namespace)

    lines = NGINX_LOGS if 'nginx' in pod.image else GENERIC_LOGS
    if tail is not None:
        count = _parse_int(tail, 'tail')
        lines = lines[-count:] if count > 0 else []
    return colorize('\n'.join(lines), GRAY) if lines else ''


def _pod_env(pod) -> str:
    return '\n'.join([
        "PATH=/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin",
        f"HOSTNAME={pod.name}",
        "KUBERNETES_SERVICE_HOST=10.96.0.1",
        "KUBERNETES_SERVICE_PORT=443",
        "HOME=/root",
    ])


def cmd_exec(kubectl: KubectlCore, cmd: Command) -> str:
    """Execute a command in a container"""
    namespace = kubectl.namespace_for(cmd)
    cmd.switch('i', 'stdin')
    cmd.switch('t', 'tty')

    trailing = cmd.trailing
    operands = cmd.operands
    head = operands[:len(operands) - len(trailing)]
    if not head:
        raise UsageError("error: expected 'exec POD_NAME COMMAND [ARG1] [ARG2] ... [ARGN]'.",
                         hint="POD_NAME and COMMAND are required arguments for the exec command")
    command = trailing or head[1:]
    if not command:
        raise UsageError("error: you must specify at least one command for the container")

    pod = kubectl.get_resource('pods', head[0], namespace)
    if pod.terminating:
        raise ConflictError(f'error: unable to upgrade connection: container not found ("{pod.containers[0].name}")')

    program = command[0].rsplit('/', 1)[-1]
    if program in ('sh', 'bash', 'ash') and len(command) > 2 and command[1] == '-c':
        command = command[2].split()
        program = command[0].rsplit('/', 1)[-1] if command else ''
    if program in ('sh', 'bash', 'ash'):
        return colorize("(simulated shell - type commands normally)", YELLOW)
    if program in ('env', 'printenv'):
        return _pod_env(pod)
    if program == 'ls':
        return ROOT_LISTING
    if program == 'hostname':
        return pod.name
    if program == 'echo':
        return ' '.join(command[1:])
    return colorize(f"Command executed in {pod.name}", GRAY)


def _memory_gi(memory: str) -> int:
    match = re.match(r'(\d+)', memory)
    return int(match.group(1)) if match else 1


def cmd_top(kubectl: KubectlCore, cmd: Command) -> str:
    """Display resource (CPU/memory) usage"""
    ids = kubectl.store.ids
    operands = cmd.operands
    resource = operands[0] if operands else ''

    if resource in ('nodes', 'node', 'no'):
        columns = [('NAME', 20), ('CPU(cores)', 12), ('CPU%', 8), ('MEMORY(bytes)', 16), ('MEMORY%', 10)]
        rows = []
        for node in kubectl.store.nodes:
            cpu = ids.randint(100, 399)
            memory = ids.randint(500, 2499)
            rows.append([node.name, f"{cpu}m", f"{cpu // 40}%", f"{memory}Mi",
                         f"{int(memory / (_memory_gi(node.memory) * 10.24))}%"])
        return render_table(columns, rows)

    if resource in ('pods', 'pod', 'po'):
        namespace = kubectl.namespace_for(cmd)
        pods = [p for p in kubectl.store.list_pods(namespace) if p.status.value == 'Running']
        if not pods:
            return no_resources(namespace)
        columns = [('NAME', 48), ('CPU(cores)', 12), ('MEMORY(bytes)', 16)]
        if namespace == ALL_NAMESPACES:
            columns = [('NAMESPACE', 16)] + columns
        rows = []
        for pod in pods:
            row = [pod.name, f"{ids.randint(1, 50)}m", f"{ids.randint(10, 109)}Mi"]
            rows.append([pod.namespace] + row if namespace == ALL_NAMESPACES else row)
        return render_table(columns, rows)

    raise UsageError('error: You must specify "nodes" or "pods"')


def cmd_expose(kubectl: KubectlCore, cmd: Command) -> str:
    """Expose a deployment or pod as a new service"""
    store = kubectl.store
    namespace = kubectl.namespace_for(cmd)
    resource, name = _type_and_name(cmd.operands)
    if not resource or not name:
        raise UsageError("error: You must provide one or more resources by argument or filename.")

    kind = resolve_kind(resource)
    if kind not in ('deployments', 'pods'):
        raise UnsupportedError(f"error: cannot expose a {resource}")
    obj = kubectl.get_resource(kind, name, namespace)

    if kind == 'deployments':
        selector, container_ports = obj.selector, obj.ports
    else:
        selector = {k: v for k, v in obj.labels.items() if k != 'pod-template-hash'}
        container_ports = obj.containers[0].ports

    port_value = cmd.value('port')
    if port_value:
        port = _parse_int(port_value, 'port')
    elif container_ports:
        port = container_ports[0]
    else:
        raise UsageError("error: couldn't find port via --port flag or introspection",
                         hint="See 'kubectl expose -h' for help and examples")
    target_port = _parse_int(cmd.value('target-port', default=str(port)), 'target-port')

    type_value = cmd.value('type', default='ClusterIP')
    service_type = ServiceType.parse(type_value)
    if not service_type:
        raise UsageError(f'error: Service "{name}" is invalid: spec.type: Unsupported value: "{type_value}"')

    service_name = cmd.value('name', default=name)
    _require_namespace(kubectl, obj.namespace, 'services', service_name)
    if store.find_service(service_name, obj.namespace):
        raise AlreadyExistsError(f'Error from server (AlreadyExists): services "{service_name}" already exists')
    store.create_service(service_name, obj.namespace, service_type, [(port, target_port)], selector,
                         protocol=cmd.value('protocol', default='TCP'))
    return f"service/{service_name} exposed"


def cmd_run(kubectl: KubectlCore, cmd: Command) -> str:
    """Run a particular image in a pod"""
    store = kubectl.store
    namespace = kubectl.namespace_for(cmd)
    if namespace == ALL_NAMESPACES:
        namespace = store.current_namespace
    cmd.switch('rm')
    cmd.switch('i', 'stdin')
    cmd.switch('t', 'tty')

    operands = cmd.operands
    if not operands:
        raise UsageError("error: NAME is required for run")
    name = operands[0]
    image = cmd.value('image')
    if not image:
        raise UsageError('error: required flag(s) "image" not set')

    labels = {"run": name}
    if cmd.value('labels'):
        labels = parse_labels(cmd.value('labels'))
    ports = [_parse_int(cmd.value('port'), 'port')] if cmd.value('port') else []

    _require_namespace(kubectl, namespace, 'pods', name)
    if store.find_pod(name, namespace):
        raise AlreadyExistsError(f'Error from server (AlreadyExists): pods "{name}" already exists')
    store.add_pod(name, namespace, image, labels, ports=ports)
    return f"pod/{name} created"


def parse_labels(value: str) -> Dict[str, str]:
    labels = {}
    for pair in value.split(','):
        key, sep, val = pair.partition('=')
        if not sep or not key:
            raise UsageError(f"error: invalid label spec: {pair}")
        labels[key] = val
    return labels


def _kubeconfig(kubectl: KubectlCore) -> Dict:
    settings = kubectl.store.settings
    return {
        "apiVersion": "v1",
        "clusters": [{
            "cluster": {
                "certificate-authority-data": "DATA+OMITTED",
                "server": settings.api_server,
            },
            "name": settings.cluster,
        }],
        "contexts": [{
            "context": {
                "cluster": settings.cluster,
                "namespace": kubectl.get_current_namespace(),
                "user": settings.user,
            },
            "name": settings.context,
        }],
        "current-context": settings.context,
        "kind": "Config",
        "preferences": {},
        "users": [{
            "name": settings.user,
            "user": {
                "client-certificate-data": "DATA+OMITTED",
                "client-key-data": "DATA+OMITTED",
            },
        }],
    }


def cmd_config(kubectl: KubectlCore, cmd: Command) -> str:
    """Modify kubeconfig files"""
    settings = kubectl.store.settings
    current = cmd.switch('current')
    operands = cmd.operands
    action = operands[0] if operands else ''

    if action == 'current-context':
        return settings.context

    if action == 'view':
        return yaml.safe_dump(_kubeconfig(kubectl), default_flow_style=False, sort_keys=False).rstrip()

    if action == 'get-contexts':
        columns = [('CURRENT', 7), ('NAME', 28), ('CLUSTER', 12), ('AUTHINFO', 18), ('NAMESPACE', 12)]
        return render_table(columns, [['*', settings.context, settings.cluster, settings.user,
                                       kubectl.get_current_namespace()]])

    if action == 'use-context':
        if len(operands) < 2:
            raise UsageError("error: Unexpected args: []")
        if operands[1] != settings.context:
            raise NotFoundError(f'error: no context exists with the name: "{operands[1]}"')
        return f'Switched to context "{settings.context}".'

    if action == 'set-context':
        context = operands[1] if len(operands) > 1 else ''
        if not current and context != settings.context:
            raise UsageError("error: you must specify a non-empty context name or --current")
        namespace = cmd.value('namespace')
        if namespace:
            kubectl.set_namespace(namespace)
        return f'Context "{settings.context}" modified.'

    if not action:
        raise UsageError("error: You must specify a subcommand.",
                         hint="Available commands: current-context, get-contexts, set-context, use-context, view")
    raise UsageError(f'error: unknown command "{action}" for "kubectl config"')


def cmd_version(kubectl: KubectlCore, cmd: Command) -> str:
    """Print the client and server version information"""
    version = kubectl.store.settings.kubernetes_version
    if cmd.switch('client'):
        return f"Client Version: {version}"
    return f"Client Version: {version}\nServer Version: {version}"


def cmd_cluster_info(kubectl: KubectlCore, cmd: Command) -> str:
    """Display cluster information"""
    server = kubectl.store.settings.api_server
    return (
        f"{colorize('Kubernetes control plane', GREEN)} is running at {colorize(server, CYAN)}\n"
        f"{colorize('CoreDNS', GREEN)} is running at "
        f"{colorize(server + '/api/v1/namespaces/kube-system/services/kube-dns:dns/proxy', CYAN)}\n\n"
        f"To further debug and diagnose cluster problems, use 'kubectl cluster-info dump'."
    )


COMMANDS: Dict[str, Callable[[KubectlCore, Command], str]] = {
    "get": cmd_get,
    "describe": cmd_describe,
    "apply": cmd_apply,
    "create": cmd_create,
    "delete": cmd_delete,
    "scale": cmd_scale,
    "rollout": cmd_rollout,
    "logs": cmd_logs,
    "exec": cmd_exec,
    "top": cmd_top,
    "expose": cmd_expose,
    "run": cmd_run,
    "config": cmd_config,
    "version": cmd_version,
    "cluster-info": cmd_cluster_info,
}


def handle_kubectl(kubectl: KubectlCore, cmd: Command) -> str:
    """
    Route a kubectl command to its handler.

    Args:
        kubectl: KubectlCore bound to the state store
        cmd: Parsed command

    Returns:
        Output text; errors are rendered, never raised
    """
    try:
        if not cmd.subcommand:
            raise UsageError("error: You must specify a subcommand.",
                             hint='Use "kubectl --help" for a list of commands.')
        handler = COMMANDS.get(cmd.subcommand)
        if handler is None:
            raise UnsupportedError(f'error: unknown command "{cmd.subcommand}" for "kubectl"',
                                   hint="Run 'kubectl --help' for usage.")
        logger.debug(f"kubectl {cmd.subcommand}: args={cmd.args} flags={cmd.flags}")
        return handler(kubectl, cmd)
    except KubeSimError as e:
        logger.debug(f"kubectl {cmd.subcommand} failed: {e.message}")
        return render_error(e)


def register_commands(engine):
    """Register the kubectl command with the engine"""
    kubectl = KubectlCore(engine.store, engine.workspace)
    engine.register_command("kubectl", lambda cmd: handle_kubectl(kubectl, cmd))
    return kubectl
