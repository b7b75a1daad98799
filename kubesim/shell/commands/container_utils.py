"""
Container Utilities for the simulator shell

This module provides the simulated `docker` command. Every subcommand
operates on the runtime side of the state store (containers, images,
networks and volumes) and prints what the Docker CLI would.
"""

import json
import logging
from typing import Callable, Dict, List

from kubesim.core.container import PREDEFINED_NETWORKS, split_image_reference
from kubesim.core.state import StateStore
from kubesim.exceptions import (
    KubeSimError, ServerError, UsageError, UnsupportedError,
    NotFoundError, ConflictError, AlreadyExistsError, ForbiddenError
)
from kubesim.shell.formatting import (
    BOLD, RESET, GREEN, RED, YELLOW, GRAY, COLOR_ALLOWANCE,
    colorize, humanize_duration, time_ago, render_error, render_table
)
from kubesim.shell.parser import Command

logger = logging.getLogger(__name__)

NGINX_LOGS = [
    "/docker-entrypoint.sh: Configuration complete; ready for start up",
    "2024/01/15 10:23:45 [notice] 1#1: nginx/1.25.3",
    "2024/01/15 10:23:45 [notice] 1#1: start worker processes",
    '10.0.0.1 - - [15/Jan/2024:10:24:00 +0000] "GET / HTTP/1.1" 200 615',
]

BUILD_STEPS = [
    " => [internal] load build definition from Dockerfile",
    " => [internal] load .dockerignore",
    " => [internal] load metadata for docker.io/library/node:20-alpine",
    " => [1/5] FROM docker.io/library/node:20-alpine",
    " => [2/5] WORKDIR /app",
    " => [3/5] COPY package*.json ./",
    " => [4/5] RUN npm install",
    " => [5/5] COPY . .",
    " => exporting to image",
]

BUILT_IMAGE_SIZE = '145MB'

ROOT_LISTING = "bin  dev  etc  home  lib  media  mnt  opt  proc  root  run  sbin  srv  sys  tmp  usr  var"

SHELLS = ('sh', 'bash', 'ash')


def requires_args(subcommand: str, count: int = 1, exactly: bool = False) -> UsageError:
    """Docker's wording for a missing positional argument"""
    quantity = 'exactly' if exactly else 'at least'
    plural = 'argument' if count == 1 else 'arguments'
    return UsageError(f'"docker {subcommand}" requires {quantity} {count} {plural}.',
                      hint=f"See 'docker {subcommand} --help'.")


def no_such_container(ref: str) -> NotFoundError:
    return NotFoundError(f"Error response from daemon: No such container: {ref}")


def format_ports(specs: List[str], ids) -> str:
    """
    Render -p specs as `docker ps` shows them

    "8080:80" -> "0.0.0.0:8080->80/tcp"; a bare container port gets a
    random host port from the ephemeral range.
    """
    mappings = []
    for spec in specs:
        spec, _, protocol = spec.partition('/')
        parts = spec.split(':')
        if len(parts) == 1:
            host_ip, host_port, container_port = '0.0.0.0', str(ids.randint(32768, 60999)), parts[0]
        elif len(parts) == 2:
            host_ip, host_port, container_port = '0.0.0.0', parts[0], parts[1]
        else:
            host_ip, host_port, container_port = parts[0], parts[1], parts[2]
        if not container_port.isdigit() or not host_port.isdigit():
            raise UsageError(f'docker: Invalid containerPort: {container_port if not container_port.isdigit() else host_port}.',
                             hint="See 'docker run --help'.")
        mappings.append(f"{host_ip}:{host_port}->{container_port}/{protocol or 'tcp'}")
    return ', '.join(mappings)


class ContainerUtilities:
    """Docker commands for the simulator shell"""

    def __init__(self, store: StateStore):
        """
        Initialize the docker command set.

        Args:
            store: State store holding containers, images, networks and volumes
        """
        self.store = store
        self.commands: Dict[str, Callable[[Command], str]] = {
            "run": self._docker_run,
            "ps": self._docker_ps,
            "stop": self._docker_stop,
            "start": self._docker_start,
            "restart": self._docker_restart,
            "rm": self._docker_rm,
            "images": self._docker_images,
            "rmi": self._docker_rmi,
            "build": self._docker_build,
            "logs": self._docker_logs,
            "network": self._docker_network,
            "volume": self._docker_volume,
            "pull": self._docker_pull,
            "exec": self._docker_exec,
            "inspect": self._docker_inspect,
            "version": self._docker_version,
            "info": self._docker_info,
        }

    @property
    def now(self) -> float:
        return self.store.clock()

    def do_docker(self, cmd: Command) -> str:
        """
        Manage simulated containers and images

        Usage: docker COMMAND [options]

        Errors raised by a subcommand are rendered here; nothing propagates.
        """
        try:
            if not cmd.subcommand:
                raise UsageError("Usage: docker [OPTIONS] COMMAND",
                                 hint="Run 'docker --help' for more information.")
            handler = self.commands.get(cmd.subcommand)
            if handler is None:
                raise UnsupportedError(f"docker: '{cmd.subcommand}' is not a docker command.",
                                       hint="See 'docker --help'")
            logger.debug(f"docker {cmd.subcommand}: args={cmd.args} flags={cmd.flags}")
            return handler(cmd)
        except KubeSimError as e:
            logger.debug(f"docker {cmd.subcommand} failed: {e.message}")
            return render_error(e)

    def _container(self, ref: str):
        container = self.store.find_container(ref)
        if not container:
            raise no_such_container(ref)
        return container

    def _each(self, refs: List[str], action: Callable[[str], str]) -> str:
        """Apply ``action`` to every reference, reporting failures inline"""
        lines = []
        for ref in refs:
            try:
                lines.append(action(ref))
            except ServerError as e:
                if len(refs) == 1:
                    raise
                lines.append(e.message)
        return '\n'.join(lines)

    # ------------------------------------------------------------------
    # Containers

    def _docker_run(self, cmd: Command) -> str:
        """Run a command in a new container"""
        store = self.store
        detach = cmd.switch('d', 'detach')
        auto_remove = cmd.switch('rm')
        tty = cmd.switch('t', 'tty')
        interactive = cmd.switch('i', 'interactive') or tty

        operands = cmd.operands
        if not operands:
            raise UsageError('docker: "run" requires at least 1 argument.',
                             hint="See 'docker run --help'.")
        image = operands[0]
        command = ' '.join(operands[1:]) or None

        name = cmd.value('name')
        if name:
            existing = next((c for c in store.containers if c.name == name), None)
            if existing:
                raise ConflictError(
                    f'docker: Error response from daemon: Conflict. The container name "/{name}" is already in use '
                    f'by container "{existing.id}". You have to remove (or rename) that container to be able to reuse that name.',
                    hint="See 'docker run --help'.")

        network = cmd.value('network', 'net')
        if network and not store.find_network(network):
            raise NotFoundError(f"docker: Error response from daemon: network {network} not found.",
                                hint="See 'docker run --help'.")

        env = {}
        for pair in cmd.values('e', 'env'):
            key, _, value = pair.partition('=')
            env[key] = value

        mounts = [self._mount(spec) for spec in cmd.values('v', 'volume')]
        ports = format_ports(cmd.values('p', 'publish'), store.ids)

        container = store.docker_run(image, name, ports, network, command, mounts, env, auto_remove)

        if detach:
            return container.id
        if interactive or 'busybox' in image or 'alpine' in image:
            return colorize(f"(simulated interactive container {container.name})", YELLOW) + "\n/ # "
        if 'nginx' in image:
            return colorize("/docker-entrypoint.sh: Configuration complete; ready for start up", GRAY)
        return colorize(f"Container {container.name} started", GRAY)

    def _mount(self, spec: str) -> Dict[str, str]:
        """Mount record for a -v SOURCE:DEST spec; named volumes are created on demand"""
        source, sep, destination = spec.partition(':')
        if not sep:
            raise UsageError(f"docker: Error response from daemon: invalid volume specification: '{spec}'.",
                             hint="See 'docker run --help'.")
        destination = destination.split(':')[0]
        if source.startswith('/') or source.startswith('.'):
            return {"Type": "bind", "Source": source, "Destination": destination}
        volume = self.store.docker_create_volume(source)
        return {"Type": "volume", "Name": volume.name, "Source": volume.mountpoint, "Destination": destination}

    def _status(self, container) -> tuple:
        if container.running:
            text = f"{GREEN}Up{RESET} {humanize_duration(container.started_at, self.now)}"
        else:
            finished = container.finished_at or container.created
            text = f"{RED}Exited{RESET} ({container.exit_code}) {time_ago(finished, self.now)}"
        return text, 18 + COLOR_ALLOWANCE

    def _docker_ps(self, cmd: Command) -> str:
        """List containers"""
        show_all = cmd.switch('a', 'all')
        quiet = cmd.switch('q', 'quiet')

        containers = self.store.containers if show_all else self.store.running_containers()
        if quiet:
            return '\n'.join(c.id for c in containers)

        columns = [('CONTAINER ID', 14), ('IMAGE', 24), ('COMMAND', 24), ('CREATED', 22),
                   ('STATUS', 18), ('PORTS', 24), ('NAMES', 20)]
        rows = [
            [c.id[:12], c.image, c.command[:22], time_ago(c.created, self.now),
             self._status(c), c.ports, c.name]
            for c in containers
        ]
        return render_table(columns, rows)

    def _docker_stop(self, cmd: Command) -> str:
        """Stop one or more running containers"""
        cmd.value('t', 'time')
        refs = cmd.operands
        if not refs:
            raise requires_args('stop')

        def stop(ref):
            if not self.store.docker_stop(ref):
                raise no_such_container(ref)
            return ref
        return self._each(refs, stop)

    def _docker_start(self, cmd: Command) -> str:
        """Start one or more stopped containers"""
        cmd.switch('a', 'attach')
        cmd.switch('i', 'interactive')
        refs = cmd.operands
        if not refs:
            raise requires_args('start')

        def start(ref):
            if not self.store.docker_start(ref):
                raise no_such_container(ref)
            return ref
        return self._each(refs, start)

    def _docker_restart(self, cmd: Command) -> str:
        """Restart one or more containers"""
        refs = cmd.operands
        if not refs:
            raise requires_args('restart')

        def restart(ref):
            container = self._container(ref)
            container.stop(self.now)
            container.start(self.now)
            logger.info(f"Restarted container {container.name}")
            return ref
        return self._each(refs, restart)

    def _docker_rm(self, cmd: Command) -> str:
        """Remove one or more containers"""
        force = cmd.switch('f', 'force')
        cmd.switch('v', 'volumes')
        refs = cmd.operands
        if not refs:
            raise requires_args('rm')

        def remove(ref):
            container = self._container(ref)
            if container.running and not force:
                raise ConflictError(
                    f"Error response from daemon: cannot remove running container {container.id}. "
                    f"Stop the container before removing or force remove.")
            self.store.docker_rm(container.id)
            return ref
        return self._each(refs, remove)

    def _docker_logs(self, cmd: Command) -> str:
        """Fetch the logs of a container"""
        cmd.switch('f', 'follow')
        cmd.switch('t', 'timestamps')
        tail = cmd.value('n', 'tail')
        refs = cmd.operands
        if len(refs) != 1:
            raise requires_args('logs', exactly=True)

        container = self._container(refs[0])
        if 'nginx' in container.image:
            lines = list(NGINX_LOGS)
        else:
            lines = [f"Container {container.name} started", "Listening on port 8080", "Ready to accept connections"]
        if tail is not None and tail != 'all':
            try:
                count = int(tail)
            except ValueError:
                raise UsageError(f'invalid value "{tail}" for flag --tail')
            lines = lines[-count:] if count > 0 else []
        return colorize('\n'.join(lines), GRAY) if lines else ''

    def _docker_exec(self, cmd: Command) -> str:
        """Run a command in a running container"""
        cmd.switch('i', 'interactive')
        cmd.switch('t', 'tty')
        cmd.switch('d', 'detach')
        operands = cmd.operands
        if len(operands) < 2:
            raise requires_args('exec', 2)

        container = self._container(operands[0])
        if not container.running:
            raise ConflictError(f"Error response from daemon: container {container.id} is not running")

        command = operands[1:]
        program = command[0].rsplit('/', 1)[-1]
        if program in SHELLS and len(command) > 2 and command[1] == '-c':
            command = command[2].split()
            program = command[0].rsplit('/', 1)[-1] if command else ''

        if program in SHELLS:
            return colorize(f"(simulated shell in {container.name})", YELLOW)
        if program in ('env', 'printenv'):
            lines = ["PATH=/usr/local/sbin:/usr/local/bin", f"HOSTNAME={container.id[:12]}"]
            lines += [f"{k}={v}" for k, v in container.env.items()]
            lines.append("HOME=/root")
            return '\n'.join(lines)
        if program == 'ls':
            return ROOT_LISTING
        if program == 'hostname':
            return container.id[:12]
        if program == 'echo':
            return ' '.join(command[1:])
        return colorize(f"Command executed in {container.name}", GRAY)

    def _docker_inspect(self, cmd: Command) -> str:
        """Return low-level information on containers, images, networks and volumes"""
        refs = cmd.operands
        if not refs:
            raise requires_args('inspect')

        store = self.store
        documents, errors = [], []
        for ref in refs:
            container = store.find_container(ref)
            if container:
                documents.append(container.to_dict())
                continue
            image = store.find_image(ref)
            if image:
                documents.append(image.to_dict())
                continue
            network = store.find_network(ref)
            if network:
                documents.append(self._network_document(network))
                continue
            volume = store.find_volume(ref)
            if volume:
                documents.append(volume.to_dict())
                continue
            errors.append(f"Error: No such object: {ref}")

        if not documents:
            raise NotFoundError('\n'.join(errors))
        return '\n'.join([json.dumps(documents, indent=4)] + errors)

    # ------------------------------------------------------------------
    # Images

    def _docker_images(self, cmd: Command) -> str:
        """List images"""
        cmd.switch('a', 'all')
        quiet = cmd.switch('q', 'quiet')
        images = self.store.images
        operands = cmd.operands
        if operands:
            repository, tag = split_image_reference(operands[0])
            images = [i for i in images if i.repository == repository and (':' not in operands[0] or i.tag == tag)]
        if quiet:
            return '\n'.join(i.id for i in images)

        columns = [('REPOSITORY', 24), ('TAG', 16), ('IMAGE ID', 14), ('CREATED', 20), ('SIZE', 10)]
        rows = [[i.repository, i.tag, i.id[:12], time_ago(i.created, self.now), i.size] for i in images]
        return render_table(columns, rows)

    def _docker_rmi(self, cmd: Command) -> str:
        """Remove one or more images"""
        force = cmd.switch('f', 'force')
        refs = cmd.operands
        if not refs:
            raise requires_args('rmi')

        def remove(ref):
            image = self.store.find_image(ref)
            if not image:
                raise NotFoundError(f"Error response from daemon: No such image: {ref}")
            users = [c for c in self.store.containers if split_image_reference(c.image) == (image.repository, image.tag)]
            if users and not force:
                raise ConflictError(
                    f'Error response from daemon: conflict: unable to remove repository reference "{ref}" '
                    f'(must force) - container {users[0].id} is using its referenced image {image.id}')
            self.store.remove_image(image)
            return f"Untagged: {image.reference}\nDeleted: sha256:{image.id}"
        return self._each(refs, remove)

    def _docker_pull(self, cmd: Command) -> str:
        """Download an image from a registry"""
        cmd.switch('q', 'quiet')
        operands = cmd.operands
        if len(operands) != 1:
            raise requires_args('pull', exactly=True)

        reference = operands[0]
        repository, tag = split_image_reference(reference)
        size = f"{self.store.ids.randint(20, 219)}MB"
        _, created = self.store.ensure_image(f"{repository}:{tag}", size)

        registry_path = repository if '/' in repository else f"library/{repository}"
        lines = []
        if ':' not in reference.rsplit('/', 1)[-1]:
            lines.append(f"Using default tag: {tag}")
        lines.append(f"{tag}: Pulling from {registry_path}")
        lines.append(f"Digest: {self.store.ids.digest()}")
        if created:
            lines.append(f"Status: Downloaded newer image for {repository}:{tag}")
        else:
            lines.append(f"Status: Image is up to date for {repository}:{tag}")
        lines.append(f"docker.io/{registry_path}:{tag}")
        return '\n'.join(lines)

    def _docker_build(self, cmd: Command) -> str:
        """Build an image from a Dockerfile"""
        cmd.switch('q', 'quiet')
        cmd.switch('no-cache')
        cmd.value('f', 'file')
        tag = cmd.value('t', 'tag')

        if tag:
            self.store.ensure_image(tag, BUILT_IMAGE_SIZE)
        name = tag or 'latest'

        lines = [colorize("[+] Building", BOLD)] + BUILD_STEPS
        lines += [f" => => naming to docker.io/library/{name}", "", colorize(f"Successfully built {name}", GREEN)]
        return '\n'.join(lines)

    # ------------------------------------------------------------------
    # Networks

    def _network_document(self, network) -> Dict:
        attached = {}
        for container in self.store.containers:
            if container.id in network.containers:
                attached[container.id] = {
                    "Name": container.name,
                    "IPv4Address": f"{container.ip_address}/16" if container.ip_address else '',
                }
        return network.to_dict(attached)

    def _docker_network(self, cmd: Command) -> str:
        """Manage networks"""
        store = self.store
        cmd.switch('f', 'force')
        operands = cmd.operands
        action = operands[0] if operands else ''
        names = operands[1:]

        if action in ('ls', 'list'):
            columns = [('NETWORK ID', 14), ('NAME', 20), ('DRIVER', 10), ('SCOPE', 8)]
            return render_table(columns, [[n.id[:12], n.name, n.driver, n.scope] for n in store.networks])

        if action == 'create':
            if len(names) != 1:
                raise requires_args('network create', exactly=True)
            if store.find_network(names[0]) and store.find_network(names[0]).name == names[0]:
                raise AlreadyExistsError(f"Error response from daemon: network with name {names[0]} already exists")
            return store.docker_create_network(names[0], cmd.value('d', 'driver', default='bridge')).id

        if action in ('rm', 'remove'):
            if not names:
                raise requires_args('network rm')

            def remove(name):
                network = store.find_network(name)
                if not network:
                    raise NotFoundError(f"Error response from daemon: network {name} not found")
                if network.name in PREDEFINED_NETWORKS:
                    raise ForbiddenError(
                        f"Error response from daemon: {network.name} is a pre-defined network and cannot be removed")
                if network.containers:
                    raise ConflictError(
                        f"Error response from daemon: error while removing network: network {network.name} "
                        f"id {network.id} has active endpoints")
                store.docker_remove_network(network)
                return name
            return self._each(names, remove)

        if action == 'inspect':
            if not names:
                raise requires_args('network inspect')
            documents = []
            for name in names:
                network = store.find_network(name)
                if not network:
                    raise NotFoundError(f"Error: No such network: {name}")
                documents.append(self._network_document(network))
            return json.dumps(documents, indent=4)

        if action in ('connect', 'disconnect'):
            if len(names) != 2:
                raise requires_args(f'network {action}', 2, exactly=True)
            network = store.find_network(names[0])
            if not network:
                raise NotFoundError(f"Error response from daemon: network {names[0]} not found")
            container = self._container(names[1])
            if action == 'connect':
                if container.id in network.containers:
                    raise ConflictError(
                        f"Error response from daemon: endpoint with name {container.name} already exists in network {network.name}")
                store.docker_connect(network, container)
            else:
                if container.id not in network.containers:
                    raise ConflictError(
                        f"Error response from daemon: container {container.id} is not connected to network {network.name}")
                store.docker_disconnect(network, container)
            return ''

        raise UsageError("Usage: docker network COMMAND",
                         hint="Commands: ls, create, rm, inspect, connect, disconnect")

    # ------------------------------------------------------------------
    # Volumes

    def _docker_volume(self, cmd: Command) -> str:
        """Manage volumes"""
        store = self.store
        cmd.switch('f', 'force')
        cmd.switch('q', 'quiet')
        operands = cmd.operands
        action = operands[0] if operands else ''
        names = operands[1:]

        if action in ('ls', 'list'):
            columns = [('DRIVER', 10), ('VOLUME NAME', 40)]
            return render_table(columns, [[v.driver, v.name] for v in store.volumes])

        if action == 'create':
            name = names[0] if names else store.ids.hex_id(64)
            return store.docker_create_volume(name).name

        if action in ('rm', 'remove'):
            if not names:
                raise requires_args('volume rm')

            def remove(name):
                if not store.find_volume(name):
                    raise NotFoundError(f"Error response from daemon: get {name}: no such volume")
                users = store.containers_using_volume(name)
                if users:
                    raise ConflictError(
                        f"Error response from daemon: remove {name}: volume is in use - [{users[0].id}]")
                store.docker_remove_volume(name)
                return name
            return self._each(names, remove)

        if action == 'inspect':
            if not names:
                raise requires_args('volume inspect')
            documents = []
            for name in names:
                volume = store.find_volume(name)
                if not volume:
                    raise NotFoundError(f"Error: No such volume: {name}")
                documents.append(volume.to_dict())
            return json.dumps(documents, indent=4)

        raise UsageError("Usage: docker volume COMMAND",
                         hint="Commands: ls, create, rm, inspect")

    # ------------------------------------------------------------------
    # Daemon

    def _docker_version(self, cmd: Command) -> str:
        """Show the Docker version information"""
        settings = self.store.settings
        return (f"Client:\n Version:           {settings.docker_version}\n"
                f" API version:       {settings.api_version}\n\n"
                f"Server:\n Version:           {settings.docker_version}\n"
                f" API version:       {settings.api_version}")

    def _docker_info(self, cmd: Command) -> str:
        """Display system-wide information"""
        store = self.store
        running = len(store.running_containers())
        return '\n'.join([
            f"Containers: {len(store.containers)}",
            f" Running: {running}",
            f" Paused: 0",
            f" Stopped: {len(store.containers) - running}",
            f"Images: {len(store.images)}",
            f"Server Version: {store.settings.docker_version}",
            "Storage Driver: overlay2",
            "Kernel Version: 5.15.0-91-generic",
            "Operating System: Ubuntu 22.04.3 LTS",
        ])


def register_commands(engine):
    """Register the docker command with the engine"""
    utilities = ContainerUtilities(engine.store)
    engine.register_command("docker", utilities.do_docker)
    return utilities
