"""
Simulated runtime container

Provides the container record behind `docker run`, `docker ps` and friends:
- Container state tracking
- Port, network and mount bookkeeping
"""

from typing import Dict, List, Any, Optional

from ..orchestration.meta import timestamp_to_rfc3339


class ContainerState:
    """Container states"""
    CREATED = "created"
    RUNNING = "running"
    EXITED = "exited"
    PAUSED = "paused"


class Container:
    """
    Container class representing a simulated runtime container
    """
    def __init__(self, container_id: str, name: str, image: str, command: str,
                 created: float,
                 ports: str = '',
                 networks: Optional[List[str]] = None,
                 mounts: Optional[List[Dict[str, str]]] = None,
                 env: Optional[Dict[str, str]] = None,
                 ip_address: str = '',
                 auto_remove: bool = False):
        """
        Initialize a container

        Args:
            container_id: 12-char hex id
            name: Container name
            image: Image reference as given to `docker run`
            command: Quoted launch command as `docker ps` prints it
            created: Creation timestamp
            ports: Port mapping string, e.g. "0.0.0.0:8080->80/tcp"
            networks: Attached network names
            mounts: Volume mounts ({"Type", "Name", "Source", "Destination"})
            env: Environment variables
            ip_address: Address on the first network
            auto_remove: Remove the container once it stops (--rm)
        """
        self.id = container_id
        self.name = name
        self.image = image
        self.command = command
        self.created = created
        self.ports = ports
        self.networks = list(networks or ['bridge'])
        self.mounts = list(mounts or [])
        self.env = dict(env or {})
        self.ip_address = ip_address
        self.auto_remove = auto_remove

        self.state = ContainerState.RUNNING
        self.started_at = created
        self.finished_at: Optional[float] = None
        self.exit_code = 0

    @property
    def running(self) -> bool:
        return self.state == ContainerState.RUNNING

    def stop(self, now: float, exit_code: int = 0):
        self.state = ContainerState.EXITED
        self.finished_at = now
        self.exit_code = exit_code

    def start(self, now: float):
        self.state = ContainerState.RUNNING
        self.started_at = now
        self.finished_at = None

    def matches(self, ref: str) -> bool:
        """True if ``ref`` is this container's name or a prefix of its id"""
        return ref == self.name or self.id.startswith(ref)

    def to_dict(self) -> Dict[str, Any]:
        """Inspect document, shaped like `docker inspect` output"""
        return {
            "Id": self.id,
            "Created": timestamp_to_rfc3339(self.created),
            "Name": f"/{self.name}",
            "State": {
                "Status": self.state,
                "Running": self.running,
                "Paused": self.state == ContainerState.PAUSED,
                "ExitCode": self.exit_code,
                "StartedAt": timestamp_to_rfc3339(self.started_at),
                "FinishedAt": timestamp_to_rfc3339(self.finished_at) if self.finished_at else "0001-01-01T00:00:00Z"
            },
            "Config": {
                "Image": self.image,
                "Cmd": [self.command.strip('"')],
                "Env": [f"{k}={v}" for k, v in self.env.items()]
            },
            "Mounts": list(self.mounts),
            "NetworkSettings": {
                "Ports": self.ports,
                "Networks": {
                    network: {"IPAddress": self.ip_address if i == 0 else ''}
                    for i, network in enumerate(self.networks)
                }
            }
        }
