"""
Pod model for the simulated cluster

A Pod is the smallest schedulable unit. Pods created by a ReplicaSet carry
an owner reference (the ReplicaSet name) used to compute cascade deletes.
"""

from enum import Enum
from typing import Dict, List, Optional, Any

from .meta import timestamp_to_rfc3339


class PodStatus(str, Enum):
    """Pod status values shown in the STATUS column."""
    PENDING = "Pending"
    CONTAINER_CREATING = "ContainerCreating"
    RUNNING = "Running"
    TERMINATING = "Terminating"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    CRASH_LOOP_BACK_OFF = "CrashLoopBackOff"


class PodContainer:
    """A container entry within a pod."""

    def __init__(self, name: str, image: str, ports: Optional[List[int]] = None,
                 ready: bool = True, state: str = PodStatus.RUNNING.value):
        self.name = name
        self.image = image
        self.ports = ports or []
        self.ready = ready
        self.state = state

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "image": self.image,
            "ports": list(self.ports),
            "ready": self.ready,
            "state": self.state
        }


def container_name_for_image(image: str) -> str:
    """
    Derive a container name from an image reference.

    "docker.io/library/nginx:1.25" -> "nginx"
    """
    repository = image.split('@')[0]
    if ':' in repository.rsplit('/', 1)[-1]:
        repository = repository.rsplit(':', 1)[0]
    return repository.split('/')[-1] or 'app'


class Pod:
    """
    Pod in the simulated cluster.

    Status moves to Terminating when the pod is deleted and the record is
    purged after the settle delay.
    """

    def __init__(self, name: str, namespace: str, image: str, node: str, ip: str,
                 created: float,
                 labels: Optional[Dict[str, str]] = None,
                 status: PodStatus = PodStatus.RUNNING,
                 containers: Optional[List[PodContainer]] = None,
                 owner_ref: Optional[str] = None,
                 restarts: int = 0,
                 uid: str = ''):
        """
        Initialize a pod.

        Args:
            name: Pod name
            namespace: Namespace
            image: Image of the main container
            node: Node the pod is scheduled on
            ip: Pod IP
            created: Creation timestamp
            labels: Pod labels
            status: Initial status
            containers: Containers; defaults to one built from ``image``
            owner_ref: Name of the owning ReplicaSet
            restarts: Restart count
            uid: Unique id, used to key the settle task
        """
        self.name = name
        self.namespace = namespace
        self.image = image
        self.node = node
        self.ip = ip
        self.created = created
        self.labels = dict(labels or {})
        self.status = status
        self.containers = containers or [
            PodContainer(container_name_for_image(image), image,
                         ready=status == PodStatus.RUNNING, state=status.value)
        ]
        self.owner_ref = owner_ref
        self.restarts = restarts
        self.uid = uid

    @property
    def ready(self) -> str:
        """READY column, e.g. "1/1"."""
        if self.status == PodStatus.TERMINATING:
            ready_count = 0
        else:
            ready_count = sum(1 for c in self.containers if c.ready)
        return f"{ready_count}/{len(self.containers)}"

    @property
    def terminating(self) -> bool:
        return self.status == PodStatus.TERMINATING

    def mark_terminating(self):
        self.status = PodStatus.TERMINATING
        for container in self.containers:
            container.ready = False

    def matches(self, selector: Dict[str, str]) -> bool:
        return all(self.labels.get(k) == v for k, v in selector.items())

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "kind": "Pod",
            "name": self.name,
            "namespace": self.namespace,
            "uid": self.uid,
            "status": self.status.value,
            "ready": self.ready,
            "restarts": self.restarts,
            "creationTimestamp": timestamp_to_rfc3339(self.created),
            "ip": self.ip,
            "node": self.node,
            "labels": dict(self.labels),
            "containers": [c.to_dict() for c in self.containers],
            "image": self.image
        }
        if self.owner_ref:
            data["ownerRef"] = self.owner_ref
        return data
