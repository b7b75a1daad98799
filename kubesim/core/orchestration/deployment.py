"""
Deployment model for the simulated cluster

A Deployment owns exactly one live ReplicaSet. Replica, ready and available
counts are kept equal; partial rollouts are not modelled.
"""

from enum import Enum
from typing import Dict, List, Optional, Any

from .meta import timestamp_to_rfc3339


class DeploymentStrategyType(str, Enum):
    """Deployment strategy types."""
    ROLLING_UPDATE = "RollingUpdate"
    RECREATE = "Recreate"


class Deployment:
    """Deployment in the simulated cluster."""

    def __init__(self, name: str, namespace: str, image: str, replicas: int,
                 created: float,
                 labels: Optional[Dict[str, str]] = None,
                 ports: Optional[List[int]] = None,
                 strategy: DeploymentStrategyType = DeploymentStrategyType.ROLLING_UPDATE):
        """
        Initialize a Deployment.

        Args:
            name: Deployment name
            namespace: Namespace
            image: Container image of the pod template
            replicas: Desired replicas
            created: Creation timestamp
            labels: Labels; defaults to {"app": name}
            ports: Container ports of the pod template
            strategy: Rollout strategy
        """
        self.name = name
        self.namespace = namespace
        self.image = image
        self.labels = dict(labels or {"app": name})
        self.selector = dict(self.labels)
        self.ports = list(ports or [])
        self.strategy = strategy
        self.created = created
        self.revision = 1
        self.deleting = False
        self.set_replicas(replicas)

    def set_replicas(self, replicas: int):
        self.replicas = replicas
        self.ready_replicas = replicas
        self.available_replicas = replicas

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "Deployment",
            "name": self.name,
            "namespace": self.namespace,
            "replicas": self.replicas,
            "readyReplicas": self.ready_replicas,
            "availableReplicas": self.available_replicas,
            "image": self.image,
            "labels": dict(self.labels),
            "selector": dict(self.selector),
            "strategy": self.strategy.value,
            "revision": self.revision,
            "creationTimestamp": timestamp_to_rfc3339(self.created)
        }
