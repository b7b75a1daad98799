"""
ReplicaSet model for the simulated cluster

A ReplicaSet keeps a fixed number of pods alive. Pods belong to it through
their owner reference; the state store reconciles the pod count after every
scale or delete.
"""

from typing import Dict, Any

from .meta import timestamp_to_rfc3339

POD_TEMPLATE_HASH = 'pod-template-hash'


class ReplicaSet:
    """ReplicaSet owned by a Deployment."""

    def __init__(self, name: str, namespace: str, deployment: str, replicas: int,
                 labels: Dict[str, str], created: float):
        """
        Initialize a ReplicaSet.

        Args:
            name: ReplicaSet name, "<deployment>-<pod-template-hash>"
            namespace: Namespace
            deployment: Name of the owning Deployment
            replicas: Desired replicas
            labels: Labels including pod-template-hash
            created: Creation timestamp
        """
        self.name = name
        self.namespace = namespace
        self.deployment = deployment
        self.labels = dict(labels)
        self.created = created
        self.deleting = False
        self.set_replicas(replicas)

    def set_replicas(self, replicas: int):
        self.replicas = replicas
        self.ready_replicas = replicas

    @property
    def template_hash(self) -> str:
        return self.labels.get(POD_TEMPLATE_HASH, '')

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "ReplicaSet",
            "name": self.name,
            "namespace": self.namespace,
            "replicas": self.replicas,
            "readyReplicas": self.ready_replicas,
            "deployment": self.deployment,
            "labels": dict(self.labels),
            "creationTimestamp": timestamp_to_rfc3339(self.created)
        }
