"""
Node model for the simulated cluster

Nodes are created when the cluster is seeded and never change afterwards.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any


@dataclass
class Node:
    """Cluster node"""
    name: str
    status: str
    roles: List[str]
    version: str
    internal_ip: str
    os: str
    cpu: str
    memory: str
    created: float = 0.0
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def is_worker(self) -> bool:
        return 'worker' in self.roles

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "Node",
            "name": self.name,
            "status": self.status,
            "roles": list(self.roles),
            "version": self.version,
            "internalIP": self.internal_ip,
            "os": self.os,
            "cpu": self.cpu,
            "memory": self.memory
        }
