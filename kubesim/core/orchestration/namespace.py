"""
Namespace view for the simulated cluster

The store keeps namespaces as a name registry; Namespace is the read-only
record handed to formatters.
"""

from dataclasses import dataclass, field
from typing import Dict, Any

from .meta import timestamp_to_rfc3339


@dataclass
class Namespace:
    """Namespace record"""
    name: str
    created: float
    status: str = "Active"
    labels: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self.labels.setdefault("kubernetes.io/metadata.name", self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "Namespace",
            "name": self.name,
            "status": self.status,
            "labels": dict(self.labels),
            "creationTimestamp": timestamp_to_rfc3339(self.created)
        }
