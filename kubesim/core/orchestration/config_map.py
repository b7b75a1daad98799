"""
ConfigMap and Secret models for the simulated cluster
"""

import base64
from typing import Dict, Any

from .meta import timestamp_to_rfc3339


class ConfigMap:
    """
    ConfigMap in the simulated cluster.

    A ConfigMap holds configuration data for pods.
    """
    kind = "ConfigMap"

    def __init__(self, name: str, namespace: str, data: Dict[str, str], created: float):
        self.name = name
        self.namespace = namespace
        self.data = dict(data)
        self.created = created

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "namespace": self.namespace,
            "data": dict(self.data),
            "creationTimestamp": timestamp_to_rfc3339(self.created)
        }


class Secret(ConfigMap):
    """
    Secret in the simulated cluster.

    Values are kept in plain text and base64-encoded on output, as the API
    server returns them.
    """
    kind = "Secret"

    def __init__(self, name: str, namespace: str, data: Dict[str, str], created: float,
                 secret_type: str = "Opaque"):
        super().__init__(name, namespace, data, created)
        self.type = secret_type

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["type"] = self.type
        data["data"] = {
            k: base64.b64encode(v.encode()).decode() for k, v in self.data.items()
        }
        return data
