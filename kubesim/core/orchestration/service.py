"""
Service model for the simulated cluster

The selector is stored for display only. Nothing checks that matching pods
exist; `kubectl describe service` computes endpoints from it on the fly.
"""

from enum import Enum
from typing import Dict, List, Optional, Any

from .meta import timestamp_to_rfc3339


class ServiceType(str, Enum):
    """Service types."""
    CLUSTER_IP = "ClusterIP"
    NODE_PORT = "NodePort"
    LOAD_BALANCER = "LoadBalancer"
    EXTERNAL_NAME = "ExternalName"

    @classmethod
    def parse(cls, value: str) -> Optional['ServiceType']:
        for member in cls:
            if member.value.lower() == value.lower():
                return member
        return None


class ServicePort:
    """Port exposed by a service."""

    def __init__(self, port: int, target_port: int, protocol: str = "TCP",
                 node_port: Optional[int] = None, name: Optional[str] = None):
        """
        Initialize a service port.

        Args:
            port: Service port
            target_port: Target port on the pods
            protocol: Protocol (TCP, UDP)
            node_port: Node port for NodePort and LoadBalancer services
            name: Port name
        """
        self.port = port
        self.target_port = target_port
        self.protocol = protocol
        self.node_port = node_port
        self.name = name

    def __str__(self) -> str:
        if self.node_port:
            return f"{self.port}:{self.node_port}/{self.protocol}"
        return f"{self.port}/{self.protocol}"

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "port": self.port,
            "targetPort": self.target_port,
            "protocol": self.protocol
        }
        if self.name:
            data["name"] = self.name
        if self.node_port:
            data["nodePort"] = self.node_port
        return data


class Service:
    """Service in the simulated cluster."""

    def __init__(self, name: str, namespace: str, service_type: ServiceType,
                 cluster_ip: str, ports: List[ServicePort],
                 selector: Optional[Dict[str, str]] = None,
                 created: float = 0.0,
                 external_ip: Optional[str] = None,
                 external_name: Optional[str] = None):
        self.name = name
        self.namespace = namespace
        self.type = service_type
        self.cluster_ip = cluster_ip
        self.ports = ports
        self.selector = dict(selector or {})
        self.created = created
        self.external_ip = external_ip
        self.external_name = external_name

    @property
    def ports_column(self) -> str:
        """PORT(S) column, e.g. "80:30080/TCP"."""
        return ','.join(str(p) for p in self.ports) or '<none>'

    @property
    def external_column(self) -> str:
        """EXTERNAL-IP column."""
        return self.external_name or self.external_ip or '<none>'

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "kind": "Service",
            "name": self.name,
            "namespace": self.namespace,
            "type": self.type.value,
            "clusterIP": self.cluster_ip,
            "ports": [p.to_dict() for p in self.ports],
            "selector": dict(self.selector),
            "creationTimestamp": timestamp_to_rfc3339(self.created)
        }
        if self.external_ip:
            data["externalIP"] = self.external_ip
        if self.external_name:
            data["externalName"] = self.external_name
        return data
