"""
Simulated container networks
"""

from typing import Dict, List, Any, Optional

from ..orchestration.meta import timestamp_to_rfc3339

# Networks every daemon starts with; they cannot be removed
PREDEFINED_NETWORKS = ('bridge', 'host', 'none')


class Network:
    """Container network"""

    def __init__(self, name: str, network_id: str, driver: str = 'bridge',
                 scope: str = 'local', subnet: Optional[str] = None,
                 gateway: Optional[str] = None, created: float = 0.0):
        """
        Initialize a network

        Args:
            name: Network name
            network_id: 12-char hex id
            driver: Network driver (bridge, host, null, overlay)
            scope: Network scope
            subnet: IPv4 subnet in CIDR notation
            gateway: Gateway address
            created: Creation timestamp
        """
        self.name = name
        self.id = network_id
        self.driver = driver
        self.scope = scope
        self.subnet = subnet
        self.gateway = gateway
        self.created = created
        self.containers: List[str] = []  # container ids

    def matches(self, ref: str) -> bool:
        return ref == self.name or self.id.startswith(ref)

    def next_address(self) -> str:
        """Next free address in the subnet, counting from gateway + 1"""
        if not self.gateway:
            return ''
        prefix, last = self.gateway.rsplit('.', 1)
        return f"{prefix}.{int(last) + len(self.containers) + 1}"

    def to_dict(self, containers: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        config = []
        if self.subnet:
            config.append({"Subnet": self.subnet, "Gateway": self.gateway})
        return {
            "Name": self.name,
            "Id": self.id,
            "Created": timestamp_to_rfc3339(self.created),
            "Scope": self.scope,
            "Driver": self.driver,
            "IPAM": {"Driver": "default", "Config": config},
            "Containers": containers or {}
        }
