"""
Simulated container volumes
"""

from dataclasses import dataclass
from typing import Dict, Any

from ..orchestration.meta import timestamp_to_rfc3339

VOLUMES_ROOT = '/var/lib/docker/volumes'


@dataclass
class Volume:
    """Named volume"""
    name: str
    created: float
    driver: str = 'local'

    @property
    def mountpoint(self) -> str:
        return f"{VOLUMES_ROOT}/{self.name}/_data"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "CreatedAt": timestamp_to_rfc3339(self.created),
            "Driver": self.driver,
            "Labels": None,
            "Mountpoint": self.mountpoint,
            "Name": self.name,
            "Options": None,
            "Scope": "local"
        }
