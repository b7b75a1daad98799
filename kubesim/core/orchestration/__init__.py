"""
Simulated cluster objects

Plain in-memory models for the orchestrator side of the simulator. They hold
no references to the store; the StateStore owns every instance.
"""

from .pod import Pod, PodContainer, PodStatus
from .deployment import Deployment, DeploymentStrategyType
from .replica_set import ReplicaSet, POD_TEMPLATE_HASH
from .service import Service, ServicePort, ServiceType
from .config_map import ConfigMap, Secret
from .node import Node
from .events import Event, EventLog, EventType
from .namespace import Namespace

__all__ = [
    'Pod', 'PodContainer', 'PodStatus',
    'Deployment', 'DeploymentStrategyType',
    'ReplicaSet', 'POD_TEMPLATE_HASH',
    'Service', 'ServicePort', 'ServiceType',
    'ConfigMap', 'Secret',
    'Node',
    'Event', 'EventLog', 'EventType',
    'Namespace'
]
