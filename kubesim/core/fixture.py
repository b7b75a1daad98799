"""
Cluster state fixtures

A fixture describes the starting cluster of a lab: extra namespaces, nodes,
pods, deployments, services, config maps and secrets. Fixtures are plain
YAML documents validated with pydantic and merged into a StateStore with
StateStore.load_fixture().
"""

import logging
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import FixtureError

logger = logging.getLogger(__name__)


class FixtureModel(BaseModel):
    """Base for fixture records; accepts both snake_case and camelCase keys"""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class NodeFixture(FixtureModel):
    name: str
    status: str = "Ready"
    roles: List[str] = ["worker"]
    version: Optional[str] = None  # Defaults to the simulated cluster version
    internal_ip: str = Field("192.168.1.20", alias="internalIP")
    os: str = "linux"
    cpu: str = "4"
    memory: str = "16Gi"


class PodFixture(FixtureModel):
    name: str
    namespace: str = "default"
    image: str
    status: str = "Running"
    restarts: int = 0
    labels: Dict[str, str] = {}
    ports: List[int] = []

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        valid = ["Pending", "ContainerCreating", "Running", "Terminating",
                 "Succeeded", "Failed", "CrashLoopBackOff"]
        if v not in valid:
            raise ValueError(f"unknown pod status: {v}")
        return v


class DeploymentFixture(FixtureModel):
    name: str
    namespace: str = "default"
    image: str
    replicas: int = 1
    labels: Dict[str, str] = {}
    ports: List[int] = []

    @field_validator('replicas')
    @classmethod
    def validate_replicas(cls, v):
        if v < 0:
            raise ValueError("replicas must not be negative")
        return v


class ServicePortFixture(FixtureModel):
    port: int
    target_port: Optional[int] = Field(None, alias="targetPort")
    protocol: str = "TCP"


class ServiceFixture(FixtureModel):
    name: str
    namespace: str = "default"
    type: str = "ClusterIP"
    ports: List[ServicePortFixture] = []
    selector: Dict[str, str] = {}
    external_name: Optional[str] = Field(None, alias="externalName")


class DataFixture(FixtureModel):
    """Config map or secret"""
    name: str
    namespace: str = "default"
    data: Dict[str, str] = {}

    @field_validator('data', mode='before')
    @classmethod
    def stringify_values(cls, v):
        return {str(k): str(val) for k, val in (v or {}).items()}


class ClusterFixture(FixtureModel):
    """Starting cluster state for a lab"""
    namespaces: List[str] = []
    nodes: List[NodeFixture] = []
    pods: List[PodFixture] = []
    deployments: List[DeploymentFixture] = []
    services: List[ServiceFixture] = []
    configmaps: List[DataFixture] = Field([], alias="configMaps")
    secrets: List[DataFixture] = []


def load_fixture_file(path: str) -> ClusterFixture:
    """
    Read a fixture from a YAML file.

    Args:
        path: Fixture file

    Returns:
        Validated ClusterFixture

    Raises:
        FixtureError: if the file is missing, is not YAML or fails validation
    """
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise FixtureError(f"cannot read fixture '{path}': {e.strerror}")
    except yaml.YAMLError as e:
        raise FixtureError(f"invalid YAML in fixture '{path}': {e}")

    if not isinstance(data, dict):
        raise FixtureError(f"fixture '{path}' must be a mapping")
    try:
        fixture = ClusterFixture.model_validate(data)
    except ValidationError as e:
        raise FixtureError(f"invalid fixture '{path}': {e}")

    logger.debug(f"Loaded fixture {path}")
    return fixture
