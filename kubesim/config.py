"""
Simulator settings

Settings are a pydantic model so a YAML file can override any default while
unknown or badly typed values are rejected up front.
"""

import os
import logging
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = 'KUBESIM_CONFIG'


class SimulatorSettings(BaseModel):
    """Tunable values shared by the state store and the tool handlers"""
    settle_delay: float = Field(0.3, description="Seconds between Terminating and removal")
    event_limit: int = Field(50, description="Number of events kept, newest first")
    kubernetes_version: str = "v1.31.0"
    docker_version: str = "27.0.3"
    api_version: str = "1.46"
    user: str = "kubernetes-admin"
    hostname: str = "control-plane"
    home: str = "/home/user"
    context: str = "kubernetes-admin@kubernetes"
    cluster: str = "kubernetes"
    api_server: str = "https://192.168.1.10:6443"
    default_namespace: str = "default"
    seed: Optional[int] = None  # Fixed seed for reproducible ids

    @field_validator('settle_delay')
    @classmethod
    def validate_settle_delay(cls, v):
        if v < 0:
            raise ValueError("settle_delay must not be negative")
        return v

    @field_validator('event_limit')
    @classmethod
    def validate_event_limit(cls, v):
        if v < 1:
            raise ValueError("event_limit must be at least 1")
        return v


def load_settings(path: Optional[str] = None) -> SimulatorSettings:
    """
    Load simulator settings from a YAML file.

    Args:
        path: Settings file; defaults to $KUBESIM_CONFIG

    Returns:
        SimulatorSettings, falling back to defaults when the file is
        missing or invalid
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return SimulatorSettings()

    if not os.path.exists(path):
        logger.warning(f"Settings file '{path}' not found, using defaults")
        return SimulatorSettings()

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        return SimulatorSettings(**data)
    except (yaml.YAMLError, ValidationError, TypeError) as e:
        logger.warning(f"Failed to load settings from '{path}': {e}")
        return SimulatorSettings()
