"""
Models for overall orchestration configuration.
"""
import os
from typing import Dict, List
from pydantic import BaseModel, Field
from .container_spec import ContainerSpec

DEFAULT_DOCKER_HOST = "unix:///var/run/docker.sock"

class OrchestrationConfig(BaseModel):
    """
    Complete configuration for a cluster of containers.
    Equivalent to a parsed dockctl config.yaml file.

    The order of ``containers`` is the file order and defines container indices.
    """
    containers: List[ContainerSpec] = []

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.containers]

    def by_name(self) -> Dict[str, ContainerSpec]:
        return {c.name: c for c in self.containers}

class OrchestrationOptions(BaseModel):
    """
    Settings for a single orchestration run, passed explicitly to the
    orchestrator and the daemon gateway.
    """
    docker_host: str = Field(default_factory=lambda: os.environ.get("DOCKER_HOST") or DEFAULT_DOCKER_HOST)
    timeout: float = 60.0
    connect_attempts: int = 3
    honor_mount_mode: bool = True
