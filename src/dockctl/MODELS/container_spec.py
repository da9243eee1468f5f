"""
Models for defining containers: image, dependencies, environment, ports and mounts.
"""
from typing import List
from pydantic import BaseModel, Field
from enum import Enum

class MountMode(str, Enum):
    """
    Access mode of a bind mount.
    """
    READ_ONLY = "ro"
    READ_WRITE = "rw"

class DependencyLink(BaseModel):
    """
    A dependency on another container, linked under an alias.
    """
    target: str
    alias: str

class EnvVar(BaseModel):
    key: str
    value: str

    def render(self) -> str:
        return f"{self.key}={self.value}"

class PortMapping(BaseModel):
    """
    Publishes a container port on a host address.
    """
    ip: str = "0.0.0.0"
    host_port: int = Field(ge=1, le=65535)
    container_port: int = Field(ge=1, le=65535)

class MountPoint(BaseModel):
    """
    Binds a host directory into the container.
    """
    host_dir: str
    container_dir: str
    mode: MountMode = MountMode.READ_WRITE

class ContainerSpec(BaseModel):
    """
    The full definition of a single container in a cluster.
    """
    name: str
    image: str = ""
    privileged: bool = False

    # Ordering
    dependencies: List[DependencyLink] = []
    mount_from: List[str] = []

    # Runtime
    env: List[EnvVar] = []
    ports: List[PortMapping] = []
    mounts: List[MountPoint] = []

    def references(self) -> List[str]:
        """
        Names of every container this one needs to exist first.

        :return: Dependency targets followed by volume sources, in declaration order.
        """
        return [dep.target for dep in self.dependencies] + list(self.mount_from)
