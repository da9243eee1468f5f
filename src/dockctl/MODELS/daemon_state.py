"""
Models exchanged with the container daemon.
"""
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel

class ContainerState(BaseModel):
    """
    What the daemon reports about an existing container.
    """
    name: str
    image_id: str
    running: bool = False

class ImageInfo(BaseModel):
    id: str

class RuntimeOptions(BaseModel):
    """
    Host-side settings applied when a container runs.
    """
    privileged: bool = False
    port_bindings: Dict[str, List[Tuple[str, int]]] = {}  # {"80/tcp": [(ip, host_port)]}
    binds: List[str] = []
    volumes_from: List[str] = []
    links: List[str] = []  # "name:alias"

class CreateOptions(BaseModel):
    """
    Settings for creating a container.
    """
    name: str
    image: str
    env: List[str] = []
    exposed_ports: List[str] = []  # "80/tcp"
    volumes: List[str] = []
    volumes_from: Optional[str] = None

    # Daemons that only accept host settings at creation time apply these
    host: Optional[RuntimeOptions] = None
