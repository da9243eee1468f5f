"""
The narrow set of daemon operations the orchestrator relies on.
"""
from abc import ABC, abstractmethod
from typing import Optional

from ..MODELS.daemon_state import ContainerState, CreateOptions, ImageInfo, RuntimeOptions


class DaemonGateway(ABC):
    """
    Blocking access to a container daemon. Failures of the daemon itself are
    raised as ``DaemonError``; a missing container or image is not a failure
    and is reported as ``None``.
    """

    @abstractmethod
    def inspect_container(self, name: str) -> Optional[ContainerState]:
        ...

    @abstractmethod
    def inspect_image(self, ref: str) -> Optional[ImageInfo]:
        ...

    @abstractmethod
    def create_container(self, options: CreateOptions) -> None:
        ...

    @abstractmethod
    def start_container(self, name: str, options: RuntimeOptions) -> None:
        ...
