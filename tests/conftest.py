import pytest
from typing import Dict, List, Optional, Tuple

from dockctl.DAEMON.gateway import DaemonGateway
from dockctl.errors import DaemonError
from dockctl.MODELS.daemon_state import ContainerState, CreateOptions, ImageInfo, RuntimeOptions


class FakeGateway(DaemonGateway):
    """
    In-memory daemon. Records every call so tests can assert on ordering
    and on the absence of side effects.
    """

    def __init__(self, images: Optional[Dict[str, str]] = None):
        self.images: Dict[str, str] = dict(images or {})  # ref -> image id
        self.containers: Dict[str, ContainerState] = {}
        self.calls: List[Tuple[str, str]] = []
        self.created: List[CreateOptions] = []
        self.started: List[Tuple[str, RuntimeOptions]] = []
        self.failures: Dict[Tuple[str, str], str] = {}

    def fail(self, method: str, name: str, message: str = "daemon said no"):
        self.failures[(method, name)] = message

    def _maybe_fail(self, method: str, name: str):
        if (method, name) in self.failures:
            raise DaemonError(self.failures[(method, name)])

    def add_container(self, name: str, image_id: str, running: bool = False):
        self.containers[name] = ContainerState(name=name, image_id=image_id, running=running)

    @property
    def mutations(self) -> int:
        return len(self.created) + len(self.started)

    def inspect_container(self, name):
        self.calls.append(("inspect_container", name))
        self._maybe_fail("inspect_container", name)
        state = self.containers.get(name)
        return state.model_copy() if state else None

    def inspect_image(self, ref):
        self.calls.append(("inspect_image", ref))
        self._maybe_fail("inspect_image", ref)
        if ref not in self.images:
            return None
        return ImageInfo(id=self.images[ref])

    def create_container(self, options):
        self.calls.append(("create_container", options.name))
        self._maybe_fail("create_container", options.name)
        self.created.append(options)
        self.add_container(options.name, self.images.get(options.image, "sha256:missing"))

    def start_container(self, name, options):
        self.calls.append(("start_container", name))
        self._maybe_fail("start_container", name)
        self.started.append((name, options))
        self.containers[name].running = True


IMAGES = {
    "postgres:13": "sha256:db",
    "nginx:latest": "sha256:web",
    "redis:7": "sha256:cache",
    "busybox": "sha256:data",
}


@pytest.fixture
def gateway():
    return FakeGateway(images=IMAGES)
