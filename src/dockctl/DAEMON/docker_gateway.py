# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""
Daemon gateway backed by the Docker Engine API.
"""
import logging
from typing import Any, Callable, List, Optional, Tuple

import docker
import requests
from docker.errors import DockerException, NotFound
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..errors import DaemonError
from ..MODELS.daemon_state import ContainerState, CreateOptions, ImageInfo, RuntimeOptions
from ..MODELS.orchestration_config import OrchestrationOptions
from .gateway import DaemonGateway

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (DockerException, requests.exceptions.RequestException)


def _split_port(key: str) -> Tuple[int, str]:
    """``"80/tcp"`` -> ``(80, "tcp")``."""
    port, _, proto = key.partition("/")
    return int(port), proto or "tcp"


def _split_link(link: str) -> Tuple[str, str]:
    name, _, alias = link.partition(":")
    return name, alias or name


class DockerGateway(DaemonGateway):
    """
    Talks to a Docker daemon through the low-level ``docker.APIClient``.

    Docker Engine API 1.24 and later only accept host settings when a
    container is created, so ``create_container`` applies
    ``CreateOptions.host`` and ``start_container`` issues a plain start.
    """

    def __init__(self, options: Optional[OrchestrationOptions] = None, api: Optional[docker.APIClient] = None,
                 connect_wait: float = 1.0):
        """
        :param options: Run settings (daemon address, timeout, connection attempts).
        :param api: An existing API client. One is created on ``connect`` when omitted.
        :param connect_wait: Seconds between connection attempts.
        """
        self.options = options or OrchestrationOptions()
        self.connect_wait = connect_wait
        self._api = api

    @property
    def api(self) -> docker.APIClient:
        if self._api is None:
            self.connect()
        return self._api

    def connect(self) -> "DockerGateway":
        """
        Creates the API client if needed and pings the daemon, retrying
        connection failures up to ``connect_attempts`` times.

        :return: self, for chaining.
        :raises DaemonError: If the daemon cannot be reached.
        """
        retrying = Retrying(
            stop=stop_after_attempt(max(1, self.options.connect_attempts)),
            wait=wait_fixed(self.connect_wait),
            retry=retry_if_exception_type(_TRANSPORT_ERRORS),
            reraise=True,
        )
        try:
            retrying(self._ping)
        except _TRANSPORT_ERRORS as e:
            raise DaemonError(f"Error connecting to {self.options.docker_host}: {e}") from e
        return self

    def _ping(self) -> None:
        if self._api is None:
            logger.debug("Connecting to %s", self.options.docker_host)
            self._api = docker.APIClient(base_url=self.options.docker_host, timeout=self.options.timeout)
        self._api.ping()

    def _call(self, what: str, fn: Callable[..., Any], *args, **kwargs) -> Any:
        try:
            return fn(*args, **kwargs)
        except _TRANSPORT_ERRORS as e:
            raise DaemonError(f"Error {what}: {e}") from e

    def inspect_container(self, name: str) -> Optional[ContainerState]:
        try:
            data = self.api.inspect_container(name)
        except NotFound:
            return None
        except _TRANSPORT_ERRORS as e:
            raise DaemonError(f"Error inspecting container: {e}") from e
        return ContainerState(
            name=name,
            image_id=data.get("Image", ""),
            running=bool((data.get("State") or {}).get("Running")),
        )

    def inspect_image(self, ref: str) -> Optional[ImageInfo]:
        try:
            data = self.api.inspect_image(ref)
        except NotFound:
            return None
        except _TRANSPORT_ERRORS as e:
            raise DaemonError(f"Error inspecting image {ref}: {e}") from e
        return ImageInfo(id=data["Id"])

    def create_container(self, options: CreateOptions) -> None:
        host_kwargs = {}
        if options.host is not None:
            host_kwargs = dict(
                privileged=options.host.privileged,
                port_bindings=options.host.port_bindings or None,
                binds=options.host.binds or None,
                links=[_split_link(link) for link in options.host.links] or None,
            )
        if options.volumes_from:
            host_kwargs["volumes_from"] = [options.volumes_from]

        host_config = self._call("building host config", self.api.create_host_config, **host_kwargs)
        ports: List[Tuple[int, str]] = [_split_port(p) for p in options.exposed_ports]
        result = self._call(
            "creating container",
            self.api.create_container,
            image=options.image,
            name=options.name,
            environment=options.env or None,
            ports=ports or None,
            volumes=options.volumes or None,
            host_config=host_config,
        )
        for warning in (result or {}).get("Warnings") or []:
            logger.warning("%s: %s", options.name, warning)

    def start_container(self, name: str, options: RuntimeOptions) -> None:
        logger.debug("%s: Host settings were applied at creation: %s", name, options.model_dump())
        self._call("starting container", self.api.start, name)
