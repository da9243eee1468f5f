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
Two-phase (create, start) provisioning of an ordered plan of containers.
"""
import logging
from enum import Enum
from typing import Dict, Optional

from ..DAEMON.gateway import DaemonGateway
from ..errors import ImageMismatch, MissingContainer, NoSuchImage, ProvisionError
from ..MODELS.container_spec import ContainerSpec
from ..MODELS.daemon_state import ContainerState
from ..MODELS.orchestration_config import OrchestrationOptions
from ..MODELS.provision_result import Phase, ProvisionOutcome, ProvisionResult, RunResult
from ..RUNNERS.dependency_resolver import OrderedPlan
from ..RUNNERS.option_builder import build_create_options, build_runtime_options

logger = logging.getLogger(__name__)


class ContainerStatus(str, Enum):
    """Observed state of a container relative to its spec."""

    ABSENT = "absent"
    CREATED = "created"
    RUNNING = "running"


def check_existing(gateway: DaemonGateway, spec: ContainerSpec) -> Optional[ContainerState]:
    """
    Looks up the container for ``spec`` and verifies it runs the configured image.

    :param gateway: The daemon gateway.
    :param spec: The container spec.
    :return: The container state, or None if no such container exists.
    :raises NoSuchImage: If the container exists but the spec's image is unknown.
    :raises ImageMismatch: If the container was created from a different image.
    """
    state = gateway.inspect_container(spec.name)
    if state is None:
        return None

    image = gateway.inspect_image(spec.image)
    if image is None:
        raise NoSuchImage(spec.image)
    if state.image_id != image.id:
        raise ImageMismatch(spec.name, state.image_id, image.id)
    return state


class LifecycleOrchestrator:
    """
    Walks an ordered plan one container at a time, creating or starting
    whatever is not already in place.

    Each phase stops at the first container that fails. Containers handled
    before the failure are left as they are; rerunning the phase skips them.
    """
    def __init__(self, gateway: DaemonGateway, options: Optional[OrchestrationOptions] = None):
        """
        Initializes the orchestrator.

        :param gateway: Access to the container daemon for the run.
        :param options: Run settings.
        """
        self.gateway = gateway
        self.options = options or OrchestrationOptions()

    def run(self, plan: OrderedPlan, phase: Phase) -> RunResult:
        """
        Applies ``phase`` to every container of ``plan``, in order.

        :param plan: The provisioning plan.
        :param phase: Which pass to run.
        :return: Per-container outcomes and the error that stopped the run, if any.
        """
        step = self._create_one if phase == Phase.CREATE else self._start_one
        result = RunResult(phase=Phase(phase), total=len(plan))

        for spec in plan:
            try:
                outcome = step(spec)
            except ProvisionError as e:
                logger.error("%s: %s", spec.name, e)
                result.record(ProvisionResult(spec.name, ProvisionOutcome.FAILED, str(e)))
                result.error = e
                break
            result.record(ProvisionResult(spec.name, outcome))

        if result.ok:
            logger.info("Finished %s containers", "creating" if phase == Phase.CREATE else "starting")
        logger.info(result.summary())
        return result

    def create(self, plan: OrderedPlan) -> RunResult:
        return self.run(plan, Phase.CREATE)

    def start(self, plan: OrderedPlan) -> RunResult:
        return self.run(plan, Phase.START)

    def _create_one(self, spec: ContainerSpec) -> ProvisionOutcome:
        if check_existing(self.gateway, spec) is not None:
            logger.info("%s: Container exists, skipping...", spec.name)
            return ProvisionOutcome.SKIPPED_EXISTS

        logger.info("%s: Container not found, creating...", spec.name)
        self.gateway.create_container(build_create_options(spec, self.options))
        logger.info("%s: Created container", spec.name)
        return ProvisionOutcome.CREATED

    def _start_one(self, spec: ContainerSpec) -> ProvisionOutcome:
        state = check_existing(self.gateway, spec)
        if state is None:
            raise MissingContainer(spec.name)
        if state.running:
            logger.info("%s: Container is already running, skipping...", spec.name)
            return ProvisionOutcome.SKIPPED_RUNNING

        logger.debug("%s: Container exists, starting...", spec.name)
        self.gateway.start_container(spec.name, build_runtime_options(spec, self.options))
        logger.info("%s: Started container", spec.name)
        return ProvisionOutcome.STARTED

    def status(self, plan: OrderedPlan) -> Dict[str, ContainerStatus]:
        """
        Reports the state of every container in plan order without changing anything.

        :param plan: The provisioning plan.
        :return: Container names mapped to their status.
        :raises ProvisionError: If a container does not match its spec or the daemon fails.
        """
        statuses = {}
        for spec in plan:
            state = check_existing(self.gateway, spec)
            if state is None:
                statuses[spec.name] = ContainerStatus.ABSENT
            elif state.running:
                statuses[spec.name] = ContainerStatus.RUNNING
            else:
                statuses[spec.name] = ContainerStatus.CREATED
        return statuses
