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
Exception hierarchy for dockctl.

Configuration errors are raised before any daemon is contacted. Provision
errors are raised while walking the plan and stop the current run.
"""
from typing import List, Optional


class DockctlError(Exception):
    """Base class for all dockctl errors."""


class ConfigurationError(DockctlError):
    """The configuration cannot be turned into a provisioning plan."""


class ConfigParseError(ConfigurationError):
    """
    The configuration file is malformed.

    :param message: Description of the problem.
    :param container: Name of the container being parsed, if any.
    :param key: Configuration key being parsed, if any.
    """
    def __init__(self, message: str, container: Optional[str] = None, key: Optional[str] = None):
        self.container = container
        self.key = key
        if container and key:
            message = f"Error parsing key '{key}' for container {container}: {message}"
        elif container:
            message = f"Error parsing container {container}: {message}"
        super().__init__(message)


class DuplicateName(ConfigurationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Container '{name}' is defined more than once")


class UnknownDependency(ConfigurationError):
    def __init__(self, source: str, target: str):
        self.source = source
        self.target = target
        super().__init__(f"Dependency '{target}' for container '{source}' does not exist")


class SelfDependency(ConfigurationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Container '{name}' depends on itself")


class CycleError(ConfigurationError):
    """
    The dependency graph contains at least one cycle.

    :param participants: Names of the containers on the cycle(s), in configuration order.
    :param indices: Matching configuration indices.
    """
    def __init__(self, participants: List[str], indices: List[int]):
        self.participants = list(participants)
        self.indices = list(indices)
        super().__init__(f"Cycle detected among: {', '.join(self.participants)}")


class ProvisionError(DockctlError):
    """A container could not be brought to the requested state. Fatal for the run."""


class ResolutionError(ProvisionError):
    """The daemon state does not agree with the configuration."""


class NoSuchImage(ResolutionError):
    def __init__(self, image_ref: str):
        self.image_ref = image_ref
        super().__init__(f"No such image ({image_ref})")


class ImageMismatch(ResolutionError):
    def __init__(self, name: str, actual_id: str, expected_id: str):
        self.name = name
        self.actual_id = actual_id
        self.expected_id = expected_id
        super().__init__(
            f"Container exists, but is not using the correct image "
            f"(using: {actual_id}, expected: {expected_id})"
        )


class MissingContainer(ResolutionError):
    def __init__(self, name: str):
        self.name = name
        super().__init__("Container not found, did you run `dockctl create`?")


class DaemonError(ProvisionError):
    """The daemon rejected a request or could not be reached."""
