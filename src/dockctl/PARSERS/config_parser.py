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
Parser for dockctl cluster configuration files.

A configuration maps container names either to an image reference (the
``ImageOnly`` form) or to a mapping of settings (the ``FullSpec`` form)::

    containers:
      db: postgres:13
      web:
        image: nginx:latest
        dependencies: [db]
        ports: ["127.0.0.1:8080:80"]
"""
import os
import logging
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError

from ..errors import ConfigParseError, DuplicateName
from ..MODELS.container_spec import ContainerSpec, DependencyLink, EnvVar, MountMode, MountPoint, PortMapping
from ..MODELS.orchestration_config import OrchestrationConfig
from ..UTILS.string_interpolation import UnsetVariable, interpolate, load_context

logger = logging.getLogger(__name__)

DEFAULT_IP = "0.0.0.0"


class _UniqueKeyLoader(yaml.SafeLoader):
    """
    SafeLoader that rejects repeated mapping keys instead of keeping the last one.

    A repeated name directly under ``containers`` raises ``DuplicateName``;
    any other repeated key raises ``ConfigParseError`` with its line.
    """

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            seen = set()
            for key_node, value_node in node.value:
                if not isinstance(key_node, yaml.ScalarNode) or key_node.tag == "tag:yaml.org,2002:merge":
                    continue
                key = self.construct_object(key_node, deep=deep)
                if key == "containers" and isinstance(value_node, yaml.MappingNode):
                    value_node.holds_containers = True
                if key in seen:
                    if getattr(node, "holds_containers", False):
                        raise DuplicateName(str(key))
                    raise ConfigParseError(
                        f"Duplicate key in config: {key} (line {key_node.start_mark.line + 1})"
                    )
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


class ImageOnly(BaseModel):
    """``name: image`` shorthand."""
    image: StrictStr


class FullSpec(BaseModel):
    """``name: {...}`` with every supported key. Unknown keys are rejected."""
    model_config = ConfigDict(extra="forbid")

    image: StrictStr = ""
    dependencies: List[StrictStr] = []
    env: List[StrictStr] = []
    ports: List[Union[StrictInt, StrictStr]] = []
    mount: List[StrictStr] = []
    mount_from: List[StrictStr] = Field(default=[], alias="mount-from")
    privileged: StrictBool = False


def parse_dependency(value: str, index: int) -> DependencyLink:
    """
    Parses ``name`` or ``name:alias``.
    """
    parts = value.split(":")
    if len(parts) == 1:
        return DependencyLink(target=parts[0], alias=parts[0])
    if len(parts) == 2:
        return DependencyLink(target=parts[0], alias=parts[1])
    raise ValueError(f"Unknown format for dependency entry {index}")


def parse_env(value: str, index: int) -> EnvVar:
    """
    Parses ``KEY=VALUE``. Only the first ``=`` separates key from value.
    """
    if "=" not in value:
        raise ValueError(f"Env entry {index} not in form KEY=VAL")
    key, val = value.split("=", 1)
    return EnvVar(key=key, value=val)


def _port_number(text: str, index: int) -> int:
    if not text.isdigit():
        raise ValueError(f"Port {index} is not a number: {text!r}")
    number = int(text)
    if number <= 0 or number > 65535:
        raise ValueError(f"Port {index} out of range: {number}")
    return number


def parse_port(value: Union[int, str], index: int) -> PortMapping:
    """
    Parses a port declaration.

    Accepted forms: ``8080``, ``"8080"``, ``"8080:80"``, ``"127.0.0.1:8080:80"``
    and ``"127.0.0.1::80"`` (host port equal to the container port).

    :param value: The raw entry.
    :param index: Position of the entry, used in error messages.
    :return: The parsed port mapping.
    """
    if isinstance(value, bool):
        raise ValueError(f"Unknown value type in array: {type(value).__name__}")
    if isinstance(value, int):
        if value <= 0 or value > 65535:
            raise ValueError(f"Port {index} out of range: {value}")
        return PortMapping(ip=DEFAULT_IP, host_port=value, container_port=value)

    parts = value.split(":")
    if len(parts) == 1:
        port = _port_number(parts[0], index)
        return PortMapping(ip=DEFAULT_IP, host_port=port, container_port=port)
    if len(parts) == 2:
        return PortMapping(
            ip=DEFAULT_IP,
            host_port=_port_number(parts[0], index),
            container_port=_port_number(parts[1], index),
        )
    if len(parts) == 3:
        container_port = _port_number(parts[2], index)
        # Empty middle part means "same as the container port"
        host_port = _port_number(parts[1], index) if parts[1] else container_port
        return PortMapping(ip=parts[0], host_port=host_port, container_port=container_port)
    raise ValueError(f"Unknown port format for port {index}")


def parse_mount(value: str, index: int) -> MountPoint:
    """
    Parses ``/host/dir:/container/dir[:ro|rw]``.
    """
    parts = value.split(":")
    if len(parts) == 2:
        return MountPoint(host_dir=parts[0], container_dir=parts[1])
    if len(parts) == 3:
        try:
            mode = MountMode(parts[2])
        except ValueError:
            raise ValueError(f"Mount entry {index} has invalid mount type: {parts[2]}") from None
        return MountPoint(host_dir=parts[0], container_dir=parts[1], mode=mode)
    raise ValueError(f"Mount entry {index} not in form /host/dir:/container/dir[:type]")


class ConfigParser:
    """
    Parser for dockctl config.yaml files.
    """
    TOP_LEVEL_KEYS = ("containers",)

    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        Initializes the parser with an optional variable context for interpolation.

        :param context: Variables for ``${VAR}`` substitution. When omitted, the
            process environment plus a ``.env`` file next to the parsed config is used.
        """
        self.context = context

    def parse(self, config_path: str) -> OrchestrationConfig:
        """
        Parses a configuration file from a path.

        :param config_path: Path to the configuration file.
        :return: Parsed configuration.
        :raises OSError: If the file cannot be opened.
        """
        with open(config_path, 'r', encoding="utf-8") as f:
            try:
                content = f.read()
            except UnicodeDecodeError as e:
                raise ConfigParseError(f"Config file is not valid UTF-8: {e}")
        context = self.context
        if context is None:
            context = load_context(os.path.join(os.path.dirname(os.path.abspath(config_path)), ".env"))
        return self.parse_from_string(content, context=context)

    def parse_from_string(self, content: str, context: Optional[Dict[str, str]] = None) -> OrchestrationConfig:
        """
        Parses a configuration from a string.

        :param content: YAML content of the configuration.
        :param context: Variables for interpolation, overriding the parser's own.
        :return: Parsed configuration.
        :raises ConfigParseError: If the content is not a valid configuration.
        """
        if context is None:
            context = self.context if self.context is not None else load_context()
        try:
            content = interpolate(content, context)
        except UnsetVariable as e:
            raise ConfigParseError(str(e))

        try:
            data = yaml.load(content, Loader=_UniqueKeyLoader)
        except yaml.YAMLError as e:
            raise ConfigParseError(f"Invalid YAML: {e}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigParseError(f"Config must be a mapping, not {type(data).__name__}")
        for key in data:
            if key not in self.TOP_LEVEL_KEYS:
                raise ConfigParseError(f"Unknown top-level key in config: {key}")

        section = data.get("containers")
        if not isinstance(section, dict):
            raise ConfigParseError("Missing or invalid 'containers' key in config")

        containers = []
        for name, value in section.items():
            if not isinstance(name, str):
                raise ConfigParseError(f"Container names must be strings: {name!r}")
            containers.append(self.parse_container(name, value))

        logger.debug("Parsed %d containers: %s", len(containers), ", ".join(c.name for c in containers))
        return OrchestrationConfig(containers=containers)

    def parse_container(self, name: str, value: Any) -> ContainerSpec:
        """
        Decodes one container entry from either of its two forms.

        :param name: The container name.
        :param value: Image string or settings mapping.
        :return: A ContainerSpec instance.
        """
        if isinstance(value, str):
            if not value:
                raise ConfigParseError("Empty image reference", container=name)
            return ContainerSpec(name=name, image=ImageOnly(image=value).image)
        if isinstance(value, dict):
            return self._from_full_spec(name, self._decode_full_spec(name, value))
        raise ConfigParseError(f"Unknown type for 'containers' key: {type(value).__name__}", container=name)

    def _decode_full_spec(self, name: str, value: Dict[Any, Any]) -> FullSpec:
        for key in value:
            if not isinstance(key, str):
                raise ConfigParseError(f"Unknown key in config for container {name}: {key!r}")
        try:
            return FullSpec.model_validate(value)
        except ValidationError as e:
            error = e.errors()[0]
            loc = error.get("loc") or ()
            key = str(loc[0]) if loc else None
            if error.get("type") == "extra_forbidden":
                raise ConfigParseError(f"Unknown key in config for container {name}: {key}")
            raise ConfigParseError(error.get("msg", str(e)), container=name, key=key)

    def _from_full_spec(self, name: str, entry: FullSpec) -> ContainerSpec:
        spec = ContainerSpec(
            name=name,
            image=entry.image,
            privileged=entry.privileged,
            dependencies=self._each(name, "dependencies", entry.dependencies, parse_dependency, unique=True),
            env=self._each(name, "env", entry.env, parse_env),
            ports=self._each(name, "ports", entry.ports, parse_port),
            mounts=self._each(name, "mount", entry.mount, parse_mount),
            mount_from=list(entry.mount_from),
        )
        if not spec.image:
            raise ConfigParseError("Missing 'image'", container=name, key="image")
        return spec

    def _each(self, name: str, key: str, values: List[Any], parse, unique: bool = False) -> List[Any]:
        """
        Applies ``parse`` to each entry of a list-valued key, wrapping errors
        with the container and key they came from.
        """
        parsed = []
        seen = set()
        for i, value in enumerate(values):
            try:
                item = parse(value, i)
            except ValueError as e:
                raise ConfigParseError(str(e), container=name, key=key)
            if unique:
                if item.target in seen:
                    raise ConfigParseError(f"Duplicate dependency entry {i}: {item.target}", container=name, key=key)
                seen.add(item.target)
            parsed.append(item)
        return parsed
