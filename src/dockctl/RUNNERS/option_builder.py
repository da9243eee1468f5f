"""
Translation of container specs into daemon create and runtime options.
"""
import logging
from typing import Dict, List, Optional, Tuple

from ..MODELS.container_spec import ContainerSpec, MountMode
from ..MODELS.daemon_state import CreateOptions, RuntimeOptions
from ..MODELS.orchestration_config import OrchestrationOptions

logger = logging.getLogger(__name__)


def port_key(container_port: int) -> str:
    return f"{container_port}/tcp"


def build_runtime_options(spec: ContainerSpec, options: Optional[OrchestrationOptions] = None) -> RuntimeOptions:
    """
    Host settings for running ``spec``: privileges, published ports, bind
    mounts, inherited volumes and links to dependencies.

    :param spec: The container spec.
    :param options: Run settings. ``honor_mount_mode`` appends ``:ro``/``:rw`` to binds.
    :return: The runtime options.
    """
    options = options or OrchestrationOptions()

    port_bindings: Dict[str, List[Tuple[str, int]]] = {}
    for port in spec.ports:
        port_bindings.setdefault(port_key(port.container_port), []).append((port.ip, port.host_port))

    binds = []
    for mount in spec.mounts:
        bind = f"{mount.host_dir}:{mount.container_dir}"
        if options.honor_mount_mode:
            bind += ":ro" if mount.mode == MountMode.READ_ONLY else ":rw"
        binds.append(bind)

    return RuntimeOptions(
        privileged=spec.privileged,
        port_bindings=port_bindings,
        binds=binds,
        volumes_from=list(spec.mount_from),
        links=[f"{dep.target}:{dep.alias}" for dep in spec.dependencies],
    )


def build_create_options(spec: ContainerSpec, options: Optional[OrchestrationOptions] = None) -> CreateOptions:
    """
    Settings for creating ``spec``. The runtime options are attached as
    ``host`` for daemons that fix host settings at creation.

    Only one volume source is supported at creation; when several are
    given, the last one is used and a warning is logged.
    """
    if len(spec.mount_from) > 1:
        logger.warning(
            "%s: Currently only support one 'mount-from'.  The last entry (%s) will be used.",
            spec.name, spec.mount_from[-1],
        )
    volumes_from = spec.mount_from[-1] if spec.mount_from else None
    exposed_ports = list(dict.fromkeys(port_key(p.container_port) for p in spec.ports))

    return CreateOptions(
        name=spec.name,
        image=spec.image,
        env=[e.render() for e in spec.env],
        exposed_ports=exposed_ports,
        volumes=[m.container_dir for m in spec.mounts],
        volumes_from=volumes_from,
        host=build_runtime_options(spec, options),
    )
