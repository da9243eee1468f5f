"""
Command Line Interface for dockctl.
"""
import logging

import click

from ..DAEMON.docker_gateway import DockerGateway
from ..DAEMON.gateway import DaemonGateway
from ..errors import ConfigurationError, DaemonError, ProvisionError
from ..MANAGERS.lifecycle_orchestrator import LifecycleOrchestrator
from ..MODELS.orchestration_config import DEFAULT_DOCKER_HOST, OrchestrationOptions
from ..MODELS.provision_result import Phase
from ..PARSERS.config_parser import ConfigParser
from ..RUNNERS.dependency_resolver import DependencyResolver
from ..UTILS.log import configure_logging

logger = logging.getLogger("dockctl.cli")


def make_gateway(options: OrchestrationOptions) -> DaemonGateway:
    """
    Connects to the daemon named in ``options``.
    """
    return DockerGateway(options).connect()


@click.group()
@click.option('--config', '-c', default='./config.yaml', envvar='DOCKCTL_CONFIG', show_default=True,
              help='The config file to use')
@click.option('--docker-host', envvar='DOCKER_HOST', default=DEFAULT_DOCKER_HOST, show_default=True,
              help='Docker daemon address')
@click.option('--timeout', type=float, default=60.0, show_default=True, help='Seconds to wait for each daemon call')
@click.option('--ignore-mount-mode', is_flag=True, help='Bind mounts without their :ro/:rw mode')
@click.option('--no-color', is_flag=True, help='Disable colored output')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug output')
@click.pass_context
def cli(ctx, config, docker_host, timeout, ignore_mount_mode, no_color, verbose):
    """
    dockctl - create and start a cluster of Docker containers.

    Containers are processed in dependency order; anything already in place is skipped.
    """
    ctx.ensure_object(dict)
    configure_logging(verbose=verbose, use_color=False if no_color else None)
    ctx.obj['file'] = config
    ctx.obj['options'] = OrchestrationOptions(
        docker_host=docker_host,
        timeout=timeout,
        honor_mount_mode=not ignore_mount_mode,
    )


def _load_plan(ctx):
    """
    Parses the config file and orders its containers. Exits on any configuration error.
    """
    path = ctx.obj['file']
    try:
        config = ConfigParser().parse(path)
        return DependencyResolver().resolve(config)
    except OSError as e:
        logger.error("Error opening config file: %s (%s)", path, e.strerror or e)
    except ConfigurationError as e:
        logger.error("%s", e)
    ctx.exit(1)


def _connect(ctx) -> DaemonGateway:
    try:
        return make_gateway(ctx.obj['options'])
    except DaemonError as e:
        logger.error("Error getting client: %s", e)
        ctx.exit(1)


def _run_phase(ctx, phase: Phase):
    plan = _load_plan(ctx)
    gateway = _connect(ctx)
    result = LifecycleOrchestrator(gateway, ctx.obj['options']).run(plan, phase)
    if not result.ok:
        ctx.exit(1)


@cli.command()
@click.pass_context
def create(ctx):
    """Create all containers in the cluster."""
    _run_phase(ctx, Phase.CREATE)


@cli.command()
@click.pass_context
def start(ctx):
    """Start all containers in the cluster."""
    _run_phase(ctx, Phase.START)


@cli.command()
@click.pass_context
def plan(ctx):
    """Show the order containers are provisioned in."""
    ordered = _load_plan(ctx)
    for position, spec in enumerate(ordered, 1):
        deps = ", ".join(spec.references())
        click.echo(f"{position:3} {spec.name:20} {spec.image:30} {deps}".rstrip())


@cli.command()
@click.pass_context
def status(ctx):
    """Show the status of all containers in the cluster."""
    ordered = _load_plan(ctx)
    gateway = _connect(ctx)
    try:
        statuses = LifecycleOrchestrator(gateway, ctx.obj['options']).status(ordered)
    except ProvisionError as e:
        logger.error("%s", e)
        ctx.exit(1)
    click.echo(f"{'CONTAINER':20} {'STATUS':10}")
    click.echo("-" * 31)
    for name, state in statuses.items():
        click.echo(f"{name:20} {state.value:10}")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
