import pytest
from click.testing import CliRunner

from dockctl.CLI import main as cli_main
from dockctl.CLI.main import cli
from dockctl.errors import DaemonError

CONFIG = """
containers:
  web:
    image: nginx:latest
    dependencies: [db]
    ports: ["8080:80"]
  db: postgres:13
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG)
    return str(path)


@pytest.fixture
def daemon(gateway, monkeypatch):
    monkeypatch.setattr(cli_main, "make_gateway", lambda options: gateway)
    return gateway


def invoke(*args):
    return CliRunner().invoke(cli, ["--no-color", *args], obj={})


def test_cli_help():
    result = CliRunner().invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'create and start a cluster' in result.output
    for command in ("create", "start", "plan", "status"):
        assert command in result.output


def test_create_then_start(config_file, daemon):
    result = invoke("-c", config_file, "create")
    assert result.exit_code == 0, result.output
    assert "[info] db: Created container" in result.output
    assert "Total: 2 (2 created / 0 skipped)" in result.output
    assert [o.name for o in daemon.created] == ["db", "web"]

    result = invoke("-c", config_file, "create")
    assert "Total: 2 (0 created / 2 skipped)" in result.output

    result = invoke("-c", config_file, "start")
    assert result.exit_code == 0, result.output
    assert "Total: 2 (2 started / 0 skipped)" in result.output


def test_start_without_create_fails(config_file, daemon):
    result = invoke("-c", config_file, "start")
    assert result.exit_code == 1
    assert "did you run `dockctl create`?" in result.output
    assert daemon.started == []


def test_mount_mode_flag(tmp_path, daemon):
    path = tmp_path / "config.yaml"
    path.write_text("containers:\n  db:\n    image: postgres:13\n    mount: ['/srv:/data:ro']\n")
    invoke("-c", str(path), "--ignore-mount-mode", "create")
    assert daemon.created[0].host.binds == ["/srv:/data"]


def test_plan(config_file):
    result = invoke("-c", config_file, "plan")
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0].split()[:2] == ["1", "db"]
    assert lines[1].split()[:2] == ["2", "web"]


def test_status(config_file, daemon):
    invoke("-c", config_file, "create")
    daemon.containers["db"].running = True
    result = invoke("-c", config_file, "status")
    assert result.exit_code == 0
    rows = {line.split()[0]: line.split()[1] for line in result.output.splitlines()[2:] if line.strip()}
    assert rows["db"] == "running"
    assert rows["web"] == "created"


def test_missing_config_file(tmp_path):
    result = invoke("-c", str(tmp_path / "non_existent.yml"), "create")
    assert result.exit_code == 1
    assert "Error opening config file" in result.output


def test_config_path_is_a_directory(tmp_path):
    result = invoke("-c", str(tmp_path), "create")
    assert result.exit_code == 1
    assert "Error opening config file" in result.output
    assert "Traceback" not in result.output


def test_config_file_with_invalid_encoding(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_bytes(b"\xff\xfe")
    result = invoke("-c", str(path), "create")
    assert result.exit_code == 1
    assert "not valid UTF-8" in result.output


def test_duplicate_container_name(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("containers:\n  web: nginx:latest\n  web: redis:7\n")
    result = invoke("-c", str(path), "create")
    assert result.exit_code == 1
    assert "Container 'web' is defined more than once" in result.output


def test_cycle_is_reported_before_connecting(tmp_path, monkeypatch):
    def unreachable(options):
        raise AssertionError("daemon should not be contacted")

    monkeypatch.setattr(cli_main, "make_gateway", unreachable)
    path = tmp_path / "config.yaml"
    path.write_text("containers:\n  a: {image: x, dependencies: [b]}\n  b: {image: y, dependencies: [a]}\n")
    result = invoke("-c", str(path), "create")
    assert result.exit_code == 1
    assert "Cycle detected among: a, b" in result.output


def test_unreachable_daemon(config_file, monkeypatch):
    def refuse(options):
        raise DaemonError("connection refused")

    monkeypatch.setattr(cli_main, "make_gateway", refuse)
    result = invoke("-c", config_file, "create")
    assert result.exit_code == 1
    assert "Error getting client: connection refused" in result.output


def test_config_from_environment(config_file, daemon):
    result = CliRunner().invoke(cli, ["--no-color", "create"], obj={}, env={"DOCKCTL_CONFIG": config_file})
    assert result.exit_code == 0, result.output
    assert len(daemon.created) == 2
