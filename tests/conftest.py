"""
Shared fixtures: a recording command runner in place of docker/compose and
a project directory holding the PlanIt compose file.
"""
import pytest

from planit_deploy.exceptions import ComposeError
from planit_deploy.MANAGERS.service_orchestrator import Collaborators
from planit_deploy.RUNNERS.compose_runner import CommandResult, CommandRunner, ComposeClient
from planit_deploy.UTILS.console import StatusPrinter

COMPOSE_YML = """
version: '3.8'
services:
  redis:
    image: redis:7.2.4-alpine
    ports:
      - "6380:6379"
  postgres:
    image: postgres:15.5-alpine
    ports:
      - "5433:5432"
    environment:
      POSTGRES_USER: ${DB_USER:-postgres}
      POSTGRES_DB: ${DB_NAME:-planit_db}
  backend:
    image: achrefmaarfi0/planit_backend_docker:latest
    ports:
      - "8080:8000"
    depends_on:
      postgres:
        condition: service_healthy
      redis:
        condition: service_healthy
  celery_worker:
    image: achrefmaarfi0/planit_backend_docker:latest
    depends_on: [backend, redis]
  celery_beat:
    image: achrefmaarfi0/planit_backend_docker:latest
    depends_on: [backend, redis]
  frontend:
    image: achrefmaarfi0/planit_frontend_docker:latest
    ports:
      - "3100:3000"
    depends_on: [backend]
  nginx:
    image: nginx:alpine
    ports:
      - "8081:80"
      - "8443:443"
    depends_on: [backend]
"""

ALL_PORTS = {6380, 5433, 8080, 3100, 8081}


class FakeRunner(CommandRunner):
    """
    Records every command instead of running it. ``fail`` decides which
    commands exit non-zero.
    """
    def __init__(self, env=None, cwd=None, fail=None):
        super().__init__(env=env, cwd=cwd)
        self.calls = []
        self.inputs = []
        self.envs = []
        self.fail = fail or (lambda argv: False)

    def run(self, argv, check=True, input=None, capture=True, stage=None):
        self.calls.append(list(argv))
        self.inputs.append(input)
        self.envs.append(self.env)
        returncode = 1 if self.fail(list(argv)) else 0
        result = CommandResult(list(argv), returncode, "", "boom" if returncode else "")
        if check and not result.ok:
            raise ComposeError(list(argv), returncode, result.stderr, stage=stage)
        return result

    def compose_calls(self, verb):
        return [argv for argv in self.calls if argv[:1] == ["docker-compose"] and verb in argv]

    def up_groups(self):
        return [argv[argv.index("up") + 2:] for argv in self.compose_calls("up")]


@pytest.fixture
def printer():
    return StatusPrinter(color=False)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def compose(runner):
    return ComposeClient(runner, ["docker-compose"], compose_file="docker-compose.yml")


@pytest.fixture
def project(tmp_path):
    (tmp_path / "docker-compose.yml").write_text(COMPOSE_YML)
    (tmp_path / ".env").write_text("DB_NAME=planit_db\nDB_USER=planit\nDB_PASSWORD=s3cret\n")
    return tmp_path


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_collaborators(runner, sleeps):
    def factory(open_ports=ALL_PORTS, **overrides):
        values = dict(
            runner_factory=lambda env, cwd: _bind(runner, env, cwd),
            which=lambda name: f"/usr/bin/{name}",
            compose_detector=lambda: ["docker-compose"],
            port_check=lambda port: port in open_ports,
            sleep=sleeps.append,
            confirm_cleanup=lambda: True,
            confirm_follow_logs=lambda: False,
            interactive=lambda: False,
            environ={},
            install_signal_handlers=False,
        )
        values.update(overrides)
        return Collaborators(**values)
    return factory


def _bind(runner, env, cwd):
    runner.env = env
    runner.cwd = cwd
    return runner
