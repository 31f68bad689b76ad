"""
Unit tests for PostgreSQL readiness and bootstrap.
"""
import pytest

from planit_deploy.exceptions import ReadinessError
from planit_deploy.MANAGERS.database_bootstrap import BOOTSTRAP_SQL, DatabaseBootstrapper
from planit_deploy.MODELS.environment_config import EnvironmentConfig


@pytest.fixture
def config():
    return EnvironmentConfig.from_values(
        {'DB_NAME': 'planit_db', 'DB_USER': 'planit', 'DB_PASSWORD': "it's secret",
         'POSTGRES_ADMIN_USER': 'postgres'},
        base_environment={}
    )


def _bootstrapper(compose, config, printer, sleeps=None):
    return DatabaseBootstrapper(compose, config, printer,
                                sleep=(sleeps.append if sleeps is not None else lambda s: None))


def test_ready_on_first_query(runner, compose, config, printer):
    _bootstrapper(compose, config, printer).wait_until_ready()
    assert runner.calls == [[
        'docker-compose', '-f', 'docker-compose.yml', 'exec', '-T', 'postgres',
        'psql', '-U', 'postgres', '-d', 'postgres', '-c', 'SELECT 1',
    ]]


def test_logs_in_as_compose_superuser(runner, compose, printer):
    config = EnvironmentConfig.from_values({'DB_USER': 'planit'}, base_environment={})
    bootstrapper = _bootstrapper(compose, config, printer)
    bootstrapper.wait_until_ready()
    bootstrapper.bootstrap()
    assert runner.calls[0][-7:] == ['psql', '-U', 'planit', '-d', 'postgres', '-c', 'SELECT 1']
    assert 'admin_user=planit' in runner.calls[1]


def test_ready_after_retries(runner, compose, config, printer):
    runner.fail = lambda argv: len(runner.calls) < 4
    sleeps = []
    _bootstrapper(compose, config, printer, sleeps).wait_until_ready()
    assert len(runner.calls) == 4
    assert sleeps == [2.0] * 3


def test_not_ready_is_fatal(runner, compose, config, printer):
    runner.fail = lambda argv: True
    with pytest.raises(ReadinessError) as excinfo:
        _bootstrapper(compose, config, printer).wait_until_ready(stage='core-up')
    assert len(runner.calls) == 30
    assert excinfo.value.stage == 'core-up'
    assert excinfo.value.service == 'postgres'


def test_bootstrap_passes_values_as_psql_variables(runner, compose, config, printer):
    assert _bootstrapper(compose, config, printer).bootstrap() is True
    argv = runner.calls[0]
    assert argv[argv.index('exec'):argv.index('psql')] == ['exec', '-T', 'postgres']
    assert 'ON_ERROR_STOP=1' in argv
    assert 'db_name=planit_db' in argv
    assert 'db_user=planit' in argv
    assert "db_password=it's secret" in argv
    assert 'admin_user=postgres' in argv
    assert runner.inputs[0] == BOOTSTRAP_SQL


def test_bootstrap_statements_are_guarded():
    assert "WHERE NOT EXISTS (SELECT FROM pg_database WHERE datname = :'db_name')" in BOOTSTRAP_SQL
    assert "NOT EXISTS (SELECT FROM pg_roles WHERE rolname = :'db_user')" in BOOTSTRAP_SQL
    assert ":'db_user' <> :'admin_user'" in BOOTSTRAP_SQL
    assert BOOTSTRAP_SQL.count('\\gexec') == 2
    # identifiers and literals are quoted by format(), never spliced in
    assert '%I' in BOOTSTRAP_SQL and '%L' in BOOTSTRAP_SQL


def test_bootstrap_twice_is_harmless(runner, compose, config, printer):
    bootstrapper = _bootstrapper(compose, config, printer)
    assert bootstrapper.bootstrap() is True
    assert bootstrapper.bootstrap() is True
    assert runner.calls[0] == runner.calls[1]
    assert runner.inputs[0] == runner.inputs[1]


def test_bootstrap_failure_is_not_fatal(runner, compose, config, printer, capsys):
    runner.fail = lambda argv: True
    assert _bootstrapper(compose, config, printer).bootstrap() is False
    assert 'DB setup may have already been done' in capsys.readouterr().out
