"""
Command Line Interface for PlanIt Deploy.
"""
import sys

import click

from ..exceptions import OrchestratorError
from ..MANAGERS.service_orchestrator import StartupSequencer, stop_services
from ..MODELS.environment_config import OrchestratorSettings
from ..MODELS.service_definition import CleanupMode
from ..UTILS.console import StatusPrinter

CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


class StartupUsageError(click.UsageError):
    """Usage errors exit with 1 like every other fatal condition."""
    exit_code = 1


class Command(click.Command):
    """
    click.Command whose usage errors (unknown option, bad value) exit with 1.
    """
    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


def _fail(printer: StatusPrinter, error: OrchestratorError):
    stage = f"[{error.stage}] " if error.stage else ""
    printer.error(f"{stage}{error}")
    sys.exit(1)


@click.command(cls=Command, context_settings=CONTEXT_SETTINGS)
@click.option('--no-cleanup', '-n', is_flag=True, help='Skip cleanup (cannot be combined with -f)')
@click.option('--force-cleanup', '-f', is_flag=True, help='Cleanup without prompt (cannot be combined with -n)')
@click.option('--env-file', default='.env', show_default=True, help='Environment file, relative to the project directory')
@click.option('--project-dir', default='.', type=click.Path(file_okay=False), help='Directory holding docker-compose.yml')
@click.option('--probe-workers', is_flag=True, help='Wait for the Celery worker to answer a ping instead of a fixed delay')
@click.option('--fix-permissions', is_flag=True, help='Ensure backend/celerybeat-schedule exists with mode 755')
@click.option('--follow-logs/--no-follow-logs', default=None, help='Follow logs once started (asks when interactive)')
def start(no_cleanup, force_cleanup, env_file, project_dir, probe_workers, fix_permissions, follow_logs):
    """
    Start the PlanIt services in dependency order.

    Without a cleanup flag you are asked whether to remove existing containers
    first. --no-cleanup and --force-cleanup are mutually exclusive.
    """
    if no_cleanup and force_cleanup:
        raise StartupUsageError("--no-cleanup and --force-cleanup are mutually exclusive")

    if no_cleanup:
        mode = CleanupMode.SKIP
    elif force_cleanup:
        mode = CleanupMode.FORCE
    else:
        mode = CleanupMode.PROMPT

    settings = OrchestratorSettings(
        cleanup_mode=mode,
        project_dir=project_dir,
        env_file=env_file,
        probe_workers=probe_workers,
        fix_permissions=fix_permissions,
        follow_logs=follow_logs,
    )
    printer = StatusPrinter()
    click.echo("🚀 Starting PlanIt Application Services...")
    printer.rule()

    try:
        StartupSequencer(settings, printer).run()
    except OrchestratorError as e:
        _fail(printer, e)
    except (KeyboardInterrupt, click.Abort):
        printer.warn("Interrupted")
        sys.exit(1)


@click.command(cls=Command, context_settings=CONTEXT_SETTINGS)
@click.option('--env-file', default='.env', show_default=True, help='Environment file, relative to the project directory')
@click.option('--project-dir', default='.', type=click.Path(file_okay=False), help='Directory holding docker-compose.yml')
@click.option('--repair', is_flag=True, help='Clear stale containers and images behind the ContainerConfig error')
def stop(env_file, project_dir, repair):
    """Stop all PlanIt services."""
    settings = OrchestratorSettings(project_dir=project_dir, env_file=env_file)
    printer = StatusPrinter()
    try:
        stop_services(settings, printer, repair=repair)
    except OrchestratorError as e:
        _fail(printer, e)


def main():
    """
    Main entry point for planit-start.
    """
    start()


def stop_main():
    """
    Main entry point for planit-stop.
    """
    stop()


if __name__ == '__main__':
    main()
