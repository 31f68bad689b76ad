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
Staged bring-up of the PlanIt stack, managing dependencies and readiness.
"""
import os
import shutil
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import click

from ..exceptions import Interrupted, ReadinessError
from ..MODELS.environment_config import EnvironmentConfig, OrchestratorSettings
from ..MODELS.service_definition import (
    SequencerState, ServiceRole, ServiceSpec, ServiceState, Stage,
    default_services, default_stages,
)
from ..PARSERS.compose_parser import ComposeFile, ComposeParser
from ..RUNNERS.compose_runner import CommandRunner, ComposeClient, detect_compose_command
from ..RUNNERS.dependency_resolver import DependencyResolver
from ..UTILS.console import StatusPrinter, stdin_is_interactive
from ..UTILS.port_probe import is_port_open
from .cleanup_controller import CleanupController, confirm_cleanup
from .database_bootstrap import DatabaseBootstrapper
from .environment_manager import EnvironmentManager
from .permissions import fix_beat_schedule_permissions
from .prerequisites import PrerequisiteChecker
from .readiness import ReadinessWaiter
from .shutdown import shutdown_on_interrupt
from .summary import SummaryRenderer


def confirm_follow_logs() -> bool:
    return click.confirm("📋 Follow logs now?", default=False)


@dataclass
class Collaborators:
    """
    Everything the sequencer reaches outside the process through. Tests
    replace these; the defaults talk to the real system.
    """

    runner_factory: Callable[[Optional[Dict[str, str]], str], CommandRunner] = (
        lambda env, cwd: CommandRunner(env=env, cwd=cwd)
    )
    which: Callable[[str], Optional[str]] = shutil.which
    compose_detector: Callable[[], Optional[List[str]]] = detect_compose_command
    port_check: Callable[[int], bool] = is_port_open
    sleep: Callable[[float], None] = time.sleep
    confirm_cleanup: Callable[[], bool] = confirm_cleanup
    confirm_follow_logs: Callable[[], bool] = confirm_follow_logs
    interactive: Callable[[], bool] = stdin_is_interactive
    environ: Optional[Dict[str, str]] = None
    install_signal_handlers: bool = True


@dataclass
class PreparedRun:
    """Configuration and clients resolved before any service is touched."""

    config: EnvironmentConfig
    compose: ComposeClient
    compose_file: ComposeFile


class StartupSequencer:
    """
    Brings the stack up stage by stage. A stage starts only once every
    earlier stage passed its readiness wait; a failed wait aborts the run
    and leaves whatever already started running.
    """
    def __init__(self,
                 settings: OrchestratorSettings,
                 printer: Optional[StatusPrinter] = None,
                 collaborators: Optional[Collaborators] = None,
                 services: Optional[List[ServiceSpec]] = None,
                 stages: Optional[List[Stage]] = None):
        """
        Initializes the sequencer.

        :param settings: Command-line settings for this run.
        :param printer: Where status lines go.
        :param collaborators: External system access, replaceable in tests.
        :param services: Managed services. Defaults to the PlanIt stack.
        :param stages: Bring-up plan. Defaults to the PlanIt stages.
        """
        self.settings = settings
        self.printer = printer or StatusPrinter()
        self.ext = collaborators or Collaborators()
        self.services = {svc.name: svc for svc in (services or default_services())}
        self.stages = stages or default_stages()
        self.resolver = DependencyResolver()
        self.waiter = ReadinessWaiter(self.printer, sleep=self.ext.sleep, port_check=self.ext.port_check)

        self.state = SequencerState.PREREQS
        self.service_states: Dict[str, ServiceState] = {name: ServiceState.NOT_STARTED for name in self.services}
        self.probed_ports: Dict[str, int] = {}

    @property
    def compose_path(self) -> str:
        return os.path.join(self.settings.project_dir, self.settings.compose_file)

    def prepare(self) -> PreparedRun:
        """
        Checks prerequisites, loads the environment and validates the compose
        file and stage plan. Starts nothing.
        """
        self.state = SequencerState.PREREQS
        checker = PrerequisiteChecker(
            self.ext.runner_factory(None, self.settings.project_dir),
            self.printer,
            which=self.ext.which,
            compose_detector=self.ext.compose_detector,
        )
        compose_command = checker.check_tools()

        env_manager = EnvironmentManager(self.settings.project_dir, self.printer)
        config = env_manager.load(self.settings.env_file, self.ext.environ)
        self.state = SequencerState.ENV_LOADED

        compose_file = checker.check_compose_file(
            self.compose_path, self.services.keys(), ComposeParser(config.subprocess_env())
        )
        self.resolver.validate_stages(self.services.values(), self.stages)

        runner = self.ext.runner_factory(config.subprocess_env(), self.settings.project_dir)
        compose = ComposeClient(runner, compose_command, compose_file=self.settings.compose_file)
        return PreparedRun(config, compose, compose_file)

    def run(self) -> SequencerState:
        """
        Runs the whole startup sequence.

        :return: The final state, RUNNING on success.
        :raises OrchestratorError: On any fatal condition.
        """
        prepared = self.prepare()
        compose = prepared.compose

        try:
            with shutdown_on_interrupt(compose, self.printer, stage=lambda: self.state.value,
                                       install_handlers=self.ext.install_signal_handlers):
                CleanupController(compose, self.printer, confirm=self.ext.confirm_cleanup) \
                    .run(self.settings.cleanup_mode)
                self.state = SequencerState.CLEANED

                if self.settings.fix_permissions:
                    fix_beat_schedule_permissions(self.settings.project_dir, self.printer)

                for stage in self.stages:
                    self._run_stage(stage, prepared)
                self.state = SequencerState.RUNNING
        except Interrupted:
            for name, state in self.service_states.items():
                if state is not ServiceState.NOT_STARTED:
                    self.service_states[name] = ServiceState.STOPPED
            raise

        self._print_summary(prepared)
        self._maybe_follow_logs(compose)
        return self.state

    def _run_stage(self, stage: Stage, prepared: PreparedRun) -> None:
        """
        Starts the services of one stage together, then waits for each in turn.
        """
        self.printer.log(f"Starting {stage.label}...")
        for name in stage.services:
            self.service_states[name] = ServiceState.STARTING
        prepared.compose.up(stage.services, stage=stage.state.value)

        unprobed = False
        for name in stage.services:
            if not self._await_service(self.services[name], stage, prepared):
                unprobed = True

        if unprobed:
            # no readiness signal for these services; give them a moment
            self.waiter.settle(stage.settle_delay)
        self.state = stage.state

    def _await_service(self, spec: ServiceSpec, stage: Stage, prepared: PreparedRun) -> bool:
        """
        Blocks on the service's readiness probe.

        :return: False if the service has no active probe.
        :raises ReadinessError: If the probe never succeeds.
        """
        probe = spec.probe
        if probe.port:
            port = self._probe_port(spec, prepared.compose_file)
            self.probed_ports[spec.name] = port
            if not self.waiter.wait_for(spec.name, port, probe.max_attempts, probe.interval):
                self.service_states[spec.name] = ServiceState.UNHEALTHY
                raise ReadinessError(spec.name, f"failed to respond on port {port}", stage=stage.state.value)
            if spec.role is ServiceRole.DATABASE:
                bootstrapper = DatabaseBootstrapper(prepared.compose, prepared.config, self.printer,
                                                    sleep=self.ext.sleep, service=spec.name)
                try:
                    bootstrapper.wait_until_ready(stage=stage.state.value)
                except ReadinessError:
                    self.service_states[spec.name] = ServiceState.UNHEALTHY
                    raise
                bootstrapper.bootstrap()
        elif probe.command and self.settings.probe_workers:
            if not self.waiter.wait_for_command(prepared.compose, spec.name, probe.command,
                                                probe.max_attempts, probe.interval):
                self.service_states[spec.name] = ServiceState.UNHEALTHY
                raise ReadinessError(spec.name, "did not answer its readiness command", stage=stage.state.value)
        else:
            return False

        self.service_states[spec.name] = ServiceState.HEALTHY
        return True

    def _probe_port(self, spec: ServiceSpec, compose_file: ComposeFile) -> int:
        """
        The compose file's published port wins over the built-in default.
        """
        probe = spec.probe
        if probe.container_port:
            published = compose_file.host_port(spec.name, probe.container_port)
            if published and published != probe.port:
                self.printer.info(f"{spec.name}: compose publishes {probe.container_port} on {published}")
                return published
        return probe.port

    def _print_summary(self, prepared: PreparedRun) -> None:
        self.printer.rule()
        self.printer.success("🎉 PlanIt Application Started Successfully!")
        self.printer.rule()
        self.printer.plain()
        compose = " ".join(prepared.compose.compose_command)
        ports = {name: spec.probe.port for name, spec in self.services.items()}
        ports.update(self.probed_ports)
        self.printer.plain(SummaryRenderer().render(ports, prepared.config, compose))

    def _maybe_follow_logs(self, compose: ComposeClient) -> None:
        follow = self.settings.follow_logs
        if follow is None:
            follow = self.ext.interactive() and self.ext.confirm_follow_logs()
        if follow:
            compose.logs(follow=True)


def stop_services(settings: OrchestratorSettings,
                  printer: Optional[StatusPrinter] = None,
                  collaborators: Optional[Collaborators] = None,
                  repair: bool = False) -> None:
    """
    Stops every managed service, or with ``repair`` clears the stale
    containers and images behind compose's ContainerConfig error.

    :raises OrchestratorError: If prerequisites fail or compose down fails.
    """
    printer = printer or StatusPrinter()
    sequencer = StartupSequencer(settings, printer, collaborators)
    prepared = sequencer.prepare()
    if repair:
        CleanupController(prepared.compose, printer).repair_container_config()
        return
    printer.log("Stopping services...")
    prepared.compose.down(check=True)
    printer.success("Services stopped")
