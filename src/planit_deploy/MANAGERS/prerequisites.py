"""
Checks that must pass before anything is started.
"""
import os
import shutil
from typing import Callable, Iterable, List, Optional

import yaml

from ..exceptions import PrerequisiteError
from ..PARSERS.compose_parser import ComposeFile, ComposeParser
from ..RUNNERS.compose_runner import CommandRunner, detect_compose_command
from ..UTILS.console import StatusPrinter


class PrerequisiteChecker:
    """
    Verifies the docker and compose CLIs, the Docker daemon and the compose file.
    """
    def __init__(self,
                 runner: CommandRunner,
                 printer: Optional[StatusPrinter] = None,
                 which: Callable[[str], Optional[str]] = shutil.which,
                 compose_detector: Callable[[], Optional[List[str]]] = detect_compose_command):
        self.runner = runner
        self.printer = printer or StatusPrinter()
        self.which = which
        self.compose_detector = compose_detector

    def check_tools(self) -> List[str]:
        """
        Verifies docker, compose and the daemon, in that order.

        :return: The compose command to use.
        :raises PrerequisiteError: If docker or compose is missing, or the daemon does not answer.
        """
        self.printer.log("Checking prerequisites...")
        if not self.which("docker"):
            raise PrerequisiteError("docker not found in PATH")
        compose_command = self.compose_detector()
        if not compose_command:
            raise PrerequisiteError("docker-compose not found in PATH")
        if not self.runner.run(["docker", "info"], check=False).ok:
            raise PrerequisiteError("Docker daemon not running")
        self.printer.success("All prerequisites satisfied")
        return compose_command

    def check_compose_file(self, compose_path: str, services: Iterable[str],
                           parser: ComposeParser) -> ComposeFile:
        """
        :raises PrerequisiteError: If the compose file is absent or misses a managed service.
        """
        if not os.path.isfile(compose_path):
            raise PrerequisiteError(f"{compose_path} not found")
        try:
            compose = parser.parse(compose_path)
        except (yaml.YAMLError, ValueError) as e:
            raise PrerequisiteError(f"{compose_path} is not a valid compose file: {e}") from e
        missing = compose.missing(list(services))
        if missing:
            raise PrerequisiteError(f"{compose_path} does not declare: {', '.join(missing)}")
        return compose

