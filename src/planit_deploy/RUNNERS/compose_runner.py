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
Execution of docker and compose commands. Every call returns a
CommandResult; callers choose per call whether a failure raises.
"""
import shutil
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..exceptions import ComposeError


@dataclass
class CommandResult:
    """Outcome of a finished command."""

    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """
    Runs external commands synchronously with a fixed environment.
    """
    def __init__(self,
                 env: Optional[Dict[str, str]] = None,
                 cwd: Optional[str] = None,
                 timeout: Optional[float] = None):
        """
        Args:
            env (Optional[Dict[str, str]]): Environment for every command. None inherits the process environment.
            cwd (Optional[str]): Directory commands run in.
            timeout (Optional[float]): Seconds before a command is abandoned.
        """
        self.env = env
        self.cwd = cwd
        self.timeout = timeout

    def run(self,
            argv: List[str],
            check: bool = True,
            input: Optional[str] = None,
            capture: bool = True,
            stage: Optional[str] = None) -> CommandResult:
        """
        Runs a command to completion.

        Args:
            argv (List[str]): Command and arguments.
            check (bool): Raise ComposeError on a non-zero exit.
            input (Optional[str]): Text written to the command's stdin.
            capture (bool): Capture stdout/stderr instead of passing them through.
            stage (Optional[str]): Stage name attached to a raised error.

        Returns:
            CommandResult: The finished command.
        """
        try:
            proc = subprocess.run(
                argv,
                env=self.env,
                cwd=self.cwd,
                input=input,
                capture_output=capture,
                text=True,
                timeout=self.timeout,
                # Avoid shell=True for security reasons (CWE-78)
                shell=False,
            )
            result = CommandResult(argv, proc.returncode, proc.stdout or "", proc.stderr or "")
        except FileNotFoundError as e:
            result = CommandResult(argv, 127, "", str(e))
        except subprocess.TimeoutExpired:
            result = CommandResult(argv, 124, "", f"timed out after {self.timeout}s")

        if check and not result.ok:
            raise ComposeError(argv, result.returncode, result.stderr, stage=stage)
        return result


def detect_compose_command() -> Optional[List[str]]:
    """
    Returns the compose CLI to use: standalone docker-compose if it is on
    PATH, otherwise the docker compose plugin if it answers, otherwise None.
    """
    if shutil.which("docker-compose"):
        return ["docker-compose"]
    if shutil.which("docker"):
        try:
            proc = subprocess.run(["docker", "compose", "version"], capture_output=True, timeout=10)
        except (OSError, subprocess.TimeoutExpired):
            return None
        if proc.returncode == 0:
            return ["docker", "compose"]
    return None


class ComposeClient:
    """
    The orchestration subsystem as seen by the orchestrator: bring services
    up, run commands in them, stop everything, prune artifacts.
    """
    def __init__(self,
                 runner: CommandRunner,
                 compose_command: Optional[List[str]] = None,
                 compose_file: Optional[str] = None):
        self.runner = runner
        self.compose_command = compose_command or ["docker-compose"]
        self.compose_file = compose_file

    def _compose(self, *args: str) -> List[str]:
        argv = list(self.compose_command)
        if self.compose_file:
            argv += ["-f", self.compose_file]
        return argv + list(args)

    def up(self, services: List[str], stage: Optional[str] = None) -> CommandResult:
        return self.runner.run(self._compose("up", "-d", *services), stage=stage)

    def down(self, remove_orphans: bool = False, check: bool = True) -> CommandResult:
        args = ["down", "--remove-orphans"] if remove_orphans else ["down"]
        return self.runner.run(self._compose(*args), check=check)

    def exec(self, service: str, command: List[str], input: Optional[str] = None,
             check: bool = False) -> CommandResult:
        return self.runner.run(self._compose("exec", "-T", service, *command), check=check, input=input)

    def logs(self, follow: bool = True) -> CommandResult:
        args = ["logs", "-f"] if follow else ["logs"]
        return self.runner.run(self._compose(*args), check=False, capture=False)

    def docker(self, *args: str, check: bool = False) -> CommandResult:
        return self.runner.run(["docker", *args], check=check)
