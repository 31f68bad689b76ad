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
Errors raised by the orchestrator. Anything deriving from OrchestratorError
aborts the run with exit status 1.
"""
from typing import List, Optional


class OrchestratorError(RuntimeError):
    """
    Base class for fatal orchestration failures.

    :param message: Human readable description.
    :param stage: Name of the stage that failed, if known.
    """
    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class PrerequisiteError(OrchestratorError):
    """A required tool, the Docker daemon or the compose file is missing."""
    def __init__(self, message: str):
        super().__init__(message, stage="prereqs")


class ComposeError(OrchestratorError):
    """A compose or docker command failed where failure is not tolerated."""
    def __init__(self, argv: List[str], returncode: int, stderr: str = "", stage: Optional[str] = None):
        detail = stderr.strip().splitlines()[-1] if stderr and stderr.strip() else f"exit code {returncode}"
        super().__init__(f"Command failed: {' '.join(argv)} ({detail})", stage=stage)
        self.argv = argv
        self.returncode = returncode
        self.stderr = stderr


class ReadinessError(OrchestratorError):
    """A readiness wait exhausted its attempts."""
    def __init__(self, service: str, detail: str, stage: Optional[str] = None):
        super().__init__(f"{service} {detail}", stage=stage)
        self.service = service


class DependencyError(OrchestratorError):
    """The stage plan starts a service before one of its dependencies."""
    def __init__(self, message: str):
        super().__init__(message, stage="plan")


class Interrupted(OrchestratorError):
    """The run was interrupted by SIGINT or SIGTERM."""
    def __init__(self, stage: Optional[str] = None):
        super().__init__("Interrupted by signal, services were asked to stop", stage=stage)
