"""
Tear-down of containers and images left by earlier runs.
"""
from typing import Callable, List, Optional, Tuple

import click

from ..MODELS.service_definition import CleanupMode
from ..RUNNERS.compose_runner import CommandResult, ComposeClient
from ..UTILS.console import StatusPrinter

BACKEND_IMAGE = "planit_backend:latest"


def cleanup_answer_is_yes(answer: str) -> bool:
    """
    Only an explicit no skips cleanup; empty or any other answer cleans up.
    """
    return answer.strip().lower() not in ("n", "no")


def confirm_cleanup() -> bool:
    answer = click.prompt("🧹 Clean up existing containers? (Y/n)", default="Y", show_default=False)
    return cleanup_answer_is_yes(answer)


class CleanupController:
    """
    Applies the CleanupMode chosen on the command line. Every sub-step is
    allowed to fail: on a first run there is simply nothing to remove.
    """
    def __init__(self,
                 compose: ComposeClient,
                 printer: Optional[StatusPrinter] = None,
                 confirm: Callable[[], bool] = confirm_cleanup,
                 backend_image: str = BACKEND_IMAGE):
        self.compose = compose
        self.printer = printer or StatusPrinter()
        self.confirm = confirm
        self.backend_image = backend_image

    def resolve(self, mode: CleanupMode) -> CleanupMode:
        """
        Turns PROMPT into SKIP or FORCE by asking the operator.
        """
        if mode is not CleanupMode.PROMPT:
            return mode
        return CleanupMode.FORCE if self.confirm() else CleanupMode.SKIP

    def run(self, mode: CleanupMode) -> CleanupMode:
        """
        Runs the cleanup for ``mode``.

        :return: The mode actually applied, SKIP or FORCE.
        """
        prompted = mode is CleanupMode.PROMPT
        effective = self.resolve(mode)
        if effective is CleanupMode.SKIP:
            self.printer.info("Skipping cleanup" if prompted else "Skipping cleanup (--no-cleanup)")
            return effective

        self.printer.log("Cleaning up..." if prompted else "Force cleanup...")
        self._ignore_failure("compose down", self.compose.down(remove_orphans=True, check=False))
        self.prune_docker_cache()
        self.printer.success("Cleanup complete")
        return effective

    def prune_docker_cache(self) -> None:
        self.printer.log("Cleaning Docker cache and dangling images...")
        self._run_all([
            ("system prune", ("system", "prune", "-f")),
            ("image prune", ("image", "prune", "-f")),
            # images left half-pulled break the next compose up
            (f"remove {self.backend_image}", ("rmi", self.backend_image)),
        ])
        self.printer.success("Docker cache cleaned")

    def repair_container_config(self) -> None:
        """
        Clears the stale container metadata behind compose's "ContainerConfig" error.
        """
        self.printer.log("Fixing ContainerConfig error...")
        self._ignore_failure("compose down", self.compose.down(remove_orphans=True, check=False))
        self._run_all([
            ("container prune", ("container", "prune", "-f")),
            (f"remove {self.backend_image}", ("rmi", self.backend_image)),
        ])
        dangling = self.compose.docker("images", "-f", "dangling=true", "-q")
        image_ids = dangling.stdout.split() if dangling.ok else []
        if image_ids:
            self._ignore_failure("remove dangling images", self.compose.docker("rmi", *image_ids))
        self._ignore_failure("builder prune", self.compose.docker("builder", "prune", "-f"))
        self.printer.success("ContainerConfig error fixed")

    def _run_all(self, steps: List[Tuple[str, Tuple[str, ...]]]) -> None:
        for label, args in steps:
            self._ignore_failure(label, self.compose.docker(*args))

    def _ignore_failure(self, label: str, result: CommandResult) -> bool:
        if not result.ok:
            self.printer.warn(f"{label}: nothing to clean ({result.returncode})")
        return result.ok
