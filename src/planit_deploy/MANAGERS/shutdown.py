"""
Stop-everything hook for interrupts during a run.
"""
import signal
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

import click

from ..exceptions import Interrupted
from ..RUNNERS.compose_runner import ComposeClient
from ..UTILS.console import StatusPrinter


def _raise_keyboard_interrupt(signum, frame):
    raise KeyboardInterrupt


@contextmanager
def shutdown_on_interrupt(compose: ComposeClient,
                          printer: Optional[StatusPrinter] = None,
                          stage: Callable[[], Optional[str]] = lambda: None,
                          install_handlers: bool = True) -> Iterator[None]:
    """
    Runs the enclosed block; on SIGINT or SIGTERM, including Ctrl-C at a
    click prompt, asks compose to stop every service once and raises
    Interrupted.

    :param compose: Client used to stop the services.
    :param printer: Where status lines go.
    :param stage: Returns the current stage name, attached to the error.
    :param install_handlers: Route SIGTERM through KeyboardInterrupt while the block runs.
    """
    printer = printer or StatusPrinter()
    previous = None
    if install_handlers:
        previous = signal.signal(signal.SIGTERM, _raise_keyboard_interrupt)
    try:
        yield
    except (KeyboardInterrupt, click.Abort):
        # click prompts turn Ctrl-C into Abort
        printer.warn("Received interrupt signal. Shutting down...")
        result = compose.down(check=False)
        if not result.ok:
            printer.error(f"Shutdown failed ({result.returncode}), stop the services manually")
        raise Interrupted(stage=stage()) from None
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)
