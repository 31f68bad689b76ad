"""
Readiness waits used between bring-up stages.
"""
import time
from typing import Callable, List, Optional

from ..RUNNERS.compose_runner import ComposeClient
from ..UTILS.console import StatusPrinter
from ..UTILS.port_probe import is_port_open
from ..UTILS.retry import poll

DEFAULT_ATTEMPTS = 50
DEFAULT_INTERVAL = 2.0


class ReadinessWaiter:
    """
    Blocks until a service answers, polling at a fixed interval.
    """
    def __init__(self,
                 printer: Optional[StatusPrinter] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 port_check: Callable[[int], bool] = is_port_open):
        """
        :param printer: Where status lines go.
        :param sleep: Sleep function, replaceable in tests.
        :param port_check: Returns True when localhost:port accepts a connection.
        """
        self.printer = printer or StatusPrinter()
        self.sleep = sleep
        self.port_check = port_check

    def wait_for(self, service: str, port: int,
                 max_attempts: int = DEFAULT_ATTEMPTS,
                 interval: float = DEFAULT_INTERVAL) -> bool:
        """
        Waits for ``service`` to accept TCP connections on localhost:``port``.

        :return: True as soon as the port opens, False after ``max_attempts`` failed probes.
        """
        self.printer.log(f"Waiting for {service} on port {port}...")
        if poll(lambda: self.port_check(port), interval, max_attempts, sleep=self.sleep):
            self.printer.success(f"{service} is up")
            return True
        self.printer.error(f"{service} failed to respond on port {port}")
        return False

    def wait_for_command(self, compose: ComposeClient, service: str, command: List[str],
                         max_attempts: int = 30,
                         interval: float = DEFAULT_INTERVAL) -> bool:
        """
        Waits for ``command`` to exit 0 when run inside ``service``.
        """
        self.printer.log(f"Waiting for {service} to answer '{' '.join(command)}'...")
        if poll(lambda: compose.exec(service, command).ok, interval, max_attempts, sleep=self.sleep):
            self.printer.success(f"{service} is up")
            return True
        self.printer.error(f"{service} did not answer '{' '.join(command)}'")
        return False

    def settle(self, seconds: float) -> None:
        if seconds > 0:
            self.sleep(seconds)
