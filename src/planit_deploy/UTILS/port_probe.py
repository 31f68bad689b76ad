"""
Utilities for checking whether a TCP port is accepting connections.
"""
import socket


def is_port_open(port: int, host: str = "localhost", timeout: float = 1.0) -> bool:
    """
    Checks if something is listening on host:port.
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False

