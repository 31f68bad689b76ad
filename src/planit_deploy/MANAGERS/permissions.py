"""
Best-effort fix for the Celery beat schedule file mounted from the host.
"""
import os
from typing import Optional

from ..UTILS.console import StatusPrinter

BEAT_SCHEDULE = os.path.join("backend", "celerybeat-schedule")


def fix_beat_schedule_permissions(project_dir: str = ".",
                                  printer: Optional[StatusPrinter] = None,
                                  mode: int = 0o755) -> bool:
    """
    Makes sure the beat schedule file exists and is readable by the beat
    container. Failures are reported, never raised.

    :return: True if the file ends up with ``mode``.
    """
    printer = printer or StatusPrinter()
    printer.log("Fixing Celery beat schedule file permissions...")
    path = os.path.join(project_dir, BEAT_SCHEDULE)
    try:
        if not os.path.exists(path):
            os.makedirs(os.path.dirname(path), exist_ok=True)
            open(path, "a").close()
        os.chmod(path, mode)
    except OSError as e:
        printer.warn(f"Could not fix {BEAT_SCHEDULE} permissions: {e}")
        return False
    printer.success("Celery permissions fixed")
    return True
