"""
Immutable configuration resolved once at startup and handed to every stage.
"""
import os
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from .service_definition import CleanupMode


def _first(values: Mapping[str, str], *keys: str, default: Optional[str] = None) -> Optional[str]:
    for key in keys:
        value = values.get(key)
        if value:
            return value
    return default


class EnvironmentConfig(BaseModel):
    """
    Values read from the project's .env file layered over the process
    environment. Database settings fall back from the POSTGRES_* names used
    by the startup script to the DB_* names used by the compose file.
    """
    model_config = ConfigDict(frozen=True)

    values: Dict[str, str] = {}
    base_environment: Dict[str, str] = {}
    env_file_found: bool = False

    db_name: str = "planit_db"
    db_user: str = "postgres"
    db_password: str = "root"
    admin_user: str = "postgres"
    admin_db: str = "postgres"
    frontend_url: Optional[str] = None
    backend_url: Optional[str] = None

    @classmethod
    def from_values(cls,
                    values: Mapping[str, str],
                    base_environment: Optional[Mapping[str, str]] = None,
                    env_file_found: bool = True) -> "EnvironmentConfig":
        """
        Builds the configuration from parsed .env values.

        :param values: Key/value pairs read from the .env file.
        :param base_environment: Environment the values are layered over. Defaults to os.environ.
        :param env_file_found: Whether the .env file existed.
        """
        base = dict(os.environ if base_environment is None else base_environment)
        merged = {**base, **values}
        return cls(
            values=dict(values),
            base_environment=base,
            env_file_found=env_file_found,
            db_name=_first(merged, "POSTGRES_DB", "DB_NAME", default="planit_db"),
            db_user=_first(merged, "POSTGRES_USER", "DB_USER", default="postgres"),
            db_password=_first(merged, "POSTGRES_PASSWORD", "DB_PASSWORD", default="root"),
            # the image creates its superuser from POSTGRES_USER, which compose
            # fills from DB_USER
            admin_user=_first(merged, "POSTGRES_ADMIN_USER", "POSTGRES_USER", "DB_USER", default="postgres"),
            admin_db=_first(merged, "POSTGRES_ADMIN_DB", default="postgres"),
            frontend_url=_first(merged, "FRONTEND_URL"),
            backend_url=_first(merged, "BACKEND_URL"),
        )

    def subprocess_env(self) -> Dict[str, str]:
        """
        Environment passed to compose and docker invocations: the process
        environment with the .env values on top.
        """
        env = dict(self.base_environment)
        env.update(self.values)
        return env


class OrchestratorSettings(BaseModel):
    """
    Command-line driven settings for one run.
    """
    model_config = ConfigDict(frozen=True)

    cleanup_mode: CleanupMode = CleanupMode.PROMPT
    project_dir: str = "."
    env_file: str = ".env"
    compose_file: str = "docker-compose.yml"
    probe_workers: bool = False
    fix_permissions: bool = False
    follow_logs: Optional[bool] = None
