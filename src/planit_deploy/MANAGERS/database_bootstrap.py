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
PostgreSQL readiness and first-run bootstrap, both driven through
``compose exec`` so no database driver is needed on the host.
"""
import time
from typing import Callable, List, Optional

from ..exceptions import ReadinessError
from ..MODELS.environment_config import EnvironmentConfig
from ..RUNNERS.compose_runner import ComposeClient
from ..UTILS.console import StatusPrinter
from ..UTILS.retry import poll

# psql variables are substituted client side; format(%I/%L) quotes them server side.
# \gexec runs each produced statement, so nothing is emitted once the objects exist.
# The role statements share one SELECT so the existence check is evaluated once.
BOOTSTRAP_SQL = r"""
SELECT format('CREATE DATABASE %I', :'db_name')
WHERE NOT EXISTS (SELECT FROM pg_database WHERE datname = :'db_name')
\gexec

SELECT stmt FROM (VALUES
    (1, format('CREATE ROLE %I WITH LOGIN PASSWORD %L', :'db_user', :'db_password')),
    (2, format('GRANT ALL PRIVILEGES ON DATABASE %I TO %I', :'db_name', :'db_user')),
    (3, format('ALTER ROLE %I CREATEDB', :'db_user'))
) AS s(ord, stmt)
WHERE :'db_user' <> :'admin_user'
  AND NOT EXISTS (SELECT FROM pg_roles WHERE rolname = :'db_user')
ORDER BY ord
\gexec
"""


class DatabaseBootstrapper:
    """
    Waits for PostgreSQL to serve queries, then makes sure the application
    database and user exist.
    """

    def __init__(self,
                 compose: ComposeClient,
                 config: EnvironmentConfig,
                 printer: Optional[StatusPrinter] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 service: str = "postgres",
                 max_attempts: int = 30,
                 interval: float = 2.0):
        """
        Args:
            compose: Client used to run psql inside the database service.
            config: Source of the database name, user, password and admin login.
            printer: Where status lines go.
            sleep: Sleep function, replaceable in tests.
            service: Compose service running PostgreSQL.
            max_attempts: Readiness probes before giving up.
            interval: Seconds between readiness probes.
        """
        self.compose = compose
        self.config = config
        self.printer = printer or StatusPrinter()
        self.sleep = sleep
        self.service = service
        self.max_attempts = max_attempts
        self.interval = interval

    def _psql(self, *args: str) -> List[str]:
        return ["psql", "-U", self.config.admin_user, "-d", self.config.admin_db, *args]

    def is_ready(self) -> bool:
        """True when a trivial query against the admin database succeeds."""
        return self.compose.exec(self.service, self._psql("-c", "SELECT 1")).ok

    def wait_until_ready(self, stage: Optional[str] = None) -> None:
        """
        Polls until PostgreSQL answers queries. The TCP port opens before
        the server accepts them, so the port wait alone is not enough.

        Raises:
            ReadinessError: If PostgreSQL never answers.
        """
        self.printer.log("Waiting for PostgreSQL readiness...")
        if not poll(self.is_ready, self.interval, self.max_attempts, sleep=self.sleep):
            self.printer.error("PostgreSQL did not become ready")
            raise ReadinessError(self.service, "did not become ready", stage=stage)
        self.printer.success("PostgreSQL ready!")

    def bootstrap_command(self) -> List[str]:
        cfg = self.config
        return self._psql(
            "-v", "ON_ERROR_STOP=1",
            "-v", f"db_name={cfg.db_name}",
            "-v", f"db_user={cfg.db_user}",
            "-v", f"db_password={cfg.db_password}",
            "-v", f"admin_user={cfg.admin_user}",
        )

    def bootstrap(self) -> bool:
        """
        Creates the database and user if they are missing. Safe to run on
        every start; a failure is reported but never aborts the run.

        Returns:
            True if the statements ran cleanly.
        """
        self.printer.log("Creating DB/user if needed...")
        result = self.compose.exec(self.service, self.bootstrap_command(), input=BOOTSTRAP_SQL)
        if not result.ok:
            self.printer.warn("DB setup may have already been done")
            return False
        self.printer.success("PostgreSQL database & user initialized")
        return True
