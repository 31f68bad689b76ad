"""
Managers for loading the project's .env file into an EnvironmentConfig.
"""
import os
from typing import Mapping, Optional

from ..MODELS.environment_config import EnvironmentConfig
from ..PARSERS.env_parser import EnvParser
from ..UTILS.console import StatusPrinter


class EnvironmentManager:
    """
    Resolves the .env file relative to the project directory and builds the
    configuration every later stage reads from.
    """
    def __init__(self, base_dir: str = ".", printer: Optional[StatusPrinter] = None):
        """
        Initializes the environment manager.

        :param base_dir: The base directory for resolving relative paths to .env files.
        :param printer: Where status lines go.
        """
        self.base_dir = base_dir
        self.parser = EnvParser()
        self.printer = printer or StatusPrinter()

    def load(self, env_file: str = ".env",
             base_environment: Optional[Mapping[str, str]] = None) -> EnvironmentConfig:
        """
        Loads the .env file. A missing file is reported and defaults apply.

        :param env_file: Path of the .env file, relative to base_dir unless absolute.
        :param base_environment: Environment the file is layered over. Defaults to os.environ.
        :return: The resolved configuration.
        """
        file_path = os.path.join(self.base_dir, env_file)
        if not os.path.isfile(file_path):
            self.printer.warn(f"{env_file} file not found, using defaults")
            return EnvironmentConfig.from_values({}, base_environment, env_file_found=False)

        values = self.parser.parse(file_path)
        self.printer.success(f"Environment variables loaded ({len(values)} from {env_file})")
        return EnvironmentConfig.from_values(values, base_environment, env_file_found=True)
