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
Parsers for Docker Compose YAML files. Only the parts the orchestrator
checks against are read: service names, published ports and
dependencies.
"""
import os
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel

from ..UTILS.string_interpolation import EnvironmentInterpolator


class ComposeService(BaseModel):
    """
    A service as declared in the compose file.
    """
    name: str
    ports: Dict[int, Optional[int]] = {}  # {container: host}
    depends_on: List[str] = []


class ComposeFile(BaseModel):
    """
    The services declared by a compose file.
    """
    path: str
    services: Dict[str, ComposeService] = {}

    def missing(self, names: List[str]) -> List[str]:
        """
        Returns the names that the compose file does not declare.
        """
        return [name for name in names if name not in self.services]

    def host_port(self, service: str, container_port: int) -> Optional[int]:
        """
        Returns the host port published for a container port, if any.
        """
        svc = self.services.get(service)
        if svc is None:
            return None
        return svc.ports.get(container_port)


class ComposeParser:
    """
    Parser for docker-compose.yml files.
    """
    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        Initializes the parser with an optional environment context for interpolation.

        :param context: A dictionary of environment variables for interpolation.
        """
        self.context = dict(os.environ) if context is None else context

    def parse(self, compose_path: str) -> ComposeFile:
        """
        Parses a compose file from a path.

        :param compose_path: Path to the compose file.
        :return: Parsed configuration.
        """
        with open(compose_path, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse_from_string(content, path=compose_path)

    def parse_from_string(self, content: str, path: str = "<string>") -> ComposeFile:
        """
        Parses a compose file from a string.

        :param content: YAML content of the compose file.
        :param path: Where the content came from, for reporting.
        :return: Parsed configuration.
        """
        content = EnvironmentInterpolator.interpolate(content, self.context)
        data = yaml.safe_load(content) or {}
        if not isinstance(data, dict):
            raise ValueError("top level is not a mapping")

        services = {}
        for name, spec in (data.get('services') or {}).items():
            services[name] = self._parse_service(name, spec or {})

        return ComposeFile(path=path, services=services)

    def _parse_service(self, name: str, spec: Dict[str, Any]) -> ComposeService:
        ports = {}
        for p in spec.get('ports', []):
            if isinstance(p, (str, int)):
                # "host:container", "ip:host:container" or "container", optionally "/tcp"
                parts = str(p).split('/')[0].split(':')
                if len(parts) >= 2:
                    ports[int(parts[-1])] = int(parts[-2])
                else:
                    ports[int(parts[0])] = None
            elif isinstance(p, dict):
                published = p.get('published')
                ports[int(p['target'])] = int(published) if published is not None else None

        depends_on = spec.get('depends_on', [])
        if isinstance(depends_on, dict):
            depends_on = list(depends_on.keys())

        return ComposeService(
            name=name,
            ports=ports,
            depends_on=list(depends_on),
        )
