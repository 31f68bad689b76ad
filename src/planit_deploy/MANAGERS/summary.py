"""
End-of-run summary of endpoints and management commands.
"""
from typing import Dict, Optional

from jinja2 import Template

from ..MODELS.environment_config import EnvironmentConfig

SUMMARY_TEMPLATE = """\
🌍 App:         http://localhost:{{ ports.nginx }}
⚛️  Frontend:    {{ frontend_url }}
🔧 Backend:     {{ backend_url }}
👤 Admin:       {{ backend_url }}/admin
📊 Docs:        {{ backend_url }}/api/docs

🐘 PostgreSQL:  localhost:{{ ports.postgres }}
🔴 Redis:       localhost:{{ ports.redis }}

📝 Commands:
• Logs:         {{ compose }} logs -f
• Status:       {{ compose }} ps
• Stop:         planit-stop
• Restart:      {{ compose }} restart [service]
"""


class SummaryRenderer:
    """
    Renders the summary printed once every stage is up.
    """
    def __init__(self, template: str = SUMMARY_TEMPLATE):
        self.template = Template(template)

    def render(self, ports: Dict[str, Optional[int]], config: EnvironmentConfig, compose: str) -> str:
        """
        :param ports: Probed host port per service name.
        :param config: Supplies URL overrides.
        :param compose: The compose command, as typed by the operator.
        """
        return self.template.render(
            ports=ports,
            frontend_url=(config.frontend_url or f"http://localhost:{ports.get('frontend')}").rstrip("/"),
            backend_url=(config.backend_url or f"http://localhost:{ports.get('backend')}").rstrip("/"),
            compose=compose,
        )
