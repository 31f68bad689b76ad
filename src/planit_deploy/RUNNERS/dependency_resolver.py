"""
Dependency resolution for services to determine and validate startup order.
"""
from typing import Dict, Iterable, List, Set

from ..exceptions import DependencyError
from ..MODELS.service_definition import ServiceSpec, Stage


class DependencyResolver:
    """
    Resolves the startup order of services based on their dependencies.
    """
    def resolve_order(self, services: Iterable[ServiceSpec]) -> List[str]:
        """
        Determines the correct order to start services using topological sort.

        :param services: The managed services.
        :return: Service names in the order they should be started.
        :raises DependencyError: If a circular dependency is detected.
        """
        dependencies: Dict[str, Set[str]] = {svc.name: set(svc.depends_on) for svc in services}

        ordered: List[str] = []
        visited: Set[str] = set()
        processing: Set[str] = set()

        def visit(name):
            if name in processing:
                raise DependencyError(f"Circular dependency detected involving {name}")
            if name not in visited:
                processing.add(name)
                for dep in sorted(dependencies.get(name, [])):
                    if dep in dependencies:
                        visit(dep)
                processing.remove(name)
                visited.add(name)
                ordered.append(name)

        for name in dependencies:
            visit(name)

        return ordered

    def validate_stages(self, services: Iterable[ServiceSpec], stages: List[Stage]) -> None:
        """
        Checks that every service is started exactly once and only after all
        of its dependencies were started in an earlier stage.

        :raises DependencyError: On an unknown, repeated or prematurely started service, or a cycle.
        """
        specs = {svc.name: svc for svc in services}
        self.resolve_order(specs.values())

        started: Set[str] = set()
        for stage in stages:
            for name in stage.services:
                if name not in specs:
                    raise DependencyError(f"Stage '{stage.label}' starts unknown service {name}")
                if name in started:
                    raise DependencyError(f"Service {name} is started more than once")
                missing = sorted(dep for dep in specs[name].depends_on if dep in specs and dep not in started)
                if missing:
                    raise DependencyError(
                        f"Service {name} in stage '{stage.label}' starts before {', '.join(missing)}"
                    )
            started.update(stage.services)
