"""
Models for the managed services, their readiness probes and the staged
bring-up plan.
"""
from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, Field


class CleanupMode(str, Enum):
    """
    What to do with containers left over from a previous run.
    """
    SKIP = "skip"
    FORCE = "force"
    PROMPT = "prompt"


class ServiceRole(str, Enum):
    """
    The part a managed service plays in the stack.
    """
    CACHE = "cache"
    DATABASE = "database"
    APP_SERVER = "app-server"
    TASK_RUNNER = "task-runner"
    WEB_APP = "web-app"
    REVERSE_PROXY = "reverse-proxy"


class ServiceState(str, Enum):
    """
    Observed state of a managed service during a run.
    """
    NOT_STARTED = "not-started"
    STARTING = "starting"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    STOPPED = "stopped"


class SequencerState(str, Enum):
    """
    States walked by the startup sequencer, in order.
    """
    PREREQS = "prereqs"
    ENV_LOADED = "env-loaded"
    CLEANED = "cleaned"
    CORE_UP = "core-up"
    APP_UP = "app-up"
    WORKERS_UP = "workers-up"
    WEB_UP = "web-up"
    PROXY_UP = "proxy-up"
    RUNNING = "running"


class ReadinessProbe(BaseModel):
    """
    How to tell a service is ready. A TCP port on localhost, a command run
    inside the service, or neither (settle delay only).
    """
    port: Optional[int] = None
    container_port: Optional[int] = None
    command: List[str] = []
    max_attempts: int = 50
    interval: float = 2.0


class ServiceSpec(BaseModel):
    """
    A managed compose service.
    """
    name: str
    role: ServiceRole
    probe: ReadinessProbe = Field(default_factory=ReadinessProbe)
    depends_on: Set[str] = set()


class Stage(BaseModel):
    """
    A group of services started together. Reaching the end of the stage
    moves the sequencer to ``state``.
    """
    state: SequencerState
    label: str
    services: List[str]
    settle_delay: float = 0.0


def default_services() -> List[ServiceSpec]:
    """
    The six application services plus the reverse proxy, with the host ports
    published by the PlanIt compose file.
    """
    return [
        ServiceSpec(name="redis", role=ServiceRole.CACHE,
                    probe=ReadinessProbe(port=6380, container_port=6379)),
        ServiceSpec(name="postgres", role=ServiceRole.DATABASE,
                    probe=ReadinessProbe(port=5433, container_port=5432)),
        ServiceSpec(name="backend", role=ServiceRole.APP_SERVER,
                    probe=ReadinessProbe(port=8080, container_port=8000),
                    depends_on={"redis", "postgres"}),
        ServiceSpec(name="celery_worker", role=ServiceRole.TASK_RUNNER,
                    probe=ReadinessProbe(command=["celery", "-A", "planit", "inspect", "ping"],
                                         max_attempts=30),
                    depends_on={"backend", "redis"}),
        ServiceSpec(name="celery_beat", role=ServiceRole.TASK_RUNNER,
                    depends_on={"backend", "redis"}),
        ServiceSpec(name="frontend", role=ServiceRole.WEB_APP,
                    probe=ReadinessProbe(port=3100, container_port=3000),
                    depends_on={"backend"}),
        ServiceSpec(name="nginx", role=ServiceRole.REVERSE_PROXY,
                    probe=ReadinessProbe(port=8081, container_port=80),
                    depends_on={"backend"}),
    ]


def default_stages() -> List[Stage]:
    """
    The bring-up plan: core, app server, task runners, frontend, proxy.
    """
    return [
        Stage(state=SequencerState.CORE_UP, label="core services", services=["redis", "postgres"]),
        Stage(state=SequencerState.APP_UP, label="backend", services=["backend"]),
        Stage(state=SequencerState.WORKERS_UP, label="Celery services",
              services=["celery_worker", "celery_beat"], settle_delay=2.0),
        Stage(state=SequencerState.WEB_UP, label="frontend", services=["frontend"]),
        Stage(state=SequencerState.PROXY_UP, label="Nginx", services=["nginx"]),
    ]
