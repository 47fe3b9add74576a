"""Object model of an oroGen project: task contexts and deployments."""

from .tasks import (
    STANDARD_STATES,
    Argument,
    Operation,
    Port,
    Property,
    State,
    TaskContext,
)
from .deployment import DeployedTask, StaticDeployment
from .queries import DEFAULT_TASK_SUPERCLASS, ProjectQueries

__all__ = [
    "STANDARD_STATES",
    "Argument",
    "Operation",
    "Port",
    "Property",
    "State",
    "TaskContext",
    "DeployedTask",
    "StaticDeployment",
    "DEFAULT_TASK_SUPERCLASS",
    "ProjectQueries",
]
