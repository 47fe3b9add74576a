"""Pure helpers with no dependency on the oroGen object model.

Modules:
- identifiers: project/task name and version validation
- graphs: import graph node naming and cycle description
"""

from .identifiers import (
    is_valid_project_name,
    validate_project_name,
    verify_valid_identifier,
    validate_version,
)
from .graphs import (
    project_node,
    typekit_node,
    node_name,
    describe_cycle,
    reachable,
)

__all__ = [
    # Identifiers
    "is_valid_project_name",
    "validate_project_name",
    "verify_valid_identifier",
    "validate_version",
    # Graphs
    "project_node",
    "typekit_node",
    "node_name",
    "describe_cycle",
    "reachable",
]
