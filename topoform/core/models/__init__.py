"""
Domain models — Pydantic types for the project topology.

All models are re-exported here for convenient access:

    from topoform.core.models import Project, Component, Resource, Topology
"""

from topoform.core.models.endpoint import Endpoint, PortMapping
from topoform.core.models.errors import ErrorKind, TopologyError
from topoform.core.models.project import (
    Component,
    MappedResource,
    Project,
    Resource,
)
from topoform.core.models.template import GeneratedFile
from topoform.core.models.topology import (
    Edge,
    EdgeType,
    InsecureEdgePolicy,
    SubEdge,
    SubEdgeDef,
    TlsConfig,
    TlsTermination,
    Topology,
)

__all__ = [
    # project.py
    "Component",
    # topology.py
    "Edge",
    "EdgeType",
    # endpoint.py
    "Endpoint",
    # errors.py
    "ErrorKind",
    # template.py
    "GeneratedFile",
    "InsecureEdgePolicy",
    "MappedResource",
    "PortMapping",
    "Project",
    "Resource",
    "SubEdge",
    "SubEdgeDef",
    "TlsConfig",
    "TlsTermination",
    "Topology",
    "TopologyError",
]
