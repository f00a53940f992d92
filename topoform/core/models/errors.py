"""
Error model — the problems a generation run can report.

Core operations never raise for expected failures. They return a result
object carrying a list of ``TopologyError`` values so that every
independent problem in a document is reported in one pass.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ErrorKind(StrEnum):
    """Where in the pipeline a problem was detected."""

    INPUT = "input"                  # malformed / missing config fields
    REFERENTIAL = "referential"      # dangling target ids
    PRECONDITION = "precondition"    # backend-specific requirement not met
    OUTPUT_TARGET = "output_target"  # file vs. directory mismatch, missing parent


class TopologyError(BaseModel):
    """A single reported problem."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    location: str = ""   # dotted path into the config, e.g. "components.api.path"

    def __str__(self) -> str:
        if self.location:
            return f"[{self.kind}] {self.location}: {self.message}"
        return f"[{self.kind}] {self.message}"

    @classmethod
    def input(cls, message: str, location: str = "") -> TopologyError:
        return cls(kind=ErrorKind.INPUT, message=message, location=location)

    @classmethod
    def referential(cls, message: str, location: str = "") -> TopologyError:
        return cls(kind=ErrorKind.REFERENTIAL, message=message, location=location)

    @classmethod
    def precondition(cls, message: str, location: str = "") -> TopologyError:
        return cls(kind=ErrorKind.PRECONDITION, message=message, location=location)

    @classmethod
    def output_target(cls, message: str, location: str = "") -> TopologyError:
        return cls(kind=ErrorKind.OUTPUT_TARGET, message=message, location=location)
