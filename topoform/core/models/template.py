"""
Generated file model — what every backend generator hands back.
"""

from __future__ import annotations

from pydantic import BaseModel


class GeneratedFile(BaseModel):
    """One rendered manifest, not yet written to disk.

    Attributes:
        path:    File name relative to the output target
                 (the file itself for single-file backends).
        content: Full file content.
        reason:  What this file declares.
    """

    path: str
    content: str
    reason: str = ""
