from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

RawModelResponse = dict[str, Any]


class FileState(str, Enum):
    PROCESSING = "PROCESSING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"

    @classmethod
    def from_wire(cls, value: object) -> "FileState":
        """Map the service's state string; unknown or missing means still processing."""
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.PROCESSING


@dataclass(frozen=True)
class RemoteFileHandle:
    """The document service's reference to an uploaded file."""

    name: str
    uri: str
    mime_type: str
    state: FileState = FileState.PROCESSING

    def with_state(self, state: FileState) -> "RemoteFileHandle":
        return replace(self, state=state)
