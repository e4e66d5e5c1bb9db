import io
from enum import Enum, IntEnum
from pathlib import Path

ConfigMap = dict[str, str]
AnnotationList = list[str]
StoragePath = str | Path


class OperationResult(IntEnum):
    """
    Result of any public operation on a cfg file.
    """

    OK = 0
    ERROR = 1
    NO_PERMISSION = 2
    FILE_NOT_FOUND = 3
    ALREADY_EXISTS = 4
    NOT_FOUND = 5
    NOT_ADDED = 6
    DOESNT_EXIST = 7


class Severity(Enum):
    OUTPUT = 0
    INFO = 1
    WARN = 2
    ERROR = 3


class StorageError(Exception):
    """Backend failure that is not one of the builtin OSError cases."""


class CfgLogger:
    """
    Sink for messages produced while reading and writing cfg files.
    """

    def put(self, severity: Severity, message: str) -> None:
        """Record a message with the given severity."""
        raise NotImplementedError()


class CfgStorage:
    """
    Backend holding the text of cfg documents.

    Missing documents raise FileNotFoundError, denied access raises
    PermissionError and refusing to overwrite raises FileExistsError.
    """

    def read_lines(self, path: StoragePath) -> list[str]:
        """Return the physical lines of the document at path."""
        raise NotImplementedError()

    def write_text(self, path: StoragePath, text: str, overwrite: bool = True) -> None:
        """Store text at path, replacing any previous document if overwrite is set."""
        raise NotImplementedError()

    def exists(self, path: StoragePath) -> bool:
        """Check if a document is stored at path."""
        raise NotImplementedError()


class Configurable:
    """
    Object that can describe itself as cfg entries.

    Implement per type instead of relying on field introspection.
    """

    def to_entries(self) -> ConfigMap:
        """Return the object's values as stringified key/value pairs."""
        raise NotImplementedError()

    def to_annotations(self) -> AnnotationList:
        return []

    @classmethod
    def from_entries(cls, entries: ConfigMap) -> "Configurable":
        """Build an instance from loaded entries."""
        raise NotImplementedError()


def split_physical_lines(text: str) -> list[str]:
    """Split on \\n, \\r\\n and \\r only, like reading a file in text mode."""
    return [line.rstrip("\n") for line in io.StringIO(text, newline=None)]
