from typing import Any

from cfg_manager.base import CfgStorage, StoragePath, split_physical_lines

MemoryStorageData = dict[str, str]


class MemoryStorage(CfgStorage):
    """
    Documents kept in a dict shared with the caller, keyed by str(path).
    """

    def __init__(self, data: MemoryStorageData) -> None:
        self.data = data

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("MemoryStorage(...)")
        else:
            with p.group(4, "MemoryStorage(", ")"):
                p.breakable()
                p.text(f"documents={sorted(self.data)},")
                p.breakable()

    def read_lines(self, path: StoragePath) -> list[str]:
        key = str(path)
        if key not in self.data:
            raise FileNotFoundError(key)
        return split_physical_lines(self.data[key])

    def write_text(self, path: StoragePath, text: str, overwrite: bool = True) -> None:
        key = str(path)
        if not overwrite and key in self.data:
            raise FileExistsError(key)
        self.data[key] = text

    def exists(self, path: StoragePath) -> bool:
        return str(path) in self.data


def create_memory_storage(data: MemoryStorageData | None = None) -> CfgStorage:
    return MemoryStorage({} if data is None else data)
