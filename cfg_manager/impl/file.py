import codecs
from pathlib import Path
from typing import Any

from cfg_manager.base import CfgStorage, StoragePath


class FileStorage(CfgStorage):
    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        # Drops a leading byte order mark left by some editors
        if codecs.lookup(encoding).name == "utf-8":
            self.read_encoding = "utf-8-sig"
        else:
            self.read_encoding = encoding

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        p.text(f"FileStorage(encoding={self.encoding!r})")

    def read_lines(self, path: StoragePath) -> list[str]:
        with open(Path(path), "r", encoding=self.read_encoding) as f:
            return [line.rstrip("\n") for line in f]

    def write_text(self, path: StoragePath, text: str, overwrite: bool = True) -> None:
        # "x" fails with FileExistsError instead of truncating
        mode = "w" if overwrite else "x"
        with open(Path(path), mode, encoding=self.encoding) as f:
            f.write(text)

    def exists(self, path: StoragePath) -> bool:
        return Path(path).is_file()


def create_file_storage(encoding: str = "utf-8") -> CfgStorage:
    return FileStorage(encoding)
