from typing import Any, Callable

from sqlalchemy import Text, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from cfg_manager.base import (
    CfgStorage,
    StorageError,
    StoragePath,
    split_physical_lines,
)


class Base(DeclarativeBase):
    pass


class DocumentModel(Base):
    __tablename__ = "cfg_documents"
    path: Mapped[str] = mapped_column(primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)


class SqlStorage(CfgStorage):
    """
    Cfg documents stored as rows of the cfg_documents table.

    Every call runs in its own session, so the backend holds no connection
    between operations.
    """

    def __init__(self, session_maker: Callable[[], Session]) -> None:
        self.session_maker = session_maker

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        p.text("SqlStorage(...)")

    def _get(self, session: Session, path: StoragePath) -> DocumentModel | None:
        stmt = select(DocumentModel).where(DocumentModel.path == str(path))
        return session.execute(stmt).scalar_one_or_none()

    def read_lines(self, path: StoragePath) -> list[str]:
        try:
            with self.session_maker() as session:
                document = self._get(session, path)
                if document is None:
                    raise FileNotFoundError(str(path))
                return split_physical_lines(document.content)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def write_text(self, path: StoragePath, text: str, overwrite: bool = True) -> None:
        try:
            with self.session_maker() as session:
                document = self._get(session, path)
                if document is None:
                    session.add(DocumentModel(path=str(path), content=text))
                elif not overwrite:
                    raise FileExistsError(str(path))
                else:
                    document.content = text
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def exists(self, path: StoragePath) -> bool:
        try:
            with self.session_maker() as session:
                return self._get(session, path) is not None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to look up {path}: {e}") from e


def create_sql_storage(session_maker: Callable[[], Session]) -> CfgStorage:
    return SqlStorage(session_maker)
