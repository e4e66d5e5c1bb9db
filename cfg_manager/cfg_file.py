from typing import Any

from cfg_manager.base import (
    AnnotationList,
    CfgLogger,
    CfgStorage,
    ConfigMap,
    Configurable,
    OperationResult,
    Severity,
    StorageError,
    StoragePath,
)
from cfg_manager.customizer import PAIR_DELIMITER, Customization, get_customization
from cfg_manager.impl.file import FileStorage
from cfg_manager.logger import DefaultLogger
from cfg_manager.syntax import (
    Entry,
    annotation_delimiters,
    is_annotation_declaration,
    parse_annotations,
    parse_line,
    serialize,
)


class CfgSnapshot:
    """
    Loaded state of a cfg document.

    values is None while nothing has been loaded; annotations are always a
    list and empty when the document declares none.
    """

    def __init__(
        self, values: ConfigMap | None, annotations: AnnotationList | None = None
    ) -> None:
        self.values = values
        self.annotations: AnnotationList = annotations or []

    @classmethod
    def unloaded(cls) -> "CfgSnapshot":
        return cls(None, [])

    @property
    def is_loaded(self) -> bool:
        return self.values is not None

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("CfgSnapshot(...)")
        else:
            with p.group(4, "CfgSnapshot(", ")"):
                p.breakable()
                p.text(f"values={self.values},")
                p.breakable()
                p.text(f"annotations={self.annotations},")
                p.breakable()

    def get(self, key: str) -> str | None:
        if self.values is None:
            return None
        return self.values.get(key)


class CfgStage:
    """
    Edits that are not yet applied to the loaded snapshot.

    Stage owns the edited values and annotations that override the snapshot,
    and the keys and annotations pending removal from it.
    """

    def __init__(self, snapshot: CfgSnapshot) -> None:
        self.snapshot = snapshot
        self.values: ConfigMap = {}
        self.annotations: AnnotationList = []
        self.removed_values: set[str] = set()
        self.removed_annotations: set[str] = set()

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("CfgStage(...)")
        else:
            with p.group(4, "CfgStage(", ")"):
                p.breakable()
                p.text(f"values={self.values},")
                p.breakable()
                p.text(f"annotations={self.annotations},")
                p.breakable()
                p.text(f"removed_values={sorted(self.removed_values)},")
                p.breakable()
                p.text(f"removed_annotations={sorted(self.removed_annotations)},")
                p.breakable()

    def get(self, key: str) -> str | None:
        # Removals are applied after edits by freeze()
        if key in self.removed_values:
            return None
        if key in self.values:
            return self.values[key]
        return self.snapshot.get(key)

    def is_dirty(self) -> bool:
        return bool(
            self.values
            or self.annotations
            or self.removed_values
            or self.removed_annotations
        )

    def freeze(self) -> CfgSnapshot:
        """
        Merge the stage into a new snapshot.

        Edited values win over loaded ones, and removals are applied last so a
        key both edited and pending removal ends up removed. The values half is
        left unloaded when the base snapshot is unloaded.
        """
        values = None
        if self.snapshot.values is not None:
            values = {**self.snapshot.values, **self.values}
            for key in self.removed_values:
                values.pop(key, None)

        annotations: AnnotationList = []
        seen = set()
        for annotation in [*self.snapshot.annotations, *self.annotations]:
            if annotation in seen or annotation in self.removed_annotations:
                continue
            seen.add(annotation)
            annotations.append(annotation)

        return CfgSnapshot(values, annotations)


class CfgFile:
    """
    A cfg document with its loaded state and staged edits.

    Nothing staged reaches the loaded state until apply_modified() is called,
    and nothing reaches storage until save().
    """

    def __init__(
        self,
        logger: CfgLogger | None = None,
        storage: CfgStorage | None = None,
        customization: Customization | None = None,
        auto_create: bool = True,
    ) -> None:
        self.logger = logger or DefaultLogger()
        self.storage = storage or FileStorage()
        self.customization = customization or get_customization()
        self.auto_create = auto_create

        self.base = CfgSnapshot.unloaded()
        self.stage = CfgStage(self.base)

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("CfgFile(...)")
        else:
            with p.group(4, "CfgFile(", ")"):
                p.breakable()
                p.text("base=")
                p.pretty(self.base)
                p.text(",")
                p.breakable()
                p.text("stage=")
                p.pretty(self.stage)
                p.text(",")
                p.breakable()

    def _set_base(self, snapshot: CfgSnapshot) -> None:
        self.base = snapshot
        self.stage.snapshot = snapshot

    # Loading and persisting

    def open(self, path: StoragePath) -> OperationResult:
        """
        Load the document at path, replacing the loaded state.

        Malformed fragments and duplicate keys are logged as warnings and
        skipped. Staged edits are kept.
        """
        try:
            lines = self.storage.read_lines(path)
        except FileNotFoundError:
            self._set_base(CfgSnapshot.unloaded())
            self.logger.put(Severity.ERROR, f"File {path} not found")
            return OperationResult.FILE_NOT_FOUND
        except PermissionError:
            self._set_base(CfgSnapshot.unloaded())
            self.logger.put(Severity.ERROR, f"No permission to read {path}")
            return OperationResult.NO_PERMISSION
        except (OSError, UnicodeDecodeError, StorageError) as e:
            self._set_base(CfgSnapshot.unloaded())
            self.logger.put(Severity.ERROR, f"Failed to read {path}: {e}")
            return OperationResult.ERROR

        values: ConfigMap = {}
        annotations: AnnotationList = []

        for line_number, raw_line in enumerate(lines, start=1):
            line = raw_line.strip()
            if not line:
                continue

            if is_annotation_declaration(line):
                if line_number == 1:
                    annotations = parse_annotations(line, self.customization)
                else:
                    self.logger.put(
                        Severity.ERROR,
                        "Annotations may only be declared on the first line; "
                        f"ignored line {line_number} : {line}",
                    )
                continue

            for result in parse_line(line, self.customization):
                if not isinstance(result, Entry):
                    self.logger.put(
                        Severity.WARN,
                        f"Failed to parse a value at line {line_number} : {line}",
                    )
                elif result.key in values:
                    self.logger.put(
                        Severity.WARN,
                        f"Duplicate key {result.key!r} at line {line_number} : "
                        f"{line}; keeping the first value",
                    )
                else:
                    values[result.key] = result.value

        self._set_base(CfgSnapshot(values, annotations))
        return OperationResult.OK

    def save(
        self,
        path: StoragePath,
        apply_before_save: bool = False,
        overwrite_if_exists: bool = True,
    ) -> OperationResult:
        """
        Write the loaded state to path.

        Staged edits are only included when apply_before_save is set.
        """
        if apply_before_save:
            self.apply_modified()

        text = serialize(
            self.base.values or {}, self.base.annotations, self.customization
        )

        try:
            self.storage.write_text(path, text, overwrite=overwrite_if_exists)
        except FileExistsError:
            self.logger.put(Severity.ERROR, f"File {path} already exists")
            return OperationResult.ALREADY_EXISTS
        except PermissionError:
            self.logger.put(Severity.ERROR, f"No permission to write {path}")
            return OperationResult.NO_PERMISSION
        except FileNotFoundError:
            self.logger.put(Severity.ERROR, f"Directory of {path} not found")
            return OperationResult.FILE_NOT_FOUND
        except (OSError, StorageError) as e:
            self.logger.put(Severity.ERROR, f"Failed to write {path}: {e}")
            return OperationResult.ERROR

        return OperationResult.OK

    def apply_modified(self) -> OperationResult:
        """
        Fold staged edits and removals into the loaded state and clear the stage.
        """
        if not self.base.is_loaded:
            if self.auto_create:
                self._set_base(CfgSnapshot({}, self.base.annotations))
            elif self.stage.values or self.stage.removed_values:
                self.logger.put(
                    Severity.ERROR,
                    "No config is loaded; staged values were not applied",
                )

        self._set_base(self.stage.freeze())
        self.stage = CfgStage(self.base)
        return OperationResult.OK

    def clear(self) -> None:
        """
        Drop loaded and staged state. The logger and storage are kept.
        """
        self.base = CfgSnapshot.unloaded()
        self.stage = CfgStage(self.base)

    # Staged values

    def _is_writable_key(self, key: str) -> bool:
        if not key.strip() or key != key.strip():
            return False
        forbidden = [
            self.customization.key_value_separator,
            self.customization.comment_marker,
            PAIR_DELIMITER,
            "\n",
            "\r",
        ]
        return not any(token in key for token in forbidden)

    def _check_entry(self, key: str, value: str) -> bool:
        if not self._is_writable_key(key):
            self.logger.put(Severity.WARN, f"Key {key!r} cannot be written to a cfg file")
            return False
        if "\n" in value or "\r" in value:
            self.logger.put(
                Severity.WARN, f"Value of {key!r} cannot span several lines"
            )
            return False
        return True

    def add_edited_value(
        self, key: str, value: str, terminate_removal: bool = True
    ) -> OperationResult:
        if not self._check_entry(key, value):
            return OperationResult.NOT_ADDED
        if key in self.stage.values:
            return OperationResult.ALREADY_EXISTS

        self.stage.values[key] = value
        if terminate_removal:
            self.stage.removed_values.discard(key)
        return OperationResult.OK

    def set_edited_value(
        self, key: str, value: str, terminate_removal: bool = True
    ) -> OperationResult:
        if not self._check_entry(key, value):
            return OperationResult.NOT_ADDED

        self.stage.values[key] = value
        if terminate_removal:
            self.stage.removed_values.discard(key)
        return OperationResult.OK

    def remove_edited_value(self, key: str, pend_removal: bool = True) -> OperationResult:
        if key not in self.stage.values:
            return OperationResult.NOT_FOUND

        del self.stage.values[key]
        if pend_removal:
            self.stage.removed_values.add(key)
        return OperationResult.OK

    def pend_value_removal(self, key: str) -> OperationResult:
        if key in self.stage.removed_values:
            return OperationResult.ALREADY_EXISTS
        self.stage.removed_values.add(key)
        return OperationResult.OK

    def unpend_value_removal(self, key: str) -> OperationResult:
        if key not in self.stage.removed_values:
            return OperationResult.NOT_FOUND
        self.stage.removed_values.remove(key)
        return OperationResult.OK

    def remove_loaded_value(self, key: str) -> OperationResult:
        """Remove a loaded value immediately, bypassing the stage."""
        if self.base.values is None:
            return OperationResult.DOESNT_EXIST
        if key not in self.base.values:
            return OperationResult.NOT_FOUND
        del self.base.values[key]
        return OperationResult.OK

    # Staged annotations

    def _is_writable_annotation(self, text: str) -> bool:
        if not text.strip() or text != text.strip() or "\n" in text:
            return False
        return not any(d in text for d in annotation_delimiters(self.customization))

    def add_edited_annotation(
        self, text: str, terminate_removal: bool = True
    ) -> OperationResult:
        if not self._is_writable_annotation(text):
            self.logger.put(
                Severity.WARN, f"Annotation {text!r} cannot be written to a cfg file"
            )
            return OperationResult.NOT_ADDED
        if text in self.stage.annotations:
            return OperationResult.ALREADY_EXISTS

        self.stage.annotations.append(text)
        if terminate_removal:
            self.stage.removed_annotations.discard(text)
        return OperationResult.OK

    def remove_edited_annotation(
        self, text: str, pend_removal: bool = True
    ) -> OperationResult:
        if text not in self.stage.annotations:
            return OperationResult.NOT_FOUND

        self.stage.annotations.remove(text)
        if pend_removal:
            self.stage.removed_annotations.add(text)
        return OperationResult.OK

    def pend_annotation_removal(self, text: str) -> OperationResult:
        if text in self.stage.removed_annotations:
            return OperationResult.ALREADY_EXISTS
        self.stage.removed_annotations.add(text)
        return OperationResult.OK

    def unpend_annotation_removal(self, text: str) -> OperationResult:
        if text not in self.stage.removed_annotations:
            return OperationResult.NOT_FOUND
        self.stage.removed_annotations.remove(text)
        return OperationResult.OK

    def remove_loaded_annotation(self, text: str) -> OperationResult:
        """Remove a loaded annotation immediately, bypassing the stage."""
        if text not in self.base.annotations:
            return OperationResult.NOT_FOUND
        self.base.annotations.remove(text)
        return OperationResult.OK

    def stage_configurable(
        self, obj: Configurable, terminate_removal: bool = True
    ) -> OperationResult:
        """
        Stage the entries and annotations an object reports about itself.

        Nothing is staged when any entry or annotation cannot be written;
        NOT_ADDED is returned in that case.
        """
        entries = obj.to_entries()
        annotations = obj.to_annotations()

        rejected = [
            key for key, value in entries.items() if not self._check_entry(key, value)
        ]
        for annotation in annotations:
            if not self._is_writable_annotation(annotation):
                self.logger.put(
                    Severity.WARN,
                    f"Annotation {annotation!r} cannot be written to a cfg file",
                )
                rejected.append(annotation)
        if rejected:
            return OperationResult.NOT_ADDED

        for key, value in entries.items():
            self.set_edited_value(key, value, terminate_removal)
        for annotation in annotations:
            self.add_edited_annotation(annotation, terminate_removal)

        return OperationResult.OK

    # Accessors

    def is_loaded(self) -> bool:
        return self.base.is_loaded

    def is_dirty(self) -> bool:
        return self.stage.is_dirty()

    def get_value(self, key: str) -> str | None:
        """Value as it would read after apply_modified()."""
        return self.stage.get(key)

    def get_loaded_value(self, key: str) -> str | None:
        return self.base.get(key)

    def get_edited_value(self, key: str) -> str | None:
        return self.stage.values.get(key)

    def get_loaded_annotation(self, text: str) -> str | None:
        return text if text in self.base.annotations else None

    def get_edited_annotation(self, text: str) -> str | None:
        return text if text in self.stage.annotations else None

    def get_loaded_config(self) -> ConfigMap | None:
        if self.base.values is None:
            return None
        return dict(self.base.values)

    def get_edited_config(self) -> ConfigMap:
        return dict(self.stage.values)

    def get_annotations(self) -> AnnotationList:
        return list(self.base.annotations)

    def get_edited_annotations(self) -> AnnotationList:
        return list(self.stage.annotations)

    def get_pending_value_removals(self) -> set[str]:
        return set(self.stage.removed_values)

    def get_pending_annotation_removals(self) -> set[str]:
        return set(self.stage.removed_annotations)


def create_cfg_file(
    logger: CfgLogger | None = None,
    storage: CfgStorage | None = None,
    customization: Customization | None = None,
    auto_create: bool = True,
) -> CfgFile:
    return CfgFile(logger, storage, customization, auto_create)
