from dataclasses import dataclass

PAIR_DELIMITER = ";"


class CustomizationError(ValueError):
    pass


@dataclass(frozen=True)
class Customization:
    """
    Preferences a cfg file follows while being read and written.

    Choose them before opening a file; data parsed under one customization
    is not re-read when another one is installed.
    """

    comment_marker: str = "//"
    key_value_separator: str = "="
    annotation_separator: str = ","
    use_quotes: bool = True
    quote_character: str = '"'

    def __post_init__(self) -> None:
        if not self.comment_marker:
            raise CustomizationError("comment_marker must not be empty")

        for name in ("key_value_separator", "annotation_separator", "quote_character"):
            if len(getattr(self, name)) != 1:
                raise CustomizationError(f"{name} must be a single character")

        separators = [
            self.key_value_separator,
            self.annotation_separator,
            PAIR_DELIMITER,
        ]
        if len(set(separators)) != len(separators):
            raise CustomizationError(
                "key_value_separator, annotation_separator and "
                f"{PAIR_DELIMITER!r} must all differ"
            )


_active = Customization()


def get_customization() -> Customization:
    return _active


def set_customization(customization: Customization) -> None:
    """Install the process-wide customization used by newly created cfg files."""
    global _active
    _active = customization


def reset_customization() -> None:
    global _active
    _active = Customization()
