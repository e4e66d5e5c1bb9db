import re
from dataclasses import dataclass

from cfg_manager.base import AnnotationList, ConfigMap
from cfg_manager.customizer import PAIR_DELIMITER, Customization

ANNOTATION_PREFIX = "@annotation"


@dataclass(frozen=True)
class Entry:
    key: str
    value: str


@dataclass(frozen=True)
class ParseFailure:
    fragment: str


def strip_comment(line: str, comment_marker: str) -> str:
    """Cut the line at the first occurrence of the comment marker."""
    index = line.find(comment_marker)
    if index >= 0:
        line = line[:index]
    return line.strip()


def unquote(value: str, quote: str) -> str:
    if len(value) >= 2 and value.startswith(quote) and value.endswith(quote):
        return value[1:-1]
    return value


def parse_line(line: str, customization: Customization) -> list[Entry | ParseFailure]:
    """
    Parse one physical line into entries.

    Several pairs may share a line when joined by ';'. A fragment without
    the key/value separator, or with an empty key or value, is reported as
    a ParseFailure and does not stop the remaining fragments.
    """
    content = strip_comment(line, customization.comment_marker)
    if not content:
        return []

    results: list[Entry | ParseFailure] = []
    for fragment in content.split(PAIR_DELIMITER):
        fragment = fragment.strip()
        if not fragment:
            continue

        parts = fragment.split(customization.key_value_separator, 1)
        if len(parts) != 2:
            results.append(ParseFailure(fragment))
            continue

        key = parts[0].strip()
        value = parts[1].strip()
        if not key or not value:
            results.append(ParseFailure(fragment))
            continue

        if customization.use_quotes:
            value = unquote(value, customization.quote_character)

        results.append(Entry(key, value))

    return results


def is_annotation_declaration(line: str) -> bool:
    line = line.strip()
    return line == ANNOTATION_PREFIX or line.startswith(ANNOTATION_PREFIX + " ")


def annotation_delimiters(customization: Customization) -> set[str]:
    return {",", PAIR_DELIMITER, customization.annotation_separator}


def parse_annotations(line: str, customization: Customization) -> AnnotationList:
    """
    Split an '@annotation a, b; c' declaration into its annotations.
    """
    body = line.strip()[len(ANNOTATION_PREFIX) :]
    pattern = "|".join(
        re.escape(d) for d in sorted(annotation_delimiters(customization))
    )

    return [item.strip() for item in re.split(pattern, body) if item.strip()]


def format_annotations(annotations: AnnotationList, customization: Customization) -> str:
    joiner = customization.annotation_separator + " "
    return f"{ANNOTATION_PREFIX} {joiner.join(annotations)}"


def format_entry(key: str, value: str, customization: Customization) -> str:
    if customization.use_quotes:
        quote = customization.quote_character
        value = f"{quote}{value}{quote}"

    separator = customization.key_value_separator
    if separator == " ":
        return f"{key}{separator}{value}"
    return f"{key} {separator} {value}"


def serialize(
    values: ConfigMap, annotations: AnnotationList, customization: Customization
) -> str:
    """
    Render loaded state as cfg text: the annotation declaration and a blank
    line when there are annotations, then one line per entry.
    """
    lines = []
    if annotations:
        lines.append(format_annotations(annotations, customization))
        lines.append("")

    for key, value in values.items():
        lines.append(format_entry(key, value, customization))

    if not lines:
        return ""
    return "\n".join(lines) + "\n"
