"""Textual type helpers.

Types are never resolved; "List<Map<String, Int>>?" is taken apart as text.
"""

from enum import Enum

from stge.constants import BOOLEAN_TYPES, NUMERIC_TYPES, TEXTUAL_TYPES, VOID_TYPES


class TypeFamily(Enum):
    """Return-type buckets used by the assertion table."""

    NUMERIC = "numeric"
    TEXTUAL = "textual"
    BOOLEAN = "boolean"
    VOID = "void"
    OTHER = "other"


def is_nullable(type_name: str | None) -> bool:
    return bool(type_name) and type_name.strip().endswith("?")


def is_function_type(type_name: str | None) -> bool:
    """Check for a function type such as "(Int, String) -> Boolean"."""
    if not type_name:
        return False
    text = type_name.strip().rstrip("?")
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1].strip()
    return "->" in text


def base_type(type_name: str | None) -> str:
    """Strip nullability, generic arguments and any package prefix."""
    if not type_name:
        return ""
    text = type_name.strip().rstrip("?").strip()
    if "<" in text:
        text = text[: text.index("<")]
    return text.rsplit(".", 1)[-1].strip()


def type_arguments(type_name: str | None) -> list[str]:
    """Top-level generic arguments, e.g. ["String", "List<Int>"]."""
    if not type_name or "<" not in type_name:
        return []
    text = type_name.strip().rstrip("?")
    inner = text[text.index("<") + 1 : text.rindex(">")] if ">" in text else ""
    arguments = []
    depth = 0
    current: list[str] = []
    for char in inner:
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
        if char == "," and depth == 0:
            arguments.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    if "".join(current).strip():
        arguments.append("".join(current).strip())
    return [argument.removeprefix("out ").removeprefix("in ").strip() for argument in arguments]


def function_type_parts(type_name: str) -> tuple[list[str], str]:
    """Split "(A, B) -> R" into (["A", "B"], "R")."""
    text = type_name.strip().rstrip("?").strip()
    if text.startswith("(") and text.endswith(")") and "->" in text[1:-1]:
        text = text[1:-1].strip()
    depth = 0
    for index, char in enumerate(text):
        if char in "(<":
            depth += 1
        elif char in ")>" and not (char == ">" and text[index - 1] == "-"):
            depth -= 1
        elif char == "-" and depth == 0 and text[index : index + 2] == "->":
            params_text = text[:index].strip()
            result = text[index + 2 :].strip()
            if params_text.startswith("(") and params_text.endswith(")"):
                params_text = params_text[1:-1]
            params = [p.strip() for p in params_text.split(",") if p.strip()]
            return params, result
    return [], "Unit"


def type_family(type_name: str | None) -> TypeFamily:
    name = base_type(type_name)
    if not name or name in VOID_TYPES:
        return TypeFamily.VOID
    if name in NUMERIC_TYPES:
        return TypeFamily.NUMERIC
    if name in TEXTUAL_TYPES:
        return TypeFamily.TEXTUAL
    if name in BOOLEAN_TYPES:
        return TypeFamily.BOOLEAN
    return TypeFamily.OTHER
