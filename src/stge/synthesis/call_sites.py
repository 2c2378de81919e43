"""Observed call sites, used to reuse real argument lists for varargs."""

from __future__ import annotations

from stge.model.models import ProgramModel


def split_arguments(text: str) -> list[str]:
    """Split an argument list on top-level commas.

    Commas nested in parentheses, brackets, braces or string
    literals do not split: "1, listOf(2, 3), \"a,b\"" gives three arguments.
    """
    arguments: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    escaped = False

    for char in text:
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in "\"'":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}" and depth > 0:
            depth -= 1
        elif char == "," and depth == 0:
            arguments.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    if "".join(current).strip():
        arguments.append("".join(current).strip())
    return arguments


class CallSiteIndex:
    """Read-only map from callee name to the argument lists seen at its calls."""

    def __init__(self, sites: dict[str, list[tuple[str, ...]]] | None = None):
        self._sites = sites or {}

    @classmethod
    def from_model(cls, model: ProgramModel) -> CallSiteIndex:
        sites: dict[str, list[tuple[str, ...]]] = {}
        for call in model.calls:
            arguments: list[str] = []
            for argument in call.arguments:
                arguments.extend(split_arguments(argument))
            sites.setdefault(call.name, []).append(tuple(arguments))
        return cls(sites)

    def examples(self, callee: str) -> list[tuple[str, ...]]:
        return list(self._sites.get(callee, []))

    def variadic_tail(
        self, callee: str, fixed_before: int, fixed_after: int = 0
    ) -> tuple[str, ...] | None:
        """Arguments bound to a vararg at the first call that passes any.

        Args:
            callee: Function name as written at call sites.
            fixed_before: Parameters declared before the vararg.
            fixed_after: Parameters declared after it.

        Returns:
            The vararg's argument texts, or None if no call passes one.
        """
        for arguments in self._sites.get(callee, []):
            if len(arguments) > fixed_before + fixed_after:
                return arguments[fixed_before : len(arguments) - fixed_after]
        return None

    def __len__(self) -> int:
        return sum(len(sites) for sites in self._sites.values())
