"""Raw text preprocessing applied to configuration files before parsing."""

import os
import re
from collections.abc import Mapping
from typing import Final

ENV_PATTERN: Final[re.Pattern] = re.compile(r"\$\{env:(\w+)\}|\$(\w+)")
FROM_FILE_PATTERN: Final[re.Pattern] = re.compile(
    r'"([^"]*)"\s*:\s*\{\s*"fromFile"\s*:\s*"([^"]*)"\s*\}\s*,?'
)
TRAILING_COMMA_PATTERN: Final[re.Pattern] = re.compile(r",(\s*)([}\]])")
ACCOUNTS_OPEN_PATTERN: Final[re.Pattern] = re.compile(r"\s*:\s*\{")


def substitute_env(raw: str, environ: Mapping[str, str] | None = None) -> str:
    """Expand ``${env:NAME}`` and ``$NAME`` in one pass.

    Unset variables expand to an empty string. Replacement text is never
    rescanned, so values containing ``$`` are inserted verbatim.
    """
    env = os.environ if environ is None else environ

    def replace(match: re.Match) -> str:
        name = match.group(1) or match.group(2)
        return env.get(name, "")

    return ENV_PATTERN.sub(replace, raw)


def _accounts_span(raw: str) -> tuple[int, int] | None:
    """Bounds of the body of the top-level ``accounts`` object, if any.

    Strings are skipped while matching braces, so braces inside values do
    not end the object early.
    """
    depth = 0
    start = None
    i = 0
    while i < len(raw):
        char = raw[i]
        if char == '"':
            end = _string_end(raw, i)
            if start is None and depth == 1 and raw[i + 1 : end - 1] == "accounts":
                match = ACCOUNTS_OPEN_PATTERN.match(raw, end)
                if match is not None:
                    start = match.end()
                    depth += 1
                    i = start
                    continue
            i = end
            continue
        if char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
            if start is not None and depth == 1:
                return start, i
        i += 1
    return None


def _string_end(raw: str, start: int) -> int:
    i = start + 1
    while i < len(raw):
        if raw[i] == "\\":
            i += 2
            continue
        if raw[i] == '"':
            return i + 1
        i += 1
    return len(raw)


def extract_from_file(raw: str) -> tuple[str, dict[str, str]]:
    """Remove ``"name": {"fromFile": "path"}`` records from ``accounts``.

    Only the ``accounts`` object is rewritten; the rest of the document is
    returned untouched.

    Returns:
        The remaining text, with dangling commas in ``accounts`` repaired, and
        a mapping of account name to referenced file path
    """
    span = _accounts_span(raw)
    if span is None:
        return raw, {}

    references: dict[str, str] = {}

    def remove(match: re.Match) -> str:
        references[match.group(1)] = match.group(2)
        return ""

    start, end = span
    # Include the closing brace so a comma before it is repaired
    accounts = FROM_FILE_PATTERN.sub(remove, raw[start : end + 1])
    if references:
        accounts = TRAILING_COMMA_PATTERN.sub(r"\1\2", accounts)
    return raw[:start] + accounts + raw[end + 1 :], references


def process(
    raw: str, environ: Mapping[str, str] | None = None
) -> tuple[str, dict[str, str]]:
    """Run environment substitution then file reference extraction."""
    return extract_from_file(substitute_env(raw, environ))
