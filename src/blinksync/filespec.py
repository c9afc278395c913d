from __future__ import annotations

import re
from typing import Iterable

import pathspec
from pathspec.pattern import RegexPattern


class FilespecParseError(ValueError):
    pass


class FilespecPattern(RegexPattern):
    """A DOS-style filespec matched against a single file or directory name.

    ``*`` matches any run of characters and ``?`` matches one optional
    character, so ``foo?.txt`` matches both ``foo1.txt`` and ``foo.txt``.
    Every other character is literal. Matching is anchored to the whole name
    and case-insensitive.
    """

    __slots__ = ()

    @classmethod
    def pattern_to_regex(cls, pattern: str) -> tuple[str, bool]:
        parts: list[str] = []
        for char in pattern.strip():
            if char == "*":
                parts.append(".*")
            elif char == "?":
                parts.append(".?")
            else:
                parts.append(re.escape(char))
        return rf"(?is)^{''.join(parts)}\Z", True


def compile_filespec(pattern: str) -> FilespecPattern:
    return FilespecPattern(pattern)


def compile_filespecs(patterns: Iterable[str]) -> pathspec.PathSpec:
    return pathspec.PathSpec([compile_filespec(pattern) for pattern in patterns])


def matches(pattern: FilespecPattern, name: str) -> bool:
    return pattern.match_file(name) is not None


def parse_filespec_list(token: str) -> list[str]:
    """Split a comma-separated filespec list taken from one argument.

    A filespec may be wrapped in double quotes to carry embedded commas, e.g.
    ``*.tmp,"a,b*.txt"``. Empty segments are dropped.
    """
    patterns: list[str] = []
    length = len(token)
    pos = 0

    while pos < length:
        while pos < length and token[pos] == " ":
            pos += 1
        if pos >= length:
            break

        if token[pos] == '"':
            end = token.find('"', pos + 1)
            if end == -1:
                raise FilespecParseError(f"Unterminated quote in filespec list: {token}")
            patterns.append(token[pos + 1 : end])
            pos = end + 1
            while pos < length and token[pos] == " ":
                pos += 1
        else:
            end = token.find(",", pos)
            if end == -1:
                end = length
            patterns.append(token[pos:end])
            pos = end

        if pos < length and token[pos] != ",":
            raise FilespecParseError(
                f"Unexpected character {token[pos]!r} after quoted filespec in: {token}"
            )
        pos += 1

    return [pattern for pattern in patterns if pattern.strip()]


def compile_filespec_list(token: str) -> pathspec.PathSpec:
    return compile_filespecs(parse_filespec_list(token))
