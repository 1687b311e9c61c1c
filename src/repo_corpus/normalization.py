"""Comment stripping and declaration/package tagging for C-family sources.

Everything here is a pure function of its input text. Declaration and package
detection are pattern heuristics used as identifying tags, not a parser: only
the first declaration of a file is ever reported.
"""

from __future__ import annotations

import re

from repo_corpus.config import DEFAULT_PACKAGE, NO_DECLARATION, DeclarationKind, NormalizedRecord, NormalizedSource

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"//.*")
_DECLARATION = re.compile(r"(?<![\w$@])(@interface|class|interface|enum|record)\s+([A-Za-z_$][\w$]*)")
_PACKAGE = re.compile(r"^[ \t]*package\s+([A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*)\s*;", re.MULTILINE)


def strip_block_comments(text: str) -> str:
    """Remove every ``/* ... */`` span, including multi-line ones.

    Removal is repeated until no span is left, since deleting one span can
    bring a ``/`` and a ``*`` together (``//* a */* b */``).

    Args:
        text (str): raw source text

    Returns:
        str: text without block comments
    """
    while True:
        stripped = _BLOCK_COMMENT.sub("", text)
        if stripped == text:
            return stripped
        text = stripped


def strip_comments(text: str) -> str:
    """Strip block comments, then line comments, then blank lines.

    Block removal runs to completion first so a ``//`` inside a block comment
    is never taken for a line comment start.

    Args:
        text (str): raw source text

    Returns:
        str: the kept lines, each right-stripped and terminated by ``\\n``
    """
    kept: list[str] = []
    for line in strip_block_comments(text).splitlines():
        code = _LINE_COMMENT.sub("", line).rstrip()
        if code.strip():
            kept.append(code + "\n")
    return "".join(kept)


def find_declaration(text: str) -> tuple[DeclarationKind, str]:
    """Find the first declaration keyword followed by an identifier.

    Args:
        text (str): source text, normally already stripped of comments

    Returns:
        tuple[DeclarationKind, str]: the keyword and identifier, or
            ``(DeclarationKind.NONE, "")`` when nothing matches
    """
    match = _DECLARATION.search(text)
    if match is None:
        return DeclarationKind.NONE, ""
    return DeclarationKind(match.group(1)), match.group(2)


def extract_declaration(text: str) -> str:
    """Return ``"<keyword> <identifier>"`` for the first declaration, or ``"N/A"``."""
    kind, name = find_declaration(text)
    if kind is DeclarationKind.NONE:
        return NO_DECLARATION
    return f"{kind} {name}"


def extract_package(text: str) -> str:
    """Return the dotted name of the first ``package x.y;`` statement, or ``"(default)"``."""
    match = _PACKAGE.search(text)
    return match.group(1) if match else DEFAULT_PACKAGE


def normalize(raw_text: str) -> NormalizedSource:
    """Normalize a source text.

    Args:
        raw_text (str): file content as read from disk

    Returns:
        NormalizedSource: cleaned text plus its declaration and package tags
    """
    cleaned = strip_comments(raw_text)
    return NormalizedSource(
        cleaned_text=cleaned,
        declaration=extract_declaration(cleaned),
        package_name=extract_package(cleaned),
    )


def normalize_record(file_name: str, raw_text: str) -> NormalizedRecord:
    """Normalize a source text into a corpus record named ``file_name``."""
    cleaned = strip_comments(raw_text)
    kind, name = find_declaration(cleaned)
    return NormalizedRecord(
        file_name=file_name,
        package_name=extract_package(cleaned),
        declaration_kind=kind,
        declaration_name=name,
        cleaned_text=cleaned,
    )
