"""
PO/POT reading and writing.

    collection, error = parse(text)
    collection = parse_or_raise(text)
    text = dump(collection)

Syntax errors come back as values from ``parse`` and ``parse_file``;
only the ``*_or_raise`` variants raise them.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..errors import FileError, PokitError, PoSyntaxError
from ..messages import MessageCollection
from .dumper import REFERENCE_LINE_WIDTH, dump, iter_dump
from .parser import parse_tokens
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

BOM = "\ufeff"
BOM_POLICIES = ("warn", "strip", "reject")


def parse(
    text: Union[str, bytes],
    bom: str = "warn",
    file: Optional[str] = None,
) -> tuple[Optional[MessageCollection], Optional[PoSyntaxError]]:
    """
    Parse PO/POT content.

    Args:
        text: PO content; bytes are decoded as UTF-8
        bom: What to do with a leading byte order mark: "warn" strips it and
            logs a warning, "strip" strips it silently, "reject" fails
        file: Path used in error messages and stored as ``source_path``

    Returns:
        (collection, None) on success, (None, error) on failure
    """
    if bom not in BOM_POLICIES:
        raise ValueError(f"Unknown BOM policy: {bom}. Expected one of {', '.join(BOM_POLICIES)}")

    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            return None, PoSyntaxError(1, f"invalid UTF-8: {e.reason}", file)

    if text.startswith(BOM):
        if bom == "reject":
            return None, PoSyntaxError(1, "unexpected byte order mark", file)
        if bom == "warn":
            logger.warning("%s: stripping byte order mark at start of file", file or "<input>")
        text = text[len(BOM):]

    tokens, error = tokenize(text)
    if error is None:
        parsed, error = parse_tokens(tokens)
    if error is not None:
        error.file = file
        return None, error

    top_comments, headers, messages = parsed
    return MessageCollection(
        messages=messages,
        headers=headers,
        top_comments=top_comments,
        source_path=file,
    ), None


def parse_or_raise(text: Union[str, bytes], bom: str = "warn", file: Optional[str] = None) -> MessageCollection:
    """Like ``parse`` but raises the error."""
    collection, error = parse(text, bom=bom, file=file)
    if error is not None:
        raise error
    return collection


def parse_file(
    path: Union[str, Path],
    bom: str = "warn",
) -> tuple[Optional[MessageCollection], Optional[PokitError]]:
    """
    Read and parse a PO/POT file.

    Returns:
        (collection, None), or (None, error) where error is a FileError when
        the file can't be read and a PoSyntaxError naming the path otherwise
    """
    path = str(path)
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        return None, FileError(path, e.strerror or str(e))
    return parse(data, bom=bom, file=path)


def parse_file_or_raise(path: Union[str, Path], bom: str = "warn") -> MessageCollection:
    """Like ``parse_file`` but raises the error."""
    collection, error = parse_file(path, bom=bom)
    if error is not None:
        raise error
    return collection


__all__ = [
    "BOM_POLICIES",
    "REFERENCE_LINE_WIDTH",
    "dump",
    "iter_dump",
    "parse",
    "parse_file",
    "parse_file_or_raise",
    "parse_or_raise",
    "tokenize",
]
