"""Blank-line block tokenizer and section header normalization.

Resume text is exchanged with the text generator as blocks separated by
blank lines. Each block is a header line followed by body lines.
"""

import re

import structlog

from resume_builder_api.observability import ParseDiagnostics

logger = structlog.get_logger()

# Two or more newlines, allowing whitespace-only lines in between
_BLOCK_SEPARATOR = re.compile(r"\n[ \t]*(?:\n[ \t]*)+")


def normalize_header(line: str | None) -> str:
    """Lower-case, trim and collapse internal whitespace of a header line.

    Returns an empty string for None or blank input.
    """
    if not line:
        return ""
    return " ".join(line.lower().split())


def split_blocks(text: str, diagnostics: ParseDiagnostics | None = None) -> list[list[str]]:
    """Split text into blocks of trimmed, non-empty lines.

    Args:
        text: Raw resume text.
        diagnostics: Optional collector for dropped blocks.

    Returns:
        One list of lines per non-empty block, in document order.
    """
    if not text:
        return []

    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    blocks = []
    for raw_block in _BLOCK_SEPARATOR.split(normalized):
        lines = [line.strip() for line in raw_block.strip().split("\n")]
        lines = [line for line in lines if line]
        if not lines:
            if diagnostics is not None and raw_block:
                diagnostics.record("dropped_empty_block", detail=repr(raw_block))
            continue
        blocks.append(lines)

    logger.debug("Resume text tokenized", blocks=len(blocks), chars=len(text))
    return blocks


def build_section_table(blocks: list[list[str]]) -> dict[str, list[str]]:
    """Map each block's normalized header to its body lines.

    The first block wins when two blocks share a normalized header.
    """
    table: dict[str, list[str]] = {}
    for lines in blocks:
        header = normalize_header(lines[0])
        if header and header not in table:
            table[header] = lines[1:]
    return table
