"""
Split reconstructed page text into section blocks.

The crawler writes an inline marker line before every section:

    [SECTION 3] Pricing
    ...section text...

A block's body is the verbatim text after the marker line up to the next
marker, so concatenating bodies gives back the page minus marker lines.
"""

import re
from typing import List

from rag.types import SectionBlock

_MARKER = re.compile(
    r"\[SECTION\s+(\d+)\][ \t]*((?:(?!\[SECTION\s+\d+\])[^\n])*)(?:\n|$)"
)

PREAMBLE_TITLE = "Introduction"


def parse_section_blocks(text: str) -> List[SectionBlock]:
    """
    Return blocks in document order; [] when the text has no markers.

    Text before the first marker becomes an "Introduction" block unless blank.
    A marker repeating the previous block's number and title (a section split
    across chunks) continues that block.
    """
    if not text:
        return []
    matches = list(_MARKER.finditer(text))
    if not matches:
        return []

    blocks: List[SectionBlock] = []
    preamble = text[:matches[0].start()]
    if preamble.strip():
        blocks.append(SectionBlock(title=PREAMBLE_TITLE, body=preamble))

    for i, m in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        body = text[m.end():end]
        number = int(m.group(1))
        title = m.group(2).strip() or f"Section {number}"
        prev = blocks[-1] if blocks else None
        if prev is not None and prev.number == number and prev.title == title:
            blocks[-1] = SectionBlock(title=title, body=prev.body + body, number=number)
        else:
            blocks.append(SectionBlock(title=title, body=body, number=number))
    return blocks


def _size(body: str) -> int:
    return len(body.strip())


def merge_small_blocks(blocks: List[SectionBlock], min_chars: int) -> List[SectionBlock]:
    """
    Fold undersized blocks into the blocks that follow them.

    A run keeps its first block's title and concatenates bodies in order. A
    trailing undersized run has nothing left to absorb and is kept as is.
    Never reorders and never drops body text.
    """
    merged: List[SectionBlock] = []
    pending = None
    for block in blocks:
        if pending is None:
            pending = block
        else:
            pending = SectionBlock(
                title=pending.title,
                body=pending.body + block.body,
                number=pending.number,
            )
        if _size(pending.body) >= min_chars:
            merged.append(pending)
            pending = None
    if pending is not None:
        merged.append(pending)
    return merged
