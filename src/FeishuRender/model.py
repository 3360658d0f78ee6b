from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional


class BlockType(IntEnum):
    PAGE = 1
    TEXT = 2
    HEADING1 = 3
    HEADING2 = 4
    HEADING3 = 5
    HEADING4 = 6
    HEADING5 = 7
    HEADING6 = 8
    HEADING7 = 9
    HEADING8 = 10
    HEADING9 = 11
    BULLET = 12
    ORDERED = 13
    CODE = 14
    QUOTE = 15
    EQUATION = 16
    TODO = 17
    BITABLE = 18
    CALLOUT = 19
    CHAT_CARD = 20
    DIAGRAM = 21
    DIVIDER = 22
    FILE = 23
    GRID = 24
    GRID_COLUMN = 25
    IFRAME = 26
    IMAGE = 27
    ISV = 28
    MINDNOTE = 29
    SHEET = 30
    TABLE = 31
    TABLE_CELL = 32
    VIEW = 33
    QUOTE_CONTAINER = 34


HEADING_TYPES = tuple(BlockType(code) for code in range(BlockType.HEADING1, BlockType.HEADING9 + 1))


@dataclass
class TextStyle:
    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    inline_code: bool = False
    link: str | None = None


@dataclass
class TextSpan:
    """Base class for inline spans of a text payload."""


@dataclass
class TextRun(TextSpan):
    content: str
    style: TextStyle = field(default_factory=TextStyle)


@dataclass
class MentionUser(TextSpan):
    user_id: str


@dataclass
class MentionDoc(TextSpan):
    title: str | None = None
    url: str | None = None
    token: str | None = None


@dataclass
class InlineEquation(TextSpan):
    content: str


@dataclass
class UnknownSpan(TextSpan):
    """Inline element kinds the renderer has no output for (reminders, files, ...)."""

    kind: str | None = None


@dataclass
class Payload:
    """Base class for the type-specific part of a block."""


@dataclass
class TextPayload(Payload):
    elements: List[TextSpan] = field(default_factory=list)
    done: bool = False
    language: int | None = None


@dataclass
class ImagePayload(Payload):
    token: str
    width: int | None = None
    height: int | None = None


@dataclass
class MergeInfo:
    row_span: int = 1
    col_span: int = 1


@dataclass
class TablePayload(Payload):
    row_size: int
    column_size: int
    cells: List[str] = field(default_factory=list)
    merge_info: List[MergeInfo] | None = None


@dataclass
class EmptyPayload(Payload):
    """Container blocks (divider, grid, table cell, ...) carry no data of their own."""


@dataclass
class Block:
    block_id: str
    block_type: int
    payload: Optional[Payload] = None
    parent_id: str | None = None
    children: List[str] = field(default_factory=list)


@dataclass
class DocumentInfo:
    document_id: str
    title: str = ""
    revision_id: int | None = None


@dataclass
class RenderResult:
    markdown: str
    title: str
    image_tokens: List[str] = field(default_factory=list)
