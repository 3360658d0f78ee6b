from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from .code_languages import language_tag
from .model import (
    HEADING_TYPES,
    Block,
    BlockType,
    DocumentInfo,
    ImagePayload,
    InlineEquation,
    MentionDoc,
    MentionUser,
    RenderResult,
    TablePayload,
    TextPayload,
    TextRun,
    TextSpan,
)
from .utils import unescape_url

logger = logging.getLogger(__name__)

CALLOUT_PREFIX = ">[!TIP] \n"
CELL_SEPARATOR = "<br/>"


@dataclass
class RenderState:
    index: dict[str, Block] = field(default_factory=dict)
    image_tokens: list[str] = field(default_factory=list)


def render_document(document: DocumentInfo, blocks: Iterable[Block]) -> RenderResult:
    markdown, image_tokens = render_blocks(document.document_id, blocks)
    return RenderResult(markdown=markdown, title=document.title, image_tokens=image_tokens)


def render_blocks(root_id: str, blocks: Iterable[Block]) -> tuple[str, list[str]]:
    """Render the tree rooted at ``root_id`` and return the text with the image tokens met on the way."""
    state = RenderState()
    for block in blocks:
        state.index[block.block_id] = block
    logger.debug("Indexed %d blocks", len(state.index))

    root = state.index.get(root_id)
    if root is None:
        logger.debug("Root block %s not found", root_id)
        return "", []
    return _render_block(root, 0, state), state.image_tokens


def _render_block(block: Block, depth: int, state: RenderState) -> str:
    return "\t" * depth + _dispatch_block(block, depth, state)


def _dispatch_block(block: Block, depth: int, state: RenderState) -> str:
    block_type = block.block_type
    if block_type == BlockType.PAGE:
        return _render_page(block, state)
    elif block_type == BlockType.TEXT:
        return _render_text(block.payload)
    elif block_type in HEADING_TYPES:
        return _render_heading(block, state)
    elif block_type == BlockType.BULLET:
        return "- " + _render_text(block.payload) + _render_children(block, depth + 1, state)
    elif block_type == BlockType.ORDERED:
        return _render_ordered(block, depth, state)
    elif block_type == BlockType.CODE:
        return _render_code(block.payload)
    elif block_type == BlockType.QUOTE:
        return "> " + _render_text(block.payload)
    elif block_type == BlockType.QUOTE_CONTAINER:
        return "".join("> " + _render_block(child, 0, state) for child in _children(block, state))
    elif block_type == BlockType.EQUATION:
        return "$$\n" + _render_text(block.payload) + "$$\n"
    elif block_type == BlockType.TODO:
        return _render_todo(block.payload)
    elif block_type == BlockType.CALLOUT:
        return CALLOUT_PREFIX + _render_children(block, 0, state)
    elif block_type == BlockType.DIVIDER:
        return "---\n"
    elif block_type == BlockType.IMAGE:
        return _render_image(block.payload, state)
    elif block_type == BlockType.TABLE:
        return _render_table(block.payload, state)
    elif block_type == BlockType.TABLE_CELL:
        return "".join(_render_block(child, 0, state) + CELL_SEPARATOR for child in _children(block, state))
    elif block_type == BlockType.GRID:
        return _render_grid(block, depth, state)
    logger.debug("Skipping block %s of type %s", block.block_id, block_type)
    return ""


def _children(block: Block, state: RenderState) -> Iterable[Block]:
    for child_id in block.children:
        child = state.index.get(child_id)
        if child is None:
            logger.debug("Block %s references missing child %s", block.block_id, child_id)
            continue
        yield child


def _render_children(block: Block, depth: int, state: RenderState) -> str:
    return "".join(_render_block(child, depth, state) for child in _children(block, state))


def _render_page(block: Block, state: RenderState) -> str:
    parts = ["# " + _render_text(block.payload) + "\n"]
    for child in _children(block, state):
        parts.append(_render_block(child, 0, state) + "\n")
    return "".join(parts)


def _render_heading(block: Block, state: RenderState) -> str:
    level = block.block_type - BlockType.HEADING1 + 1
    return "#" * level + " " + _render_text(block.payload) + _render_children(block, 0, state)


def _render_ordered(block: Block, depth: int, state: RenderState) -> str:
    number = _ordered_number(block, state)
    return f"{number}. " + _render_text(block.payload) + _render_children(block, depth + 1, state)


def _ordered_number(block: Block, state: RenderState) -> int:
    """Count the contiguous run of ordered siblings ending at ``block``."""
    parent = state.index.get(block.parent_id) if block.parent_id else None
    if parent is None or block.block_id not in parent.children:
        return 1
    number = 1
    position = parent.children.index(block.block_id)
    for sibling_id in reversed(parent.children[:position]):
        sibling = state.index.get(sibling_id)
        if sibling is None or sibling.block_type != BlockType.ORDERED:
            break
        number += 1
    return number


def _render_code(payload) -> str:
    language = payload.language if isinstance(payload, TextPayload) else None
    content = _render_text(payload).strip()
    return "```" + language_tag(language) + "\n" + content + "\n```\n"


def _render_todo(payload) -> str:
    done = payload.done if isinstance(payload, TextPayload) else False
    checkbox = "- [x] " if done else "- [ ] "
    return checkbox + _render_text(payload)


def _render_image(payload, state: RenderState) -> str:
    if not isinstance(payload, ImagePayload):
        return ""
    state.image_tokens.append(payload.token)
    return f"![]({payload.token})\n"


def _render_grid(block: Block, depth: int, state: RenderState) -> str:
    # Columns are flattened: their content renders at the grid's own depth.
    parts: list[str] = []
    for column in _children(block, state):
        parts.append(_render_children(column, depth, state))
    return "".join(parts)


def _render_table(payload, state: RenderState) -> str:
    if not isinstance(payload, TablePayload) or payload.column_size <= 0:
        return ""
    columns = payload.column_size

    rows: list[list[str]] = []
    for position, cell_id in enumerate(payload.cells):
        row, col = divmod(position, columns)
        cell = state.index.get(cell_id)
        content = _render_block(cell, 0, state).replace("\n", "") if cell is not None else ""
        while len(rows) <= row:
            rows.append([])
        while len(rows[row]) <= col:
            rows[row].append("")
        rows[row][col] = content

    merges = {}
    for position, merge in enumerate(payload.merge_info or []):
        merges[divmod(position, columns)] = merge

    lines = ["<table>\n"]
    consumed: set[tuple[int, int]] = set()
    for row, cells in enumerate(rows):
        lines.append("<tr>\n")
        for col, content in enumerate(cells):
            if (row, col) in consumed:
                continue
            merge = merges.get((row, col))
            if merge is None:
                lines.append(f"<td>{content}</td>")
                continue
            attributes = ""
            if merge.row_span > 1:
                attributes += f' rowspan="{merge.row_span}"'
            if merge.col_span > 1:
                attributes += f' colspan="{merge.col_span}"'
            lines.append(f"<td{attributes}>{content}</td>")
            for r in range(row, row + merge.row_span):
                for c in range(col, col + merge.col_span):
                    consumed.add((r, c))
        lines.append("</tr>\n")
    lines.append("</table>\n")
    return "".join(lines)


def _render_text(payload) -> str:
    """Render a text payload's spans followed by a newline."""
    if not isinstance(payload, TextPayload):
        return "\n"
    inline = len(payload.elements) > 1
    return "".join(_render_span(span, inline) for span in payload.elements) + "\n"


def _render_span(span: TextSpan, inline: bool) -> str:
    if isinstance(span, TextRun):
        return _render_text_run(span)
    elif isinstance(span, MentionUser):
        return span.user_id
    elif isinstance(span, MentionDoc):
        url = unescape_url(span.url) if span.url else ""
        return f"[{span.title or ''}]({url})"
    elif isinstance(span, InlineEquation):
        symbol = "$" if inline else "$$"
        content = span.content[:-1] if span.content.endswith("\n") else span.content
        return symbol + content + symbol
    return ""


def _render_text_run(run: TextRun) -> str:
    # Only the highest-priority style applies.
    style = run.style
    prefix = suffix = ""
    if style.bold:
        prefix = suffix = "**"
    elif style.italic:
        prefix = suffix = "_"
    elif style.strikethrough:
        prefix = suffix = "~~"
    elif style.underline:
        prefix, suffix = "<u>", "</u>"
    elif style.inline_code:
        prefix = suffix = "`"
    elif style.link is not None:
        prefix, suffix = "[", f"]({unescape_url(style.link)})"
    return prefix + run.content + suffix
