from __future__ import annotations

import logging
from typing import Any, Iterable, List

import yaml

from .model import (
    Block,
    BlockType,
    DocumentInfo,
    EmptyPayload,
    ImagePayload,
    InlineEquation,
    MentionDoc,
    MentionUser,
    MergeInfo,
    TablePayload,
    TextPayload,
    TextRun,
    TextSpan,
    TextStyle,
    UnknownSpan,
)

logger = logging.getLogger(__name__)

TEXT_PAYLOAD_KEYS = {
    BlockType.PAGE: "page",
    BlockType.TEXT: "text",
    BlockType.HEADING1: "heading1",
    BlockType.HEADING2: "heading2",
    BlockType.HEADING3: "heading3",
    BlockType.HEADING4: "heading4",
    BlockType.HEADING5: "heading5",
    BlockType.HEADING6: "heading6",
    BlockType.HEADING7: "heading7",
    BlockType.HEADING8: "heading8",
    BlockType.HEADING9: "heading9",
    BlockType.BULLET: "bullet",
    BlockType.ORDERED: "ordered",
    BlockType.CODE: "code",
    BlockType.QUOTE: "quote",
    BlockType.EQUATION: "equation",
    BlockType.TODO: "todo",
    BlockType.CALLOUT: "callout",
}

CONTAINER_PAYLOAD_KEYS = {
    BlockType.DIVIDER: "divider",
    BlockType.GRID: "grid",
    BlockType.GRID_COLUMN: "grid_column",
    BlockType.TABLE_CELL: "table_cell",
    BlockType.QUOTE_CONTAINER: "quote_container",
}


def load_document(text: str) -> tuple[DocumentInfo, list[Block]]:
    """Parse a JSON or YAML dump of a fetched document into the internal model."""
    data = yaml.safe_load(text) or {}
    return parse_document(data)


def parse_document(data: Any) -> tuple[DocumentInfo, list[Block]]:
    if not isinstance(data, dict):
        raise ValueError("Document dump root must be a mapping with 'document' and 'blocks'.")

    document = data.get("document") or {}
    if not isinstance(document, dict):
        raise ValueError("'document' must be a mapping.")
    blocks = parse_blocks(data.get("blocks") or [])

    document_id = document.get("document_id")
    if not document_id:
        # Without metadata the page block is the root.
        document_id = next((b.block_id for b in blocks if b.block_type == BlockType.PAGE), "")
    info = DocumentInfo(
        document_id=str(document_id),
        title=str(document.get("title") or ""),
        revision_id=document.get("revision_id"),
    )
    logger.debug("Parsed document %s with %d blocks", info.document_id, len(blocks))
    return info, blocks


def parse_blocks(items: Iterable[Any]) -> list[Block]:
    blocks: list[Block] = []
    for entry in items:
        if not isinstance(entry, dict):
            raise ValueError(f"Block entry must be a mapping, got {type(entry).__name__}.")
        blocks.append(_parse_block(entry))
    return blocks


def _parse_block(entry: dict) -> Block:
    block_id = entry.get("block_id")
    if not block_id:
        raise ValueError("Block entry is missing 'block_id'.")
    block_type = _block_type(entry.get("block_type"))
    return Block(
        block_id=str(block_id),
        block_type=block_type,
        payload=_build_payload(block_type, entry),
        parent_id=entry.get("parent_id") or None,
        children=[str(child) for child in entry.get("children") or []],
    )


def _block_type(value) -> int:
    try:
        code = int(value)
    except (TypeError, ValueError):
        return 0
    try:
        return BlockType(code)
    except ValueError:
        return code


def _build_payload(block_type: int, entry: dict):
    if block_type in TEXT_PAYLOAD_KEYS:
        raw = entry.get(TEXT_PAYLOAD_KEYS[block_type])
        return _build_text(raw) if isinstance(raw, dict) else None
    if block_type == BlockType.IMAGE:
        return _build_image(entry.get("image"))
    if block_type == BlockType.TABLE:
        return _build_table(entry.get("table"))
    if block_type in CONTAINER_PAYLOAD_KEYS:
        return EmptyPayload()
    return None


def _build_text(raw: dict) -> TextPayload:
    style = raw.get("style") or {}
    elements = [_build_span(e) for e in raw.get("elements") or []]
    return TextPayload(
        elements=elements,
        done=bool(style.get("done", False)),
        language=style.get("language"),
    )


def _build_span(element) -> TextSpan:
    # Unknown kinds are kept so they still count towards the span total.
    if not isinstance(element, dict):
        return UnknownSpan()
    if "text_run" in element:
        run = element["text_run"] or {}
        return TextRun(content=str(run.get("content") or ""), style=_build_style(run.get("text_element_style")))
    if "mention_user" in element:
        return MentionUser(user_id=str((element["mention_user"] or {}).get("user_id") or ""))
    if "mention_doc" in element:
        mention = element["mention_doc"] or {}
        return MentionDoc(title=mention.get("title"), url=mention.get("url"), token=mention.get("token"))
    if "equation" in element:
        return InlineEquation(content=str((element["equation"] or {}).get("content") or ""))
    return UnknownSpan(kind=next(iter(element), None))


def _build_style(raw) -> TextStyle:
    if not isinstance(raw, dict):
        return TextStyle()
    link = raw.get("link")
    return TextStyle(
        bold=bool(raw.get("bold", False)),
        italic=bool(raw.get("italic", False)),
        strikethrough=bool(raw.get("strikethrough", False)),
        underline=bool(raw.get("underline", False)),
        inline_code=bool(raw.get("inline_code", False)),
        link=str(link["url"]) if isinstance(link, dict) and link.get("url") is not None else None,
    )


def _build_image(raw) -> ImagePayload | None:
    if not isinstance(raw, dict) or raw.get("token") is None:
        return None
    return ImagePayload(token=str(raw["token"]), width=raw.get("width"), height=raw.get("height"))


def _build_table(raw) -> TablePayload | None:
    if not isinstance(raw, dict):
        return None
    prop = raw.get("property") or {}
    merge_info: List[MergeInfo] | None = None
    if prop.get("merge_info"):
        merge_info = []
        for merge in prop["merge_info"]:
            if not isinstance(merge, dict):
                raise ValueError(f"Table merge_info entry must be a mapping, got {type(merge).__name__}.")
            merge_info.append(MergeInfo(row_span=int(merge.get("row_span", 1)), col_span=int(merge.get("col_span", 1))))
    return TablePayload(
        row_size=int(prop.get("row_size") or 0),
        column_size=int(prop.get("column_size") or 0),
        cells=[str(cell) for cell in raw.get("cells") or []],
        merge_info=merge_info,
    )
