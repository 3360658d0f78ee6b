import json
import textwrap

import pytest

from FeishuRender import block_parser
from FeishuRender.model import (
    BlockType,
    EmptyPayload,
    ImagePayload,
    InlineEquation,
    MentionDoc,
    MentionUser,
    TablePayload,
    TextPayload,
    TextRun,
    UnknownSpan,
)
from FeishuRender.renderer_markdown import render_blocks, render_document

DUMP = {
    "document": {"document_id": "doxcn1", "revision_id": 7, "title": "Weekly notes"},
    "blocks": [
        {
            "block_id": "doxcn1",
            "block_type": 1,
            "children": ["h1", "code", "img", "tbl", "odd"],
            "page": {"elements": [{"text_run": {"content": "Weekly notes"}}]},
        },
        {
            "block_id": "h1",
            "block_type": 3,
            "parent_id": "doxcn1",
            "heading1": {
                "elements": [
                    {"text_run": {"content": "Plan ", "text_element_style": {"bold": True}}},
                    {"mention_user": {"user_id": "ou_42"}},
                    {"mention_doc": {"token": "d1", "obj_type": 22, "url": "https%3A%2F%2Fx.cn%2Fdocx%2Fd1", "title": "Spec"}},
                    {"equation": {"content": "a+b\n"}},
                ]
            },
        },
        {
            "block_id": "code",
            "block_type": 14,
            "parent_id": "doxcn1",
            "code": {"style": {"language": 63, "wrap": False}, "elements": [{"text_run": {"content": "let x = 1;"}}]},
        },
        {"block_id": "img", "block_type": 27, "parent_id": "doxcn1", "image": {"token": "boxcnImg", "width": 640, "height": 480}},
        {
            "block_id": "tbl",
            "block_type": 31,
            "parent_id": "doxcn1",
            "children": ["cell"],
            "table": {
                "cells": ["cell"],
                "property": {"row_size": 1, "column_size": 1, "merge_info": [{"row_span": 1, "col_span": 1}]},
            },
        },
        {"block_id": "cell", "block_type": 32, "parent_id": "tbl", "children": ["txt"], "table_cell": {}},
        {"block_id": "txt", "block_type": 2, "parent_id": "cell", "text": {"elements": [{"text_run": {"content": "v"}}]}},
        {"block_id": "odd", "block_type": 999, "parent_id": "doxcn1"},
    ],
}


def test_parse_document_builds_payload_variants():
    info, blocks = block_parser.parse_document(DUMP)
    assert info.document_id == "doxcn1"
    assert info.title == "Weekly notes"
    assert info.revision_id == 7

    by_id = {block.block_id: block for block in blocks}
    heading = by_id["h1"]
    assert heading.block_type == BlockType.HEADING1
    assert heading.parent_id == "doxcn1"
    spans = heading.payload.elements
    assert isinstance(spans[0], TextRun) and spans[0].style.bold
    assert isinstance(spans[1], MentionUser) and spans[1].user_id == "ou_42"
    assert isinstance(spans[2], MentionDoc) and spans[2].title == "Spec"
    assert isinstance(spans[3], InlineEquation)

    assert isinstance(by_id["code"].payload, TextPayload)
    assert by_id["code"].payload.language == 63
    assert isinstance(by_id["img"].payload, ImagePayload)
    assert by_id["img"].payload.token == "boxcnImg"
    table = by_id["tbl"].payload
    assert isinstance(table, TablePayload)
    assert (table.row_size, table.column_size) == (1, 1)
    assert table.merge_info[0].row_span == 1
    assert isinstance(by_id["cell"].payload, EmptyPayload)
    assert by_id["odd"].block_type == 999
    assert by_id["odd"].payload is None


def test_parsed_dump_renders_end_to_end():
    info, blocks = block_parser.parse_document(DUMP)
    result = render_document(info, blocks)
    assert result.markdown == (
        "# Weekly notes\n\n"
        "# **Plan **ou_42[Spec](https://x.cn/docx/d1)$a+b$\n\n"
        "```typescript\nlet x = 1;\n```\n\n"
        "![](boxcnImg)\n\n"
        "<table>\n<tr>\n<td>v<br/></td></tr>\n</table>\n\n"
        "\n"
    )
    assert result.image_tokens == ["boxcnImg"]


def test_load_document_accepts_json_and_yaml():
    info, blocks = block_parser.load_document(json.dumps(DUMP))
    assert info.document_id == "doxcn1"
    assert len(blocks) == len(DUMP["blocks"])

    yaml_text = textwrap.dedent(
        """
        document:
          document_id: root
          title: From YAML
        blocks:
          - block_id: root
            block_type: 1
            children: [todo]
            page:
              elements:
                - text_run: {content: From YAML}
          - block_id: todo
            block_type: 17
            parent_id: root
            todo:
              style: {done: true}
              elements:
                - text_run: {content: ship it}
        """
    )
    info, blocks = block_parser.load_document(yaml_text)
    assert info.title == "From YAML"
    assert render_document(info, blocks).markdown == "# From YAML\n\n- [x] ship it\n\n"


def test_missing_document_id_falls_back_to_page_block():
    info, _ = block_parser.parse_document(
        {"blocks": [{"block_id": "p1", "block_type": 1, "page": {"elements": []}}]}
    )
    assert info.document_id == "p1"


def test_missing_text_payload_is_none():
    blocks = block_parser.parse_blocks([{"block_id": "t", "block_type": 2}])
    assert blocks[0].payload is None


def test_invalid_dumps_raise():
    with pytest.raises(ValueError):
        block_parser.parse_document(["not", "a", "mapping"])
    with pytest.raises(ValueError):
        block_parser.parse_blocks(["oops"])
    with pytest.raises(ValueError):
        block_parser.parse_blocks([{"block_type": 2}])


def test_unknown_inline_elements_count_towards_equation_width():
    blocks = block_parser.parse_blocks(
        [
            {
                "block_id": "t",
                "block_type": 2,
                "text": {
                    "elements": [
                        {"reminder": {"create_user_id": "ou_1", "expire_time": "1700000000000"}},
                        {"equation": {"content": "x\n"}},
                    ]
                },
            }
        ]
    )
    spans = blocks[0].payload.elements
    assert isinstance(spans[0], UnknownSpan) and spans[0].kind == "reminder"
    markdown, _ = render_blocks("t", blocks)
    assert markdown == "$x$\n"


def test_empty_image_token_and_link_url_are_kept():
    blocks = block_parser.parse_blocks(
        [
            {"block_id": "i", "block_type": 27, "image": {"token": ""}},
            {
                "block_id": "t",
                "block_type": 2,
                "text": {"elements": [{"text_run": {"content": "l", "text_element_style": {"link": {"url": ""}}}}]},
            },
        ]
    )
    assert blocks[0].payload == ImagePayload(token="")
    assert blocks[1].payload.elements[0].style.link == ""


def test_malformed_merge_info_raises():
    with pytest.raises(ValueError):
        block_parser.parse_blocks(
            [
                {
                    "block_id": "tbl",
                    "block_type": 31,
                    "table": {"cells": ["c"], "property": {"row_size": 1, "column_size": 1, "merge_info": ["1x1"]}},
                }
            ]
        )
