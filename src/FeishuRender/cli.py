from __future__ import annotations

import argparse
import logging
from pathlib import Path

from . import block_parser, preview, renderer_markdown
from .utils import (
    DEFAULT_IMAGE_URL,
    configure_logging,
    ensure_supported_type,
    image_url_template,
    parse_document_url,
    read_text,
    replace_image_tokens,
    resolve_output_path,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feishu-render",
        description="Convert a fetched Feishu/Lark docx block dump (JSON or YAML) into Markdown.",
    )
    parser.add_argument("input", type=str, help="Path to the document dump")
    parser.add_argument("-o", "--output", type=str, help="Output Markdown path")
    parser.add_argument(
        "--image-url",
        type=str,
        default=DEFAULT_IMAGE_URL,
        help="Template for image URLs, '{token}' is replaced by the image token",
    )
    parser.add_argument("--source-url", type=str, help="Link the dump was fetched from")
    parser.add_argument("--html", action="store_true", help="Also write an HTML preview next to the output")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")
    output_path = resolve_output_path(input_path, args.output)

    if args.source_url:
        doc_type, token = parse_document_url(args.source_url)
        ensure_supported_type(doc_type)
        logging.debug("Source is a %s document, token %s", doc_type, token)

    logging.info("Reading %s", input_path)
    document, blocks = block_parser.load_document(read_text(input_path))
    logging.debug("Loaded %d blocks", len(blocks))

    logging.info("Rendering %s", document.title or document.document_id)
    result = renderer_markdown.render_document(document, blocks)
    markdown = replace_image_tokens(result.markdown, result.image_tokens, image_url_template(args.image_url))
    logging.debug("Rewrote %d image tokens", len(result.image_tokens))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(markdown, encoding="utf-8")
    logging.info("Done. Saved to %s", output_path)

    if args.html:
        html_path = output_path.with_suffix(".html")
        html_path.write_text(preview.render_html(markdown, title=result.title), encoding="utf-8")
        logging.info("Preview saved to %s", html_path)


if __name__ == "__main__":
    main()
