from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Iterable, Optional
from urllib.parse import unquote

DOCUMENT_URL_PATTERN = re.compile(r"^https://[\w\-.]+/(docs|docx|wiki)/([a-zA-Z0-9]+)")
DEFAULT_IMAGE_URL = "/api/image/{token}"


def configure_logging(verbose: bool = False) -> None:
    """Configure a simple console logger."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(message)s",
    )


def resolve_output_path(input_path: Path, output: Optional[str]) -> Path:
    if output:
        out_path = Path(output)
        if out_path.is_dir():
            out_path = out_path / f"{input_path.stem}.md"
        return out_path
    return input_path.with_suffix(".md")


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def unescape_url(raw_url: str) -> str:
    """Percent-decode a URL, keeping the raw string when it is not valid UTF-8."""
    try:
        return unquote(raw_url, errors="strict")
    except UnicodeDecodeError:
        return raw_url


def parse_document_url(url: str) -> tuple[str, str]:
    """Split a Feishu/Lark document link into its type (docs, docx, wiki) and token."""
    match = DOCUMENT_URL_PATTERN.match(url)
    if not match:
        raise ValueError("Invalid feishu/larksuite document URL")
    return match.group(1), match.group(2)


def ensure_supported_type(doc_type: str) -> None:
    if doc_type == "docs":
        raise ValueError("Legacy 'docs' format is not supported, only 'docx' is supported")


def replace_image_tokens(
    markdown: str,
    tokens: Iterable[str],
    url_for: Callable[[str], str] | None = None,
) -> str:
    """Point each rendered image at a resolvable URL, one occurrence per token."""
    if url_for is None:
        url_for = image_url_template(DEFAULT_IMAGE_URL)
    for token in tokens:
        markdown = markdown.replace(f"![]({token})", f"![]({url_for(token)})", 1)
    return markdown


def image_url_template(template: str) -> Callable[[str], str]:
    return lambda token: template.format(token=token)
