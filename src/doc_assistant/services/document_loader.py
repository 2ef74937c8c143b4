"""Documentation loading service."""

import re
from pathlib import Path
from typing import Iterable, List, Optional

from markdown_it import MarkdownIt
from markdown_it.token import Token

from doc_assistant.models.document import Document
from doc_assistant.utils.errors import ConfigurationError, DocumentLoadError
from doc_assistant.utils.logging import get_logger, log_event

logger = get_logger("document_loader")

_ENCODINGS = ("utf-8", "cp1252", "latin-1")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
MARKDOWN_TYPES = frozenset({"md", "markdown"})

_markdown = MarkdownIt("commonmark")


def _inline_text(token: Token) -> str:
    parts: List[str] = []
    for child in token.children or []:
        if child.type in ("text", "code_inline"):
            parts.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            parts.append("\n")
        elif child.type == "image":
            parts.append(_inline_text(child))
    return "".join(parts)


def markdown_to_text(source: str) -> str:
    """
    Render Markdown to plain text.

    Headings, paragraphs, list items and code blocks each become one block of
    text separated by a blank line. Emphasis and link markup are dropped but
    their text is kept; link targets and raw HTML are dropped. Image alt text
    is kept.
    """
    blocks: List[str] = []
    for token in _markdown.parse(source):
        if token.type == "inline":
            text = _inline_text(token)
        elif token.type in ("fence", "code_block"):
            text = token.content.rstrip("\n")
        else:
            continue
        if text.strip():
            blocks.append(text)
    return "\n\n".join(blocks)


class DocumentLoader:
    """
    Load documentation files from a directory tree.

    Files are discovered recursively by extension and read as text; Markdown
    files are reduced to plain text. Each document carries its path relative
    to the root as ``source`` and the relative directory as ``category``
    (``root`` for top-level files).
    """

    def __init__(self, docs_path: Path, file_types: Optional[Iterable[str]] = None):
        self.docs_path = Path(docs_path)
        self.file_types = [ft.lower().lstrip(".") for ft in (file_types or ["md"])]

    def find_files(self) -> List[Path]:
        """Find documentation files under the root, sorted by path."""
        if not self.docs_path.is_dir():
            raise ConfigurationError(
                f"Documentation path does not exist: {self.docs_path}", setting="DOCS_PATH"
            )
        return sorted(
            path
            for path in self.docs_path.rglob("*")
            if path.is_file() and path.suffix.lower().lstrip(".") in self.file_types
        )

    def load_file(self, path: Path) -> Document:
        """
        Load a single file into a Document.

        Raises:
            DocumentLoadError: If the file cannot be read or decoded, or is empty
        """
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise DocumentLoadError(f"Failed to read file: {e}", path=str(path)) from e

        text = self._decode(raw, path)
        if text.startswith("\ufeff"):
            text = text[1:]
        text = text.replace("\r\n", "\n")
        if path.suffix.lower().lstrip(".") in MARKDOWN_TYPES:
            text = markdown_to_text(text)
        text = _EXCESS_NEWLINES.sub("\n\n", text).strip()
        if not text:
            raise DocumentLoadError("File is empty", path=str(path))

        relative = path.relative_to(self.docs_path)
        category = relative.parent.as_posix()
        return Document(
            content=text,
            metadata={
                "source": relative.as_posix(),
                "file_path": str(path),
                "file_name": path.name,
                "category": "root" if category == "." else category,
            },
        )

    def load_all_documents(self) -> List[Document]:
        """
        Load every documentation file under the root.

        A file that fails to load is logged and skipped.

        Raises:
            ConfigurationError: If the documentation root does not exist
        """
        documents: List[Document] = []
        files = self.find_files()
        for path in files:
            try:
                documents.append(self.load_file(path))
            except DocumentLoadError as e:
                logger.warning(f"Skipping {path}: {e.message}")

        log_event(logger, "Documents loaded", docs_path=self.docs_path, loaded=len(documents), found=len(files))
        return documents

    @staticmethod
    def _decode(raw: bytes, path: Path) -> str:
        for encoding in _ENCODINGS:
            try:
                return raw.decode(encoding)
            except UnicodeDecodeError:
                continue
        raise DocumentLoadError("Failed to decode file. Unsupported encoding.", path=str(path))
