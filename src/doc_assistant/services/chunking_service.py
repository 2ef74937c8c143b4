"""Text chunking service for RAG ingestion."""

import re
from typing import List, Pattern, Sequence

from doc_assistant.models.document import Chunk, Document
from doc_assistant.utils.errors import ConfigurationError
from doc_assistant.utils.logging import get_logger

logger = get_logger("chunking_service")

# Split positions are zero-width, so joining the pieces of any level gives back
# the input unchanged. Ordered from most to least semantically coherent.
SEPARATORS: Sequence[Pattern[str]] = (
    # paragraph break: split before a blank-line run
    re.compile(r"(?<!\n)(?=\n\n)"),
    # line break
    re.compile(r"(?=\n)"),
    # sentence end: punctuation stays with its sentence
    re.compile(r"(?<=[.!?;])(?=\s)|(?<=[。！？；])"),
    # whitespace run
    re.compile(r"(?<=\S)(?=\s)"),
)


def _split_at(text: str, pattern: Pattern[str]) -> List[str]:
    positions = sorted({m.start() for m in pattern.finditer(text)} - {0, len(text)})
    if not positions:
        return [text]
    bounds = [0, *positions, len(text)]
    return [text[start:end] for start, end in zip(bounds, bounds[1:])]


class Chunker:
    """
    Split text into overlapping, bounded-size chunks along semantic boundaries.

    Separators are tried in priority order: paragraph break, line break,
    sentence-ending punctuation, whitespace, and finally single characters.
    A finer separator is only used on pieces still longer than the budget.

    Chunk ``i > 0`` starts with the last ``min(overlap, len(chunk[i-1]))``
    characters of the previous chunk, so removing that prefix from every chunk
    but the first and concatenating reconstructs the input exactly.
    """

    def __init__(self, chunk_size: int, chunk_overlap: int):
        """
        Initialize the chunker.

        Args:
            chunk_size: Maximum characters per chunk (>= 1)
            chunk_overlap: Characters shared by adjacent chunks (0 <= overlap < chunk_size)

        Raises:
            ConfigurationError: If the bounds are invalid
        """
        if chunk_size < 1:
            raise ConfigurationError(
                "chunk_size must be >= 1", setting="CHUNK_SIZE", details={"chunk_size": chunk_size}
            )
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ConfigurationError(
                "chunk_overlap must be >= 0 and less than chunk_size",
                setting="CHUNK_OVERLAP",
                details={"chunk_size": chunk_size, "chunk_overlap": chunk_overlap},
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def split_text(self, text: str) -> List[str]:
        """
        Split text into an ordered list of chunk strings.

        Args:
            text: Input text

        Returns:
            Chunks, each at most ``chunk_size`` characters; empty for empty input
        """
        if not text:
            return []

        # New content per chunk must leave room for the overlap prefix.
        piece_limit = self.chunk_size - self.chunk_overlap
        pieces = self._split_pieces(text, piece_limit, level=0)
        return self._pack(pieces)

    def split_documents(self, documents: List[Document]) -> List[Chunk]:
        """
        Split documents into chunks carrying their parent's metadata.

        Each chunk's metadata is the parent metadata plus ``chunk_index``
        (0-based, dense per parent) and ``total_chunks``. A document that
        fails to split is logged and skipped.
        """
        chunks: List[Chunk] = []
        for doc in documents:
            if not doc.content.strip():
                logger.warning(f"Skipping empty document: {doc.source}")
                continue
            try:
                texts = self.split_text(doc.content)
            except Exception as e:
                logger.error(f"Failed to split document {doc.source}: {e}", exc_info=True)
                continue

            total = len(texts)
            chunks.extend(
                Chunk(
                    content=chunk_text,
                    metadata={**doc.metadata, "chunk_index": index, "total_chunks": total},
                )
                for index, chunk_text in enumerate(texts)
            )

        logger.info(
            f"Split {len(documents)} documents into {len(chunks)} chunks "
            f"(chunk_size={self.chunk_size}, overlap={self.chunk_overlap})"
        )
        return chunks

    def _split_pieces(self, text: str, limit: int, level: int) -> List[str]:
        if len(text) <= limit:
            return [text]

        if level >= len(SEPARATORS):
            # character level
            return [text[start : start + limit] for start in range(0, len(text), limit)]

        parts = _split_at(text, SEPARATORS[level])
        pieces: List[str] = []
        for part in parts:
            pieces.extend(self._split_pieces(part, limit, level + 1))
        return pieces

    def _pack(self, pieces: List[str]) -> List[str]:
        chunks: List[str] = []
        prefix = ""
        body = ""
        for piece in pieces:
            if body and len(prefix) + len(body) + len(piece) > self.chunk_size:
                chunk = prefix + body
                chunks.append(chunk)
                shared = min(self.chunk_overlap, len(chunk))
                prefix = chunk[len(chunk) - shared :]
                body = ""
            body += piece

        if body:
            chunks.append(prefix + body)
        return chunks


def split_text(text: str, max_size: int, overlap: int) -> List[str]:
    """Split text with a one-off :class:`Chunker`."""
    return Chunker(max_size, overlap).split_text(text)
