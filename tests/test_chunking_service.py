import pytest

from doc_assistant.models.document import Document
from doc_assistant.services.chunking_service import Chunker, split_text
from doc_assistant.utils.errors import ConfigurationError


def reconstruct(chunks, overlap):
    text = chunks[0]
    for previous, chunk in zip(chunks, chunks[1:]):
        text += chunk[min(overlap, len(previous)) :]
    return text


def test_empty_text_produces_no_chunks():
    assert Chunker(100, 10).split_text("") == []


def test_short_text_is_a_single_chunk():
    assert Chunker(100, 10).split_text("Just one line.") == ["Just one line."]


def test_chunks_respect_size_and_reconstruct_input():
    text = " ".join(f"Sentence number {i} explains something." for i in range(60))
    chunks = Chunker(120, 15).split_text(text)
    assert len(chunks) > 1
    assert all(0 < len(c) <= 120 for c in chunks)
    assert reconstruct(chunks, 15) == text


def test_adjacent_chunks_share_overlap():
    text = "\n".join(f"Line {i} of the installation guide." for i in range(40))
    chunks = Chunker(100, 12).split_text(text)
    for previous, chunk in zip(chunks, chunks[1:]):
        assert chunk.startswith(previous[-12:])


def test_zero_overlap_chunks_concatenate_to_input():
    text = "word " * 300
    chunks = Chunker(50, 0).split_text(text)
    assert "".join(chunks) == text
    assert all(len(c) <= 50 for c in chunks)


def test_paragraph_boundaries_are_preferred():
    first = "The first paragraph talks about setup."
    second = "The second paragraph covers usage."
    chunks = Chunker(50, 0).split_text(f"{first}\n\n{second}")
    assert chunks[0] == first
    assert chunks[1].strip() == second


def test_sentence_boundaries_before_whitespace():
    text = "A. B. C."
    assert split_text(text, 5, 1) == ["A. B.", ". C."]


def test_unbroken_text_falls_back_to_characters():
    text = "x" * 25
    chunks = Chunker(10, 2).split_text(text)
    assert all(len(c) <= 10 for c in chunks)
    assert reconstruct(chunks, 2) == text


def test_cjk_sentence_punctuation_is_a_boundary():
    text = "第一句话。第二句话。第三句话。"
    chunks = Chunker(6, 0).split_text(text)
    assert chunks == ["第一句话。", "第二句话。", "第三句话。"]


@pytest.mark.parametrize("size, overlap", [(0, 0), (10, 10), (10, 11), (10, -1)])
def test_invalid_bounds_are_rejected(size, overlap):
    with pytest.raises(ConfigurationError):
        Chunker(size, overlap)


def test_split_documents_carries_metadata_and_indices():
    docs = [
        Document(content="Intro. " * 40, metadata={"source": "intro.md", "category": "root"}),
        Document(content="   ", metadata={"source": "blank.md"}),
        Document(content="Short doc.", metadata={"source": "guide/short.md", "category": "guide"}),
    ]
    chunks = Chunker(60, 10).split_documents(docs)

    intro = [c for c in chunks if c.source == "intro.md"]
    short = [c for c in chunks if c.source == "guide/short.md"]
    assert len(intro) > 1
    assert [c.chunk_index for c in intro] == list(range(len(intro)))
    assert all(c.metadata["total_chunks"] == len(intro) for c in intro)
    assert all(c.metadata["category"] == "root" for c in intro)
    assert len(short) == 1 and short[0].metadata["total_chunks"] == 1
    assert not [c for c in chunks if c.source == "blank.md"]
