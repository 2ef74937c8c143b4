"""Documentation question-answering assistant built on retrieval-augmented generation."""

__version__ = "1.0.0"
