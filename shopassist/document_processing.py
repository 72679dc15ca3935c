"""Loading and chunking of knowledge-base documents for ingestion."""

from pathlib import Path

import pypdf

from .config import config
from .models import DocumentChunk

logger = config.get_logger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".txt", ".md")


class DocumentLoader:
    """Reads the text of FAQ / policy documents from disk."""

    @staticmethod
    def load_pdf(file_path: Path) -> str:
        """Extract the text of every page of a PDF.

        Returns:
            Page texts joined by blank lines.
        """
        try:
            with file_path.open("rb") as file:
                reader = pypdf.PdfReader(file)
                pages = [page.extract_text() or "" for page in reader.pages]
        except Exception:
            logger.exception("Error loading PDF %s", file_path)
            raise
        return "\n\n".join(page.strip() for page in pages if page.strip())

    @staticmethod
    def load_text(file_path: Path) -> str:
        try:
            return file_path.read_text(encoding="utf-8")
        except Exception:
            logger.exception("Error loading text file %s", file_path)
            raise

    @classmethod
    def load_document(cls, file_path: Path) -> str:
        """Load a document based on its file extension.

        Raises:
            ValueError: If the file type is not supported.

        Returns:
            The text content of the document.
        """
        file_ext = file_path.suffix.lower()
        if file_ext == ".pdf":
            return cls.load_pdf(file_path)
        if file_ext in SUPPORTED_EXTENSIONS:
            return cls.load_text(file_path)
        msg = f"Unsupported file type: {file_ext}"
        raise ValueError(msg)


class TextChunker:
    """Fixed-length chunking with overlap that avoids cutting words."""

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        """Initialize the chunker.

        Raises:
            ValueError: If overlap is not smaller than chunk size.
        """
        if overlap >= chunk_size:
            msg = f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
            raise ValueError(msg)
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk_text(
        self,
        text: str,
        source: str = "document",
        topic: str | None = None,
    ) -> list[DocumentChunk]:
        """Split text into overlapping chunks.

        Args:
            text: Full document text.
            source: Name recorded in each chunk's metadata.
            topic: Optional topic shown as the source title in answers.

        Returns:
            Non-empty chunks in document order.
        """
        chunks: list[DocumentChunk] = []
        start = 0

        while start < len(text):
            end = start + self.chunk_size
            piece = text[start:end]

            # Back off to the last space unless the chunk would shrink below half
            if end < len(text) and not piece.endswith(" "):
                last_space = piece.rfind(" ")
                if last_space > self.chunk_size // 2:
                    end = start + last_space
                    piece = text[start:end]

            if piece.strip():
                metadata = {
                    "source": source,
                    "chunk_id": len(chunks),
                    "start_char": start,
                    "end_char": end,
                }
                if topic:
                    metadata["topic"] = topic
                chunks.append(DocumentChunk(content=piece.strip(), metadata=metadata))

            if end >= len(text):
                break
            start = max(end - self.overlap, start + 1)

        logger.info("Text from %s split into %d chunks", source, len(chunks))
        return chunks
