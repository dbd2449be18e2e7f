
# --- Utility Functions ---
import re
from typing import List

# Split after paragraph breaks, line breaks and sentence-ending punctuation,
# swallowing any whitespace that follows the split point.
SENTENCE_BOUNDARY = re.compile(r"(?:\n\n|\n|(?<=[.?!]))\s*")

CHUNK_DELIMITER = "\n---\n"


def split_sentences(text: str) -> List[str]:
    """Split text into stripped, non-blank sentences in document order."""
    if not text:
        return []
    return [s.strip() for s in SENTENCE_BOUNDARY.split(text) if s.strip()]


def chunk_file_content(text: str, max_chunk_size: int = 500) -> List[str]:
    """
    Pack consecutive sentences into chunks of at most max_chunk_size characters.

    The limit is soft: a single sentence longer than max_chunk_size becomes a
    chunk of its own rather than being cut.
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")
    if not text:
        return []

    chunks = []
    current_chunk = ""
    for sentence in split_sentences(text):
        if current_chunk and len(current_chunk) + 1 + len(sentence) > max_chunk_size:
            chunks.append(current_chunk)
            current_chunk = sentence
        elif current_chunk:
            current_chunk = f"{current_chunk} {sentence}"
        else:
            current_chunk = sentence
    if current_chunk:
        chunks.append(current_chunk)
    return chunks


def build_context(chunks: List[str]) -> str:
    return CHUNK_DELIMITER.join(chunks)


def build_system_prompt(context: str) -> str:
    """Grounding instruction that confines the model to the file content."""
    return (
        "You are a helpful and accurate Q&A system. Your sole task is to answer the "
        "user's question ONLY using the provided file content delimited by "
        '"FILE CONTENT START" and "FILE CONTENT END".\n\n'
        "RULES:\n"
        "1. If the answer is not found in the file content, state clearly that the "
        "information is not available in the document. Do NOT use external knowledge.\n"
        "2. Keep the answer concise and factual.\n\n"
        f"FILE CONTENT START\n{context}\nFILE CONTENT END"
    )


def preview(text: str, limit: int = 50) -> str:
    """Shorten text for log lines."""
    text = " ".join(text.split())
    return text[:limit] + ("..." if len(text) > limit else "")
