"""
Text Chunking

Recursive character splitter used when building the vector index:
split on the coarsest separator that keeps pieces under chunk_size,
then pack pieces into overlapping chunks.
"""

from typing import List, Sequence

DEFAULT_SEPARATORS = ("\n\n", "\n", ". ", "! ", "? ", ", ", " ")


def _split_pieces(text: str, chunk_size: int, separators: Sequence[str]) -> List[str]:
    if len(text) <= chunk_size:
        return [text]
    for index, separator in enumerate(separators):
        if separator in text:
            parts = text.split(separator)
            pieces: List[str] = []
            for i, part in enumerate(parts):
                # Keep the separator attached so rejoining is lossless
                piece = part + separator if i < len(parts) - 1 else part
                if not piece:
                    continue
                if len(piece) > chunk_size:
                    pieces.extend(_split_pieces(piece, chunk_size, separators[index + 1:]))
                else:
                    pieces.append(piece)
            return pieces
    # No separator left: hard cut
    return [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]


def split_text(
    text: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
    separators: Sequence[str] = DEFAULT_SEPARATORS,
) -> List[str]:
    """
    Split text into chunks of at most chunk_size characters.

    Consecutive chunks share up to chunk_overlap trailing characters
    worth of whole pieces.
    """
    if chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be smaller than chunk_size")
    text = text.strip()
    if not text:
        return []

    chunks: List[str] = []
    current: List[str] = []
    current_len = 0
    for piece in _split_pieces(text, chunk_size, separators):
        if current and current_len + len(piece) > chunk_size:
            chunks.append("".join(current).strip())
            # Carry trailing pieces forward as overlap
            while current and (current_len > chunk_overlap or current_len + len(piece) > chunk_size):
                current_len -= len(current.pop(0))
        current.append(piece)
        current_len += len(piece)
    if current:
        chunks.append("".join(current).strip())
    return [chunk for chunk in chunks if chunk]
