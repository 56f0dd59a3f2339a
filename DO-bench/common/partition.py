"""
Splits the logical chunk index space into per-call sub-ranges.
"""

from typing import Iterator, Tuple


def iter_sub_ranges(total_chunks: int, chunks_per_call: int) -> Iterator[Tuple[int, int]]:
    """Yield contiguous ``(start, end)`` pairs covering ``[0, total_chunks)``.

    ``end`` is exclusive. Every pair spans ``chunks_per_call`` indexes except
    the last one, which is truncated at ``total_chunks``.

    Args:
        total_chunks: Size of the logical index space
        chunks_per_call: Chunks sent in a single call

    Raises:
        ValueError: If either argument is not positive
    """
    if total_chunks <= 0:
        raise ValueError(f"total_chunks must be positive, got {total_chunks}")
    if chunks_per_call <= 0:
        raise ValueError(f"chunks_per_call must be positive, got {chunks_per_call}")

    for start in range(0, total_chunks, chunks_per_call):
        yield start, min(start + chunks_per_call, total_chunks)


def count_sub_ranges(total_chunks: int, chunks_per_call: int) -> int:
    """Number of pairs iter_sub_ranges yields for the same arguments."""
    return -(-total_chunks // chunks_per_call)
