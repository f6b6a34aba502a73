from __future__ import annotations
from typing import List


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance (single-char insert / delete / substitute)."""
    rows = len(a) + 1
    cols = len(b) + 1
    table: List[List[int]] = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        table[i][0] = i
    for j in range(cols):
        table[0][j] = j
    for i in range(1, rows):
        for j in range(1, cols):
            if a[i - 1] == b[j - 1]:
                table[i][j] = table[i - 1][j - 1]
            else:
                table[i][j] = min(
                    table[i - 1][j - 1],  # substitution
                    table[i][j - 1],      # insertion
                    table[i - 1][j],      # deletion
                ) + 1
    return table[rows - 1][cols - 1]


def similarity(a: str, b: str) -> float:
    """1 - distance / longer length, in [0, 1]. Two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - edit_distance(a, b) / longest
