"""Keyword prefilter for signature matching.

Each signature axis (client, OS, device class) carries a list of keywords.
A signature that references a keyword can only match input that contains
that keyword, so finding the keywords first lets the matcher skip most
regex evaluations.
"""

from __future__ import annotations

from collections.abc import Iterable

# Keywords are bucketed by up to this many leading characters
PREFIX_LENGTH = 3


class WordDetector:
    """Case-insensitive substring index of keyword -> keyword id.

    The index is filled with :meth:`add_word` during construction and is
    read-only afterwards, so a single instance can be shared between
    concurrent classifications.
    """

    def __init__(self) -> None:
        self._buckets: dict[str, list[tuple[int, str]]] = {}
        self._prefix_lengths: list[int] = []
        self._size = 0

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[tuple[int, str]],
        used_ids: Iterable[int],
    ) -> WordDetector:
        """Build a detector from ``(id, word)`` rows.

        Only rows whose id is in *used_ids* are indexed; id 0 means "no
        keyword requirement" and is never indexed.
        """
        wanted = {word_id for word_id in used_ids if word_id}
        detector = cls()
        for word_id, word in rows:
            if word_id in wanted:
                detector.add_word(word_id, word)
        return detector

    def add_word(self, word_id: int, word: str) -> None:
        word = word.lower()
        if not word:
            return
        prefix = word[:PREFIX_LENGTH]
        self._buckets.setdefault(prefix, []).append((word_id, word))
        if len(prefix) not in self._prefix_lengths:
            self._prefix_lengths.append(len(prefix))
            self._prefix_lengths.sort()
        self._size += 1

    def __len__(self) -> int:
        return self._size

    def find_words(self, text: str) -> frozenset[int]:
        """Return the ids of all indexed keywords occurring in *text*.

        The text is scanned once; at each position only the keywords that
        share its leading characters are compared.
        """
        if not self._size or not text:
            return frozenset()

        text = text.lower()
        found: set[int] = set()
        for pos in range(len(text)):
            for length in self._prefix_lengths:
                bucket = self._buckets.get(text[pos:pos + length])
                if bucket is None:
                    continue
                for word_id, word in bucket:
                    if word_id not in found and text.startswith(word, pos):
                        found.add(word_id)
        return frozenset(found)
