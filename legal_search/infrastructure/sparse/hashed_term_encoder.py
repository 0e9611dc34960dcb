"""Query-side sparse encoder: hashed term indices with log-scaled term frequency.

Must stay in sync with the ingestion pipeline's sparse vectors (same
normalisation, same hash and hash space), otherwise sparse scores are noise.
"""

from __future__ import annotations

import math
import zlib
from collections import Counter

from legal_search.application.ports import SparseEncoderPort
from legal_search.domain.services.text_normalization import ARABIC_STOPWORDS, tokenize
from legal_search.domain.types import SparseVector

DEFAULT_HASH_SPACE = 2**20


class HashedTermEncoder(SparseEncoderPort):
    def __init__(
        self,
        hash_space: int = DEFAULT_HASH_SPACE,
        stopwords: frozenset[str] = ARABIC_STOPWORDS,
    ) -> None:
        if hash_space <= 0:
            raise ValueError("hash_space must be positive")
        self.hash_space = hash_space
        self.stopwords = stopwords

    def term_index(self, term: str) -> int:
        return zlib.crc32(term.encode("utf-8")) % self.hash_space

    def encode_query(self, text: str) -> SparseVector:
        weights: dict[int, float] = {}
        for term, tf in Counter(tokenize(text, self.stopwords)).items():
            idx = self.term_index(term)
            # hash collisions add up
            weights[idx] = weights.get(idx, 0.0) + 1.0 + math.log(tf)
        indices = tuple(sorted(weights))
        return SparseVector(indices=indices, values=tuple(weights[i] for i in indices))
