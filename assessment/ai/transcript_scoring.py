"""
Transcript Scoring

Scores a speaking transcript against the prompt the student was asked to
read aloud. Word order matters, so the longest common subsequence carries
most of the weight; a term-frequency cosine and a vocabulary coverage term
smooth it, and surplus or missing words are penalised.

    ratio = 0.5 * lcs/ref + 0.3 * cosine + 0.2 * coverage
            - min(1, 0.5 * extra + 0.5 * missing)

The ratio is clamped to [0, 1] and scaled to 0..100.
"""

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

_NON_LETTERS = re.compile(r"[^a-z\s]")


def normalize_words(text: str) -> List[str]:
    """Lower-case, strip everything but letters, split on whitespace."""
    cleaned = _NON_LETTERS.sub(" ", (text or "").lower())
    return [w for w in cleaned.split() if w]


def _cosine(a: List[str], b: List[str]) -> float:
    tf_a, tf_b = Counter(a), Counter(b)
    dot = sum(tf_a[t] * tf_b[t] for t in tf_a.keys() & tf_b.keys())
    if dot == 0:
        return 0.0
    norm = math.sqrt(sum(v * v for v in tf_a.values())) * math.sqrt(sum(v * v for v in tf_b.values()))
    return dot / (norm or 1)


def _lcs_length(a: List[str], b: List[str]) -> int:
    # Two-row DP, O(len(a) * len(b)) time
    prev = [0] * (len(b) + 1)
    for word_a in a:
        cur = [0] * (len(b) + 1)
        for j, word_b in enumerate(b, start=1):
            if word_a == word_b:
                cur[j] = prev[j - 1] + 1
            else:
                cur[j] = max(prev[j], cur[j - 1])
        prev = cur
    return prev[-1]


def _match_tokens(raw_transcript: str, reference: List[str]) -> List[Dict[str, object]]:
    """Greedy in-order scan marking which spoken words follow the reference."""
    ref_idx = 0
    tokens = []
    for raw_word in raw_transcript.split():
        norm = normalize_words(raw_word)
        if not norm:
            tokens.append({"word": raw_word, "match": False})
            continue
        word = norm[0]
        while ref_idx < len(reference) and reference[ref_idx] != word:
            ref_idx += 1
        if ref_idx < len(reference):
            ref_idx += 1
            tokens.append({"word": raw_word, "match": True})
        else:
            tokens.append({"word": raw_word, "match": False})
    return tokens


@dataclass
class TranscriptScore:
    score: int
    reference_words: int
    lcs_length: int
    cosine: float
    vocab_coverage: float
    extra_ratio: float
    missing_ratio: float
    tokens: List[Dict[str, object]] = field(default_factory=list)

    def metrics(self) -> Dict[str, float]:
        return {
            "reference_words": self.reference_words,
            "lcs_length": self.lcs_length,
            "ordered_ratio": round(self.lcs_length / max(self.reference_words, 1), 4),
            "cosine": round(self.cosine, 4),
            "vocab_coverage": round(self.vocab_coverage, 4),
            "extra_ratio": round(self.extra_ratio, 4),
            "missing_ratio": round(self.missing_ratio, 4),
        }


def score_transcript(reference_text: str, transcript: str) -> TranscriptScore:
    reference = normalize_words(reference_text)
    spoken = normalize_words(transcript)
    total_ref = len(reference) or 1

    lcs = _lcs_length(reference, spoken)
    cosine = _cosine(reference, spoken)

    unique_ref = set(reference)
    coverage = len(set(spoken) & unique_ref) / max(len(unique_ref), 1)

    extra = max(len(spoken) - len(reference), 0) / total_ref
    missing = max(len(reference) - lcs, 0) / total_ref

    base = 0.5 * (lcs / total_ref) + 0.3 * cosine + 0.2 * coverage
    penalty = min(1.0, 0.5 * extra + 0.5 * missing)
    ratio = max(0.0, min(1.0, base - penalty))

    return TranscriptScore(
        # Round half up
        score=int(math.floor(ratio * 100 + 0.5)),
        reference_words=len(reference),
        lcs_length=lcs,
        cosine=cosine,
        vocab_coverage=coverage,
        extra_ratio=extra,
        missing_ratio=missing,
        tokens=_match_tokens(transcript or "", reference),
    )
