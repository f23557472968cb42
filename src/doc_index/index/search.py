"""Deterministic term analysis and ranking over stored documents."""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass
from functools import lru_cache

from nltk.stem.porter import PorterStemmer

from doc_index.index.models import RankingModel

TOKEN_PATTERN = re.compile(r"[A-Za-z0-9_]+")
BM25_K1 = 1.2
BM25_B = 0.75
_STEMMER = PorterStemmer(mode=PorterStemmer.ORIGINAL_ALGORITHM)

ENGLISH_STOP_WORDS = frozenset(
    {
        "a",
        "an",
        "and",
        "are",
        "as",
        "at",
        "be",
        "but",
        "by",
        "for",
        "if",
        "in",
        "into",
        "is",
        "it",
        "no",
        "not",
        "of",
        "on",
        "or",
        "such",
        "that",
        "the",
        "their",
        "then",
        "there",
        "these",
        "they",
        "this",
        "to",
        "was",
        "will",
        "with",
    }
)


@dataclass(slots=True, frozen=True)
class FieldStats:
    """Term frequencies and token length for one field of one document."""

    term_counts: dict[str, int]
    length: int


@dataclass(slots=True, frozen=True)
class ScoringDocument:
    """Analyzed document view used by the scorers."""

    doc_ref: int
    path: str
    fields: dict[str, FieldStats]


@dataclass(slots=True, frozen=True)
class ScoredDocument:
    """Ranked hit referencing a document in the open searcher."""

    doc_ref: int
    score: float


def tokenize(text: str) -> list[str]:
    """Tokenize into deterministic lowercase alphanumeric terms."""
    return [match.group(0).lower() for match in TOKEN_PATTERN.finditer(text)]


@lru_cache(maxsize=65_536)
def stem(term: str) -> str:
    """Reduce a lowercase term to its Porter stem."""
    return _STEMMER.stem(term, to_lowercase=False)


def analyze(text: str) -> list[str]:
    """Tokenize, drop English stop words and Porter-stem the rest.

    Documents and queries share this analysis so inflected forms such as
    ``indexing`` and ``indexed`` meet on one term.
    """
    return [stem(term) for term in tokenize(text) if term not in ENGLISH_STOP_WORDS]


def field_stats(text: str) -> FieldStats:
    """Analyze a field value into term counts and length."""
    terms = analyze(text)
    return FieldStats(term_counts=dict(Counter(terms)), length=len(terms))


def rank(
    documents: list[ScoringDocument],
    query: str,
    fields: tuple[str, ...],
    model: RankingModel,
    top_k: int,
) -> list[ScoredDocument]:
    """Score documents across fields and return the top hits, ties by path."""
    terms = sorted(set(analyze(query)))
    if not terms or not documents or top_k < 1:
        return []

    total_docs = len(documents)
    scores = [0.0] * total_docs
    for name in fields:
        lengths = [_field(doc, name).length for doc in documents]
        doc_freq = {
            term: sum(1 for doc in documents if term in _field(doc, name).term_counts)
            for term in terms
        }
        if model is RankingModel.OKAPI_BM25:
            field_scores = _bm25_field(documents, name, terms, doc_freq, lengths)
        else:
            field_scores = _vector_space_field(documents, name, terms, doc_freq)
        for position, value in enumerate(field_scores):
            scores[position] += value

    hits = [
        (score, doc.path, ScoredDocument(doc_ref=doc.doc_ref, score=score))
        for doc, score in zip(documents, scores, strict=True)
        if score > 0
    ]
    hits.sort(key=lambda item: (-item[0], item[1]))
    return [hit for _, _, hit in hits[:top_k]]


def _field(doc: ScoringDocument, name: str) -> FieldStats:
    return doc.fields.get(name) or FieldStats(term_counts={}, length=0)


def _bm25_field(
    documents: list[ScoringDocument],
    name: str,
    terms: list[str],
    doc_freq: dict[str, int],
    lengths: list[int],
) -> list[float]:
    total_docs = len(documents)
    avgdl = sum(lengths) / total_docs if total_docs else 0.0
    if avgdl <= 0:
        return [0.0] * total_docs
    output: list[float] = []
    for doc, doc_len in zip(documents, lengths, strict=True):
        counts = _field(doc, name).term_counts
        score = 0.0
        for term in terms:
            tf = counts.get(term, 0)
            if tf == 0:
                continue
            n_qi = doc_freq.get(term, 0)
            idf = math.log(1.0 + ((total_docs - n_qi + 0.5) / (n_qi + 0.5)))
            denom = tf + BM25_K1 * (1.0 - BM25_B + BM25_B * (doc_len / avgdl))
            score += idf * ((tf * (BM25_K1 + 1.0)) / denom)
        output.append(score)
    return output


def _vector_space_field(
    documents: list[ScoringDocument],
    name: str,
    terms: list[str],
    doc_freq: dict[str, int],
) -> list[float]:
    """Classic TF-IDF: sqrt(tf) * idf^2 * length norm, scaled by query norm."""
    total_docs = len(documents)
    idf = {term: 1.0 + math.log(total_docs / (doc_freq.get(term, 0) + 1.0)) for term in terms}
    sum_of_squares = sum(value * value for value in idf.values())
    query_norm = 1.0 / math.sqrt(sum_of_squares) if sum_of_squares > 0 else 0.0
    output: list[float] = []
    for doc in documents:
        stats = _field(doc, name)
        if stats.length == 0:
            output.append(0.0)
            continue
        length_norm = 1.0 / math.sqrt(stats.length)
        score = 0.0
        for term in terms:
            tf = stats.term_counts.get(term, 0)
            if tf == 0:
                continue
            score += math.sqrt(tf) * idf[term] * idf[term] * length_norm
        output.append(score * query_norm)
    return output
