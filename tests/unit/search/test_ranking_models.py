from __future__ import annotations

import pytest

from doc_index.index import RankingModel, analyze, stem, tokenize
from doc_index.index.search import ScoringDocument, field_stats, rank


def _docs(*items: tuple[str, str, str]) -> list[ScoringDocument]:
    return [
        ScoringDocument(
            doc_ref=position,
            path=path,
            fields={"content": field_stats(content), "title": field_stats(title)},
        )
        for position, (path, content, title) in enumerate(items)
    ]


def test_tokenize_lowercases_and_analyze_drops_stop_words() -> None:
    assert tokenize("The Quick_Fox, 42!") == ["the", "quick_fox", "42"]
    assert analyze("The cats of the dogs") == ["cat", "dog"]


def test_inflected_forms_share_one_stem() -> None:
    assert analyze("indexing indexed indexes") == ["index", "index", "index"]
    assert stem("running") == "run"


@pytest.mark.parametrize("model", [RankingModel.OKAPI_BM25, RankingModel.VECTOR_SPACE])
def test_query_matches_other_inflections(model: RankingModel) -> None:
    docs = _docs(("/a.txt", "documents were indexed nightly", ""), ("/b.txt", "plain notes", ""))

    hits = rank(docs, "Indexing", ("content",), model, top_k=10)

    assert [docs[hit.doc_ref].path for hit in hits] == ["/a.txt"]


@pytest.mark.parametrize("model", [RankingModel.OKAPI_BM25, RankingModel.VECTOR_SPACE])
def test_more_matching_terms_rank_higher(model: RankingModel) -> None:
    docs = _docs(
        ("/b.txt", "apple cherry", ""),
        ("/a.txt", "apple apple banana", ""),
        ("/c.txt", "cherry", ""),
    )

    hits = rank(docs, "apple", ("content", "title"), model, top_k=10)

    assert [docs[hit.doc_ref].path for hit in hits] == ["/a.txt", "/b.txt"]
    assert hits[0].score > hits[1].score > 0


@pytest.mark.parametrize("model", [RankingModel.OKAPI_BM25, RankingModel.VECTOR_SPACE])
def test_equal_scores_break_ties_by_path(model: RankingModel) -> None:
    docs = _docs(("/z.txt", "pear", ""), ("/m.txt", "pear", ""), ("/a.txt", "pear", ""))

    hits = rank(docs, "pear", ("content",), model, top_k=10)

    assert [docs[hit.doc_ref].path for hit in hits] == ["/a.txt", "/m.txt", "/z.txt"]


def test_title_field_contributes_to_score() -> None:
    docs = _docs(("/a.txt", "orchard notes", "Orchard"), ("/b.txt", "orchard notes", "Notes"))

    hits = rank(docs, "orchard", ("content", "title"), RankingModel.OKAPI_BM25, top_k=10)
    content_only = rank(docs, "orchard", ("content",), RankingModel.OKAPI_BM25, top_k=10)

    assert docs[hits[0].doc_ref].path == "/a.txt"
    assert hits[0].score > hits[1].score
    assert content_only[0].score == content_only[1].score


def test_top_k_limits_results() -> None:
    docs = _docs(*[(f"/{index}.txt", "plum", "") for index in range(5)])

    assert len(rank(docs, "plum", ("content",), RankingModel.OKAPI_BM25, top_k=2)) == 2
    assert rank(docs, "plum", ("content",), RankingModel.OKAPI_BM25, top_k=0) == []


def test_stop_word_only_or_unknown_queries_return_nothing() -> None:
    docs = _docs(("/a.txt", "the quick fox", ""))

    assert rank(docs, "the of and", ("content",), RankingModel.VECTOR_SPACE, top_k=5) == []
    assert rank(docs, "zebra", ("content",), RankingModel.VECTOR_SPACE, top_k=5) == []
    assert rank([], "fox", ("content",), RankingModel.VECTOR_SPACE, top_k=5) == []


def test_ranking_model_tokens_and_labels() -> None:
    assert RankingModel.from_token("vs") is RankingModel.VECTOR_SPACE
    assert RankingModel.from_token(" OK ") is RankingModel.OKAPI_BM25
    assert RankingModel.VECTOR_SPACE.label == "Vector Space"
    assert RankingModel.OKAPI_BM25.label == "Okapi BM25"
    with pytest.raises(ValueError):
        RankingModel.from_token("TFIDF")
