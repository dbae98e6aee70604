"""
Search tests - tech stack isolation, limit bound, ranking order and determinism.
"""

import numpy as np
import pytest

from fixstore.core.errors import DimensionMismatchError, ValidationError

from helpers import DIMENSION, TECH_STACK, make_embedding, make_fix, unit_vector


@pytest.fixture
def seeded_repo(repo):
    """Repository holding two next.js fixes and one react fix."""
    repo.insert(make_fix(id="error-1", success_rate=0.9))
    repo.insert(make_fix(id="error-2", success_rate=0.7))
    repo.insert(make_fix(id="error-3", tech_stack="react@18+javascript", success_rate=0.8))
    return repo


class TestTechStackFilter:
    """Only records with the exact tech stack are candidates."""

    def test_filters_by_tech_stack(self, seeded_repo):
        """Test that results all share the query tech stack."""
        results = seeded_repo.search(make_embedding(), TECH_STACK, 10)

        assert len(results) == 2
        assert all(r.tech_stack == TECH_STACK for r in results)

    def test_unknown_tech_stack_returns_empty(self, seeded_repo):
        """Test that a tech stack with no records yields an empty list, not an error."""
        assert seeded_repo.search(make_embedding(), "vue@3+typescript", 10) == []

    def test_semantically_close_other_version_is_excluded(self, repo):
        """Test that an identical embedding under another version is not returned."""
        repo.insert(make_fix(id="v13", tech_stack="next.js@13+typescript", embedding=unit_vector(0)))

        assert repo.search(unit_vector(0), TECH_STACK, 5) == []

    def test_empty_store_returns_empty(self, repo):
        """Test searching before anything is inserted."""
        assert repo.search(make_embedding(), TECH_STACK, 5) == []


class TestLimit:
    """search returns exactly min(limit, candidate count) records."""

    def test_limit_truncates(self, seeded_repo):
        """Test that limit=1 returns the single best record."""
        results = seeded_repo.search(make_embedding(), TECH_STACK, 1)

        assert len(results) == 1
        assert results[0].id == "error-1"

    @pytest.mark.parametrize("limit,expected", [(1, 1), (3, 3), (5, 5), (8, 5), (100, 5)])
    def test_returns_min_of_limit_and_candidates(self, repo, limit, expected):
        """Test the limit bound across candidate counts."""
        for i in range(5):
            repo.insert(make_fix(id=f"fix-{i}", success_rate=i / 10))

        assert len(repo.search(make_embedding(), TECH_STACK, limit)) == expected

    @pytest.mark.parametrize("limit", [0, -1, 2.5, "5", True])
    def test_invalid_limit_raises(self, seeded_repo, limit):
        """Test that non-positive or non-integer limits are rejected."""
        with pytest.raises(ValidationError):
            seeded_repo.search(make_embedding(), TECH_STACK, limit)

    def test_default_limit_from_config(self, repo, monkeypatch):
        """Test that omitting limit uses FIXSTORE_DEFAULT_SEARCH_LIMIT."""
        monkeypatch.setenv("FIXSTORE_DEFAULT_SEARCH_LIMIT", "2")
        for i in range(4):
            repo.insert(make_fix(id=f"fix-{i}"))

        assert len(repo.search(make_embedding(), TECH_STACK)) == 2

    @pytest.mark.parametrize("limit", [np.int64(1), np.int32(1), np.uint8(1)])
    def test_numpy_integer_limit_is_accepted(self, seeded_repo, limit):
        results = seeded_repo.search(make_embedding(), TECH_STACK, limit)
        assert [r.id for r in results] == ["error-1"]

    def test_malformed_default_limit_raises_validation_error(self, seeded_repo, monkeypatch, fixstore_caplog):
        """Test that a bad FIXSTORE_DEFAULT_SEARCH_LIMIT is rejected and logged."""
        monkeypatch.setenv("FIXSTORE_DEFAULT_SEARCH_LIMIT", "five")
        with pytest.raises(ValidationError):
            seeded_repo.search(make_embedding(), TECH_STACK)
        assert "validation.error" in fixstore_caplog.text


class TestRankingOrder:
    """Success rate is the primary ordering key."""

    def test_sorted_by_success_rate_descending(self, repo):
        """Test s1 > s2 > s3 comes back in that order regardless of insert order."""
        repo.insert(make_fix(id="low", success_rate=0.2))
        repo.insert(make_fix(id="high", success_rate=0.95))
        repo.insert(make_fix(id="mid", success_rate=0.6))

        results = repo.search(make_embedding(), TECH_STACK, 10)

        assert [r.id for r in results] == ["high", "mid", "low"]
        assert results[0].success_rate > results[1].success_rate > results[2].success_rate

    def test_success_rate_outranks_similarity(self, repo):
        """Test that a less similar but more reliable fix ranks first."""
        repo.insert(make_fix(id="similar", success_rate=0.4, embedding=unit_vector(0)))
        repo.insert(make_fix(id="reliable", success_rate=0.8, embedding=unit_vector(1)))

        results = repo.search(unit_vector(0), TECH_STACK, 10)
        assert [r.id for r in results] == ["reliable", "similar"]

    def test_similarity_breaks_success_rate_ties(self, repo):
        """Test that equal success rates are ordered by similarity."""
        repo.insert(make_fix(id="far", success_rate=0.5, embedding=unit_vector(1)))
        repo.insert(make_fix(id="near", success_rate=0.5, embedding=unit_vector(0)))

        results = repo.search_scored(unit_vector(0), TECH_STACK, 10)

        assert [r.record.id for r in results] == ["near", "far"]
        assert results[0].similarity == pytest.approx(1.0)
        assert results[1].similarity == pytest.approx(0.0)

    def test_full_ties_are_ordered_by_id(self, repo):
        """Test that identical scores fall back to id order."""
        for fix_id in ["c", "a", "b"]:
            repo.insert(make_fix(id=fix_id))

        assert [r.id for r in repo.search(make_embedding(), TECH_STACK, 10)] == ["a", "b", "c"]

    def test_ranking_follows_feedback(self, repo):
        """Test that feedback changes the order of later searches."""
        repo.insert(make_fix(id="first", success_rate=0.51))
        repo.insert(make_fix(id="second", success_rate=0.5))

        repo.update_success_rate("first", False)

        assert [r.id for r in repo.search(make_embedding(), TECH_STACK, 10)] == ["second", "first"]


class TestMinSimilarity:
    """Optional similarity pre-filter."""

    def test_min_similarity_drops_unrelated_fixes(self, repo):
        """Test that candidates below the threshold are not surfaced."""
        repo.insert(make_fix(id="related", success_rate=0.3, embedding=unit_vector(0)))
        repo.insert(make_fix(id="unrelated", success_rate=0.9, embedding=unit_vector(1)))

        results = repo.search_scored(unit_vector(0), TECH_STACK, 10, min_similarity=0.5)
        assert [r.record.id for r in results] == ["related"]

    def test_min_similarity_from_environment(self, repo, monkeypatch):
        """Test that FIXSTORE_MIN_SIMILARITY applies to plain searches."""
        monkeypatch.setenv("FIXSTORE_MIN_SIMILARITY", "0.5")
        repo.insert(make_fix(id="related", embedding=unit_vector(0)))
        repo.insert(make_fix(id="unrelated", embedding=unit_vector(1)))

        assert [r.id for r in repo.search(unit_vector(0), TECH_STACK, 10)] == ["related"]

    def test_no_threshold_by_default(self, repo, monkeypatch):
        """Test that every tech stack candidate is eligible without a threshold."""
        monkeypatch.delenv("FIXSTORE_MIN_SIMILARITY", raising=False)
        repo.insert(make_fix(id="opposite", embedding=[-x for x in unit_vector(0)]))

        assert [r.id for r in repo.search(unit_vector(0), TECH_STACK, 10)] == ["opposite"]

    @pytest.mark.parametrize("threshold", [float("nan"), 1.5, -2.0, "0.5", True])
    def test_invalid_threshold_raises(self, seeded_repo, threshold):
        """Test that thresholds outside [-1, 1], NaN included, are rejected."""
        with pytest.raises(ValidationError):
            seeded_repo.search_scored(make_embedding(), TECH_STACK, 5, min_similarity=threshold)

    @pytest.mark.parametrize("raw", ["nan", "2", "high"])
    def test_invalid_threshold_from_environment_raises(self, seeded_repo, monkeypatch, raw):
        monkeypatch.setenv("FIXSTORE_MIN_SIMILARITY", raw)
        with pytest.raises(ValidationError):
            seeded_repo.search(make_embedding(), TECH_STACK, 5)

    def test_numpy_threshold_is_accepted(self, repo):
        repo.insert(make_fix(id="related", embedding=unit_vector(0)))
        repo.insert(make_fix(id="unrelated", embedding=unit_vector(1)))

        results = repo.search_scored(unit_vector(0), TECH_STACK, 10, min_similarity=np.float32(0.5))
        assert [r.record.id for r in results] == ["related"]


class TestQueryValidation:
    """Query embeddings are checked before storage is touched."""

    def test_wrong_dimension_raises(self, seeded_repo):
        """Test that a shorter query fails fast."""
        with pytest.raises(DimensionMismatchError) as exc_info:
            seeded_repo.search(make_embedding(dimension=DIMENSION - 1), TECH_STACK, 5)
        assert exc_info.value.expected == DIMENSION
        assert exc_info.value.actual == DIMENSION - 1

    def test_wrong_dimension_raises_without_candidates(self, repo):
        """Test that the dimension check does not depend on stored data."""
        with pytest.raises(DimensionMismatchError):
            repo.search(make_embedding(dimension=DIMENSION + 3), "vue@3+typescript", 5)

    @pytest.mark.parametrize("bad_value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_query_raises(self, seeded_repo, bad_value):
        """Test that NaN and infinities are rejected."""
        query = make_embedding()
        query[2] = bad_value
        with pytest.raises(ValidationError):
            seeded_repo.search(query, TECH_STACK, 5)

    def test_numpy_query_is_accepted(self, seeded_repo):
        """Test that numpy arrays work as query embeddings."""
        import numpy as np

        results = seeded_repo.search(np.array(make_embedding(), dtype=np.float32), TECH_STACK, 5)
        assert len(results) == 2


def test_search_is_deterministic(seeded_repo):
    """Test that repeated identical searches return identical output."""
    query = make_embedding(seed=7)
    first = seeded_repo.search(query, TECH_STACK, 10)
    for _ in range(5):
        assert seeded_repo.search(query, TECH_STACK, 10) == first
