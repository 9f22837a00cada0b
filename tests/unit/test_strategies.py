"""
Unit tests for scan strategies.

Run with: pytest tests/unit/test_strategies.py -v
"""

import pytest

from jobsweep.client import ApiError
from jobsweep.strategies import (
    ALPHABET,
    STRATEGIES,
    AlphabetSweepStrategy,
    ExhaustiveScanStrategy,
    KeywordChunksStrategy,
    RecentFirstStrategy,
    ScanState,
    build_keyword_chunks,
    extract_records,
    get_strategy,
    matches_term,
)


class TestKeywordChunks:
    """Test suite for keyword chunk generation"""

    def test_odd_length_term(self):
        """Test 3-grams then halves, duplicate tail half removed"""
        assert build_keyword_chunks("abcde") == ["abc", "bcd", "cde", "ab"]

    def test_even_length_term(self):
        """Test both halves collapse onto existing 3-grams"""
        assert build_keyword_chunks("abcdef") == ["abc", "bcd", "cde", "def"]

    def test_short_term(self):
        """Test terms shorter than 3 characters yield only halves"""
        assert build_keyword_chunks("ab") == ["a", "b"]
        assert build_keyword_chunks("x") == ["x"]

    def test_case_preserved(self):
        assert build_keyword_chunks("Sales") == ["Sal", "ale", "les", "Sa"]


class TestMatching:
    """Test suite for the shared match predicate"""

    def test_name_match_case_insensitive(self):
        assert matches_term({"name": "Daily ORDERS load"}, "orders") is True

    def test_description_match(self):
        assert matches_term({"name": "job", "description": "Copies Orders to DWH"}, "ORDERS") is True

    def test_no_match(self):
        assert matches_term({"name": "users", "description": "accounts"}, "orders") is False

    def test_missing_fields_do_not_crash(self):
        assert matches_term({}, "orders") is False
        assert matches_term({"name": None, "description": None}, "orders") is False

    def test_extract_records(self):
        assert extract_records({"items": [{"id": 1}, "junk", {"id": 2}]}) == [{"id": 1}, {"id": 2}]
        assert extract_records({"items": None}) == []
        assert extract_records({"results": [{"id": 1}]}) == []
        assert extract_records(None) == []
        assert extract_records([{"id": 1}]) == []


class TestStrategyRegistry:
    """Test suite for strategy lookup"""

    def test_all_strategies_registered(self):
        assert set(STRATEGIES) == {"exhaustive_scan", "keyword_chunks", "alphabet_sweep", "recent_first"}

    def test_get_strategy_returns_fresh_instance(self):
        first = get_strategy("keyword_chunks")
        second = get_strategy("keyword_chunks")

        assert isinstance(first, KeywordChunksStrategy)
        assert first is not second

    def test_unknown_strategy(self):
        with pytest.raises(KeyError):
            get_strategy("binary_search")

    def test_fatal_error_policy(self):
        assert ExhaustiveScanStrategy.fatal_errors is True
        assert RecentFirstStrategy.fatal_errors is True
        assert KeywordChunksStrategy.fatal_errors is False
        assert AlphabetSweepStrategy.fatal_errors is False


class TestExhaustiveScan:
    """Test suite for cursor following"""

    def test_first_query_has_no_cursor(self):
        strategy = ExhaustiveScanStrategy()
        state = ScanState(search_term="x", max_batches=10)

        assert strategy.next_query(state) == {"limit": 100}

    def test_cursor_carried_forward(self):
        strategy = ExhaustiveScanStrategy()
        state = ScanState(search_term="x", max_batches=10)

        strategy.advance(state, {"items": [], "next_cursor": "p2"}, [])

        assert strategy.next_query(state) == {"limit": 100, "cursor": "p2"}
        assert strategy.should_continue(state) is True

    def test_missing_cursor_finishes(self):
        strategy = ExhaustiveScanStrategy()
        state = ScanState(search_term="x", max_batches=10)

        strategy.advance(state, {"items": [], "next_cursor": None}, [])

        assert state.finished is True
        assert strategy.should_continue(state) is False

    def test_error_is_fatal(self):
        strategy = ExhaustiveScanStrategy()
        state = ScanState(search_term="x", max_batches=10)

        strategy.on_error(state, ApiError("boom"))

        assert strategy.should_continue(state) is False
        assert state.failed_batches == 1


class TestQueryPlanStrategies:
    """Test suite for keyword_chunks and alphabet_sweep"""

    def test_alphabet_plan(self):
        strategy = AlphabetSweepStrategy()
        state = ScanState(search_term="anything", max_batches=50)
        strategy.start(state)

        assert strategy.plan == list("abcdefghijklmnopqrstuvwxyz0123456789")
        assert len(ALPHABET) == 36
        assert strategy.next_query(state) == {"name_contains": "a", "limit": 200}

    def test_plan_exhaustion(self):
        strategy = KeywordChunksStrategy()
        state = ScanState(search_term="abc", max_batches=50)
        strategy.start(state)

        queries = []
        while strategy.should_continue(state):
            queries.append(strategy.next_query(state))
            state.batches_searched += 1
            strategy.advance(state, {"items": []}, [])

        assert [q["name_contains"] for q in queries] == ["abc", "a", "bc"]

    def test_error_skips_to_next_value(self):
        strategy = KeywordChunksStrategy()
        state = ScanState(search_term="abcde", max_batches=50)
        strategy.start(state)

        strategy.on_error(state, ApiError("boom"))

        assert state.finished is False
        assert strategy.next_query(state)["name_contains"] == "bcd"

    def test_budget_limits_plan(self):
        strategy = AlphabetSweepStrategy()
        state = ScanState(search_term="x", max_batches=2, batches_searched=2)
        strategy.start(state)

        assert strategy.should_continue(state) is False


class TestRecentFirst:
    """Test suite for recent_first"""

    def test_query_has_no_sort_or_cursor(self):
        strategy = RecentFirstStrategy()
        state = ScanState(search_term="x", max_batches=3)

        assert strategy.next_query(state) == {"limit": 100}

    def test_empty_batch_finishes(self):
        strategy = RecentFirstStrategy()
        state = ScanState(search_term="x", max_batches=3)

        strategy.advance(state, {"items": [{"id": 1}]}, [{"id": 1}])
        assert state.finished is False

        strategy.advance(state, {"items": []}, [])
        assert state.finished is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
