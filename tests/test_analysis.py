"""Tests for the request-level analyzer and its item cache."""

from __future__ import annotations

import datetime as dt
import json
import logging
import threading

import numpy as np
import pytest

from orchestrator.analysis import (
    AnalysisRequest,
    ItemCache,
    TrendAnalyzer,
    get_item_cache,
    result_to_dict,
)
from trendmodel.errors import ItemNotFoundError
from trendmodel.integrator import constant_noise, uniform_noise
from trendmodel.types import Item, ModelVariant, Outlook, Trend

TODAY = dt.date(2026, 10, 18)


@pytest.fixture
def item():
    return Item(id="t1", title="Test", artist="Creator", popularity=80,
                release_year=TODAY.year, genres=("Pop",))


@pytest.fixture
def analyzer():
    return TrendAnalyzer(
        cache=ItemCache(),
        noise_factory=lambda variant: constant_noise(1.0),
        clock=lambda: TODAY,
    )


# ============================================================
# Cache
# ============================================================

class TestItemCache:

    def test_put_get(self, item):
        cache = ItemCache()
        assert cache.get("t1") is None
        cache.put("t1", item)
        assert cache.get("t1") is item
        assert "t1" in cache
        assert len(cache) == 1
        cache.clear()
        assert len(cache) == 0

    def test_concurrent_writers(self):
        cache = ItemCache()

        def writer(offset):
            for k in range(200):
                key = f"item-{offset}-{k}"
                cache.put(key, Item(id=key, title=key, artist="A", popularity=50))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(cache) == 1600
        assert cache.get("item-3-199").title == "item-3-199"

    def test_global_cache_is_shared(self):
        assert get_item_cache() is get_item_cache()


# ============================================================
# Request validation and item resolution
# ============================================================

class TestRequest:

    def test_variant_parsed(self):
        assert AnalysisRequest("x", variant="seir").variant == ModelVariant.SEIR

    def test_unknown_variant(self):
        with pytest.raises(ValueError, match="variant"):
            AnalysisRequest("x", variant="SIR")

    @pytest.mark.parametrize("field", ["prediction_days", "history_days"])
    def test_non_positive_days(self, field):
        with pytest.raises(ValueError, match=field):
            AnalysisRequest("x", **{field: 0})


class TestResolveItem:

    def test_unknown_id(self, analyzer, caplog):
        with caplog.at_level(logging.ERROR, logger="orchestrator.analysis"):
            with pytest.raises(ItemNotFoundError) as excinfo:
                analyzer.analyze(AnalysisRequest("missing"))
        assert excinfo.value.item_id == "missing"
        assert "search for the item again" in str(excinfo.value)
        assert "missing" in caplog.text

    def test_not_found_is_lookup_error(self, analyzer):
        with pytest.raises(LookupError):
            analyzer.resolve_item(AnalysisRequest("missing"))

    def test_payload_is_cached(self, analyzer, item):
        assert analyzer.resolve_item(AnalysisRequest("t1", item=item)) is item
        assert analyzer.resolve_item(AnalysisRequest("t1")) is item

    def test_payload_wins_over_cache(self, analyzer, item):
        stale = Item(id="t1", title="Old title", artist="Creator", popularity=10)
        analyzer.cache.put("t1", stale)
        assert analyzer.resolve_item(AnalysisRequest("t1", item=item)) is item
        assert analyzer.cache.get("t1") is item


# ============================================================
# Full analysis
# ============================================================

class TestAnalyze:

    @pytest.mark.parametrize("variant", ["SIS", "SEIR"])
    def test_end_to_end(self, analyzer, item, variant):
        result = analyzer.analyze(AnalysisRequest("t1", variant=variant, item=item))
        assert result.variant == ModelVariant.parse(variant)
        assert len(result.history) == 181
        assert result.history[-1].date == TODAY
        assert len(result.predictions) == 29
        assert result.predictions[0].date == TODAY + dt.timedelta(days=2)
        assert isinstance(result.insights.current_trend, Trend)
        assert isinstance(result.insights.future_outlook, Outlook)
        assert list(result.step_timings) == ["parameters", "history", "forecast", "insights"]
        assert result.total_duration >= 0

    def test_deterministic_with_fixed_noise(self, analyzer, item):
        request = AnalysisRequest("t1", variant="SEIR", item=item)
        a = analyzer.analyze(request)
        b = analyzer.analyze(request)
        assert a.history == b.history
        assert a.predictions == b.predictions
        assert a.insights == b.insights

    def test_seeded_noise_factory(self, item):
        def make():
            return TrendAnalyzer(
                cache=ItemCache(),
                noise_factory=lambda v: uniform_noise(0.8, 1.2, np.random.default_rng(3)),
                clock=lambda: TODAY,
            )
        request = AnalysisRequest("t1", item=item, history_days=60, prediction_days=10)
        assert make().analyze(request).history == make().analyze(request).history

    def test_step_logging(self, analyzer, item, caplog):
        with caplog.at_level(logging.INFO, logger="orchestrator.analysis"):
            analyzer.analyze(AnalysisRequest("t1", item=item, history_days=30))
        assert "Step 'forecast' completed" in caplog.text

    def test_step_failure_propagates(self, analyzer, caplog):
        def boom():
            raise RuntimeError("kaput")

        with caplog.at_level(logging.ERROR, logger="orchestrator.analysis"):
            with pytest.raises(RuntimeError, match="kaput"):
                analyzer.run_step("explode", boom)
        assert "Step 'explode' failed" in caplog.text


class TestResultToDict:

    def test_envelope(self, analyzer, item):
        result = analyzer.analyze(AnalysisRequest("t1", variant="SIS", item=item))
        payload = result_to_dict(result)
        assert set(payload) == {
            "item", "model_type", "parameters", "scenario",
            "historical_data", "predictions", "insights",
        }
        assert payload["model_type"] == "SIS"
        assert "sigma" not in payload["parameters"]
        assert "exposed" not in payload["predictions"][0]
        assert payload["historical_data"][-1]["date"] == TODAY.isoformat()
        json.dumps(payload)

    def test_seir_envelope_has_all_compartments(self, analyzer, item):
        result = analyzer.analyze(AnalysisRequest("t1", variant="SEIR", item=item))
        payload = result_to_dict(result)
        assert "sigma" in payload["parameters"]
        point = payload["predictions"][0]
        assert {"susceptible", "exposed", "infected", "recovered"} <= set(point)
