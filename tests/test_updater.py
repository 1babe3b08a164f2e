"""Tests for the per-category updater."""

from __future__ import annotations

import asyncio
from datetime import date

import pandas as pd
import pytest

from award_odds.archive import QuoteArchive
from award_odds.matcher import NomineeMatcher
from award_odds.schema import Category, NormalizedQuote, Platform
from award_odds.store import MemoryStore
from award_odds.updater import (
    STATUS_NO_MATCHES,
    STATUS_NO_NOMINEES,
    STATUS_NO_QUOTES,
    STATUS_UPDATED,
    CategoryUpdater,
    load_nominees,
    nominees_path,
)

from conftest import StaticSource

RUN_DATE = date(2026, 2, 10)


class RecordingStore(MemoryStore):
    def __init__(self, data=None):
        super().__init__(data)
        self.updates = []

    def update(self, path, fields):
        self.updates.append((path, dict(fields)))
        super().update(path, fields)


def test_oppenheimer_end_to_end(best_picture):
    store = RecordingStore({
        "oscars": {"best-picture": {"nominees": [
            {"name": "Oppenheimer", "odds": {}, "poster": "opp.jpg"},
        ]}}
    })
    source = StaticSource({"oscars/best-picture": [NormalizedQuote("Oppenheimer", 0.82)]})

    result = asyncio.run(CategoryUpdater(store, source).update(best_picture, run_date=RUN_DATE))

    assert result.status == STATUS_UPDATED
    assert result.matched == 1
    assert store.get("oscars/best-picture/nominees") == [
        {
            "name": "Oppenheimer",
            "odds": {"polymarket": "-456"},
            "lastUpdated": "2026-02-10",
            "poster": "opp.jpg",
        }
    ]
    assert store.updates == [(
        "oscars/best-picture/nominees",
        {"0/odds/polymarket": "-456", "0/lastUpdated": "2026-02-10"},
    )]


def test_unmatched_nominees_untouched_and_other_sources_kept():
    category = Category("KXBAFTAFILM", "baftas/picture", "Best Picture")
    store = RecordingStore({"baftas": {"picture": {"nominees": [
        {"name": "Hamnet", "odds": {"polymarket": "+250"}, "lastUpdated": "2026-01-01"},
        {"name": "Sinners", "odds": {"polymarket": "+900"}, "lastUpdated": "2026-01-01"},
    ]}}})
    source = StaticSource(
        {"baftas/picture": [NormalizedQuote("Will Hamnet win?", 0.25)]},
        platform=Platform.KALSHI,
    )

    result = asyncio.run(CategoryUpdater(store, source).update(category, run_date=RUN_DATE))

    assert result.unmatched == ["Sinners"]
    nominees = store.get("baftas/picture/nominees")
    assert nominees[0]["odds"] == {"polymarket": "+250", "kalshi": "+300"}
    assert nominees[0]["lastUpdated"] == "2026-02-10"
    assert nominees[1] == {"name": "Sinners", "odds": {"polymarket": "+900"}, "lastUpdated": "2026-01-01"}


def test_no_quotes_skips_without_reading_store(best_picture):
    class ExplodingStore(MemoryStore):
        def get(self, path):
            raise AssertionError("store should not be read")

    result = asyncio.run(
        CategoryUpdater(ExplodingStore(), StaticSource({})).update(best_picture, run_date=RUN_DATE)
    )
    assert result.status == STATUS_NO_QUOTES


def test_missing_nominees_skips_category(best_picture):
    store = RecordingStore({})
    source = StaticSource({"oscars/best-picture": [NormalizedQuote("Oppenheimer", 0.82)]})

    result = asyncio.run(CategoryUpdater(store, source).update(best_picture, run_date=RUN_DATE))

    assert result.status == STATUS_NO_NOMINEES
    assert result.quotes == 1
    assert store.updates == []
    assert store.data == {}


def test_no_matches_writes_nothing(best_picture):
    store = RecordingStore({"oscars": {"best-picture": {"nominees": [{"name": "Barbie", "odds": {}}]}}})
    source = StaticSource({"oscars/best-picture": [NormalizedQuote("Oppenheimer", 0.82)]})

    result = asyncio.run(CategoryUpdater(store, source).update(best_picture, run_date=RUN_DATE))

    assert result.status == STATUS_NO_MATCHES
    assert store.updates == []


def test_sparse_nominee_list_keeps_original_indices(best_picture):
    store = RecordingStore({"oscars": {"best-picture": {"nominees": {
        "0": {"name": "Anora", "odds": {}},
        "2": {"name": "Oppenheimer", "odds": {}},
    }}}})
    source = StaticSource({"oscars/best-picture": [NormalizedQuote("Oppenheimer", 0.82)]})

    asyncio.run(CategoryUpdater(store, source).update(best_picture, run_date=RUN_DATE))

    assert store.updates[0][1] == {"2/odds/polymarket": "-456", "2/lastUpdated": "2026-02-10"}


def test_strict_matcher_is_used(best_picture):
    store = RecordingStore({"oscars": {"best-picture": {"nominees": [
        {"name": "Emma Stone", "odds": {}},
        {"name": "Stone", "odds": {}},
    ]}}})
    source = StaticSource({"oscars/best-picture": [NormalizedQuote("Emma Stone", 0.6)]})

    updater = CategoryUpdater(store, source, matcher=NomineeMatcher(strict=True))
    result = asyncio.run(updater.update(best_picture, run_date=RUN_DATE))

    assert result.status == STATUS_NO_MATCHES
    assert result.unmatched == ["Emma Stone", "Stone"]


def test_defaults_to_today(best_picture):
    store = RecordingStore({"oscars": {"best-picture": {"nominees": [{"name": "Oppenheimer", "odds": {}}]}}})
    source = StaticSource({"oscars/best-picture": [NormalizedQuote("Oppenheimer", 0.82)]})

    asyncio.run(CategoryUpdater(store, source).update(best_picture))

    stamp = store.get("oscars/best-picture/nominees/0/lastUpdated")
    assert date.fromisoformat(stamp)


def test_quotes_archived_with_match_info(tmp_path, best_picture):
    store = MemoryStore({"oscars": {"best-picture": {"nominees": [{"name": "Oppenheimer", "odds": {}}]}}})
    source = StaticSource({"oscars/best-picture": [
        NormalizedQuote("Oppenheimer", 0.82),
        NormalizedQuote("Barbie", 0.05),
    ]})
    archive = QuoteArchive(tmp_path)

    asyncio.run(CategoryUpdater(store, source, archive=archive).update(best_picture, run_date=RUN_DATE))

    df = archive.read_quotes(Platform.POLYMARKET, category_path="oscars/best-picture")
    assert sorted(df["name"]) == ["Barbie", "Oppenheimer"]
    matched = dict(zip(df["name"], df["matched_nominee"]))
    assert matched["Oppenheimer"] == "Oppenheimer"
    assert pd.isna(matched["Barbie"])


@pytest.mark.parametrize("value", [None, "text", [], {}, {"name": "x"}])
def test_load_nominees_ignores_unusable_values(value):
    assert load_nominees(value) == []


def test_load_nominees_skips_holes():
    loaded = load_nominees([None, {"name": "Anora"}])
    assert [(i, n.name) for i, n in loaded] == [(1, "Anora")]


def test_nominees_path():
    assert nominees_path(Category("x", "oscars/picture/", "Best Picture")) == "oscars/picture/nominees"


def test_malformed_odds_record_does_not_block_category(best_picture):
    store = RecordingStore({"oscars": {"best-picture": {"nominees": [
        {"name": "Barbie", "odds": "n/a"},
        {"name": "Oppenheimer", "odds": {}},
    ]}}})
    source = StaticSource({"oscars/best-picture": [NormalizedQuote("Oppenheimer", 0.82)]})

    result = asyncio.run(CategoryUpdater(store, source).update(best_picture, run_date=RUN_DATE))

    assert result.status == STATUS_UPDATED
    assert result.unmatched == ["Barbie"]
    assert store.updates == [(
        "oscars/best-picture/nominees",
        {"1/odds/polymarket": "-456", "1/lastUpdated": "2026-02-10"},
    )]


def test_load_nominees_ignores_non_ascii_digit_keys():
    loaded = load_nominees({"²": {"name": "Anora"}, "3": {"name": "Oppenheimer"}})
    assert [(i, n.name) for i, n in loaded] == [(3, "Oppenheimer")]


def test_archive_records_every_nominee_sharing_a_quote(tmp_path, best_picture):
    store = MemoryStore({"oscars": {"best-picture": {"nominees": [
        {"name": "Emma Stone", "odds": {}},
        {"name": "Stone", "odds": {}},
    ]}}})
    source = StaticSource({"oscars/best-picture": [NormalizedQuote("Emma Stone", 0.6)]})
    archive = QuoteArchive(tmp_path)

    asyncio.run(CategoryUpdater(store, source, archive=archive).update(best_picture, run_date=RUN_DATE))

    df = archive.read_quotes(Platform.POLYMARKET)
    assert list(df["matched_nominee"]) == ["Emma Stone; Stone"]
