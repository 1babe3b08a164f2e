"""Tests for the Parquet quote archive."""

from __future__ import annotations

from datetime import datetime, timezone

from award_odds.archive import QuoteArchive
from award_odds.schema import Category, NormalizedQuote, Platform

PICTURE = Category("oscars-2026-best-picture-winner", "oscars/picture", "Best Picture")
ACTOR = Category("oscars-2026-best-actor-winner", "oscars/actor", "Best Actor")


def test_write_partitions_by_platform_and_month(tmp_path):
    archive = QuoteArchive(tmp_path)
    jan = datetime(2026, 1, 20, 12, 0, tzinfo=timezone.utc)
    feb = datetime(2026, 2, 3, 12, 0, tzinfo=timezone.utc)

    archive.write_quotes([NormalizedQuote("Anora", 0.4)], Platform.POLYMARKET, PICTURE, fetched_at=jan)
    paths = archive.write_quotes([NormalizedQuote("Anora", 0.55)], Platform.POLYMARKET, PICTURE, fetched_at=feb)

    assert paths == [tmp_path / "polymarket" / "year=2026" / "month=02" / "quotes.parquet"]
    assert (tmp_path / "polymarket" / "year=2026" / "month=01" / "quotes.parquet").exists()

    df = archive.read_quotes(Platform.POLYMARKET)
    assert list(df["odds"]) == ["+150", "-122"]
    assert list(df["probability"]) == [0.4, 0.55]


def test_rewriting_same_fetch_deduplicates(tmp_path):
    archive = QuoteArchive(tmp_path)
    fetched_at = datetime(2026, 2, 3, 12, 0, tzinfo=timezone.utc)

    archive.write_quotes([NormalizedQuote("Anora", 0.4)], Platform.KALSHI, PICTURE, fetched_at=fetched_at)
    archive.write_quotes([NormalizedQuote("Anora", 0.45)], Platform.KALSHI, PICTURE, fetched_at=fetched_at)

    df = archive.read_quotes(Platform.KALSHI)
    assert len(df) == 1
    assert df["probability"].iloc[0] == 0.45


def test_read_filters_by_category(tmp_path):
    archive = QuoteArchive(tmp_path)
    archive.write_quotes([NormalizedQuote("Anora", 0.4)], Platform.POLYMARKET, PICTURE)
    archive.write_quotes([NormalizedQuote("Adrien Brody", 0.7)], Platform.KALSHI, ACTOR,
                         matched={"Adrien Brody": "Adrien Brody"})

    actor = archive.read_quotes(category_path="oscars/actor")
    assert list(actor["name"]) == ["Adrien Brody"]
    assert list(actor["platform"]) == ["kalshi"]
    assert list(actor["matched_nominee"]) == ["Adrien Brody"]


def test_empty_inputs(tmp_path):
    archive = QuoteArchive(tmp_path)
    assert archive.write_quotes([], Platform.POLYMARKET, PICTURE) == []
    df = archive.read_quotes()
    assert df.empty
    assert "odds" in df.columns
