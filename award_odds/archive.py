"""
Parquet Quote Archive

Keeps a history of every quote fetched, so odds movements over the award
season can be analyzed later. The nominee store only holds the latest odds.

Directory Structure:
    archive/
    ├── polymarket/
    │   └── year=2026/month=02/quotes.parquet
    └── kalshi/
        └── year=2026/month=02/quotes.parquet
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from award_odds.schema import Category, NormalizedQuote, Platform

logger = logging.getLogger(__name__)

QUOTE_ARCHIVE_SCHEMA = pa.schema([
    ("fetched_at", pa.timestamp("us", tz="UTC")),
    ("platform", pa.string()),
    ("category_path", pa.string()),
    ("category_name", pa.string()),
    ("name", pa.string()),
    ("probability", pa.float64()),
    ("odds", pa.string()),
    ("matched_nominee", pa.string()),
])

DEDUP_COLUMNS = ["category_path", "name", "fetched_at"]


class QuoteArchive:
    """
    Parquet-based quote history with year/month partitioning.

    Attributes:
        base_path: Root directory of the archive
    """

    def __init__(self, base_path: Union[str, Path] = "data/archive"):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def write_quotes(
        self,
        quotes: Sequence[NormalizedQuote],
        platform: Platform,
        category: Category,
        matched: Optional[Dict[str, str]] = None,
        fetched_at: Optional[datetime] = None,
    ) -> List[Path]:
        """
        Append quotes to the partition for their fetch month.

        Args:
            quotes: Quotes from one category fetch
            platform: Source platform
            category: Category the quotes belong to
            matched: Quote name -> canonical nominee name(s) for matched quotes;
                several nominees sharing one quote are joined with "; "
            fetched_at: Fetch time (now, UTC, if None)

        Returns:
            List of paths to written partition files
        """
        if not quotes:
            logger.warning("No quotes to archive")
            return []

        fetched_at = fetched_at or datetime.now(timezone.utc)
        matched = matched or {}

        df = pd.DataFrame([
            {
                "fetched_at": fetched_at,
                "platform": platform.value,
                "category_path": category.path,
                "category_name": category.name,
                "name": q.name,
                "probability": q.probability,
                "odds": q.odds,
                "matched_nominee": matched.get(q.name),
            }
            for q in quotes
        ])
        df["fetched_at"] = pd.to_datetime(df["fetched_at"], utc=True)
        df["year"] = df["fetched_at"].dt.year
        df["month"] = df["fetched_at"].dt.month

        written_paths = []

        for (year, month), group in df.groupby(["year", "month"]):
            partition_path = (
                self.base_path
                / platform.value
                / f"year={year}"
                / f"month={month:02d}"
            )
            partition_path.mkdir(parents=True, exist_ok=True)
            file_path = partition_path / "quotes.parquet"

            group_data = group.drop(columns=["year", "month"])

            if file_path.exists():
                existing = pd.read_parquet(file_path)
                group_data = pd.concat([existing, group_data], ignore_index=True)
                group_data = group_data.drop_duplicates(subset=DEDUP_COLUMNS, keep="last")

            group_data = group_data.sort_values("fetched_at").reset_index(drop=True)

            table = pa.Table.from_pandas(
                group_data,
                schema=QUOTE_ARCHIVE_SCHEMA,
                preserve_index=False,
            )
            pq.write_table(table, file_path, compression="snappy")

            written_paths.append(file_path)
            logger.debug(f"Wrote {len(group_data)} quotes to {file_path}")

        logger.info(f"Archived {len(quotes)} {category.name} quotes")
        return written_paths

    def read_quotes(
        self,
        platform: Optional[Platform] = None,
        category_path: Optional[str] = None,
    ) -> pd.DataFrame:
        """
        Read archived quotes.

        Args:
            platform: Filter by platform (None for all)
            category_path: Filter by category storage path

        Returns:
            DataFrame sorted by fetch time (empty if nothing archived)
        """
        platforms = [platform] if platform else list(Platform)

        dfs = []
        for plat in platforms:
            for partition_file in sorted((self.base_path / plat.value).glob("year=*/month=*/quotes.parquet")):
                df = pd.read_parquet(partition_file)
                if category_path:
                    df = df[df["category_path"] == category_path]
                if not df.empty:
                    dfs.append(df)

        if not dfs:
            return pd.DataFrame(columns=QUOTE_ARCHIVE_SCHEMA.names)

        result = pd.concat(dfs, ignore_index=True)
        return result.sort_values("fetched_at").reset_index(drop=True)
