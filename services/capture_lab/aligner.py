"""
Series Aligner
==============
Inner-joins the price series and the PV output series on timestamp.

Gaps are expected (external price feed vs synthetic PV model): an hour
present in only one series is dropped, not reported as an error.
"""

import logging
from typing import List, Optional, Sequence

import pandas as pd

from .config import default_timezone
from .models import AlignedRecord, OutputPoint, PricePoint

logger = logging.getLogger(__name__)


def align_data(
    prices: Sequence[PricePoint],
    pv_profile: Sequence[OutputPoint],
    timezone: Optional[str] = None,
) -> List[AlignedRecord]:
    """
    Align price and PV data by timestamp.

    Parameters:
    -----------
    prices : Sequence[PricePoint]
        Day-ahead prices, unsorted, may contain gaps
    pv_profile : Sequence[OutputPoint]
        Hourly PV output
    timezone : str
        Reference timezone for calendar fields (defaults to the DE-LU zone)

    Returns:
    --------
    Records sorted ascending by timestamp, one per shared timestamp.
    Empty list when the series do not overlap.
    """
    tz = timezone or default_timezone()

    price_df = pd.DataFrame(
        {"timestamp": [p.timestamp for p in prices], "price": [p.price for p in prices]},
        columns=["timestamp", "price"],
    ).astype({"timestamp": "int64", "price": "float64"})
    pv_df = pd.DataFrame(
        {"timestamp": [p.timestamp for p in pv_profile], "output": [p.output for p in pv_profile]},
        columns=["timestamp", "output"],
    ).astype({"timestamp": "int64", "output": "float64"})

    # Repeated timestamps: last value wins
    price_df = price_df.drop_duplicates(subset="timestamp", keep="last")
    pv_df = pv_df.drop_duplicates(subset="timestamp", keep="last")

    merged = price_df.merge(pv_df, on="timestamp", how="inner")
    merged = merged.sort_values("timestamp", kind="stable").reset_index(drop=True)

    dropped = len(price_df) + len(pv_df) - 2 * len(merged)
    if dropped:
        logger.debug("Alignment dropped %d unmatched timestamps", dropped)

    if merged.empty:
        return []

    dates = pd.to_datetime(merged["timestamp"].astype("int64"), unit="s", utc=True).dt.tz_convert(tz)

    return [
        AlignedRecord(
            timestamp=int(ts),
            price=float(price),
            output=float(output),
            date=when.to_pydatetime(),
        )
        for ts, price, output, when in zip(
            merged["timestamp"], merged["price"], merged["output"], dates
        )
    ]
