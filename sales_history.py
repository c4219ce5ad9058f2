"""
Sales History Helpers

Thin date glue that turns dated sales records into the inputs of the
forecasting engine:
- zero-filled daily sales series (oldest to newest)
- month (1-12) -> total units across all observed years
"""

from datetime import timedelta

import pandas as pd


def _prepare_sales(sales_df: pd.DataFrame, date_col: str, qty_col: str) -> pd.DataFrame:
    """Parse dates, coerce quantities and drop unusable rows."""
    if sales_df is None or sales_df.empty or date_col not in sales_df or qty_col not in sales_df:
        return pd.DataFrame(columns=['date', 'qty'])

    df = pd.DataFrame({
        'date': pd.to_datetime(sales_df[date_col], errors='coerce').dt.normalize(),
        'qty': pd.to_numeric(sales_df[qty_col], errors='coerce').fillna(0).clip(lower=0),
    })
    return df.dropna(subset=['date'])


def resolve_history_window(as_of, days: int) -> tuple:
    """
    Inclusive (start, end) dates for the last `days` days ending at as_of.

    days <= 0 gives an empty window where start is after end.
    """
    end = pd.Timestamp(as_of).normalize()
    start = end - timedelta(days=int(days) - 1)
    return start, end


def build_daily_sales_series(sales_df: pd.DataFrame, date_col: str = 'date', qty_col: str = 'qty',
                             start=None, end=None) -> list:
    """
    Aggregate sales to one value per calendar day, zero-filling gaps.

    Args:
        sales_df: Sales records with a date column and a quantity column
        date_col: Name of the date column
        qty_col: Name of the quantity column
        start: First day of the series (default: first sale date)
        end: Last day of the series (default: last sale date)

    Returns:
        list of floats, oldest to newest. Empty when there is nothing to cover.
    """
    df = _prepare_sales(sales_df, date_col, qty_col)

    if start is None and df.empty:
        return []

    start = pd.Timestamp(start).normalize() if start is not None else df['date'].min()
    end = pd.Timestamp(end).normalize() if end is not None else (df['date'].max() if not df.empty else start)

    if end < start:
        return []

    days = pd.date_range(start, end, freq='D')
    daily = df.groupby('date')['qty'].sum()
    daily = daily.reindex(days, fill_value=0.0)

    return [float(v) for v in daily.to_numpy()]


def aggregate_monthly_sales(sales_df: pd.DataFrame, date_col: str = 'date', qty_col: str = 'qty') -> dict:
    """
    Total units per calendar month across all years.

    Returns:
        dict: month (1-12) -> total units, only for months present
    """
    df = _prepare_sales(sales_df, date_col, qty_col)
    if df.empty:
        return {}

    monthly = df.groupby(df['date'].dt.month)['qty'].sum()
    return {int(month): float(total) for month, total in monthly.items()}


def count_invalid_dates(sales_df: pd.DataFrame, date_col: str) -> int:
    """Rows whose date cannot be parsed."""
    if sales_df is None or sales_df.empty or date_col not in sales_df:
        return 0
    return int(pd.to_datetime(sales_df[date_col], errors='coerce').isna().sum())
