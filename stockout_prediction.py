"""
Stockout Prediction Module

Identifies SKUs at risk of running out BEFORE it happens by calculating:
- Days until stockout from current stock and predicted daily demand
- Projected stockout date
- Stockout risk tier (CRITICAL/HIGH/MEDIUM/LOW) relative to supplier lead time
- Summary metrics and critical-item lists for a forecast table
"""

import math
from datetime import timedelta
from enum import Enum

import pandas as pd

from forecast_rules import DEFAULT_FORECAST_CONFIG, ForecastConfig

# "Effectively unbounded": no measurable demand
NO_DEMAND_HORIZON_DAYS = 999


class StockoutRisk(str, Enum):
    CRITICAL = 'CRITICAL'
    HIGH = 'HIGH'
    MEDIUM = 'MEDIUM'
    LOW = 'LOW'

    def __str__(self):
        return self.value


# Sort order for risk tiers (most urgent first)
RISK_PRIORITY = {
    StockoutRisk.CRITICAL.value: 0,
    StockoutRisk.HIGH.value: 1,
    StockoutRisk.MEDIUM.value: 2,
    StockoutRisk.LOW.value: 3,
}


def classify_stockout_risk(days_remaining: float, lead_time_days: float,
                           config: ForecastConfig = None) -> StockoutRisk:
    """
    Classify stockout risk from days remaining versus lead time.

    First matching rule wins:
    out of stock, or cannot restock in time -> CRITICAL; then the high and
    medium day thresholds; otherwise LOW.

    Args:
        days_remaining: Predicted days until stockout
        lead_time_days: Supplier lead time in days
        config: ForecastConfig supplying risk_thresholds

    Returns:
        StockoutRisk
    """
    thresholds = (config or DEFAULT_FORECAST_CONFIG).risk_thresholds

    # Already out of stock
    if days_remaining <= 0:
        return StockoutRisk.CRITICAL

    effective_threshold = max(lead_time_days, thresholds.critical)
    if days_remaining <= effective_threshold:
        return StockoutRisk.CRITICAL

    if days_remaining <= thresholds.high:
        return StockoutRisk.HIGH

    if days_remaining <= thresholds.medium:
        return StockoutRisk.MEDIUM

    return StockoutRisk.LOW


def calculate_days_until_stockout(current_stock: float, daily_demand: float) -> int:
    """
    Whole days of cover left at the predicted demand rate.

    Returns NO_DEMAND_HORIZON_DAYS when there is no demand, 0 when stock is
    already depleted.
    """
    if daily_demand <= 0:
        return NO_DEMAND_HORIZON_DAYS
    if current_stock <= 0:
        return 0

    return int(math.floor(current_stock / daily_demand))


def describe_stockout_horizon(days_until_stockout: int) -> tuple:
    """
    Tagged form of a days-until-stockout value.

    Returns:
        tuple: ('indefinite', None) for the no-demand sentinel,
               otherwise ('finite', days)
    """
    if days_until_stockout >= NO_DEMAND_HORIZON_DAYS:
        return 'indefinite', None
    return 'finite', int(days_until_stockout)


def estimate_stockout_date(current_stock: float, daily_demand: float, as_of):
    """
    Date the SKU is projected to run out, or None without measurable demand.

    Args:
        current_stock: Units on hand
        daily_demand: Predicted units per day
        as_of: Date the stock level was observed

    Returns:
        pd.Timestamp or None
    """
    days = calculate_days_until_stockout(current_stock, daily_demand)
    kind, finite_days = describe_stockout_horizon(days)
    if kind == 'indefinite':
        return None
    return pd.Timestamp(as_of).normalize() + timedelta(days=finite_days)


def get_stockout_summary_metrics(forecast_df):
    """
    Calculate summary metrics for a forecast table

    Args:
        forecast_df: Forecast dataframe from generate_sku_forecasts()

    Returns:
        dict: Summary metrics for display
    """
    if forecast_df.empty:
        return {}

    risk_counts = forecast_df['risk_level'].astype(str).value_counts()

    # Average days until stockout (excluding the no-demand sentinel)
    finite_days = forecast_df[forecast_df['days_until_stockout'] < NO_DEMAND_HORIZON_DAYS]['days_until_stockout']
    avg_days_until_stockout = float(finite_days.mean()) if not finite_days.empty else 0.0

    return {
        'total_skus': len(forecast_df),
        'critical_count': int(risk_counts.get(StockoutRisk.CRITICAL.value, 0)),
        'high_count': int(risk_counts.get(StockoutRisk.HIGH.value, 0)),
        'medium_count': int(risk_counts.get(StockoutRisk.MEDIUM.value, 0)),
        'low_count': int(risk_counts.get(StockoutRisk.LOW.value, 0)),
        'out_of_stock_count': int((forecast_df['days_until_stockout'] == 0).sum()),
        'needs_reorder_count': int(forecast_df['needs_reorder'].sum()) if 'needs_reorder' in forecast_df else 0,
        'avg_days_until_stockout': avg_days_until_stockout,
    }


def sort_by_risk(forecast_df: pd.DataFrame) -> pd.DataFrame:
    """Most urgent first: risk tier, then fewest days of cover."""
    if forecast_df.empty:
        return forecast_df

    ordered = forecast_df.assign(
        _risk_rank=forecast_df['risk_level'].astype(str).map(RISK_PRIORITY).fillna(len(RISK_PRIORITY))
    )
    ordered = ordered.sort_values(['_risk_rank', 'days_until_stockout'], ascending=[True, True], kind='mergesort')
    return ordered.drop(columns='_risk_rank').reset_index(drop=True)


def get_critical_at_risk_items(forecast_df, top_n=20):
    """
    Get the most critical at-risk items

    Args:
        forecast_df: Forecast dataframe
        top_n: Number of top items to return

    Returns:
        DataFrame: CRITICAL and HIGH items sorted by urgency
    """
    if forecast_df.empty:
        return pd.DataFrame()

    at_risk = forecast_df[
        forecast_df['risk_level'].astype(str).isin([StockoutRisk.CRITICAL.value, StockoutRisk.HIGH.value])
    ]
    return sort_by_risk(at_risk).head(top_n)
