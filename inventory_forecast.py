"""
Inventory Forecast Engine

Runs the demand predictor, stockout classifier and reorder planner for a
batch of SKUs held in memory. Data retrieval and persistence belong to the
caller; this module only transforms the frames it is given.

Key Features:
- Per-SKU forecast table sorted by stockout urgency
- Single-SKU detail with a forecast curve
- Stockout alert list for a days-of-cover threshold
- Thread-parallel per-SKU processing for large batches (joblib)
"""

from datetime import datetime

import pandas as pd
from joblib import Parallel, delayed

from demand_forecasting import (
    _round_half_up,
    build_forecast_curve,
    calculate_seasonality_coefficients,
    predict_daily_demand,
)
from forecast_rules import DEFAULT_FORECAST_CONFIG, ForecastConfig
from replenishment_planning import recommend_reorder, should_reorder
from sales_history import (
    aggregate_monthly_sales,
    build_daily_sales_series,
    count_invalid_dates,
    resolve_history_window,
)
from stockout_prediction import (
    StockoutRisk,
    calculate_days_until_stockout,
    classify_stockout_risk,
    estimate_stockout_date,
    sort_by_risk,
)

# Last 365 days of history feed the daily series
HISTORY_WINDOW_DAYS = 365

# Only fan out to threads when the batch is worth it
PARALLEL_MIN_SKUS = 50
MAX_PARALLEL_JOBS = 4

FORECAST_COLUMNS = [
    'sku', 'current_stock', 'daily_demand', 'confidence', 'trend_direction',
    'trend_percent', 'seasonality_factor', 'days_until_stockout', 'stockout_date',
    'lead_time_days', 'risk_level', 'reorder_point', 'reorder_quantity',
    'forecast_qty', 'needs_reorder',
]


def _sku_history(sku_sales: pd.DataFrame, as_of, date_col: str, qty_col: str) -> tuple:
    """Daily series and monthly totals for one SKU, both ending at as_of."""
    window_start, window_end = resolve_history_window(as_of, HISTORY_WINDOW_DAYS)

    dates = pd.to_datetime(sku_sales[date_col], errors='coerce').dt.normalize()
    observed = sku_sales[dates <= window_end]
    recent_dates = dates[(dates >= window_start) & (dates <= window_end)]

    if recent_dates.empty:
        daily = []
    else:
        daily = build_daily_sales_series(observed, date_col, qty_col,
                                         start=recent_dates.min(), end=window_end)

    monthly = aggregate_monthly_sales(observed, date_col, qty_col)
    return daily, monthly


def _forecast_single_sku(sku, current_stock: float, daily_sales: list, monthly_sales: dict,
                         lead_time_days: float, as_of, config: ForecastConfig) -> dict:
    """Forecast row for one SKU. Pure: no I/O, no shared state."""
    coefficients = calculate_seasonality_coefficients(monthly_sales)
    target_month = pd.Timestamp(as_of).month

    prediction = predict_daily_demand(daily_sales, target_month, coefficients, config)
    days_left = calculate_days_until_stockout(current_stock, prediction.daily_demand)
    risk = classify_stockout_risk(days_left, lead_time_days, config)
    reorder = recommend_reorder(prediction.daily_demand, lead_time_days, config.safety_stock_days, config)

    row = {
        'sku': sku,
        'current_stock': current_stock,
        **prediction.to_dict(),
        'days_until_stockout': days_left,
        'stockout_date': estimate_stockout_date(current_stock, prediction.daily_demand, as_of),
        'lead_time_days': lead_time_days,
        'risk_level': risk.value,
        **reorder.to_dict(),
        'forecast_qty': _round_half_up(prediction.daily_demand * config.default_forecast_days, 2),
        'needs_reorder': should_reorder(current_stock, reorder.reorder_point),
    }
    return row


def generate_sku_forecasts(sales_df: pd.DataFrame, stock_df: pd.DataFrame, as_of,
                           config: ForecastConfig = None, lead_times: dict = None,
                           use_parallel: bool = True, sku_col: str = 'sku',
                           date_col: str = 'date', qty_col: str = 'qty',
                           stock_col: str = 'current_stock'):
    """
    Generate demand forecasts and reorder recommendations for every stocked SKU

    Args:
        sales_df: Sales records with columns sku, date, qty
        stock_df: Current stock with columns sku, current_stock
        as_of: Forecast date; history ends here and its month is the target month
        config: ForecastConfig (defaults when omitted)
        lead_times: Optional {sku: lead_time_days}, keys compared as stripped
                    strings; missing SKUs use
                    config.default_lead_time_days
        use_parallel: Whether to use joblib thread parallelism for large batches

    Returns:
        tuple: (logs, forecast_df)
        - logs: List of processing messages
        - forecast_df: One row per SKU, most urgent first
    """
    logs = []
    start_time = datetime.now()
    logs.append("--- Inventory Forecast Engine ---")

    config = config or DEFAULT_FORECAST_CONFIG
    # Keys are matched against SKUs normalized the same way as the frames
    lead_times = {str(sku).strip(): days for sku, days in (lead_times or {}).items()}

    if stock_df is None or stock_df.empty:
        logs.append("ERROR: No stock data provided. Cannot generate forecasts.")
        return logs, pd.DataFrame(columns=FORECAST_COLUMNS)

    missing = [c for c in (sku_col, stock_col) if c not in stock_df.columns]
    if missing:
        logs.append(f"ERROR: Stock data is missing columns: {', '.join(missing)}")
        return logs, pd.DataFrame(columns=FORECAST_COLUMNS)

    if sales_df is None or sales_df.empty or any(c not in sales_df.columns for c in (sku_col, date_col, qty_col)):
        logs.append("WARNING: No usable sales history - every SKU will forecast zero demand")
        sales_df = pd.DataFrame(columns=[sku_col, date_col, qty_col])
    else:
        invalid_dates = count_invalid_dates(sales_df, date_col)
        if invalid_dates:
            logs.append(f"WARNING: Dropped {invalid_dates} sales rows with unparseable dates")

    stock = stock_df[[sku_col, stock_col]].copy()
    stock[sku_col] = stock[sku_col].astype(str).str.strip()
    stock[stock_col] = pd.to_numeric(stock[stock_col], errors='coerce').fillna(0)
    stock = stock.groupby(sku_col, as_index=False)[stock_col].sum()

    sales = sales_df.copy()
    sales[sku_col] = sales[sku_col].astype(str).str.strip()
    sales_by_sku = {sku: group for sku, group in sales.groupby(sku_col)}

    logs.append(f"INFO: Forecasting {len(stock)} SKUs as of {pd.Timestamp(as_of).date()}")
    logs.append(f"INFO: {len(sales_by_sku)} SKUs have sales history")

    empty_sales = sales.iloc[0:0]
    jobs = []
    for sku, current_stock in zip(stock[sku_col], stock[stock_col]):
        daily, monthly = _sku_history(sales_by_sku.get(sku, empty_sales), as_of, date_col, qty_col)
        lead_time = lead_times.get(sku, config.default_lead_time_days)
        jobs.append((sku, float(current_stock), daily, monthly, lead_time))

    if use_parallel and len(jobs) > PARALLEL_MIN_SKUS:
        n_jobs = min(MAX_PARALLEL_JOBS, len(jobs) // PARALLEL_MIN_SKUS)
        logs.append(f"INFO: Processing SKUs on {n_jobs} threads")
        rows = Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(_forecast_single_sku)(*job, as_of, config) for job in jobs
        )
    else:
        rows = [_forecast_single_sku(*job, as_of, config) for job in jobs]

    forecast_df = sort_by_risk(pd.DataFrame(rows, columns=FORECAST_COLUMNS))

    critical = int((forecast_df['risk_level'] == StockoutRisk.CRITICAL.value).sum())
    reorder = int(forecast_df['needs_reorder'].sum())
    logs.append(f"INFO: {critical} SKUs at CRITICAL stockout risk, {reorder} at or below reorder point")

    elapsed = (datetime.now() - start_time).total_seconds()
    logs.append(f"INFO: Inventory forecast completed in {elapsed:.2f} seconds")

    return logs, forecast_df


def get_sku_forecast_detail(sales_df: pd.DataFrame, sku, current_stock: float, as_of,
                            config: ForecastConfig = None, lead_time_days: float = None,
                            sku_col: str = 'sku', date_col: str = 'date', qty_col: str = 'qty') -> dict:
    """
    Detailed forecast for one SKU, including a forecast curve over
    config.default_forecast_days.

    Returns:
        dict: {
            'sku', 'prediction': DemandPrediction, 'days_until_stockout': int,
            'stockout_date', 'risk_level': StockoutRisk,
            'reorder': ReorderRecommendation, 'forecast_curve': DataFrame
        }
    """
    config = config or DEFAULT_FORECAST_CONFIG
    if lead_time_days is None:
        lead_time_days = config.default_lead_time_days

    if sales_df is None or sales_df.empty or any(c not in sales_df.columns for c in (sku_col, date_col, qty_col)):
        sku_sales = pd.DataFrame(columns=[sku_col, date_col, qty_col])
    else:
        sku_sales = sales_df[sales_df[sku_col].astype(str).str.strip() == str(sku).strip()]

    daily, monthly = _sku_history(sku_sales, as_of, date_col, qty_col)
    coefficients = calculate_seasonality_coefficients(monthly)
    prediction = predict_daily_demand(daily, pd.Timestamp(as_of).month, coefficients, config)
    days_left = calculate_days_until_stockout(current_stock, prediction.daily_demand)

    return {
        'sku': sku,
        'prediction': prediction,
        'seasonality_coefficients': coefficients,
        'days_until_stockout': days_left,
        'stockout_date': estimate_stockout_date(current_stock, prediction.daily_demand, as_of),
        'risk_level': classify_stockout_risk(days_left, lead_time_days, config),
        'reorder': recommend_reorder(prediction.daily_demand, lead_time_days, config=config),
        'forecast_curve': build_forecast_curve(prediction, as_of, config.default_forecast_days),
    }


def get_stockout_alerts(forecast_df: pd.DataFrame, threshold_days: int = 14) -> pd.DataFrame:
    """
    SKUs that run out within threshold_days or are already CRITICAL

    Args:
        forecast_df: Forecast dataframe from generate_sku_forecasts()
        threshold_days: Days-of-cover cutoff

    Returns:
        DataFrame: Alert rows, most urgent first
    """
    if forecast_df.empty:
        return pd.DataFrame(columns=forecast_df.columns)

    alerts = forecast_df[
        (forecast_df['days_until_stockout'] <= threshold_days) |
        (forecast_df['risk_level'] == StockoutRisk.CRITICAL.value)
    ]
    return sort_by_risk(alerts)
