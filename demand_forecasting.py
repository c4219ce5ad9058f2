"""
Demand Forecasting Module

Predicts per-SKU daily demand from a zero-filled daily sales history.
Uses simple, interpretable methods that are combined into one estimate.

Key Features:
- Recency-biased weighted moving average over contiguous segments
- Monthly seasonality coefficients from aggregated monthly sales
- Linear trend (least squares) and recent-vs-older direction classification
- Ensemble daily demand with a data-quality confidence score
- Flat forecast curve for a caller-supplied horizon

Every function here is pure and total: empty or degenerate input yields a
conservative default instead of an exception.
"""

import math
from dataclasses import asdict, dataclass
from datetime import timedelta
from enum import Enum

import numpy as np
import pandas as pd

from forecast_rules import DEFAULT_FORECAST_CONFIG, ForecastConfig


DEFAULT_WMA_WEIGHTS = (0.4, 0.3, 0.2, 0.1)
NEUTRAL_SEASONALITY = 1.0
MONTHS = range(1, 13)

# ===== CONFIDENCE STAIRCASE =====
# (min data points, base confidence) - checked top down
CONFIDENCE_FULL_YEAR = (365, 90)
CONFIDENCE_HALF_YEAR = (180, 80)
CONFIDENCE_QUARTER = (90, 70)
MIN_HISTORY_BASE_CONFIDENCE = 50
MIN_HISTORY_STEP = 0.5
WEEK_POINTS = 7
WEEK_BASE_CONFIDENCE = 30
WEEK_STEP = 1.5
SHORT_HISTORY_STEP = 4

# Seasonal coverage bonus: (months covered, bonus)
SEASONAL_COVERAGE_BONUS = ((12, 5), (6, 3))


class TrendDirection(str, Enum):
    UP = 'up'
    DOWN = 'down'
    STABLE = 'stable'

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class DemandPrediction:
    """Ensemble demand estimate for one SKU."""

    daily_demand: float
    confidence: int
    trend_direction: TrendDirection
    trend_percent: int
    seasonality_factor: float

    def to_dict(self) -> dict:
        result = asdict(self)
        result['trend_direction'] = self.trend_direction.value
        return result


EMPTY_PREDICTION = DemandPrediction(
    daily_demand=0.0,
    confidence=0,
    trend_direction=TrendDirection.STABLE,
    trend_percent=0,
    seasonality_factor=NEUTRAL_SEASONALITY,
)


class SeasonalityCoefficients(dict):
    """
    month -> coefficient table that remembers how many months had sales.

    Behaves as a plain dict; ``months_with_data`` feeds the coverage
    statistics of build_seasonality_profile.
    """

    def __init__(self, coefficients=(), months_with_data: int = 0):
        super().__init__(coefficients)
        self.months_with_data = months_with_data


def months_covered(coefficients) -> int:
    """Months counted by the confidence bonus: the entries of the mapping."""
    if not coefficients:
        return 0
    return len(coefficients)


def _round_half_up(value: float, digits: int = 0) -> float:
    """Round halves toward +infinity (round() would round halves to even)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


# ===== SEASONALITY =====

def calculate_seasonality_coefficients(monthly_sales: dict) -> dict:
    """
    Calculate monthly seasonality coefficients from aggregated monthly sales.

    The coefficient represents how much each month deviates from the average
    of the months that have data. Index > 1.0 = above average.

    Args:
        monthly_sales: dict mapping month (1-12) to total units across all years.
                       May be sparse or empty.

    Returns:
        SeasonalityCoefficients: month (1-12) -> coefficient, always fully
        populated. Months without data default to 1.0.
    """
    if not monthly_sales:
        return SeasonalityCoefficients({m: NEUTRAL_SEASONALITY for m in MONTHS})

    totals = np.asarray(list(monthly_sales.values()), dtype=float)
    avg_monthly = totals.mean()

    if avg_monthly == 0:
        return SeasonalityCoefficients({m: NEUTRAL_SEASONALITY for m in MONTHS})

    coefficients = {month: float(total / avg_monthly) for month, total in monthly_sales.items()}

    for month in MONTHS:
        if month not in coefficients:
            coefficients[month] = NEUTRAL_SEASONALITY

    return SeasonalityCoefficients(
        sorted(coefficients.items()),
        months_with_data=len([m for m in monthly_sales if m in MONTHS]),
    )


def build_seasonality_profile(monthly_sales: dict) -> dict:
    """
    Seasonality coefficients plus coverage statistics.

    Returns:
        dict: {
            'indices': month -> coefficient (see calculate_seasonality_coefficients),
            'has_full_year': bool, all 12 months have data,
            'months_with_data': int
        }
    """
    indices = calculate_seasonality_coefficients(monthly_sales)

    return {
        'indices': indices,
        'has_full_year': indices.months_with_data == 12,
        'months_with_data': indices.months_with_data
    }


def get_seasonality_factor(target_month: int, coefficients: dict) -> float:
    """Seasonality coefficient for target_month, 1.0 when unknown."""
    if not coefficients:
        return NEUTRAL_SEASONALITY
    factor = coefficients.get(target_month)
    return NEUTRAL_SEASONALITY if factor is None else float(factor)


# ===== SMOOTHING =====

def weighted_moving_average(daily_sales, weights=DEFAULT_WMA_WEIGHTS) -> float:
    """
    Calculate a weighted moving average with bias toward recent data.

    The series is split into len(weights) contiguous segments of
    ceil(n / len(weights)) days counted back from the newest day, so the
    oldest segment may be short or empty. weights[0] is paired with the
    newest segment. Only segments that hold data contribute to the weight
    total, which keeps short histories unbiased.

    Args:
        daily_sales: Daily sales values (oldest to newest)
        weights: Segment weights, most recent first. Need not sum to 1.

    Returns:
        float: Weighted average daily demand
    """
    values = np.asarray(daily_sales, dtype=float)
    n = len(values)

    if n == 0:
        return 0.0
    if n == 1:
        return float(values[0])

    weights = tuple(weights)
    if not weights:
        return 0.0

    segment_count = len(weights)
    segment_size = math.ceil(n / segment_count)

    # Oldest to newest
    segment_means = []
    for i in range(segment_count):
        start = n - segment_size * (segment_count - i)
        end = start + segment_size
        lo, hi = max(0, start), min(n, end)
        if hi > lo:
            segment_means.append(values[lo:hi].mean())

    weighted_sum = 0.0
    weight_sum = 0.0
    for i, segment_mean in enumerate(reversed(segment_means)):
        # A zero weight falls back to the last weight
        weight = weights[i] or weights[-1]
        weighted_sum += segment_mean * weight
        weight_sum += weight

    return float(weighted_sum / weight_sum) if weight_sum > 0 else 0.0


# ===== TREND =====

def calculate_linear_trend(daily_sales) -> tuple:
    """
    Least-squares line over x = 0..n-1.

    Args:
        daily_sales: Daily sales values (oldest to newest)

    Returns:
        tuple: (slope, intercept). Positive slope = growing demand.
    """
    n = len(daily_sales)
    if n < 2:
        return 0.0, float(daily_sales[0]) if n == 1 else 0.0

    sum_x = 0.0
    sum_y = 0.0
    sum_xy = 0.0
    sum_xx = 0.0

    for i, y in enumerate(daily_sales):
        x = float(i)
        y = float(y)
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_xx += x * x

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0, sum_y / n

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    return slope, intercept


def classify_trend(previous_avg: float, current_avg: float,
                   threshold: float = DEFAULT_FORECAST_CONFIG.trend_threshold_percent) -> tuple:
    """
    Classify trend direction from the percentage change between two averages.

    Returns:
        tuple: (TrendDirection, percent). A zero previous average reports
               100% up when there are current sales, otherwise stable.
    """
    if previous_avg == 0:
        if current_avg > 0:
            return TrendDirection.UP, 100
        return TrendDirection.STABLE, 0

    percent = int(_round_half_up((current_avg - previous_avg) / previous_avg * 100))

    if percent > threshold:
        direction = TrendDirection.UP
    elif percent < -threshold:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.STABLE

    return direction, percent


def calculate_trend_direction(daily_sales, threshold=None) -> tuple:
    """Compare the recent half of the series against the older half."""
    if threshold is None:
        threshold = DEFAULT_FORECAST_CONFIG.trend_threshold_percent

    values = np.asarray(daily_sales, dtype=float)
    n = len(values)
    midpoint = n // 2

    older_avg = values[:midpoint].sum() / max(1, midpoint)
    recent_avg = values[midpoint:].sum() / max(1, n - midpoint)

    return classify_trend(float(older_avg), float(recent_avg), threshold)


# ===== ENSEMBLE =====

def calculate_confidence(data_points: int, months_covered: int,
                         min_history_days: int = DEFAULT_FORECAST_CONFIG.min_history_days) -> int:
    """
    Confidence score (0-100) from data volume and seasonal coverage.

    Independent of the predicted demand value.
    """
    if data_points >= CONFIDENCE_FULL_YEAR[0]:
        confidence = CONFIDENCE_FULL_YEAR[1]
    elif data_points >= CONFIDENCE_HALF_YEAR[0]:
        confidence = CONFIDENCE_HALF_YEAR[1]
    elif data_points >= CONFIDENCE_QUARTER[0]:
        confidence = CONFIDENCE_QUARTER[1]
    elif data_points >= min_history_days:
        confidence = MIN_HISTORY_BASE_CONFIDENCE + (data_points - min_history_days) * MIN_HISTORY_STEP
    elif data_points >= WEEK_POINTS:
        confidence = WEEK_BASE_CONFIDENCE + (data_points - WEEK_POINTS) * WEEK_STEP
    else:
        confidence = data_points * SHORT_HISTORY_STEP

    for min_months, bonus in SEASONAL_COVERAGE_BONUS:
        if months_covered >= min_months:
            confidence += bonus
            break

    return int(min(100, max(0, _round_half_up(confidence))))


def predict_daily_demand(daily_sales, target_month: int, seasonality_coefficients: dict,
                         config: ForecastConfig = None) -> DemandPrediction:
    """
    Predict daily demand using an ensemble:
    weighted moving average * seasonality + bounded trend adjustment.

    Args:
        daily_sales: Daily sales values (oldest to newest, zero-filled)
        target_month: Month to forecast for (1-12)
        seasonality_coefficients: month -> coefficient mapping. Its size
                                  feeds the confidence bonus, so a fully
                                  populated table always counts 12 months.
        config: ForecastConfig (defaults when omitted)

    Returns:
        DemandPrediction
    """
    config = config or DEFAULT_FORECAST_CONFIG
    values = np.asarray(daily_sales, dtype=float)

    if len(values) == 0:
        return EMPTY_PREDICTION

    seasonality_coefficients = seasonality_coefficients or {}

    wma = weighted_moving_average(values, config.wma_weights)
    seasonality_factor = get_seasonality_factor(target_month, seasonality_coefficients)
    slope, _ = calculate_linear_trend(values)
    trend_direction, trend_percent = calculate_trend_direction(values, config.trend_threshold_percent)

    # slope is in daily units, so the cap is an absolute number of units
    # per day rather than a share of demand
    cap = config.trend_adjustment_cap
    trend_adjustment = max(-cap, min(cap, slope * config.trend_projection_days))
    daily_demand = max(0.0, wma * seasonality_factor + trend_adjustment)

    confidence = calculate_confidence(len(values), months_covered(seasonality_coefficients),
                                      config.min_history_days)

    return DemandPrediction(
        daily_demand=_round_half_up(daily_demand, 2),
        confidence=confidence,
        trend_direction=trend_direction,
        trend_percent=trend_percent,
        seasonality_factor=_round_half_up(seasonality_factor, 2),
    )


def build_forecast_curve(prediction: DemandPrediction, start_date, days: int) -> pd.DataFrame:
    """
    Project predicted daily demand flat over the next `days` dates.

    Args:
        prediction: DemandPrediction for the SKU
        start_date: Last observed date; the curve starts the day after
        days: Forecast horizon in days

    Returns:
        DataFrame with columns: date, forecast_qty, cumulative_qty
    """
    if days is None or days <= 0:
        return pd.DataFrame(columns=['date', 'forecast_qty', 'cumulative_qty'])

    first_day = pd.Timestamp(start_date).normalize() + timedelta(days=1)
    dates = pd.date_range(first_day, periods=int(days), freq='D')

    curve = pd.DataFrame({
        'date': dates,
        'forecast_qty': prediction.daily_demand,
    })
    curve['cumulative_qty'] = curve['forecast_qty'].cumsum().round(2)
    return curve
