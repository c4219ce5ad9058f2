"""
Forecast Rules Configuration
Centralized defaults for the demand forecasting and reorder planning engine.
Thresholds can be tuned here (or overridden per call) without modifying the
forecasting code.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple


# ===== FORECASTING RULES =====

FORECAST_RULES = {
    "history": {
        # Data points needed before the reduced-confidence tier applies
        "min_history_days": 30,
    },

    "horizon": {
        "default_forecast_days": 30,
    },

    "replenishment": {
        "safety_stock_days": 7,        # Buffer expressed in days of demand
        "default_lead_time_days": 14,  # Used when no supplier lead time is known
    },

    "risk_thresholds": {
        # Days until stockout; first matching tier wins
        "critical": 7,
        "high": 14,
        "medium": 30,
    },

    "smoothing": {
        # Most recent segment first
        "wma_weights": (0.4, 0.3, 0.2, 0.1),
    },

    "trend": {
        "threshold_percent": 5,      # |change| above this = up/down
        "projection_days": 7,        # slope * projection_days
        "adjustment_cap": 0.3,       # absolute cap in daily units
    },
}


@dataclass(frozen=True)
class RiskThresholds:
    """Day thresholds for stockout risk tiers."""

    critical: float = FORECAST_RULES["risk_thresholds"]["critical"]
    high: float = FORECAST_RULES["risk_thresholds"]["high"]
    medium: float = FORECAST_RULES["risk_thresholds"]["medium"]


@dataclass(frozen=True)
class ForecastConfig:
    """
    Immutable configuration for a single forecast call.

    Horizon, lead time and thresholds are always supplied by the caller;
    the engine never decides them on its own.
    """

    min_history_days: int = FORECAST_RULES["history"]["min_history_days"]
    default_forecast_days: int = FORECAST_RULES["horizon"]["default_forecast_days"]
    safety_stock_days: float = FORECAST_RULES["replenishment"]["safety_stock_days"]
    default_lead_time_days: float = FORECAST_RULES["replenishment"]["default_lead_time_days"]
    risk_thresholds: RiskThresholds = field(default_factory=RiskThresholds)
    wma_weights: Tuple[float, ...] = FORECAST_RULES["smoothing"]["wma_weights"]
    trend_threshold_percent: float = FORECAST_RULES["trend"]["threshold_percent"]
    trend_projection_days: float = FORECAST_RULES["trend"]["projection_days"]
    trend_adjustment_cap: float = FORECAST_RULES["trend"]["adjustment_cap"]


DEFAULT_FORECAST_CONFIG = ForecastConfig()


def _non_negative(value, default):
    """Coerce a user-supplied number, falling back to default if unusable."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return max(0.0, number)


def _as_int(value: float):
    return int(value) if float(value).is_integer() else value


def get_forecast_config(overrides: Optional[dict] = None) -> ForecastConfig:
    """
    Build a ForecastConfig from the defaults plus caller overrides.

    Unknown keys are ignored. Day values and weights are clamped to be
    non-negative, mirroring how user thresholds are validated elsewhere.

    Args:
        overrides: Flat dict of ForecastConfig field names. ``risk_thresholds``
                   may be a dict with any of critical/high/medium.
                   ``wma_weights`` must be a list or tuple; anything
                   else keeps the default weights.

    Returns:
        ForecastConfig
    """
    if not overrides:
        return DEFAULT_FORECAST_CONFIG

    base = DEFAULT_FORECAST_CONFIG
    values = {}

    for name in ("min_history_days", "default_forecast_days", "safety_stock_days",
                 "default_lead_time_days", "trend_threshold_percent",
                 "trend_projection_days", "trend_adjustment_cap"):
        if name in overrides:
            values[name] = _as_int(_non_negative(overrides[name], getattr(base, name)))

    thresholds = overrides.get("risk_thresholds")
    if isinstance(thresholds, RiskThresholds):
        values["risk_thresholds"] = thresholds
    elif isinstance(thresholds, dict):
        values["risk_thresholds"] = RiskThresholds(**{
            tier: _as_int(_non_negative(thresholds.get(tier), getattr(base.risk_thresholds, tier)))
            for tier in ("critical", "high", "medium")
        })

    weights = overrides.get("wma_weights")
    if isinstance(weights, (list, tuple)):
        values["wma_weights"] = tuple(_non_negative(w, 0.0) for w in weights)

    return replace(base, **values)
