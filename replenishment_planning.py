"""
Replenishment Planning Module
=============================
Converts predicted daily demand, supplier lead time and a safety buffer
(in days of demand) into actionable reorder quantities.

Key Features:
- Reorder point: stock level that should trigger a purchase order
- Reorder quantity: units to order, rounded up
- Reorder decision for a current stock level
"""

import math
from dataclasses import dataclass
from typing import Optional

from forecast_rules import DEFAULT_FORECAST_CONFIG, ForecastConfig


@dataclass(frozen=True)
class ReorderRecommendation:
    reorder_point: int
    reorder_quantity: int

    def to_dict(self) -> dict:
        return {'reorder_point': self.reorder_point, 'reorder_quantity': self.reorder_quantity}


def calculate_reorder_quantity(
    daily_demand: float,
    lead_time_days: float,
    safety_stock_days: float
) -> int:
    """
    Calculate recommended reorder quantity.

    Formula: (Lead Time * Daily Demand) + (Safety Stock Days * Daily Demand)

    Args:
        daily_demand: Predicted daily demand (units/day)
        lead_time_days: Supplier lead time in days
        safety_stock_days: Additional buffer in days of demand

    Returns:
        Order quantity in units, rounded up. 0 without demand.
    """
    if daily_demand <= 0:
        return 0

    lead_time_qty = daily_demand * lead_time_days
    safety_qty = daily_demand * safety_stock_days

    return int(math.ceil(lead_time_qty + safety_qty))


def calculate_reorder_point(
    daily_demand: float,
    lead_time_days: float,
    safety_stock_days: float
) -> int:
    """
    Calculate the reorder point (ROP).

    Formula: ROP = Daily Demand * (Lead Time + Safety Stock Days)

    Note: this is currently the same expression as the reorder quantity.
    A textbook ROP would cover only lead-time demand plus safety stock in
    units; keep the shared formula until product confirms the intended split.

    Args:
        daily_demand: Predicted daily demand (units/day)
        lead_time_days: Supplier lead time in days
        safety_stock_days: Additional buffer in days of demand

    Returns:
        Reorder point in units, rounded up
    """
    return int(math.ceil(daily_demand * (lead_time_days + safety_stock_days)))


def recommend_reorder(
    daily_demand: float,
    lead_time_days: Optional[float] = None,
    safety_stock_days: Optional[float] = None,
    config: ForecastConfig = None
) -> ReorderRecommendation:
    """
    Reorder point and quantity for one SKU.

    Lead time and safety stock fall back to the config defaults.
    """
    config = config or DEFAULT_FORECAST_CONFIG
    if lead_time_days is None:
        lead_time_days = config.default_lead_time_days
    if safety_stock_days is None:
        safety_stock_days = config.safety_stock_days

    return ReorderRecommendation(
        reorder_point=calculate_reorder_point(daily_demand, lead_time_days, safety_stock_days),
        reorder_quantity=calculate_reorder_quantity(daily_demand, lead_time_days, safety_stock_days),
    )


def should_reorder(current_stock: float, reorder_point: float) -> bool:
    """True when stock has fallen to or below a positive reorder point."""
    return reorder_point > 0 and current_stock <= reorder_point
