"""
Tests for Stockout Prediction

Tests for:
1. Risk tier classification against lead time and thresholds
2. Days until stockout, including the no-demand sentinel
3. Stockout date projection and tagged horizon
4. Summary metrics and critical item selection
"""

import pytest
import pandas as pd

from forecast_rules import get_forecast_config
from stockout_prediction import (
    NO_DEMAND_HORIZON_DAYS,
    StockoutRisk,
    calculate_days_until_stockout,
    classify_stockout_risk,
    describe_stockout_horizon,
    estimate_stockout_date,
    get_critical_at_risk_items,
    get_stockout_summary_metrics,
    sort_by_risk,
)


class TestClassifyStockoutRisk:
    """Tests for classify_stockout_risk with default thresholds 7/14/30"""

    @pytest.mark.parametrize("lead_time", [0, 5, 30, 200])
    def test_out_of_stock_is_critical(self, lead_time):
        assert classify_stockout_risk(0, lead_time) == StockoutRisk.CRITICAL
        assert classify_stockout_risk(-3, lead_time) == StockoutRisk.CRITICAL

    @pytest.mark.parametrize("days,expected", [
        (3, StockoutRisk.CRITICAL),   # effective threshold max(5, 7) = 7
        (7, StockoutRisk.CRITICAL),
        (10, StockoutRisk.HIGH),
        (14, StockoutRisk.HIGH),
        (20, StockoutRisk.MEDIUM),
        (30, StockoutRisk.MEDIUM),
        (40, StockoutRisk.LOW),
    ])
    def test_tiers_with_short_lead_time(self, days, expected):
        assert classify_stockout_risk(days, 5) == expected

    def test_long_lead_time_extends_critical(self):
        """Cannot restock within a 21 day lead time"""
        assert classify_stockout_risk(20, 21) == StockoutRisk.CRITICAL
        assert classify_stockout_risk(22, 21) == StockoutRisk.MEDIUM

    def test_no_demand_sentinel_is_low(self):
        assert classify_stockout_risk(NO_DEMAND_HORIZON_DAYS, 14) == StockoutRisk.LOW

    def test_custom_thresholds(self):
        config = get_forecast_config({'risk_thresholds': {'critical': 3, 'high': 5, 'medium': 10}})
        assert classify_stockout_risk(3, 1, config) == StockoutRisk.CRITICAL
        assert classify_stockout_risk(4, 1, config) == StockoutRisk.HIGH
        assert classify_stockout_risk(8, 1, config) == StockoutRisk.MEDIUM
        assert classify_stockout_risk(11, 1, config) == StockoutRisk.LOW

    def test_risk_compares_to_plain_string(self):
        assert classify_stockout_risk(40, 5) == 'LOW'
        assert str(StockoutRisk.CRITICAL) == 'CRITICAL'


class TestDaysUntilStockout:
    """Tests for calculate_days_until_stockout"""

    def test_no_demand_returns_sentinel(self):
        assert calculate_days_until_stockout(100, 0) == 999
        assert calculate_days_until_stockout(100, -1) == 999

    def test_no_demand_wins_over_empty_stock(self):
        assert calculate_days_until_stockout(0, 0) == NO_DEMAND_HORIZON_DAYS

    def test_depleted_stock(self):
        assert calculate_days_until_stockout(0, 5) == 0
        assert calculate_days_until_stockout(-10, 5) == 0

    def test_floors_fractional_days(self):
        assert calculate_days_until_stockout(50, 5) == 10
        assert calculate_days_until_stockout(54, 5) == 10
        assert calculate_days_until_stockout(1, 2.5) == 0


class TestStockoutHorizon:
    """Tests for describe_stockout_horizon and estimate_stockout_date"""

    def test_tagged_horizon(self):
        assert describe_stockout_horizon(NO_DEMAND_HORIZON_DAYS) == ('indefinite', None)
        assert describe_stockout_horizon(12) == ('finite', 12)

    def test_stockout_date(self):
        assert estimate_stockout_date(50, 5, '2024-03-01') == pd.Timestamp('2024-03-11')

    def test_stockout_date_without_demand(self):
        assert estimate_stockout_date(100, 0, '2024-03-01') is None

    def test_stockout_date_when_already_out(self):
        assert estimate_stockout_date(0, 2, '2024-03-01') == pd.Timestamp('2024-03-01')


@pytest.fixture
def forecast_table():
    return pd.DataFrame({
        'sku': ['LOW-1', 'CRIT-1', 'HIGH-1', 'NODEMAND', 'CRIT-0', 'MED-1'],
        'risk_level': ['LOW', 'CRITICAL', 'HIGH', 'LOW', 'CRITICAL', 'MEDIUM'],
        'days_until_stockout': [45, 5, 12, 999, 0, 25],
        'needs_reorder': [False, True, True, False, True, False],
    })


class TestRiskTables:
    """Tests for summary metrics, sorting and critical item selection"""

    def test_sort_by_risk(self, forecast_table):
        ordered = sort_by_risk(forecast_table)
        assert list(ordered['sku']) == ['CRIT-0', 'CRIT-1', 'HIGH-1', 'MED-1', 'LOW-1', 'NODEMAND']

    def test_summary_metrics(self, forecast_table):
        metrics = get_stockout_summary_metrics(forecast_table)
        assert metrics['total_skus'] == 6
        assert metrics['critical_count'] == 2
        assert metrics['high_count'] == 1
        assert metrics['medium_count'] == 1
        assert metrics['low_count'] == 2
        assert metrics['out_of_stock_count'] == 1
        assert metrics['needs_reorder_count'] == 3
        # Sentinel excluded from the average
        assert metrics['avg_days_until_stockout'] == pytest.approx((45 + 5 + 12 + 0 + 25) / 5)

    def test_summary_metrics_empty(self):
        assert get_stockout_summary_metrics(pd.DataFrame()) == {}

    def test_critical_items(self, forecast_table):
        critical = get_critical_at_risk_items(forecast_table, top_n=2)
        assert list(critical['sku']) == ['CRIT-0', 'CRIT-1']

    def test_critical_items_empty(self):
        assert get_critical_at_risk_items(pd.DataFrame()).empty
