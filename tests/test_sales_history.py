"""
Tests for sales history helpers (daily series and monthly aggregates)
"""

import pandas as pd

from sales_history import (
    aggregate_monthly_sales,
    build_daily_sales_series,
    count_invalid_dates,
    resolve_history_window,
)


def make_sales(rows):
    return pd.DataFrame(rows, columns=['date', 'qty'])


class TestBuildDailySalesSeries:
    """Tests for build_daily_sales_series"""

    def test_sums_per_day_and_fills_gaps(self):
        sales = make_sales([('2024-01-01', 3), ('2024-01-03', 2), ('2024-01-03', 1)])
        assert build_daily_sales_series(sales) == [3.0, 0.0, 3.0]

    def test_explicit_range_pads_both_ends(self):
        sales = make_sales([('2024-01-01', 3), ('2024-01-03', 3)])
        series = build_daily_sales_series(sales, start='2023-12-31', end='2024-01-04')
        assert series == [0.0, 3.0, 0.0, 3.0, 0.0]

    def test_range_trims_records_outside(self):
        sales = make_sales([('2024-01-01', 3), ('2024-01-05', 4)])
        assert build_daily_sales_series(sales, start='2024-01-04', end='2024-01-05') == [0.0, 4.0]

    def test_bad_rows_are_dropped_or_zeroed(self):
        sales = make_sales([('2024-01-01', 3), ('not a date', 8), ('2024-01-02', -5), ('2024-01-03', 'x')])
        assert build_daily_sales_series(sales) == [3.0, 0.0, 0.0]

    def test_custom_column_names(self):
        sales = pd.DataFrame({'sold_on': ['2024-02-01', '2024-02-02'], 'units': [1, 2]})
        assert build_daily_sales_series(sales, date_col='sold_on', qty_col='units') == [1.0, 2.0]

    def test_empty_input(self):
        assert build_daily_sales_series(make_sales([])) == []
        assert build_daily_sales_series(None) == []

    def test_empty_input_with_range_is_all_zero(self):
        assert build_daily_sales_series(make_sales([]), start='2024-01-01', end='2024-01-03') == [0.0, 0.0, 0.0]

    def test_inverted_range(self):
        sales = make_sales([('2024-01-01', 3)])
        assert build_daily_sales_series(sales, start='2024-01-05', end='2024-01-01') == []


class TestAggregateMonthlySales:
    """Tests for aggregate_monthly_sales"""

    def test_totals_across_years(self):
        sales = make_sales([('2023-01-05', 4), ('2024-01-10', 6), ('2024-02-01', 5)])
        assert aggregate_monthly_sales(sales) == {1: 10.0, 2: 5.0}

    def test_empty(self):
        assert aggregate_monthly_sales(make_sales([])) == {}


def test_resolve_history_window():
    start, end = resolve_history_window('2024-03-10', 7)
    assert start == pd.Timestamp('2024-03-04')
    assert end == pd.Timestamp('2024-03-10')


def test_count_invalid_dates():
    sales = make_sales([('2024-01-01', 1), ('garbage', 1), (None, 1)])
    assert count_invalid_dates(sales, 'date') == 2
    assert count_invalid_dates(sales, 'missing') == 0
