"""
Pytest configuration and shared fixtures for all tests
Centralized mock sales and stock data
"""

import pytest
import pandas as pd
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from forecast_rules import DEFAULT_FORECAST_CONFIG

AS_OF = pd.Timestamp('2024-06-30')


# ===== SHARED MOCK DATA FIXTURES =====

@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def default_config():
    return DEFAULT_FORECAST_CONFIG


@pytest.fixture
def mock_sales_df():
    """
    Sales records ending on AS_OF:
    - SKU-A sells 10 units/day for the last 14 days
    - SKU-C sells 5 units/day for the last 14 days
    - SKU-B has no sales at all
    """
    days = pd.date_range(end=AS_OF, periods=14, freq='D')
    sku_a = pd.DataFrame({'sku': 'SKU-A', 'date': days, 'qty': 10})
    sku_c = pd.DataFrame({'sku': 'SKU-C', 'date': days, 'qty': 5})
    return pd.concat([sku_a, sku_c], ignore_index=True)


@pytest.fixture
def mock_stock_df():
    """Current stock for three SKUs, one with no sales history"""
    return pd.DataFrame({
        'sku': ['SKU-A', 'SKU-B', 'SKU-C'],
        'current_stock': [20, 100, 500],
    })
