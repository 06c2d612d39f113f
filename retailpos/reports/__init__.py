"""
Reports package: dashboard, inventory, expenses, profit & loss, analytics.
"""

from .profit_loss import (
    Period,
    PeriodSummary,
    ProfitabilityAnalysis,
    Timeframe,
    build_periods,
    export_profit_loss_csv,
    fetch_period_report,
    fetch_realtime,
    generate_period_data,
    profitability_analysis,
    sale_cogs,
    summarize,
)
from .inventory import (
    STATUS_LABELS,
    InventoryStats,
    fetch_movements,
    fetch_products,
    filter_products,
    inventory_stats,
    low_stock_products,
    stock_status,
)
from .expenses import (
    DATE_FILTERS,
    EXPENSE_CATEGORIES,
    export_expenses_csv,
    fetch_expense,
    fetch_expenses,
    filter_expenses,
    total_expenses,
    validate_expense_form,
)
from .dashboard import DashboardStats, build_dashboard, fetch_dashboard, percent_change
from .analytics import build_analytics, fetch_analytics

__all__ = [
    "Period",
    "PeriodSummary",
    "ProfitabilityAnalysis",
    "Timeframe",
    "build_periods",
    "export_profit_loss_csv",
    "fetch_period_report",
    "fetch_realtime",
    "generate_period_data",
    "profitability_analysis",
    "sale_cogs",
    "summarize",
    "STATUS_LABELS",
    "InventoryStats",
    "fetch_movements",
    "fetch_products",
    "filter_products",
    "inventory_stats",
    "low_stock_products",
    "stock_status",
    "DATE_FILTERS",
    "EXPENSE_CATEGORIES",
    "export_expenses_csv",
    "fetch_expense",
    "fetch_expenses",
    "filter_expenses",
    "total_expenses",
    "validate_expense_form",
    "DashboardStats",
    "build_dashboard",
    "fetch_dashboard",
    "percent_change",
    "build_analytics",
    "fetch_analytics",
]
