"""
KPI Definitions: source fields, formula and business question per KPI.

Each KPI is defined with:
- report_field: key in the structured (JSON) report
- required_fields: logical CSV fields needed for computation
- formula: short text describing the computation
- business_question: what executive question it answers
- output_type: scalar | table | series
"""

KPI_DEFINITIONS = {
    "total_revenue": {
        "name": "total_revenue",
        "report_field": "totalRevenue",
        "required_fields": ["amount"],
        "formula": "sum(amount) over rows with a parsable date",
        "business_question": "How much revenue did the period bring in?",
        "output_type": "scalar",
    },
    "orders": {
        "name": "orders",
        "report_field": "orders",
        "required_fields": ["date"],
        "formula": "count(rows with a parsable date)",
        "business_question": "How many orders were placed?",
        "output_type": "scalar",
    },
    "avg_order_value": {
        "name": "avg_order_value",
        "report_field": "avgOrderValue",
        "required_fields": ["amount"],
        "formula": "total_revenue / orders (0 when no orders)",
        "business_question": "How much does a typical order bring in?",
        "output_type": "scalar",
    },
    "unique_customers": {
        "name": "unique_customers",
        "report_field": "uniqueCustomers",
        "required_fields": ["customer"],
        "formula": "nunique(customer)",
        "business_question": "How broad is the customer base?",
        "output_type": "scalar",
    },
    "retention_rate": {
        "name": "retention_rate",
        "report_field": "retentionRate",
        "required_fields": ["customer", "date"],
        "formula": "customers seen in >= 2 ISO weeks / unique_customers",
        "business_question": "Do customers come back?",
        "output_type": "scalar",
    },
    "top_customers": {
        "name": "top_customers",
        "report_field": "topCustomers",
        "required_fields": ["customer", "amount"],
        "formula": "groupby(customer).sum(amount), top 5 by revenue desc, name asc",
        "business_question": "Who are the most valuable customers?",
        "output_type": "table",
    },
    "top_products": {
        "name": "top_products",
        "report_field": "topProducts",
        "required_fields": ["product", "amount"],
        "formula": "groupby(product).sum(amount), top 5 by revenue desc, name asc",
        "business_question": "Which products drive the most revenue?",
        "output_type": "table",
    },
    "daily_revenue": {
        "name": "daily_revenue",
        "report_field": "dailyRevenue",
        "required_fields": ["date", "amount"],
        "formula": "groupby(date).sum(amount), days ascending, no gap filling",
        "business_question": "How does revenue evolve day to day?",
        "output_type": "series",
    },
    "anomalies": {
        "name": "anomalies",
        "report_field": "anomalies",
        "required_fields": ["date", "amount"],
        "formula": "z = (x - mean(daily)) / pstdev(daily); flag |z| >= 2 when >= 7 days",
        "business_question": "Which days deviate from the observed pattern?",
        "output_type": "table",
    },
    "forecast_next_7_days": {
        "name": "forecast_next_7_days",
        "report_field": "forecastNext7DaysTotal",
        "required_fields": ["date", "amount"],
        "formula": "mean(last min(7, n) daily totals) * 7",
        "business_question": "What revenue should the next week bring at the current pace?",
        "output_type": "scalar",
    },
    "overdue_count": {
        "name": "overdue_count",
        "report_field": "overdueCount",
        "required_fields": ["status"],
        "formula": "count(status contains 'overdue' | 'unpaid' | 'due')",
        "business_question": "How many invoices need collection follow-up?",
        "output_type": "scalar",
    },
    "overdue_total": {
        "name": "overdue_total",
        "report_field": "overdueTotal",
        "required_fields": ["status", "amount"],
        "formula": "sum(amount where status is overdue/unpaid)",
        "business_question": "How much money is outstanding?",
        "output_type": "scalar",
    },
}


def get_kpi_definitions() -> dict:
    return KPI_DEFINITIONS


def get_all_required_fields() -> list[str]:
    """Union of all required logical fields across KPIs."""
    seen: set[str] = set()
    for defn in KPI_DEFINITIONS.values():
        for f in defn["required_fields"]:
            seen.add(f)
    return sorted(seen)
