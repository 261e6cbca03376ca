"""
Rule-Based Recommendation Engine.

Turns aggregate signals (overdue totals, AOV, top entities, anomalies) into
ordered, human-readable recommendations. Rules are evaluated in the fixed
order of RULE_ORDER and none suppresses another: every applicable message is
emitted. Given the same KPIs the output is identical, line for line.
"""

from dataclasses import dataclass, field
from typing import Sequence

from kpi import Anomaly, KPIAggregate, RankedEntry


# -----------------------------------------------------------------------------
# RULE DEFINITIONS
# -----------------------------------------------------------------------------
# Thresholds are heuristics, not industry benchmarks.
# -----------------------------------------------------------------------------

RULE_DEFINITIONS = {
    "overdue_dunning": {
        "id": "overdue_dunning",
        "condition": "At least one overdue/unpaid invoice",
        "threshold": 0,
        "unit": "count",
        "message_template": (
            "Initiate dunning workflow: {count} overdue/unpaid invoices totaling ${total:.2f}."
        ),
    },
    "low_aov": {
        "id": "low_aov",
        "condition": "At least one order and average order value below 50",
        "threshold": 50.0,
        "unit": "currency",
        "message_template": (
            "Test bundles/tiers to increase Average Order Value (cross-sell top products)."
        ),
    },
    "top_customers_loyalty": {
        "id": "top_customers_loyalty",
        "condition": "Top customers list is non-empty",
        "threshold": None,
        "unit": None,
        "message_template": "Send loyalty offers to top customers: {entries}.",
    },
    "top_products_focus": {
        "id": "top_products_focus",
        "condition": "Top products list is non-empty",
        "threshold": None,
        "unit": None,
        "message_template": "Double down on high-velocity products: {entries}.",
    },
    "anomaly_dip": {
        "id": "anomaly_dip",
        "condition": "Daily revenue z-score below -2",
        "threshold": -2.0,
        "unit": "z_score",
        "message_template": (
            "Investigate revenue dip on {day} (z={z:.2f}). Check campaigns, outages, pricing."
        ),
    },
    "anomaly_spike": {
        "id": "anomaly_spike",
        "condition": "Daily revenue z-score above +2",
        "threshold": 2.0,
        "unit": "z_score",
        "message_template": "Spike on {day} (z={z:.2f}). Attribute uplift and try to replicate.",
    },
    "steady_performance": {
        "id": "steady_performance",
        "condition": "Positive revenue and AOV, nothing overdue, no anomalies",
        "threshold": None,
        "unit": None,
        "message_template": (
            "Steady performance. Consider experimentation (price tests, reorder nudges) "
            "to uncover upside."
        ),
    },
}

RULE_ORDER = (
    "overdue_dunning",
    "low_aov",
    "top_customers_loyalty",
    "top_products_focus",
    "anomaly_dip",
    "anomaly_spike",
    "steady_performance",
)

LOW_AOV_THRESHOLD = RULE_DEFINITIONS["low_aov"]["threshold"]
DIP_Z_THRESHOLD = RULE_DEFINITIONS["anomaly_dip"]["threshold"]
SPIKE_Z_THRESHOLD = RULE_DEFINITIONS["anomaly_spike"]["threshold"]


@dataclass
class DecisionResult:
    """Recommendations in emission order, plus the ids of the rules that fired."""
    recommendations: list[str] = field(default_factory=list)
    fired_rule_ids: list[str] = field(default_factory=list)


def format_entries(entries: Sequence[RankedEntry]) -> str:
    """Render ranked entries as 'Acme ($487.00), Zen ($398.00)'."""
    return ", ".join(f"{e.key} (${e.value:.2f})" for e in entries)


def _message(rule_id: str, **values) -> str:
    return RULE_DEFINITIONS[rule_id]["message_template"].format(**values)


def run_decision_engine(kpis: KPIAggregate, anomalies: Sequence[Anomaly]) -> DecisionResult:
    result = DecisionResult()

    def fire(rule_id: str, message: str) -> None:
        result.recommendations.append(message)
        if rule_id not in result.fired_rule_ids:
            result.fired_rule_ids.append(rule_id)

    # RULE 1: overdue / unpaid invoices
    if kpis.overdue_count > 0:
        fire(
            "overdue_dunning",
            _message("overdue_dunning", count=kpis.overdue_count, total=kpis.overdue_total),
        )

    # RULE 2: low average order value. An empty period gets no advice.
    if kpis.orders > 0 and kpis.avg_order_value < LOW_AOV_THRESHOLD:
        fire("low_aov", _message("low_aov"))

    # RULE 3-4: top entities
    if kpis.top_customers:
        fire(
            "top_customers_loyalty",
            _message("top_customers_loyalty", entries=format_entries(kpis.top_customers)),
        )
    if kpis.top_products:
        fire(
            "top_products_focus",
            _message("top_products_focus", entries=format_entries(kpis.top_products)),
        )

    # RULE 5: anomalies in day order. |z| == 2 is flagged upstream but has no message.
    for a in anomalies:
        day = a.day.isoformat()
        if a.z_score < DIP_Z_THRESHOLD:
            fire("anomaly_dip", _message("anomaly_dip", day=day, z=a.z_score))
        elif a.z_score > SPIKE_Z_THRESHOLD:
            fire("anomaly_spike", _message("anomaly_spike", day=day, z=a.z_score))

    # RULE 6: fallback
    if (
        kpis.total_revenue > 0
        and kpis.avg_order_value > 0
        and kpis.overdue_count == 0
        and not anomalies
    ):
        fire("steady_performance", _message("steady_performance"))

    return result


def get_rule_definitions() -> dict:
    return {rule_id: RULE_DEFINITIONS[rule_id] for rule_id in RULE_ORDER}
