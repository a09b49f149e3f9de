"""Prometheus metrics."""

from prometheus_client import Counter, Histogram

# Entry metrics
entries_recorded = Counter(
    "econova_entries_recorded_total",
    "Total daily waste entries accepted",
    ["tenant_id", "category"],
)

entries_rejected = Counter(
    "econova_entries_rejected_total",
    "Total daily waste entries rejected",
    ["reason"],
)

recorded_kg = Histogram(
    "econova_entry_kg",
    "Weight of accepted daily waste entries in kg",
    buckets=(1, 5, 10, 25, 50, 100, 250, 500, 1000, 5000),
)

# Lifecycle metrics
month_transitions = Counter(
    "econova_month_transitions_total",
    "Monthly summary lifecycle transition attempts",
    ["transition", "outcome"],
)

# Official ledger metrics
bridge_writes = Counter(
    "econova_official_ledger_writes_total",
    "Official ledger write attempts",
    ["status"],
)
