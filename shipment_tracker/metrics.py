"""
Prometheus metrics: shipments created, status updates applied, transitions rejected, store size.
"""
from prometheus_client import Counter, Gauge, generate_latest

shipments_created_total = Counter(
    "shipments_created_total",
    "Total shipments created",
)
shipment_status_updates_total = Counter(
    "shipment_status_updates_total",
    "Total status updates applied (by new status)",
    ["status"],
)
shipment_transitions_rejected_total = Counter(
    "shipment_transitions_rejected_total",
    "Total status updates rejected by the shipment lifecycle",
    ["reason", "current_status", "requested_status"],
)

shipments_stored = Gauge(
    "shipments_stored",
    "Shipment count of the store that last created or reset (each app owns its own store)",
)


def get_metrics_content_type():
    return "text/plain; charset=utf-8; version=0.0.4"


def get_metrics_bytes():
    return generate_latest()
