from prometheus_client import Counter, Gauge, Histogram


# Vendor lifecycle
vendor_registrations_total = Counter("vendors_registrations_total", "Vendor registrations")
vendor_status_changes_total = Counter("vendors_status_changes_total", "Vendor status changes", ["status"])

# Commission metrics
commissions_recorded_total = Counter(
    "vendors_commissions_recorded_total", "Commission lines recorded", ["commission_type"]
)
commission_amount = Histogram(
    "vendors_commission_amount",
    "Commission amount per order line",
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, float("inf")],
)
commission_status_changes_total = Counter(
    "vendors_commission_status_changes_total", "Commission status changes", ["status"]
)

# Payout metrics
payouts_generated_total = Counter("vendors_payouts_generated_total", "Payouts generated", ["status"])
payout_volume_total = Counter("vendors_payout_volume_total", "Net payout volume", ["currency", "status"])
pending_payouts_value = Gauge("vendors_pending_payouts_value", "Net value of payouts awaiting processing")
