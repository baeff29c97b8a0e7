from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from flask import Response

# Scan Metrics
scans_total = Counter("nexus_scans_total", "Total scan invocations", ["status"])

scan_duration_seconds = Histogram("nexus_scan_duration_seconds", "Full scan duration")

ACTIVE_SCANS = Gauge("nexus_active_scans", "Number of active catalog scans")

adapter_candidates_total = Counter(
    "nexus_adapter_candidates_total", "Candidates produced per source adapter", ["mechanism"]
)

adapter_failures_total = Counter("nexus_adapter_failures_total", "Source adapters that failed", ["mechanism"])

# Metadata Metrics
metadata_resolutions_total = Counter(
    "nexus_metadata_resolutions_total", "Metadata resolutions by winning tier", ["tier"]
)

metadata_tier_errors_total = Counter(
    "nexus_metadata_tier_errors_total", "Network or parse errors per resolver tier", ["tier"]
)

# Persistence Metrics
merge_results_total = Counter("nexus_merge_results_total", "Merged entries by outcome", ["outcome"])

persistence_failures_total = Counter("nexus_persistence_failures_total", "Per-entry save/delete failures")

library_games_total = Gauge("nexus_library_games_total", "Total number of entries in the catalog")


def metrics_response():
    """Prometheus exposition for the /metrics endpoint"""
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
