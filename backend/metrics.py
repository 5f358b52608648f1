# backend/metrics.py
from prometheus_client import Counter, Histogram, CollectorRegistry

# Dedicated registry to avoid clashes on reload / repeated imports
REGISTRY = CollectorRegistry(auto_describe=True)

SUBMISSIONS = Counter(
    "ps_submissions_total",
    "Number of problem statement submissions",
    ["outcome"],
    registry=REGISTRY,
)

DOCUMENTS_SKIPPED = Counter(
    "ps_documents_skipped_total",
    "Supporting documents rejected by the per-file policy",
    registry=REGISTRY,
)

UPLOAD_BYTES = Counter(
    "ps_upload_bytes_total",
    "Bytes written to the uploads area",
    ["kind"],
    registry=REGISTRY,
)

STATUS_UPDATES = Counter(
    "ps_status_updates_total",
    "Submission status changes",
    ["status"],
    registry=REGISTRY,
)

SUBMIT_LATENCY = Histogram(
    "ps_submit_latency_seconds",
    "Latency of the submission pipeline in seconds",
    registry=REGISTRY,
)
