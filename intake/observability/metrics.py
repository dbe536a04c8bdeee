"""
Prometheus metrics for the submission intake service.
"""

from prometheus_client import Counter, Gauge


# ── Intake ───────────────────────────────────────────────────
submissions_created_total = Counter(
    "submissions_created_total",
    "Total submissions persisted",
    ["source"],
)

submission_attachments_stored_bytes_total = Counter(
    "submission_attachments_stored_bytes_total",
    "Cumulative size of stored attachment payloads",
)

# ── Review ───────────────────────────────────────────────────
submissions_reviewed_total = Counter(
    "submissions_reviewed_total",
    "Total successful review transitions",
    ["outcome"],
)

submission_review_conflicts_total = Counter(
    "submission_review_conflicts_total",
    "Review attempts on a submission that was not pending",
    ["outcome"],
)

submissions_by_status = Gauge(
    "submissions_by_status",
    "Current number of submissions per status",
    ["status"],
)

# ── Inbox ────────────────────────────────────────────────────
inbox_files_total = Counter(
    "inbox_files_total",
    "Inbox files handled by the importer",
    ["result"],
)
