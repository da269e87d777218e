"""Prometheus metric inventory.

Every metric the service exports is declared here; the modules that own
the behaviour import the one they need and increment/observe it.

  HTTP traffic      - populated by MetricsMiddleware
  cache             - hit/miss per read-through lookup
  ledger            - read-only contract calls by function and outcome
  verification      - results by outcome (valid/invalid/not_found/error)
  degraded stores   - swallowed cache/database failures
  audit log         - verification_logs writes that failed
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # Cache hits land in the first buckets; a cold ledger read through the
    # Hiro API typically takes 100-500ms.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Application-specific metrics
# ---------------------------------------------------------------------------

RATE_LIMIT_HITS = Counter(
    "rate_limit_hits_total",
    "Requests rejected by rate limiting (429s)",
    ["scope"],  # verification|batch|search
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # "hit" or "miss"
)

LEDGER_CALLS = Counter(
    "ledger_calls_total",
    "Read-only smart contract calls",
    ["function", "outcome"],  # outcome: ok|not_found|error|fallback
)

LEDGER_CALL_DURATION = Histogram(
    "ledger_call_duration_seconds",
    "Latency of read-only smart contract calls",
    ["function"],
    buckets=[0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

VERIFICATIONS = Counter(
    "verifications_total",
    "Credential verifications by outcome",
    ["outcome"],  # valid|invalid|not_found|error
)

STORE_DEGRADED = Counter(
    "store_degraded_total",
    "Cache or database failures swallowed during verification",
    ["store"],  # cache|database
)

AUDIT_LOG_FAILURES = Counter(
    "audit_log_failures_total",
    "Verification audit rows that could not be written",
)
