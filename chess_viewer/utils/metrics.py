"""
Centralized Prometheus metrics definitions for the Chess Viewer application.

This module uses the prometheus-client library to define all metrics that will
be exposed by the application for monitoring and alerting. Grouping them here
provides a single, clear overview of the application's instrumentation points.
"""
from prometheus_client import Counter, Histogram

# A common prefix for all application-specific metrics.
PREFIX = "chess_viewer"

# --- PGN Metrics ---

GAMES_PARSED_TOTAL = Counter(
    f"{PREFIX}_games_parsed_total",
    "Total number of games successfully built from PGN text.",
)

GAMES_SKIPPED_TOTAL = Counter(
    f"{PREFIX}_games_skipped_total",
    "Total number of PGN spans skipped while parsing a document.",
    ["reason"],  # e.g., reason="unparseable"
)

MALFORMED_GAMES_TOTAL = Counter(
    f"{PREFIX}_malformed_games_total",
    "Total number of loaded games whose move list hit an illegal move during replay.",
)

# --- Engine Metrics ---

ANALYSES_TOTAL = Counter(
    f"{PREFIX}_analyses_total",
    "Total number of position analyses, by how they ended.",
    ["outcome"],  # e.g., outcome="complete", "timeout", "cancelled", "unavailable"
)

ENGINE_ANALYSIS_DURATION_SECONDS = Histogram(
    f"{PREFIX}_engine_analysis_duration_seconds",
    "Histogram of the time taken for an engine search to end, whatever the outcome.",
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, float("inf")),
)

ENGINE_CRASHES_TOTAL = Counter(
    f"{PREFIX}_engine_crashes_total",
    "Total number of engine processes that exited unexpectedly.",
)

# --- Import Metrics ---

IMPORT_TRANSIENT_ERRORS_TOTAL = Counter(
    f"{PREFIX}_import_transient_errors_total",
    "Total number of transient HTTP errors that triggered a retry.",
    ["source"],  # e.g., source="url", "chess.com", "lichess"
)
