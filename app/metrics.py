from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path", "status"],
)
REQUEST_ERRORS = Counter(
    "http_request_errors_total",
    "Total HTTP 5xx responses",
    ["method", "path", "status"],
)

FILE_UPLOADS = Counter(
    "file_uploads_total",
    "Files processed by batch uploads",
    ["outcome"],
)
UPLOAD_BYTES = Counter(
    "file_upload_bytes_total",
    "Bytes stored through successful uploads",
)


def observe_upload(succeeded: int, failed: int, stored_bytes: int) -> None:
    FILE_UPLOADS.labels(outcome="success").inc(succeeded)
    FILE_UPLOADS.labels(outcome="failed").inc(failed)
    UPLOAD_BYTES.inc(stored_bytes)
