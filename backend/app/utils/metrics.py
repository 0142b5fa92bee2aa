"""
Prometheus metrics definitions for the API and maintenance jobs.
All metrics are registered here and can be imported by other modules.
"""
from prometheus_client import Counter, Histogram

# HTTP request metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'path', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'path'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Error metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type']
)

# Upload flow metrics
write_credentials_issued_total = Counter(
    'write_credentials_issued_total',
    'Total presigned PUT URLs issued'
)

storage_signing_failures_total = Counter(
    'storage_signing_failures_total',
    'Total failures minting presigned URLs',
    ['method']
)

read_url_fallbacks_total = Counter(
    'read_url_fallbacks_total',
    'Presigned GET resolutions that fell back to the public URL'
)

direct_uploads_total = Counter(
    'direct_uploads_total',
    'Total server-mediated uploads',
    ['status']
)

direct_upload_bytes = Histogram(
    'direct_upload_bytes',
    'Size of server-mediated uploads in bytes',
    buckets=[64_000, 256_000, 1_000_000, 2_500_000, 5_000_000, 10_000_000, 25_000_000]
)

objects_deleted_total = Counter(
    'objects_deleted_total',
    'Total objects deleted from storage',
    ['reason']
)
