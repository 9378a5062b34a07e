"""
Prometheus Metrics for the O Gran Camiño Assistant
"""
from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest

registry = CollectorRegistry()

# Request metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status'],
    registry=registry
)

request_duration_seconds = Histogram(
    'request_duration_seconds',
    'Request duration in seconds',
    ['endpoint'],
    registry=registry
)

chat_requests_total = Counter(
    'chat_requests_total',
    'Total chat requests',
    ['language', 'outcome'],
    registry=registry
)

# File ingestion
file_decode_total = Counter(
    'file_decode_total',
    'File decode attempts by kind and outcome',
    ['kind', 'outcome'],  # outcome: ok, cached, malformed, unsupported, provider_error, timeout, error
    registry=registry
)

context_chars = Histogram(
    'context_chars',
    'Size of the assembled context block in characters',
    buckets=[1000, 5000, 10000, 25000, 50000, 100000, 150000],
    registry=registry
)

# Cache metrics
cache_lookups_total = Counter(
    'cache_lookups_total',
    'Content cache lookups',
    ['namespace', 'outcome'],  # outcome: hit, miss, stale
    registry=registry
)

# Cost tracking
token_usage_total = Counter(
    'token_usage_total',
    'Total tokens consumed',
    ['model', 'type'],  # type: input or output
    registry=registry
)


def get_registry():
    return registry


def generate_metrics():
    """Generate metrics in Prometheus text format"""
    return generate_latest(registry)
