from prometheus_client import Counter, Histogram, generate_latest
from fastapi import Response

# Метрики для HTTP запросов
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Метрики аутентификации
auth_attempts_total = Counter(
    'auth_attempts_total',
    'Login and signup attempts',
    ['action', 'result']
)

gatekeeper_decisions_total = Counter(
    'gatekeeper_decisions_total',
    'Route gatekeeper decisions',
    ['outcome']
)

def metrics_endpoint():
    """Endpoint для Prometheus метрик"""
    return Response(content=generate_latest(), media_type="text/plain")
