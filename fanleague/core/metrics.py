"""
Prometheus metrics shared by the middleware and the routers
"""

from prometheus_client import Counter, Histogram, Gauge

REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
ACTIVE_CONNECTIONS = Gauge('http_active_connections', 'Number of active HTTP connections')
VERIFICATION_COUNT = Counter(
    'verification_requests_total',
    'Phone verification provider calls',
    ['action', 'status']
)
REGISTRATION_COUNT = Counter('registrations_total', 'User registrations', ['status'])
ATTENDANCE_TRANSITION_COUNT = Counter(
    'attendance_transitions_total',
    'Attendance status changes applied by admins',
    ['status']
)
