"""landuse.integrations — External service gateway modules.

All outbound HTTP calls to the CLU backend must go through the gateway in
this package, never via bare `requests` calls in services or blueprints.

Every call is:
  - Authenticated (caller's bearer token injected by the gateway)
  - Bounded by an explicit timeout
  - Retried with backoff when it is a read (GET); writes are never retried
  - Logged with the backend path, status and latency

Current gateways:
  backend_gateway.BackendGateway — CLU workflow REST API
"""
