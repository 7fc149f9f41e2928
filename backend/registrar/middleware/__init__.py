# Middleware package init
"""
Registrar Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → Route Handler

    1. Request ID: accept or generate a correlation ID, echo it in X-Request-ID
    2. Logging: one access log line per request with status and duration
"""
