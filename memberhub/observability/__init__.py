"""
Observability module for MemberHub.

Structured logging with per-tenant context. Every log line emitted while
a tenant is active carries its `tenant_id`.
"""
