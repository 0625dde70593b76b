"""
Supporting utilities for tablesync

Provides:
- logging: structured stderr/file logging
- tracing: OpenTelemetry spans
- metrics: Prometheus metrics for batch runs
- vault_client: HashiCorp Vault credentials
"""

__all__ = ["logging", "tracing", "metrics", "vault_client"]
