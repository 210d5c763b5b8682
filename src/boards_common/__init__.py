"""Shared plumbing: correlation ids, error taxonomy, telemetry, tool instrumentation."""
