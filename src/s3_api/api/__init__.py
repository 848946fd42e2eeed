"""HTTP handlers, request schemas and routing."""
