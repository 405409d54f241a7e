"""Backend REST API client and record schemas."""
