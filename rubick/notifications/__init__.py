"""Delivery of host load diagnostics to the operator."""
