"""Resilience: paced dispatch, error classification and retry decisions."""
