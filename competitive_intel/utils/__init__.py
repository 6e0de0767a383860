"""Shared utilities: structured logging and rate limiting."""
