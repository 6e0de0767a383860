"""Collectors, sifters and communication components."""
