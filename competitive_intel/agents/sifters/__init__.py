"""Sifters: analysis, guardrails and verification of collected records."""

from competitive_intel.agents.sifters.signal_analyzer import SignalAnalyzer

__all__ = ["SignalAnalyzer"]
