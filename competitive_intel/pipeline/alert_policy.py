"""Which stored signals raise an alert, and how urgently."""

from competitive_intel.data_management.schemas import (
    ProcessedSignal,
    SignalType,
    StrategicImpact,
    Timeframe,
    Urgency,
)

HIGH_IMPACT_LEVELS = frozenset({StrategicImpact.CRITICAL, StrategicImpact.HIGH})
ALERT_SIGNAL_TYPES = frozenset({SignalType.PRODUCT_LAUNCH, SignalType.PRICING_CHANGE})
IMMEDIATE_CONFIDENCE_THRESHOLD = 0.8


def should_alert(signal: ProcessedSignal) -> bool:
    if signal.impact.strategic in HIGH_IMPACT_LEVELS:
        return True
    if signal.type in ALERT_SIGNAL_TYPES:
        return True
    return (
        signal.verification.confidence_level > IMMEDIATE_CONFIDENCE_THRESHOLD
        and signal.impact.timeframe is Timeframe.IMMEDIATE
    )


def alert_urgency(signal: ProcessedSignal) -> Urgency:
    if signal.impact.strategic is StrategicImpact.CRITICAL:
        return Urgency.HIGH
    return Urgency.MEDIUM
