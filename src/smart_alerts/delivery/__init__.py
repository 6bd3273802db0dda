"""Alert delivery: cooldowns, content dedup and the send pipeline."""

from smart_alerts.delivery.dedup import DedupGate
from smart_alerts.delivery.pipeline import DeliveryPipeline, SendOutcome, SendStatus
from smart_alerts.delivery.rate_limit import CooldownRateLimiter
from smart_alerts.delivery.timeout import run_with_timeout

__all__ = [
    "CooldownRateLimiter",
    "DedupGate",
    "DeliveryPipeline",
    "SendOutcome",
    "SendStatus",
    "run_with_timeout",
]
