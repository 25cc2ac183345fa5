"""Classifier API usage and cost tracking."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger

# Gemini 2.5 Flash free tier
DAILY_LIMIT = 250
RPM_LIMIT = 10
COST_PER_INPUT_TOKEN = 0.075 / 1_000_000
COST_PER_OUTPUT_TOKEN = 0.30 / 1_000_000
MAX_TRACKED_CALLS = 1000


@dataclass
class ApiCall:
    """One classifier request."""

    timestamp: float
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0


class UsageTracker:
    """Keeps the most recent classifier calls and summarizes them."""

    def __init__(self, daily_limit: int = DAILY_LIMIT, rpm_limit: int = RPM_LIMIT):
        self.daily_limit = daily_limit
        self.rpm_limit = rpm_limit
        self.calls: List[ApiCall] = []

    def track_call(self, model: str, input_tokens: Optional[int] = None, output_tokens: Optional[int] = None) -> ApiCall:
        input_tokens = input_tokens or 0
        output_tokens = output_tokens or 0
        call = ApiCall(
            timestamp=time.time(),
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=input_tokens * COST_PER_INPUT_TOKEN + output_tokens * COST_PER_OUTPUT_TOKEN,
        )
        self.calls.append(call)
        if len(self.calls) > MAX_TRACKED_CALLS:
            self.calls = self.calls[-MAX_TRACKED_CALLS:]

        today = self.today_count()
        if today >= self.daily_limit * 0.9:
            logger.warning(f"Approaching daily classifier limit: {today}/{self.daily_limit} calls")
        return call

    def today_count(self) -> int:
        midnight = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0).timestamp()
        return sum(1 for c in self.calls if c.timestamp >= midnight)

    def last_minute_count(self) -> int:
        cutoff = time.time() - 60
        return sum(1 for c in self.calls if c.timestamp >= cutoff)

    def total_cost(self) -> float:
        return sum(c.cost for c in self.calls)

    def stats(self) -> Dict[str, Any]:
        return {
            "calls_today": self.today_count(),
            "daily_limit": self.daily_limit,
            "calls_last_minute": self.last_minute_count(),
            "rpm_limit": self.rpm_limit,
            "input_tokens": sum(c.input_tokens for c in self.calls),
            "output_tokens": sum(c.output_tokens for c in self.calls),
            "estimated_cost_usd": round(self.total_cost(), 6),
        }


__all__ = ["ApiCall", "UsageTracker"]
