"""Observability Module - Logging, Tracing, and Metrics

This module provides:
1. Structured logging with context
2. Step tracing (provider calls, derivation, plan hand-off)
3. Dialogue metrics collection
"""
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger("hannah")


@dataclass
class StepTrace:
    """Represents a single traced step of a turn."""
    step_name: str
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    duration_ms: Optional[float] = None
    input_summary: str = ""
    success: bool = True
    error: Optional[str] = None

    def complete(self, success: bool = True, error: str = None):
        """Mark trace as complete."""
        self.end_time = datetime.now()
        self.duration_ms = (self.end_time - self.start_time).total_seconds() * 1000
        self.success = success
        self.error = error


@dataclass
class DialogueMetrics:
    """Aggregated metrics across all sessions in this process."""
    turns: int = 0
    rejected_inputs: int = 0
    fallback_replies: int = 0
    plans_started: int = 0
    failed_steps: int = 0
    step_latencies: Dict[str, list] = field(default_factory=dict)

    @property
    def fallback_rate(self) -> float:
        if self.turns == 0:
            return 0.0
        return self.fallback_replies / self.turns

    def record(self, trace: StepTrace):
        """Record a trace into metrics."""
        if not trace.success:
            self.failed_steps += 1
        if trace.duration_ms is not None:
            self.step_latencies.setdefault(trace.step_name, []).append(trace.duration_ms)

    def record_turn(self):
        self.turns += 1

    def record_rejected_input(self):
        self.rejected_inputs += 1

    def record_fallback(self):
        self.fallback_replies += 1

    def record_plan_started(self):
        self.plans_started += 1

    def summary(self) -> Dict[str, Any]:
        """Return metrics summary."""
        step_avg = {
            step: sum(latencies) / len(latencies)
            for step, latencies in self.step_latencies.items() if latencies
        }
        return {
            "turns": self.turns,
            "rejected_inputs": self.rejected_inputs,
            "fallback_rate": f"{self.fallback_rate:.1%}",
            "plans_started": self.plans_started,
            "failed_steps": self.failed_steps,
            "step_avg_latency_ms": step_avg,
        }


# Global metrics instance
metrics = DialogueMetrics()


class Tracer:
    """Context manager for tracing one step."""

    def __init__(self, step_name: str, input_data: Any = None):
        self.trace = StepTrace(step_name=step_name)
        if input_data:
            self.trace.input_summary = str(input_data)[:200]

    def __enter__(self):
        logger.debug(f"▶ {self.trace.step_name} started")
        return self.trace

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.trace.complete(success=False, error=str(exc_val) or exc_type.__name__)
            logger.warning(f"✖ {self.trace.step_name} failed: {self.trace.error}")
        else:
            self.trace.complete(success=True)
            logger.info(f"✔ {self.trace.step_name} completed in {self.trace.duration_ms:.0f}ms")

        metrics.record(self.trace)
        return False  # Don't suppress exceptions


def get_metrics_summary() -> Dict[str, Any]:
    """Get current metrics summary for dashboard/API."""
    return metrics.summary()
