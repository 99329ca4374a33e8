"""
Performance Monitoring

Collects per-request augmentation metrics through pipeline hooks and
writes them as JSON lines.
"""

import json
import logging
import statistics
import time
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from adaptive_rag.pipelines.augment import COMPLETE_STAGE
from adaptive_rag.pipelines.hooks import PipelineHookManager


class PerformanceMonitor:
    """
    Monitors and logs augmentation pipeline metrics.

    Features:
    - Stage-level timing (decide, retrieve, assess, web_search)
    - Cache reuse and web-search escalation counters
    - JSON-formatted daily log files
    - In-memory recent metrics for the API
    """

    def __init__(self, log_dir: str = "logs", max_recent: int = 100):
        """
        Args:
            log_dir: Directory for log files
            max_recent: Max number of recent metrics to keep in memory
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.recent_metrics: deque = deque(maxlen=max_recent)

        self.stats = {
            "total_requests": 0,
            "cache_reuses": 0,
            "new_retrievals": 0,
            "web_searches": 0,
        }

        self._setup_logger()

    def _setup_logger(self):
        """Setup JSON logger for metrics."""
        self.logger = logging.getLogger("adaptive_rag.metrics")
        self.logger.setLevel(logging.INFO)

        log_file = self.log_dir / f"metrics_{datetime.now().strftime('%Y%m%d')}.jsonl"
        handler = logging.FileHandler(log_file)
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter('%(message)s'))

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()
        self.logger.addHandler(handler)
        self.logger.propagate = False

    def attach(self, hooks: PipelineHookManager) -> None:
        """Register timing and recording hooks on a pipeline's hook manager."""
        hooks.register_before("*", self._start_stage)
        hooks.register_after("*", self._end_stage)
        hooks.register_after(COMPLETE_STAGE, self.record_augmentation)

    async def _start_stage(self, stage: str, context: Dict[str, Any]) -> None:
        context.setdefault("stage_timers", {})[stage] = time.perf_counter()

    async def _end_stage(self, stage: str, context: Dict[str, Any]) -> None:
        started = context.get("stage_timers", {}).get(stage)
        if started is not None:
            context.setdefault("stage_durations", {})[stage] = round(time.perf_counter() - started, 3)

    async def record_augmentation(self, context: Dict[str, Any]) -> None:
        """Record one completed augmentation run."""
        result = context.get("result")
        if result is None:
            return

        total_duration = time.perf_counter() - context.get("start_time", time.perf_counter())
        metric = {
            "timestamp": datetime.now().isoformat(),
            "type": "augmentation",
            "total_duration": round(total_duration, 3),
            "stages": dict(context.get("stage_durations", {})),
            "documents_used": result.documents_used,
            "decision_reason": result.decision.reason,
            "confidence": result.confidence.score,
            "web_search_used": result.web_search_used,
            "document_count": len(result.documents),
        }

        self.stats["total_requests"] += 1
        if result.documents_used == "cached":
            self.stats["cache_reuses"] += 1
        else:
            self.stats["new_retrievals"] += 1
        if result.web_search_used:
            self.stats["web_searches"] += 1

        self.recent_metrics.append(metric)
        self.logger.info(json.dumps(metric))

    def get_recent_metrics(self, limit: Optional[int] = None) -> List[Dict]:
        metrics = list(self.recent_metrics)
        if limit:
            metrics = metrics[-limit:]
        return metrics

    def get_summary(self) -> Dict[str, Any]:
        """Get aggregated performance summary."""
        recent = list(self.recent_metrics)
        summary: Dict[str, Any] = dict(self.stats)

        durations = [m["total_duration"] for m in recent]
        summary["recent_count"] = len(recent)
        summary["avg_duration"] = round(statistics.mean(durations), 3) if durations else 0
        summary["p95_duration"] = (
            round(statistics.quantiles(durations, n=20)[18], 3) if len(durations) > 10 else 0
        )
        total = self.stats["total_requests"]
        summary["cache_reuse_rate"] = round(self.stats["cache_reuses"] / total, 3) if total else 0
        return summary
