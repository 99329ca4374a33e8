"""
Monitoring subsystem for the augmentation pipeline.
"""

from adaptive_rag.monitoring.performance import PerformanceMonitor

__all__ = ["PerformanceMonitor"]
