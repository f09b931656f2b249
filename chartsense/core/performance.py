"""
Performance monitoring and metrics collection.
"""
import time
import logging
from typing import Dict, Optional, Any
from functools import wraps
from collections import defaultdict
import threading

logger = logging.getLogger(__name__)

# Thread-safe metrics storage
_metrics_lock = threading.Lock()
_metrics: Dict[str, list] = defaultdict(list)

MAX_SAMPLES_PER_METRIC = 1000


class PerformanceMonitor:
    """Monitor and track performance metrics."""

    @staticmethod
    def record_metric(name: str, value: float, metadata: Optional[Dict[str, Any]] = None):
        """
        Record a performance metric.

        Args:
            name: Metric name (e.g., 'profile_dataset', 'analyze_table')
            value: Metric value (usually duration in seconds)
            metadata: Optional metadata (run_id, row count, etc.)
        """
        with _metrics_lock:
            _metrics[name].append({
                'value': value,
                'timestamp': time.time(),
                'metadata': metadata or {}
            })

            if len(_metrics[name]) > MAX_SAMPLES_PER_METRIC:
                _metrics[name] = _metrics[name][-MAX_SAMPLES_PER_METRIC:]

    @staticmethod
    def _stats_locked(metric_name: str) -> Optional[Dict[str, float]]:
        if metric_name not in _metrics or not _metrics[metric_name]:
            return None

        values = sorted(m['value'] for m in _metrics[metric_name])
        return {
            'count': len(values),
            'min': values[0],
            'max': values[-1],
            'mean': sum(values) / len(values),
            'p50': values[len(values) // 2],
            'p95': values[int(len(values) * 0.95)],
            'p99': values[int(len(values) * 0.99)],
        }

    @staticmethod
    def get_stats(metric_name: str) -> Optional[Dict[str, float]]:
        """
        Get statistics for a metric.

        Returns:
            Dict with min, max, mean, count and percentiles, or None if no data
        """
        with _metrics_lock:
            return PerformanceMonitor._stats_locked(metric_name)

    @staticmethod
    def get_all_metrics() -> Dict[str, Dict[str, float]]:
        """Get statistics for all metrics."""
        with _metrics_lock:
            return {
                name: PerformanceMonitor._stats_locked(name)
                for name in list(_metrics.keys())
            }

    @staticmethod
    def clear_metrics():
        """Clear all metrics (useful for testing)."""
        with _metrics_lock:
            _metrics.clear()


def track_performance(metric_name: str):
    """
    Decorator to track function execution time.

    Usage:
        @track_performance("profile_dataset")
        def profile_dataset(...):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            run_id = kwargs.get('run_id')

            try:
                result = func(*args, **kwargs)
                duration = time.perf_counter() - start_time

                PerformanceMonitor.record_metric(
                    metric_name,
                    duration,
                    {'run_id': run_id, 'status': 'success'}
                )

                logger.debug(
                    f"{metric_name} completed in {duration:.3f}s",
                    extra={'metric': metric_name, 'duration': duration}
                )

                return result
            except Exception as e:
                duration = time.perf_counter() - start_time
                PerformanceMonitor.record_metric(
                    metric_name,
                    duration,
                    {'run_id': run_id, 'status': 'error', 'error': str(e)}
                )
                logger.error(
                    f"{metric_name} failed after {duration:.3f}s: {e}",
                    extra={'metric': metric_name, 'duration': duration},
                    exc_info=True
                )
                raise

        return wrapper

    return decorator
