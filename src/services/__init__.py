"""Services layer"""

from .metrics import Metricset, NodeMetricset, register_metricsets
from .readiness_manager import HeadBlock, MetricsAndReadinessManager

__all__ = [
    "Metricset",
    "NodeMetricset",
    "register_metricsets",
    "HeadBlock",
    "MetricsAndReadinessManager",
]
