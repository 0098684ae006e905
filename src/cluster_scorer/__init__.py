"""Cluster Scorer.

Computes bounded per-resource availability scores (CPU, memory) for a
Kubernetes cluster from its node allocatable capacity and pod requests, and
exports them as Prometheus metrics.
"""

__version__ = "0.1.0"
