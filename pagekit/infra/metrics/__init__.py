"""Prometheus metrics for the pagination engine.

All metrics live on ``REGISTRY``; expose it with
``prometheus_client.generate_latest(REGISTRY)``.
"""

from pagekit.infra.metrics.prometheus import REGISTRY

__all__ = ["REGISTRY"]
