"""Prometheus collector exposing cluster availability scores.

Each scrape yields scrape metadata (duration, error count) followed by one
gauge family per reported quantity, labelled by resource.
"""

from collections.abc import Iterator, Sequence

import structlog
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .cache import AtomicThrottledCache
from .quantity import ResourceDimension
from .scorer import DEFAULT_DIMENSIONS, ClusterScorer, ResourceScore
from .snapshot import SnapshotUnavailable

logger = structlog.get_logger(__name__)


def generate_metrics(report: list[ResourceScore]) -> Iterator[Metric]:
    """Generate Prometheus metrics from a scoring report.

    Args:
        report: Per-resource scoring results.

    Yields:
        Prometheus Metric objects.
    """
    score = GaugeMetricFamily(
        "cluster_resource_score",
        "Availability score per resource, saturating at 100",
        labels=["resource"],
    )
    allocatable = GaugeMetricFamily(
        "cluster_resource_allocatable",
        "Allocatable capacity of schedulable nodes in base units",
        labels=["resource"],
    )
    requested = GaugeMetricFamily(
        "cluster_resource_requested",
        "Effective workload requests in base units",
        labels=["resource"],
    )
    available = GaugeMetricFamily(
        "cluster_resource_available",
        "Allocatable minus requested in base units",
        labels=["resource"],
    )

    for result in report:
        score.add_metric([result.resource], result.score)
        allocatable.add_metric([result.resource], result.allocatable)
        requested.add_metric([result.resource], result.requested)
        available.add_metric([result.resource], result.available)

    yield score
    yield allocatable
    yield requested
    yield available


class ScoreCollector(Collector):
    """Prometheus collector running a ClusterScorer on scrape.

    Reports are cached for ``poll_limit`` seconds. A scoring pass that fails
    because the snapshot is unavailable increments the error counter and
    omits the per-resource metrics from that scrape.
    """

    def __init__(
        self,
        scorer: ClusterScorer,
        poll_limit: float,
        scraper_description: str,
        dimensions: Sequence[ResourceDimension | str] = DEFAULT_DIMENSIONS,
    ):
        """Initialize the collector.

        Args:
            scorer: Scorer run on cache misses.
            poll_limit: Minimum seconds between scoring passes.
            scraper_description: Description of the snapshot source for
                metric help text (e.g., API server URL).
            dimensions: Resources to score.
        """
        self._scorer = scorer
        self._dimensions = tuple(dimensions)
        self._cache = AtomicThrottledCache[list[ResourceScore]](poll_limit)
        self._error_count = 0
        self._scraper_desc = scraper_description

    def fetch_report(self) -> tuple[list[ResourceScore], float | None]:
        """Return the cached report or run a fresh scoring pass.

        Raises:
            SnapshotUnavailable: If a fresh pass cannot list the cluster.
        """
        return self._cache.fetch_or_throttle(
            lambda: self._scorer.compute_report(self._dimensions),
        )

    def collect(self) -> Iterator[Metric]:
        """Collect metrics for a Prometheus scrape."""
        report: list[ResourceScore] | None = None
        try:
            report, fetch_duration = self.fetch_report()
            duration_value = fetch_duration if fetch_duration is not None else -1.0
        except SnapshotUnavailable:
            logger.exception("Failed to score cluster for collection")
            self._error_count += 1
            duration_value = -1.0

        scrape_duration = GaugeMetricFamily(
            "cluster_score_scrape_duration",
            f"scoring duration from {self._scraper_desc} in seconds, "
            f"-1 indicates cache hit or error",
        )
        scrape_duration.add_metric([], duration_value)
        yield scrape_duration

        error_counter = CounterMetricFamily(
            "cluster_score_scrape_error",
            "cluster score scrape errors",
        )
        error_counter.add_metric([], self._error_count)
        yield error_counter

        if report is not None:
            yield from generate_metrics(report)
