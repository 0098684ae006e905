"""HTTP server for the Cluster Scorer."""

import json
import logging
import os
import pathlib

import prometheus_client
import prometheus_client.core
import pydantic
import starlette.applications
import starlette.requests
import starlette.responses
import starlette.routing
import structlog

from . import collector, kubeapi, scorer, scoring, snapshot

CONFIG_ENV_VAR = "CLUSTER_SCORER_CONFIG_PATH"
logger = structlog.get_logger(__name__)


class ScorerConfig(pydantic.BaseModel):
    """Configuration for the Cluster Scorer."""

    api_server_url: str = pydantic.Field(
        kubeapi.DEFAULT_API_SERVER_URL,
        description="Base URL of the Kubernetes API server",
    )
    token_file: str | None = pydantic.Field(
        kubeapi.DEFAULT_TOKEN_FILE,
        description="Path to file containing the bearer token",
    )
    ca_file: str | None = pydantic.Field(
        None,
        description="CA bundle for verifying the API server certificate",
    )
    api_timeout: float = pydantic.Field(
        kubeapi.DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        gt=0,
    )
    port: int = pydantic.Field(9093, description="HTTP server port", gt=0, lt=65536)
    metrics_path: str = pydantic.Field(
        "/metrics",
        description="URL path for metrics endpoint",
    )
    scores_path: str = pydantic.Field(
        "/scores",
        description="URL path for JSON scores endpoint",
    )
    poll_limit: float = pydantic.Field(
        60.0,
        description="Minimum seconds between scoring passes",
        gt=0,
    )
    log_level: str = pydantic.Field("INFO", description="Logging level")
    scoring_preset: str = pydantic.Field(
        scoring.config.DEFAULT_PRESET,
        description="Named request accounting policy (placement or scheduler)",
    )
    use_non_zero_defaults: bool | None = pydantic.Field(
        None,
        description="Override the preset's non-zero request defaults",
    )
    enable_overhead: bool | None = pydantic.Field(
        None,
        description="Override the preset's pod overhead accounting",
    )
    enable_ephemeral_storage_isolation: bool | None = pydantic.Field(
        None,
        description="Override the preset's ephemeral-storage gate",
    )

    @pydantic.field_validator("scoring_preset")
    @classmethod
    def _known_preset(cls, value: str) -> str:
        scoring.get_preset(value)
        return value

    def scoring_config(self) -> scoring.ScoringConfig:
        """Resolve the scoring preset with any explicit overrides applied."""
        overrides = {
            name: getattr(self, name)
            for name in (
                "use_non_zero_defaults",
                "enable_overhead",
                "enable_ephemeral_storage_isolation",
            )
            if getattr(self, name) is not None
        }
        return scoring.get_preset(self.scoring_preset).model_copy(update=overrides)


def configure_logging(log_level_name: str) -> None:
    """Configure structlog for logfmt output."""
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def load_config(config_path: str) -> ScorerConfig:
    """Load configuration from JSON file."""
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with path.open("r") as f:
        data = json.load(f)

    return ScorerConfig(**data)


def create_registry(
    score_collector: collector.ScoreCollector,
) -> prometheus_client.core.CollectorRegistry:
    """Create a dedicated Prometheus registry holding the score collector."""
    registry = prometheus_client.core.CollectorRegistry()
    registry.register(score_collector)
    logger.info("Registered collector", collector="scores")
    return registry


def create_starlette_app(
    metrics_path: str,
    scores_path: str,
    registry: prometheus_client.core.CollectorRegistry,
    cluster_scorer: scorer.ClusterScorer,
) -> starlette.applications.Starlette:
    """Create a Starlette application serving metrics and scores.

    Args:
        metrics_path: URL path for metrics endpoint (e.g., "/metrics").
        scores_path: URL path for the JSON scores endpoint.
        registry: Prometheus collector registry.
        cluster_scorer: Scorer queried by the scores endpoint.

    Returns:
        Configured Starlette application.
    """

    def metrics_endpoint(
        request: starlette.requests.Request,
    ) -> starlette.responses.Response:
        metrics_output = prometheus_client.generate_latest(registry)
        logger.info(
            "HTTP request",
            client_ip=request.client.host if request.client else "unknown",
            method=request.method,
            path=request.url.path,
        )
        return starlette.responses.PlainTextResponse(
            content=metrics_output,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    def scores_endpoint(
        request: starlette.requests.Request,
    ) -> starlette.responses.Response:
        """Run a scoring pass and return the scores as JSON.

        Answers 503 when the cluster snapshot cannot be listed, leaving the
        retry decision to the caller.
        """
        logger.info(
            "HTTP request",
            client_ip=request.client.host if request.client else "unknown",
            method=request.method,
            path=request.url.path,
        )
        try:
            scores = cluster_scorer.compute_scores()
        except snapshot.SnapshotUnavailable as exc:
            logger.warning("Scores unavailable", error=str(exc))
            return starlette.responses.JSONResponse(
                {"error": str(exc)},
                status_code=503,
            )
        return starlette.responses.JSONResponse(scores)

    routes = [
        starlette.routing.Route(metrics_path, metrics_endpoint, methods=["GET"]),
        starlette.routing.Route(scores_path, scores_endpoint, methods=["GET"]),
    ]

    return starlette.applications.Starlette(routes=routes)


def create_scorer_app(config: ScorerConfig) -> starlette.applications.Starlette:
    """Construct the scorer ASGI app from validated config."""
    api_client = kubeapi.KubeApiClient(
        base_url=config.api_server_url,
        token_file=config.token_file,
        ca_file=config.ca_file,
        timeout=config.api_timeout,
    )
    logger.info("Created API server client", base_url=config.api_server_url)

    scoring_config = config.scoring_config()
    logger.info(
        "Resolved scoring policy",
        preset=config.scoring_preset,
        **scoring_config.model_dump(),
    )
    cluster_scorer = scorer.ClusterScorer(
        provider=snapshot.KubeSnapshotProvider(api_client),
        config=scoring_config,
    )

    registry = create_registry(
        collector.ScoreCollector(
            scorer=cluster_scorer,
            poll_limit=config.poll_limit,
            scraper_description=f"API server {api_client.base_url}",
        ),
    )

    return create_starlette_app(
        metrics_path=config.metrics_path,
        scores_path=config.scores_path,
        registry=registry,
        cluster_scorer=cluster_scorer,
    )


def create_app(config_path: str | None = None) -> starlette.applications.Starlette:
    """Create the scorer ASGI app using a config path or environment default."""
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR, "/config.json")
    config = load_config(resolved_path)
    configure_logging(config.log_level)
    return create_scorer_app(config)
