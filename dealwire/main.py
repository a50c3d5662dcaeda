import uvicorn

from dealwire.api.app import create_app
from dealwire.config.settings import Settings
from dealwire.database.connection import close_pool, init_pool
from dealwire.database.repositories.document_repository import DocumentRepository
from dealwire.database.repositories.entity_link_repository import EntityLinkRepository
from dealwire.database.repositories.metrics_repository import MetricsRepository
from dealwire.logging.logger import Log
from dealwire.metrics.aggregator import MetricsAggregator
from dealwire.pipeline.service import EnrichmentPipeline, build_pipeline
from dealwire.worker.job_runner import DocumentRunner
from dealwire.worker.scheduler import Scheduler


def build_scheduler(pipeline: EnrichmentPipeline, settings: Settings) -> Scheduler:
    runner = DocumentRunner(pipeline.claims, pipeline.invoker)
    return Scheduler(DocumentRepository(), pipeline.claims, runner, settings)


def run_worker() -> None:
    """Entry point: initialize pool -> build dependencies -> run the scheduler loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        pipeline = build_pipeline(settings)
        build_scheduler(pipeline, settings).run()
    finally:
        close_pool()


def run_api() -> None:
    """Entry point: serve the HTTP API, with the scheduler attached if enabled."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        pipeline = build_pipeline(settings)
        scheduler = build_scheduler(pipeline, settings) if settings.scheduler_enabled else None
        aggregator = MetricsAggregator(MetricsRepository(), EntityLinkRepository(), scheduler)
        app = create_app(pipeline, aggregator, scheduler)
        uvicorn.run(
            app,
            host=settings.api_host,
            port=settings.api_port,
            log_level=settings.log_level.lower(),
        )
    finally:
        close_pool()


if __name__ == "__main__":
    run_worker()
