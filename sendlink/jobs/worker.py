from arq import cron
from arq.connections import RedisSettings
from opentelemetry import trace

from sendlink.config import get_settings
from sendlink.db.base import create_engine, create_session_factory
from sendlink.observability.logger import configure_logging
from sendlink.repositories.share_link_repository import ShareLinkRepository
from sendlink.utils.telemetry import init_otel, instrument_engine


async def sweep_expired_links(ctx) -> dict:
    """Periodic maintenance: purge share links whose expiry has passed."""
    tracer = trace.get_tracer("worker")
    with tracer.start_as_current_span("sweep_expired_links"):
        removed = await ctx["share_links"].sweep_expired()
    return {"removed": removed}


async def startup(ctx):
    settings = get_settings()
    configure_logging(settings)
    engine = create_engine(settings.DB_URL, echo=settings.DEBUG)
    if settings.OTEL_ENABLED:
        init_otel(service_name="sendlink-worker")
        instrument_engine(engine)
    ctx["engine"] = engine
    ctx["share_links"] = ShareLinkRepository(create_session_factory(engine))


async def shutdown(ctx):
    engine = ctx.get("engine")
    if engine is not None:
        await engine.dispose()


class WorkerSettings:
    functions = [sweep_expired_links]
    redis_settings = RedisSettings.from_dsn(get_settings().REDIS_URL)
    cron_jobs = [
        cron(sweep_expired_links, minute={0, 15, 30, 45}),
    ]
    on_startup = startup
    on_shutdown = shutdown
