from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor, ConsoleSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor


def init_otel(app=None, service_name: str = "sendlink-api"):
    """Initialize OpenTelemetry tracing with console exporter.

    Pass the FastAPI app to instrument it; must run before the app starts.
    """
    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(provider)

    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    if app is not None:
        FastAPIInstrumentor.instrument_app(app)

    return trace.get_tracer(service_name)


def instrument_engine(engine) -> None:
    """Trace queries on a SQLAlchemy async engine (created at startup)."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)
