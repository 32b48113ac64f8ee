import logging
import os

import streamlit as st

# --- OTel & Observability Imports ---
from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

# --- Prometheus Import ---
from prometheus_client import start_http_server

# --- Application Imports ---
from src.config import PracticeConfig
from src.practice.adapters.clock import FixedOffsetClock
from src.practice.adapters.db_manager import DatabaseManager
from src.practice.adapters.sqlite_store import SQLiteUserStateStore
from src.practice.adapters.supabase_store import SupabaseUserStateStore
from src.practice.application.service import PracticeService
from src.practice.domain.ports import IUserStateStore


# --- 1. Configure Observability ---
def configure_observability() -> None:
    """
    Sends traces and logs over OTLP when the OTEL env vars are set.
    Starts a background Prometheus server for metrics.
    """
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    headers = os.getenv("OTEL_EXPORTER_OTLP_HEADERS")

    if endpoint and headers:
        resource = Resource.create({"service.name": "daily-practice-planner"})

        trace_provider = TracerProvider(resource=resource)
        trace_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, headers=headers))
        )
        trace.set_tracer_provider(trace_provider)

        logger_provider = LoggerProvider(resource=resource)
        logger_provider.add_log_record_processor(
            BatchLogRecordProcessor(OTLPLogExporter(endpoint=endpoint, headers=headers))
        )
        set_logger_provider(logger_provider)
        logging.getLogger().addHandler(
            LoggingHandler(level=logging.INFO, logger_provider=logger_provider)
        )
    else:
        logging.warning("OTEL env vars not set. Telemetry stays local.")

    try:
        start_http_server(int(os.getenv("PROMETHEUS_PORT", "8000")))
    except OSError:
        logging.warning("Prometheus port already in use (likely Streamlit reload).")


# --- 2. Dependency Injection (Composition Root) ---
@st.cache_resource
def get_service() -> PracticeService:
    store: IUserStateStore
    if PracticeConfig.USE_SQLITE:
        store = SQLiteUserStateStore(DatabaseManager(PracticeConfig.DB_PATH))
    else:
        store = SupabaseUserStateStore(
            os.environ["SUPABASE_URL"], os.environ["SUPABASE_KEY"]
        )
    return PracticeService(store, FixedOffsetClock())


def render_history(service: PracticeService, user_id: str) -> None:
    rows = [
        {
            "Module": p.module.id,
            "Category": p.module.category.value,
            "Minutes": p.module.duration_minutes,
            "Done": f"{p.completed_count}/{p.cap}",
            "Left": "🔒 capped" if p.is_at_cap else str(p.remaining),
            "Last": p.last_completed_date or "-",
        }
        for p in service.get_practice_stats(user_id)
    ]
    st.dataframe(rows, hide_index=True, use_container_width=True)


def main() -> None:
    st.set_page_config(page_title=PracticeConfig.APP_TITLE, layout="centered")

    if "observability_configured" not in st.session_state:
        logging.basicConfig(
            level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s"
        )
        configure_observability()
        st.session_state.observability_configured = True

    service = get_service()
    user_id = st.session_state.get("user_id", PracticeConfig.DEFAULT_USER_ID)

    st.title(f"📚 {PracticeConfig.APP_TITLE}")

    result = service.check_and_transition_if_new_day(user_id)
    if result is not None and not result.success:
        st.error(result.message)

    if st.button("🎲 New set for today"):
        result = service.generate_daily_assignments(user_id)
        if result.success:
            st.success(result.message)
        else:
            st.error(result.message)

    assignments = service.get_today_assignments(user_id)
    done = sum(1 for a in assignments if a.is_completed)
    st.caption(
        f"{done}/{len(assignments)} done · {service.total_duration(assignments)} minutes"
    )

    for assignment in assignments:
        module = service.get_module_info(assignment.module_id)
        if module is None:
            continue
        label = f"{module.id} · {module.group.title} · {module.duration_minutes} min"
        checked = st.checkbox(
            label, value=assignment.is_completed, key=f"done_{module.id}"
        )
        if checked != assignment.is_completed:
            service.toggle_completion(user_id, module.id)
            st.rerun()

    with st.expander("📈 Practice history"):
        render_history(service, user_id)


if __name__ == "__main__":
    main()
