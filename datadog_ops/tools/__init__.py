from __future__ import annotations

from ..datadog_client import DatadogClient
from .datetime_tool import resolve_datetime_tool
from .downtimes import make_cancel_downtime, make_list_downtimes, make_schedule_downtime
from .logs import make_get_all_services, make_get_logs
from .metrics import make_query_metrics
from .traces import make_list_traces


def build_tools(client: DatadogClient):
    return [
        resolve_datetime_tool,
        make_get_logs(client),
        make_get_all_services(client),
        make_list_traces(client),
        make_query_metrics(client),
        make_list_downtimes(client),
        make_schedule_downtime(client),
        make_cancel_downtime(client),
    ]
