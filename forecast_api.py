"""
Forecast Server API Client
Talks to the forecast REST endpoints exposed by the Salesforce org and returns
typed response structures.

Every method is a thin request/response wrapper: no retries, no caching.
Failures raise ForecastApiError (transport or HTTP status) or PayloadError
(unexpected response shape); callers decide how to surface them.
"""

import logging
from dataclasses import dataclass

import requests

from forecast_errors import ConfigurationError, ForecastApiError, PayloadError
from forecast_models import (
    AdvanceMonthResult,
    AnnualRevenue,
    DashboardData,
    OpportunityChange,
    OpportunityRecap,
    PipelineMath,
    PipelineReconciliation,
    ScheduleRecord,
    SimulationSummary,
)

logger = logging.getLogger(__name__)

# ==========================================
# CONNECTION CONFIGURATION
# ==========================================
DEFAULT_API_PATH = "/services/apexrest/forecast"
DEFAULT_TIMEOUT = 30  # seconds, per request


@dataclass(frozen=True)
class ForecastApiConfig:
    instance_url: str
    access_token: str
    api_path: str = DEFAULT_API_PATH
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_mapping(cls, settings):
        """Build from a secrets section such as st.secrets["salesforce"]"""
        if settings is None:
            raise ConfigurationError("Missing 'salesforce' connection settings")

        missing = [key for key in ("instance_url", "access_token") if not settings.get(key)]
        if missing:
            raise ConfigurationError(f"Missing Salesforce setting(s): {', '.join(missing)}")

        try:
            timeout = float(settings.get("timeout", DEFAULT_TIMEOUT))
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid timeout: {settings.get('timeout')!r}") from None

        return cls(
            instance_url=str(settings["instance_url"]).rstrip("/"),
            access_token=str(settings["access_token"]),
            api_path="/" + str(settings.get("api_path", DEFAULT_API_PATH)).strip("/"),
            timeout=timeout,
        )

    @property
    def base_url(self):
        return self.instance_url + self.api_path


def extract_error_message(response):
    """
    Best-effort message from an error response.
    Handles [{"message": ...}], {"message": ...} and {"body": {"message": ...}}
    """
    try:
        body = response.json()
    except ValueError:
        text = (response.text or "").strip()
        return text or response.reason or f"HTTP {response.status_code}"

    if isinstance(body, list) and body and isinstance(body[0], dict):
        body = body[0]

    if isinstance(body, dict):
        nested = body.get("body")
        if isinstance(nested, dict) and nested.get("message"):
            return str(nested["message"])
        for key in ("message", "error_description", "error"):
            if body.get(key):
                return str(body[key])

    return str(body) if body else f"HTTP {response.status_code}"


class ForecastApiClient:
    """One client per dashboard session; wraps a requests.Session"""

    def __init__(self, config, session=None):
        self.config = config
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {config.access_token}",
            "Accept": "application/json",
        })

    def _request(self, operation, method, path, params=None, body=None):
        url = self.config.base_url + path
        logger.debug("%s: %s %s params=%s", operation, method, url, params)

        try:
            response = self.session.request(
                method, url, params=params, json=body, timeout=self.config.timeout
            )
        except requests.RequestException as e:
            raise ForecastApiError(operation, str(e)) from e

        if not response.ok:
            raise ForecastApiError(operation, extract_error_message(response), response.status_code)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise PayloadError(operation, "body", "is not valid JSON") from e

    # ==========================================
    # FORECAST MONTH
    # ==========================================

    def get_current_forecast_month(self):
        """Current forecast month as "M/D/YYYY", or "" when none is set"""
        payload = self._request("getCurrentForecastMonth", "GET", "/month")
        if payload is None:
            return ""
        if not isinstance(payload, str):
            raise PayloadError("getCurrentForecastMonth", "payload", f"expected text, got {payload!r}")
        return payload

    def advance_to_next_month(self):
        payload = self._request("advanceToNextMonth", "POST", "/month/advance")
        return AdvanceMonthResult.from_payload(payload)

    def check_admin_access(self):
        payload = self._request("checkAdminAccess", "GET", "/access")
        if not isinstance(payload, bool):
            raise PayloadError("checkAdminAccess", "payload", f"expected true/false, got {payload!r}")
        return payload

    # ==========================================
    # DASHBOARD READS
    # ==========================================

    def get_dashboard_data(self):
        return DashboardData.from_payload(self._request("getDashboardData", "GET", "/dashboard"))

    def get_annual_revenue_data(self, year):
        payload = self._request("getAnnualRevenueData", "GET", "/annual-revenue", params={"year": int(year)})
        return AnnualRevenue.from_payload(payload)

    def get_opportunity_changes(self):
        payload = self._request("getOpportunityChanges", "GET", "/changes")
        return OpportunityChange.list_from_payload(payload)

    def get_opportunity_recap(self, year, month):
        payload = self._request(
            "getOpportunityRecap", "GET", "/recap", params={"year": int(year), "month": int(month)}
        )
        return OpportunityRecap.from_payload(payload)

    def get_pipeline_math(self, year, month, include_won_revenue=False):
        params = {
            "year": int(year),
            "month": int(month),
            "includeWonRevenue": "true" if include_won_revenue else "false",
        }
        payload = self._request("getPipelineMath", "GET", "/pipeline-math", params=params)
        return PipelineMath.from_payload(payload)

    def get_pipeline_reconciliation(self, year, month):
        payload = self._request(
            "getPipelineReconciliation", "GET", "/reconciliation",
            params={"year": int(year), "month": int(month)},
        )
        return PipelineReconciliation.from_payload(payload)

    # ==========================================
    # SCHEDULE RECORDS
    # ==========================================

    def get_schedule_data(self, record_id):
        payload = self._request("getScheduleData", "GET", f"/schedule/{record_id}")
        return ScheduleRecord.from_payload(payload)

    def update_schedule_record(self, record):
        self._request("updateScheduleRecord", "PATCH", f"/schedule/{record.id}", body=record.to_payload())

    # ==========================================
    # SIMULATION CONTROLS
    # ==========================================

    def generate_simulation_data(self):
        payload = self._request("generateSimulationData", "POST", "/simulation/generate")
        return SimulationSummary.from_payload(payload, "generateSimulationData")

    def reset_to_january_2025(self):
        payload = self._request("resetToJanuary2025", "POST", "/simulation/reset")
        return SimulationSummary.from_payload(payload, "resetToJanuary2025")

    def cleanup_simulation_data(self):
        payload = self._request("cleanupSimulationData", "POST", "/simulation/cleanup")
        return SimulationSummary.from_payload(payload, "cleanupSimulationData")
