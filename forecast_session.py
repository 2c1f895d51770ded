"""
Forecast Session - refresh coordination for the dashboard views.

A ForecastSession owns the home page state (forecast month, admin flag,
dashboard data, change log) and runs the admin actions. Each action:

    1. is refused client-side when the user is not an admin,
    2. is refused while another action of the same session is running,
    3. calls the server, waits for it to settle, then re-reads
       month -> dashboard -> changes in that order.

Read failures never clear data during a refresh; the previous view stays on
screen until the next successful read.

PeriodView covers the views keyed on the analysis month (recap, pipeline
math, reconciliation). MonthPoller re-checks the forecast month on a fixed
interval; it stops on cancel() or once the view it watches is gone.
"""

import inspect
import logging
import threading
import time
import weakref

from forecast_errors import ForecastApiError, ForecastError
from forecast_formatting import format_currency
from forecast_models import DashboardData
from forecast_month import MonthResolver
from forecast_views import Toast

logger = logging.getLogger(__name__)

# ==========================================
# TIMING CONFIGURATION
# ==========================================
SETTLE_SECONDS = 1.0             # wait after a mutation before re-reading
SIMULATION_SETTLE_SECONDS = 1.5  # full simulation setup needs longer
REFRESH_GAP_SECONDS = 0.5        # between the month read and the dashboard read
POLL_INTERVAL_SECONDS = 500

IDLE = 'idle'
LOADING = 'loading'


def error_text(error):
    """Message to show the user for a failed call"""
    if isinstance(error, ForecastApiError):
        return error.message
    return str(error)


class ForecastSession:

    def __init__(self, api, settle_seconds=SETTLE_SECONDS,
                 simulation_settle_seconds=SIMULATION_SETTLE_SECONDS,
                 refresh_gap_seconds=REFRESH_GAP_SECONDS,
                 sleep=time.sleep, after_mutation=None):
        self.api = api
        self.settle_seconds = settle_seconds
        self.simulation_settle_seconds = simulation_settle_seconds
        self.refresh_gap_seconds = refresh_gap_seconds
        self.sleep = sleep
        self.after_mutation = after_mutation

        self.current_month = ''
        self.is_admin = False
        self.dashboard = DashboardData()
        self.changes = []
        self.status = IDLE
        self.error = ''

        self._action_lock = threading.Lock()
        self._pollers = []

    @property
    def is_loading(self):
        return self.status == LOADING

    @property
    def is_button_disabled(self):
        return self.is_loading or not self.is_admin

    # ==========================================
    # READS
    # ==========================================

    def _read(self, what, call, *args):
        try:
            return True, call(*args)
        except ForecastError as e:
            logger.error("Error loading %s: %s", what, e)
            return False, e

    def load(self):
        """Initial load: anything that fails is shown empty"""
        self.load_current_month()
        self.check_user_access()
        self.load_dashboard()
        self.load_changes()

    def load_current_month(self):
        ok, result = self._read('current month', self.api.get_current_forecast_month)
        if ok:
            self.current_month = result or 'Not Set'
            self.error = ''
        else:
            self.error = f"Error loading current month: {error_text(result)}"
        return ok

    def check_user_access(self):
        ok, result = self._read('admin access', self.api.check_admin_access)
        if ok:
            self.is_admin = bool(result)
        return ok

    def load_dashboard(self, keep_stale=False):
        ok, result = self._read('dashboard data', self.api.get_dashboard_data)
        if ok:
            self.dashboard = result
        elif not keep_stale:
            self.dashboard = DashboardData()
        return ok

    def load_changes(self, keep_stale=False):
        ok, result = self._read('opportunity changes', self.api.get_opportunity_changes)
        if ok:
            self.changes = result
            logger.info("Opportunity changes loaded: %d changes found", len(result))
        elif not keep_stale:
            self.changes = []
        return ok

    def refresh_all(self):
        """Re-read month, dashboard and changes in order, keeping stale data on failure"""
        self.load_current_month()
        self.sleep(self.refresh_gap_seconds)
        self.load_dashboard(keep_stale=True)
        self.load_changes(keep_stale=True)

    # ==========================================
    # ADMIN ACTIONS
    # ==========================================

    def _run_action(self, permission_text, error_label, call, settle_seconds, describe):
        if not self.is_admin:
            return Toast('Error', f'You do not have permission to {permission_text}.', 'error')

        if not self._action_lock.acquire(blocking=False):
            logger.warning("Refused to %s: another action is still running", permission_text)
            return Toast('Busy', 'Another forecast action is still running. Please wait for it to finish.',
                         'warning')

        try:
            self.status = LOADING
            try:
                result = call()
            except ForecastError as e:
                self.error = f"Error {error_label}: {error_text(e)}"
                logger.error("Error %s: %s", error_label, e)
                return Toast('Error', self.error, 'error')

            self.sleep(settle_seconds)
            if self.after_mutation is not None:
                self.after_mutation()
            self.refresh_all()
            return describe(result)
        finally:
            self.status = IDLE
            self._action_lock.release()

    def advance_month(self):
        return self._run_action(
            'advance the forecast month', 'advancing month',
            self.api.advance_to_next_month, self.settle_seconds, _describe_advance,
        )

    def generate_simulation(self):
        return self._run_action(
            'generate simulation data', 'generating simulation data',
            self.api.generate_simulation_data, self.simulation_settle_seconds, _describe_generate,
        )

    def reset_to_january(self):
        return self._run_action(
            'reset data', 'resetting data',
            self.api.reset_to_january_2025, self.settle_seconds, _describe_reset,
        )

    def cleanup_simulation(self):
        # Cleanup is the same operation as a full reset
        return self.reset_to_january()

    # ==========================================
    # POLLING
    # ==========================================

    def start_polling(self, view, interval=POLL_INTERVAL_SECONDS):
        poller = MonthPoller(view.check_month, interval=interval, name=f'{view.name}-month-poller')
        self._pollers.append(poller)
        return poller.start()

    def close(self):
        for poller in self._pollers:
            poller.cancel()
        self._pollers = []


def _describe_advance(result):
    if not result.success:
        return Toast('Warning', f'Forecast month was not advanced (server reported {result.new_month}).',
                     'warning')
    return Toast(
        'Success',
        f"Forecast month advanced to {result.new_month}. {result.records_updated} records updated. "
        f"{result.month_type} Month: {result.changed_opportunities} opportunities changed due to market "
        f"conditions ({result.won_opportunities} won, {result.lost_opportunities} lost, "
        f"{result.created_opportunities} created).",
        'success',
    )


def _describe_generate(summary):
    return Toast(
        'Success',
        f"Complete simulation setup! Created {summary.opportunities_created} opportunities, "
        f"{summary.accounts_created} accounts, and {summary.snapshots_created} forecast snapshots. "
        f"Pipeline: {format_currency(summary.total_pipeline_value)}. "
        f"Current month: {summary.current_forecast_month}. "
        f"Deleted {summary.opportunities_deleted} old opportunities, {summary.accounts_deleted} old accounts, "
        f"{summary.snapshots_deleted} old snapshots.",
        'success',
    )


def _describe_reset(summary):
    return Toast(
        'Success',
        f"Complete reset to Jan 2025! Deleted {summary.opportunities_deleted} opportunities, "
        f"{summary.accounts_deleted} accounts, and {summary.snapshots_deleted} snapshots. "
        f"Ready for fresh simulation.",
        'success',
    )


# ==========================================
# ANALYSIS MONTH VIEWS
# ==========================================

class PeriodView:
    """
    A view that reports on the month before the current forecast month.

    check_month() reads the forecast month and only re-fetches when the
    month actually moved (or nothing was loaded yet). Fetch failures clear
    the view to its empty state and record the error.
    """

    def __init__(self, name, month_source, fetch, resolver=None):
        self.name = name
        self.month_source = month_source
        self.fetch = fetch
        self.resolver = resolver or MonthResolver(owner=name)
        self.data = None
        self.error = None
        self.loaded = False
        self._lock = threading.RLock()

    @property
    def analysis_month(self):
        return self.resolver.analysis_month

    def check_month(self):
        with self._lock:
            try:
                month_text = self.month_source()
            except ForecastError as e:
                logger.error("%s: error loading forecast month: %s", self.name, e)
                if not self.loaded:
                    self.reload()
                return False

            changed = self.resolver.update(month_text)
            if changed or not self.loaded:
                self.reload()
            return changed

    def refresh(self):
        """Re-read the forecast month, then re-fetch even if it did not move"""
        with self._lock:
            if not self.check_month():
                self.reload()

    def _fetch(self, target):
        return self.fetch(target.year, target.month)

    def reload(self):
        with self._lock:
            target = self.analysis_month
            logger.info("%s: loading data for %s", self.name, target)
            try:
                self.data = self._fetch(target)
                self.error = None
            except ForecastError as e:
                logger.error("%s: error loading data for %s: %s", self.name, target, e)
                self.error = error_text(e)
                self.data = None
            finally:
                self.loaded = True


class PipelineMathView(PeriodView):
    """Pipeline math adds the Sales View / Business View toggle"""

    def __init__(self, name, month_source, fetch, resolver=None):
        super().__init__(name, month_source, fetch, resolver)
        self.include_won_revenue = False

    def _fetch(self, target):
        return self.fetch(target.year, target.month, self.include_won_revenue)

    def set_include_won_revenue(self, include):
        include = bool(include)
        if include == self.include_won_revenue:
            return False
        self.include_won_revenue = include
        logger.info("%s: won revenue toggle changed to %s", self.name, include)
        self.reload()
        return True


class MonthPoller:
    """
    Runs callback every `interval` seconds on a daemon thread until cancelled.

    A bound-method callback is held weakly: once its owner is garbage
    collected the poller stops on the next tick.
    """

    def __init__(self, callback, interval=POLL_INTERVAL_SECONDS, name='forecast-month-poller'):
        if inspect.ismethod(callback):
            self._callback = weakref.WeakMethod(callback)
        else:
            self._callback = lambda: callback
        self.interval = interval
        self.name = name
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        return self

    def _run(self):
        while not self._stop.wait(self.interval):
            if not self._tick():
                break

    def _tick(self):
        # No strong reference to the callback survives between ticks
        callback = self._callback()
        if callback is None:
            logger.info("%s: owner is gone, stopping", self.name)
            return False
        try:
            callback()
        except Exception:
            # Keep polling; the next tick gets another chance
            logger.exception("%s: poll failed", self.name)
        return True

    def cancel(self, timeout=None):
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.cancel()
        return False
