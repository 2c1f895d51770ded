import gc
import threading
import time

import pytest

from forecast_errors import ForecastApiError
from forecast_models import (
    AdvanceMonthResult,
    DashboardData,
    OpportunityChange,
    SimulationSummary,
)
from forecast_month import ForecastMonth
from forecast_session import ForecastSession, MonthPoller, PeriodView, PipelineMathView


class FakeApi:
    """Records call order; any method can be made to fail via `failures`"""

    def __init__(self, month='3/1/2025', admin=True):
        self.month = month
        self.admin = admin
        self.calls = []
        self.failures = set()
        self.dashboard = DashboardData(current_month=100.0)
        self.changes = [OpportunityChange('Acme', 'Acme A', 'Closed Won', 0, 100, 'Closed Won')]
        self.advance_result = AdvanceMonthResult(new_month='4/1/2025', records_updated=10,
                                                 changed_opportunities=3, month_type='Good',
                                                 won_opportunities=1, lost_opportunities=1,
                                                 created_opportunities=1)

    def _call(self, name, result):
        self.calls.append(name)
        if name in self.failures:
            raise ForecastApiError(name, f'{name} exploded', 500)
        return result

    def get_current_forecast_month(self):
        return self._call('month', self.month)

    def check_admin_access(self):
        return self._call('access', self.admin)

    def get_dashboard_data(self):
        return self._call('dashboard', self.dashboard)

    def get_opportunity_changes(self):
        return self._call('changes', self.changes)

    def advance_to_next_month(self):
        return self._call('advance', self.advance_result)

    def generate_simulation_data(self):
        return self._call('generate', SimulationSummary(opportunities_created=50, total_pipeline_value=1e6))

    def reset_to_january_2025(self):
        return self._call('reset', SimulationSummary(opportunities_deleted=50))


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def session(api, sleeps):
    session = ForecastSession(api, sleep=sleeps.append)
    session.load()
    api.calls.clear()
    return session


class TestLoad:

    def test_initial_load(self, session, api):
        assert session.current_month == '3/1/2025'
        assert session.is_admin is True
        assert session.dashboard is api.dashboard
        assert len(session.changes) == 1

    def test_blank_month_is_not_set(self, api, sleeps):
        api.month = ''
        session = ForecastSession(api, sleep=sleeps.append)
        session.load_current_month()
        assert session.current_month == 'Not Set'

    def test_initial_failures_show_empty(self, api, sleeps):
        api.failures = {'dashboard', 'changes', 'access'}
        session = ForecastSession(api, sleep=sleeps.append)
        session.load()
        assert session.dashboard == DashboardData()
        assert session.changes == []
        assert session.is_admin is False
        assert session.is_button_disabled

    def test_month_error_message(self, api, sleeps):
        api.failures = {'month'}
        session = ForecastSession(api, sleep=sleeps.append)
        session.load_current_month()
        assert session.error == 'Error loading current month: month exploded'


class TestRefresh:

    def test_order_and_gap(self, session, api, sleeps):
        session.refresh_all()
        assert api.calls == ['month', 'dashboard', 'changes']
        assert sleeps == [0.5]

    def test_keeps_stale_data(self, session, api):
        previous_dashboard = session.dashboard
        previous_changes = session.changes
        api.failures = {'dashboard', 'changes'}
        api.dashboard = DashboardData(current_month=999.0)

        session.refresh_all()

        assert session.dashboard is previous_dashboard
        assert session.changes is previous_changes


class TestActions:

    def test_non_admin_refused_without_server_call(self, session, api):
        session.is_admin = False
        toast = session.advance_month()
        assert toast.variant == 'error'
        assert toast.message == 'You do not have permission to advance the forecast month.'
        assert api.calls == []

    def test_advance_settles_then_refreshes(self, session, api, sleeps):
        cleared = []
        session.after_mutation = lambda: cleared.append(True)
        api.month = '4/1/2025'

        toast = session.advance_month()

        assert api.calls == ['advance', 'month', 'dashboard', 'changes']
        assert sleeps == [1.0, 0.5]
        assert cleared == [True]
        assert session.current_month == '4/1/2025'
        assert toast.variant == 'success'
        assert 'Forecast month advanced to 4/1/2025. 10 records updated.' in toast.message
        assert 'Good Month: 3 opportunities changed' in toast.message
        assert not session.is_loading

    def test_advance_not_successful_warns(self, session, api):
        api.advance_result = AdvanceMonthResult(new_month='3/1/2025', records_updated=0, success=False)
        toast = session.advance_month()
        assert toast.variant == 'warning'

    def test_failure_surfaces_error_without_refresh(self, session, api, sleeps):
        api.failures = {'advance'}
        toast = session.advance_month()
        assert toast.variant == 'error'
        assert toast.message == 'Error advancing month: advance exploded'
        assert api.calls == ['advance']
        assert sleeps == []
        assert not session.is_loading

    def test_generate_waits_longer(self, session, sleeps):
        toast = session.generate_simulation()
        assert sleeps[0] == 1.5
        assert 'Created 50 opportunities' in toast.message
        assert '$1,000,000' in toast.message

    def test_cleanup_runs_reset(self, session, api):
        toast = session.cleanup_simulation()
        assert api.calls[0] == 'reset'
        assert toast.message.startswith('Complete reset to Jan 2025! Deleted 50 opportunities')

    def test_overlapping_action_refused(self, api, sleeps):
        started = threading.Event()
        release = threading.Event()

        def slow_advance():
            started.set()
            release.wait(5)
            return api.advance_result

        api.advance_to_next_month = slow_advance
        session = ForecastSession(api, sleep=sleeps.append)
        session.is_admin = True

        results = []
        worker = threading.Thread(target=lambda: results.append(session.advance_month()))
        worker.start()
        assert started.wait(5)

        assert session.is_loading
        assert session.reset_to_january().title == 'Busy'

        release.set()
        worker.join(5)
        assert results[0].variant == 'success'
        assert 'reset' not in api.calls


class TestPeriodView:

    def test_loads_analysis_month_once(self, api):
        fetched = []
        view = PeriodView('recap', api.get_current_forecast_month,
                          lambda year, month: fetched.append((year, month)) or 'data')

        assert view.check_month() is True
        assert view.analysis_month == ForecastMonth(2025, 2)
        assert fetched == [(2025, 2)]

        assert view.check_month() is False
        assert fetched == [(2025, 2)]

    def test_reload_on_month_change(self, api):
        fetched = []
        view = PeriodView('recap', api.get_current_forecast_month,
                          lambda year, month: fetched.append((year, month)))
        view.check_month()
        api.month = '1/1/2026'
        assert view.check_month() is True
        assert fetched[-1] == (2025, 12)

    def test_default_month_still_loads_first_time(self, api):
        api.month = '2/1/2025'
        fetched = []
        view = PeriodView('recap', api.get_current_forecast_month,
                          lambda year, month: fetched.append((year, month)))
        assert view.check_month() is False
        assert fetched == [(2025, 1)]

    def test_fetch_failure_clears_data(self, api):
        def fetch(year, month):
            raise ForecastApiError('getOpportunityRecap', 'nope')

        view = PeriodView('recap', api.get_current_forecast_month, fetch)
        view.data = 'stale'
        view.reload()
        assert view.data is None
        assert view.error == 'nope'

    def test_pipeline_math_toggle(self, api):
        fetched = []
        view = PipelineMathView('math', api.get_current_forecast_month,
                                lambda year, month, include: fetched.append(include))
        view.check_month()
        assert view.set_include_won_revenue(True) is True
        assert view.set_include_won_revenue(True) is False
        assert fetched == [False, True]


    def test_refresh_follows_new_forecast_month(self, session, api):
        view = PeriodView('recap', api.get_current_forecast_month, lambda year, month: (year, month))
        api.month = '4/1/2025'
        view.check_month()
        assert view.data == (2025, 3)

        api.month = '6/1/2025'
        session.refresh_all()
        view.refresh()

        assert session.current_month == '6/1/2025'
        assert view.analysis_month == ForecastMonth(2025, 5)
        assert view.data == (2025, 5)

    def test_refresh_same_month_fetches_again(self, api):
        fetched = []
        view = PeriodView('recap', api.get_current_forecast_month,
                          lambda year, month: fetched.append((year, month)))
        view.check_month()
        view.refresh()
        assert fetched == [(2025, 2), (2025, 2)]

    def test_concurrent_reloads_run_one_at_a_time(self, api):
        active = []
        overlaps = []

        def fetch(year, month):
            active.append(1)
            if len(active) > 1:
                overlaps.append(len(active))
            time.sleep(0.01)
            active.pop()
            return 'data'

        view = PeriodView('recap', api.get_current_forecast_month, fetch)
        workers = [threading.Thread(target=view.reload) for _ in range(4)]
        workers += [threading.Thread(target=view.check_month) for _ in range(2)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(5)

        assert overlaps == []
        assert view.data == 'data'


def wait_until_stopped(poller, timeout=5):
    deadline = time.monotonic() + timeout
    while poller.running and time.monotonic() < deadline:
        time.sleep(0.01)
    return not poller.running


class TestMonthPoller:

    def test_polls_until_cancelled(self):
        ticks = threading.Semaphore(0)
        poller = MonthPoller(ticks.release, interval=0.01)
        with poller:
            assert ticks.acquire(timeout=5)
            assert ticks.acquire(timeout=5)
            assert poller.running
        assert not poller.running

    def test_failing_callback_keeps_polling(self):
        calls = []
        done = threading.Event()

        def callback():
            calls.append(1)
            if len(calls) >= 2:
                done.set()
            raise RuntimeError('boom')

        poller = MonthPoller(callback, interval=0.01).start()
        try:
            assert done.wait(5)
        finally:
            poller.cancel(timeout=5)

    def test_stops_once_view_is_dropped(self, session, api):
        view = PeriodView('recap', api.get_current_forecast_month, lambda year, month: None)
        poller = session.start_polling(view, interval=0.01)
        assert poller.running

        del view
        gc.collect()

        assert wait_until_stopped(poller)

    def test_plain_function_callback_is_kept(self):
        calls = threading.Semaphore(0)

        def callback():
            calls.release()

        poller = MonthPoller(callback, interval=0.01).start()
        del callback
        gc.collect()
        try:
            assert calls.acquire(timeout=5)
            assert calls.acquire(timeout=5)
        finally:
            poller.cancel(timeout=5)

    def test_session_close_cancels_pollers(self, session, api):
        view = PeriodView('recap', api.get_current_forecast_month, lambda year, month: None)
        poller = session.start_polling(view, interval=60)
        assert poller.running
        session.close()
        assert not poller.running
