import threading

import pytest

from forecast_errors import ForecastApiError
from forecast_models import ScheduleRecord
from schedule_grid import ScheduleEditor, apply_field, format_schedule_month, schedule_deltas, schedule_rows


def make_record(amounts=(600.0, 500.0, 500.0, 300.0, 400.0, 100.0)):
    return ScheduleRecord(
        id='a01',
        months=('6/1/25', '5/1/25', '4/1/25', '3/1/25', '2/1/25', '1/1/25'),
        amounts=tuple(amounts),
    )


class RecordingApi:

    def __init__(self, fail=False):
        self.fail = fail
        self.saved = []
        self.saved_event = threading.Event()

    def update_schedule_record(self, record):
        if self.fail:
            raise ForecastApiError('updateScheduleRecord', 'locked row', 500)
        self.saved.append(record)
        self.saved_event.set()


class TestScheduleMonth:

    @pytest.mark.parametrize('text, expected', [
        ('3/15/25', 'Mar-25'),
        ('12/1/99', 'Dec-99'),
        ('1/1/2026', 'Jan-26'),
        ('', ''),
        (None, ''),
        ('March', 'March'),
        ('13/1/25', '13/1/25'),
    ])
    def test_format(self, text, expected):
        assert format_schedule_month(text) == expected


class TestScheduleRows:

    def test_deltas(self):
        assert schedule_deltas(make_record().amounts) == [100.0, 0.0, 200.0, -100.0, 300.0]

    def test_rows(self):
        rows = schedule_rows(make_record())
        assert len(rows) == 6
        assert rows[0]['Month'] == 'Jun-25'
        assert rows[0]['Delta'] == '+100'
        assert rows[0]['delta_class'] == 'success'
        assert rows[1]['Delta'] == '—'
        assert rows[1]['delta_class'] == 'weak'
        assert rows[3]['delta_class'] == 'error'
        assert rows[5]['Delta'] == ''


class TestApplyField:

    def test_amount_text(self):
        record = apply_field(make_record(), 'Amount2__c', '1,250')
        assert record.amounts[2] == 1250.0

    def test_month(self):
        assert apply_field(make_record(), 'Month0__c', '7/1/25').months[0] == '7/1/25'

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            apply_field(make_record(), 'Amount6__c', 1)


class TestScheduleEditor:

    def test_debounced_save(self):
        api = RecordingApi()
        editor = ScheduleEditor(api, make_record(), delay=0.05)

        editor.set_field('Amount0__c', 700)
        editor.set_field('Amount0__c', 800)
        assert editor.pending

        assert api.saved_event.wait(5)
        assert len(api.saved) == 1
        assert api.saved[0].amounts[0] == 800.0

    def test_flush_saves_now(self):
        api = RecordingApi()
        editor = ScheduleEditor(api, make_record(), delay=60)
        editor.set_field('Month1__c', '5/2/25')
        assert editor.flush() is True
        assert not editor.pending
        assert api.saved[0].months[1] == '5/2/25'

    def test_save_failure_toast(self):
        editor = ScheduleEditor(RecordingApi(fail=True), make_record(), delay=60)
        assert editor.save() is False
        assert editor.last_toast.message == 'Failed to save changes'
        assert editor.last_toast.variant == 'error'

    def test_cancel(self):
        api = RecordingApi()
        editor = ScheduleEditor(api, make_record(), delay=60)
        editor.set_field('Amount0__c', 1)
        editor.cancel()
        assert not editor.pending
        assert api.saved == []
