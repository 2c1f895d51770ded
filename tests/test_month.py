import pytest

from forecast_month import (
    DEFAULT_FORECAST_MONTH,
    ForecastMonth,
    MonthResolver,
    parse_forecast_month,
    previous_month,
)


class TestParseForecastMonth:

    def test_parses_month_and_year(self):
        assert parse_forecast_month('3/1/2025') == ForecastMonth(2025, 3)
        assert parse_forecast_month(' 12/15/2024 ') == ForecastMonth(2024, 12)

    @pytest.mark.parametrize('text', ['', '2025-03-01', 'a/b/c', '13/1/2025', '3/2025', None])
    def test_rejects_malformed(self, text):
        with pytest.raises(ValueError):
            parse_forecast_month(text)


class TestPreviousMonth:

    def test_same_year(self):
        assert previous_month(ForecastMonth(2025, 3)) == ForecastMonth(2025, 2)

    def test_january_rolls_back(self):
        assert ForecastMonth(2025, 1).previous() == ForecastMonth(2024, 12)

    def test_names(self):
        month = ForecastMonth(2025, 2)
        assert str(month) == 'February 2025'
        assert month.abbreviation == 'Feb'


class TestMonthResolver:

    def test_defaults_to_february_2025(self):
        resolver = MonthResolver()
        assert resolver.current == DEFAULT_FORECAST_MONTH
        assert resolver.analysis_month == ForecastMonth(2025, 1)

    def test_january_forecast_analyses_previous_december(self):
        resolver = MonthResolver()
        assert resolver.update('1/15/2025') is True
        assert resolver.analysis_month == ForecastMonth(2024, 12)

    def test_update_reports_change(self):
        resolver = MonthResolver()
        assert resolver.update('4/1/2025') is True
        assert resolver.analysis_month == ForecastMonth(2025, 3)

    def test_same_month_other_day_is_not_a_change(self):
        resolver = MonthResolver()
        resolver.update('4/1/2025')
        assert resolver.update('4/20/2025') is False

    def test_repeated_text_is_not_a_change(self):
        resolver = MonthResolver()
        assert resolver.update('4/1/2025') is True
        assert resolver.update('4/1/2025') is False

    def test_default_month_text_is_not_a_change(self):
        assert MonthResolver().update('2/1/2025') is False

    def test_unparseable_keeps_previous_month(self, caplog):
        resolver = MonthResolver(owner='recap')
        resolver.update('5/1/2025')
        with caplog.at_level('WARNING'):
            assert resolver.update('garbage') is False
        assert resolver.current == ForecastMonth(2025, 5)
        assert 'could not parse' in caplog.text

    def test_empty_text_ignored(self):
        resolver = MonthResolver()
        assert resolver.update('') is False
        assert resolver.update(None) is False
