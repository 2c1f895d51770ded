from datetime import date

import pytest

from forecast_errors import PayloadError
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


def dashboard_payload(**overrides):
    payload = {
        'currentMonth': 500000,
        'previousMonth1': 480000,
        'previousMonth2': None,
        'previousMonth3': 450000,
        'previousMonth4': 440000,
        'previousMonth5': 430000,
        'forwardPipeline': {
            'monthLabels': ['3/2025', '4/2025'],
            'monthlyAmounts': [100000, None],
            'totalForward': 100000,
        },
        'totalOpportunities': '42',
        'currentForecastMonth': '3/1/2025',
    }
    payload.update(overrides)
    return payload


class TestDashboardData:

    def test_versions_current_first(self):
        data = DashboardData.from_payload(dashboard_payload())
        assert data.versions == (500000.0, 480000.0, 0.0, 450000.0, 440000.0, 430000.0)
        assert data.total_opportunities == 42
        assert data.forward_pipeline.monthly_amounts == (100000.0, 0.0)

    def test_missing_forward_pipeline(self):
        payload = dashboard_payload()
        del payload['forwardPipeline']
        with pytest.raises(PayloadError) as exc:
            DashboardData.from_payload(payload)
        assert exc.value.field == 'forwardPipeline'
        assert exc.value.operation == 'getDashboardData'

    def test_text_amount_rejected(self):
        with pytest.raises(PayloadError, match='currentMonth'):
            DashboardData.from_payload(dashboard_payload(currentMonth='lots'))

    def test_not_an_object(self):
        with pytest.raises(PayloadError):
            DashboardData.from_payload(['nope'])

    def test_empty_defaults(self):
        assert DashboardData().versions == (0.0,) * 6


class TestAdvanceMonthResult:

    def test_reads_counts(self):
        result = AdvanceMonthResult.from_payload({
            'newMonth': '4/1/2025',
            'recordsUpdated': 12,
            'changedOpportunities': '5',
            'monthType': 'Bad',
            'wonOpportunities': 2,
            'lostOpportunities': 1,
            'createdOpportunities': 3,
        })
        assert result.new_month == '4/1/2025'
        assert result.changed_opportunities == 5
        assert result.month_type == 'Bad'
        assert result.success is True

    def test_success_flag_false(self):
        result = AdvanceMonthResult.from_payload({'newMonth': '3/1/2025', 'recordsUpdated': 0, 'success': False})
        assert result.success is False

    def test_new_month_required(self):
        with pytest.raises(PayloadError, match='newMonth'):
            AdvanceMonthResult.from_payload({'recordsUpdated': 1})


class TestAnnualRevenue:

    def test_from_payload(self):
        annual = AnnualRevenue.from_payload({
            'monthLabels': ['Jan 2025', 'Feb 2025'],
            'monthlyAmounts': [10, 20],
            'totalAnnual': 30,
        })
        assert annual.month_labels == ('Jan 2025', 'Feb 2025')
        assert annual.total_annual == 30.0

    def test_non_text_label(self):
        with pytest.raises(PayloadError):
            AnnualRevenue.from_payload({'monthLabels': [1], 'monthlyAmounts': [1], 'totalAnnual': 1})


class TestOpportunityChange:

    def test_list(self):
        changes = OpportunityChange.list_from_payload([{
            'accountName': 'Acme',
            'opportunityName': 'Acme Renewal',
            'stageName': 'Closed Won',
            'amountBefore': 1000,
            'amountAfter': None,
            'changeType': 'Closed Won',
        }])
        assert changes[0].amount_after == 0.0
        assert changes[0].reason == ''

    def test_none_is_empty(self):
        assert OpportunityChange.list_from_payload(None) == []

    def test_object_rejected(self):
        with pytest.raises(PayloadError):
            OpportunityChange.list_from_payload({'changes': []})


class TestOpportunityRecap:

    def test_reads_related_records_and_dates(self):
        recap = OpportunityRecap.from_payload({
            'wonOpportunities': [{
                'Id': '006A',
                'Name': 'Big Deal',
                'Amount': 25000,
                'CloseDate': '2025-01-15',
                'CreatedDate': '2024-11-02T10:00:00.000+0000',
                'Account': {'Id': '001A', 'Name': 'Acme'},
                'Owner': {'Name': 'Pat Lee'},
            }],
            'lostOpportunities': [],
            'shiftedOpportunities': [],
            'createdOpportunities': [],
            'oppIdToReasonMap': {'006A': 'Budget', '006B': None},
        })
        opp = recap.won[0]
        assert opp.close_date == date(2025, 1, 15)
        assert opp.created_date == date(2024, 11, 2)
        assert opp.account_id == '001A'
        assert opp.owner_name == 'Pat Lee'
        assert recap.reasons == {'006A': 'Budget'}

    def test_bad_date(self):
        with pytest.raises(PayloadError, match='CloseDate'):
            OpportunityRecap.from_payload({
                'wonOpportunities': [{'Id': '006A', 'CloseDate': '15/01/2025'}],
                'lostOpportunities': [],
                'shiftedOpportunities': [],
                'createdOpportunities': [],
            })


class TestPipelineMath:

    def test_from_payload(self):
        math = PipelineMath.from_payload({
            'forward12MPrevious': 1000000,
            'forward12MCurrent': 950000,
            'forward12MChange': -50000,
            'reconciliationCheck': -50000,
            'isBalanced': 'true',
            'redItems': [{'opportunityName': 'A', 'forwardImpact': -60000}],
            'greenItems': [{'opportunityName': 'B', 'forwardImpact': 10000}],
            'grayItems': [],
            'redTotal': -60000,
            'greenTotal': 10000,
            'analysisMonth': 'February 2025',
        })
        assert math.is_balanced is True
        assert math.red_items[0].forward_impact == -60000.0
        assert math.gray_total == 0.0

    def test_missing_balance_flag(self):
        with pytest.raises(PayloadError, match='isBalanced'):
            PipelineMath.from_payload({
                'forward12MPrevious': 1, 'forward12MCurrent': 1,
                'forward12MChange': 0, 'reconciliationCheck': 0,
                'redItems': [], 'greenItems': [], 'grayItems': [],
            })


class TestPipelineReconciliation:

    def test_entries(self):
        recon = PipelineReconciliation.from_payload({
            'previousPipelineTotal': 100,
            'currentPipelineTotal': 80,
            'netPipelineChange': -20,
            'reconciliationTotal': -20,
            'wonOpportunities': [{'opportunity': {'Id': '006A', 'Amount': 20}, 'amountDelta': -20}],
            'lostOpportunities': [],
            'createdOpportunities': [],
            'shiftedOpportunities': [],
            'changedOpportunities': [],
            'wonTotal': 20,
        })
        assert recon.won[0].opportunity.amount == 20.0
        assert recon.won[0].amount_delta == -20.0
        assert recon.lost_total == 0.0

    def test_entry_needs_opportunity(self):
        with pytest.raises(PayloadError, match='opportunity'):
            PipelineReconciliation.from_payload({
                'previousPipelineTotal': 0, 'currentPipelineTotal': 0,
                'netPipelineChange': 0, 'reconciliationTotal': 0,
                'wonOpportunities': [{'amountDelta': 1}],
                'lostOpportunities': [], 'createdOpportunities': [],
                'shiftedOpportunities': [], 'changedOpportunities': [],
            })


class TestScheduleRecord:

    def test_round_trip_fields(self):
        payload = {'Id': 'a01'}
        for i in range(6):
            payload[f'Month{i}__c'] = f'{i + 1}/1/25'
            payload[f'Amount{i}__c'] = 1000 * i
        payload['Amount2__c'] = '1,500'
        payload['Amount3__c'] = ''

        record = ScheduleRecord.from_payload(payload)
        assert record.amounts[2] == 1500.0
        assert record.amounts[3] == 0.0
        assert record.to_payload()['Month0__c'] == '1/1/25'

    def test_bad_amount_text(self):
        with pytest.raises(PayloadError):
            ScheduleRecord.from_payload({'Id': 'a01', 'Amount0__c': 'ten'})


class TestSimulationSummary:

    def test_counts(self):
        summary = SimulationSummary.from_payload({'opportunitiesCreated': '120', 'totalPipelineValue': 5e6})
        assert summary.opportunities_created == 120
        assert summary.total_pipeline_value == 5000000.0
        assert summary.accounts_deleted == 0
