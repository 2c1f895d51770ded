"""
Typed response structures for the forecast server operations.

Every structure is built with `from_payload`, which checks the decoded JSON
before anything reaches a view. A missing or mistyped field raises
PayloadError naming the operation and field instead of quietly becoming 0.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Optional, Tuple

from forecast_errors import PayloadError

_MISSING = object()


# ==========================================
# FIELD READERS
# ==========================================

def _require_mapping(payload, operation, name='payload'):
    if not isinstance(payload, Mapping):
        raise PayloadError(operation, name, f"expected an object, got {type(payload).__name__}")
    return payload


def _get(payload, key, operation, required):
    value = payload.get(key, _MISSING)
    if value is _MISSING and required:
        raise PayloadError(operation, key, "is missing")
    return value


def _number(payload, key, operation, required=True, nullable=False, default=0.0):
    value = _get(payload, key, operation, required)
    if value is _MISSING:
        return default
    if value is None:
        if nullable or not required:
            return default
        raise PayloadError(operation, key, "is null")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadError(operation, key, f"expected a number, got {value!r}")
    return float(value)


def _count(payload, key, operation, required=False):
    """Counters arrive as numbers or numeric strings ("12")"""
    value = _get(payload, key, operation, required)
    if value is _MISSING or value is None or value == '':
        return 0
    if isinstance(value, bool):
        raise PayloadError(operation, key, f"expected a count, got {value!r}")
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise PayloadError(operation, key, f"expected a count, got {value!r}") from None


def _text(payload, key, operation, required=False, default=''):
    value = _get(payload, key, operation, required)
    if value is _MISSING or value is None:
        if required and value is None:
            raise PayloadError(operation, key, "is null")
        return default
    if not isinstance(value, str):
        raise PayloadError(operation, key, f"expected text, got {value!r}")
    return value


def _flag(payload, key, operation, required=True):
    value = _get(payload, key, operation, required)
    if value is _MISSING:
        return False
    if isinstance(value, str) and value.lower() in ('true', 'false'):
        return value.lower() == 'true'
    if not isinstance(value, bool):
        raise PayloadError(operation, key, f"expected true/false, got {value!r}")
    return value


def _list(payload, key, operation, required=True):
    value = _get(payload, key, operation, required)
    if value is _MISSING or (value is None and not required):
        return []
    if not isinstance(value, list):
        raise PayloadError(operation, key, f"expected a list, got {type(value).__name__}")
    return value


def _date(payload, key, operation):
    """Dates arrive as "2025-03-15" or "2025-03-15T10:00:00.000+0000" """
    value = payload.get(key)
    if value in (None, ''):
        return None
    if not isinstance(value, str):
        raise PayloadError(operation, key, f"expected a date, got {value!r}")
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise PayloadError(operation, key, f"expected a date, got {value!r}") from None


def _related_name(payload, key, operation):
    related = payload.get(key)
    if related is None:
        return ''
    _require_mapping(related, operation, key)
    return _text(related, 'Name', operation)


def _related_id(payload, key, operation):
    related = payload.get(key)
    if related is None:
        return ''
    _require_mapping(related, operation, key)
    return _text(related, 'Id', operation)


# ==========================================
# FORECAST MONTH & DASHBOARD
# ==========================================

@dataclass(frozen=True)
class AdvanceMonthResult:
    new_month: str
    records_updated: int
    changed_opportunities: int = 0
    month_type: str = 'Normal'
    won_opportunities: int = 0
    lost_opportunities: int = 0
    created_opportunities: int = 0
    success: bool = True

    @classmethod
    def from_payload(cls, payload):
        op = 'advanceToNextMonth'
        _require_mapping(payload, op)
        return cls(
            new_month=_text(payload, 'newMonth', op, required=True),
            records_updated=_count(payload, 'recordsUpdated', op, required=True),
            changed_opportunities=_count(payload, 'changedOpportunities', op),
            month_type=_text(payload, 'monthType', op, default='Normal') or 'Normal',
            won_opportunities=_count(payload, 'wonOpportunities', op),
            lost_opportunities=_count(payload, 'lostOpportunities', op),
            created_opportunities=_count(payload, 'createdOpportunities', op),
            success=_flag(payload, 'success', op, required=False) if 'success' in payload else True,
        )


@dataclass(frozen=True)
class ForwardPipeline:
    month_labels: Tuple[str, ...] = ()
    monthly_amounts: Tuple[float, ...] = ()
    total_forward: float = 0.0

    @classmethod
    def from_payload(cls, payload, op='getDashboardData'):
        _require_mapping(payload, op, 'forwardPipeline')
        labels = _list(payload, 'monthLabels', op)
        amounts = _list(payload, 'monthlyAmounts', op)
        return cls(
            month_labels=tuple(_label_list(labels, 'monthLabels', op)),
            monthly_amounts=tuple(_amount_list(amounts, 'monthlyAmounts', op)),
            total_forward=_number(payload, 'totalForward', op),
        )


@dataclass(frozen=True)
class DashboardData:
    """Current forecast amount plus the five prior monthly snapshots"""

    current_month: float = 0.0
    previous_months: Tuple[float, ...] = (0.0, 0.0, 0.0, 0.0, 0.0)
    forward_pipeline: ForwardPipeline = field(default_factory=ForwardPipeline)
    total_opportunities: int = 0
    current_forecast_month: str = ''

    @classmethod
    def from_payload(cls, payload):
        op = 'getDashboardData'
        _require_mapping(payload, op)
        previous = tuple(
            _number(payload, f'previousMonth{i}', op, nullable=True) for i in range(1, 6)
        )
        return cls(
            current_month=_number(payload, 'currentMonth', op, nullable=True),
            previous_months=previous,
            forward_pipeline=ForwardPipeline.from_payload(
                _get(payload, 'forwardPipeline', op, required=True), op
            ),
            total_opportunities=_count(payload, 'totalOpportunities', op),
            current_forecast_month=_text(payload, 'currentForecastMonth', op),
        )

    @property
    def versions(self):
        """VersionedAmount: index 0 is the current month, 1-5 the prior snapshots"""
        return (self.current_month,) + tuple(self.previous_months)


@dataclass(frozen=True)
class AnnualRevenue:
    """Twelve month revenue series for one calendar year, January first"""

    month_labels: Tuple[str, ...] = ()
    monthly_amounts: Tuple[float, ...] = ()
    total_annual: float = 0.0

    @classmethod
    def from_payload(cls, payload):
        op = 'getAnnualRevenueData'
        _require_mapping(payload, op)
        return cls(
            month_labels=tuple(_label_list(_list(payload, 'monthLabels', op), 'monthLabels', op)),
            monthly_amounts=tuple(_amount_list(_list(payload, 'monthlyAmounts', op), 'monthlyAmounts', op)),
            total_annual=_number(payload, 'totalAnnual', op),
        )


def _label_list(values, key, op):
    for value in values:
        if not isinstance(value, str):
            raise PayloadError(op, key, f"expected text labels, got {value!r}")
    return values


def _amount_list(values, key, op):
    amounts = []
    for value in values:
        if value is None:
            amounts.append(0.0)
        elif isinstance(value, bool) or not isinstance(value, (int, float)):
            raise PayloadError(op, key, f"expected numbers, got {value!r}")
        else:
            amounts.append(float(value))
    return amounts


# ==========================================
# OPPORTUNITY CHANGES & RECAP
# ==========================================

@dataclass(frozen=True)
class OpportunityChange:
    """One row of the opportunity change log (OpportunityChangeRecord)"""

    account_name: str
    opportunity_name: str
    stage_name: str
    amount_before: float
    amount_after: float
    change_type: str
    reason: str = ''

    @classmethod
    def from_payload(cls, payload):
        op = 'getOpportunityChanges'
        _require_mapping(payload, op, 'change')
        return cls(
            account_name=_text(payload, 'accountName', op),
            opportunity_name=_text(payload, 'opportunityName', op, required=True),
            stage_name=_text(payload, 'stageName', op),
            amount_before=_number(payload, 'amountBefore', op, nullable=True),
            amount_after=_number(payload, 'amountAfter', op, nullable=True),
            change_type=_text(payload, 'changeType', op, required=True),
            reason=_text(payload, 'reason', op),
        )

    @classmethod
    def list_from_payload(cls, payload):
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise PayloadError('getOpportunityChanges', 'payload', "expected a list")
        return [cls.from_payload(item) for item in payload]


@dataclass(frozen=True)
class OpportunitySummary:
    """The Opportunity fields the recap and reconciliation views read"""

    id: str
    name: str
    amount: float = 0.0
    stage_name: str = ''
    close_date: Optional[date] = None
    created_date: Optional[date] = None
    account_id: str = ''
    account_name: str = ''
    owner_name: str = ''
    reason_for_change: str = ''

    @classmethod
    def from_payload(cls, payload, op):
        _require_mapping(payload, op, 'opportunity')
        return cls(
            id=_text(payload, 'Id', op, required=True),
            name=_text(payload, 'Name', op),
            amount=_number(payload, 'Amount', op, required=False, nullable=True),
            stage_name=_text(payload, 'StageName', op),
            close_date=_date(payload, 'CloseDate', op),
            created_date=_date(payload, 'CreatedDate', op),
            account_id=_related_id(payload, 'Account', op),
            account_name=_related_name(payload, 'Account', op),
            owner_name=_related_name(payload, 'Owner', op),
            reason_for_change=_text(payload, 'Reason_for_Change__c', op),
        )


@dataclass(frozen=True)
class OpportunityRecap:
    won: Tuple[OpportunitySummary, ...] = ()
    lost: Tuple[OpportunitySummary, ...] = ()
    shifted: Tuple[OpportunitySummary, ...] = ()
    created: Tuple[OpportunitySummary, ...] = ()
    reasons: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload):
        op = 'getOpportunityRecap'
        _require_mapping(payload, op)

        def records(key):
            return tuple(OpportunitySummary.from_payload(item, op) for item in _list(payload, key, op))

        reasons = payload.get('oppIdToReasonMap') or {}
        _require_mapping(reasons, op, 'oppIdToReasonMap')
        return cls(
            won=records('wonOpportunities'),
            lost=records('lostOpportunities'),
            shifted=records('shiftedOpportunities'),
            created=records('createdOpportunities'),
            reasons={str(key): str(value) for key, value in reasons.items() if value},
        )


# ==========================================
# PIPELINE MATH
# ==========================================

@dataclass(frozen=True)
class PipelineMathItem:
    opportunity_name: str
    account_name: str = ''
    stage_name: str = ''
    category: str = ''
    current_amount: float = 0.0
    forward_impact: float = 0.0
    reason: str = ''

    @classmethod
    def from_payload(cls, payload, op='getPipelineMath'):
        _require_mapping(payload, op, 'item')
        return cls(
            opportunity_name=_text(payload, 'opportunityName', op),
            account_name=_text(payload, 'accountName', op),
            stage_name=_text(payload, 'stageName', op),
            category=_text(payload, 'category', op),
            current_amount=_number(payload, 'currentAmount', op, required=False, nullable=True),
            forward_impact=_number(payload, 'forwardImpact', op, nullable=True),
            reason=_text(payload, 'reason', op),
        )


@dataclass(frozen=True)
class PipelineMath:
    forward_12m_previous: float
    forward_12m_current: float
    forward_12m_change: float
    reconciliation_check: float
    is_balanced: bool
    red_items: Tuple[PipelineMathItem, ...] = ()
    green_items: Tuple[PipelineMathItem, ...] = ()
    gray_items: Tuple[PipelineMathItem, ...] = ()
    red_total: float = 0.0
    green_total: float = 0.0
    gray_total: float = 0.0
    analysis_month: str = ''
    forward_period: str = ''

    @classmethod
    def from_payload(cls, payload):
        op = 'getPipelineMath'
        _require_mapping(payload, op)

        def items(key):
            return tuple(PipelineMathItem.from_payload(item, op) for item in _list(payload, key, op))

        return cls(
            forward_12m_previous=_number(payload, 'forward12MPrevious', op),
            forward_12m_current=_number(payload, 'forward12MCurrent', op),
            forward_12m_change=_number(payload, 'forward12MChange', op),
            reconciliation_check=_number(payload, 'reconciliationCheck', op),
            is_balanced=_flag(payload, 'isBalanced', op),
            red_items=items('redItems'),
            green_items=items('greenItems'),
            gray_items=items('grayItems'),
            red_total=_number(payload, 'redTotal', op, required=False),
            green_total=_number(payload, 'greenTotal', op, required=False),
            gray_total=_number(payload, 'grayTotal', op, required=False),
            analysis_month=_text(payload, 'analysisMonth', op),
            forward_period=_text(payload, 'forwardPeriod', op),
        )


# ==========================================
# PIPELINE RECONCILIATION
# ==========================================

@dataclass(frozen=True)
class ReconciliationEntry:
    opportunity: OpportunitySummary
    amount_delta: float = 0.0
    metadata: str = ''

    @classmethod
    def from_payload(cls, payload, op='getPipelineReconciliation'):
        _require_mapping(payload, op, 'entry')
        return cls(
            opportunity=OpportunitySummary.from_payload(_get(payload, 'opportunity', op, True), op),
            amount_delta=_number(payload, 'amountDelta', op, required=False, nullable=True),
            metadata=_text(payload, 'metadata', op),
        )


@dataclass(frozen=True)
class PipelineReconciliation:
    previous_pipeline_total: float
    current_pipeline_total: float
    net_pipeline_change: float
    reconciliation_total: float
    won: Tuple[ReconciliationEntry, ...] = ()
    lost: Tuple[ReconciliationEntry, ...] = ()
    created: Tuple[ReconciliationEntry, ...] = ()
    shifted: Tuple[ReconciliationEntry, ...] = ()
    changed: Tuple[ReconciliationEntry, ...] = ()
    won_total: float = 0.0
    lost_total: float = 0.0
    created_total: float = 0.0
    changed_total: float = 0.0

    @classmethod
    def from_payload(cls, payload):
        op = 'getPipelineReconciliation'
        _require_mapping(payload, op)

        def entries(key):
            return tuple(ReconciliationEntry.from_payload(item, op) for item in _list(payload, key, op))

        return cls(
            previous_pipeline_total=_number(payload, 'previousPipelineTotal', op),
            current_pipeline_total=_number(payload, 'currentPipelineTotal', op),
            net_pipeline_change=_number(payload, 'netPipelineChange', op),
            reconciliation_total=_number(payload, 'reconciliationTotal', op),
            won=entries('wonOpportunities'),
            lost=entries('lostOpportunities'),
            created=entries('createdOpportunities'),
            shifted=entries('shiftedOpportunities'),
            changed=entries('changedOpportunities'),
            won_total=_number(payload, 'wonTotal', op, required=False),
            lost_total=_number(payload, 'lostTotal', op, required=False),
            created_total=_number(payload, 'createdTotal', op, required=False),
            changed_total=_number(payload, 'changedTotal', op, required=False),
        )


# ==========================================
# SCHEDULE RECORD & SIMULATION
# ==========================================

SCHEDULE_VERSIONS = 6


@dataclass(frozen=True)
class ScheduleRecord:
    """Six month labels and six amounts, version 0 being the most recent"""

    id: str
    months: Tuple[str, ...]
    amounts: Tuple[float, ...]

    @classmethod
    def from_payload(cls, payload):
        op = 'getScheduleData'
        _require_mapping(payload, op)
        months = tuple(_text(payload, f'Month{i}__c', op) for i in range(SCHEDULE_VERSIONS))
        amounts = tuple(_schedule_amount(payload, f'Amount{i}__c', op) for i in range(SCHEDULE_VERSIONS))
        return cls(id=_text(payload, 'Id', op, required=True), months=months, amounts=amounts)

    def to_payload(self):
        payload = {'Id': self.id}
        for i in range(SCHEDULE_VERSIONS):
            payload[f'Month{i}__c'] = self.months[i]
            payload[f'Amount{i}__c'] = self.amounts[i]
        return payload


def _schedule_amount(payload, key, op):
    """Edited cells come back as text; blank or unparseable cells are 0"""
    value = payload.get(key)
    if isinstance(value, str):
        try:
            return float(value.replace(',', '')) if value.strip() else 0.0
        except ValueError:
            raise PayloadError(op, key, f"expected a number, got {value!r}") from None
    return _number(payload, key, op, required=False, nullable=True)


@dataclass(frozen=True)
class SimulationSummary:
    opportunities_created: int = 0
    accounts_created: int = 0
    snapshots_created: int = 0
    opportunities_deleted: int = 0
    accounts_deleted: int = 0
    snapshots_deleted: int = 0
    total_pipeline_value: float = 0.0
    current_forecast_month: str = ''

    @classmethod
    def from_payload(cls, payload, op='simulation'):
        _require_mapping(payload, op)
        return cls(
            opportunities_created=_count(payload, 'opportunitiesCreated', op),
            accounts_created=_count(payload, 'accountsCreated', op),
            snapshots_created=_count(payload, 'snapshotsCreated', op),
            opportunities_deleted=_count(payload, 'opportunitiesDeleted', op),
            accounts_deleted=_count(payload, 'accountsDeleted', op),
            snapshots_deleted=_count(payload, 'snapshotsDeleted', op),
            total_pipeline_value=_number(payload, 'totalPipelineValue', op, required=False, nullable=True),
            current_forecast_month=_text(payload, 'currentForecastMonth', op),
        )
