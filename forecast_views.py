"""
Forecast View Models
Pure functions turning typed server responses into display-ready rows:
version history and deltas, forward pipeline, annual revenue by quarter,
opportunity change log, previous-month recap, pipeline math and pipeline
reconciliation.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import List

import pandas as pd

from forecast_formatting import (
    DELTA_ERROR,
    DELTA_NEUTRAL,
    DELTA_SUCCESS,
    MONTH_ABBREVIATIONS,
    create_short_label,
    delta_class,
    format_currency,
    format_currency_cents,
    format_currency_with_sign,
    quarter_totals,
    sign_class,
    sort_by_impact,
)

BALANCE_TOLERANCE = 1000  # |net change - reconciliation| under this is balanced

VERSION_LABELS = ['Current', 'M-1', 'M-2', 'M-3', 'M-4', 'M-5']
RECORD_URL = '/lightning/r/{object_name}/{record_id}/view'


@dataclass(frozen=True)
class Toast:
    """User-visible notification produced by an action"""

    title: str
    message: str
    variant: str  # success | error | warning | info


# ==========================================
# HOME PAGE / DASHBOARD
# ==========================================

def formatted_current_month(month_text):
    if not month_text or month_text == 'Not Set':
        return 'No forecast month set'
    return month_text


def changes_toggle_label(changes, expanded):
    count = len(changes or [])
    return f"Hide Changes ({count})" if expanded else f"Show Changes ({count})"


def version_rows(dashboard):
    """Current forecast and the five prior snapshots, newest first"""
    return [
        {'key': f'v{i}', 'label': VERSION_LABELS[i], 'amount': amount, 'formatted': format_currency(amount)}
        for i, amount in enumerate(dashboard.versions)
    ]


def delta_rows(dashboard):
    """
    Month-over-month changes: versions[i] - versions[i+1] for i in 0..4.
    Deltas against an empty (zero) snapshot stay uncolored.
    """
    versions = dashboard.versions
    rows = []
    for i in range(len(versions) - 1):
        delta = versions[i] - versions[i + 1]
        rows.append({
            'key': f'delta-{i}',
            'label': f'M{i}-M{i + 1}',
            'delta': delta,
            'formatted': format_currency_with_sign(delta),
            'class': delta_class(delta, baseline=versions[i + 1]),
        })
    return rows


def forward_month_rows(forward_pipeline):
    """Forward pipeline months; empty when labels and amounts disagree in length"""
    labels = forward_pipeline.month_labels
    amounts = forward_pipeline.monthly_amounts
    if not labels or len(labels) != len(amounts):
        return []

    return [
        {
            'key': f'forward-{i}',
            'label': label,
            'short_label': create_short_label(label),
            'amount': amounts[i],
            'formatted': format_currency(amounts[i]),
        }
        for i, label in enumerate(labels)
    ]


def annual_month_rows(annual):
    """Annual months with "Jan 2025" shortened to "Jan" """
    labels = annual.month_labels
    amounts = annual.monthly_amounts
    if not labels or len(labels) != len(amounts):
        return []

    return [
        {
            'key': f'annual-{i}',
            'label': label,
            'short_label': label.split(' ')[0],
            'amount': amounts[i],
            'formatted': format_currency(amounts[i]),
        }
        for i, label in enumerate(labels)
    ]


def quarter_rows(annual):
    return [
        {'label': f'Q{i + 1}', 'amount': total, 'formatted': format_currency(total)}
        for i, total in enumerate(quarter_totals(annual.monthly_amounts))
    ]


def has_annual_data(annual):
    return len(annual.month_labels) > 0 and annual.total_annual > 0


# ==========================================
# OPPORTUNITY CHANGE LOG
# ==========================================

def stage_class(stage):
    if stage == 'Closed Won':
        return DELTA_SUCCESS
    if stage == 'Closed Lost':
        return DELTA_ERROR
    return DELTA_NEUTRAL


def change_class(change_type):
    if change_type == 'Closed Won':
        return DELTA_SUCCESS
    if change_type == 'Closed Lost':
        return DELTA_ERROR
    if change_type == 'Date Shifted':
        return 'weak'
    return DELTA_NEUTRAL


def change_rows(changes):
    return [
        {
            'Account': change.account_name,
            'Opportunity': change.opportunity_name,
            'Stage': change.stage_name,
            'Amount Before': format_currency(change.amount_before),
            'Amount After': format_currency(change.amount_after),
            'Change Type': change.change_type,
            'Reason': change.reason,
            'stage_class': stage_class(change.stage_name),
            'change_class': change_class(change.change_type),
        }
        for change in changes
    ]


# ==========================================
# PREVIOUS MONTH RECAP
# ==========================================

def format_date(value):
    """date(2025, 1, 5) -> "Jan 5, 2025"; None -> "" """
    if value is None:
        return ''
    return f"{MONTH_ABBREVIATIONS[value.month - 1]} {value.day}, {value.year}"


def record_url(object_name, record_id):
    if not record_id:
        return ''
    return RECORD_URL.format(object_name=object_name, record_id=record_id)


def _recap_row(opp):
    return {
        'Id': opp.id,
        'Opportunity Name': opp.name,
        'Account': opp.account_name,
        'Owner': opp.owner_name,
        'Amount': opp.amount,
        'Close Date': format_date(opp.close_date),
        'Opportunity Url': record_url('Opportunity', opp.id),
        'Account Url': record_url('Account', opp.account_id),
    }


def change_reason(opp, reasons):
    """Snapshot reason first, then the opportunity's own field"""
    return reasons.get(opp.id) or opp.reason_for_change or 'Not specified'


@dataclass
class RecapViewModel:
    analysis_month: object
    won: List[dict] = field(default_factory=list)
    lost: List[dict] = field(default_factory=list)
    shifted: List[dict] = field(default_factory=list)
    created: List[dict] = field(default_factory=list)

    @property
    def card_title(self):
        return f"{self.analysis_month.name} {self.analysis_month.year} Opportunity Recap (Previous Month)"

    @property
    def no_data_message(self):
        return (f"No opportunities were closed in {self.analysis_month.name} "
                f"{self.analysis_month.year} (previous month).")

    def count(self, category):
        return len(getattr(self, category))

    def amount(self, category):
        return sum(row['Amount'] or 0 for row in getattr(self, category))

    def formatted_amount(self, category):
        return format_currency_cents(self.amount(category))

    @property
    def has_data(self):
        return any(self.count(category) for category in ('won', 'lost', 'shifted', 'created'))


def build_recap(recap, analysis_month):
    view = RecapViewModel(analysis_month=analysis_month)
    if recap is None:
        return view

    view.won = [_recap_row(opp) for opp in recap.won]

    for opp in recap.lost:
        row = _recap_row(opp)
        row['Reason'] = change_reason(opp, recap.reasons)
        view.lost.append(row)

    for opp in recap.shifted:
        row = _recap_row(opp)
        new_close = opp.close_date + timedelta(days=30) if opp.close_date else None
        row['New Close Date'] = format_date(new_close)
        row['Reason'] = change_reason(opp, recap.reasons)
        view.shifted.append(row)

    for opp in recap.created:
        row = _recap_row(opp)
        row['Created Date'] = format_date(opp.created_date)
        view.created.append(row)

    return view


# ==========================================
# PIPELINE MATH
# ==========================================

def balance_status(balanced):
    """(status text, variant) for a reconciliation badge"""
    return ('Balanced', 'success') if balanced else ('Check Required', 'warning')


def _impact_rows(items):
    return [
        {
            'Opportunity': item.opportunity_name,
            'Account': item.account_name,
            'Stage': item.stage_name,
            'Category': item.category,
            'Amount': format_currency(item.current_amount),
            'Forward Impact': format_currency_with_sign(item.forward_impact),
            'Reason': item.reason,
            'impact': item.forward_impact,
        }
        for item in sort_by_impact(items)
    ]


def build_pipeline_math(math, include_won_revenue):
    mode = 'Business View' if include_won_revenue else 'Sales View'
    if math is None:
        return {
            'title': f"Pipeline Math - Loading... ({mode})",
            'toggle_label': 'Include Won Revenue' if include_won_revenue else 'Exclude Won Revenue',
            'loaded': False,
        }

    status, variant = balance_status(math.is_balanced)
    return {
        'title': f"Pipeline Math - {math.analysis_month or 'Loading...'} ({mode})",
        'toggle_label': 'Include Won Revenue' if include_won_revenue else 'Exclude Won Revenue',
        'loaded': True,
        'forward_period': math.forward_period,
        'previous': format_currency(math.forward_12m_previous),
        'current': format_currency(math.forward_12m_current),
        'change': format_currency_with_sign(math.forward_12m_change),
        'change_class': sign_class(math.forward_12m_change),
        'reconciliation': format_currency_with_sign(math.reconciliation_check),
        'reconciliation_class': sign_class(math.reconciliation_check),
        'status': status,
        'status_variant': variant,
        'red_total': format_currency_with_sign(math.red_total),
        'green_total': format_currency_with_sign(math.green_total),
        'gray_total': format_currency_with_sign(math.gray_total),
        'red_items': _impact_rows(math.red_items),
        'green_items': _impact_rows(math.green_items),
        'gray_items': _impact_rows(math.gray_items),
    }


# ==========================================
# PIPELINE RECONCILIATION
# ==========================================

@dataclass(frozen=True)
class ReconciliationSummary:
    won_total: float
    lost_total: float
    created_total: float
    shifted_total: float
    changed_total: float
    net_change: float
    reconciliation_total: float

    @property
    def balanced(self):
        return is_balanced(self.net_change, self.reconciliation_total)


def is_balanced(net_change, reconciliation_total, tolerance=BALANCE_TOLERANCE):
    return abs(net_change - reconciliation_total) < tolerance


def summarize_reconciliation(recon):
    return ReconciliationSummary(
        won_total=recon.won_total,
        lost_total=recon.lost_total,
        created_total=recon.created_total,
        shifted_total=sum(entry.opportunity.amount or 0 for entry in recon.shifted),
        changed_total=recon.changed_total,
        net_change=recon.net_pipeline_change,
        reconciliation_total=recon.reconciliation_total,
    )


def _reconciliation_rows(entries):
    return [
        {
            'Opportunity Name': entry.opportunity.name,
            'Account': entry.opportunity.account_name,
            'Amount': format_currency(entry.opportunity.amount),
            'Stage': entry.opportunity.stage_name,
            'Close Date': entry.opportunity.close_date,
            'Delta': format_currency_with_sign(entry.amount_delta),
            'Details': entry.metadata,
        }
        for entry in entries
    ]


def build_reconciliation(recon, analysis_month):
    title = f"{analysis_month.name} {analysis_month.year} Pipeline Reconciliation"
    if recon is None:
        return {'title': title, 'loaded': False, 'categories': []}

    summary = summarize_reconciliation(recon)
    status, variant = balance_status(summary.balanced)

    categories = [
        ('won', 'Won', recon.won, format_currency(summary.won_total)),
        ('lost', 'Lost', recon.lost, format_currency(summary.lost_total)),
        ('created', 'Created', recon.created, format_currency(summary.created_total)),
        ('shifted', 'Shifted', recon.shifted, format_currency(summary.shifted_total)),
        ('changed', 'Changed', recon.changed, format_currency(abs(summary.changed_total))),
    ]

    return {
        'title': title,
        'loaded': True,
        'summary': summary,
        'previous_total': format_currency(recon.previous_pipeline_total),
        'current_total': format_currency(recon.current_pipeline_total),
        'net_change': format_currency_with_sign(summary.net_change),
        'net_change_class': sign_class(summary.net_change),
        'reconciliation': format_currency_with_sign(summary.reconciliation_total),
        'reconciliation_class': sign_class(summary.reconciliation_total),
        'status': status,
        'status_variant': variant,
        'changed_impact': format_currency_with_sign(summary.changed_total),
        'changed_impact_class': sign_class(summary.changed_total),
        'categories': [
            {
                'key': key,
                'label': label,
                'count': len(entries),
                'total': total,
                'rows': _reconciliation_rows(entries),
            }
            for key, label, entries, total in categories
        ],
    }


def rows_frame(rows, columns=None):
    """DataFrame for st.dataframe; helper keys (lowercase) are left out"""
    if not rows:
        return pd.DataFrame(columns=columns or [])
    df = pd.DataFrame(rows)
    if columns is None:
        columns = [col for col in df.columns if not col.islower()]
    return df[[col for col in columns if col in df.columns]]
