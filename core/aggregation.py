"""
Aggregation over typed banking transactions.

Whole-table summaries, monthly rollups, predicate filters, user-defined
custom summaries and the session clustering used to estimate worked hours
from transaction timestamps.

Every function here is pure: results are fresh snapshots computed from the
transaction list passed in.
"""
import math
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple

import pandas as pd

from core.normalize import date_sort_key, parse_date, to_transactions
from core.parsing import parse
from core.schema import (
    CustomSummaryDefinition,
    CustomSummaryResult,
    DateRange,
    MonthlyBucket,
    ParseOptions,
    SummaryTotals,
    Transaction,
    TransactionTable,
    WorkSession,
)

ONE_HOUR = timedelta(hours=1)

TransactionType = Literal["deposits", "withdrawals", "all"]


# ---------------------------------------------------------------------------
# Whole-table summary
# ---------------------------------------------------------------------------

def is_deposit(amount: float) -> bool:
    """Deposits are strictly positive; zero and NaN count as withdrawals."""
    return amount > 0


def calculate_summary(transactions: Sequence[Transaction]) -> SummaryTotals:
    """
    Deposit/withdrawal split of a transaction list.

    Sums are exact (``math.fsum``) so the result does not depend on order.
    A NaN amount lands in withdrawals and propagates.
    """
    deposits = math.fsum(t.amount for t in transactions if is_deposit(t.amount))
    withdrawals = math.fsum(abs(t.amount) for t in transactions if not is_deposit(t.amount))
    return SummaryTotals(
        deposits=deposits,
        withdrawals=withdrawals,
        net_change=deposits - withdrawals,
    )


def calculate_date_range(transactions: Sequence[Transaction]) -> DateRange:
    """Verbatim earliest/latest date strings; unparseable dates order as the epoch."""
    dates = [t.date_text for t in transactions if t.date_text != ""]
    if not dates:
        return DateRange()
    ordered = sorted(dates, key=date_sort_key)
    return DateRange(start=ordered[0], end=ordered[-1])


def summarize(transactions: Sequence[Transaction]) -> TransactionTable:
    """
    Build a TransactionTable snapshot.

    Args:
        transactions: Typed transactions in table order

    Returns:
        TransactionTable whose total equals deposits minus withdrawals
    """
    transactions = list(transactions)
    summary = calculate_summary(transactions)
    total_count = len(transactions)
    total_amount = summary.net_change
    return TransactionTable(
        transactions=transactions,
        total_count=total_count,
        total_amount=total_amount,
        average_amount=total_amount / total_count if total_count else 0.0,
        date_range=calculate_date_range(transactions),
        summary=summary,
    )


def summarize_text(text: str, options: Optional[ParseOptions] = None) -> TransactionTable:
    """Parse raw CSV text and summarize it in one step."""
    return summarize(to_transactions(parse(text, options)))


# ---------------------------------------------------------------------------
# Monthly rollup
# ---------------------------------------------------------------------------

def monthly_summary(transactions: Iterable[Transaction]) -> Dict[str, MonthlyBucket]:
    """
    Group transactions by calendar month of their parsed date.

    Transactions whose date does not parse are left out. Buckets use the
    same deposit rule as ``calculate_summary`` and are keyed "YYYY-MM" in
    ascending order.

    Args:
        transactions: Typed transactions

    Returns:
        Mapping of month key to MonthlyBucket
    """
    months: List[str] = []
    amounts: List[float] = []
    for txn in transactions:
        when = parse_date(txn.date_text)
        if when is None:
            continue
        months.append(f"{when.year:04d}-{when.month:02d}")
        amounts.append(txn.amount)

    if not months:
        return {}

    frame = pd.DataFrame({"month": months, "amount": pd.Series(amounts, dtype="float64")})
    deposit_mask = frame["amount"] > 0
    frame["deposits"] = frame["amount"].where(deposit_mask, 0.0)
    frame["withdrawals"] = frame["amount"].where(~deposit_mask, 0.0).abs()

    buckets: Dict[str, MonthlyBucket] = {}
    for month, group in frame.groupby("month", sort=True):
        buckets[str(month)] = MonthlyBucket(
            count=int(len(group)),
            total=float(group["amount"].sum(skipna=False)),
            deposits=float(group["deposits"].sum(skipna=False)),
            withdrawals=float(group["withdrawals"].sum(skipna=False)),
        )
    return buckets


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def by_date_range(transactions: Iterable[Transaction], start: str, end: str) -> List[Transaction]:
    """
    Transactions whose parsed date lies within [start, end].

    An unparseable bound matches nothing, and so does an unparseable
    transaction date.
    """
    start_at, end_at = parse_date(start), parse_date(end)
    if start_at is None or end_at is None:
        return []
    selected = []
    for txn in transactions:
        when = parse_date(txn.date_text)
        if when is not None and start_at <= when <= end_at:
            selected.append(txn)
    return selected


def by_amount_range(transactions: Iterable[Transaction], min_amount: float, max_amount: float) -> List[Transaction]:
    return [t for t in transactions if min_amount <= t.amount <= max_amount]


def by_entity(transactions: Iterable[Transaction], entity: str) -> List[Transaction]:
    """Case-insensitive substring match against sender or reason."""
    term = entity.lower()
    return [t for t in transactions if term in t.from_.lower() or term in t.reason.lower()]


def by_type(transactions: Iterable[Transaction], kind: TransactionType) -> List[Transaction]:
    """
    Split by sign. Zero amounts are neither deposits nor withdrawals here,
    unlike in ``calculate_summary``.
    """
    if kind == "deposits":
        return [t for t in transactions if t.amount > 0]
    if kind == "withdrawals":
        return [t for t in transactions if t.amount < 0]
    return list(transactions)


# ---------------------------------------------------------------------------
# Custom summaries
# ---------------------------------------------------------------------------

def contains_any(text: str, terms: Optional[Sequence[str]]) -> bool:
    """True when ``text`` contains any term (ignoring case) or no terms are given."""
    if not terms:
        return True
    haystack = text.lower()
    return any(term.lower() in haystack for term in terms)


DateBounds = Tuple[Optional[datetime], Optional[datetime]]


def definition_bounds(definition: CustomSummaryDefinition) -> DateBounds:
    """Parsed inclusive date bounds; a bound that does not parse is ignored."""
    start = parse_date(definition.date_start) if definition.date_start else None
    end = parse_date(definition.date_end) if definition.date_end else None
    return start, end


def _within(when: Optional[datetime], start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is None and end is None:
        return True
    if when is None:
        return False
    if start is not None and when < start:
        return False
    if end is not None and when > end:
        return False
    return True


def matches_definition(
    txn: Transaction,
    definition: CustomSummaryDefinition,
    reason_terms: Optional[Sequence[str]] = None,
    bounds: Optional[DateBounds] = None,
) -> bool:
    """
    Check one transaction against a custom summary filter.

    Args:
        txn: Transaction to test
        definition: Filter definition
        reason_terms: Override for ``definition.reason_matches``
        bounds: Pre-parsed ``definition_bounds(definition)``; callers
            testing many transactions pass it to parse the bounds once

    Returns:
        True when reason, sender and date bounds all match
    """
    terms = definition.reason_matches if reason_terms is None else reason_terms
    if not contains_any(txn.reason, terms):
        return False
    if not contains_any(txn.from_, definition.from_matches):
        return False
    start, end = bounds if bounds is not None else definition_bounds(definition)
    return _within(parse_date(txn.date_text), start, end)


def matching_transactions(
    transactions: Iterable[Transaction],
    definition: CustomSummaryDefinition,
    reason_terms: Optional[Sequence[str]] = None,
) -> List[Transaction]:
    """Transactions that match a definition, in input order."""
    bounds = definition_bounds(definition)
    return [
        t for t in transactions
        if matches_definition(t, definition, reason_terms=reason_terms, bounds=bounds)
    ]


def custom_summary_net(transactions: Iterable[Transaction], definition: CustomSummaryDefinition) -> float:
    """Signed sum of matching amounts; a NaN amount makes the net NaN."""
    return sum(t.amount for t in matching_transactions(transactions, definition))


# ---------------------------------------------------------------------------
# Session clustering
# ---------------------------------------------------------------------------

def cluster_sessions(
    timestamps: Iterable[datetime],
    gap: timedelta = ONE_HOUR,
    padding: timedelta = ONE_HOUR,
) -> List[WorkSession]:
    """
    Cluster event timestamps into work sessions.

    Events within ``gap`` of the previous event extend the current session;
    a larger gap closes it. Each session ends ``padding`` after its last
    event.

    Args:
        timestamps: Event times in any order
        gap: Largest gap that still continues a session
        padding: Time credited after the last event of a session

    Returns:
        Sessions in chronological order
    """
    ordered = sorted(timestamps)
    if not ordered:
        return []

    sessions: List[WorkSession] = []
    session_start = previous = ordered[0]
    event_count = 1
    for current in ordered[1:]:
        if current - previous <= gap:
            event_count += 1
        else:
            sessions.append(WorkSession(start=session_start, end=previous + padding, event_count=event_count))
            session_start = current
            event_count = 1
        previous = current

    sessions.append(WorkSession(start=session_start, end=previous + padding, event_count=event_count))
    return sessions


def worked_hours(
    timestamps: Iterable[datetime],
    gap: timedelta = ONE_HOUR,
    padding: timedelta = ONE_HOUR,
) -> float:
    """Total hours across all sessions; zero for no timestamps."""
    return float(sum(session.hours for session in cluster_sessions(timestamps, gap, padding)))


def time_tracking_timestamps(
    transactions: Iterable[Transaction],
    definition: CustomSummaryDefinition,
) -> List[datetime]:
    """Parsed dates of the transactions counted for worked hours, ascending."""
    terms = definition.time_reason_matches
    if terms is None:
        terms = definition.reason_matches
    stamps = []
    for txn in matching_transactions(transactions, definition, reason_terms=terms):
        when = parse_date(txn.date_text)
        if when is not None:
            stamps.append(when)
    return sorted(stamps)


def custom_summary_sessions(
    transactions: Iterable[Transaction],
    definition: CustomSummaryDefinition,
    gap: timedelta = ONE_HOUR,
    padding: timedelta = ONE_HOUR,
) -> List[WorkSession]:
    return cluster_sessions(time_tracking_timestamps(transactions, definition), gap, padding)


def custom_summary_hours(
    transactions: Iterable[Transaction],
    definition: CustomSummaryDefinition,
    gap: timedelta = ONE_HOUR,
    padding: timedelta = ONE_HOUR,
) -> float:
    return worked_hours(time_tracking_timestamps(transactions, definition), gap, padding)


def evaluate_custom_summary(
    transactions: Sequence[Transaction],
    definition: CustomSummaryDefinition,
    gap: timedelta = ONE_HOUR,
    padding: timedelta = ONE_HOUR,
) -> CustomSummaryResult:
    """
    Net amount, match count and (when tracked) worked hours for one definition.

    Args:
        transactions: Typed transactions
        definition: Custom summary definition
        gap: Session merge window
        padding: Time credited after a session's last event

    Returns:
        CustomSummaryResult
    """
    matched = matching_transactions(transactions, definition)
    hours = None
    session_count = None
    if definition.track_time:
        sessions = custom_summary_sessions(transactions, definition, gap, padding)
        hours = float(sum(session.hours for session in sessions))
        session_count = len(sessions)
    return CustomSummaryResult(
        id=definition.id,
        name=definition.name,
        net=sum(t.amount for t in matched),
        matched_count=len(matched),
        hours=hours,
        sessions=session_count,
    )


def evaluate_custom_summaries(
    transactions: Sequence[Transaction],
    definitions: Iterable[CustomSummaryDefinition],
    gap: timedelta = ONE_HOUR,
    padding: timedelta = ONE_HOUR,
) -> List[CustomSummaryResult]:
    return [evaluate_custom_summary(transactions, d, gap, padding) for d in definitions]


# Built-in hour totals: fixed-filter custom summaries

def entity_hours(
    transactions: Sequence[Transaction],
    entity: str,
    gap: timedelta = ONE_HOUR,
    padding: timedelta = ONE_HOUR,
) -> float:
    """Worked hours from transactions whose sender contains ``entity``; zero for a blank entity."""
    entity = entity.strip()
    if not entity:
        return 0.0
    definition = CustomSummaryDefinition(name=f"From {entity}", from_matches=[entity], track_time=True)
    return custom_summary_hours(transactions, definition, gap, padding)


def reason_hours(
    transactions: Sequence[Transaction],
    reason: str,
    gap: timedelta = ONE_HOUR,
    padding: timedelta = ONE_HOUR,
) -> float:
    """Worked hours from transactions whose reason contains ``reason``; zero for a blank reason."""
    reason = reason.strip()
    if not reason:
        return 0.0
    definition = CustomSummaryDefinition(name=f"Reason {reason}", reason_matches=[reason], track_time=True)
    return custom_summary_hours(transactions, definition, gap, padding)
