"""
Data models for the banking CSV pipeline.

Dataclasses carry the hot pipeline records (tables, rows, transactions,
summaries). Pydantic models cover everything that is configured, persisted
with a profile, or returned over HTTP.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, Field


class Row(dict):
    """
    A parsed CSV row keyed by header name.

    Looking up a header the row does not have yields an empty string.
    """

    def __missing__(self, key: str) -> str:
        return ""


@dataclass
class Table:
    """Generic header/row structure produced by the tokenizer."""
    headers: List[str] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)
    row_count: int = field(init=False)

    def __post_init__(self) -> None:
        self.row_count = len(self.rows)


@dataclass(frozen=True)
class Transaction:
    """Typed banking record derived from a table row."""
    id: str
    from_: str
    routing_code: str
    reason: str
    amount: float
    balance_text: str
    date_text: str
    # Shared with the Table the transaction came from; never mutated.
    source_row: Row = field(repr=False, compare=False)


@dataclass(frozen=True)
class DateRange:
    start: str = ""
    end: str = ""


@dataclass(frozen=True)
class SummaryTotals:
    deposits: float = 0.0
    withdrawals: float = 0.0
    net_change: float = 0.0


@dataclass(frozen=True)
class TransactionTable:
    """Snapshot of a transaction list with its whole-table aggregates."""
    transactions: List[Transaction]
    total_count: int
    total_amount: float
    average_amount: float
    date_range: DateRange
    summary: SummaryTotals


@dataclass(frozen=True)
class WorkSession:
    """One cluster of timestamps; ``end`` already includes the padding."""
    start: datetime
    end: datetime
    event_count: int

    @property
    def hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600.0


class ParseOptions(BaseModel):
    """Tokenizer behaviour switches."""
    skip_empty_rows: bool = True
    trim_whitespace: bool = True
    handle_empty_headers: bool = True


class ColumnStats(BaseModel):
    """Numeric statistics over the amount-parseable values of a column."""
    count: int = 0
    sum: float = 0.0
    average: float = 0.0
    min: float = 0.0
    max: float = 0.0


class MonthlyBucket(BaseModel):
    """Per-month rollup."""
    count: int = 0
    total: float = 0.0
    deposits: float = 0.0
    withdrawals: float = 0.0


def normalize_terms(v):
    """Drop blank match terms; ``None`` becomes an empty list."""
    if v is None:
        return []
    if isinstance(v, str):
        v = [v]
    return [str(term).strip() for term in v if str(term).strip()]


def normalize_optional_terms(v):
    """Like ``normalize_terms`` but keeps ``None`` meaning "not set"."""
    if v is None:
        return None
    return normalize_terms(v)


def normalize_bound(v):
    """Blank date bounds mean no bound."""
    if v is None:
        return None
    v = str(v).strip()
    return v or None


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


MatchTerms = Annotated[List[str], BeforeValidator(normalize_terms)]
OptionalMatchTerms = Annotated[Optional[List[str]], BeforeValidator(normalize_optional_terms)]
DateBound = Annotated[Optional[str], BeforeValidator(normalize_bound)]


class CustomSummaryDefinition(BaseModel):
    """
    User-defined filter over a profile's transactions.

    ``reason_matches`` and ``from_matches`` are OR'd, case-insensitive
    substring terms; an empty list matches everything. Date bounds are
    inclusive. When ``track_time`` is set, worked hours are estimated from
    the transactions matching ``time_reason_matches`` (or ``reason_matches``
    when no override is given).
    """
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    reason_matches: MatchTerms = Field(default_factory=list)
    from_matches: OptionalMatchTerms = None
    date_start: DateBound = None
    date_end: DateBound = None
    track_time: bool = False
    time_reason_matches: OptionalMatchTerms = None


class CustomSummaryResult(BaseModel):
    id: str
    name: str
    net: float
    matched_count: int
    hours: Optional[float] = None
    sessions: Optional[int] = None


class MergeResult(BaseModel):
    """Outcome of storing incoming CSV text on top of existing text."""
    merged_raw_text: str
    mode: Literal["merged", "replaced"]
    added_count: int = 0


class Profile(BaseModel):
    """A named source/sink of raw CSV text plus its custom summaries."""
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    csv_data: str = ""
    created_at: str = Field(default_factory=utc_now_iso)
    last_active: str = Field(default_factory=utc_now_iso)
    description: Optional[str] = None
    color: Optional[str] = None
    custom_summaries: List[CustomSummaryDefinition] = Field(default_factory=list)


class ProfileCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    csv_data: str = ""
    description: Optional[str] = None
    color: Optional[str] = None
    custom_summaries: List[CustomSummaryDefinition] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    color: Optional[str] = None


class ImportRequest(BaseModel):
    """Import raw CSV text from a local path or http(s) URL."""
    source: str = Field(..., min_length=1)


class ProfileSummary(BaseModel):
    """Profile listing entry without the raw CSV payload."""
    id: str
    name: str
    created_at: str
    last_active: str
    description: Optional[str] = None
    color: Optional[str] = None
    has_data: bool = False
    custom_summary_count: int = 0


class TransactionOut(BaseModel):
    id: str
    from_: str = Field(..., serialization_alias="from")
    routing_code: str
    reason: str
    amount: Optional[float] = Field(None, description="None when the amount could not be parsed")
    balance_text: str
    date_text: str


class TransactionTableOut(BaseModel):
    total_count: int
    total_amount: Optional[float] = None
    average_amount: Optional[float] = None
    date_range: Dict[str, str]
    summary: Dict[str, Optional[float]]
