"""
FastAPI routes for profile CSV uploads and banking summaries.
Thin HTTP layer over ProfileService.
"""
import math
from typing import Any, Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from core.aggregation import by_amount_range, by_date_range, by_entity, by_type
from core.config import get_settings
from core.exceptions import (
    BankDisplayException,
    CustomSummaryNotFoundError,
    FetchError,
    ProfileNotFoundError,
    StorageError,
    ValidationError,
)
from core.exporters import export_banking_data
from core.logger import setup_logger
from core.parsing import is_valid_csv
from core.schema import (
    CustomSummaryDefinition,
    CustomSummaryResult,
    ImportRequest,
    MergeResult,
    Profile,
    ProfileCreate,
    ProfileSummary,
    ProfileUpdate,
    Transaction,
    TransactionOut,
    TransactionTable,
    TransactionTableOut,
)
from services.profile_service import ProfileService

logger = setup_logger(__name__)
settings = get_settings()

# Initialize FastAPI app
app = FastAPI(
    title="Banking CSV Display",
    description="Parse, merge and summarize bank transaction exports per profile",
    version="1.0.0"
)

STATUS_CODES = {
    ProfileNotFoundError: 404,
    CustomSummaryNotFoundError: 404,
    ValidationError: 400,
    FetchError: 502,
    StorageError: 500,
}

_service: Optional[ProfileService] = None


def get_profile_service() -> ProfileService:
    """Shared service instance (overridden in tests)."""
    global _service
    if _service is None:
        _service = ProfileService()
    return _service


@app.exception_handler(BankDisplayException)
async def handle_domain_error(request: Request, exc: BankDisplayException):
    status_code = STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} {exc.details}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "details": exc.details}
    )


def _finite(value: float) -> Optional[float]:
    """NaN/inf cannot be encoded as JSON; report them as null."""
    return value if math.isfinite(value) else None


def _transaction_out(txn: Transaction) -> Dict[str, Any]:
    return TransactionOut(
        id=txn.id,
        from_=txn.from_,
        routing_code=txn.routing_code,
        reason=txn.reason,
        amount=_finite(txn.amount),
        balance_text=txn.balance_text,
        date_text=txn.date_text,
    ).model_dump(by_alias=True)


def _table_out(table: TransactionTable) -> TransactionTableOut:
    return TransactionTableOut(
        total_count=table.total_count,
        total_amount=_finite(table.total_amount),
        average_amount=_finite(table.average_amount),
        date_range={"start": table.date_range.start, "end": table.date_range.end},
        summary={
            "deposits": _finite(table.summary.deposits),
            "withdrawals": _finite(table.summary.withdrawals),
            "net_change": _finite(table.summary.net_change),
        },
    )


def _profile_summary(profile: Profile) -> ProfileSummary:
    return ProfileSummary(
        id=profile.id,
        name=profile.name,
        created_at=profile.created_at,
        last_active=profile.last_active,
        description=profile.description,
        color=profile.color,
        has_data=bool(profile.csv_data),
        custom_summary_count=len(profile.custom_summaries),
    )


def _result_out(result: CustomSummaryResult) -> Dict[str, Any]:
    data = result.model_dump()
    data["net"] = _finite(result.net)
    return data


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "bankdisplay",
        "version": "1.0.0"
    }


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

@app.get("/profiles", response_model=List[ProfileSummary])
def list_profiles(service: ProfileService = Depends(get_profile_service)):
    return [_profile_summary(p) for p in service.list_profiles()]


@app.post("/profiles", response_model=ProfileSummary, status_code=201)
def create_profile(payload: ProfileCreate, service: ProfileService = Depends(get_profile_service)):
    profile = service.add_profile(
        name=payload.name,
        csv_data=payload.csv_data,
        description=payload.description,
        color=payload.color,
        custom_summaries=payload.custom_summaries,
    )
    return _profile_summary(profile)


@app.get("/profiles/active", response_model=Optional[ProfileSummary])
def active_profile(service: ProfileService = Depends(get_profile_service)):
    profile = service.get_active_profile()
    return _profile_summary(profile) if profile else None


@app.get("/profiles/{profile_id}", response_model=ProfileSummary)
def get_profile(profile_id: str, service: ProfileService = Depends(get_profile_service)):
    return _profile_summary(service.get_profile(profile_id))


@app.patch("/profiles/{profile_id}", response_model=ProfileSummary)
def update_profile(
    profile_id: str,
    payload: ProfileUpdate,
    service: ProfileService = Depends(get_profile_service)
):
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("name", "") is None:
        raise ValidationError("Profile name cannot be null")
    return _profile_summary(service.update_profile(profile_id, updates))


@app.delete("/profiles/{profile_id}", status_code=204)
def delete_profile(profile_id: str, service: ProfileService = Depends(get_profile_service)):
    service.delete_profile(profile_id)
    return Response(status_code=204)


@app.post("/profiles/{profile_id}/activate", response_model=ProfileSummary)
def activate_profile(profile_id: str, service: ProfileService = Depends(get_profile_service)):
    return _profile_summary(service.switch_profile(profile_id))


# ---------------------------------------------------------------------------
# CSV ingestion
# ---------------------------------------------------------------------------

@app.post("/profiles/{profile_id}/upload", response_model=MergeResult)
async def upload_csv(
    profile_id: str,
    file: UploadFile = File(...),
    service: ProfileService = Depends(get_profile_service)
):
    """
    Accept a bank CSV export and merge it into the profile's stored data.

    Args:
        profile_id: Target profile
        file: Uploaded CSV file

    Returns:
        MergeResult with the persisted text, mode and added row count
    """
    logger.info(f"Received upload for profile {profile_id}: {file.filename}")
    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise ValidationError(
            "Uploaded file is too large",
            details={"size": len(content), "limit": settings.max_upload_bytes}
        )
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError("Uploaded file is not UTF-8 text", details={"error": str(e)})
    if not is_valid_csv(text):
        raise ValidationError("Uploaded file does not look like CSV", details={"filename": file.filename})

    return await service.save_or_merge_profile_data(profile_id, text)


@app.post("/profiles/{profile_id}/import", response_model=MergeResult)
async def import_csv(
    profile_id: str,
    payload: ImportRequest,
    service: ProfileService = Depends(get_profile_service)
):
    """Fetch CSV text from a path or URL and merge it into the profile."""
    return await service.import_from_source(profile_id, payload.source)


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

@app.get("/profiles/{profile_id}/summary", response_model=TransactionTableOut)
def profile_summary(profile_id: str, service: ProfileService = Depends(get_profile_service)):
    table = service.parse_profile_csv(profile_id)
    if table is None:
        raise ValidationError("Profile has no CSV data", details={"profile_id": profile_id})
    return _table_out(table)


@app.get("/profiles/{profile_id}/monthly")
def profile_monthly(profile_id: str, service: ProfileService = Depends(get_profile_service)):
    buckets = service.monthly_summary(profile_id)
    return {
        month: {key: _finite(value) if isinstance(value, float) else value
                for key, value in bucket.model_dump().items()}
        for month, bucket in buckets.items()
    }


@app.get("/profiles/{profile_id}/transactions")
def profile_transactions(
    profile_id: str,
    type: Literal["deposits", "withdrawals", "all"] = "all",
    entity: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
    service: ProfileService = Depends(get_profile_service)
):
    """List transactions narrowed by type, entity, date range and amount range."""
    table = service.parse_profile_csv(profile_id)
    transactions = table.transactions if table else []

    transactions = by_type(transactions, type)
    if entity:
        transactions = by_entity(transactions, entity)
    if start or end:
        if not (start and end):
            raise ValidationError("Both start and end are required for a date range")
        transactions = by_date_range(transactions, start, end)
    if min_amount is not None or max_amount is not None:
        transactions = by_amount_range(
            transactions,
            min_amount if min_amount is not None else -math.inf,
            max_amount if max_amount is not None else math.inf,
        )
    return [_transaction_out(t) for t in transactions]


@app.get("/profiles/{profile_id}/export")
def export_profile(profile_id: str, service: ProfileService = Depends(get_profile_service)):
    """Download the profile's transactions in the canonical banking layout."""
    table = service.parse_profile_csv(profile_id)
    if table is None:
        raise ValidationError("Profile has no CSV data", details={"profile_id": profile_id})
    return Response(
        content=export_banking_data(table),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{profile_id}.csv"'}
    )


@app.get("/profiles/{profile_id}/hours")
def profile_hours(
    profile_id: str,
    entity: Optional[str] = None,
    reason: Optional[str] = None,
    service: ProfileService = Depends(get_profile_service)
):
    """Built-in worked-hour totals by sender and/or reason."""
    entity = (entity or "").strip() or None
    reason = (reason or "").strip() or None
    if not entity and not reason:
        raise ValidationError("Provide an entity or a reason")
    return service.legacy_hours(profile_id, entity=entity, reason=reason)


# ---------------------------------------------------------------------------
# Custom summaries
# ---------------------------------------------------------------------------

@app.get("/profiles/{profile_id}/custom-summaries", response_model=List[CustomSummaryDefinition])
def list_custom_summaries(profile_id: str, service: ProfileService = Depends(get_profile_service)):
    return service.get_profile(profile_id).custom_summaries


@app.post("/profiles/{profile_id}/custom-summaries", response_model=CustomSummaryDefinition, status_code=201)
def create_custom_summary(
    profile_id: str,
    definition: CustomSummaryDefinition,
    service: ProfileService = Depends(get_profile_service)
):
    return service.add_custom_summary(profile_id, definition)


@app.get("/profiles/{profile_id}/custom-summaries/results")
def custom_summary_results(profile_id: str, service: ProfileService = Depends(get_profile_service)):
    return [_result_out(r) for r in service.custom_summary_results(profile_id)]


@app.put("/profiles/{profile_id}/custom-summaries/{summary_id}", response_model=CustomSummaryDefinition)
def replace_custom_summary(
    profile_id: str,
    summary_id: str,
    definition: CustomSummaryDefinition,
    service: ProfileService = Depends(get_profile_service)
):
    return service.update_custom_summary(profile_id, summary_id, definition)


@app.delete("/profiles/{profile_id}/custom-summaries/{summary_id}", status_code=204)
def delete_custom_summary(
    profile_id: str,
    summary_id: str,
    service: ProfileService = Depends(get_profile_service)
):
    service.delete_custom_summary(profile_id, summary_id)
    return Response(status_code=204)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
