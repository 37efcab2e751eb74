"""
Profile service.
Ties the CSV pipeline to the profile store: saving and merging uploads,
recomputing summaries and managing custom summary definitions.
"""
import asyncio
from datetime import timedelta
from typing import Any, Dict, List, Optional

from core.aggregation import (
    entity_hours,
    evaluate_custom_summaries,
    monthly_summary,
    reason_hours,
    summarize_text,
)
from core.config import get_settings
from core.db import Database, get_db
from core.exceptions import CustomSummaryNotFoundError, ProfileNotFoundError, ValidationError
from core.fetch import fetch_text
from core.logger import setup_logger
from core.merging import merge_or_replace
from core.schema import (
    CustomSummaryDefinition,
    CustomSummaryResult,
    MergeResult,
    MonthlyBucket,
    Profile,
    TransactionTable,
    utc_now_iso,
)

logger = setup_logger(__name__)

# Profile fields callers may change through ``update_profile``
UPDATABLE_FIELDS = {"name", "csv_data", "description", "color", "custom_summaries", "last_active"}


class ProfileService:
    """Service for per-profile CSV storage and summaries."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize profile service."""
        self.settings = get_settings()
        self.db = db or get_db()

    @property
    def session_gap(self) -> timedelta:
        return timedelta(minutes=self.settings.session_gap_minutes)

    @property
    def session_padding(self) -> timedelta:
        return timedelta(minutes=self.settings.session_padding_minutes)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def list_profiles(self) -> List[Profile]:
        return self.db.list_profiles()

    def get_profile(self, profile_id: str) -> Profile:
        """
        Load a profile.

        Raises:
            ProfileNotFoundError: If the id is unknown
        """
        profile = self.db.get_profile(profile_id)
        if profile is None:
            raise ProfileNotFoundError(
                f"Profile with id {profile_id} not found",
                details={"profile_id": profile_id}
            )
        return profile

    def add_profile(
        self,
        name: str,
        csv_data: str = "",
        description: Optional[str] = None,
        color: Optional[str] = None,
        custom_summaries: Optional[List[CustomSummaryDefinition]] = None,
    ) -> Profile:
        """Create a profile; the first profile created becomes active."""
        profile = Profile(
            name=name,
            csv_data=csv_data,
            description=description,
            color=color,
            custom_summaries=custom_summaries or [],
        )
        self.db.save_profile(profile)
        if self.db.get_active_id() is None:
            self.db.set_active_id(profile.id)
        logger.info(f"Created profile {profile.id} ({profile.name})")
        return profile

    def update_profile(self, profile_id: str, updates: Dict[str, Any]) -> Profile:
        """
        Apply a partial update to a profile.

        Raises:
            ProfileNotFoundError: If the id is unknown
            ValidationError: If an update names a field that cannot change
        """
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                "Unsupported profile fields",
                details={"fields": sorted(unknown)}
            )
        profile = self.get_profile(profile_id)
        updated = Profile.model_validate({**profile.model_dump(), **updates})
        self.db.save_profile(updated)
        return updated

    def delete_profile(self, profile_id: str) -> None:
        """Delete a profile; if it was active, the first remaining profile becomes active."""
        if not self.db.delete_profile(profile_id):
            raise ProfileNotFoundError(
                f"Profile with id {profile_id} not found",
                details={"profile_id": profile_id}
            )
        if self.db.get_active_id() == profile_id:
            remaining = self.db.list_profiles()
            self.db.set_active_id(remaining[0].id if remaining else None)
        logger.info(f"Deleted profile {profile_id}")

    def switch_profile(self, profile_id: str) -> Profile:
        """Make a profile active, stamping ``last_active`` on the old and new one."""
        profile = self.get_profile(profile_id)
        now = utc_now_iso()
        current_id = self.db.get_active_id()
        if current_id and current_id != profile_id and self.db.get_profile(current_id) is not None:
            self.update_profile(current_id, {"last_active": now})
        profile = self.update_profile(profile.id, {"last_active": now})
        self.db.set_active_id(profile.id)
        return profile

    def get_active_profile(self) -> Optional[Profile]:
        active_id = self.db.get_active_id()
        if active_id:
            profile = self.db.get_profile(active_id)
            if profile is not None:
                return profile
        profiles = self.db.list_profiles()
        return profiles[0] if profiles else None

    # ------------------------------------------------------------------
    # Raw CSV data
    # ------------------------------------------------------------------

    def save_profile_data(self, profile_id: str, csv_data: str) -> None:
        """Replace a profile's CSV text without merging."""
        self.get_profile(profile_id)
        self.db.set(profile_id, csv_data)

    async def save_or_merge_profile_data(self, profile_id: str, incoming_csv: str) -> MergeResult:
        """
        Save incoming CSV text, appending only rows newer than the stored data.

        Args:
            profile_id: Target profile
            incoming_csv: Raw CSV text

        Returns:
            MergeResult describing what was persisted
        """
        loop = asyncio.get_running_loop()
        profile = await loop.run_in_executor(None, self.get_profile, profile_id)

        result = merge_or_replace(profile.csv_data, incoming_csv, self.settings.parse_options())

        updates: Dict[str, Any] = {"last_active": utc_now_iso()}
        if result.merged_raw_text != profile.csv_data:
            updates["csv_data"] = result.merged_raw_text
        await loop.run_in_executor(None, self.update_profile, profile_id, updates)

        logger.info(
            f"Stored CSV for profile {profile_id}: mode={result.mode}, added={result.added_count}"
        )
        return result

    async def import_from_source(self, profile_id: str, source: str) -> MergeResult:
        """Fetch CSV text from a file path or URL and merge it into a profile."""
        loop = asyncio.get_running_loop()
        text = await loop.run_in_executor(None, fetch_text, source)
        return await self.save_or_merge_profile_data(profile_id, text)

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def parse_profile_csv(self, profile_id: str) -> Optional[TransactionTable]:
        """Summarize a profile's stored CSV, or None when it has no data."""
        profile = self.get_profile(profile_id)
        if not profile.csv_data:
            return None
        return summarize_text(profile.csv_data, self.settings.parse_options())

    def _table_or_empty(self, profile_id: str) -> TransactionTable:
        table = self.parse_profile_csv(profile_id)
        return table if table is not None else summarize_text("")

    def monthly_summary(self, profile_id: str) -> Dict[str, MonthlyBucket]:
        return monthly_summary(self._table_or_empty(profile_id).transactions)

    def custom_summary_results(self, profile_id: str) -> List[CustomSummaryResult]:
        profile = self.get_profile(profile_id)
        table = self._table_or_empty(profile_id)
        return evaluate_custom_summaries(
            table.transactions,
            profile.custom_summaries,
            gap=self.session_gap,
            padding=self.session_padding,
        )

    def legacy_hours(
        self,
        profile_id: str,
        entity: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Dict[str, float]:
        """Built-in hour totals by sender and/or by reason; blank filters are skipped."""
        entity = (entity or "").strip()
        reason = (reason or "").strip()
        transactions = self._table_or_empty(profile_id).transactions
        hours: Dict[str, float] = {}
        if entity:
            hours["entity_hours"] = entity_hours(
                transactions, entity, gap=self.session_gap, padding=self.session_padding
            )
        if reason:
            hours["reason_hours"] = reason_hours(
                transactions, reason, gap=self.session_gap, padding=self.session_padding
            )
        return hours

    # ------------------------------------------------------------------
    # Custom summary definitions
    # ------------------------------------------------------------------

    def add_custom_summary(self, profile_id: str, definition: CustomSummaryDefinition) -> CustomSummaryDefinition:
        profile = self.get_profile(profile_id)
        if any(existing.id == definition.id for existing in profile.custom_summaries):
            raise ValidationError(
                f"Custom summary {definition.id} already exists",
                details={"profile_id": profile_id, "summary_id": definition.id}
            )
        self.update_profile(profile_id, {"custom_summaries": profile.custom_summaries + [definition]})
        return definition

    def update_custom_summary(
        self,
        profile_id: str,
        summary_id: str,
        definition: CustomSummaryDefinition,
    ) -> CustomSummaryDefinition:
        """Replace a definition, keeping its id."""
        profile = self.get_profile(profile_id)
        replacement = definition.model_copy(update={"id": summary_id})
        summaries = list(profile.custom_summaries)
        for index, existing in enumerate(summaries):
            if existing.id == summary_id:
                summaries[index] = replacement
                self.update_profile(profile_id, {"custom_summaries": summaries})
                return replacement
        raise CustomSummaryNotFoundError(
            f"Custom summary {summary_id} not found",
            details={"profile_id": profile_id, "summary_id": summary_id}
        )

    def delete_custom_summary(self, profile_id: str, summary_id: str) -> None:
        profile = self.get_profile(profile_id)
        remaining = [s for s in profile.custom_summaries if s.id != summary_id]
        if len(remaining) == len(profile.custom_summaries):
            raise CustomSummaryNotFoundError(
                f"Custom summary {summary_id} not found",
                details={"profile_id": profile_id, "summary_id": summary_id}
            )
        self.update_profile(profile_id, {"custom_summaries": remaining})
