"""Job store backed by the Supabase ``jobs`` table."""

import logging
from typing import Any, Dict, List, Optional

from dj_visuals.utils.errors import DJVisualsError

logger = logging.getLogger(__name__)

JOBS_TABLE = "jobs"


class DatabaseError(DJVisualsError):
    """Base exception for database operations."""

    pass


class JobStore:
    """
    Keyed record store for job rows.

    Pure CRUD: lifecycle rules live in JobManager, which is the only caller
    allowed to write here.
    """

    def __init__(self, supabase_client: Any) -> None:
        """
        Initialize the JobStore.

        Args:
            supabase_client: Supabase client instance
        """
        self.supabase = supabase_client

    async def insert_job(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a new job row.

        Args:
            row: Full snake_case job row

        Returns:
            The stored row

        Raises:
            DatabaseError: If the insert fails
        """
        try:
            result = self.supabase.table(JOBS_TABLE).insert(row).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to create job: {e}")

        if not result.data:
            raise DatabaseError("Failed to insert job into database")

        return result.data[0]

    async def fetch_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a job row by id.

        Returns:
            The row if found, None otherwise

        Raises:
            DatabaseError: If the query itself fails
        """
        try:
            result = self.supabase.table(JOBS_TABLE).select("*").eq("id", job_id).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to get job {job_id}: {e}")

        if not result.data:
            return None
        return result.data[0]

    async def update_job(
        self,
        job_id: str,
        data: Dict[str, Any],
        status_in: Optional[List[str]] = None,
        updated_at: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Apply a partial update to a job row.

        Args:
            job_id: The job id to update
            data: Columns to overwrite
            status_in: Only update when the stored status is one of these
            updated_at: Only update when the row was last written at this time

        Returns:
            The updated row, or None when no row matched

        Raises:
            DatabaseError: If the update fails
        """
        try:
            query = self.supabase.table(JOBS_TABLE).update(data).eq("id", job_id)
            if status_in is not None:
                query = query.in_("status", status_in)
            if updated_at is not None:
                query = query.eq("updated_at", updated_at)
            result = query.execute()
        except Exception as e:
            raise DatabaseError(f"Failed to update job {job_id}: {e}")

        if not result.data:
            return None
        return result.data[0]

    async def list_jobs_by_status(self, status: str, limit: int = 100) -> List[Dict[str, Any]]:
        """Retrieve job rows filtered by status."""
        try:
            result = (
                self.supabase.table(JOBS_TABLE)
                .select("*")
                .eq("status", status)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to list jobs with status {status}: {e}")

        return result.data or []


def create_job_store() -> JobStore:
    """
    Create a JobStore instance using application settings.

    Returns:
        Configured JobStore instance
    """
    from supabase import create_client

    from dj_visuals.config import get_settings

    settings = get_settings()
    supabase_client = create_client(settings.supabase_url, settings.supabase_key)
    return JobStore(supabase_client=supabase_client)
