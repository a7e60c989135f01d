# cvperfecto/services/resume_repository.py
import datetime
import logging
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from supabase import Client

from cvperfecto.models.resume import ResumeDocument

logger = logging.getLogger(__name__)


class ResumeRepositoryError(Exception):
    pass


def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def _to_column(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Enum):
        return value.value
    return value


class SupabaseResumeRepository:
    """Resume records stored in a Supabase table, keyed by a client-side UUID."""

    def __init__(self, client: Client, table: str = "resumes"):
        self.client = client
        self.table = table

    def _check(self, result: Any, action: str) -> List[Dict[str, Any]]:
        if hasattr(result, "error") and result.error:
            logger.error(f"Supabase {action} error: {result.error}")
            raise ResumeRepositoryError(f"Supabase error: {result.error}")
        return result.data or []

    def create(self, document: ResumeDocument) -> ResumeDocument:
        if document.id is None:
            document = document.model_copy(update={"id": str(uuid.uuid4())})
        row = document.model_dump(mode="json")
        result = self.client.table(self.table).insert(row).execute()
        rows = self._check(result, "insert")
        if not rows:
            logger.warning(f"Supabase insert returned empty data: {result}")
            return document
        return ResumeDocument.model_validate(rows[0])

    def update(self, resume_id: str, **fields: Any) -> Optional[ResumeDocument]:
        values = {key: _to_column(value) for key, value in fields.items()}
        values["updated_at"] = _now()
        result = self.client.table(self.table).update(values).eq("id", resume_id).execute()
        rows = self._check(result, "update")
        return ResumeDocument.model_validate(rows[0]) if rows else None

    def find_by_id(self, resume_id: str, user_id: Optional[str] = None) -> Optional[ResumeDocument]:
        query = self.client.table(self.table).select("*").eq("id", resume_id)
        if user_id is not None:
            query = query.eq("user_id", user_id)
        rows = self._check(query.limit(1).execute(), "select")
        return ResumeDocument.model_validate(rows[0]) if rows else None

    def list_for_user(self, user_id: str) -> List[ResumeDocument]:
        result = (
            self.client.table(self.table)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [ResumeDocument.model_validate(row) for row in self._check(result, "select")]
