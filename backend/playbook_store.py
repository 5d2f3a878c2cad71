# playbook_store.py - Persistence for playbooks, their members and metric configs
import logging
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from exceptions import NotFoundError, StoreError
from models import Playbook, PlaybookMember, PlaybookMetricConfig, PlaybookRole, now_millis

logger = logging.getLogger("playbooks.store")

# Columns a sparse update may touch. Identity, ownership and lifecycle
# columns are deliberately absent.
PLAYBOOK_PATCHABLE_COLUMNS = frozenset(
    column.key for column in Playbook.__table__.columns
    if column.key not in {"id", "team_id", "create_at", "update_at", "delete_at"}
)
METRIC_PATCHABLE_COLUMNS = frozenset({"title", "description", "target"})


class ChangeSet:
    """Ordered (column, value) pairs staged for one atomic write."""

    def __init__(self, allowed_columns: Iterable[str]):
        self._allowed = frozenset(allowed_columns)
        self._changes: Dict[str, Any] = {}

    def set(self, column: str, value: Any) -> "ChangeSet":
        if column not in self._allowed:
            raise KeyError(f"column {column!r} can not be patched")
        self._changes[column] = value
        return self

    def columns(self) -> List[str]:
        return list(self._changes)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._changes)

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return iter(self._changes.items())

    def __contains__(self, column: str) -> bool:
        return column in self._changes

    def __len__(self) -> int:
        return len(self._changes)

    def __repr__(self) -> str:
        return f"ChangeSet({self.columns()})"


class PlaybookStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _read(self, statement, operation: str):
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as e:
            raise StoreError(f"{operation}: {e.__class__.__name__}") from e

    async def _commit(self, operation: str, statement=None):
        """Execute ``statement`` (if any) and commit, rolling back on failure."""
        try:
            result = await self.db.execute(statement) if statement is not None else None
            await self.db.commit()
            return result
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"{operation} failed: {e}")
            raise StoreError(f"{operation}: {e.__class__.__name__}") from e

    async def _write(self, statement, operation: str):
        return await self._commit(operation, statement)

    # ---------------- playbooks ----------------

    async def get(self, playbook_id: str) -> Playbook:
        result = await self._read(
            select(Playbook).where(Playbook.id == playbook_id),
            f"unable to get playbook {playbook_id}",
        )
        playbook = result.scalar_one_or_none()
        if playbook is None:
            raise NotFoundError(f"playbook {playbook_id} not found")
        return playbook

    async def apply_change_set(self, playbook_id: str, change_set: ChangeSet) -> None:
        """Persist every staged column in a single UPDATE."""
        result = await self._write(
            update(Playbook)
            .where(Playbook.id == playbook_id)
            .values(**change_set.as_dict())
            .execution_options(synchronize_session=False),
            f"unable to update playbook {playbook_id}",
        )
        if result.rowcount == 0:
            raise NotFoundError(f"playbook {playbook_id} not found")

    # ---------------- members ----------------

    async def add_playbook_member(self, playbook_id: str, member_id: str) -> None:
        operation = f"unable to add member {member_id} to playbook {playbook_id}"
        result = await self._read(
            select(PlaybookMember).where(
                PlaybookMember.playbook_id == playbook_id,
                PlaybookMember.member_id == member_id,
            ),
            operation,
        )
        if result.scalar_one_or_none() is not None:
            return
        self.db.add(PlaybookMember(playbook_id=playbook_id, member_id=member_id, role=PlaybookRole.MEMBER))
        await self._commit(operation)

    async def remove_playbook_member(self, playbook_id: str, member_id: str) -> None:
        await self._write(
            delete(PlaybookMember).where(
                PlaybookMember.playbook_id == playbook_id,
                PlaybookMember.member_id == member_id,
            ),
            f"unable to remove member {member_id} from playbook {playbook_id}",
        )

    # ---------------- metrics ----------------

    async def get_metric(self, metric_id: str) -> PlaybookMetricConfig:
        result = await self._read(
            select(PlaybookMetricConfig).where(
                PlaybookMetricConfig.id == metric_id,
                PlaybookMetricConfig.delete_at == 0,
            ),
            f"unable to get metric {metric_id}",
        )
        metric = result.scalar_one_or_none()
        if metric is None:
            raise NotFoundError(f"metric {metric_id} not found")
        return metric

    async def add_metric(self, playbook_id: str, metric: PlaybookMetricConfig) -> str:
        operation = f"unable to add metric to playbook {playbook_id}"
        result = await self._read(
            select(func.count(PlaybookMetricConfig.id)).where(
                PlaybookMetricConfig.playbook_id == playbook_id,
                PlaybookMetricConfig.delete_at == 0,
            ),
            operation,
        )
        metric.playbook_id = playbook_id
        metric.ordering = result.scalar() or 0
        self.db.add(metric)
        await self._commit(operation)
        return metric.id

    async def update_metric(self, metric_id: str, change_set: ChangeSet) -> None:
        await self._write(
            update(PlaybookMetricConfig)
            .where(PlaybookMetricConfig.id == metric_id)
            .values(**change_set.as_dict())
            .execution_options(synchronize_session=False),
            f"unable to update metric {metric_id}",
        )

    async def delete_metric(self, metric_id: str) -> None:
        await self._write(
            update(PlaybookMetricConfig)
            .where(PlaybookMetricConfig.id == metric_id)
            .values(delete_at=now_millis())
            .execution_options(synchronize_session=False),
            f"unable to delete metric {metric_id}",
        )
