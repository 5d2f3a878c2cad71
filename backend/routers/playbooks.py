# routers/playbooks.py - Playbook mutation endpoints (fields, members, metrics, favorites)
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser
from database import get_db_session
from favorites import CategoryService
from licensing import LicenseChecker, get_license_checker
from permissions import PlaybookPermissions
from playbook_mutations import PlaybookMutations
from playbook_schemas import MetricCreate, MetricUpdate, PlaybookMemberAdd, PlaybookUpdate
from playbook_store import PlaybookStore

router = APIRouter(prefix="/api/v1/playbooks", tags=["Playbooks"])


def get_playbook_mutations(
    db: AsyncSession = Depends(get_db_session),
    license_checker: LicenseChecker = Depends(get_license_checker),
) -> PlaybookMutations:
    return PlaybookMutations(
        store=PlaybookStore(db),
        permissions=PlaybookPermissions(db),
        license_checker=license_checker,
        categories=CategoryService(db),
    )


# ============================================================
# PLAYBOOK
# ============================================================

@router.patch("/{playbook_id}")
async def update_playbook(
    playbook_id: str,
    updates: PlaybookUpdate,
    user: CurrentUser = Depends(get_current_user),
    mutations: PlaybookMutations = Depends(get_playbook_mutations),
):
    """Apply a sparse update; only fields present in the body are touched"""
    return {"id": await mutations.update_playbook(user.id, playbook_id, updates)}


# ============================================================
# MEMBERS
# ============================================================

@router.post("/{playbook_id}/members", status_code=204)
async def add_playbook_member(
    playbook_id: str,
    body: PlaybookMemberAdd,
    user: CurrentUser = Depends(get_current_user),
    mutations: PlaybookMutations = Depends(get_playbook_mutations),
):
    await mutations.add_member(user.id, playbook_id, body.user_id)
    return Response(status_code=204)


@router.delete("/{playbook_id}/members/{member_id}", status_code=204)
async def remove_playbook_member(
    playbook_id: str,
    member_id: str,
    user: CurrentUser = Depends(get_current_user),
    mutations: PlaybookMutations = Depends(get_playbook_mutations),
):
    await mutations.remove_member(user.id, playbook_id, member_id)
    return Response(status_code=204)


# ============================================================
# METRICS
# ============================================================

@router.post("/{playbook_id}/metrics", status_code=201)
async def add_metric(
    playbook_id: str,
    body: MetricCreate,
    user: CurrentUser = Depends(get_current_user),
    mutations: PlaybookMutations = Depends(get_playbook_mutations),
):
    return {"id": await mutations.add_metric(user.id, playbook_id, body)}


@router.patch("/metrics/{metric_id}")
async def update_metric(
    metric_id: str,
    body: MetricUpdate,
    user: CurrentUser = Depends(get_current_user),
    mutations: PlaybookMutations = Depends(get_playbook_mutations),
):
    return {"id": await mutations.update_metric(user.id, metric_id, body)}


@router.delete("/metrics/{metric_id}")
async def delete_metric(
    metric_id: str,
    user: CurrentUser = Depends(get_current_user),
    mutations: PlaybookMutations = Depends(get_playbook_mutations),
):
    return {"id": await mutations.delete_metric(user.id, metric_id)}
