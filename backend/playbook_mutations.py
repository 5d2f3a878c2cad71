# playbook_mutations.py - Permission-gated partial updates of playbooks and their sub-resources
"""
Playbook mutations follow one discipline:

1. Load the playbook (NotFoundError) and refuse archived ones (ArchivedError).
2. Check the actor's capability on the playbook.
3. Walk the supplied fields in a fixed order, validating, authorizing and
   encoding each into a ChangeSet. The first failure aborts the whole
   mutation before anything is written.
4. Persist the ChangeSet with a single store call, or skip the write
   entirely when nothing was staged.

Follow-up effects (the favorite toggle) run after the write and are not
undone when they fail.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import field_codec
from exceptions import (
    ArchivedError, LicenseRestrictedError, PermissionDeniedError, PlaybookError,
)
from favorites import FavoriteItem
from field_validators import (
    process_signal_any_keywords, to_stored_integer, validate_category_name,
    validate_metric_target, validate_webhook_urls,
)
from models import CategoryItemType, Playbook, PlaybookMetricConfig, new_uuid
from permissions import VIEW_TEAM
from playbook_schemas import MetricCreate, MetricUpdate, PlaybookUpdate, UpdateChecklist
from playbook_store import METRIC_PATCHABLE_COLUMNS, PLAYBOOK_PATCHABLE_COLUMNS, ChangeSet
from telemetry import get_tracer, record_error

logger = logging.getLogger("playbooks.mutations")
tracer = get_tracer("playbooks.mutations")


@dataclass
class PatchContext:
    actor_id: str
    playbook: Playbook
    permissions: Any
    license_checker: Any


Stager = Callable[[PatchContext, Any], Awaitable[Any]]


@dataclass(frozen=True)
class PatchField:
    """One updatable field: request name, stored column, and an optional
    stager that authorizes, validates and encodes the supplied value."""
    name: str
    column: str
    stage: Optional[Stager] = None


# ============================================================
# STAGERS
# ============================================================

async def _stage_public(ctx: PatchContext, public: bool) -> bool:
    target = "public" if public else "private"
    try:
        if public:
            await ctx.permissions.playbook_make_public(ctx.actor_id, ctx.playbook)
        else:
            await ctx.permissions.playbook_make_private(ctx.actor_id, ctx.playbook)
    except PermissionDeniedError as e:
        raise PermissionDeniedError(
            f"attempted to make playbook {target} without permissions: {e.message}",
            capability=e.capability,
        ) from e
    if not ctx.license_checker.playbook_allowed(public):
        raise LicenseRestrictedError(f"a {target} playbook is not valid with the current license")
    return public


def _seconds_stager(field: str) -> Stager:
    async def _stage(ctx: PatchContext, seconds: float) -> int:
        return to_stored_integer(seconds, field)
    return _stage


async def _stage_invited_users(ctx: PatchContext, user_ids: List[str]) -> str:
    filtered = await ctx.permissions.filter_invited_user_ids(user_ids, ctx.playbook.team_id)
    return field_codec.encode(filtered, field="invited_user_ids")


async def _stage_invited_groups(ctx: PatchContext, group_ids: List[str]) -> str:
    filtered = await ctx.permissions.filter_invited_group_ids(group_ids)
    return field_codec.encode(filtered, field="invited_group_ids")


async def _stage_default_owner(ctx: PatchContext, owner_id: str) -> str:
    if not await ctx.permissions.has_permission_to_team(owner_id, ctx.playbook.team_id):
        raise PermissionDeniedError(
            f"default owner {owner_id} can't view team {ctx.playbook.team_id}",
            capability=VIEW_TEAM,
        )
    return owner_id


async def _stage_broadcast_channels(ctx: PatchContext, channel_ids: List[str]) -> str:
    previous = field_codec.decode(ctx.playbook.concatenated_broadcast_channel_ids)
    await ctx.permissions.no_added_broadcast_channels_without_permission(
        ctx.actor_id, channel_ids, previous,
    )
    return field_codec.encode(channel_ids, field="broadcast_channel_ids")


def _webhook_stager(field: str) -> Stager:
    async def _stage(ctx: PatchContext, urls: List[str]) -> str:
        validate_webhook_urls(urls, field=field)
        return field_codec.encode(urls, field=field)
    return _stage


async def _stage_signal_keywords(ctx: PatchContext, keywords: List[str]) -> str:
    return field_codec.encode(process_signal_any_keywords(keywords), field="signal_any_keywords")


async def _stage_category_name(ctx: PatchContext, name: str) -> str:
    validate_category_name(name)
    return name


async def _stage_checklists(ctx: PatchContext, checklists: List[UpdateChecklist]) -> str:
    return json.dumps([checklist.to_stored() for checklist in checklists])


# Processing order matters: fields are authorized one at a time and the
# first failure aborts, so later fields never reach their checks.
PLAYBOOK_FIELDS = (
    PatchField("title", "title"),
    PatchField("description", "description"),
    PatchField("public", "public", _stage_public),
    PatchField("create_public_playbook_run", "create_public_playbook_run"),
    PatchField("reminder_message_template", "reminder_message_template"),
    PatchField(
        "reminder_timer_default_seconds", "reminder_timer_default_seconds",
        _seconds_stager("reminder_timer_default_seconds"),
    ),
    PatchField("status_update_enabled", "status_update_enabled"),
    PatchField("invited_user_ids", "concatenated_invited_user_ids", _stage_invited_users),
    PatchField("invited_group_ids", "concatenated_invited_group_ids", _stage_invited_groups),
    PatchField("invite_users_enabled", "invite_users_enabled"),
    PatchField("default_owner_id", "default_owner_id", _stage_default_owner),
    PatchField("default_owner_enabled", "default_owner_enabled"),
    PatchField("broadcast_channel_ids", "concatenated_broadcast_channel_ids", _stage_broadcast_channels),
    PatchField("broadcast_enabled", "broadcast_enabled"),
    PatchField(
        "webhook_on_creation_urls", "concatenated_webhook_on_creation_urls",
        _webhook_stager("webhook_on_creation_urls"),
    ),
    PatchField("webhook_on_creation_enabled", "webhook_on_creation_enabled"),
    PatchField("message_on_join", "message_on_join"),
    PatchField("message_on_join_enabled", "message_on_join_enabled"),
    PatchField(
        "retrospective_reminder_interval_seconds", "retrospective_reminder_interval_seconds",
        _seconds_stager("retrospective_reminder_interval_seconds"),
    ),
    PatchField("retrospective_template", "retrospective_template"),
    PatchField("retrospective_enabled", "retrospective_enabled"),
    PatchField(
        "webhook_on_status_update_urls", "concatenated_webhook_on_status_update_urls",
        _webhook_stager("webhook_on_status_update_urls"),
    ),
    PatchField("webhook_on_status_update_enabled", "webhook_on_status_update_enabled"),
    PatchField("signal_any_keywords", "concatenated_signal_any_keywords", _stage_signal_keywords),
    PatchField("signal_any_keywords_enabled", "signal_any_keywords_enabled"),
    PatchField("categorize_channel_enabled", "categorize_channel_enabled"),
    PatchField("category_name", "category_name", _stage_category_name),
    PatchField("run_summary_template_enabled", "run_summary_template_enabled"),
    PatchField("run_summary_template", "run_summary_template"),
    PatchField("channel_name_template", "channel_name_template"),
    PatchField("checklists", "checklists_json", _stage_checklists),
)


# ============================================================
# MUTATIONS
# ============================================================

class PlaybookMutations:
    """Write path for playbooks, their members, metrics and favorite state.

    Collaborators:
        store: PlaybookStore (get / apply_change_set / members / metrics)
        permissions: PlaybookPermissions
        license_checker: LicenseChecker
        categories: CategoryService (favorites)
    """

    def __init__(self, store, permissions, license_checker, categories):
        self.store = store
        self.permissions = permissions
        self.license_checker = license_checker
        self.categories = categories

    async def _get_mutable_playbook(self, playbook_id: str) -> Playbook:
        playbook = await self.store.get(playbook_id)
        if playbook.delete_at != 0:
            raise ArchivedError(f"archived playbooks can not be modified (playbook {playbook_id})")
        return playbook

    async def build_change_set(
        self, actor_id: str, playbook: Playbook, provided: Dict[str, Any],
    ) -> ChangeSet:
        ctx = PatchContext(actor_id, playbook, self.permissions, self.license_checker)
        change_set = ChangeSet(PLAYBOOK_PATCHABLE_COLUMNS)
        for field in PLAYBOOK_FIELDS:
            if field.name not in provided:
                continue
            value = provided[field.name]
            if field.stage is not None:
                value = await field.stage(ctx, value)
            change_set.set(field.column, value)
        return change_set

    async def update_playbook(self, actor_id: str, playbook_id: str, updates: PlaybookUpdate) -> str:
        with tracer.start_as_current_span("playbook.update", record_exception=False) as span:
            span.set_attribute("playbook.id", playbook_id)
            try:
                await self._update_playbook(actor_id, playbook_id, updates, span)
            except PlaybookError as e:
                record_error(span, e)
                raise
        return playbook_id

    async def _update_playbook(self, actor_id, playbook_id, updates, span) -> None:
        playbook = await self._get_mutable_playbook(playbook_id)
        await self.permissions.playbook_manage_properties(actor_id, playbook)

        provided = updates.provided()
        span.set_attribute("playbook.fields", sorted(provided))
        try:
            change_set = await self.build_change_set(actor_id, playbook, provided)
        except PlaybookError as e:
            logger.info(f"Rejected update of playbook {playbook_id} by {actor_id}: {e.message}")
            raise

        if change_set:
            await self.store.apply_change_set(playbook_id, change_set)
            logger.info(
                f"Playbook {playbook_id} updated by {actor_id}: {', '.join(change_set.columns())}"
            )
        span.set_attribute("playbook.columns_written", len(change_set))

        if "is_favorite" in provided:
            await self.set_favorite(playbook, actor_id, provided["is_favorite"])

    async def set_favorite(self, playbook: Playbook, actor_id: str, favorite: bool) -> None:
        item = FavoriteItem(playbook.id, CategoryItemType.PLAYBOOK)
        if favorite:
            await self.categories.add_favorite(item, playbook.team_id, actor_id)
        else:
            await self.categories.delete_favorite(item, playbook.team_id, actor_id)

    # ---------------- members ----------------

    async def _check_manage_members(self, actor_id: str, playbook: Playbook) -> None:
        try:
            await self.permissions.playbook_manage_members(actor_id, playbook)
        except PermissionDeniedError as e:
            raise PermissionDeniedError(
                f"attempted to modify members without permissions: {e.message}",
                capability=e.capability,
            ) from e

    async def add_member(self, actor_id: str, playbook_id: str, user_id: str) -> None:
        playbook = await self._get_mutable_playbook(playbook_id)
        await self._check_manage_members(actor_id, playbook)
        await self.store.add_playbook_member(playbook_id, user_id)
        logger.info(f"User {user_id} added to playbook {playbook_id} by {actor_id}")

    async def remove_member(self, actor_id: str, playbook_id: str, user_id: str) -> None:
        playbook = await self._get_mutable_playbook(playbook_id)
        await self._check_manage_members(actor_id, playbook)
        await self.store.remove_playbook_member(playbook_id, user_id)
        logger.info(f"User {user_id} removed from playbook {playbook_id} by {actor_id}")

    # ---------------- metrics ----------------

    async def add_metric(self, actor_id: str, playbook_id: str, metric: MetricCreate) -> str:
        playbook = await self._get_mutable_playbook(playbook_id)
        await self.permissions.playbook_manage_properties(actor_id, playbook)

        target = None
        if metric.target is not None:
            target = validate_metric_target(metric.target)

        config = PlaybookMetricConfig(
            id=new_uuid(),
            title=metric.title,
            description=metric.description,
            type=metric.type,
            target=target,
            delete_at=0,
        )
        await self.store.add_metric(playbook_id, config)
        logger.info(f"Metric {config.id} added to playbook {playbook_id} by {actor_id}")
        return playbook_id

    async def update_metric(self, actor_id: str, metric_id: str, updates: MetricUpdate) -> str:
        metric = await self.store.get_metric(metric_id)
        playbook = await self._get_mutable_playbook(metric.playbook_id)
        await self.permissions.playbook_manage_properties(actor_id, playbook)

        provided = updates.provided()
        change_set = ChangeSet(METRIC_PATCHABLE_COLUMNS)
        for name in ("title", "description"):
            if name in provided:
                change_set.set(name, provided[name])
        if "target" in provided:
            change_set.set("target", validate_metric_target(provided["target"]))

        if change_set:
            await self.store.update_metric(metric_id, change_set)
            logger.info(f"Metric {metric_id} updated by {actor_id}: {', '.join(change_set.columns())}")
        return metric_id

    async def delete_metric(self, actor_id: str, metric_id: str) -> str:
        metric = await self.store.get_metric(metric_id)
        # Deleting is allowed on archived playbooks, unlike add/update.
        playbook = await self.store.get(metric.playbook_id)
        await self.permissions.playbook_manage_properties(actor_id, playbook)
        await self.store.delete_metric(metric_id)
        logger.info(f"Metric {metric_id} deleted from playbook {playbook.id} by {actor_id}")
        return metric_id
