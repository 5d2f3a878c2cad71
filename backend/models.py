# models.py - Database models for the playbooks service
# - String UUID primary keys
# - Millisecond epoch timestamps for playbook state (0 = unset)
# - List-typed playbook settings stored as concatenated strings
# - Favorites modelled as items of a per-user, per-team category

import time
import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, DateTime, Boolean, BigInteger, Integer,
    Enum as SQLEnum, ForeignKey, Text, Index, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


def now_millis() -> int:
    return int(time.time() * 1000)


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, PyEnum):
    SYSTEM_ADMIN = "system_admin"
    USER = "user"


class PlaybookRole(str, PyEnum):
    ADMIN = "playbook_admin"
    MEMBER = "playbook_member"


class MetricType(str, PyEnum):
    DURATION = "metric_duration"
    CURRENCY = "metric_currency"
    INTEGER = "metric_integer"


class ChannelType(str, PyEnum):
    OPEN = "O"
    PRIVATE = "P"


class CategoryItemType(str, PyEnum):
    PLAYBOOK = "playbook"
    RUN = "run"


FAVORITE_CATEGORY_NAME = "Favorite"


# ============================================================
# TEAMS & USERS
# ============================================================

class Team(Base):
    __tablename__ = "teams"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    members = relationship("TeamMember", back_populates="team")


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_uuid)
    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=False, default="")
    role = Column(SQLEnum(UserRole), default=UserRole.USER, nullable=False, index=True)
    is_active = Column(Boolean, default=True, index=True)
    is_bot = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class TeamMember(Base):
    __tablename__ = "team_members"

    team_id = Column(String, ForeignKey("teams.id"), primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), primary_key=True, index=True)
    is_team_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    team = relationship("Team", back_populates="members")


# ============================================================
# CHANNELS & GROUPS (broadcast targets and invitations)
# ============================================================

class Channel(Base):
    __tablename__ = "channels"

    id = Column(String, primary_key=True, default=new_uuid)
    team_id = Column(String, ForeignKey("teams.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    channel_type = Column(SQLEnum(ChannelType), default=ChannelType.OPEN, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("team_id", "name", name="uq_channel_team_name"),
    )


class ChannelMember(Base):
    __tablename__ = "channel_members"

    channel_id = Column(String, ForeignKey("channels.id"), primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), primary_key=True, index=True)


class UserGroup(Base):
    __tablename__ = "user_groups"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String, unique=True, nullable=False)
    display_name = Column(String, nullable=False, default="")
    allow_reference = Column(Boolean, default=False, nullable=False)
    delete_at = Column(BigInteger, default=0, nullable=False)


# ============================================================
# PLAYBOOKS
# ============================================================

class Playbook(Base):
    __tablename__ = "playbooks"

    id = Column(String, primary_key=True, default=new_uuid)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    team_id = Column(String, ForeignKey("teams.id"), nullable=False, index=True)
    public = Column(Boolean, default=True, nullable=False)
    create_public_playbook_run = Column(Boolean, default=False, nullable=False)
    create_at = Column(BigInteger, default=now_millis, nullable=False)
    update_at = Column(BigInteger, default=now_millis, onupdate=now_millis, nullable=False)
    delete_at = Column(BigInteger, default=0, nullable=False, index=True)  # archival, 0 = active

    checklists_json = Column(Text, nullable=False, default="[]")

    reminder_message_template = Column(Text, nullable=False, default="")
    reminder_timer_default_seconds = Column(BigInteger, nullable=False, default=0)
    status_update_enabled = Column(Boolean, default=True, nullable=False)

    concatenated_invited_user_ids = Column(Text, nullable=False, default="")
    concatenated_invited_group_ids = Column(Text, nullable=False, default="")
    invite_users_enabled = Column(Boolean, default=False, nullable=False)

    default_owner_id = Column(String, nullable=False, default="")
    default_owner_enabled = Column(Boolean, default=False, nullable=False)

    concatenated_broadcast_channel_ids = Column(Text, nullable=False, default="")
    broadcast_enabled = Column(Boolean, default=False, nullable=False)

    concatenated_webhook_on_creation_urls = Column(Text, nullable=False, default="")
    webhook_on_creation_enabled = Column(Boolean, default=False, nullable=False)

    message_on_join = Column(Text, nullable=False, default="")
    message_on_join_enabled = Column(Boolean, default=False, nullable=False)

    retrospective_reminder_interval_seconds = Column(BigInteger, nullable=False, default=0)
    retrospective_template = Column(Text, nullable=False, default="")
    retrospective_enabled = Column(Boolean, default=True, nullable=False)

    concatenated_webhook_on_status_update_urls = Column(Text, nullable=False, default="")
    webhook_on_status_update_enabled = Column(Boolean, default=False, nullable=False)

    concatenated_signal_any_keywords = Column(Text, nullable=False, default="")
    signal_any_keywords_enabled = Column(Boolean, default=False, nullable=False)

    categorize_channel_enabled = Column(Boolean, default=False, nullable=False)
    category_name = Column(String, nullable=False, default="")

    run_summary_template_enabled = Column(Boolean, default=True, nullable=False)
    run_summary_template = Column(Text, nullable=False, default="")
    channel_name_template = Column(String, nullable=False, default="")

    members = relationship("PlaybookMember", back_populates="playbook", cascade="all, delete-orphan")
    metrics = relationship(
        "PlaybookMetricConfig",
        back_populates="playbook",
        order_by="PlaybookMetricConfig.ordering",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_playbook_team_archived", "team_id", "delete_at"),
    )


class PlaybookMember(Base):
    __tablename__ = "playbook_members"

    playbook_id = Column(String, ForeignKey("playbooks.id"), primary_key=True)
    member_id = Column(String, ForeignKey("users.id"), primary_key=True, index=True)
    role = Column(SQLEnum(PlaybookRole), default=PlaybookRole.MEMBER, nullable=False)

    playbook = relationship("Playbook", back_populates="members")


class PlaybookMetricConfig(Base):
    __tablename__ = "playbook_metric_configs"

    id = Column(String, primary_key=True, default=new_uuid)
    playbook_id = Column(String, ForeignKey("playbooks.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    type = Column(SQLEnum(MetricType), nullable=False)
    target = Column(BigInteger, nullable=True)  # NULL = no target set
    ordering = Column(Integer, nullable=False, default=0)
    delete_at = Column(BigInteger, default=0, nullable=False)

    playbook = relationship("Playbook", back_populates="metrics")


# ============================================================
# FAVORITES
# ============================================================

class Category(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String, nullable=False)
    team_id = Column(String, ForeignKey("teams.id"), nullable=False)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    collapsed = Column(Boolean, default=False, nullable=False)
    create_at = Column(BigInteger, default=now_millis, nullable=False)
    update_at = Column(BigInteger, default=now_millis, onupdate=now_millis, nullable=False)
    delete_at = Column(BigInteger, default=0, nullable=False)

    items = relationship("CategoryItem", back_populates="category", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_category_team_user", "team_id", "user_id"),
    )


class CategoryItem(Base):
    __tablename__ = "category_items"

    category_id = Column(String, ForeignKey("categories.id"), primary_key=True)
    item_id = Column(String, primary_key=True)
    type = Column(SQLEnum(CategoryItemType), primary_key=True)

    category = relationship("Category", back_populates="items")
