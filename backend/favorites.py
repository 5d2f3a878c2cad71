# favorites.py - Favorite relations as items of each user's per-team "Favorite" category
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from exceptions import StoreError
from models import FAVORITE_CATEGORY_NAME, Category, CategoryItem, CategoryItemType

logger = logging.getLogger("playbooks.favorites")


@dataclass(frozen=True)
class FavoriteItem:
    item_id: str
    type: CategoryItemType = CategoryItemType.PLAYBOOK


class CategoryService:
    """Add, remove and query favorites keyed by (item, type, team, user).

    Both directions are idempotent: adding an existing favorite and removing
    a missing one are successful no-ops.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _favorite_category(self, team_id: str, user_id: str) -> Optional[Category]:
        result = await self.db.execute(
            select(Category).where(
                Category.team_id == team_id,
                Category.user_id == user_id,
                Category.name == FAVORITE_CATEGORY_NAME,
                Category.delete_at == 0,
            )
        )
        return result.scalars().first()

    async def _item_exists(self, category_id: str, item: FavoriteItem) -> bool:
        result = await self.db.execute(
            select(CategoryItem).where(
                CategoryItem.category_id == category_id,
                CategoryItem.item_id == item.item_id,
                CategoryItem.type == item.type,
            )
        )
        return result.scalar_one_or_none() is not None

    async def is_item_favorite(self, item: FavoriteItem, team_id: str, user_id: str) -> bool:
        try:
            category = await self._favorite_category(team_id, user_id)
            if category is None:
                return False
            return await self._item_exists(category.id, item)
        except SQLAlchemyError as e:
            raise StoreError(f"can't determine if item is favorite or not: {e.__class__.__name__}") from e

    async def add_favorite(self, item: FavoriteItem, team_id: str, user_id: str) -> None:
        try:
            category = await self._favorite_category(team_id, user_id)
            if category is None:
                category = Category(name=FAVORITE_CATEGORY_NAME, team_id=team_id, user_id=user_id)
                self.db.add(category)
                await self.db.flush()
            elif await self._item_exists(category.id, item):
                return
            self.db.add(CategoryItem(category_id=category.id, item_id=item.item_id, type=item.type))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to favorite {item.type.value} {item.item_id} for {user_id}: {e}")
            raise StoreError(f"failed to add favorite: {e.__class__.__name__}") from e

    async def delete_favorite(self, item: FavoriteItem, team_id: str, user_id: str) -> None:
        try:
            category = await self._favorite_category(team_id, user_id)
            if category is None:
                return
            await self.db.execute(
                delete(CategoryItem).where(
                    CategoryItem.category_id == category.id,
                    CategoryItem.item_id == item.item_id,
                    CategoryItem.type == item.type,
                )
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to unfavorite {item.type.value} {item.item_id} for {user_id}: {e}")
            raise StoreError(f"failed to delete favorite: {e.__class__.__name__}") from e
