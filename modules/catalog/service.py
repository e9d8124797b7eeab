"""
Catalog Module - Service Layer
================================
Category tree, subtree product counts, path-based category creation,
category admin operations and storefront product listing.

Descendants are resolved from one fetch of the active category table per
operation; subcategories of an inactive category are not descended into.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from common.exceptions import (
    NotFoundError, ValidationError, CategoryPathError,
    CategoryMoveError, ProductCountUnavailableError,
)
from common.helpers import same_name, split_path
from config.settings import CATEGORY_PATH_SEPARATOR, CATEGORY_PRODUCTS_LIMIT, PRODUCT_TYPES
from modules.catalog.models import Category, Product
from modules.catalog.tree import (
    build_category_tree, children_map, collect_descendant_ids,
    subtree_counts, attach_counts,
)

logger = logging.getLogger("stroymarket.catalog")


def apply_product_type(query, product_type: Optional[str]):
    """Filter by product_type unless it is None/'all'."""
    if not product_type or product_type == "all":
        return query
    if product_type not in PRODUCT_TYPES:
        raise ValidationError(f"Noma'lum mahsulot turi: {product_type}")
    return query.filter(Product.product_type == product_type)


def compose_path(parent: Optional[Category], category_id: int) -> str:
    if parent is None:
        return str(category_id)
    prefix = parent.path or str(parent.id)
    return f"{prefix}/{category_id}"


# ==========================================
# Category Service
# ==========================================

class CategoryService:

    def list_active(self, db: Session) -> List[Category]:
        return db.query(Category).filter(
            Category.is_active == True,
        ).order_by(Category.sort_order, Category.id).all()

    def get_by_id(self, db: Session, category_id: int) -> Optional[Category]:
        return db.query(Category).filter(Category.id == category_id).first()

    def get_or_404(self, db: Session, category_id: int) -> Category:
        category = self.get_by_id(db, category_id)
        if not category:
            raise NotFoundError("Kategoriya topilmadi.")
        return category

    def get_tree(self, db: Session) -> List[dict]:
        """Nested tree of active categories. A fetch error propagates (no partial tree)."""
        return build_category_tree(self.list_active(db))

    def _active_edges(self, db: Session) -> List[Tuple[int, Optional[int]]]:
        return db.query(Category.id, Category.parent_id).filter(
            Category.is_active == True,
        ).order_by(Category.sort_order, Category.id).all()

    # ------------------------------------------
    # Product counts
    # ------------------------------------------

    def descendant_ids(self, db: Session, category_id: int) -> List[int]:
        """Own id + all active descendant ids (one query)."""
        return collect_descendant_ids(self._active_edges(db), category_id)

    def count_products(self, db: Session, category_id: int, product_type: Optional[str] = None) -> int:
        """
        Available products in the category and all its active descendants.
        Raises ProductCountUnavailableError on database failure, never returns 0 for it.
        """
        try:
            ids = self.descendant_ids(db, category_id)
            query = db.query(func.count(Product.id)).filter(
                Product.category_id.in_(ids),
                Product.is_available == True,
            )
            query = apply_product_type(query, product_type)
            return query.scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Product count failed for category {category_id}: {e}")
            raise ProductCountUnavailableError() from e

    def count_products_bulk(
        self,
        db: Session,
        category_ids: Iterable[int],
        product_type: Optional[str] = None,
    ) -> Dict[int, int]:
        """{category_id: subtree count} using one category fetch + one grouped count."""
        category_ids = list(category_ids)
        if not category_ids:
            return {}
        try:
            edges = self._active_edges(db)
            children = children_map(edges)
            wanted = set()
            for cat_id in category_ids:
                wanted.update(collect_descendant_ids(None, cat_id, children=children))

            query = db.query(Product.category_id, func.count(Product.id)).filter(
                Product.category_id.in_(wanted),
                Product.is_available == True,
            )
            query = apply_product_type(query, product_type)
            direct = {cat_id: cnt for cat_id, cnt in query.group_by(Product.category_id).all()}
        except SQLAlchemyError as e:
            logger.error(f"Bulk product count failed: {e}")
            raise ProductCountUnavailableError() from e

        return subtree_counts(edges, direct, category_ids)

    def list_tree_with_counts(self, db: Session, product_type: Optional[str] = None) -> List[dict]:
        rows = self.list_active(db)
        tree = build_category_tree(rows)
        counts = self.count_products_bulk(db, [r.id for r in rows], product_type)
        return attach_counts(tree, counts)

    # ------------------------------------------
    # Breadcrumb
    # ------------------------------------------

    def get_breadcrumb(self, db: Session, category: Category) -> List[Category]:
        """Ancestors from root to `category` (inclusive), read from the materialized path."""
        ancestor_ids = category.ancestor_ids
        if not ancestor_ids:
            return self._breadcrumb_by_parents(db, category)

        found = {
            c.id: c for c in db.query(Category).filter(Category.id.in_(ancestor_ids)).all()
        }
        return [found[i] for i in ancestor_ids if i in found] + [category]

    def _breadcrumb_by_parents(self, db: Session, category: Category) -> List[Category]:
        trail = [category]
        seen = {category.id}
        current = category
        while current.parent_id and current.parent_id not in seen:
            parent = self.get_by_id(db, current.parent_id)
            if not parent:
                break
            trail.insert(0, parent)
            seen.add(parent.id)
            current = parent
        return trail

    # ------------------------------------------
    # Create with reuse ("Elektr/Konditsionerlar")
    # ------------------------------------------

    def create_from_path(
        self,
        db: Session,
        path: str,
        parent_id: Optional[int] = None,
        name_ru: Optional[str] = None,
    ) -> Tuple[Category, List[int]]:
        """
        Walk a "/"-delimited path, reusing existing active categories matched by
        case-insensitive name under the same parent and creating the rest.
        Only the last segment gets `name_ru`; created intermediates reuse their name.

        Returns: (final_category, created_ids)
        All inserts share the request transaction: on failure the session is
        rolled back and CategoryPathError is raised, leaving nothing behind.
        """
        segments = split_path(path, CATEGORY_PATH_SEPARATOR)
        if not segments:
            raise ValidationError("Kategoriya nomi bo'sh.")

        current = self.get_or_404(db, parent_id) if parent_id is not None else None
        if current is not None and not current.is_active:
            raise NotFoundError("Kategoriya topilmadi.")
        name_ru = (name_ru or "").strip()

        try:
            known = self.list_active(db)
            created: List[int] = []

            for index, name in enumerate(segments):
                current_parent_id = current.id if current else None
                existing = next(
                    (c for c in known if c.parent_id == current_parent_id and same_name(c.name_uz, name)),
                    None,
                )
                if existing:
                    current = existing
                    continue

                is_last = index == len(segments) - 1
                secondary = name_ru if (is_last and name_ru) else name
                current = self._insert(db, name, secondary, current)
                known.append(current)
                created.append(current.id)

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Category path {path!r} failed, rolled back: {e}")
            raise CategoryPathError(path) from e

        if created:
            logger.info(f"Category path {path!r}: created {created}, final={current.id}")
        return current, created

    def _insert(self, db: Session, name_uz: str, name_ru: str, parent: Optional[Category]) -> Category:
        category = Category(
            name_uz=name_uz,
            name_ru=name_ru,
            parent_id=parent.id if parent else None,
            level=(parent.level + 1) if parent else 0,
            sort_order=0,
            is_active=True,
        )
        db.add(category)
        db.flush()
        category.path = compose_path(parent, category.id)
        db.flush()
        return category

    # ------------------------------------------
    # Update / soft delete
    # ------------------------------------------

    def update(self, db: Session, category_id: int, data: dict) -> Category:
        cat = self.get_or_404(db, category_id)

        name_uz = (data.get("name_uz") or "").strip()
        if not name_uz:
            raise ValidationError("Kategoriya nomi bo'sh.")
        cat.name_uz = name_uz
        cat.name_ru = (data.get("name_ru") or "").strip() or name_uz

        if data.get("sort_order") is not None:
            cat.sort_order = int(data["sort_order"])
        if "icon" in data:
            cat.icon = data["icon"] or None

        if "parent_id" in data and data["parent_id"] != cat.parent_id:
            self._move(db, cat, data["parent_id"])

        db.flush()
        return cat

    def _move(self, db: Session, cat: Category, new_parent_id: Optional[int]):
        """Re-parent `cat` and rewrite level/path of its whole subtree."""
        new_parent = self.get_or_404(db, new_parent_id) if new_parent_id is not None else None
        if new_parent is not None:
            if not new_parent.is_active:
                raise NotFoundError("Kategoriya topilmadi.")
            lineage = [c.id for c in self._breadcrumb_by_parents(db, new_parent)]
            if cat.id in lineage:
                logger.warning(f"Rejected move of category {cat.id} under its descendant {new_parent.id}")
                raise CategoryMoveError()

        old_path = cat.path or str(cat.id)
        cat.parent_id = new_parent.id if new_parent else None
        cat.level = (new_parent.level + 1) if new_parent else 0
        cat.path = compose_path(new_parent, cat.id)

        descendants = db.query(Category).filter(Category.path.like(f"{old_path}/%")).all()
        for child in descendants:
            child.path = cat.path + child.path[len(old_path):]
            child.level = child.path.count("/")

    def deactivate(self, db: Session, category_id: int) -> Category:
        """Soft-remove: hidden from trees and counts, never hard-deleted."""
        cat = self.get_or_404(db, category_id)
        cat.is_active = False
        db.flush()
        logger.info(f"Category {cat.id} ({cat.name_uz}) deactivated")
        return cat


# ==========================================
# Storefront Catalog Service
# ==========================================

class CatalogService:

    def __init__(self, categories: CategoryService):
        self.categories = categories

    def list_root_categories(self, db: Session, product_type: Optional[str] = None) -> List[dict]:
        roots = db.query(Category).filter(
            Category.parent_id.is_(None),
            Category.is_active == True,
        ).order_by(Category.sort_order, Category.id).all()
        counts = self.categories.count_products_bulk(db, [c.id for c in roots], product_type)
        return [{**c.to_dict(), "product_count": counts.get(c.id, 0)} for c in roots]

    def list_products(
        self,
        db: Session,
        category_id: int,
        product_type: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = CATEGORY_PRODUCTS_LIMIT,
    ) -> List[Product]:
        """Available products in the category subtree, newest first."""
        ids = self.categories.descendant_ids(db, category_id)
        query = db.query(Product).filter(
            Product.category_id.in_(ids),
            Product.is_available == True,
        )
        query = apply_product_type(query, product_type)
        if search and search.strip():
            like = f"%{search.strip()}%"
            query = query.filter(or_(Product.name_uz.ilike(like), Product.description_uz.ilike(like)))
        return query.order_by(Product.created_at.desc(), Product.id.desc()).limit(limit).all()

    def get_category_page(
        self,
        db: Session,
        category_id: int,
        product_type: Optional[str] = None,
        search: Optional[str] = None,
    ) -> dict:
        category = self.categories.get_or_404(db, category_id)
        if not category.is_active:
            raise NotFoundError("Kategoriya topilmadi.")

        subcategories = db.query(Category).filter(
            Category.parent_id == category.id,
            Category.is_active == True,
        ).order_by(Category.sort_order, Category.id).all()
        counts = self.categories.count_products_bulk(
            db, [category.id] + [c.id for c in subcategories], product_type,
        )

        return {
            "category": {**category.to_dict(), "product_count": counts.get(category.id, 0)},
            "breadcrumb": [c.to_dict() for c in self.categories.get_breadcrumb(db, category)],
            "subcategories": [
                {**c.to_dict(), "product_count": counts.get(c.id, 0)} for c in subcategories
            ],
            "products": [
                p.to_dict() for p in self.list_products(db, category.id, product_type, search)
            ],
        }


# ==========================================
# Service Singletons
# ==========================================

category_service = CategoryService()
catalog_service = CatalogService(category_service)
