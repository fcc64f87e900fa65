"""
Tests for the category hierarchy
"""
import pytest

from catalog.core.exceptions import NotFoundError, ValidationError
from catalog.models.filter import FilterGroup
from catalog.services.attribute_service import attribute_service
from catalog.services.category_service import category_service
from catalog.services.dimensions import Dimension


class TestCategoryHierarchy:

    async def test_root_and_child_paths(self, db):
        clothing = await category_service.create(db, {"name": "Clothing"})
        shirts = await category_service.create(db, {"name": "T Shirts", "parent_id": clothing.id})
        assert (clothing.level, clothing.path) == (0, "clothing")
        assert (shirts.level, shirts.path) == (1, "clothing/t-shirts")
        assert shirts.parent_id == clothing.id

    async def test_missing_parent(self, db):
        with pytest.raises(ValidationError, match="Parent category not found"):
            await category_service.create(db, {"name": "Orphan", "parent_id": 999})

    async def test_duplicate_slug(self, db, catalog):
        with pytest.raises(ValidationError, match="already exists"):
            await category_service.create(db, {"name": "jackets!"})

    async def test_rename_moves_subtree(self, db, catalog):
        parkas = await category_service.create(db, {"name": "Parkas", "parent_id": catalog.jackets.id})
        await category_service.update(db, catalog.clothing.id, {"name": "Apparel"})

        await db.refresh(catalog.jackets)
        await db.refresh(parkas)
        assert catalog.jackets.path == "apparel/jackets"
        assert parkas.path == "apparel/jackets/parkas"
        assert parkas.level == 2

    async def test_reparent_updates_levels(self, db, catalog):
        parkas = await category_service.create(db, {"name": "Parkas", "parent_id": catalog.jackets.id})
        await category_service.update(db, catalog.jackets.id, {"parent_id": None})

        await db.refresh(parkas)
        assert catalog.jackets.level == 0
        assert catalog.jackets.path == "jackets"
        assert (parkas.level, parkas.path) == (1, "jackets/parkas")

    async def test_cannot_become_own_parent_or_descendant(self, db, catalog):
        with pytest.raises(ValidationError, match="own parent"):
            await category_service.update(db, catalog.clothing.id, {"parent_id": catalog.clothing.id})
        with pytest.raises(ValidationError, match="descendant"):
            await category_service.update(db, catalog.clothing.id, {"parent_id": catalog.jackets.id})

    async def test_update_without_name_keeps_slug(self, db, catalog):
        category = await category_service.update(db, catalog.shoes.id, {"description": "Footwear", "sort_order": 4})
        assert category.slug == "shoes"
        assert category.description == "Footwear"
        assert category.sort_order == 4


class TestCategoryQueries:

    async def test_list_filters(self, db, catalog):
        roots, total = await category_service.list(db, level=0)
        assert [c.name for c in roots] == ["Clothing", "Shoes"]
        assert total == 2

        children, _ = await category_service.list(db, parent_id=catalog.clothing.id)
        assert [c.name for c in children] == ["Jackets"]

        found, _ = await category_service.list(db, search="jack")
        assert [c.name for c in found] == ["Jackets"]

    async def test_inactive_hidden_from_slug_lookup(self, db, catalog):
        await category_service.update(db, catalog.shoes.id, {"is_active": False})
        with pytest.raises(NotFoundError):
            await category_service.get_by_slug(db, "shoes")
        assert (await category_service.get_by_id(db, catalog.shoes.id)).is_active is False

    async def test_tree(self, db, catalog):
        tree = await category_service.tree(db)
        assert [node["name"] for node in tree] == ["Clothing", "Shoes"]
        assert [child["name"] for child in tree[0]["children"]] == ["Jackets"]
        assert tree[0]["children"][0]["parentId"] == catalog.clothing.id
        assert tree[1]["children"] == []


class TestCategoryDelete:

    async def test_refuses_with_children(self, db, catalog):
        with pytest.raises(ValidationError, match="subcategory"):
            await category_service.delete(db, catalog.clothing.id)

    async def test_refuses_with_filter_groups(self, db, catalog):
        db.add(FilterGroup(name="Fabric", slug="fabric", category_id=catalog.shoes.id))
        await db.commit()
        with pytest.raises(ValidationError, match="filter group"):
            await category_service.delete(db, catalog.shoes.id)

    async def test_delete_clears_attribute_scopes(self, db, catalog):
        await category_service.delete(db, catalog.shoes.id)
        assert not await category_service.exists(db, catalog.shoes.id)

        casual = await attribute_service.get_by_id(db, Dimension.STYLES, catalog.casual.id)
        await db.refresh(casual)
        assert casual.applicable_category_ids == []
