"""Tests for the category tree manager."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.catalog.models import Brand, Category, Product, SubCategory
from catalog_admin.catalog.tree import CategoryTreeManager, NodeKind
from catalog_admin.domain.exceptions import NotFoundError, ValidationError


@pytest.fixture
def tree(session: AsyncSession) -> CategoryTreeManager:
    """Tree manager on a fresh database."""
    return CategoryTreeManager(session)


class TestCreateNode:
    """Tests for node creation."""

    async def test_create_main_category(self, tree: CategoryTreeManager) -> None:
        """Main category starts with no brands."""
        node = await tree.create_node("  Tools  ", NodeKind.MAIN)
        assert node.name == "Tools"
        assert node.is_main_category is True
        assert node.subcategories == []

    async def test_create_brand_links_to_category(self, tree: CategoryTreeManager) -> None:
        """Brand id is appended to the category's child list."""
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        acme = await tree.create_node("Acme", NodeKind.BRAND, tools.id)
        bosch = await tree.create_node("Bosch", NodeKind.BRAND, tools.id)

        assert tools.subcategories == [acme.id, bosch.id]
        assert acme.sub_sub_categories == []

    async def test_create_subcategory_links_to_brand(self, tree: CategoryTreeManager) -> None:
        """Sub-category id is appended to the brand's child list."""
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        acme = await tree.create_node("Acme", NodeKind.BRAND, tools.id)
        drills = await tree.create_node("Drills", NodeKind.SUBCATEGORY, acme.id)

        assert acme.sub_sub_categories == [drills.id]

    async def test_blank_name_rejected(self, tree: CategoryTreeManager) -> None:
        """Whitespace-only names are invalid."""
        with pytest.raises(ValidationError):
            await tree.create_node("   ", NodeKind.MAIN)

    async def test_missing_parent_rejected(self, tree: CategoryTreeManager) -> None:
        """A brand needs a parent id."""
        with pytest.raises(ValidationError) as exc_info:
            await tree.create_node("Acme", NodeKind.BRAND)
        assert exc_info.value.field == "parentCategory"

    async def test_unknown_parent_not_found(self, tree: CategoryTreeManager) -> None:
        """Parent id must resolve to a node of the parent level."""
        with pytest.raises(NotFoundError):
            await tree.create_node("Acme", NodeKind.BRAND, "no-such-category")

    async def test_subcategory_parent_must_be_brand(self, tree: CategoryTreeManager) -> None:
        """A category id is not a valid sub-category parent."""
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        with pytest.raises(NotFoundError):
            await tree.create_node("Drills", NodeKind.SUBCATEGORY, tools.id)


class TestRenameNode:
    """Tests for renaming."""

    async def test_rename_main_category(self, tree: CategoryTreeManager) -> None:
        """Main category name changes and the flag stays set."""
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        renamed = await tree.rename_node(tools.id, NodeKind.MAIN, "Power Tools")
        assert renamed.name == "Power Tools"
        assert renamed.is_main_category is True

    async def test_rename_brand_keeps_single_link(self, tree: CategoryTreeManager) -> None:
        """Renaming with an existing link does not duplicate it."""
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        acme = await tree.create_node("Acme", NodeKind.BRAND, tools.id)

        await tree.rename_node(acme.id, NodeKind.BRAND, "Acme Corp", tools.id)

        assert acme.name == "Acme Corp"
        assert tools.subcategories == [acme.id]

    async def test_rename_relinks_missing_child(self, tree: CategoryTreeManager) -> None:
        """A node missing from its parent's list is pushed back in."""
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        garden = await tree.create_node("Garden", NodeKind.MAIN)
        acme = await tree.create_node("Acme", NodeKind.BRAND, tools.id)

        await tree.rename_node(acme.id, NodeKind.BRAND, "Acme", garden.id)

        assert garden.subcategories == [acme.id]
        assert tools.subcategories == [acme.id]

    async def test_rename_unknown_node(self, tree: CategoryTreeManager) -> None:
        """Unknown node id is not found."""
        with pytest.raises(NotFoundError):
            await tree.rename_node("missing", NodeKind.MAIN, "X")

    async def test_rename_blank_name(self, tree: CategoryTreeManager) -> None:
        """Blank new name is rejected before lookup."""
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        with pytest.raises(ValidationError):
            await tree.rename_node(tools.id, NodeKind.MAIN, "")


class TestDeleteNode:
    """Tests for recursive deletion."""

    @pytest.fixture
    async def populated(self, tree: CategoryTreeManager) -> dict:
        """Tools > (Acme > Drills, Saws), (Bosch)."""
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        acme = await tree.create_node("Acme", NodeKind.BRAND, tools.id)
        bosch = await tree.create_node("Bosch", NodeKind.BRAND, tools.id)
        drills = await tree.create_node("Drills", NodeKind.SUBCATEGORY, acme.id)
        saws = await tree.create_node("Saws", NodeKind.SUBCATEGORY, acme.id)
        return {"tools": tools, "acme": acme, "bosch": bosch, "drills": drills, "saws": saws}

    async def test_delete_main_removes_descendants(
        self, tree: CategoryTreeManager, session: AsyncSession, populated: dict
    ) -> None:
        """Category, its brands and their sub-categories are removed."""
        result = await tree.delete_node(populated["tools"].id, NodeKind.MAIN)

        assert (result.categories, result.brands, result.subcategories) == (1, 2, 2)
        for model in (Category, Brand, SubCategory):
            assert await tree.repository.list_all(model) == []

    async def test_delete_main_unlinks_brands_from_other_categories(
        self, tree: CategoryTreeManager
    ) -> None:
        """A brand relinked under a second category leaves that list too."""
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        garden = await tree.create_node("Garden", NodeKind.MAIN)
        acme = await tree.create_node("Acme", NodeKind.BRAND, tools.id)
        bosch = await tree.create_node("Bosch", NodeKind.BRAND, garden.id)
        await tree.rename_node(acme.id, NodeKind.BRAND, "Acme", garden.id)
        assert garden.subcategories == [bosch.id, acme.id]

        await tree.delete_node(tools.id, NodeKind.MAIN)

        assert garden.subcategories == [bosch.id]

    async def test_dry_run_changes_nothing(
        self, tree: CategoryTreeManager, populated: dict
    ) -> None:
        """Dry run reports counts without deleting."""
        result = await tree.delete_node(populated["tools"].id, NodeKind.MAIN, dry_run=True)

        assert result.dry_run is True
        assert result.total == 5
        assert len(await tree.repository.list_all(SubCategory)) == 2
        assert result.to_dict() == {
            "categories": 1,
            "brands": 2,
            "subcategories": 2,
            "dryRun": True,
        }

    async def test_delete_brand_unlinks_from_category(
        self, tree: CategoryTreeManager, populated: dict
    ) -> None:
        """Brand id leaves the category list and its sub-categories go."""
        result = await tree.delete_node(populated["acme"].id, NodeKind.BRAND, populated["tools"].id)

        assert (result.brands, result.subcategories) == (1, 2)
        assert populated["tools"].subcategories == [populated["bosch"].id]
        assert await tree.repository.list_all(SubCategory) == []

    async def test_delete_brand_without_parent_hint(
        self, tree: CategoryTreeManager, populated: dict
    ) -> None:
        """Unlinking does not depend on the caller naming the parent."""
        await tree.delete_node(populated["bosch"].id, NodeKind.BRAND)
        assert populated["tools"].subcategories == [populated["acme"].id]

    async def test_delete_subcategory_unlinks_from_brand(
        self, tree: CategoryTreeManager, populated: dict
    ) -> None:
        """Sub-category id leaves its brand's list."""
        await tree.delete_node(populated["drills"].id, NodeKind.SUBCATEGORY, populated["acme"].id)
        assert populated["acme"].sub_sub_categories == [populated["saws"].id]

    async def test_delete_leaves_products(
        self, tree: CategoryTreeManager, session: AsyncSession, populated: dict
    ) -> None:
        """Products keep their now-dangling references."""
        product = Product(
            name="Hammer",
            category_id=populated["tools"].id,
            brand_id=populated["acme"].id,
        )
        session.add(product)
        await session.flush()

        await tree.delete_node(populated["tools"].id, NodeKind.MAIN)

        kept = await session.get(Product, product.id)
        assert kept is not None
        assert kept.brand_id == populated["acme"].id

    async def test_delete_unknown_node(self, tree: CategoryTreeManager) -> None:
        """Unknown id is not found."""
        with pytest.raises(NotFoundError):
            await tree.delete_node("missing", NodeKind.SUBCATEGORY)


class TestListTree:
    """Tests for the nested listing."""

    async def test_nested_shape(self, tree: CategoryTreeManager) -> None:
        """Brands and sub-categories are nested by id order."""
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        acme = await tree.create_node("Acme", NodeKind.BRAND, tools.id)
        drills = await tree.create_node("Drills", NodeKind.SUBCATEGORY, acme.id)

        listed = await tree.list_tree()

        assert listed == [
            {
                "id": tools.id,
                "name": "Tools",
                "isMainCategory": True,
                "subcategories": [
                    {
                        "id": acme.id,
                        "name": "Acme",
                        "subSubCategories": [{"id": drills.id, "name": "Drills"}],
                    }
                ],
            }
        ]

    async def test_dangling_ids_skipped(self, tree: CategoryTreeManager) -> None:
        """Child ids without a record are left out of the listing."""
        tools = await tree.create_node("Tools", NodeKind.MAIN)
        tools.subcategories = ["ghost-brand"]
        await tree.repository.save()

        listed = await tree.list_tree()
        assert listed[0]["subcategories"] == []

    async def test_empty(self, tree: CategoryTreeManager) -> None:
        """No categories lists as empty."""
        assert await tree.list_tree() == []
