"""Tests for recipe visibility rules and viewer-scoped fetches."""

from types import SimpleNamespace

import pytest

from kitchen_costing.services import recipe_service
from kitchen_costing.services.dto import Viewer
from kitchen_costing.services.exceptions import RecipeAccessDenied, RecipeNotFound
from kitchen_costing.services.recipe_access_service import (
    can_view_recipe,
    get_recipe_for_viewer,
    get_visible_free_recipes,
)


def make_recipe(**overrides):
    fields = {
        "user_id": 1,
        "is_free_recipe": True,
        "is_visible": True,
        "access_type": "all",
        "allowed_plans": None,
        "allowed_user_emails": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestCanViewRecipe:
    def test_owner_always_sees_own_recipe(self):
        recipe = make_recipe(is_free_recipe=False, is_visible=False, access_type="admin")
        assert can_view_recipe(recipe, Viewer(user_id=1))

    def test_private_recipe_hidden_from_others(self):
        assert not can_view_recipe(make_recipe(is_free_recipe=False), Viewer(user_id=2))

    def test_invisible_free_recipe_hidden(self):
        assert not can_view_recipe(make_recipe(is_visible=False), Viewer(user_id=2))

    def test_access_all(self):
        assert can_view_recipe(make_recipe(), Viewer(user_id=2))

    def test_admin_only(self):
        recipe = make_recipe(access_type="admin")
        assert can_view_recipe(recipe, Viewer(user_id=2, role="admin"))
        assert not can_view_recipe(recipe, Viewer(user_id=2))

    def test_by_plan(self):
        recipe = make_recipe(access_type="by-plan", allowed_plans="Pro, Premium")
        assert can_view_recipe(recipe, Viewer(user_id=2, plan_type="Pro"))
        assert can_view_recipe(recipe, Viewer(user_id=2, plan_type="Premium"))
        assert not can_view_recipe(recipe, Viewer(user_id=2, plan_type="Hobby"))
        assert not can_view_recipe(recipe, Viewer(user_id=2))

    def test_by_plan_with_no_plans_listed(self):
        recipe = make_recipe(access_type="by-plan", allowed_plans=None)
        assert not can_view_recipe(recipe, Viewer(user_id=2, plan_type="Pro"))

    def test_selected_users_case_insensitive(self):
        recipe = make_recipe(
            access_type="selected-users", allowed_user_emails="Sam@Example.com, lee@example.com"
        )
        assert can_view_recipe(recipe, Viewer(user_id=2, email="sam@example.com"))
        assert can_view_recipe(recipe, Viewer(user_id=3, email=" LEE@example.com "))
        assert not can_view_recipe(recipe, Viewer(user_id=4, email="kim@example.com"))
        assert not can_view_recipe(recipe, Viewer(user_id=5))

    def test_unknown_access_type_denied(self):
        assert not can_view_recipe(make_recipe(access_type="friends"), Viewer(user_id=2))

    def test_anonymous_viewer(self):
        assert can_view_recipe(make_recipe(), Viewer(user_id=None))
        assert not can_view_recipe(make_recipe(user_id=None, is_free_recipe=False), Viewer(user_id=None))


@pytest.fixture
def shared_recipe(owner):
    return recipe_service.create_recipe(
        owner.id,
        {
            "name": "Pro Croissant",
            "is_free_recipe": True,
            "access_type": "by-plan",
            "allowed_plans": "Pro,Premium",
        },
    )


class TestGetRecipeForViewer:
    def test_granted(self, shared_recipe):
        recipe = get_recipe_for_viewer(shared_recipe.id, Viewer(user_id=99, plan_type="Pro"))
        assert recipe.id == shared_recipe.id
        assert recipe.recipe_ingredients == []

    def test_denied_concealed_by_default(self, shared_recipe):
        with pytest.raises(RecipeNotFound):
            get_recipe_for_viewer(shared_recipe.id, Viewer(user_id=99, plan_type="Hobby"))

    def test_denied_reported(self, shared_recipe):
        with pytest.raises(RecipeAccessDenied) as exc_info:
            get_recipe_for_viewer(
                shared_recipe.id, Viewer(user_id=99, plan_type="Hobby"), conceal_denied=False
            )
        assert exc_info.value.http_status_code == 403

    def test_denied_reported_from_config(self, shared_recipe, monkeypatch):
        from kitchen_costing.utils.config import reset_config

        monkeypatch.setenv("KITCHEN_COSTING_CONCEAL_ACCESS_DENIED", "false")
        reset_config()
        with pytest.raises(RecipeAccessDenied):
            get_recipe_for_viewer(shared_recipe.id, Viewer(user_id=99, plan_type="Hobby"))

    def test_missing_recipe(self, test_db):
        with pytest.raises(RecipeNotFound):
            get_recipe_for_viewer(12345, Viewer(user_id=1), conceal_denied=False)


class TestVisibleFreeRecipes:
    def test_listing_agrees_with_single_fetch(self, owner, shared_recipe):
        recipe_service.create_recipe(owner.id, {"name": "Open Bagel", "is_free_recipe": True})
        recipe_service.create_recipe(owner.id, {"name": "Secret Sauce"})

        hobby = Viewer(user_id=99, plan_type="Hobby")
        pro = Viewer(user_id=99, plan_type="Pro")

        assert [r.name for r in get_visible_free_recipes(hobby)] == ["Open Bagel"]
        assert [r.name for r in get_visible_free_recipes(pro)] == ["Open Bagel", "Pro Croissant"]
        for recipe in get_visible_free_recipes(pro):
            assert get_recipe_for_viewer(recipe.id, pro).id == recipe.id
