"""Pytest configuration and fixtures for Kitchen Costing tests."""

import pytest
from sqlalchemy.orm import sessionmaker

from kitchen_costing.models.base import Base
from kitchen_costing.utils.config import reset_config


@pytest.fixture(autouse=True)
def test_config(monkeypatch):
    """Run every test against the test environment configuration."""
    for name in (
        "KITCHEN_COSTING_DATABASE_URL",
        "KITCHEN_COSTING_DB_TIMEOUT",
        "KITCHEN_COSTING_LOG_LEVEL",
        "KITCHEN_COSTING_CONCEAL_ACCESS_DENIED",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("KITCHEN_COSTING_ENV", "test")
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Swaps the global session factory for one bound to it
    4. Drops all tables after the test completes
    """
    import kitchen_costing.services.database as db_module

    engine = db_module.create_database_engine("sqlite:///:memory:")
    db_module.init_database(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: session_factory

    yield session_factory

    Base.metadata.drop_all(engine)
    engine.dispose()
    db_module.get_session_factory = original_get_session_factory


@pytest.fixture
def owner(test_db):
    """A regular user on the Pro plan."""
    from kitchen_costing.services import user_service

    return user_service.create_user(
        {"username": "owner", "email": "owner@example.com", "plan": "Pro"}
    )


@pytest.fixture
def other_user(test_db):
    """A second tenant on the Hobby plan."""
    from kitchen_costing.services import user_service

    return user_service.create_user(
        {"username": "other", "email": "other@example.com", "plan": "Hobby"}
    )


@pytest.fixture
def admin_user(test_db):
    from kitchen_costing.services import user_service

    return user_service.create_user(
        {"username": "admin", "email": "admin@example.com", "role": "admin"}
    )


@pytest.fixture
def flour(owner):
    """1 kg of flour for 2.50: 0.0025 per gram."""
    from kitchen_costing.services import ingredient_service

    return ingredient_service.create_ingredient(
        owner.id, {"name": "Bread Flour", "quantity": "1000", "purchase_amount": "2.50"}
    )


@pytest.fixture
def butter(owner):
    """500 g of butter for 6.00: 0.012 per gram."""
    from kitchen_costing.services import ingredient_service

    return ingredient_service.create_ingredient(
        owner.id, {"name": "Butter", "quantity": "500", "purchase_amount": "6.00"}
    )


@pytest.fixture
def eggs(owner):
    """A tray of 30 eggs at 50 g each for 9.00."""
    from kitchen_costing.services import ingredient_service

    return ingredient_service.create_ingredient(
        owner.id,
        {
            "name": "Eggs",
            "is_count_based": True,
            "purchase_unit": "tray",
            "pieces_per_purchase_unit": "30",
            "weight_per_piece": "50",
            "purchase_amount": "9.00",
        },
    )


@pytest.fixture
def box(owner):
    """Cake boxes at 0.50 each."""
    from kitchen_costing.services import material_service

    return material_service.create_material(
        owner.id, {"name": "Cake Box", "unit": "pcs", "price_per_unit": "0.50"}
    )


@pytest.fixture
def bread_recipe(owner, flour, butter, box):
    """500 g flour, 100 g butter, 2 boxes, labor 3, yields 10."""
    from kitchen_costing.services import recipe_service

    return recipe_service.create_recipe(
        owner.id,
        {"name": "Butter Bread", "batch_yield": 10, "labor_cost": "3"},
        ingredients=[
            {"ingredient_id": flour.id, "quantity": "500"},
            {"ingredient_id": butter.id, "quantity": "100"},
        ],
        materials=[{"material_id": box.id, "quantity": "2"}],
    )
