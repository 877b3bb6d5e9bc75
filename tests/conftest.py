import os
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from protean.utils.globals import current_domain

from catalogue.ingredient.ingredient import Ingredient
from catalogue.product.product import Product
from identity.auth import reset_verifier
from notifications.channel import FakeEmailAdapter, reset_channels, set_email_channel
from shared.db import drop_db, setup_db
from shared.domain import init_domain, teashop
from shared.settings import Settings, use_settings

DEV_TOKENS = {"token-ada": "user-ada", "token-bob": "user-bob"}


def database_url_for_tests() -> str:
    """The PostgreSQL database named by DATABASE_URL, else a fresh SQLite file."""
    database_url = os.environ.get("DATABASE_URL", "")
    if database_url.startswith("postgresql"):
        return database_url
    return f"sqlite:///{Path(tempfile.mkdtemp(prefix='teashop-')) / 'teashop.db'}"


TEST_SETTINGS = Settings(env="test", database_url=database_url_for_tests(), create_schema=False, auth_dev_tokens=DEV_TOKENS)


def pytest_sessionstart(session):
    """Initialize the teashop domain before collecting tests."""
    init_domain(TEST_SETTINGS)


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def test_settings():
    return TEST_SETTINGS


@pytest.fixture(scope="session", autouse=True)
def teashop_domain():
    setup_db(teashop)

    yield teashop

    drop_db(teashop)


@pytest.fixture(autouse=True)
def run_around_tests(teashop_domain, test_settings):
    """Run each test in a domain context and clean up infrastructure afterwards."""
    use_settings(test_settings)
    with teashop_domain.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_verifier()
    reset_channels()


@pytest.fixture()
def email():
    adapter = FakeEmailAdapter()
    set_email_channel(adapter)
    return adapter


class Seed:
    """Reference data written straight through the repositories."""

    def product(self, product_id="tea-1", price=8.50, stock=10, is_active=True, name=None, category="tea"):
        current_domain.repository_for(Product).add(
            Product(
                id=product_id,
                name=name or product_id.replace("-", " ").title(),
                price=float(price),
                stock=stock,
                is_active=is_active,
                category=category,
                tags="[]",
            )
        )
        return product_id

    def ingredient(
        self,
        ingredient_id,
        name=None,
        is_base=False,
        base_amount=0.25,
        increment_amount=0.25,
        is_active=True,
    ):
        current_domain.repository_for(Ingredient).add(
            Ingredient(
                id=ingredient_id,
                name=name or ingredient_id.replace("-", " ").title(),
                category="base" if is_base else "addIn",
                is_base=is_base,
                base_amount=base_amount,
                increment_amount=increment_amount,
                is_active=is_active,
            )
        )
        return ingredient_id

    def load(self, product_id) -> Product:
        return current_domain.repository_for(Product).get(product_id)

    def update(self, product_id, **values):
        repo = current_domain.repository_for(Product)
        product = repo.get(product_id)
        for key, value in values.items():
            setattr(product, key, value)
        repo.add(product)

    def tea_bar(self):
        """Base teas and add-ins used by the blend tests."""
        self.ingredient("green-1", name="Green Sencha", is_base=True, base_amount=1, increment_amount=0.5)
        self.ingredient("black-1", name="Assam", is_base=True, base_amount=1, increment_amount=0.5)
        self.ingredient("lavender", base_amount=0.25, increment_amount=0.25)
        self.ingredient("mint", base_amount=1, increment_amount=0.5)
        self.ingredient("rose", base_amount=0.5, increment_amount=0)


@pytest.fixture()
def seed():
    return Seed()


@pytest.fixture()
def app(test_settings):
    from app import create_app

    return create_app(settings=test_settings)


@pytest.fixture()
def client(app):
    return TestClient(app)
