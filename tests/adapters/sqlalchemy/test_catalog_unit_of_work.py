from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002

from catalogsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from catalogsync.domain.model import Category, ProductImage
from tests.support.catalog import make_local_product

if TYPE_CHECKING:
    from collections.abc import Callable


def test_unit_of_work_requires_startup() -> None:
    shutdown()

    with pytest.raises(StartupError):
        SqlAlchemyCatalogUnitOfWork()


def test_startup_refuses_to_reconfigure_without_force(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    try:
        assert is_started()
        assert configured_engine() is sqlite_engine
        with pytest.raises(StartupError):
            startup(engine=sqlite_engine)
    finally:
        shutdown()

    assert not is_started()


def test_repositories_unavailable_outside_context(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    uow = sqlite_unit_of_work()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_commit_persists_across_units_of_work(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.categories.add(Category(remote_id=1, name="Drinks", slug="drinks"))
        uow.commit()

    with sqlite_unit_of_work() as uow:
        category = uow.repositories.categories.get_by_remote_id(1)

    assert category is not None
    assert category.name == "Drinks"


def test_exception_rolls_back_uncommitted_writes(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    with pytest.raises(RuntimeError), sqlite_unit_of_work() as uow:
        uow.repositories.categories.add(Category(remote_id=1, name="Drinks", slug="drinks"))
        raise RuntimeError("boom")

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.categories.get_by_remote_id(1) is None


def test_failed_savepoint_only_discards_its_own_writes(
    sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        product = make_local_product(code="A", remote_id=1)
        uow.repositories.products.add(product)
        with uow.savepoint():
            uow.repositories.images.add(ProductImage(product_id=product.id, url="kept.jpg"))
        with pytest.raises(RuntimeError), uow.savepoint():
            uow.repositories.images.add(ProductImage(product_id=product.id, url="lost.jpg"))
            raise RuntimeError("boom")
        uow.commit()
        product_id = product.id

    with sqlite_unit_of_work() as uow:
        urls = [image.url for image in uow.repositories.images.list_for_product(product_id)]
        stored = uow.repositories.products.get(product_id)

    assert urls == ["kept.jpg"]
    assert stored is not None
