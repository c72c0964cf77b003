"""Shared fixtures."""

import pytest

from fakes import CatalogMovies, InMemorySessionRepository


@pytest.fixture
def repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def movies() -> CatalogMovies:
    return CatalogMovies({"27205": "Inception", "603": "The Matrix"})
