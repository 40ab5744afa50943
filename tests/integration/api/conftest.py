"""
Fixtures shared by the API tests.
"""

from types import SimpleNamespace

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import tenant_context


@pytest_asyncio.fixture
async def tenant(db_session: AsyncSession) -> SimpleNamespace:
    """Complete organization (admin, teacher, student, catalog, one class)."""
    return await tenant_context(db_session)


@pytest_asyncio.fixture
async def other_tenant(db_session: AsyncSession) -> SimpleNamespace:
    """A second, unrelated organization for isolation checks."""
    return await tenant_context(db_session)
