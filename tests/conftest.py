"""
Test Configuration
==================

Pytest fixtures for zkcredit tests.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment before any settings are loaded. A 16-bit comparator
# and 12 repetitions keep proving fast; soundness is irrelevant in tests.
os.environ["ENVIRONMENT"] = "testing"
os.environ["ZK_BIT_WIDTH"] = "16"
os.environ["ZK_REPETITIONS"] = "12"


SALARY = 6000
THRESHOLD = 5000
EXPENSES = [1200, 800, 350, 450, 200]


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture(scope="session")
def encryption_session():
    """One CKKS keypair shared by tests that only encrypt and decrypt."""
    from shared.fhe import EncryptionSession

    return EncryptionSession.create()


@pytest.fixture
def comparator_circuit():
    """Comparator at the test bit width."""
    from shared.config import settings
    from shared.zk import get_comparator_circuit

    return get_comparator_circuit(settings.zk.bit_width)


@pytest.fixture
def nbfc_service():
    """Fresh NBFC service with an empty session store."""
    from services.nbfc.service import NBFCService
    from services.nbfc.sessions import SessionStore

    return NBFCService(SessionStore())


@pytest.fixture
def bank_service():
    """Fresh Bank service with an empty nonce registry."""
    from services.bank.service import BankService

    return BankService()


@pytest_asyncio.fixture
async def nbfc_client(nbfc_service) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the NBFC service."""
    from services.nbfc.main import app
    from services.nbfc.service import get_nbfc_service

    app.dependency_overrides[get_nbfc_service] = lambda: nbfc_service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def bank_client(bank_service, nbfc_service) -> AsyncGenerator[AsyncClient, None]:
    """
    Create test client for the Bank service.

    Its NBFC client talks to the in-process NBFC app backed by the same
    ``nbfc_service`` as ``nbfc_client``.
    """
    from services.bank.client import NBFCClient
    from services.bank.main import app
    from services.bank.routes.decisions import get_nbfc_client
    from services.bank.service import get_bank_service
    from services.nbfc.main import app as nbfc_app
    from services.nbfc.service import get_nbfc_service

    nbfc_app.dependency_overrides[get_nbfc_service] = lambda: nbfc_service

    async def nbfc_client_override() -> AsyncGenerator[NBFCClient, None]:
        async with NBFCClient(base_url="http://nbfc", transport=ASGITransport(app=nbfc_app)) as c:
            yield c

    app.dependency_overrides[get_bank_service] = lambda: bank_service
    app.dependency_overrides[get_nbfc_client] = nbfc_client_override
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()
    nbfc_app.dependency_overrides.clear()
