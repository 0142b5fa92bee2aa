"""
Test configuration and fixtures.
Uses in-memory SQLite (aiosqlite) for the record store and a MagicMock in
place of the boto3 S3 client, so no database server or bucket is needed.
"""
import os

# Set test environment before any imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["S3_BUCKET_NAME"] = "test-bucket"
os.environ["S3_PUBLIC_URL"] = "https://cdn.example.com"
os.environ["MAX_UPLOAD_SIZE"] = str(5 * 1024 * 1024)
os.environ["DEFAULT_UPLOAD_FOLDER"] = "photos"
os.environ["WRITE_CREDENTIAL_EXPIRATION"] = "360"

import pytest
from typing import AsyncGenerator
from unittest.mock import MagicMock

import httpx
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.config import settings
from app.models.base import Base
from app.schemas.auth import CallerIdentity
from app.storage.presign import CredentialIssuer
from app.storage.resolver import KeyResolver
from app.storage.s3_client import StorageClient

MiB = 1024 * 1024
STORAGE_HOST = "https://storage.test"


def fake_presigned_url(ClientMethod, Params, ExpiresIn):
    """Shape of a real presigned URL, without the crypto."""
    return (
        f"{STORAGE_HOST}/{Params['Bucket']}/{Params['Key']}"
        f"?X-Amz-Algorithm=AWS4-HMAC-SHA256&X-Amz-Expires={ExpiresIn}"
        f"&X-Amz-Signature=deadbeef"
    )


@pytest.fixture
def boto_client() -> MagicMock:
    """Mocked boto3 S3 client."""
    client = MagicMock()
    client.generate_presigned_url.side_effect = fake_presigned_url
    client.put_object.return_value = {"ETag": '"abc"'}
    client.delete_object.return_value = {}
    return client


@pytest.fixture
def storage(boto_client: MagicMock) -> StorageClient:
    return StorageClient(settings, client=boto_client)


@pytest.fixture
def resolver(storage: StorageClient) -> KeyResolver:
    return KeyResolver(storage, settings.s3_public_url)


@pytest.fixture
def issuer(storage: StorageClient, resolver: KeyResolver) -> CredentialIssuer:
    return CredentialIssuer(storage, settings, resolver=resolver)


@pytest.fixture
def caller() -> CallerIdentity:
    return CallerIdentity(uid="firebase-test-uid", email="test@example.com")


@pytest.fixture
def storage_requests() -> list:
    """Requests the fake storage endpoint received."""
    return []


@pytest.fixture
def storage_http(storage_requests: list):
    """
    httpx client whose transport plays the bucket: any PUT succeeds with 200.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        storage_requests.append(request)
        return httpx.Response(200, headers={"ETag": '"abc"'})
    
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh in-memory database session for each test."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    
    async with session_maker() as session:
        yield session
    
    await engine.dispose()


def get_test_app(db_session: AsyncSession, storage: StorageClient, caller=None) -> FastAPI:
    """Create a test FastAPI app with overridden dependencies."""
    from app.main import app
    from app.database import get_db
    from app.auth.dependencies import get_current_user, get_storage_client
    
    async def override_get_db():
        yield db_session
    
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_client] = lambda: storage
    
    if caller is not None:
        app.dependency_overrides[get_current_user] = lambda: caller
    
    return app


@pytest.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    storage: StorageClient,
    caller: CallerIdentity,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for an authenticated caller."""
    app = get_test_app(db_session, storage, caller)
    
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def anonymous_client(
    db_session: AsyncSession,
    storage: StorageClient,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client that sends no credentials."""
    app = get_test_app(db_session, storage)
    
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    
    app.dependency_overrides.clear()

