import os
import tempfile

# Configure the app before anything imports core.config / core.database
_TMP_DIR = tempfile.mkdtemp(prefix="webar-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["STATIC_DIR"] = os.path.join(_TMP_DIR, "static")
os.makedirs(os.environ["STATIC_DIR"], exist_ok=True)
os.environ["JWT_SECRET"] = "test-secret"
os.environ["FRONTEND_URL"] = "http://localhost:3000"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["KEEP_ALIVE_ENABLED"] = "0"
os.environ["APP_ENV"] = "test"
for _key in ("R2_ACCOUNT_ID", "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY", "R2_PUBLIC_URL", "REDIS_URL"):
    os.environ[_key] = ""

import pytest
from fastapi.testclient import TestClient

from core.auth import create_access_token
from core.database import Base, SessionLocal, engine
from models.user import User
from main import app


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _create_merchant(email: str) -> dict:
    session = SessionLocal()
    try:
        merchant = User(email=email, full_name="Test Merchant")
        session.add(merchant)
        session.commit()
        session.refresh(merchant)
        token = create_access_token(merchant.id)
        return {"id": merchant.id, "headers": {"Authorization": f"Bearer {token}"}}
    finally:
        session.close()


@pytest.fixture
def merchant():
    return _create_merchant("merchant@example.com")


@pytest.fixture
def other_merchant():
    return _create_merchant("other@example.com")


@pytest.fixture
def make_item(db):
    from utils.items import create_item

    def _make(merchant_id: str, name: str = "Red Chair", **extra):
        data = {"name": name, "modelUrl": "https://cdn.example.com/chair.glb", **extra}
        return create_item(db, merchant_id, data)

    return _make
