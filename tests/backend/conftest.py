import os
import tempfile
import uuid

# Set test environment variables before importing vidtube modules
TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["ACCESS_TOKEN_SECRET"] = "test-access-secret"
os.environ["ACCESS_TOKEN_EXPIRY"] = "15m"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret"
os.environ["REFRESH_TOKEN_EXPIRY"] = "10d"
os.environ["TEMP_UPLOAD_DIR"] = tempfile.mkdtemp(prefix="vidtube_test_")
os.environ["CLOUDINARY_CLOUD_NAME"] = "demo"
os.environ["CLOUDINARY_API_KEY"] = "test-key"
os.environ["CLOUDINARY_API_SECRET"] = "test-secret"

import cloudinary.exceptions
import cloudinary.uploader
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from vidtube.config import settings
from vidtube.core import db as db_module
from vidtube.core.security import hash_password
from vidtube.main import app
from vidtube.models.user import User

db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class FakeCloudinary:
    """
    In-process stand-in for cloudinary.uploader.upload / destroy.

    Files whose name contains "broken" fail to upload. .mp4 files come back
    as resource_type "video", everything else as "image". destroy answers
    with `destroy_result` ("ok" by default) and records the type it was given.
    """

    def __init__(self):
        self.uploaded: list[str] = []
        self.existed_during_upload: list[bool] = []
        self.destroyed: list[str] = []
        self.destroyed_types: list[str] = []
        self.destroy_result = "ok"
        self._counter = 0

    def upload(self, file, **options):
        self.uploaded.append(file)
        self.existed_during_upload.append(os.path.exists(file))
        if "broken" in os.path.basename(file):
            raise cloudinary.exceptions.Error("Invalid image file")
        self._counter += 1
        public_id = f"vidtube/asset_{self._counter}"
        resource_type = "video" if file.endswith(".mp4") else "image"
        ext = "mp4" if resource_type == "video" else "png"
        url = f"https://res.cloudinary.com/demo/{resource_type}/upload/{public_id}.{ext}"
        return {
            "public_id": public_id,
            "resource_type": resource_type,
            "secure_url": url,
            "url": url.replace("https", "http", 1),
        }

    def destroy(self, public_id, resource_type="image", **options):
        self.destroyed.append(public_id)
        self.destroyed_types.append(resource_type)
        return {"result": self.destroy_result}


@pytest.fixture(autouse=True)
def fake_cloudinary(monkeypatch):
    """Every test talks to the fake, never to the real Cloudinary API."""
    fake = FakeCloudinary()
    monkeypatch.setattr(cloudinary.uploader, "upload", fake.upload)
    monkeypatch.setattr(cloudinary.uploader, "destroy", fake.destroy)
    return fake


@pytest.fixture
def temp_dir():
    """The staging directory for uploads, emptied before the test."""
    path = settings.temp_upload_dir
    os.makedirs(path, exist_ok=True)
    for name in os.listdir(path):
        os.remove(os.path.join(path, name))
    return path


@pytest.fixture
def staged_file(temp_dir):
    """Factory writing a file into the staging directory, as stash_upload would."""

    def _staged(name: str = "avatar.png") -> str:
        path = os.path.join(temp_dir, f"{uuid.uuid4().hex}_{name}")
        with open(path, "wb") as f:
            f.write(PNG_BYTES)
        return path

    return _staged


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """Fresh database for service-level tests that don't need HTTP."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(db, temp_dir):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def create_user(db):
    """
    Factory fixture to create users directly via ORM, with an existing avatar asset.
    """

    async def _create_user(password: str = "UserPass!23", **overrides) -> tuple[User, str]:
        suffix = uuid.uuid4().hex[:6]
        fields = {
            "username": f"user_{suffix}",
            "email": f"{suffix}@example.com",
            "full_name": f"User {suffix}",
            "avatar": f"https://res.cloudinary.com/demo/image/upload/seed_{suffix}.png",
            "avatar_id": f"seed_{suffix}",
            "password": hash_password(password),
        }
        fields.update(overrides)
        user = await User.create(**fields)
        return user, password

    return _create_user


@pytest.fixture
def register_user(client):
    """
    Helper posting the multipart registration form.
    Pass avatar=None to omit the avatar, cover="name.png" to add a cover image.
    """

    async def _register(
        username: str | None = None,
        email: str | None = None,
        password: str = "secret123",
        full_name: str = "Ann Lee",
        avatar: str | None = "avatar.png",
        cover: str | None = None,
    ):
        username = username if username is not None else f"user{uuid.uuid4().hex[:6]}"
        email = email if email is not None else f"{username}@example.com"
        files = {}
        if avatar:
            files["avatar"] = (avatar, PNG_BYTES, "image/png")
        if cover:
            files["coverImage"] = (cover, PNG_BYTES, "image/png")
        return await client.post(
            "/api/v1/users/register",
            data={"fullName": full_name, "email": email, "username": username, "password": password},
            files=files or None,
        )

    return _register


@pytest.fixture
def login(client):
    """Helper returning the login response for a username (or email) and password."""

    async def _login(password: str, username: str | None = None, email: str | None = None):
        body = {"password": password}
        if username is not None:
            body["username"] = username
        if email is not None:
            body["email"] = email
        return await client.post("/api/v1/users/login", json=body)

    return _login


@pytest.fixture
def auth_headers(register_user, login):
    """Register + log in a fresh user; returns (headers, login body data)."""

    async def _auth(username: str | None = None, password: str = "secret123"):
        reg = await register_user(username=username, password=password)
        assert reg.status_code == 201, reg.text
        resp = await login(password, username=reg.json()["data"]["username"])
        assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        return {"Authorization": f"Bearer {data['accessToken']}"}, data

    return _auth
