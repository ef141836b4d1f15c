import uuid

import pytest

from conftest import FakeBackend
from vibecode.errors import GenerationBackendError


async def create_project(client, headers, **fields):
    response = await client.post("/api/v1/projects", json={"name": "Demo", **fields}, headers=headers)
    assert response.status_code == 201
    return response.json()


async def onboard(client, headers):
    response = await client.post("/api/v1/users/me", json={"full_name": "Ada"}, headers=headers)
    assert response.status_code == 201
    return response.json()


async def test_health(client):
    response = await client.get("/health")
    assert response.json() == {"status": "ok"}


@pytest.mark.parametrize("authorization", [None, "Basic abc", "Bearer not-a-jwt"])
async def test_rejects_bad_credentials(client, authorization):
    headers = {"Authorization": authorization} if authorization else {}

    response = await client.get("/api/v1/projects", headers=headers)

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["error"] == "invalid_credential"


async def test_project_lifecycle(client, owner, auth_headers):
    headers = auth_headers(owner)
    project = await create_project(client, headers, tags=["demo"])
    assert project["owner_id"] == str(owner)
    assert project["visibility"] == "private"

    listed = await client.get("/api/v1/projects", headers=headers)
    assert [p["id"] for p in listed.json()] == [project["id"]]

    patched = await client.patch(
        f"/api/v1/projects/{project['id']}", json={"name": "Renamed", "visibility": "public"}, headers=headers
    )
    assert patched.status_code == 200
    assert patched.json()["name"] == "Renamed"
    assert patched.json()["visibility"] == "public"

    deleted = await client.delete(f"/api/v1/projects/{project['id']}", headers=headers)
    assert deleted.status_code == 204

    missing = await client.get(f"/api/v1/projects/{project['id']}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"


async def test_private_project_hidden_from_others(client, owner, stranger, auth_headers):
    project = await create_project(client, auth_headers(owner))

    response = await client.get(f"/api/v1/projects/{project['id']}", headers=auth_headers(stranger))

    assert response.status_code == 403
    assert response.json()["error"] == "access_denied"


async def test_public_projects_listing(client, owner, stranger, auth_headers):
    public = await create_project(client, auth_headers(owner), visibility="public")
    await create_project(client, auth_headers(owner))

    own_only = await client.get("/api/v1/projects", headers=auth_headers(stranger))
    with_public = await client.get(
        "/api/v1/projects", params={"include_public": True}, headers=auth_headers(stranger)
    )

    assert own_only.json() == []
    assert [p["id"] for p in with_public.json()] == [public["id"]]


async def test_files_and_versions(client, owner, auth_headers):
    headers = auth_headers(owner)
    project = await create_project(client, headers)
    base = f"/api/v1/projects/{project['id']}"

    put = await client.put(
        f"{base}/files",
        json={"files": [{"path": "src/app.js", "content": "let a;"}], "version_message": "add app"},
        headers=headers,
    )
    assert put.status_code == 200
    assert put.json()["version_number"] == 2
    assert [f["path"] for f in put.json()["files"]] == ["src/app.js"]

    file = await client.get(f"{base}/files/src/app.js", headers=headers)
    assert file.json()["language"] == "javascript"
    assert file.json()["size"] == 6

    missing_file = await client.get(f"{base}/files/nope.txt", headers=headers)
    assert missing_file.status_code == 404

    versions = await client.get(f"{base}/versions", headers=headers)
    assert [(v["version_number"], v["message"]) for v in versions.json()] == [
        (2, "add app"),
        (1, "Initial Project version"),
    ]

    rollback = await client.post(f"{base}/versions/1/rollback", headers=headers)
    assert rollback.status_code == 200
    assert rollback.json()["version_number"] == 3

    v3 = await client.get(f"{base}/versions/3", headers=headers)
    assert v3.json()["files"] == []
    v2 = await client.get(f"{base}/versions/2", headers=headers)
    assert [f["content"] for f in v2.json()["files"]] == ["let a;"]


async def test_duplicate_paths_rejected(client, owner, auth_headers):
    headers = auth_headers(owner)
    project = await create_project(client, headers)

    response = await client.put(
        f"/api/v1/projects/{project['id']}/files",
        json={"files": [{"path": "a.txt"}, {"path": "/a.txt"}]},
        headers=headers,
    )

    assert response.status_code == 422


async def test_fork_public_project(client, owner, stranger, auth_headers):
    project = await create_project(client, auth_headers(owner), visibility="public")

    response = await client.post(f"/api/v1/projects/{project['id']}/fork", headers=auth_headers(stranger))

    assert response.status_code == 201
    fork = response.json()
    assert fork["owner_id"] == str(stranger)
    assert fork["parent_project_id"] == project["id"]
    assert fork["visibility"] == "private"


async def test_usage_account(client, owner, stranger, auth_headers):
    headers = auth_headers(owner)
    account = await onboard(client, headers)
    assert account["plan_type"] == "free"
    assert account["remaining_tokens"] == 10_000
    assert account["roles"] == ["USER"]

    me = await client.get("/api/v1/users/me", headers=headers)
    assert me.json()["roles"] == ["USER"]

    again = await client.post("/api/v1/users/me", json={}, headers=headers)
    assert again.status_code == 409

    increment = await client.post(f"/api/v1/users/{owner}/usage/increment", params={"tokens": 100}, headers=headers)
    assert increment.json()["tokens_used"] == 100

    plan = await client.put(f"/api/v1/users/{owner}/plan", json={"plan_type": "pro"}, headers=headers)
    assert plan.json()["token_quota"] == 200_000
    assert plan.json()["tokens_used"] == 0

    foreign = await client.get(f"/api/v1/users/{owner}/usage", headers=auth_headers(stranger))
    assert foreign.status_code == 403


async def test_increment_beyond_quota(client, owner, auth_headers):
    headers = auth_headers(owner)
    await onboard(client, headers)

    response = await client.post(
        f"/api/v1/users/{owner}/usage/increment", params={"tokens": 10_001}, headers=headers
    )

    assert response.status_code == 402
    assert response.json()["error"] == "quota_exceeded"


async def test_generate(client, owner, auth_headers):
    headers = auth_headers(owner)
    await onboard(client, headers)
    project = await create_project(client, headers)

    response = await client.post(
        "/api/v1/ai/generate", json={"project_id": project["id"], "prompt": "a red square"}, headers=headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["tokens_charged"] == 50
    assert body["version_number"] == 2

    files = await client.get(f"/api/v1/projects/{project['id']}/files", headers=headers)
    assert [f["path"] for f in files.json()["files"]] == ["src/AiGenerated.js"]


async def test_generate_without_account(client, owner, auth_headers):
    headers = auth_headers(owner)
    project = await create_project(client, headers)

    response = await client.post(
        "/api/v1/ai/generate", json={"project_id": project["id"], "prompt": "anything"}, headers=headers
    )

    assert response.status_code == 404
    assert response.json()["saga_state"] == "quota_checking"


async def test_generate_for_unknown_project(client, owner, auth_headers):
    response = await client.post(
        "/api/v1/ai/generate", json={"project_id": str(uuid.uuid4()), "prompt": "anything"}, headers=auth_headers(owner)
    )
    assert response.status_code == 404
    assert response.json()["saga_state"] == "authorizing"


@pytest.fixture
def failing_backend(backend: FakeBackend) -> FakeBackend:
    backend.error = GenerationBackendError("provider down")
    return backend


async def test_generate_backend_failure(client, owner, auth_headers, failing_backend):
    headers = auth_headers(owner)
    await onboard(client, headers)
    project = await create_project(client, headers)

    response = await client.post(
        "/api/v1/ai/generate", json={"project_id": project["id"], "prompt": "anything"}, headers=headers
    )

    assert response.status_code == 502
    assert response.json() == {
        "error": "generation_backend_error",
        "detail": "provider down",
        "saga_state": "generating",
    }
    usage = await client.get(f"/api/v1/users/{owner}/usage", headers=headers)
    assert usage.json()["tokens_used"] == 0
