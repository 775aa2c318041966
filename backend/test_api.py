import pytest
from fastapi.testclient import TestClient

from safeorm.config import configure
from safeorm.database import DatabaseEngine
from backend.main import create_app


@pytest.fixture
def client():
    configure()
    engine = DatabaseEngine(":memory:")
    with TestClient(create_app(engine)) as client:
        yield client
    engine.close()


@pytest.fixture
def post_id(client):
    response = client.post("/api/posts", json={"title": "Hello", "body": "First post"})
    assert response.status_code == 201
    return response.json()["post_id"]


def test_comment_is_created_for_post(client, post_id):
    response = client.post(f"/api/posts/{post_id}/comments", json={"body": "Nice", "author": "ann"})

    assert response.status_code == 201
    data = response.json()
    assert data["post_id"] == post_id
    assert data["approved"] is False


def test_protected_comment_attribute_is_rejected(client, post_id):
    response = client.post(f"/api/posts/{post_id}/comments", json={"body": "Nice", "approved": True})

    assert response.status_code == 422
    assert response.json()["attributes"] == ["approved"]
    assert client.get(f"/api/posts/{post_id}").json()["comments"] == []


def test_admin_may_approve_comment(client, post_id):
    response = client.post(f"/api/admin/posts/{post_id}/comments", json={"body": "Nice", "approved": True})

    assert response.status_code == 201
    assert response.json()["approved"] is True


def test_invalid_comment_reports_errors(client, post_id):
    response = client.post(f"/api/posts/{post_id}/comments", json={"body": ""})

    assert response.status_code == 422
    assert response.json()["errors"] == {"body": ["can't be blank"]}


def test_unknown_post_is_404(client):
    response = client.post("/api/posts/999/comments", json={"body": "Nice"})
    assert response.status_code == 404


def test_tag_is_created_through_taggings(client, post_id):
    response = client.post(f"/api/posts/{post_id}/tags", json={"name": "python"})
    assert response.status_code == 201

    tags = client.get(f"/api/posts/{post_id}/tags").json()
    assert [t["name"] for t in tags] == ["python"]
    assert client.get(f"/api/posts/{post_id}").json()["tags"] == ["python"]
