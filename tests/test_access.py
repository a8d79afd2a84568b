import pytest
from fastapi import status

from notifier import crud
from notifier.access import RouteAccess, classify
from notifier.auth import get_password_hash
from notifier.schemas import UserCreate


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/auth/login", RouteAccess.PUBLIC),
        ("/auth/reset-password", RouteAccess.PUBLIC),
        ("/docs", RouteAccess.PUBLIC),
        ("/openapi.json", RouteAccess.PUBLIC),
        ("/static/app.css", RouteAccess.PUBLIC),
        ("/contacts", RouteAccess.API),
        ("/contacts/abc/ping", RouteAccess.API),
        ("/settings", RouteAccess.API),
        ("/users/me", RouteAccess.API),
        ("/dashboard", RouteAccess.PAGE),
        ("/dashboard/week", RouteAccess.PAGE),
        ("/contactsexport", RouteAccess.PUBLIC),
        ("/", RouteAccess.PUBLIC),
    ],
)
def test_route_classification(path, expected):
    assert classify(path) is expected


def test_api_path_without_session_is_rejected(client):
    response = client.get("/contacts")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "Unauthorized"}


def test_api_path_with_invalid_token_is_rejected(client):
    response = client.get(
        "/settings", headers={"Authorization": "Bearer not-a-real-token"}
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert "error" in response.json()


def test_page_path_without_session_passes_through(client):
    # no page is mounted, so the request reaches the router and 404s
    response = client.get("/dashboard")

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_public_paths_need_no_session(client):
    assert client.get("/").status_code == status.HTTP_200_OK
    assert client.post("/auth/logout").status_code == status.HTTP_200_OK


def test_valid_token_passes_gate(client, tokens, db_session):
    user = crud.create_user(
        db_session,
        UserCreate(name="Gate", email="gate@example.com", password="secret123"),
        get_password_hash("secret123"),
    )
    response = client.get(
        "/contacts", headers={"Authorization": f"Bearer {tokens.issue(user.id)}"}
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []
