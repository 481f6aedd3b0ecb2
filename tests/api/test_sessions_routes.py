from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.api.routes import sessions as sessions_routes
from app.game.challenges.types import PlayerPreferences, SessionChallenge
from app.game.sessions.errors import ErrorCode, ErrorKind
from app.game.sessions.types import (
    CreateSessionResult,
    OperationResult,
    SessionDeleteResult,
    SessionSnapshot,
)
from app.main import create_app

UTC = timezone.utc
TOKEN_HEADERS = {"X-Internal-Token": "internal-secret"}


def _snapshot(code: str = "ABCDEF") -> SessionSnapshot:
    now_utc = datetime(2026, 2, 25, 18, 0, tzinfo=UTC)
    return SessionSnapshot(
        code=code,
        status="waiting",
        creator_user_id="user-creator",
        creator_gender="male",
        partner_user_id=None,
        partner_gender=None,
        challenge_count=2,
        start_intensity=1,
        current_challenge_index=0,
        current_player="creator",
        challenges=[
            SessionChallenge(
                challenge_id="l1_m_001",
                text="Say something sweet.",
                level=1,
                media_type="text",
                for_gender="male",
                for_player="creator",
            )
        ],
        changes_used={"creator": 0, "partner": 0},
        bonus_changes={"creator": 0, "partner": 0},
        creator_preferences=PlayerPreferences(),
        partner_preferences=None,
        pending_partner_challenge=None,
        version=1,
        created_at=now_utc,
        updated_at=now_utc,
    )


class FakeFacade:
    def __init__(self, result: OperationResult | None = None) -> None:
        self.result = result or OperationResult.ok(_snapshot())
        self.calls: list[tuple[str, dict[str, object]]] = []

    def __getattr__(self, name: str):  # noqa: ANN204
        async def _call(**kwargs):  # noqa: ANN003, ANN202
            self.calls.append((name, kwargs))
            return self.result

        return _call


@pytest.fixture
def allow_internal_access(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        sessions_routes,
        "get_settings",
        lambda: SimpleNamespace(
            internal_api_token="internal-secret",
            internal_api_allowlist="127.0.0.1/32",
            internal_api_trusted_proxies="",
        ),
    )
    monkeypatch.setattr(
        sessions_routes,
        "extract_client_ip",
        lambda request, *, trusted_proxies="": "127.0.0.1",
    )


def _client(facade: FakeFacade) -> TestClient:
    return TestClient(create_app(session_facade=facade))


def test_sessions_routes_reject_missing_token(allow_internal_access: None) -> None:
    facade = FakeFacade()
    response = _client(facade).get("/internal/sessions/ABCDEF", params={"user_id": "u1"})

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}
    assert facade.calls == []


def test_sessions_routes_reject_disallowed_ip(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        sessions_routes,
        "get_settings",
        lambda: SimpleNamespace(
            internal_api_token="internal-secret",
            internal_api_allowlist="192.168.0.0/16",
            internal_api_trusted_proxies="",
        ),
    )
    monkeypatch.setattr(
        sessions_routes,
        "extract_client_ip",
        lambda request, *, trusted_proxies="": "10.0.0.25",
    )

    response = _client(FakeFacade()).get(
        "/internal/sessions/ABCDEF",
        params={"user_id": "u1"},
        headers=TOKEN_HEADERS,
    )

    assert response.status_code == 403


def test_create_session_returns_201_with_code(allow_internal_access: None) -> None:
    facade = FakeFacade(
        OperationResult.ok(CreateSessionResult(snapshot=_snapshot(), warnings=["short pool"]))
    )

    response = _client(facade).post(
        "/internal/sessions",
        json={
            "creator_user_id": "user-creator",
            "creator_gender": "male",
            "challenge_count": 10,
            "start_intensity": 1,
            "preferences": {"selected_themes": ["romantic"], "media": {"video": False}},
        },
        headers=TOKEN_HEADERS,
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["success"] is True
    assert payload["data"]["code"] == "ABCDEF"
    assert payload["data"]["display_code"] == "ABC DEF"
    assert payload["data"]["warnings"] == ["short pool"]
    assert payload["data"]["session"]["status"] == "waiting"

    name, kwargs = facade.calls[0]
    assert name == "create_session"
    assert kwargs["is_premium"] is False
    preferences = kwargs["creator_preferences"]
    assert preferences.selected_themes == ("romantic",)
    assert preferences.media.allowed_media_types() == frozenset({"text", "photo", "audio"})


@pytest.mark.parametrize(
    ("code", "kind", "expected_status"),
    [
        (ErrorCode.SESSION_NOT_FOUND, ErrorKind.NOT_FOUND, 404),
        (ErrorCode.NOT_YOUR_TURN, ErrorKind.PRECONDITION_FAILED, 409),
        (ErrorCode.NOT_SESSION_MEMBER, ErrorKind.AUTHORIZATION, 403),
        (ErrorCode.INVALID_CHALLENGE_TEXT, ErrorKind.VALIDATION, 422),
        (ErrorCode.CONCURRENT_UPDATE_CONFLICT, ErrorKind.TRANSIENT, 503),
    ],
)
def test_failures_map_error_kind_to_status(
    allow_internal_access: None,
    code: ErrorCode,
    kind: ErrorKind,
    expected_status: int,
) -> None:
    facade = FakeFacade(OperationResult.failure(code=code, kind=kind, error="Rejected"))

    response = _client(facade).post(
        "/internal/sessions/ABCDEF/challenges/complete",
        json={"user_id": "user-partner", "challenge_index": 0},
        headers=TOKEN_HEADERS,
    )

    assert response.status_code == expected_status
    assert response.json() == {"success": False, "error": "Rejected", "code": code.value}
    assert facade.calls == [
        (
            "complete_challenge",
            {"code": "ABCDEF", "user_id": "user-partner", "challenge_index": 0},
        )
    ]


def test_get_session_serializes_snapshot(allow_internal_access: None) -> None:
    response = _client(FakeFacade()).get(
        "/internal/sessions/abc-def",
        params={"user_id": "user-creator"},
        headers=TOKEN_HEADERS,
    )

    assert response.status_code == 200
    session = response.json()["data"]
    assert session["code"] == "ABCDEF"
    assert session["challenges"][0]["for_player"] == "creator"
    assert session["pending_partner_challenge"] is None
    assert session["created_at"] == "2026-02-25T18:00:00+00:00"


def test_delete_session_returns_deleted_code(allow_internal_access: None) -> None:
    facade = FakeFacade(OperationResult.ok(SessionDeleteResult(code="ABCDEF")))

    response = _client(facade).delete(
        "/internal/sessions/ABCDEF",
        params={"user_id": "user-creator"},
        headers=TOKEN_HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {"code": "ABCDEF"}}
    assert facade.calls == [("delete_session", {"code": "ABCDEF", "user_id": "user-creator"})]


def test_swap_route_passes_domain_challenge(allow_internal_access: None) -> None:
    facade = FakeFacade()

    response = _client(facade).post(
        "/internal/sessions/ABCDEF/challenges/swap",
        json={
            "user_id": "user-creator",
            "challenge": {
                "challenge_id": "l1_f_002",
                "text": "Sing a line of your song.",
                "level": 1,
                "media_type": "audio",
                "for_gender": "female",
            },
        },
        headers=TOKEN_HEADERS,
    )

    assert response.status_code == 200
    name, kwargs = facade.calls[0]
    assert name == "swap_challenge"
    assert kwargs["is_premium"] is False
    assert isinstance(kwargs["new_challenge"], SessionChallenge)
    assert kwargs["new_challenge"].media_type == "audio"


def test_active_sessions_route_lists_snapshots(allow_internal_access: None) -> None:
    facade = FakeFacade(OperationResult.ok([_snapshot("ABCDEF"), _snapshot("GHJKLM")]))

    response = _client(facade).get(
        "/internal/users/user-creator/sessions/active",
        headers=TOKEN_HEADERS,
    )

    assert response.status_code == 200
    assert [item["code"] for item in response.json()["data"]] == ["ABCDEF", "GHJKLM"]
    assert facade.calls == [("get_active_sessions", {"user_id": "user-creator", "limit": 100})]


def test_request_body_validation_happens_before_facade(allow_internal_access: None) -> None:
    facade = FakeFacade()

    response = _client(facade).post(
        "/internal/sessions/ABCDEF/partner-challenge/request",
        json={"user_id": ""},
        headers=TOKEN_HEADERS,
    )

    assert response.status_code == 422
    assert facade.calls == []
