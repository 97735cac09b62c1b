"""HTTP tests for the leave workflow routes: submit, the three decision stages,
the four stage-scoped detail views, and the error body contract.
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from _support import BASE_URL, SUBMISSION, FailingStore
from leave_portal.core.config import Settings
from leave_portal.core.dependencies import get_workflow
from leave_portal.core.errors import ConfigurationError
from leave_portal.main import create_app
from leave_portal.workflow.engine import LeaveWorkflow
from leave_portal.workflow.states import Stage

DETAIL_ROUTES = {
    Stage.MANAGER: "/api/leave/details",
    Stage.HR: "/api/leave/hr-details",
    Stage.MD: "/api/leave/md-details",
    Stage.ARCHIVE: "/api/leave/final-details",
}


async def _submit(client: AsyncClient, **overrides) -> str:
    resp = await client.post("/api/leave/submit", json={**SUBMISSION, **overrides})
    assert resp.status_code == 202
    return resp.json()["request_token"]


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


async def test_submit(client, notifier):
    resp = await client.post("/api/leave/submit", json=SUBMISSION)

    assert resp.status_code == 202
    body = resp.json()
    assert body["status"] == "Pending"
    assert body["message"] == "Leave request submitted successfully for Ada"
    assert notifier.last.stage is Stage.MANAGER
    assert notifier.last.token == body["request_token"]

    resp = await client.get("/api/leave/details", params={"token": body["request_token"]})
    assert resp.status_code == 200
    record = resp.json()
    assert record["staff_name"] == "Ada"
    assert record["status"] == "Pending"
    assert record["manager_decision"] is None
    assert record["hr_decision"] is None
    assert record["md_decision"] is None
    assert record["total_days"] == 10


async def test_full_chain(client, notifier):
    t1 = await _submit(client, staff_name="Ada", manager_email="m@x.com")

    resp = await client.post(
        "/api/leave/action", json={"token": t1, "status": "Approved", "hr_email": "h@x.com"}
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "message": "Action recorded; HR has been notified of the decision.",
        "status": "Pending HR Review",
    }
    t2 = notifier.last.token
    assert t2 != t1

    resp = await client.post(
        "/api/leave/hr-action", json={"token": t2, "status": "Rejected", "md_email": "d@x.com"}
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "HR decision recorded; request forwarded to MD for final action."
    assert resp.json()["status"].startswith("Rejected by HR")
    t3 = notifier.last.token
    assert t3 not in (t1, t2)

    resp = await client.get("/api/leave/md-details", params={"token": t3})
    assert resp.status_code == 200
    assert resp.json()["manager_decision"] == "Approved"
    assert resp.json()["hr_decision"] == "Rejected"

    resp = await client.post("/api/leave/md-action", json={"token": t3, "status": "Approved"})
    assert resp.status_code == 200
    assert resp.json() == {
        "message": "Leave request finalized. HR has been notified of the completion.",
        "status": "Fully Approved",
    }
    t4 = notifier.last.token
    assert notifier.last.stage is Stage.ARCHIVE
    assert notifier.last.recipient == "h@x.com"
    assert len({t1, t2, t3, t4}) == 4

    resp = await client.get("/api/leave/final-details", params={"token": t4})
    assert resp.status_code == 200
    archive = resp.json()
    assert archive["status"] == "Fully Approved"
    assert (archive["manager_approved"], archive["hr_approved"], archive["md_approved"]) == (
        True,
        False,
        True,
    )
    assert archive["hr_email"] == "h@x.com"
    assert archive["md_email"] == "d@x.com"


async def test_details_do_not_leak_other_stage_tokens(client, notifier):
    t1 = await _submit(client)
    await client.post("/api/leave/action", json={"token": t1, "status": "Approved", "hr_email": "h@x.com"})

    resp = await client.get("/api/leave/details", params={"token": t1})
    body = resp.json()
    for field in ("request_token", "hr_token", "md_token", "final_hr_token"):
        assert field not in body
    assert notifier.last.token not in resp.text


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("stage", list(Stage))
async def test_unknown_token_is_404(client, stage):
    resp = await client.get(DETAIL_ROUTES[stage], params={"token": "nope"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "invalid or expired token"}


@pytest.mark.parametrize("stage", list(Stage))
async def test_missing_token_is_400(client, stage):
    resp = await client.get(DETAIL_ROUTES[stage])
    assert resp.status_code == 400
    assert resp.json() == {"error": "token is required"}


@pytest.mark.parametrize(
    ("path", "body"),
    [
        ("/api/leave/action", {"token": "nope", "status": "Approved", "hr_email": "h@x.com"}),
        ("/api/leave/hr-action", {"token": "nope", "status": "Approved", "md_email": "d@x.com"}),
        ("/api/leave/md-action", {"token": "nope", "status": "Approved"}),
    ],
)
async def test_unknown_token_action_is_404_and_changes_nothing(client, notifier, path, body):
    t1 = await _submit(client)
    before = (await client.get("/api/leave/details", params={"token": t1})).json()
    sent = len(notifier.notices)

    resp = await client.post(path, json=body)

    assert resp.status_code == 404
    assert resp.json() == {"error": "request not found"}
    assert (await client.get("/api/leave/details", params={"token": t1})).json() == before
    assert len(notifier.notices) == sent


async def test_manager_token_cannot_read_hr_view(client):
    t1 = await _submit(client)
    await client.post("/api/leave/action", json={"token": t1, "status": "Approved", "hr_email": "h@x.com"})

    resp = await client.get("/api/leave/hr-details", params={"token": t1})
    assert resp.status_code == 404


async def test_repeated_action_is_409(client, notifier):
    t1 = await _submit(client)
    payload = {"token": t1, "status": "Approved", "hr_email": "h@x.com"}
    assert (await client.post("/api/leave/action", json=payload)).status_code == 200
    sent = len(notifier.notices)

    resp = await client.post("/api/leave/action", json={**payload, "status": "Rejected"})

    assert resp.status_code == 409
    assert "error" in resp.json()
    assert len(notifier.notices) == sent
    record = (await client.get("/api/leave/details", params={"token": t1})).json()
    assert record["manager_decision"] == "Approved"


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"staff_name": ""}, "staff_name is required"),
        ({"manager_email": None}, "manager_email is required"),
    ],
)
async def test_submit_validation(client, notifier, overrides, message):
    resp = await client.post("/api/leave/submit", json={**SUBMISSION, **overrides})
    assert resp.status_code == 400
    assert resp.json() == {"error": message}
    assert notifier.notices == []


async def test_malformed_body_is_400(client):
    resp = await client.post(
        "/api/leave/submit",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "malformed request data"}

    resp = await client.post("/api/leave/submit", json={**SUBMISSION, "total_days": "ten"})
    assert resp.status_code == 400


async def test_action_requires_routing_email(client):
    t1 = await _submit(client)
    resp = await client.post("/api/leave/action", json={"token": t1, "status": "Approved"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "hr_email is required"}


async def test_wrong_method_uses_error_body(client):
    resp = await client.get("/api/leave/submit")
    assert resp.status_code == 405
    assert "error" in resp.json()


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


async def test_long_decision_is_stored_verbatim(client, notifier):
    t1 = await _submit(client)
    decision = "Approved, subject to handover notes being filed with the relief officer"

    resp = await client.post("/api/leave/action", json={"token": t1, "status": decision, "hr_email": "h@x.com"})

    assert resp.status_code == 200
    assert resp.json()["status"] == "Rejected by Manager - Pending HR Filing"
    record = (await client.get("/api/leave/hr-details", params={"token": notifier.last.token})).json()
    assert record["manager_decision"] == decision


@pytest.mark.parametrize(
    ("path", "body"),
    [
        ("/api/leave/submit", {**SUBMISSION, "manager_email": "m" * 250 + "@x.com"}),
        ("/api/leave/submit", {**SUBMISSION, "start_date": "2" * 51}),
        ("/api/leave/action", {"token": "t", "status": "Approved", "hr_email": "h" * 256}),
        ("/api/leave/hr-action", {"token": "t", "status": "Approved", "md_email": "d" * 256}),
    ],
)
async def test_oversize_fields_are_400(client, notifier, path, body):
    resp = await client.post(path, json=body)

    assert resp.status_code == 400
    assert resp.json() == {"error": "malformed request data"}
    assert notifier.notices == []


# ---------------------------------------------------------------------------
# Persistence and configuration failures
# ---------------------------------------------------------------------------


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
async def failing_client(test_settings, notifier, failing_store):
    app = create_app(test_settings, session_factory=object(), notifier=notifier)
    app.dependency_overrides[get_workflow] = lambda: LeaveWorkflow(failing_store, notifier)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def test_failed_submit_is_500(failing_client, failing_store, notifier):
    failing_store.fail_add = True

    resp = await failing_client.post("/api/leave/submit", json=SUBMISSION)

    assert resp.status_code == 500
    assert resp.json() == {"error": "failed to persist request"}
    assert notifier.notices == []


async def test_failed_action_is_500(failing_client, failing_store, notifier):
    t1 = await _submit(failing_client)
    failing_store.fail_writes = True
    sent = len(notifier.notices)

    resp = await failing_client.post(
        "/api/leave/action", json={"token": t1, "status": "Approved", "hr_email": "h@x.com"}
    )

    assert resp.status_code == 500
    assert resp.json() == {"error": "failed to save action"}
    assert len(notifier.notices) == sent
    assert failing_store.all()[0].manager_decision is None


async def test_startup_fails_without_database_url(notifier, monkeypatch):
    monkeypatch.setattr("leave_portal.main.configure_logging", lambda level: None)
    app = create_app(Settings(DATABASE_URL="", BASE_URL=BASE_URL), notifier=notifier)

    with pytest.raises(ConfigurationError, match="DATABASE_URL is not set"):
        async with app.router.lifespan_context(app):
            pass
