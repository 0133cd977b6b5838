import pytest
from sqlalchemy import select

from app.models import Agreement, AgreementStatus, Alert


async def _create_agreement(client, headers, care_ids, title="Sunday visits"):
    response = await client.post(
        "/agreements",
        json={**care_ids, "fields": {"title": title, "frequency": "weekly"}},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


def _alert(db_session, result):
    return db_session.get(Alert, result["alert_id"])


@pytest.mark.anyio("asyncio")
async def test_create_agreement_starts_at_version_one(client, supporter_headers, care_ids):
    agreement = await _create_agreement(client, supporter_headers, care_ids)

    assert agreement["status"] == "proposed"
    assert agreement["title"] == "Sunday visits"
    assert [version["version_num"] for version in agreement["versions"]] == [1]


@pytest.mark.anyio("asyncio")
async def test_decline_raises_tier2_alert_sourced_on_the_acceptance(
    client, supporter_headers, care_ids, db_session
):
    agreement = await _create_agreement(client, supporter_headers, care_ids)

    response = await client.post(f"/agreements/{agreement['id']}/decline", headers=supporter_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["agreement"]["status"] == "declined"
    assert body["acceptance"]["status"] == "declined"
    alert = _alert(db_session, body["alert"])
    assert alert.type == "agreement_declined"
    assert alert.severity == "tier2"
    assert alert.title == "Agreement declined: Sunday visits"
    assert alert.source_table == "agreement_acceptances"
    assert alert.source_id == body["acceptance"]["id"]


@pytest.mark.anyio("asyncio")
async def test_modify_adds_version_and_alerts(client, supporter_headers, care_ids, db_session):
    agreement = await _create_agreement(client, supporter_headers, care_ids)

    response = await client.post(
        f"/agreements/{agreement['id']}/modify",
        json={"fields": {"title": "Saturday visits"}, "message": "Sundays no longer work"},
        headers=supporter_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert [version["version_num"] for version in body["agreement"]["versions"]] == [1, 2]
    assert body["acceptance"]["status"] == "modified"
    assert body["acceptance"]["message"] == "Sundays no longer work"
    alert = _alert(db_session, body["alert"])
    assert alert.type == "agreement_modified"
    assert alert.severity == "tier2"
    assert alert.title == "Agreement modified: Saturday visits"
    assert alert.source_id == body["acceptance"]["id"]


@pytest.mark.anyio("asyncio")
async def test_withdraw_raises_tier3_declined_alert(client, coordinator_headers, care_ids, db_session):
    agreement = await _create_agreement(client, coordinator_headers, care_ids)

    response = await client.post(f"/agreements/{agreement['id']}/withdraw", headers=coordinator_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["agreement"]["status"] == "withdrawn"
    assert body["acceptance"] is None
    alert = _alert(db_session, body["alert"])
    assert alert.type == "agreement_declined"
    assert alert.severity == "tier3"
    assert alert.title == "Agreement withdrawn: Sunday visits"
    assert alert.source_table == "agreements"
    assert alert.source_id == agreement["id"]


@pytest.mark.anyio("asyncio")
async def test_supporter_accept_records_response_without_closing(
    client, supporter_headers, care_ids, db_session
):
    agreement = await _create_agreement(client, supporter_headers, care_ids)

    response = await client.post(f"/agreements/{agreement['id']}/accept", headers=supporter_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["agreement"]["status"] == "proposed"
    assert body["acceptance"]["status"] == "accepted"
    assert body["acceptance"]["agreement_version_id"] == agreement["versions"][0]["id"]
    assert body["alert"] is None
    assert db_session.scalars(select(Alert)).all() == []


@pytest.mark.anyio("asyncio")
async def test_coordinator_accept_closes_agreement(client, coordinator_headers, care_ids, db_session):
    agreement = await _create_agreement(client, coordinator_headers, care_ids)

    response = await client.post(f"/agreements/{agreement['id']}/accept", headers=coordinator_headers)

    assert response.status_code == 200
    assert response.json()["agreement"]["status"] == "accepted"
    db_session.expire_all()
    assert db_session.get(Agreement, agreement["id"]).status == AgreementStatus.accepted
    assert db_session.scalars(select(Alert)).all() == []


@pytest.mark.anyio("asyncio")
async def test_accepted_agreement_cannot_be_withdrawn(client, coordinator_headers, care_ids, db_session):
    agreement = await _create_agreement(client, coordinator_headers, care_ids)
    accepted = await client.post(f"/agreements/{agreement['id']}/accept", headers=coordinator_headers)
    assert accepted.json()["agreement"]["status"] == "accepted"

    response = await client.post(f"/agreements/{agreement['id']}/withdraw", headers=coordinator_headers)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "AGREEMENT_NOT_WITHDRAWABLE"
    assert db_session.scalars(select(Alert)).all() == []


@pytest.mark.anyio("asyncio")
async def test_propose_reopens_accepted_agreement(client, coordinator_headers, care_ids, db_session):
    agreement = await _create_agreement(client, coordinator_headers, care_ids)
    await client.post(f"/agreements/{agreement['id']}/accept", headers=coordinator_headers)

    response = await client.post(
        f"/agreements/{agreement['id']}/propose",
        json={"fields": {"title": "Monthly visits"}},
        headers=coordinator_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["agreement"]["status"] == "proposed"
    assert body["alert"]["inserted"] is True
    assert _alert(db_session, body["alert"]).type == "agreement_updated"


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize("action", ["decline", "modify", "accept"])
async def test_responses_rejected_once_withdrawn(
    client, supporter_headers, coordinator_headers, care_ids, db_session, action
):
    agreement = await _create_agreement(client, coordinator_headers, care_ids)
    await client.post(f"/agreements/{agreement['id']}/withdraw", headers=coordinator_headers)
    alerts_before = len(db_session.scalars(select(Alert)).all())

    response = await client.post(
        f"/agreements/{agreement['id']}/{action}",
        json={"fields": {"title": "Late change"}},
        headers=supporter_headers,
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "AGREEMENT_NOT_OPEN"
    db_session.expire_all()
    assert db_session.get(Agreement, agreement["id"]).status == AgreementStatus.withdrawn
    assert len(db_session.scalars(select(Alert)).all()) == alerts_before


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize("action", ["decline", "modify"])
async def test_responses_rejected_once_declined(client, supporter_headers, care_ids, db_session, action):
    agreement = await _create_agreement(client, supporter_headers, care_ids)
    await client.post(f"/agreements/{agreement['id']}/decline", headers=supporter_headers)

    response = await client.post(
        f"/agreements/{agreement['id']}/{action}",
        json={"fields": {"title": "Second thoughts"}},
        headers=supporter_headers,
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "AGREEMENT_NOT_OPEN"
    assert len(db_session.scalars(select(Alert)).all()) == 1
    db_session.expire_all()
    assert [version.version_num for version in db_session.get(Agreement, agreement["id"]).versions] == [1]


@pytest.mark.anyio("asyncio")
async def test_withdrawn_agreement_stays_closed_after_decline_attempt(
    client, supporter_headers, coordinator_headers, care_ids
):
    agreement = await _create_agreement(client, coordinator_headers, care_ids)
    await client.post(f"/agreements/{agreement['id']}/withdraw", headers=coordinator_headers)
    await client.post(f"/agreements/{agreement['id']}/decline", headers=supporter_headers)

    response = await client.post(
        f"/agreements/{agreement['id']}/propose",
        json={"fields": {"title": "Revived"}},
        headers=coordinator_headers,
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "AGREEMENT_WITHDRAWN"


@pytest.mark.anyio("asyncio")
async def test_supporter_cannot_withdraw(client, supporter_headers, care_ids):
    agreement = await _create_agreement(client, supporter_headers, care_ids)

    response = await client.post(f"/agreements/{agreement['id']}/withdraw", headers=supporter_headers)

    assert response.status_code == 403


@pytest.mark.anyio("asyncio")
async def test_propose_reopens_declined_agreement(
    client, supporter_headers, coordinator_headers, care_ids, db_session
):
    agreement = await _create_agreement(client, supporter_headers, care_ids)
    await client.post(f"/agreements/{agreement['id']}/decline", headers=supporter_headers)

    response = await client.post(
        f"/agreements/{agreement['id']}/propose",
        json={"fields": {"title": "Fortnightly visits"}},
        headers=coordinator_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["agreement"]["status"] == "proposed"
    assert body["agreement"]["title"] == "Fortnightly visits"
    alert = _alert(db_session, body["alert"])
    assert alert.type == "agreement_updated"
    assert alert.severity == "tier3"
    assert alert.title == "New proposal on: Fortnightly visits"
    assert alert.source_table == "agreements"


@pytest.mark.anyio("asyncio")
async def test_second_proposal_is_deduplicated(client, coordinator_headers, care_ids):
    agreement = await _create_agreement(client, coordinator_headers, care_ids)
    url = f"/agreements/{agreement['id']}/propose"

    first = await client.post(url, json={"fields": {"title": "v2"}}, headers=coordinator_headers)
    second = await client.post(url, json={"fields": {"title": "v3"}}, headers=coordinator_headers)

    assert first.json()["alert"]["inserted"] is True
    assert second.json()["alert"] == {"skipped": True, "reason": "duplicate_open", "details": None}
    assert [version["version_num"] for version in second.json()["agreement"]["versions"]] == [1, 2, 3]


@pytest.mark.anyio("asyncio")
async def test_withdrawn_agreement_rejects_proposals(client, coordinator_headers, care_ids):
    agreement = await _create_agreement(client, coordinator_headers, care_ids)
    await client.post(f"/agreements/{agreement['id']}/withdraw", headers=coordinator_headers)

    response = await client.post(
        f"/agreements/{agreement['id']}/propose",
        json={"fields": {"title": "Try again"}},
        headers=coordinator_headers,
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "AGREEMENT_WITHDRAWN"


@pytest.mark.anyio("asyncio")
async def test_unknown_agreement_returns_404(client, supporter_headers):
    response = await client.post("/agreements/missing/decline", headers=supporter_headers)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "AGREEMENT_NOT_FOUND"
