"""
Community and event endpoint tests.
"""

import pytest


@pytest.mark.asyncio
async def test_create_community_makes_creator_moderator(client, register):
    headers, user_id = await register("Alice")

    response = await client.post("/v1/communities", json={
        "name": "  Hostel Block C ",
        "description": "Flatmates sharing groceries and trips",
        "type": "chillout",
    }, headers=headers)

    assert response.status_code == 201
    community = response.json()
    assert community["name"] == "Hostel Block C"
    assert community["creator_id"] == user_id
    assert len(community["code"]) == 6
    assert community["code"].isupper() or community["code"].isdigit()

    detail = await client.get(f"/v1/communities/{community['id']}", headers=headers)
    members = detail.json()["memberships"]
    assert [(m["user"]["id"], m["is_moderator"]) for m in members] == [(user_id, True)]


@pytest.mark.asyncio
async def test_join_by_code_is_case_insensitive(client, trio, register):
    headers, _ = await register("Dave")

    response = await client.post("/v1/communities/join", json={"code": trio["code"].lower()}, headers=headers)

    assert response.status_code == 200
    assert response.json()["id"] == trio["community_id"]


@pytest.mark.asyncio
async def test_join_errors(client, trio):
    bob_headers, _ = trio["bob"]

    again = await client.post("/v1/communities/join", json={"code": trio["code"]}, headers=bob_headers)
    unknown = await client.post("/v1/communities/join", json={"code": "ZZZZZZ"}, headers=bob_headers)

    assert again.status_code == 400
    assert again.json()["message"] == "Already a member"
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_list_my_communities(client, trio, register):
    bob_headers, _ = trio["bob"]
    stranger_headers, _ = await register("Dave")

    mine = await client.get("/v1/communities/mine", headers=bob_headers)
    none = await client.get("/v1/communities/mine", headers=stranger_headers)

    assert [c["id"] for c in mine.json()] == [trio["community_id"]]
    assert none.json() == []


@pytest.mark.asyncio
async def test_details_are_members_only(client, trio, register):
    stranger_headers, _ = await register("Dave")
    alice_headers, _ = trio["alice"]

    forbidden = await client.get(f"/v1/communities/{trio['community_id']}", headers=stranger_headers)
    missing = await client.get("/v1/communities/999", headers=alice_headers)

    assert forbidden.status_code == 403
    assert forbidden.json()["error_code"] == "ERR_PERM_001"
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_leave_community(client, trio):
    alice_headers, _ = trio["alice"]
    carol_headers, _ = trio["carol"]

    creator = await client.delete(f"/v1/communities/{trio['community_id']}/leave", headers=alice_headers)
    member = await client.delete(f"/v1/communities/{trio['community_id']}/leave", headers=carol_headers)

    assert creator.status_code == 400
    assert creator.json()["message"] == "Creator cannot leave the community"
    assert member.status_code == 200

    listed = await client.get("/v1/expenses", params={"community_id": trio["community_id"]}, headers=carol_headers)
    assert listed.status_code == 403


@pytest.mark.asyncio
async def test_events_are_listed_by_date(client, trio):
    bob_headers, _ = trio["bob"]
    payload = {"community_id": trio["community_id"], "description": "Planned by the block committee"}

    late = await client.post("/v1/events", json={
        **payload, "title": "Diwali dinner", "date": "2026-11-08T19:00:00Z",
    }, headers=bob_headers)
    early = await client.post("/v1/events", json={
        **payload, "title": "Movie night", "date": "2026-10-30T21:00:00Z", "location": "Common room",
    }, headers=bob_headers)

    assert late.status_code == 201
    assert early.json()["expense_ids"] == []
    assert early.json()["created_by_id"] == trio["bob"][1]

    listed = await client.get(f"/v1/events/community/{trio['community_id']}", headers=bob_headers)
    assert [e["title"] for e in listed.json()] == ["Movie night", "Diwali dinner"]


@pytest.mark.asyncio
async def test_event_validation_and_access(client, trio, register):
    alice_headers, _ = trio["alice"]
    stranger_headers, _ = await register("Dave")

    backwards = await client.post("/v1/events", json={
        "community_id": trio["community_id"],
        "title": "Trek",
        "description": "Ends before it starts somehow",
        "date": "2026-11-14T06:00:00Z",
        "end_date": "2026-11-13T06:00:00Z",
    }, headers=alice_headers)
    assert backwards.status_code == 422

    created = await client.post("/v1/events", json={
        "community_id": trio["community_id"],
        "title": "Trek",
        "description": "Sunrise trek to Rajmachi fort",
        "date": "2026-11-14T06:00:00Z",
    }, headers=alice_headers)
    event_id = created.json()["id"]

    outsider_create = await client.post("/v1/events", json={
        "community_id": trio["community_id"],
        "title": "Crash the party",
        "description": "Not a member of this block",
        "date": "2026-11-14T06:00:00Z",
    }, headers=stranger_headers)
    outsider_view = await client.get(f"/v1/events/{event_id}", headers=stranger_headers)
    missing = await client.get("/v1/events/999", headers=alice_headers)

    assert outsider_create.status_code == 403
    assert outsider_view.status_code == 403
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_community_text_is_stripped_before_length_checks(client, register):
    headers, _ = await register("Alice")

    response = await client.post("/v1/communities", json={
        "name": "  a  ",
        "description": "          short     ",
        "type": "academic",
    }, headers=headers)

    assert response.status_code == 422
    fields = {tuple(err["loc"])[-1] for err in response.json()["details"]["errors"]}
    assert fields == {"name", "description"}


@pytest.mark.asyncio
async def test_moderator_updates_settings(client, trio, db_session):
    from batchhub.app.services.audit import get_audit_trail, AuditAction

    alice_headers, _ = trio["alice"]
    url = f"/v1/communities/{trio['community_id']}/settings"

    response = await client.put(url, json={"is_private": True}, headers=alice_headers)

    assert response.status_code == 200
    assert response.json()["is_private"] is True
    assert response.json()["allow_uploads"] is True

    response = await client.put(url, json={"allow_uploads": False}, headers=alice_headers)
    assert (response.json()["is_private"], response.json()["allow_uploads"]) == (True, False)

    trail = await get_audit_trail(db_session, action=AuditAction.COMMUNITY_SETTINGS_UPDATED)
    assert [row.meta_data for row in trail] == [{"allow_uploads": False}, {"is_private": True}]


@pytest.mark.asyncio
async def test_settings_are_moderator_only(client, trio, register):
    bob_headers, _ = trio["bob"]
    alice_headers, _ = trio["alice"]
    stranger_headers, _ = await register("Dave")
    url = f"/v1/communities/{trio['community_id']}/settings"

    member = await client.put(url, json={"is_private": True}, headers=bob_headers)
    outsider = await client.put(url, json={"is_private": True}, headers=stranger_headers)
    empty = await client.put(url, json={}, headers=alice_headers)

    assert member.status_code == 403
    assert member.json()["message"] == "Only moderators can update settings"
    assert outsider.status_code == 403
    assert empty.status_code == 422

    detail = await client.get(f"/v1/communities/{trio['community_id']}", headers=alice_headers)
    assert detail.json()["is_private"] is False


async def create_trek(client, trio, **extra):
    alice_headers, _ = trio["alice"]
    payload = {
        "community_id": trio["community_id"],
        "title": "Trek",
        "description": "Sunrise trek to Rajmachi fort",
        "date": "2026-11-14T06:00:00Z",
    }
    payload.update(extra)
    return await client.post("/v1/events", json=payload, headers=alice_headers)


@pytest.mark.asyncio
async def test_event_accepts_mixed_timezone_styles(client, trio):
    forward = await create_trek(client, trio, date="2026-11-01T09:00:00Z", end_date="2026-11-02T09:00:00")
    backward = await create_trek(client, trio, date="2026-11-02T09:00:00", end_date="2026-11-01T09:00:00+00:00")

    assert forward.status_code == 201
    assert backward.status_code == 422


@pytest.mark.asyncio
async def test_attendance(client, trio, register):
    created = await create_trek(client, trio)
    event_id = created.json()["id"]
    alice_id = trio["alice"][1]
    bob_headers, bob_id = trio["bob"]
    stranger_headers, _ = await register("Dave")

    assert created.json()["attendees"] == [{"user_id": alice_id, "status": "going"}]

    first = await client.post(f"/v1/events/{event_id}/attendance", json={"status": "maybe"}, headers=bob_headers)
    second = await client.post(f"/v1/events/{event_id}/attendance", json={"status": "not_going"}, headers=bob_headers)
    invalid = await client.post(f"/v1/events/{event_id}/attendance", json={"status": "sleeping"}, headers=bob_headers)
    outsider = await client.post(f"/v1/events/{event_id}/attendance", json={"status": "going"}, headers=stranger_headers)

    assert first.json() == {"user_id": bob_id, "status": "maybe"}
    assert second.status_code == 200
    assert invalid.status_code == 422
    assert outsider.status_code == 403

    detail = await client.get(f"/v1/events/{event_id}", headers=bob_headers)
    assert detail.json()["attendees"] == [
        {"user_id": alice_id, "status": "going"},
        {"user_id": bob_id, "status": "not_going"},
    ]


@pytest.mark.asyncio
async def test_todo_list(client, trio, register):
    created = await create_trek(client, trio)
    event_id = created.json()["id"]
    carol_headers, _ = trio["carol"]
    bob_id = trio["bob"][1]
    _, stranger_id = await register("Dave")

    first = await client.post(f"/v1/events/{event_id}/todo", json={"task": "Book the bus", "assigned_to_id": bob_id}, headers=carol_headers)
    listed = await client.post(f"/v1/events/{event_id}/todo", json={"task": "  Buy snacks "}, headers=carol_headers)
    foreign = await client.post(f"/v1/events/{event_id}/todo", json={"task": "Crash", "assigned_to_id": stranger_id}, headers=carol_headers)

    assert first.status_code == 200
    assert listed.status_code == 200
    todos = listed.json()
    assert [(t["task"], t["assigned_to_id"], t["completed"]) for t in todos] == [
        ("Book the bus", bob_id, False),
        ("Buy snacks", None, False),
    ]
    assert foreign.status_code == 400
    assert foreign.json()["details"]["errors"][0]["field"] == "assigned_to_id"

    todo_url = f"/v1/events/{event_id}/todo/{todos[0]['id']}"
    done = await client.put(todo_url, headers=carol_headers)
    undone = await client.put(todo_url, headers=carol_headers)
    missing = await client.put(f"/v1/events/{event_id}/todo/999", headers=carol_headers)

    assert done.json()["completed"] is True
    assert undone.json()["completed"] is False
    assert missing.status_code == 404
