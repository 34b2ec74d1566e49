"""
API tests for task routes.

These tests verify:
1. Organization checks on the path and on task ids
2. Role checks per route
3. The response envelope and camelCase bodies
4. Side effects visible through other routes
"""

import pytest

from tests.conftest import auth_headers

API = "/api/v1"


def tasks_url(org_id, suffix="") -> str:
    return f"{API}/orgs/{org_id}/tasks{suffix}"


async def create_task(client, user, **body) -> dict:
    body.setdefault("title", "Write release notes")
    response = await client.post(tasks_url(user.org_id), json=body, headers=auth_headers(user))
    assert response.status_code == 201, response.text
    return response.json()["data"]


# =============================================================================
# TEST: CREATE & READ
# =============================================================================


class TestCreateAndRead:

    async def test_create_task(self, client, member):
        data = await create_task(
            client, member, title="  Write docs  ", priority="high", tags=["docs"]
        )

        assert data["title"] == "Write docs"
        assert data["status"] == "todo"
        assert data["priority"] == "high"
        assert data["tags"] == ["docs"]
        assert data["createdBy"] == str(member.id)
        assert data["orgId"] == str(member.org_id)
        assert data["assigneeId"] is None

    async def test_missing_title(self, client, member):
        response = await client.post(
            tasks_url(member.org_id), json={"priority": "low"}, headers=auth_headers(member)
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Title is required"

    async def test_title_too_long(self, client, member):
        response = await client.post(
            tasks_url(member.org_id), json={"title": "x" * 201}, headers=auth_headers(member)
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("title")

    async def test_invalid_status_value(self, client, member):
        response = await client.post(
            tasks_url(member.org_id),
            json={"title": "Bad", "status": "blocked"},
            headers=auth_headers(member),
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_get_and_list(self, client, manager, member):
        own = await create_task(client, member, title="Mine")
        await create_task(client, manager, title="Not mine")

        got = await client.get(tasks_url(member.org_id, f"/{own['id']}"), headers=auth_headers(member))
        assert got.json()["data"]["title"] == "Mine"

        listed = await client.get(tasks_url(member.org_id), headers=auth_headers(member))
        payload = listed.json()
        assert [t["title"] for t in payload["data"]] == ["Mine"]
        assert payload["meta"] == {"page": 1, "limit": 20, "total": 1}

        everything = await client.get(tasks_url(manager.org_id), headers=auth_headers(manager))
        assert everything.json()["meta"]["total"] == 2

    async def test_list_filters(self, client, manager):
        await create_task(client, manager, title="Fix login", status="done")
        await create_task(client, manager, title="Fix logout", priority="critical")
        await create_task(client, manager, title="Write tests")

        by_status = await client.get(
            tasks_url(manager.org_id), params={"status": "done"}, headers=auth_headers(manager)
        )
        assert [t["title"] for t in by_status.json()["data"]] == ["Fix login"]

        by_search = await client.get(
            tasks_url(manager.org_id), params={"search": "fix"}, headers=auth_headers(manager)
        )
        assert {t["title"] for t in by_search.json()["data"]} == {"Fix login", "Fix logout"}


# =============================================================================
# TEST: ORGANIZATION BOUNDARY
# =============================================================================


class TestOrganizationBoundary:

    async def test_foreign_org_in_path_is_forbidden(self, client, member, outsider):
        response = await client.get(tasks_url(member.org_id), headers=auth_headers(outsider))

        assert response.status_code == 403
        assert response.json()["error"] == "Access denied to this organization"

    async def test_foreign_task_id_looks_missing(self, client, member, outsider):
        task = await create_task(client, member)

        response = await client.get(
            tasks_url(outsider.org_id, f"/{task['id']}"), headers=auth_headers(outsider)
        )
        assert response.status_code == 404

        deleted = await client.delete(
            tasks_url(outsider.org_id, f"/{task['id']}"), headers=auth_headers(outsider)
        )
        assert deleted.status_code == 404

    async def test_malformed_org_id(self, client, member):
        response = await client.get(tasks_url("not-a-uuid"), headers=auth_headers(member))
        assert response.status_code == 400

    async def test_unauthenticated(self, client, member):
        response = await client.get(tasks_url(member.org_id))
        assert response.status_code == 401


# =============================================================================
# TEST: UPDATE, ASSIGN & DELETE
# =============================================================================


class TestMutations:

    async def test_partial_update(self, client, member):
        task = await create_task(client, member, description="Keep me")

        response = await client.put(
            tasks_url(member.org_id, f"/{task['id']}"),
            json={"status": "done"},
            headers=auth_headers(member),
        )

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["status"] == "done"
        assert data["completedAt"] is not None
        assert data["description"] == "Keep me"

    async def test_member_cannot_use_assign_route(self, client, member, second_member):
        task = await create_task(client, member)

        response = await client.put(
            tasks_url(member.org_id, f"/{task['id']}/assign"),
            json={"assigneeId": str(second_member.id)},
            headers=auth_headers(member),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Insufficient permissions"

    async def test_assign_notifies_assignee(self, client, manager, member):
        task = await create_task(client, manager)

        response = await client.put(
            tasks_url(manager.org_id, f"/{task['id']}/assign"),
            json={"assigneeId": str(member.id)},
            headers=auth_headers(manager),
        )
        assert response.json()["data"]["assigneeId"] == str(member.id)

        inbox = await client.get(f"{API}/notifications", headers=auth_headers(member))
        payload = inbox.json()
        assert [n["type"] for n in payload["data"]] == ["task_assigned"]
        assert payload["data"][0]["taskId"] == task["id"]
        assert payload["meta"]["unreadCount"] == 1

        activity = await client.get(
            tasks_url(manager.org_id, f"/{task['id']}/activity"), headers=auth_headers(member)
        )
        assert [a["type"] for a in activity.json()["data"]] == ["assigned"]

    async def test_assign_to_outsider_is_rejected(self, client, manager, outsider):
        task = await create_task(client, manager)

        response = await client.put(
            tasks_url(manager.org_id, f"/{task['id']}/assign"),
            json={"assigneeId": str(outsider.id)},
            headers=auth_headers(manager),
        )

        assert response.status_code == 400

    async def test_delete_own_task(self, client, member):
        task = await create_task(client, member)
        url = tasks_url(member.org_id, f"/{task['id']}")

        response = await client.delete(url, headers=auth_headers(member))
        assert response.json()["data"] == {"message": "Task deleted"}

        missing = await client.get(url, headers=auth_headers(member))
        assert missing.status_code == 404

    async def test_manager_cannot_delete_others_task(self, client, manager, member):
        task = await create_task(client, member)

        response = await client.delete(
            tasks_url(member.org_id, f"/{task['id']}"), headers=auth_headers(manager)
        )
        assert response.status_code == 403


# =============================================================================
# TEST: COMMENTS
# =============================================================================


class TestCommentRoutes:

    async def test_comment_with_mention(self, client, manager, member):
        task = await create_task(client, manager)

        response = await client.post(
            tasks_url(manager.org_id, f"/{task['id']}/comments"),
            json={"body": f"Can you check this, @{member.email}?"},
            headers=auth_headers(manager),
        )

        assert response.status_code == 201
        comment = response.json()["data"]
        assert comment["type"] == "comment"
        assert comment["mentions"] == [str(member.id)]

        inbox = await client.get(f"{API}/notifications", headers=auth_headers(member))
        assert [n["type"] for n in inbox.json()["data"]] == ["task_mentioned"]

        comments = await client.get(
            tasks_url(manager.org_id, f"/{task['id']}/comments"), headers=auth_headers(manager)
        )
        assert [c["commentBody"] for c in comments.json()["data"]] == [
            f"Can you check this, @{member.email}?"
        ]

    @pytest.mark.parametrize("body", [{}, {"body": ""}, {"body": "   "}])
    async def test_empty_comment(self, client, member, body):
        task = await create_task(client, member)

        response = await client.post(
            tasks_url(member.org_id, f"/{task['id']}/comments"),
            json=body,
            headers=auth_headers(member),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Comment body is required"


# =============================================================================
# TEST: TEMPLATES
# =============================================================================


class TestFromTemplate:

    async def test_create_from_template(self, client, admin, member):
        created = await client.post(
            f"{API}/orgs/{admin.org_id}/templates",
            json={
                "name": "Bug triage",
                "title": "Triage incoming bugs",
                "priority": "high",
                "assigneeId": str(member.id),
            },
            headers=auth_headers(admin),
        )
        assert created.status_code == 201
        template_id = created.json()["data"]["id"]

        response = await client.post(
            tasks_url(member.org_id, "/from-template"),
            json={"templateId": template_id},
            headers=auth_headers(member),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["title"] == "Triage incoming bugs"
        assert data["priority"] == "high"
        assert data["assigneeId"] == str(member.id)
        assert data["templateId"] == template_id
