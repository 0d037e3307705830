"""任务 HTTP API 测试

测试内容：
1. 鉴权：Bearer 头 / token cookie / 缺失 / 无效
2. CRUD 与状态码、统一错误结构
3. 列表筛选参数、Dashboard、用户列表
4. 变更推送到已连接的 LiveHub 连接
"""

from datetime import UTC, datetime, timedelta

from httpx import AsyncClient


def _body(**overrides) -> dict:
    data = {
        "title": "API task",
        "description": "Created over HTTP",
        "dueDate": (datetime.now(UTC) + timedelta(days=1)).isoformat(),
        "priority": "High",
    }
    data.update(overrides)
    return data


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestAuthentication:
    """请求鉴权"""

    async def test_missing_token_returns_401(self, client: AsyncClient):
        resp = await client.get("/api/tasks")
        assert resp.status_code == 401
        assert resp.json() == {
            "error": {"code": "UNAUTHENTICATED", "message": "Authentication required"}
        }

    async def test_invalid_token_returns_401(self, client: AsyncClient, alice, make_token):
        token = make_token(alice.user_id, secret="another-secret")
        resp = await client.get("/api/tasks", headers=_auth(token))
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Invalid token"

    async def test_expired_token_returns_401(self, client: AsyncClient, alice, make_token):
        token = make_token(alice.user_id, expires_in=timedelta(seconds=-10))
        resp = await client.get("/api/tasks", headers=_auth(token))
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Token has expired"

    async def test_malformed_authorization_header(self, client: AsyncClient):
        resp = await client.get("/api/tasks", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401

    async def test_token_cookie_accepted(self, client: AsyncClient, alice, make_token):
        client.cookies.set("token", make_token(alice.user_id))
        resp = await client.get("/api/tasks")
        assert resp.status_code == 200
        assert resp.json() == []

    async def test_sub_claim_fallback(self, client: AsyncClient, alice, make_token):
        token = make_token(alice.user_id, claim="sub")
        resp = await client.post("/api/tasks", json=_body(), headers=_auth(token))
        assert resp.status_code == 201
        assert resp.json()["creatorId"] == alice.user_id


class TestTaskCrud:
    """任务 CRUD"""

    async def test_create_returns_201_with_camel_case_task(
        self, client: AsyncClient, alice, bob, make_token
    ):
        resp = await client.post(
            "/api/tasks",
            json=_body(assignedToId=bob.user_id),
            headers=_auth(make_token(alice.user_id)),
        )

        assert resp.status_code == 201
        task = resp.json()
        assert len(task["id"]) == 26
        assert task["status"] == "ToDo"
        assert task["priority"] == "High"
        assert task["creator"]["name"] == "Alice"
        assert task["assignedTo"]["id"] == bob.user_id
        assert "X-Request-ID" in resp.headers

    async def test_create_validation_error(self, client: AsyncClient, alice, make_token):
        resp = await client.post(
            "/api/tasks",
            json=_body(priority="Critical"),
            headers=_auth(make_token(alice.user_id)),
        )
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["field"] == "priority"

    async def test_create_with_unknown_assignee(self, client: AsyncClient, alice, make_token):
        resp = await client.post(
            "/api/tasks",
            json=_body(assignedToId="ghost"),
            headers=_auth(make_token(alice.user_id)),
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == {
            "code": "VALIDATION_ERROR",
            "message": "Assigned user not found",
            "field": "assignedToId",
        }

    async def test_non_json_body_rejected(self, client: AsyncClient, alice, make_token):
        headers = _auth(make_token(alice.user_id))
        resp = await client.post(
            "/api/tasks",
            content=b"not json",
            headers={**headers, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400

        resp = await client.post("/api/tasks", json=["a", "list"], headers=headers)
        assert resp.status_code == 400

    async def test_get_detail_with_activities(self, client: AsyncClient, alice, make_token):
        headers = _auth(make_token(alice.user_id))
        task_id = (await client.post("/api/tasks", json=_body(), headers=headers)).json()["id"]
        await client.put(f"/api/tasks/{task_id}", json={"status": "Review"}, headers=headers)

        resp = await client.get(f"/api/tasks/{task_id}", headers=headers)

        assert resp.status_code == 200
        detail = resp.json()
        assert detail["task"]["status"] == "Review"
        assert [a["action"] for a in detail["activities"]] == ["TASK_UPDATED", "TASK_CREATED"]
        assert detail["activities"][0]["details"] == {
            "status": {"from": "ToDo", "to": "Review"}
        }
        assert detail["activities"][0]["user"]["name"] == "Alice"

    async def test_get_missing_task_returns_404(self, client: AsyncClient, alice, make_token):
        resp = await client.get(
            "/api/tasks/01JZZZZZZZZZZZZZZZZZZZZZZZ", headers=_auth(make_token(alice.user_id))
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == {"code": "TASK_NOT_FOUND", "message": "Task not found"}

    async def test_update_partial_and_clear_assignee(
        self, client: AsyncClient, alice, bob, make_token
    ):
        headers = _auth(make_token(alice.user_id))
        created = await client.post(
            "/api/tasks", json=_body(assignedToId=bob.user_id), headers=headers
        )
        task_id = created.json()["id"]

        resp = await client.put(
            f"/api/tasks/{task_id}", json={"assignedToId": None}, headers=headers
        )

        assert resp.status_code == 200
        task = resp.json()
        assert task["assignedToId"] is None
        assert task["title"] == "API task"

    async def test_update_null_title_rejected(self, client: AsyncClient, alice, make_token):
        headers = _auth(make_token(alice.user_id))
        task_id = (await client.post("/api/tasks", json=_body(), headers=headers)).json()["id"]

        resp = await client.put(f"/api/tasks/{task_id}", json={"title": None}, headers=headers)

        assert resp.status_code == 400
        assert resp.json()["error"]["field"] == "title"

    async def test_delete_by_creator(self, client: AsyncClient, alice, make_token):
        headers = _auth(make_token(alice.user_id))
        task_id = (await client.post("/api/tasks", json=_body(), headers=headers)).json()["id"]

        resp = await client.delete(f"/api/tasks/{task_id}", headers=headers)
        assert resp.status_code == 204

        assert (await client.get(f"/api/tasks/{task_id}", headers=headers)).status_code == 404
        assert (await client.delete(f"/api/tasks/{task_id}", headers=headers)).status_code == 404

    async def test_delete_by_non_creator_returns_403(
        self, client: AsyncClient, alice, bob, make_token
    ):
        task_id = (
            await client.post(
                "/api/tasks", json=_body(), headers=_auth(make_token(alice.user_id))
            )
        ).json()["id"]

        resp = await client.delete(f"/api/tasks/{task_id}", headers=_auth(make_token(bob.user_id)))

        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"


class TestListingAndViews:
    """列表、Dashboard、用户列表"""

    async def test_list_with_filters(self, client: AsyncClient, alice, bob, make_token):
        alice_headers = _auth(make_token(alice.user_id))
        await client.post("/api/tasks", json=_body(priority="Low"), headers=alice_headers)
        await client.post(
            "/api/tasks",
            json=_body(priority="Urgent", assignedToId=bob.user_id),
            headers=alice_headers,
        )

        resp = await client.get(
            "/api/tasks",
            params={"assignedTo": "others", "sortBy": "priority", "sortOrder": "desc"},
            headers=alice_headers,
        )
        assert resp.status_code == 200
        assert [t["priority"] for t in resp.json()] == ["Urgent"]

        resp = await client.get(
            "/api/tasks", params={"sortBy": "priority"}, headers=alice_headers
        )
        assert [t["priority"] for t in resp.json()] == ["Low", "Urgent"]

        bob_tasks = await client.get("/api/tasks", headers=_auth(make_token(bob.user_id)))
        assert len(bob_tasks.json()) == 1

    async def test_list_invalid_filter(self, client: AsyncClient, alice, make_token):
        resp = await client.get(
            "/api/tasks", params={"status": "Done"}, headers=_auth(make_token(alice.user_id))
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["field"] == "status"

    async def test_dashboard(self, client: AsyncClient, alice, make_token):
        headers = _auth(make_token(alice.user_id))
        yesterday = (datetime.now(UTC) - timedelta(days=1)).isoformat()
        await client.post(
            "/api/tasks",
            json=_body(dueDate=yesterday, assignedToId=alice.user_id),
            headers=headers,
        )

        resp = await client.get("/api/tasks/dashboard", headers=headers)

        assert resp.status_code == 200
        dashboard = resp.json()
        assert dashboard["totalAssigned"] == 1
        assert dashboard["totalCreated"] == 1
        assert len(dashboard["overdueTasks"]) == 1
        assert dashboard["tasksByStatus"] == [{"status": "ToDo", "count": 1}]
        assert dashboard["tasksByPriority"] == [{"priority": "High", "count": 1}]

    async def test_users(self, client: AsyncClient, alice, bob, make_token):
        resp = await client.get("/api/tasks/users", headers=_auth(make_token(alice.user_id)))

        assert resp.status_code == 200
        assert [u["name"] for u in resp.json()] == ["Alice", "Bob"]
        assert set(resp.json()[0]) == {"id", "name", "email"}


class TestLiveFanOut:
    """HTTP 变更推送到实时连接"""

    async def test_mutations_reach_connected_clients(
        self, client: AsyncClient, test_app, alice, bob, make_token
    ):
        hub = test_app.state.live_hub
        bob_conn = hub.connect(bob.user_id)

        resp = await client.post(
            "/api/tasks",
            json=_body(title="Pair up", assignedToId=bob.user_id),
            headers=_auth(make_token(alice.user_id)),
        )
        task_id = resp.json()["id"]

        first = bob_conn.queue.get_nowait()
        second = bob_conn.queue.get_nowait()
        assert first.event == "task:created"
        assert first.data["id"] == task_id
        assert second.event == "notification:new"
        assert second.data == {
            "type": "TASK_ASSIGNED",
            "message": 'You\'ve been assigned to "Pair up"',
            "taskId": task_id,
        }
        assert bob_conn.queue.empty()
