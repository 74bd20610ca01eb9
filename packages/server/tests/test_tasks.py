"""
Integration tests for Task endpoints.

Tests cover:
- Creating the first task moves an ASSIGNED project to IN_PROGRESS
- Further tasks keep IN_PROGRESS and append order_index (max + 1)
- Only the assigned solver creates or edits tasks
- Direct status edits: CREATED -> IN_PROGRESS -> SUBMITTED only
- Listing access for buyer, solver and admin
"""

from __future__ import annotations

from structlog.testing import capture_logs

from marketplace_shared.schemas.common import Role


class TestCreateTask:
    async def test_scenario_task_creation(self, client, assigned_project, solver, get_project):
        pid = assigned_project["id"]
        assert assigned_project["status"] == "ASSIGNED"

        resp = await client.post(
            f"/api/projects/{pid}/tasks",
            json={"title": "Wireframes", "description": "Low-fi", "due_date": "2026-12-01T12:00:00Z"},
            headers=solver.headers,
        )
        assert resp.status_code == 201
        first = resp.json()["data"]
        assert first["status"] == "CREATED"
        assert first["order_index"] == 1
        assert first["submissions"] == []
        assert (await get_project(pid))["status"] == "IN_PROGRESS"

        resp = await client.post(f"/api/projects/{pid}/tasks", json={"title": "Build"}, headers=solver.headers)
        assert resp.status_code == 201
        assert resp.json()["data"]["order_index"] == first["order_index"] + 1
        assert (await get_project(pid))["status"] == "IN_PROGRESS"

    async def test_other_solver_forbidden(self, client, assigned_project, make_user):
        other = await make_user(Role.PROBLEM_SOLVER)
        resp = await client.post(
            f"/api/projects/{assigned_project['id']}/tasks", json={"title": "Sneaky"}, headers=other.headers
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "Only assigned solver can create tasks"

    async def test_buyer_cannot_create(self, client, assigned_project, buyer):
        resp = await client.post(
            f"/api/projects/{assigned_project['id']}/tasks", json={"title": "Mine"}, headers=buyer.headers
        )
        assert resp.status_code == 403

    async def test_task_on_unassigned_project(self, client, open_project, solver):
        resp = await client.post(
            f"/api/projects/{open_project['id']}/tasks", json={"title": "Early"}, headers=solver.headers
        )
        assert resp.status_code == 403

    async def test_task_on_submitted_project_reopens_it(
        self, client, assigned_project, add_task, submit_zip, get_project
    ):
        pid = assigned_project["id"]
        task = await add_task(pid)
        await submit_zip(pid, task["id"])
        assert (await get_project(pid))["status"] == "SUBMITTED"

        await add_task(pid, "Follow-up")
        assert (await get_project(pid))["status"] == "IN_PROGRESS"

    async def test_order_index_never_reused(self, client, assigned_project, add_task):
        pid = assigned_project["id"]
        indexes = [(await add_task(pid, f"t{i}"))["order_index"] for i in range(3)]
        assert indexes == [1, 2, 3]


class TestUpdateTask:
    async def test_forward_edits(self, client, assigned_project, add_task, solver, get_project):
        pid = assigned_project["id"]
        task = await add_task(pid)
        url = f"/api/projects/{pid}/tasks/{task['id']}"

        resp = await client.patch(url, json={"status": "IN_PROGRESS"}, headers=solver.headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "IN_PROGRESS"

        resp = await client.patch(url, json={"status": "SUBMITTED"}, headers=solver.headers)
        assert resp.status_code == 200
        # The only task is submitted, so the project follows
        assert (await get_project(pid))["status"] == "SUBMITTED"

    async def test_editing_only_task_to_submitted_submits_project(
        self, client, assigned_project, add_task, solver, get_project
    ):
        pid = assigned_project["id"]
        task = await add_task(pid)
        url = f"/api/projects/{pid}/tasks/{task['id']}"
        await client.patch(url, json={"status": "IN_PROGRESS"}, headers=solver.headers)
        assert (await get_project(pid))["status"] == "IN_PROGRESS"

        with capture_logs() as logs:
            resp = await client.patch(url, json={"status": "SUBMITTED"}, headers=solver.headers)
        assert resp.status_code == 200

        project = await get_project(pid)
        assert project["status"] == "SUBMITTED"
        assert project["tasks"][0]["status"] == "SUBMITTED"
        [propagated] = [e for e in logs if e["event"] == "project.status_propagated"]
        assert propagated["lifecycle_event"] == "ALL_TASKS_SUBMITTED"

    async def test_skip_is_rejected(self, client, assigned_project, add_task, solver):
        pid = assigned_project["id"]
        task = await add_task(pid)
        resp = await client.patch(
            f"/api/projects/{pid}/tasks/{task['id']}", json={"status": "SUBMITTED"}, headers=solver.headers
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid status transition from CREATED to SUBMITTED"

    async def test_cannot_complete_directly(self, client, assigned_project, add_task, submit_zip, solver):
        pid = assigned_project["id"]
        task = await add_task(pid)
        await submit_zip(pid, task["id"])
        resp = await client.patch(
            f"/api/projects/{pid}/tasks/{task['id']}", json={"status": "COMPLETED"}, headers=solver.headers
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid status transition from SUBMITTED to COMPLETED"

    async def test_edit_fields(self, client, assigned_project, add_task, solver):
        pid = assigned_project["id"]
        task = await add_task(pid)
        resp = await client.patch(
            f"/api/projects/{pid}/tasks/{task['id']}",
            json={"title": "Renamed", "description": "More detail"},
            headers=solver.headers,
        )
        data = resp.json()["data"]
        assert data["title"] == "Renamed"
        assert data["description"] == "More detail"
        assert data["status"] == "CREATED"

    async def test_other_solver_cannot_edit(self, client, assigned_project, add_task, make_user):
        pid = assigned_project["id"]
        task = await add_task(pid)
        other = await make_user(Role.PROBLEM_SOLVER)
        resp = await client.patch(
            f"/api/projects/{pid}/tasks/{task['id']}", json={"title": "x"}, headers=other.headers
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "Only assigned solver can update task"

    async def test_task_from_other_project_not_found(
        self, client, assigned_project, add_task, create_project, buyer, solver
    ):
        task = await add_task(assigned_project["id"])
        elsewhere = await create_project(buyer, "Elsewhere")
        resp = await client.patch(
            f"/api/projects/{elsewhere['id']}/tasks/{task['id']}", json={"title": "x"}, headers=solver.headers
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "Task not found"


class TestListTasks:
    async def test_participants_can_list(self, client, assigned_project, add_task, buyer, solver, admin):
        pid = assigned_project["id"]
        await add_task(pid, "b")
        for who in (buyer, solver, admin):
            resp = await client.get(f"/api/projects/{pid}/tasks", headers=who.headers)
            assert resp.status_code == 200
            assert [t["title"] for t in resp.json()["data"]] == ["b"]

    async def test_outsider_forbidden(self, client, assigned_project, make_user):
        outsider = await make_user(Role.PROBLEM_SOLVER)
        resp = await client.get(f"/api/projects/{assigned_project['id']}/tasks", headers=outsider.headers)
        assert resp.status_code == 403
