"""
Integration tests for Project endpoints.

Tests cover:
- Creation by buyers/admins (solvers refused)
- Role-filtered listing with request/task counts
- Detail access gate and enrichment (solver track record)
- Solver assignment: ownership, state precondition, request verdicts
- Statuses change only as a side effect of operations
"""

from __future__ import annotations

import uuid

import pytest
from sqlmodel import select

from app.models.project import Project
from app.models.project_request import ProjectRequest
from marketplace_shared.schemas.common import Role


class TestCreateProject:
    async def test_buyer_creates_open_project(self, client, buyer):
        resp = await client.post(
            "/api/projects", json={"title": "Logo", "description": "Vector"}, headers=buyer.headers
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["status"] == "OPEN"
        assert data["buyer_id"] == buyer.id
        assert data["solver_id"] is None
        assert data["buyer"]["name"] == "Bea Buyer"
        assert data["request_count"] == 0
        assert data["task_count"] == 0

    async def test_admin_can_create(self, client, admin):
        resp = await client.post("/api/projects", json={"title": "Ops"}, headers=admin.headers)
        assert resp.status_code == 201

    async def test_solver_cannot_create(self, client, solver):
        resp = await client.post("/api/projects", json={"title": "Nope"}, headers=solver.headers)
        assert resp.status_code == 403
        assert resp.json()["code"] == "FORBIDDEN"

    async def test_title_required(self, client, buyer):
        resp = await client.post("/api/projects", json={"title": ""}, headers=buyer.headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"


class TestListProjects:
    async def test_visibility_by_role(self, client, make_user, create_project, admin):
        b1 = await make_user(Role.BUYER)
        b2 = await make_user(Role.BUYER)
        s1 = await make_user(Role.PROBLEM_SOLVER)
        s2 = await make_user(Role.PROBLEM_SOLVER)

        p1 = await create_project(b1, "P1")
        p2 = await create_project(b2, "P2")
        p3 = await create_project(b2, "P3")

        # s1 requests P2 and gets assigned; P3 is then assigned to s2
        await client.post(f"/api/projects/{p2['id']}/requests", json={}, headers=s1.headers)
        await client.put(
            f"/api/projects/{p2['id']}/assign", json={"solver_id": s1.id}, headers=b2.headers
        )
        await client.post(f"/api/projects/{p3['id']}/requests", json={}, headers=s2.headers)
        await client.put(
            f"/api/projects/{p3['id']}/assign", json={"solver_id": s2.id}, headers=b2.headers
        )

        async def ids(user):
            resp = await client.get("/api/projects", headers=user.headers)
            assert resp.status_code == 200
            return {p["id"] for p in resp.json()["data"]}

        assert await ids(admin) == {p1["id"], p2["id"], p3["id"]}
        assert await ids(b1) == {p1["id"]}
        assert await ids(b2) == {p2["id"], p3["id"]}
        # open P1 plus own assignment P2; P3 belongs to someone else
        assert await ids(s1) == {p1["id"], p2["id"]}
        assert await ids(s2) == {p1["id"], p3["id"]}

    async def test_requested_project_still_listed_for_other_solvers(
        self, client, make_user, open_project
    ):
        s1 = await make_user(Role.PROBLEM_SOLVER)
        s2 = await make_user(Role.PROBLEM_SOLVER)
        await client.post(f"/api/projects/{open_project['id']}/requests", json={}, headers=s1.headers)
        resp = await client.get("/api/projects", headers=s2.headers)
        [item] = resp.json()["data"]
        assert item["status"] == "REQUESTED"
        assert item["request_count"] == 1

    async def test_counts(self, client, assigned_project, add_task, buyer):
        await add_task(assigned_project["id"])
        await add_task(assigned_project["id"])
        resp = await client.get("/api/projects", headers=buyer.headers)
        [item] = resp.json()["data"]
        assert item["task_count"] == 2
        assert item["request_count"] == 1
        assert item["solver"]["name"] == "Sol Solver"


class TestProjectDetail:
    async def test_open_project_visible_to_any_solver(self, client, open_project, solver):
        resp = await client.get(f"/api/projects/{open_project['id']}", headers=solver.headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["requests"] == []
        assert data["tasks"] == []

    async def test_other_buyer_forbidden(self, client, open_project, make_user):
        other = await make_user(Role.BUYER)
        resp = await client.get(f"/api/projects/{open_project['id']}", headers=other.headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "Access denied"

    async def test_assigned_project_hidden_from_uninvolved_solver(
        self, client, assigned_project, make_user
    ):
        outsider = await make_user(Role.PROBLEM_SOLVER)
        resp = await client.get(f"/api/projects/{assigned_project['id']}", headers=outsider.headers)
        assert resp.status_code == 403

    async def test_rejected_requester_keeps_read_access(
        self, client, open_project, buyer, make_user
    ):
        s1 = await make_user(Role.PROBLEM_SOLVER)
        s2 = await make_user(Role.PROBLEM_SOLVER)
        pid = open_project["id"]
        await client.post(f"/api/projects/{pid}/requests", json={}, headers=s1.headers)
        await client.post(f"/api/projects/{pid}/requests", json={}, headers=s2.headers)
        await client.put(f"/api/projects/{pid}/assign", json={"solver_id": s1.id}, headers=buyer.headers)
        resp = await client.get(f"/api/projects/{pid}", headers=s2.headers)
        assert resp.status_code == 200

    async def test_unknown_project(self, client, buyer):
        resp = await client.get(f"/api/projects/{uuid.uuid4()}", headers=buyer.headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "Project not found"

    async def test_requests_carry_solver_track_record(
        self, client, buyer, solver, assigned_project, add_task, submit_zip, create_project
    ):
        # Complete the assigned project with two tasks
        pid = assigned_project["id"]
        tasks = [await add_task(pid, "one"), await add_task(pid, "two")]
        for task in tasks:
            sub = (await submit_zip(pid, task["id"])).json()["data"]
            resp = await client.put(
                f"/api/projects/{pid}/tasks/{task['id']}/submissions/{sub['id']}/review",
                json={"status": "ACCEPTED"},
                headers=buyer.headers,
            )
            assert resp.status_code == 200

        fresh = await create_project(buyer, "Second job")
        await client.post(f"/api/projects/{fresh['id']}/requests", json={"message": "Me again"}, headers=solver.headers)

        resp = await client.get(f"/api/projects/{fresh['id']}", headers=buyer.headers)
        [req] = resp.json()["data"]["requests"]
        assert req["message"] == "Me again"
        assert req["user"]["completed_projects"] == 1
        assert req["user"]["completed_tasks"] == 2

    async def test_tasks_ordered_with_submissions(self, client, assigned_project, add_task, submit_zip, get_project):
        pid = assigned_project["id"]
        t1 = await add_task(pid, "first")
        await add_task(pid, "second")
        await submit_zip(pid, t1["id"])

        data = await get_project(pid)
        assert [t["title"] for t in data["tasks"]] == ["first", "second"]
        assert [t["order_index"] for t in data["tasks"]] == [1, 2]
        assert len(data["tasks"][0]["submissions"]) == 1
        assert data["solver"]["verified"] is False


class TestAssignSolver:
    async def test_scenario_two_requests_then_assign(self, client, open_project, buyer, make_user, db):
        """B creates, S1 and S2 request, B assigns S1."""
        s1 = await make_user(Role.PROBLEM_SOLVER)
        s2 = await make_user(Role.PROBLEM_SOLVER)
        pid = open_project["id"]

        r1 = await client.post(f"/api/projects/{pid}/requests", json={}, headers=s1.headers)
        assert r1.status_code == 201
        assert r1.json()["data"]["project"]["status"] == "REQUESTED"
        r2 = await client.post(f"/api/projects/{pid}/requests", json={}, headers=s2.headers)
        assert r2.status_code == 201

        resp = await client.put(
            f"/api/projects/{pid}/assign", json={"solver_id": s1.id}, headers=buyer.headers
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "ASSIGNED"
        assert data["solver_id"] == s1.id

        async with db.session() as session:
            result = await session.execute(
                select(ProjectRequest).where(ProjectRequest.project_id == uuid.UUID(pid))
            )
            verdicts = {str(r.user_id): r.status for r in result.scalars().all()}
        assert verdicts == {s1.id: "APPROVED", s2.id: "REJECTED"}

    async def test_only_owner_assigns(self, client, open_project, solver, make_user):
        await client.post(f"/api/projects/{open_project['id']}/requests", json={}, headers=solver.headers)
        other = await make_user(Role.BUYER)
        resp = await client.put(
            f"/api/projects/{open_project['id']}/assign",
            json={"solver_id": solver.id},
            headers=other.headers,
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "Only project owner can assign solver"

    async def test_admin_cannot_assign(self, client, open_project, solver, admin):
        await client.post(f"/api/projects/{open_project['id']}/requests", json={}, headers=solver.headers)
        resp = await client.put(
            f"/api/projects/{open_project['id']}/assign",
            json={"solver_id": solver.id},
            headers=admin.headers,
        )
        assert resp.status_code == 403

    async def test_requires_requested_status(self, client, open_project, buyer, solver):
        resp = await client.put(
            f"/api/projects/{open_project['id']}/assign",
            json={"solver_id": solver.id},
            headers=buyer.headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Project must be in REQUESTED state to assign solver"

    async def test_solver_without_request(self, client, open_project, buyer, solver, make_user):
        await client.post(f"/api/projects/{open_project['id']}/requests", json={}, headers=solver.headers)
        stranger = await make_user(Role.PROBLEM_SOLVER)
        resp = await client.put(
            f"/api/projects/{open_project['id']}/assign",
            json={"solver_id": stranger.id},
            headers=buyer.headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid solver or no pending request"

    async def test_second_assignment_fails_and_changes_nothing(
        self, client, assigned_project, buyer, solver, db
    ):
        resp = await client.put(
            f"/api/projects/{assigned_project['id']}/assign",
            json={"solver_id": solver.id},
            headers=buyer.headers,
        )
        assert resp.status_code == 400
        async with db.session() as session:
            project = await session.get(Project, uuid.UUID(assigned_project["id"]))
            assert project.status == "ASSIGNED"
            assert str(project.solver_id) == solver.id


class TestStatusOnlyMovesThroughOperations:
    @pytest.mark.parametrize("target", ["ASSIGNED", "SUBMITTED", "COMPLETED"])
    async def test_no_direct_status_endpoint(self, client, admin, open_project, get_project, target):
        pid = open_project["id"]
        resp = await client.post(
            f"/api/projects/{pid}/transition", json={"to_status": target}, headers=admin.headers
        )
        assert resp.status_code in (404, 405)
        assert (await get_project(pid))["status"] == "OPEN"

    async def test_status_field_ignored_on_create(self, client, buyer):
        resp = await client.post(
            "/api/projects", json={"title": "Sneaky", "status": "COMPLETED"}, headers=buyer.headers
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["status"] == "OPEN"

    async def test_assigned_project_always_has_its_solver(
        self, client, assigned_project, solver, get_project, add_task
    ):
        project = await get_project(assigned_project["id"])
        assert project["status"] == "ASSIGNED"
        assert project["solver_id"] == solver.id
        assert [r["status"] for r in project["requests"]] == ["APPROVED"]
        # and the solver can start work on it
        await add_task(assigned_project["id"])
        assert (await get_project(assigned_project["id"]))["status"] == "IN_PROGRESS"
