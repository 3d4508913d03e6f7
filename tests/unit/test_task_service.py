"""Tests for the task service."""

from datetime import date
from uuid import uuid4

import pytest

from app.api.schemas import (
    SubtaskCreateRequest,
    SubtaskUpdateRequest,
    TaskCreateRequest,
    TaskUpdateRequest,
)
from app.application.services import TaskService
from app.domain.exceptions import (
    CircularDependencyException,
    EntityNotFoundException,
    ValidationException,
)


@pytest.fixture
def task_service(fake_repos):
    return TaskService(task_repo=fake_repos.tasks, subtask_repo=fake_repos.subtasks)


def task_request(action: str, **kwargs) -> TaskCreateRequest:
    defaults = {
        "action_item": action,
        "owner": ["Alex"],
        "reported_date": date(2025, 9, 1),
        "target_date": date(2025, 9, 30),
    }
    defaults.update(kwargs)
    return TaskCreateRequest(**defaults)


class TestTasks:
    async def test_serial_numbers_increment(self, task_service):
        first = await task_service.create_task(task_request("First"))
        second = await task_service.create_task(task_request("Second"))

        assert (first.serial_no, second.serial_no) == (1, 2)
        assert second.status == "Not Started"

    async def test_unknown_dependency_rejected(self, task_service):
        with pytest.raises(ValidationException) as exc_info:
            await task_service.create_task(
                task_request("Orphan", dependencies=[uuid4()])
            )
        assert "missing" in exc_info.value.details

    async def test_partial_update(self, task_service):
        task = await task_service.create_task(task_request("First"))

        updated = await task_service.update_task(
            task.id, TaskUpdateRequest(status="Completed")
        )

        assert updated.status == "Completed"
        assert updated.action_item == "First"

    async def test_null_required_field_is_rejected(self, task_service, fake_repos):
        task = await task_service.create_task(task_request("First"))

        with pytest.raises(ValidationException) as exc_info:
            await task_service.update_task(task.id, TaskUpdateRequest(action_item=None))

        assert "action_item" in exc_info.value.details
        assert (await fake_repos.tasks.get_by_id(task.id)).action_item == "First"

    async def test_update_missing(self, task_service):
        with pytest.raises(EntityNotFoundException):
            await task_service.update_task(uuid4(), TaskUpdateRequest(status="Done"))

    async def test_delete_removes_subtasks_and_references(self, task_service, fake_repos):
        base = await task_service.create_task(task_request("Base"))
        dependent = await task_service.create_task(
            task_request("Dependent", dependencies=[base.id])
        )
        await task_service.add_subtask(base.id, SubtaskCreateRequest(title="Step"))

        await task_service.delete_task(base.id)

        assert await fake_repos.tasks.get_by_id(base.id) is None
        assert fake_repos.subtasks.items == {}
        assert (await task_service.get_task(dependent.id)).dependencies == []

    async def test_dependency_order(self, task_service):
        base = await task_service.create_task(task_request("Base"))
        dependent = await task_service.create_task(
            task_request("Dependent", dependencies=[base.id])
        )

        ordered = await task_service.list_tasks(dependency_order=True)

        assert [t.id for t in ordered] == [base.id, dependent.id]


class TestDependencies:
    async def test_replace_dependencies(self, task_service):
        a = await task_service.create_task(task_request("A"))
        b = await task_service.create_task(task_request("B"))
        c = await task_service.create_task(task_request("C", dependencies=[a.id]))

        updated = await task_service.update_dependencies(c.id, [b.id, b.id])

        assert updated.dependencies == [b.id]

    async def test_cycle_rejected(self, task_service):
        a = await task_service.create_task(task_request("A"))
        b = await task_service.create_task(task_request("B", dependencies=[a.id]))

        with pytest.raises(CircularDependencyException):
            await task_service.update_dependencies(a.id, [b.id])

        assert (await task_service.get_task(a.id)).dependencies == []

    async def test_self_dependency_rejected(self, task_service):
        a = await task_service.create_task(task_request("A"))
        with pytest.raises(CircularDependencyException):
            await task_service.update_dependencies(a.id, [a.id])

    async def test_graph_view(self, task_service):
        a = await task_service.create_task(task_request("A"))
        b = await task_service.create_task(task_request("B", dependencies=[a.id]))

        response = await task_service.dependency_graph(selected_task_id=b.id)

        assert len(response.graph.nodes) == 2
        assert len(response.graph.edges) == 1
        assert response.graph.edges[0].highlighted
        assert response.cycles == []


class TestImportAndFacets:
    async def test_import_csv(self, task_service):
        content = (
            "S.No,Owner,Action Item,Reported Date,Target Date,Status,Comments\n"
            "1,Alex;Sam,Configure SSO,02/Sep/25,30/Sep/25,In Progress,\n"
            "2,Priya,Data migration,03/Sep/25,10/Oct/25,Completed,Done\n"
        )

        response = await task_service.import_csv(content)

        assert response.imported == 2
        assert response.owners == ["Alex", "Priya", "Sam"]
        assert len(await task_service.list_tasks()) == 2

    async def test_facets(self, task_service):
        await task_service.create_task(task_request("A", category="Infra"))
        await task_service.create_task(
            task_request("B", owner=["Sam"], status="Completed")
        )
        await task_service.create_task(task_request("C", category="Infra"))

        facets = await task_service.facets()

        assert facets.categories == ["Infra"]
        assert facets.owners == ["Alex", "Sam"]
        assert facets.statuses == {"Not Started": 2, "Completed": 1}


class TestSubtasks:
    async def test_add_list_update_delete(self, task_service):
        task = await task_service.create_task(task_request("Parent"))
        first = await task_service.add_subtask(task.id, SubtaskCreateRequest(title="One"))
        second = await task_service.add_subtask(task.id, SubtaskCreateRequest(title="Two"))

        assert (first.order_index, second.order_index) == (0, 1)

        updated = await task_service.update_subtask(
            first.id, SubtaskUpdateRequest(status="Completed")
        )
        assert updated.status == "Completed"
        assert updated.title == "One"

        await task_service.delete_subtask(second.id)
        remaining = await task_service.list_subtasks(task.id)
        assert [s.title for s in remaining] == ["One"]

    async def test_subtask_on_missing_task(self, task_service):
        with pytest.raises(EntityNotFoundException):
            await task_service.add_subtask(uuid4(), SubtaskCreateRequest(title="X"))

    async def test_delete_missing_subtask(self, task_service):
        with pytest.raises(EntityNotFoundException):
            await task_service.delete_subtask(uuid4())
