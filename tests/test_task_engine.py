"""
Task state rules: derived progress and status, force-complete, validation
"""
import copy

import pytest

from app.core import task_engine
from app.core.task_engine import compute_progress, status_for_progress
from app.db.models import Task, TaskPriority, TaskStatus, User, UserRole
from app.exceptions.tasks import ForbiddenError, ValidationError


def checklist(*flags):
    return [{"text": f"step {i}", "completed": flag} for i, flag in enumerate(flags)]


@pytest.fixture
def admin():
    return User(id=1, name="Admin", email="admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
def assignee():
    return User(id=2, name="Assignee", email="assignee@example.com", role=UserRole.MEMBER)


@pytest.fixture
def outsider():
    return User(id=3, name="Outsider", email="outsider@example.com", role=UserRole.MEMBER)


@pytest.fixture
def task(admin, assignee):
    return task_engine.initialize_task(
        title="Write report",
        creator=admin,
        assignees=[assignee],
        todo_checklist=checklist(True, False, False),
    )


def snapshot(task):
    return {
        "status": task.status,
        "progress": task.progress,
        "todo_checklist": copy.deepcopy(task.todo_checklist),
        "title": task.title,
    }


class TestProgressDerivation:
    """Progress and status follow the checklist"""

    def test_one_of_three(self):
        progress = compute_progress(checklist(True, False, False))
        assert progress == 33
        assert status_for_progress(progress) == TaskStatus.IN_PROGRESS

    def test_all_done(self):
        progress = compute_progress(checklist(True, True))
        assert progress == 100
        assert status_for_progress(progress) == TaskStatus.COMPLETED

    def test_empty_checklist(self):
        progress = compute_progress([])
        assert progress == 0
        assert status_for_progress(progress) == TaskStatus.PENDING

    @pytest.mark.parametrize("flags,expected", [
        ((True, False), 50),
        ((True, True, False), 67),
        ((True, False, False, False, False, False, False, False), 13),  # 12.5 rounds up
        ((True,) * 199 + (False,), 100),  # 99.5 rounds up
        ((True,) * 99 + (False,) * 101, 50),  # 49.5 rounds up
        ((False,) * 5, 0),
    ])
    def test_half_up_rounding(self, flags, expected):
        assert compute_progress(checklist(*flags)) == expected

    def test_almost_complete_is_in_progress(self):
        # 199/201 = 99.0...
        progress = compute_progress(checklist(*((True,) * 199 + (False,) * 2)))
        assert progress == 99
        assert status_for_progress(progress) == TaskStatus.IN_PROGRESS

    def test_completed_count(self, task):
        assert task_engine.derive_checklist_count(task) == 1


class TestInitializeTask:
    """New tasks start consistent with their checklist"""

    def test_defaults(self, admin, assignee):
        task = task_engine.initialize_task(title="Plain", creator=admin, assignees=[assignee])

        assert task.priority == TaskPriority.MEDIUM
        assert task.todo_checklist == []
        assert task.attachments == []
        assert task.progress == 0
        assert task.status == TaskStatus.PENDING
        assert task.assignees == [assignee]
        assert task.created_by is admin

    def test_initial_checklist_sets_derived_fields(self, task):
        assert task.progress == 33
        assert task.status == TaskStatus.IN_PROGRESS

    def test_assignee_order_kept_and_duplicates_dropped(self, admin, assignee, outsider):
        task = task_engine.initialize_task(
            title="Pair", creator=admin, assignees=[outsider, assignee, outsider]
        )
        assert task.assignees == [outsider, assignee]
        assert [a.position for a in task.assignments] == [0, 1]

    def test_assignees_must_be_a_list(self, admin, assignee):
        with pytest.raises(ValidationError, match="assigned_to must be an array"):
            task_engine.initialize_task(title="Bad", creator=admin, assignees=assignee)

    def test_unknown_priority(self, admin, assignee):
        with pytest.raises(ValidationError, match="priority"):
            task_engine.initialize_task(title="Bad", creator=admin, assignees=[assignee], priority="Urgent")


class TestFieldUpdate:
    """Plain field edits"""

    def test_absent_fields_are_kept(self, task):
        task.description = "Original"
        task_engine.apply_field_update(task, {"title": "Renamed"})

        assert task.title == "Renamed"
        assert task.description == "Original"

    def test_explicit_empty_values_clear(self, task):
        task.description = "Original"
        task.attachments = ["http://files/a.png"]

        task_engine.apply_field_update(task, {"description": "", "attachments": []})

        assert task.description == ""
        assert task.attachments == []

    def test_does_not_recompute_derived_fields(self, task):
        task_engine.apply_field_update(task, {"todo_checklist": checklist(True, True)})

        assert task.todo_checklist == checklist(True, True)
        assert task.progress == 33
        assert task.status == TaskStatus.IN_PROGRESS

    def test_reassign(self, task, outsider):
        task_engine.apply_field_update(task, {"assigned_to": [outsider]})
        assert task.assignees == [outsider]

    def test_bad_assignees_abort_whole_update(self, task):
        before = snapshot(task)

        with pytest.raises(ValidationError):
            task_engine.apply_field_update(task, {"title": "Renamed", "assigned_to": "someone"})

        assert snapshot(task) == before

    def test_null_title_rejected(self, task):
        with pytest.raises(ValidationError, match="title cannot be null"):
            task_engine.apply_field_update(task, {"title": None})

    def test_unknown_field_rejected(self, task):
        with pytest.raises(ValidationError, match="progress"):
            task_engine.apply_field_update(task, {"progress": 100})

    def test_due_date_can_be_cleared(self, task):
        task_engine.apply_field_update(task, {"due_date": None})
        assert task.due_date is None


class TestStatusChange:
    """Direct status writes and the force-complete override"""

    def test_force_complete(self, admin, assignee):
        task = task_engine.initialize_task(
            title="One step", creator=admin, assignees=[assignee], todo_checklist=checklist(False)
        )

        task_engine.apply_status_change(task, TaskStatus.COMPLETED, assignee)

        assert task.status == TaskStatus.COMPLETED
        assert task.todo_checklist == [{"text": "step 0", "completed": True}]
        assert task.progress == 100

    def test_force_complete_on_empty_checklist(self, admin, assignee):
        task = task_engine.initialize_task(title="Nothing", creator=admin, assignees=[assignee])

        task_engine.apply_status_change(task, "Completed", admin)

        assert task.todo_checklist == []
        assert task.progress == 100

    def test_other_statuses_leave_checklist_alone(self, task, assignee):
        task_engine.apply_status_change(task, TaskStatus.PENDING, assignee)

        assert task.status == TaskStatus.PENDING
        assert task.progress == 33
        assert task.todo_checklist == checklist(True, False, False)

    def test_admin_who_is_not_assigned_may_change_status(self, task, admin):
        task_engine.apply_status_change(task, TaskStatus.IN_PROGRESS, admin)
        assert task.status == TaskStatus.IN_PROGRESS

    def test_outsider_forbidden_and_task_unchanged(self, task, outsider):
        before = snapshot(task)

        with pytest.raises(ForbiddenError):
            task_engine.apply_status_change(task, TaskStatus.COMPLETED, outsider)

        assert snapshot(task) == before

    def test_unknown_status(self, task, assignee):
        with pytest.raises(ValidationError):
            task_engine.apply_status_change(task, "Done", assignee)


class TestChecklistUpdate:
    """Checklist replacement re-derives progress and status"""

    def test_replace_and_derive(self, task, assignee):
        task_engine.apply_checklist_update(task, checklist(True, True), assignee)

        assert task.todo_checklist == checklist(True, True)
        assert task.progress == 100
        assert task.status == TaskStatus.COMPLETED

    def test_replacement_is_wholesale(self, task, assignee):
        task_engine.apply_checklist_update(task, [{"text": "only", "completed": False}], assignee)

        assert task.todo_checklist == [{"text": "only", "completed": False}]
        assert task.progress == 0
        assert task.status == TaskStatus.PENDING

    def test_checklist_overrides_a_forced_status(self, task, assignee):
        task_engine.apply_status_change(task, TaskStatus.COMPLETED, assignee)
        task_engine.apply_checklist_update(task, checklist(True, False), assignee)

        assert task.progress == 50
        assert task.status == TaskStatus.IN_PROGRESS

    def test_idempotent(self, task, assignee):
        task_engine.apply_checklist_update(task, checklist(True, False, True, False), assignee)
        first = snapshot(task)

        task_engine.apply_checklist_update(task, checklist(True, False, True, False), assignee)

        assert snapshot(task) == first

    def test_completed_defaults_to_false(self, task, assignee):
        task_engine.apply_checklist_update(task, [{"text": "new"}], assignee)
        assert task.todo_checklist == [{"text": "new", "completed": False}]

    def test_not_a_list(self, task, assignee):
        before = snapshot(task)

        with pytest.raises(ValidationError, match="todo_checklist must be an array"):
            task_engine.apply_checklist_update(task, {"text": "x", "completed": True}, assignee)

        assert snapshot(task) == before

    @pytest.mark.parametrize("bad_item", [
        "just a string",
        {"completed": True},
        {"text": "x", "completed": "yes"},
    ])
    def test_malformed_items(self, task, assignee, bad_item):
        with pytest.raises(ValidationError):
            task_engine.apply_checklist_update(task, [bad_item], assignee)

    def test_outsider_forbidden_and_task_unchanged(self, task, outsider):
        before = snapshot(task)

        with pytest.raises(ForbiddenError, match="Not authorized"):
            task_engine.apply_checklist_update(task, checklist(True, True, True), outsider)

        assert snapshot(task) == before

    def test_authorization_checked_before_validation(self, task, outsider):
        with pytest.raises(ForbiddenError):
            task_engine.apply_checklist_update(task, "not a list", outsider)
