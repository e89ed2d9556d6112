from taskhub.db_models import TaskDB
from taskhub.permissions import check_comment, check_delete, check_update, is_participant

OWNER, ASSIGNEE, SUPERVISOR, OUTSIDER = 1, 2, 3, 4


def make_task(**overrides) -> TaskDB:
    fields = dict(
        kind="task",
        title="t",
        description="d",
        status="todo",
        owner_id=OWNER,
        assignee_id=ASSIGNEE,
        supervisor_id=SUPERVISOR,
    )
    fields.update(overrides)
    return TaskDB(**fields)


def test_participants():
    task = make_task()
    assert all(is_participant(task, uid) for uid in (OWNER, ASSIGNEE, SUPERVISOR))
    assert not is_participant(task, OUTSIDER)


def test_update_requires_a_role():
    task = make_task()
    assert check_update(task, OUTSIDER, {"title": "x"}) == "Not authorized to update this task"
    assert check_update(task, OWNER, {"title": "x"}) == "Not authorized to update this task"
    assert check_update(task, ASSIGNEE, {"title": "x"}) is None
    assert check_update(task, SUPERVISOR, {"title": "x"}) is None


def test_status_transitions_by_role():
    task = make_task()
    assert check_update(task, SUPERVISOR, {"status": "completed"}) is not None
    assert check_update(task, ASSIGNEE, {"status": "completed"}) is None
    assert check_update(task, ASSIGNEE, {"status": "reviewed"}) is not None
    assert check_update(task, SUPERVISOR, {"status": "reviewed"}) is None


def test_same_user_in_both_roles_can_complete_and_review():
    task = make_task(assignee_id=SUPERVISOR)
    assert check_update(task, SUPERVISOR, {"status": "completed"}) is None
    assert check_update(task, SUPERVISOR, {"status": "reviewed"}) is None


def test_reassignment():
    task = make_task()
    assert check_update(task, ASSIGNEE, {"assignee_id": OUTSIDER}) == "Only the supervisor can reassign a task"
    # Sending the current value is not a reassignment
    assert check_update(task, ASSIGNEE, {"assignee_id": ASSIGNEE}) is None
    assert check_update(task, SUPERVISOR, {"supervisor_id": OUTSIDER}) is None


def test_delete_and_comment():
    task = make_task()
    assert check_delete(task, SUPERVISOR) is None
    assert check_delete(task, OWNER) == "Only the supervisor can delete tasks"
    assert check_comment(task, OWNER) is None
    assert check_comment(task, OUTSIDER) is not None
