from datetime import datetime, timedelta, timezone

import pytest

from automation_engine.domain.workflow.entities.run import (
    Event,
    RunStatus,
    SuspendedBranch,
    WorkflowRun,
)
from automation_engine.domain.workflow.entities.workflow import WorkflowDefinition, WorkflowStatus
from automation_engine.domain.workflow.exceptions import InvalidStatusTransitionError

NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)


def new_run(**data):
    return WorkflowRun(
        workflow_id="wf-1",
        owner_id="7",
        triggering_event=Event(event_type="new_follower", occurred_for="7", data=data),
    )


def test_initial_context_exposes_event_data_and_trigger():
    run = new_run(fan={"email": "x@y.com"}, followerId=42)
    assert run.context["fan"]["email"] == "x@y.com"
    assert run.context["trigger"]["eventType"] == "new_follower"
    assert run.context["nodes"] == {}
    assert run.status == RunStatus.RUNNING


def test_settle_completes_without_branches_or_failures():
    run = new_run()
    run.settle()
    assert run.status == RunStatus.COMPLETED
    assert run.completed_at is not None


def test_settle_fails_when_halted():
    run = new_run()
    run.record_error("ai", "generate_ai_content", "boom", fatal=True)
    run.settle()
    assert run.status == RunStatus.FAILED


def test_non_fatal_error_still_completes():
    run = new_run()
    run.record_error("mail", "send_email", "smtp down", fatal=False)
    run.settle()
    assert run.status == RunStatus.COMPLETED
    assert run.errors[0]["fatal"] is False


def test_settle_waits_on_earliest_branch():
    run = new_run()
    run.suspend_branch("late", NOW + timedelta(hours=2), run.context)
    run.suspend_branch("early", NOW + timedelta(minutes=5), run.context)
    run.settle()

    assert run.status == RunStatus.WAITING
    assert run.current_node_id == "early"
    assert run.scheduled_resume_at == NOW + timedelta(minutes=5)


def test_suspended_branch_drops_shared_node_outputs():
    run = new_run(amount=5)
    run.record_output("n1", {"sent": True})
    run.suspend_branch("wait", NOW, run.context)

    branch = run.suspended_branches[0]
    assert "nodes" not in branch.context
    assert run.branch_context(branch)["nodes"] == {"n1": {"sent": True}}
    assert run.branch_context(branch)["amount"] == 5


def test_pop_due_branches_keeps_future_ones():
    run = new_run()
    run.suspend_branch("due", NOW - timedelta(seconds=1), {})
    run.suspend_branch("later", NOW + timedelta(minutes=1), {})

    due = run.pop_due_branches(NOW)
    assert [b.node_id for b in due] == ["due"]
    assert [b.node_id for b in run.suspended_branches] == ["later"]


def test_terminal_run_cannot_move():
    run = new_run()
    run.settle()
    with pytest.raises(InvalidStatusTransitionError):
        run.transition_to(RunStatus.RUNNING)


def test_cancel_waiting_run_clears_branches():
    run = new_run()
    run.suspend_branch("wait", NOW, {})
    run.settle()
    run.cancel()
    assert run.status == RunStatus.CANCELLED
    assert run.suspended_branches == []
    assert run.scheduled_resume_at is None


def test_suspended_branch_round_trip():
    branch = SuspendedBranch(node_id="w", resume_at=NOW, context={"a": 1})
    assert SuspendedBranch.from_dict(branch.to_dict()) == branch


def test_event_from_dict_stringifies_owner():
    event = Event.from_dict({"eventType": "tip_received", "occurredFor": 7, "data": {"amount": 5}})
    assert event.occurred_for == "7"
    assert event.to_dict()["data"] == {"amount": 5}


def test_workflow_status_transitions():
    definition = WorkflowDefinition(owner_id="7", name="wf")
    definition.transition_to(WorkflowStatus.ACTIVE)
    assert definition.is_active
    definition.transition_to(WorkflowStatus.PAUSED)
    with pytest.raises(InvalidStatusTransitionError):
        definition.transition_to(WorkflowStatus.DRAFT)


def test_workflow_record_run_result_counts():
    definition = WorkflowDefinition(owner_id="7", name="wf")
    definition.record_run_result(True)
    definition.record_run_result(False)
    assert (definition.total_runs, definition.successful_runs, definition.failed_runs) == (2, 1, 1)
    assert definition.last_run_at is not None
