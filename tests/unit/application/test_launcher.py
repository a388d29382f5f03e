from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from automation_engine.application.workflow.launcher import RunLauncher
from automation_engine.domain.workflow.entities.run import Event, RunStatus, WorkflowRun
from automation_engine.domain.workflow.entities.workflow import Node, NodeType, WorkflowDefinition


@pytest.fixture
def mock_workflow_repo():
    return AsyncMock()


@pytest.fixture
def mock_run_repo():
    repo = AsyncMock()
    repo.update.return_value = True
    return repo


@pytest.fixture
def mock_runner():
    return AsyncMock()


def matches():
    definition = WorkflowDefinition(owner_id="7", name="wf")
    trigger = Node(id="t", type=NodeType.TRIGGER, subtype="new_follower")
    return [(definition, trigger)]


@pytest.mark.asyncio
async def test_runner_crash_fails_the_run(mock_workflow_repo, mock_run_repo, mock_runner):
    mock_runner.start.side_effect = RuntimeError("boom")
    launcher = RunLauncher(mock_workflow_repo, mock_run_repo, mock_runner, MagicMock())

    runs = await launcher.launch(matches(), Event(event_type="new_follower", occurred_for="7"))

    assert runs[0].status == RunStatus.FAILED
    assert runs[0].errors[0]["error"] == "boom"
    mock_workflow_repo.record_run_result.assert_awaited_once()
    assert mock_workflow_repo.record_run_result.await_args.args[1] is False


@pytest.mark.asyncio
async def test_cancelled_row_skips_statistics(mock_workflow_repo, mock_run_repo, mock_runner):
    mock_run_repo.update.return_value = False
    launcher = RunLauncher(mock_workflow_repo, mock_run_repo, mock_runner)
    definition, _ = matches()[0]
    run = WorkflowRun(workflow_id=definition.id, owner_id="7", triggering_event=Event(event_type="x", occurred_for="7"))
    run.settle()

    await launcher.persist(run, definition)

    mock_workflow_repo.record_run_result.assert_not_called()
    assert definition.total_runs == 0


@pytest.mark.asyncio
async def test_waiting_run_is_not_counted(mock_workflow_repo, mock_run_repo, mock_runner):
    launcher = RunLauncher(mock_workflow_repo, mock_run_repo, mock_runner)
    definition, _ = matches()[0]
    run = WorkflowRun(workflow_id=definition.id, owner_id="7", triggering_event=Event(event_type="x", occurred_for="7"))
    run.suspend_branch("w", datetime.now(timezone.utc), {})
    run.settle()

    await launcher.persist(run, definition)

    mock_run_repo.update.assert_awaited_once_with(run)
    mock_workflow_repo.record_run_result.assert_not_called()
