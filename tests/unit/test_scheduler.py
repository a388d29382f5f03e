from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from automation_engine.scheduler import SchedulerRunner

NOW = datetime(2026, 3, 4, 9, 30, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_sweep_runs_resume_then_schedule():
    with (
        patch("automation_engine.scheduler.async_session_factory"),
        patch("automation_engine.scheduler.build_launcher") as mock_build_launcher,
        patch("automation_engine.scheduler.ResumeWaitingRunsUseCase") as mock_resume_cls,
        patch("automation_engine.scheduler.RunScheduledWorkflowsUseCase") as mock_schedule_cls,
    ):
        mock_resume_cls.return_value.execute = AsyncMock(return_value=2)
        mock_schedule_cls.return_value.execute = AsyncMock(return_value=["run-1"])

        await SchedulerRunner(sweep_interval_seconds=1).sweep(NOW)

        mock_resume_cls.return_value.execute.assert_awaited_once_with(NOW)
        mock_schedule_cls.return_value.execute.assert_awaited_once_with(NOW)
        launcher = mock_build_launcher.return_value
        assert mock_resume_cls.call_args.kwargs["launcher"] is launcher
        assert mock_schedule_cls.call_args.kwargs["launcher"] is launcher


@pytest.mark.asyncio
async def test_sweep_error_propagates_to_loop():
    with (
        patch("automation_engine.scheduler.async_session_factory"),
        patch("automation_engine.scheduler.build_launcher"),
        patch("automation_engine.scheduler.ResumeWaitingRunsUseCase") as mock_resume_cls,
        patch("automation_engine.scheduler.RunScheduledWorkflowsUseCase"),
    ):
        mock_resume_cls.return_value.execute = AsyncMock(side_effect=RuntimeError("db gone"))

        with pytest.raises(RuntimeError):
            await SchedulerRunner(sweep_interval_seconds=1).sweep(NOW)
