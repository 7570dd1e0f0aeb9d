"""
Tests for applications background jobs.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from admissions.modules.applications.jobs import (
    JOB_ID_PURGE_TRASH,
    purge_trashed_applications,
    register_application_jobs,
)

JOBS = "admissions.modules.applications.jobs"


class TestPurgeTrashedApplications:
    @pytest.mark.asyncio
    async def test_runs_purge_in_own_session(self):
        session = AsyncMock()
        session_cm = MagicMock()
        session_cm.__aenter__ = AsyncMock(return_value=session)
        session_cm.__aexit__ = AsyncMock(return_value=False)

        with (
            patch(f"{JOBS}.async_session_maker", return_value=session_cm),
            patch(f"{JOBS}.admin_service.purge_expired", new_callable=AsyncMock) as mock_purge,
        ):
            mock_purge.return_value = 3
            result = await purge_trashed_applications()

        assert result == {"removed": 3}
        mock_purge.assert_called_once_with(session)


class TestRegisterApplicationJobs:
    def test_registers_purge_at_startup_and_on_interval(self):
        with patch(f"{JOBS}.register_job") as mock_register:
            register_application_jobs()

        kwargs = mock_register.call_args.kwargs
        assert kwargs["job_id"] == JOB_ID_PURGE_TRASH
        assert kwargs["func"] is purge_trashed_applications
        assert isinstance(kwargs["trigger"], IntervalTrigger)
        assert kwargs["run_at_startup"] is True
