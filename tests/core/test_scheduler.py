"""
Tests for the job registry and manual triggering.
"""

from unittest.mock import AsyncMock, patch

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from admissions.core import scheduler
from admissions.core.scheduler import list_registered_jobs, register_job, trigger_job_manually


@pytest.fixture
def empty_registry():
    with patch.dict(scheduler._job_registry, clear=True):
        yield scheduler._job_registry


@pytest.mark.asyncio
async def test_trigger_registered_job(empty_registry):
    job = AsyncMock(return_value={"orphans_deleted": []})
    register_job("sweep", job, IntervalTrigger(minutes=60))

    result = await trigger_job_manually("sweep")

    job.assert_awaited_once()
    assert result["status"] == "success"
    assert result["result"] == {"orphans_deleted": []}


@pytest.mark.asyncio
async def test_trigger_failing_job_reports_error(empty_registry):
    register_job("broken", AsyncMock(side_effect=RuntimeError("boom")), IntervalTrigger(minutes=1))

    result = await trigger_job_manually("broken")

    assert result["status"] == "error"
    assert result["error"] == "boom"


@pytest.mark.asyncio
async def test_trigger_unknown_job(empty_registry):
    with pytest.raises(ValueError):
        await trigger_job_manually("missing")


def test_list_registered_jobs_before_start(empty_registry):
    register_job("sweep", AsyncMock(), IntervalTrigger(minutes=60))

    assert list_registered_jobs() == [{"job_id": "sweep", "next_run_time": None}]
