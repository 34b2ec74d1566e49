"""
Recurring Tasks Job: create the next instance of every due recurring task.

Runs outside the API process. It talks to the database only; the request
path and this job share no in-memory state.

Typical cron schedule: 0 0 * * * (daily at midnight UTC), or run it with
``--daemon`` to sleep until the configured hour itself.
"""

import asyncio
from datetime import datetime, timedelta, timezone
import logging
import traceback
from typing import Any

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ..core.config import get_settings
from ..models import Task, TaskStatus
from ..services.tasks import next_occurrence

logger = logging.getLogger(__name__)


# =============================================================================
# ALERTING
# =============================================================================


async def send_alert(
    title: str,
    message: str,
    severity: str = "error",
    details: dict | None = None,
) -> None:
    """Log an alert and, when ``ALERT_WEBHOOK_URL`` is configured, post it there."""
    log_message = f"[CRON ALERT] {title}: {message}"
    if details:
        log_message += f" | Details: {details}"

    if severity == "critical":
        logger.critical(log_message)
    else:
        logger.error(log_message)

    webhook_url = get_settings().alert_webhook_url
    if not webhook_url:
        return

    payload = {
        "title": title,
        "message": message,
        "severity": severity,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": "taskboard-recurring-tasks",
        "details": details or {},
    }
    try:
        async with httpx.AsyncClient() as client:
            await client.post(webhook_url, json=payload, timeout=10)
    except httpx.HTTPError as e:
        logger.error(f"Failed to send webhook alert: {e}")


# =============================================================================
# JOB
# =============================================================================


def _next_instance(source: Task) -> Task:
    # The copy is a one-off; only the source keeps recurring
    return Task(
        org_id=source.org_id,
        title=source.title,
        description=source.description,
        status=TaskStatus.TODO,
        priority=source.priority,
        assignee_id=source.assignee_id,
        created_by=source.created_by,
        tags=list(source.tags or []),
        is_recurring=False,
        template_id=source.template_id,
    )


async def run_recurring_job(
    session_factory: async_sessionmaker[AsyncSession],
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Main entry point for the recurring task job.

    For every task with ``is_recurring`` set and ``next_recurring_date`` at
    or before ``now``:
    1. Insert a fresh ``todo`` copy in the same organization
    2. Advance the source's ``next_recurring_date`` by its frequency from ``now``

    Each task is processed in its own SAVEPOINT; a failure is logged and
    recorded in ``errors`` and the batch continues.

    Returns:
        Job result summary
    """
    now = now or datetime.now(timezone.utc)
    start_time = datetime.now(timezone.utc)
    logger.info(f"Starting recurring task job at {start_time.isoformat()}")

    results: dict[str, Any] = {
        "started_at": start_time.isoformat(),
        "completed_at": None,
        "created_count": 0,
        "errors": [],
    }

    try:
        async with session_factory() as session:
            async with session.begin():
                due = await session.execute(
                    select(Task)
                    .where(
                        Task.is_recurring.is_(True),
                        Task.recurring_frequency.is_not(None),
                        Task.next_recurring_date.is_not(None),
                        Task.next_recurring_date <= now,
                    )
                    .order_by(Task.next_recurring_date)
                )

                for source in due.scalars().all():
                    source_id, org_id = source.id, source.org_id
                    try:
                        async with session.begin_nested():
                            session.add(_next_instance(source))
                            source.next_recurring_date = next_occurrence(
                                source.recurring_frequency, now
                            )
                        results["created_count"] += 1
                        logger.info(
                            f"Created next instance of recurring task: "
                            f"id={source_id} org={org_id}"
                        )
                    except Exception as e:
                        logger.exception(f"Recurring task {source_id} failed")
                        results["errors"].append(f"{source_id}: {e}")

    except Exception as e:
        error_msg = f"Recurring task job failed: {str(e)}"
        logger.error(error_msg)
        results["errors"].append(error_msg)

        await send_alert(
            title="Recurring Task Job Failed",
            message="The recurring task job crashed unexpectedly.",
            severity="critical",
            details={
                "error": str(e),
                "traceback": traceback.format_exc()[-500:],  # Last 500 chars
                "started_at": results["started_at"],
                "created_before_crash": results["created_count"],
            },
        )
        raise

    end_time = datetime.now(timezone.utc)
    results["completed_at"] = end_time.isoformat()

    logger.info(
        f"Recurring task job completed in {(end_time - start_time).total_seconds():.2f}s: "
        f"{results['created_count']} created, {len(results['errors'])} errors"
    )
    return results


def seconds_until(hour: int, now: datetime | None = None) -> float:
    """Seconds until the next HH:00 UTC strictly after ``now``."""
    now = now or datetime.now(timezone.utc)
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


async def _run(database_url: str, daemon: bool, hour: int) -> None:
    engine = create_async_engine(database_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        if not daemon:
            results = await run_recurring_job(session_factory)
            print(f"Job completed: {results}")
            return

        while True:
            delay = seconds_until(hour)
            logger.info(f"Next recurring task run in {delay:.0f}s")
            await asyncio.sleep(delay)
            try:
                await run_recurring_job(session_factory)
            except Exception:
                # Already alerted; keep the schedule alive
                logger.exception("Recurring task run failed")
    finally:
        await engine.dispose()


# =============================================================================
# CLI ENTRY POINT
# =============================================================================


def main():
    """CLI entry point for the recurring task job."""
    import argparse

    settings = get_settings()

    parser = argparse.ArgumentParser(description="Create the next instance of due recurring tasks")
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help="Database connection string",
    )
    parser.add_argument(
        "--daemon",
        action="store_true",
        help="Keep running and trigger once a day at --hour (UTC)",
    )
    parser.add_argument(
        "--hour",
        type=int,
        default=settings.recurring_job_hour,
        choices=range(24),
        metavar="HOUR",
        help="UTC hour of the daily trigger in daemon mode",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(_run(args.database_url, args.daemon, args.hour))
    except KeyboardInterrupt:
        logger.info("Recurring task job stopped")
    except Exception as e:
        print(f"Job failed: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
