"""
Data Seeder for TaskLedger.
Populates the database with a few weeks of realistic tasks and pomodoros for one owner.
"""

import asyncio
import random
import sys
from datetime import datetime, timedelta, time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskledger.infra.config import get_settings
from taskledger.infra.db import DatabaseEngine, init_db
from taskledger.services import PomodoroService, TaskService
from taskledger.utils import utc_now

OWNER_ID = sys.argv[1] if len(sys.argv) > 1 else "demo-user"
TITLES = ["Write report", "Review pull request", "Plan sprint", "Fix login bug", "Read paper", "Inbox zero"]


async def seed():
    settings = get_settings()
    await init_db(settings.get_db_url())
    print(f"Seeding data for owner: {OWNER_ID}")

    task_service = TaskService()
    pomodoro_service = PomodoroService()
    work_duration = settings.preferences.pomodoro.work_duration

    today = utc_now().date()
    for offset in range(27, -1, -1):
        day = today - timedelta(days=offset)
        # Leave some gaps so streaks are visible
        if random.random() < 0.25:
            continue

        start = datetime.combine(day, time(9, 0))
        for index in range(random.randint(1, 3)):
            expected = random.choice([0, 1800, 3600, 5400])
            task = await task_service.create_task(
                OWNER_ID,
                title=random.choice(TITLES),
                expected_time=expected,
                priority=random.randint(0, 2),
                created_at=start + timedelta(hours=index),
            )
            if random.random() < 0.7:
                spent = random.randint(900, 7200)
                await task_service.complete_task(
                    OWNER_ID, task.id,
                    completed_at=start + timedelta(hours=index, seconds=spent),
                    time_spent=spent,
                )
                for _ in range(spent // work_duration):
                    await pomodoro_service.record_session(
                        OWNER_ID, work_duration, task_id=task.id, when=start + timedelta(hours=index)
                    )
        print(f"Generated tasks for {day}")

    await task_service.create_task(OWNER_ID, title="Daily standup", is_recurring=True)
    await DatabaseEngine.dispose_instance()
    print("Seeding complete.")


if __name__ == "__main__":
    asyncio.run(seed())
