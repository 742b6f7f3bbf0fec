"""
Database setup script - creates tables and a demo account
"""
import asyncio

from sqlalchemy import select

from zest_tasks.database import AsyncSessionLocal, create_tables
from zest_tasks.models.user import User
from zest_tasks.api.auth import get_password_hash
from zest_tasks.services import task_service, workflow_service
from zest_tasks.services.workflow_service import WorkflowCreate

DEMO_EMAIL = "demo@zest.app"
DEMO_PASSWORD = "demo1234"

DEFAULT_WORKFLOWS = [
    ("Productivity", "Work, study and deep-focus tasks"),
    ("Fitness", "Workouts and health routines"),
    ("Grocery", "Shopping lists and errands"),
    ("Personal", "Home, family and everything else"),
]


async def setup_database():
    """Create tables and seed the demo user"""
    print("Creating database tables...")
    await create_tables()
    print("Tables created")

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.email == DEMO_EMAIL))
        if result.scalar_one_or_none():
            print("Demo user already exists, skipping seed")
            return

        demo = User(
            email=DEMO_EMAIL,
            full_name="Demo User",
            hashed_password=get_password_hash(DEMO_PASSWORD),
        )
        session.add(demo)
        await session.commit()

        for name, description in DEFAULT_WORKFLOWS:
            await workflow_service.create_workflow(
                session, demo, WorkflowCreate(name=name, description=description)
            )
        count = await task_service.add_sample_tasks(session, demo)
        print(f"Seed data created ({len(DEFAULT_WORKFLOWS)} workflows, {count} tasks)")

    print("\nDatabase setup complete!")
    print("\nDemo login:")
    print(f"  Email: {DEMO_EMAIL}")
    print(f"  Password: {DEMO_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(setup_database())
