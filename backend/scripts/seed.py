"""
Database Seed Script
Creates a demo user, a project and an access token for development
"""

import asyncio
import sys
from datetime import timedelta

# Add parent directory to path
sys.path.insert(0, str(__file__).rsplit("/", 2)[0])

from launchpad.config import get_settings
from launchpad.services.storage import AgentStore
from launchpad.utils import close_db, create_access_token, get_db_context, init_db

settings = get_settings()

DEMO_EMAIL = "demo@launchpad.dev"


async def create_sample_data(store: AgentStore):
    """Create the demo user and project"""
    print("Creating sample data...")

    user = await store.create_user(
        email=DEMO_EMAIL,
        name="Demo Founder",
        credits=settings.DEFAULT_USER_CREDITS,
    )
    print(f"  Created user: {user.email} ({user.credits} credits)")

    project = await store.create_project(
        owner_id=user.id,
        name="Meal Prep Marketplace",
        description="A marketplace connecting home cooks with busy professionals who want healthy weekly meal prep",
        industry="ecommerce",
    )
    print(f"  Created project: {project.name} ({project.id})")
    return user


async def seed():
    print("Creating tables...")
    await init_db()

    try:
        async with get_db_context() as db:
            store = AgentStore(db)
            user = await store.get_user_by_email(DEMO_EMAIL)
            if user is not None:
                print("Sample data already exists. Skipping create.")
            else:
                user = await create_sample_data(store)

            token = create_access_token(user.id, expires_delta=timedelta(days=7))
            print("\nSeed data ready!")
            print("\n  Access token (7 days):")
            print(f"    {token}")
    finally:
        await close_db()


def main():
    """Main entry point"""
    print("Connecting to database...")
    asyncio.run(seed())


if __name__ == "__main__":
    main()
