"""
Seed script to populate database with test data for development/testing.
Run with: python scripts/seed_test_data.py

Prints a bearer token for the first seeded user so the API can be tried
right away.
"""

import asyncio
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add parent directory to path so we can import app
sys.path.insert(0, str(Path(__file__).parent.parent))

from faker import Faker

from app.core.security import create_access_token
from app.database import async_session_maker
from app.models.user import User
from app.schemas.profile import LearningStyle, ProfileCreate, Weekday
from app.services import match_service, profile_service

fake = Faker()

# Configuration
NUM_USERS = 50
SUBJECTS = [
    "Mathematics",
    "Physics",
    "Chemistry",
    "Biology",
    "Computer Science",
    "History",
    "Economics",
    "Literature",
    "Statistics",
    "Philosophy",
]


async def seed_users(db) -> list[User]:
    """Create test users as if they had signed in once."""
    users = []

    print(f"Creating {NUM_USERS} test users...")

    for i in range(NUM_USERS):
        user = User(
            auth_subject=f"seed|{i + 1}",
            name=fake.name(),
            email=f"student{i + 1}@test.studybuddy.dev",
            avatar=fake.image_url(),
            last_active_at=datetime.now(timezone.utc) - timedelta(hours=random.randint(1, 720)),
        )
        db.add(user)
        users.append(user)

    await db.commit()
    print(f"  Created {len(users)} users")
    return users


async def seed_profiles(db, users: list[User]) -> None:
    """Give every user a random study profile."""
    print(f"Creating profiles for {len(users)} users...")

    days = list(Weekday)
    for user in users:
        data = ProfileCreate(
            subjects=random.sample(SUBJECTS, random.randint(1, 4)),
            learning_style=random.choice(list(LearningStyle)),
            availability=random.sample(days, random.randint(2, 7)),
            performance_level=random.randint(1, 5),
            goals=fake.sentence(nb_words=10) if random.choice([True, False]) else None,
        )
        await profile_service.upsert_profile(db, user.id, data)

    print(f"  Created {len(users)} profiles")


async def seed_matches(db, users: list[User]) -> int:
    """Run discovery for every seeded user."""
    print("Running match discovery...")
    total = 0
    for user in users:
        matches = await match_service.discover(db, user.id, limit=10)
        total += len(matches)
    print(f"  Saved {total} matches")
    return total


async def main():
    print("=" * 50)
    print("Seeding test data...")
    print("=" * 50)

    async with async_session_maker() as db:
        try:
            users = await seed_users(db)
            await seed_profiles(db, users)
            await seed_matches(db, users)

            print("\n" + "=" * 50)
            print("Seeding complete!")
            print("=" * 50)
            print("\nToken for the first test user:")
            print(f"  {create_access_token(users[0].auth_subject, name=users[0].name)}")
            print("=" * 50)

        except Exception as e:
            print(f"\nError: {e}")
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(main())
