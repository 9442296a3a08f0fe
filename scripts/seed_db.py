"""Database seeding script for development."""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path

# Add server directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "server"))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import settings
from app.core.security import create_access_token
from app.db.base import Base
from app.db.types import utcnow
from app.models.assignment import Assignment
from app.models.job import ContentType, Job, JobStatus, PriceTier
from app.models.user import User, UserRole

USERS = [
    ("sophia.requester@example.com", "Sophia Martinez", UserRole.REQUESTER),
    ("emma.influencer@example.com", "Emma Williams", UserRole.REQUESTER),
    ("liam.helper@example.com", "Liam Brown", UserRole.HELPER),
    ("noah.creator@example.com", "Noah Wilson", UserRole.HELPER),
]


async def get_or_create_user(session: AsyncSession, email: str, name: str, role: UserRole) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        print(f"  ℹ User already exists: {email}")
        return user

    user = User(email=email, name=name, role=role.value)
    session.add(user)
    await session.flush()
    print(f"  ✓ Created {role.value}: {email}")
    return user


async def seed_database():
    """Seed the database with test data."""
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        print("Creating users...")
        users = [await get_or_create_user(session, *entry) for entry in USERS]
        sophia, emma, liam, noah = users
        await session.commit()

        print("\nCreating sample jobs...")
        now = utcnow()

        open_job = Job(
            requester_id=sophia.id,
            title="Birthday party photos",
            description="Candid photos of guests and the cake cutting.",
            location="Riverside Park Pavilion",
            event_time=now + timedelta(days=3),
            content_type=ContentType.PHOTOS.value,
            price_tier=PriceTier.STANDARD.value,
            status=JobStatus.OPEN.value,
        )
        accepted_job = Job(
            requester_id=emma.id,
            title="Product launch video",
            description="Short vertical clips of the unveiling and crowd reactions.",
            location="Downtown Loft, 5th Floor",
            event_time=now + timedelta(days=1),
            content_type=ContentType.VIDEOS.value,
            price_tier=PriceTier.PREMIUM.value,
            status=JobStatus.ACCEPTED.value,
        )
        completed_job = Job(
            requester_id=sophia.id,
            title="Farmers market stall",
            description="Photos and a few videos of the stall for social media.",
            location="Central Square Market",
            event_time=now - timedelta(days=7),
            content_type=ContentType.BOTH.value,
            price_tier=PriceTier.BASIC.value,
            status=JobStatus.COMPLETED.value,
            submitted_at=now - timedelta(days=6),
            completed_at=now - timedelta(days=5),
        )
        session.add_all([open_job, accepted_job, completed_job])
        await session.flush()

        session.add_all(
            [
                Assignment(job_id=accepted_job.id, helper_id=liam.id),
                Assignment(job_id=completed_job.id, helper_id=noah.id),
            ]
        )
        await session.commit()

        for job in (open_job, accepted_job, completed_job):
            print(f"  ✓ Created job: {job.id} (status: {job.status})")

        print("\n✅ Database seeding completed!")
        print("\n📋 Development bearer tokens:")
        for user in users:
            token = create_access_token(data={"sub": str(user.id)}, expires_delta=timedelta(days=7))
            print(f"   {user.email} ({user.role}): {token}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_database())
