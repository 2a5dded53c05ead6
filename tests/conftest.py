"""
Pytest configuration and shared fixtures.

Tests run against a throwaway SQLite file (aiosqlite) built from the model
metadata, so neither PostgreSQL nor a running server is needed.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import uuid
from datetime import datetime
from types import SimpleNamespace
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import hiring_core.models  # noqa: F401  (registers every table on Base.metadata)
from hiring_core.core.permissions import Roles
from hiring_core.core.security import create_access_token
from hiring_core.db.base import Base
from hiring_core.db.session import get_db
from hiring_core.main import create_app
from hiring_core.models.account import Account
from hiring_core.models.application import Application
from hiring_core.models.job import Job, JobAssignment
from hiring_core.models.organization import Organization, OrganizationMember
from hiring_core.models.rated_profile import CoachProfile, MentorProfile
from hiring_core.models.scorecard import Interview, InterviewStatus, Scorecard
from hiring_core.schemas.auth import AuthContext
from hiring_core.services.access_control import AuthContextResolver


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no external deps")
    config.addinivalue_line("markers", "db: requires database")
    config.addinivalue_line("markers", "server: requires running HTTP server")


GATED_STAGES = [
    {"id": "applied", "name": "Applied"},
    {"id": "screening", "name": "Phone Screen", "config": {"required_scorecards": 2}},
    {"id": "interview", "name": "Interview", "config": {"required_interviews": 1}},
    {"id": "offer", "name": "Offer"},
    {"id": "hired", "name": "Hired"},
]


def naive(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; compare everything that way."""
    if value is None or value.tzinfo is None:
        return value
    return value.replace(tzinfo=None)


async def reload(db: AsyncSession, model, pk):
    """Fetch a row again, overwriting whatever the identity map holds."""
    result = await db.execute(
        select(model).where(model.id == pk).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def ref(row, *fields) -> SimpleNamespace:
    """Plain copy of a row's id (and the named columns)."""
    return SimpleNamespace(id=row.id, **{field: getattr(row, field) for field in fields})


async def set_stage(db: AsyncSession, application_id, stage: str) -> None:
    await db.execute(update(Application).where(Application.id == application_id).values(stage=stage))
    await db.commit()


async def count_rows(db: AsyncSession, model, *criteria) -> int:
    query = select(func.count(model.id))
    if criteria:
        query = query.where(*criteria)
    result = await db.execute(query)
    return int(result.scalar_one())


class Seed:
    """Row builders for test data. Each flushes; callers commit."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _add(self, row):
        self.db.add(row)
        await self.db.flush()
        return row

    async def account(self, name: Optional[str] = None, is_platform_admin: bool = False) -> Account:
        return await self._add(
            Account(
                email=f"{uuid.uuid4().hex[:12]}@example.com",
                name=name,
                is_platform_admin=is_platform_admin,
            )
        )

    async def organization(self, name: str = "Acme Hiring") -> Organization:
        return await self._add(Organization(name=name))

    async def member(self, organization: Organization, role: str, account: Optional[Account] = None) -> OrganizationMember:
        account = account or await self.account(name=role.title())
        return await self._add(
            OrganizationMember(organization_id=organization.id, account_id=account.id, role=role)
        )

    async def job(
        self,
        organization: Organization,
        title: str = "Backend Engineer",
        stages: Optional[list] = None,
        recruiter: Optional[OrganizationMember] = None,
        hiring_manager: Optional[OrganizationMember] = None,
    ) -> Job:
        return await self._add(
            Job(
                organization_id=organization.id,
                title=title,
                stages=stages,
                recruiter_id=recruiter.id if recruiter else None,
                hiring_manager_id=hiring_manager.id if hiring_manager else None,
            )
        )

    async def assign(self, job: Job, member: OrganizationMember) -> JobAssignment:
        return await self._add(JobAssignment(job_id=job.id, member_id=member.id))

    async def application(self, job: Job, candidate: Optional[Account] = None, stage: str = "applied") -> Application:
        candidate = candidate or await self.account(name="Candidate")
        return await self._add(Application(job_id=job.id, candidate_account_id=candidate.id, stage=stage))

    async def scorecard(self, application: Application, stage_id: str, scorer: OrganizationMember, rating: int = 4) -> Scorecard:
        return await self._add(
            Scorecard(
                application_id=application.id,
                stage_id=stage_id,
                scorer_member_id=scorer.id,
                overall_rating=rating,
            )
        )

    async def interview(self, application: Application, stage_id: str, status: str = InterviewStatus.COMPLETED) -> Interview:
        return await self._add(Interview(application_id=application.id, stage_id=stage_id, status=status))

    async def coach(self, account: Optional[Account] = None) -> CoachProfile:
        account = account or await self.account(name="Coach")
        return await self._add(CoachProfile(account_id=account.id))

    async def mentor(self, account: Optional[Account] = None) -> MentorProfile:
        account = account or await self.account(name="Mentor")
        return await self._add(MentorProfile(account_id=account.id))


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hiring.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def seed(db):
    return Seed(db)


async def context_for(db: AsyncSession, account_id) -> AuthContext:
    ctx = await AuthContextResolver(db).resolve(account_id)
    assert ctx is not None
    return ctx


@pytest.fixture
async def hiring(db, seed):
    """
    One organization with a member per role, a job on the default pipeline
    and a candidate's application at 'interview'.

    Rows are handed out as plain id snapshots: a service error rolls the
    session back, which expires every loaded ORM object.
    """
    org = await seed.organization()
    owner = await seed.member(org, Roles.OWNER)
    admin = await seed.member(org, Roles.ADMIN)
    recruiter = await seed.member(org, Roles.RECRUITER)
    hiring_manager = await seed.member(org, Roles.HIRING_MANAGER)
    reviewer = await seed.member(org, Roles.MEMBER)

    job = await seed.job(org, recruiter=recruiter, hiring_manager=hiring_manager)
    candidate = await seed.account(name="Candidate")
    application = await seed.application(job, candidate, stage="interview")
    await db.commit()

    world = SimpleNamespace(
        org=ref(org),
        job=ref(job),
        candidate=ref(candidate),
        application=ref(application),
        members=SimpleNamespace(
            owner=ref(owner, "account_id"),
            admin=ref(admin, "account_id"),
            recruiter=ref(recruiter, "account_id"),
            hiring_manager=ref(hiring_manager, "account_id"),
            reviewer=ref(reviewer, "account_id"),
        ),
    )
    world.ctx = SimpleNamespace(
        owner=await context_for(db, owner.account_id),
        admin=await context_for(db, admin.account_id),
        recruiter=await context_for(db, recruiter.account_id),
        hiring_manager=await context_for(db, hiring_manager.account_id),
        reviewer=await context_for(db, reviewer.account_id),
        candidate=await context_for(db, candidate.id),
    )
    return world


@pytest.fixture
async def client(session_maker):
    app = create_app()

    async def _get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


def auth_headers(account_id) -> dict:
    return {"Authorization": f"Bearer {create_access_token(account_id)}"}
