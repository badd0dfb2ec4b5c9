"""Seed script: users, production lines, a two-level approval ladder and its approvers.

Idempotent: checks for existing records before inserting.
Run from backend/: python scripts/seed.py

Prints a development access token per user, since credentials are held by
the identity provider and this service has no login endpoint.
"""
import asyncio
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from wastetrack.core.config import settings
from wastetrack.core.security import create_access_token
from wastetrack.models.approval import ApprovalLevel, ApprovalLevelAssignment, ApprovalType
from wastetrack.models.line import ProductionLine
from wastetrack.models.user import User, UserRole


# ─── Upsert helpers ───────────────────────────────────────────────────────────

async def _upsert_user(db: AsyncSession, email: str, name: str, role: str) -> User:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    if user:
        print(f"  [skip] User {email}")
        return user
    user = User(email=email, name=name, role=role, is_active=True)
    db.add(user)
    await db.flush()
    print(f"  [new]  User {email} ({role})")
    return user


async def _upsert_line(db: AsyncSession, code: str, name: str, form_approver: User | None) -> ProductionLine:
    result = await db.execute(select(ProductionLine).where(ProductionLine.code == code))
    line = result.scalars().first()
    if line:
        print(f"  [skip] Line {code}")
        return line
    line = ProductionLine(
        code=code,
        name=name,
        line_type="finished",
        form_approver_id=form_approver.id if form_approver else None,
        is_active=True,
    )
    db.add(line)
    await db.flush()
    print(f"  [new]  Line {code} (form approver: {form_approver.email if form_approver else '-'})")
    return line


async def _upsert_level(db: AsyncSession, level_order: int, name: str, name_localized: str) -> ApprovalLevel:
    result = await db.execute(select(ApprovalLevel).where(ApprovalLevel.level_order == level_order))
    level = result.scalars().first()
    if level:
        print(f"  [skip] Level {level_order} ({level.name})")
        return level
    level = ApprovalLevel(
        name=name,
        name_localized=name_localized,
        level_order=level_order,
        approval_type=ApprovalType.sequential.value,
        is_active=True,
    )
    db.add(level)
    await db.flush()
    print(f"  [new]  Level {level_order} ({name})")
    return level


async def _upsert_assignment(db: AsyncSession, level: ApprovalLevel, user: User) -> None:
    result = await db.execute(
        select(ApprovalLevelAssignment).where(
            ApprovalLevelAssignment.approval_level_id == level.id,
            ApprovalLevelAssignment.user_id == user.id,
        )
    )
    if result.scalars().first():
        print(f"  [skip] {user.email} → {level.name}")
        return
    db.add(ApprovalLevelAssignment(approval_level_id=level.id, user_id=user.id))
    await db.flush()
    print(f"  [new]  {user.email} → {level.name}")


# ─── Main ─────────────────────────────────────────────────────────────────────

async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

    async with SessionLocal() as db:
        print("\n── Users ──")
        admin      = await _upsert_user(db, "admin@example.com",      "Plant Admin",        UserRole.admin.value)
        engineer   = await _upsert_user(db, "engineer@example.com",   "Line Engineer",      UserRole.engineer.value)
        supervisor = await _upsert_user(db, "supervisor@example.com", "Shift Supervisor",   UserRole.approver.value)
        manager    = await _upsert_user(db, "manager@example.com",    "Production Manager", UserRole.approver.value)
        viewer     = await _upsert_user(db, "viewer@example.com",     "Quality Viewer",     UserRole.viewer.value)
        await db.commit()

        print("\n── Production Lines ──")
        await _upsert_line(db, "L1", "Line 1", form_approver=manager)
        await _upsert_line(db, "L2", "Line 2", form_approver=None)
        await db.commit()

        print("\n── Approval Ladder ──")
        shift = await _upsert_level(db, 1, "Shift Supervisor", "Chef d'équipe")
        plant = await _upsert_level(db, 2, "Production Manager", "Responsable production")
        await _upsert_assignment(db, shift, supervisor)
        await _upsert_assignment(db, plant, manager)
        await db.commit()

    await engine.dispose()
    print("\n✓ Seed complete. Development tokens:")
    for user in (admin, engineer, supervisor, manager, viewer):
        print(f"  {user.email:<24} ({user.role}) {create_access_token(str(user.id), user.role)}")


if __name__ == "__main__":
    asyncio.run(seed())
