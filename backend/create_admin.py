"""
Bootstrap tool: create a company (tenant) and its first admin user.

Usage:
  python create_admin.py <company-name> <email> <password>

Example:
  python create_admin.py "Sunrise Diner LLC" owner@sunrisediner.com aStrongPassword123
"""
import asyncio
import re
import sys

from sqlalchemy import select

from app.core.database import AsyncSessionLocal, create_tables
from app.core.security import hash_password
from app.models.tenant import Tenant
from app.models.user import User
import app.models  # noqa – registers all models


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "company"


async def main(company: str, email: str, password: str) -> None:
    if len(password) < 8:
        print("Error: password must be at least 8 characters.")
        sys.exit(1)

    await create_tables()
    async with AsyncSessionLocal() as db:
        existing = await db.execute(select(User).where(User.email == email))
        if existing.scalar_one_or_none():
            print(f"A user with email '{email}' already exists.")
            sys.exit(0)

        slug = slugify(company)
        tenant = (await db.execute(select(Tenant).where(Tenant.slug == slug))).scalar_one_or_none()
        if tenant is None:
            tenant = Tenant(name=company, slug=slug)
            db.add(tenant)
            await db.flush()

        user = User(
            tenant_id=tenant.id,
            email=email,
            hashed_password=hash_password(password),
            role="admin",
        )
        db.add(user)
        await db.commit()
        print(f"✓ Admin '{email}' created for '{tenant.name}' (tenant slug: {tenant.slug})")


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print("Usage: python create_admin.py <company-name> <email> <password>")
        sys.exit(1)

    asyncio.run(main(sys.argv[1], sys.argv[2], sys.argv[3]))
