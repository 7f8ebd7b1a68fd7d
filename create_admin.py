"""Create an admin user and, optionally, seed a starting pricing setup.

Usage: python create_admin.py <username> <password> [--seed-pricing]
"""
import asyncio
import sys

from sqlalchemy.future import select

from rental_quotes.core.enums import UserRole
from rental_quotes.core.security import hash_password
from rental_quotes.db.session import AsyncSessionLocal, engine
from rental_quotes.models import Base, CategoryPricing, PricingConfig, User, VehicleCategory

DEFAULT_TIERS = [(7, 0.0), (14, 0.05), (21, 0.10), (30, 0.15), (0, 0.0), (0, 0.0), (0, 0.0), (0, 0.0), (0, 0.0)]

DEFAULT_CATEGORIES = [
    # name, off-peak rate, peak rate, self-drive deposit
    ("Saloon", 3000.0, 3500.0, 20000.0),
    ("SUV", 6000.0, 7500.0, 30000.0),
    ("Van", 8000.0, 9500.0, 30000.0),
]


async def create_admin_user(username: str, password: str) -> bool:
    async with AsyncSessionLocal() as db:
        res = await db.execute(select(User).where(User.username == username))
        if res.scalars().first():
            print(f"Error: User '{username}' already exists")
            return False

        user = User(username=username, password_hash=hash_password(password), role=UserRole.ADMIN)
        db.add(user)
        await db.commit()
        await db.refresh(user)

        print(f"Admin user '{username}' created successfully")
        print(f"User ID: {user.id}")
        print("Role: admin")
        return True


async def seed_pricing() -> None:
    async with AsyncSessionLocal() as db:
        res = await db.execute(select(PricingConfig).limit(1))
        if res.scalars().first() is None:
            db.add(PricingConfig(chauffeur_fee_per_day=4000.0, vat_percentage=0.16))
            print("Created pricing config (chauffeur 4000/day, VAT 16%)")

        for name, off_peak, peak, deposit in DEFAULT_CATEGORIES:
            res = await db.execute(select(VehicleCategory).where(VehicleCategory.category_name == name))
            category = res.scalars().first()
            if category is None:
                category = VehicleCategory(category_name=name)
                db.add(category)
                await db.flush()

            res = await db.execute(select(CategoryPricing).where(CategoryPricing.category_id == category.id))
            if res.scalars().first() is not None:
                continue

            pricing = CategoryPricing(
                category_id=category.id,
                category_name=name,
                off_peak_rate=off_peak,
                peak_rate=peak,
                self_drive_deposit=deposit,
            )
            pricing.set_tiers(DEFAULT_TIERS)
            db.add(pricing)
            print(f"Seeded pricing for {name}")

        await db.commit()


async def run(username: str, password: str, with_pricing: bool) -> bool:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        success = await create_admin_user(username, password)
        if with_pricing:
            await seed_pricing()
        return success
    finally:
        await engine.dispose()


def main():
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if len(args) < 2:
        print("Usage: python create_admin.py <username> <password> [--seed-pricing]")
        sys.exit(1)

    username, password = args[0], args[1]
    if not username or not password:
        print("Error: username and password cannot be empty")
        sys.exit(1)

    success = asyncio.run(run(username, password, "--seed-pricing" in sys.argv))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
