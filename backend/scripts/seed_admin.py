"""Create (or reset) the admin account for the configured shop.

Also creates a placeholder shop profile when none exists yet, so the
storefront contact page works right after setup.

Run from the backend directory:
    PYTHONPATH=. python scripts/seed_admin.py --email admin@example.in --password '...'
"""

import argparse
import asyncio
import logging

from sqlalchemy import select

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the shop admin user")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Admin")
    parser.add_argument(
        "--skip-shop", action="store_true", help="do not create the shop profile"
    )
    args = parser.parse_args()
    if len(args.password) < MIN_PASSWORD_LENGTH:
        parser.error(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    return args


async def main():
    from app.auth import hash_password
    from app.config import get_settings
    from app.database import async_session
    from app.models import AdminUser, Shop

    args = parse_args()
    shop_id = get_settings().shop_uuid
    email = args.email.strip().lower()

    async with async_session() as session:
        result = await session.execute(
            select(AdminUser).where(AdminUser.email == email, AdminUser.shop_id == shop_id)
        )
        admin = result.scalar_one_or_none()
        if admin:
            admin.password_hash = hash_password(args.password)
            admin.name = args.name
            logger.info("Admin %s already exists, password updated.", email)
        else:
            session.add(
                AdminUser(
                    shop_id=shop_id,
                    name=args.name,
                    email=email,
                    password_hash=hash_password(args.password),
                    role="admin",
                )
            )
            logger.info("Created admin %s for shop %s.", email, shop_id)

        if not args.skip_shop and await session.get(Shop, shop_id) is None:
            session.add(
                Shop(
                    id=shop_id,
                    shop_name="कृषि केंद्र",
                    shop_name_english="Krishi Kendra",
                    owner_name="मालिक",
                    owner_name_english="Owner",
                    address="पता अपडेट करें",
                    address_english="Update the address",
                    phone="+91 00000 00000",
                    whatsapp="+91 00000 00000",
                    email=email,
                )
            )
            logger.info("Created placeholder shop profile; update it from the admin panel.")

        await session.commit()


if __name__ == "__main__":
    asyncio.run(main())
