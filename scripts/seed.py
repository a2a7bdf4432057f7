"""
Seed the storefront database
- Creates tables if missing
- Adds the admin account if missing
- Adds the default categories that are missing (matched by name)
- Adds demo products only when the products table is empty

Running it twice changes nothing the second time.

Usage:
  python -m scripts.seed --db sqlite:///./neotech.db
"""
import argparse
import logging
import os

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront import auth, models
from storefront.db import init_db, make_engine

logger = logging.getLogger(__name__)

ADMIN_EMAIL = "admin@neotech.local"
ADMIN_PASSWORD = "admin123"

CATEGORIES = ["Phones & Tablets", "Computers", "Audio", "Gaming", "Wearables"]

# name, price (minor units), category position in CATEGORIES, description, image
PRODUCTS = [
    ("NeoPhone X1", 250000, 0, "6.7\" AMOLED, 5G, 128GB", "/static/img/phone.png"),
    ("Tab Pro 11", 310000, 0, "11\" IPS, 8GB/256GB", "/static/img/tablet.png"),
    ("UltraBook 14", 890000, 1, "Core i7, 16GB/512GB SSD", "/static/img/laptop.png"),
    ("BassPods Wireless", 68000, 2, "ANC earbuds, 24h battery", "/static/img/earbuds.png"),
    ("GameBox One S", 420000, 3, "4K HDR console", "/static/img/console.png"),
    ("NeoWatch S", 95000, 4, "AMOLED, GPS, SpO2", "/static/img/watch.png"),
]


def seed(database_url: str) -> dict:
    engine = make_engine(database_url)
    init_db(engine)
    created = {"admin": 0, "categories": 0, "products": 0}

    with Session(engine) as db:
        if db.scalar(select(models.User).where(models.User.email == ADMIN_EMAIL)) is None:
            db.add(models.User(email=ADMIN_EMAIL, password=auth.hash_password(ADMIN_PASSWORD), role=auth.ROLE_ADMIN))
            created["admin"] = 1
            logger.info("Admin user created: %s / %s", ADMIN_EMAIL, ADMIN_PASSWORD)

        category_ids = []
        for name in CATEGORIES:
            category = db.scalar(select(models.Category).where(models.Category.name == name))
            if category is None:
                category = models.Category(name=name)
                db.add(category)
                db.flush()
                created["categories"] += 1
            category_ids.append(category.id)

        if db.scalar(select(func.count()).select_from(models.Product)) == 0:
            for name, price, cat_pos, description, image in PRODUCTS:
                db.add(models.Product(
                    name=name, price=price, category_id=category_ids[cat_pos],
                    description=description, image=image, active=1,
                ))
            created["products"] = len(PRODUCTS)
            logger.info("Seeded %d products", len(PRODUCTS))

        db.commit()

    engine.dispose()
    return created


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--db",
        default=os.getenv("DATABASE_URL", "sqlite:///./neotech.db"),
        help="SQLAlchemy database URL",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    print(seed(args.db))

if __name__ == "__main__":
    main()
