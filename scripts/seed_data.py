"""
Seed data for a fresh shop: an admin login, a few categories and products.

Admin credentials come from SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD.
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from posapi.core.security import hash_password
from posapi.database.connection import SessionLocal
from posapi.models import Category, Product, User, UserRole


def seed_admin():
    email = os.getenv("SEED_ADMIN_EMAIL", "admin@koperasi.co.id").lower()
    password = os.getenv("SEED_ADMIN_PASSWORD", "admin123")

    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == email).first():
            print(f"Admin already exists: {email}")
            return
        db.add(
            User(
                email=email,
                name="Administrator",
                role=UserRole.ADMIN.value,
                password_hash=hash_password(password),
                is_active=True,
            )
        )
        db.commit()
        print(f"Admin created: {email}")
    except Exception as e:
        db.rollback()
        print(f"Failed to seed admin: {str(e)}")
        raise
    finally:
        db.close()


def seed_catalog():
    """Sample categories and products (skipped when products already exist)"""
    default_catalog = {
        ("Sembako", "#f59e0b"): [
            ("Beras 5kg", 72000, 65000, 20),
            ("Minyak Goreng 1L", 18000, 15500, 30),
            ("Gula Pasir 1kg", 17000, 15000, 25),
        ],
        ("Minuman", "#0ea5e9"): [
            ("Air Mineral 600ml", 4000, 2800, 48),
            ("Teh Botol", 5000, 3800, 24),
        ],
        ("Alat Tulis", "#8b5cf6"): [
            ("Buku Tulis", 5000, 3500, 40),
            ("Pulpen", 3000, 2000, 60),
        ],
    }

    db = SessionLocal()
    try:
        if db.query(Product).first() is not None:
            print("Products already present, skipping catalog seed")
            return

        count = 0
        for (category_name, color), products in default_catalog.items():
            category = Category(name=category_name, color=color)
            db.add(category)
            db.flush()
            for name, price, cost_price, stock in products:
                db.add(
                    Product(
                        name=name,
                        price=price,
                        cost_price=cost_price,
                        stock=stock,
                        category_id=category.id,
                        is_active=True,
                    )
                )
                count += 1
        db.commit()
        print(f"Catalog seeded: {len(default_catalog)} categories, {count} products")
    except Exception as e:
        db.rollback()
        print(f"Failed to seed catalog: {str(e)}")
        raise
    finally:
        db.close()


def main():
    seed_admin()
    seed_catalog()


if __name__ == "__main__":
    main()
