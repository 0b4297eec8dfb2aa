# Overview: Starter menu for a fresh install.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Category, Product

# (category, product name, price in cents)
STARTER_MENU = [
    ("Pide", "Kıymalı Pide", 15000),
    ("Pide", "Kuşbaşılı Pide", 18000),
    ("Pide", "Kaşarlı Pide", 15000),
    ("Pide", "Kuşbaşı Kaşarlı Pide", 22000),
    ("Pide", "Peynirli Pide", 15000),
    ("Pide", "Kıymalı Kaşarlı Pide", 20000),
    ("Cantık", "Cantık", 7500),
    ("Cantık", "Kıymalı Kaşarlı Cantık", 10000),
    ("Cantık", "Kuşbaşı Kaşarlı Cantık", 12000),
    ("Cantık", "Kaşarlı Cantık", 12000),
    ("İçecek", "Ayran", 1000),
    ("İçecek", "Soda", 4000),
]


def seed_catalog() -> int:
    """
    Create the starter categories and products.

    Skipped entirely when any product already exists. Returns the number of
    products created.
    """
    if db.session.query(Product.id).first() is not None:
        current_app.logger.info("Products already seeded, skipping")
        return 0

    categories: dict[str, Category] = {}
    for category_name, product_name, price_cents in STARTER_MENU:
        category = categories.get(category_name)
        if category is None:
            category = db.session.query(Category).filter_by(name=category_name).first()
            if category is None:
                category = Category(name=category_name)
                db.session.add(category)
                db.session.flush()
            categories[category_name] = category

        db.session.add(Product(name=product_name, price_cents=price_cents, category_id=category.id))

    db.session.commit()
    current_app.logger.info("%s products seeded", len(STARTER_MENU))
    return len(STARTER_MENU)
