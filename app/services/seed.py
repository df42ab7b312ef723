"""Startup data: the bootstrap admin account and a small demo catalog."""

import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.transaction import run_in_transaction
from app.models.user import ROLE_ADMIN
from app.services import catalog
from app.services.auth import create_user, user_exists

logger = logging.getLogger(__name__)

DEMO_PRODUCTS = [
    ("Wireless Headphones", "Premium noise-cancelling headphones with 30-hour battery life", 29900, 150),
    ("Smart Watch", "Fitness tracker with heart rate monitor and GPS", 19900, 200),
    ("Laptop Stand", "Ergonomic aluminum laptop stand for better posture", 4900, 300),
    ("USB-C Hub", "7-in-1 USB-C hub with HDMI, USB 3.0, and SD card reader", 3900, 250),
    ("Mechanical Keyboard", "RGB backlit mechanical keyboard with blue switches", 12900, 180),
    ("Gaming Mouse", "High-precision gaming mouse with customizable RGB", 6900, 220),
    ("Webcam 1080p", "Full HD webcam with auto-focus and built-in microphone", 7900, 175),
    ("Phone Case", "Durable protective case with shock absorption", 2900, 500),
    ("Power Bank", "20000mAh portable power bank with dual USB ports", 5900, 280),
    ("Bluetooth Speaker", "Portable waterproof speaker with 360° sound", 8900, 190),
]


def ensure_admin_user(db: Session) -> bool:
    """Create the admin from ADMIN_* settings. Returns True if one was created."""
    fields = (settings.ADMIN_EMAIL, settings.ADMIN_USERNAME,
              settings.ADMIN_PASSWORD, settings.ADMIN_FULL_NAME)
    if not all(fields):
        return False

    def _ensure() -> bool:
        if user_exists(db, settings.ADMIN_USERNAME, settings.ADMIN_EMAIL):
            return False
        create_user(
            db,
            username=settings.ADMIN_USERNAME,
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD,
            full_name=settings.ADMIN_FULL_NAME,
            role=ROLE_ADMIN,
        )
        return True

    created = run_in_transaction(db, _ensure)
    if created:
        logger.info("Admin user %s created", settings.ADMIN_EMAIL)
    return created


def ensure_demo_products(db: Session) -> int:
    def _ensure() -> int:
        if catalog.count_products(db) > 0:
            return 0
        for name, description, price, stock in DEMO_PRODUCTS:
            catalog.create_product(db, name, description, price, stock)
        return len(DEMO_PRODUCTS)

    created = run_in_transaction(db, _ensure)
    if created:
        logger.info("Created %d demo products", created)
    else:
        logger.info("Demo products already exist, skipping creation")
    return created
