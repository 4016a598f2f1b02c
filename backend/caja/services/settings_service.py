# Overview: Service-layer operations for key/value configuration and catalog seeding.

from __future__ import annotations

from ..extensions import db
from ..models import ConfigEntry, Product
from . import audit_service

LOGGING_ENABLED_KEY = "logging_enabled"

DEFAULT_CONFIG = {
    LOGGING_ENABLED_KEY: ("true", "Habilitar/deshabilitar el log de operaciones"),
}

# (code, name, description, price_cents, stock, category)
SAMPLE_PRODUCTS = [
    ("LAP-001", "Laptop HP", "Laptop HP 15.6 pulgadas, 8GB RAM, 256GB SSD", 89999, 25, "Computadoras"),
    ("MON-001", "Monitor Samsung 24\"", "Monitor LED 24 pulgadas Full HD", 24999, 15, "Monitores"),
    ("TEC-001", "Teclado Mecanico", "Teclado mecanico RGB", 8999, 30, "Perifericos"),
    ("MOU-001", "Mouse Inalambrico", "Mouse inalambrico ergonomico", 3999, 45, "Perifericos"),
    ("AUD-001", "Audifonos Bluetooth", "Audifonos inalambricos con cancelacion de ruido", 7999, 20, "Audio"),
    ("CAM-001", "Webcam HD", "Camara web 1080p con microfono", 5999, 18, "Perifericos"),
    ("DIS-001", "Disco Externo 1TB", "Disco duro externo USB 3.0", 6999, 12, "Almacenamiento"),
    ("MEM-001", "Memoria USB 64GB", "Memoria USB 3.0 de 64GB", 4999, 8, "Almacenamiento"),
]


def get_config(key: str, default: str | None = None) -> str | None:
    entry = db.session.query(ConfigEntry).filter_by(key=key).first()
    if entry is None:
        return default
    return entry.value


def set_config(key: str, value: str, description: str | None = None) -> ConfigEntry:
    entry = db.session.query(ConfigEntry).filter_by(key=key).first()
    if entry is None:
        entry = ConfigEntry(key=key, value=value, description=description)
        db.session.add(entry)
    else:
        entry.value = value
        if description is not None:
            entry.description = description
    db.session.commit()
    return entry


def ensure_defaults() -> None:
    """Insert-if-missing for every default config key."""
    existing = {row.key for row in db.session.query(ConfigEntry.key).all()}
    for key, (value, description) in DEFAULT_CONFIG.items():
        if key not in existing:
            db.session.add(ConfigEntry(key=key, value=value, description=description))
    db.session.commit()


def is_logging_enabled() -> bool:
    return get_config(LOGGING_ENABLED_KEY, "true") == "true"


def set_logging_enabled(enabled: bool) -> bool:
    set_config(LOGGING_ENABLED_KEY, "true" if enabled else "false")
    audit_service.log_operation(
        "SETTINGS_UPDATED",
        f"Log de operaciones {'habilitado' if enabled else 'deshabilitado'}",
        entity_type="config",
        after={LOGGING_ENABLED_KEY: enabled},
    )
    return enabled


def seed_sample_products() -> int:
    """Load the demo catalog when the products table is empty. Returns rows inserted."""
    if db.session.query(Product.id).first() is not None:
        return 0
    for code, name, description, price_cents, stock, category in SAMPLE_PRODUCTS:
        db.session.add(Product(
            code=code,
            name=name,
            description=description,
            price_cents=price_cents,
            stock=stock,
            category=category,
        ))
    db.session.commit()
    return len(SAMPLE_PRODUCTS)
