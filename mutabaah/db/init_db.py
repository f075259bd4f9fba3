from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from mutabaah.db.base import Base
from mutabaah.db.session import SessionLocal, engine
from mutabaah.models import activity as _activity  # noqa: F401  (register tables)
from mutabaah.models import messaging as _messaging  # noqa: F401  (register tables)
from mutabaah.models import mentoring as _mentoring  # noqa: F401  (register tables)
from mutabaah.models.security import Employee, Hospital
from mutabaah.security.passwords import hash_password
from mutabaah.settings import get_settings

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "mutabaah123"


def init_db() -> None:
    """
    Create tables and, when ``APP_SEED_DEMO_DATA`` is on, seed demo data.

    The seed is small and deterministic: three hospitals and one account per
    role, all using ``DEMO_PASSWORD``.
    """

    Base.metadata.create_all(bind=engine)

    if not get_settings().seed_demo_data:
        return

    with SessionLocal() as db:
        if _has_seed_data(db):
            return
        _seed(db)
        logger.info("Seeded demo hospitals and employees")


def _has_seed_data(db: Session) -> bool:
    return db.execute(select(Hospital.id).limit(1)).first() is not None


def _seed(db: Session) -> None:
    # Hospitals
    sukapura = Hospital(id="RSIJSP", brand="RSIJ Sukapura", name="RS Islam Jakarta Sukapura")
    pondok_kopi = Hospital(id="RSIJPK", brand="RSIJ Pondok Kopi", name="RS Islam Jakarta Pondok Kopi")
    cempaka_putih = Hospital(id="RSIJCP", brand="RSIJ Cempaka Putih", name="RS Islam Jakarta Cempaka Putih")
    db.add_all([sukapura, pondok_kopi, cempaka_putih])
    db.flush()

    password_hash = hash_password(DEMO_PASSWORD)

    # Employees
    root = Employee(
        id="100001",
        email="superadmin@example.com",
        name="Siti Super Admin",
        password_hash=password_hash,
        role="super-admin",
        hospital_id=cempaka_putih.id,
    )
    admin = Employee(
        id="200001",
        email="admin.sukapura@example.com",
        name="Ahmad Admin",
        password_hash=password_hash,
        role="admin",
        hospital_id=sukapura.id,
        managed_hospital_ids=[sukapura.id],
    )
    nurse = Employee(
        id="300001",
        email="nurse@example.com",
        name="Nur Perawat",
        password_hash=password_hash,
        role="user",
        hospital_id=sukapura.id,
        unit="Rawat Inap",
        profession_category="MEDIS",
        profession="Perawat",
        mentor_id="200001",
    )
    clerk = Employee(
        id="300002",
        email="clerk@example.com",
        name="Budi Administrasi",
        password_hash=password_hash,
        role="user",
        hospital_id=pondok_kopi.id,
        unit="Keuangan",
        profession_category="NON MEDIS",
        profession="Staf Administrasi",
    )
    db.add_all([root, admin, nurse, clerk])

    db.commit()
