#!/usr/bin/env python3
# scripts/seed_sample_data.py
"""
Seed a development database with a small, consistent data set.

Everything goes through the services, so the seed obeys the same rules as
real traffic. Re-running it skips records that already exist.

    python scripts/seed_sample_data.py
"""
import logging
import uuid
from datetime import date, timedelta
from decimal import Decimal

from cultivation.database import session_scope
from cultivation.models import AuditOperation, BatchStatus, Role, WriteUpSeverity
from cultivation.schemas import (
    BatchCreate,
    LocationCreate,
    StrainCreate,
    UserCreate,
    WorkEntryCreate,
    WriteUpCreate,
)
from cultivation.services import (
    AuditLogService,
    BatchService,
    LocationService,
    StrainService,
    UserService,
    WorkEntryService,
    WriteUpService,
)
from cultivation.utils import set_actor, set_correlation_id, setup_logging

logger = logging.getLogger(__name__)

SAMPLE_STRAINS = [
    ("OG Kush", Decimal("12.500")),
    ("Blue Dream", Decimal("11.750")),
]


def seed() -> None:
    set_correlation_id(f"seed-{uuid.uuid4().hex[:8]}")

    locations = LocationService()
    strains = StrainService()
    users = UserService()
    batches = BatchService()
    work = WorkEntryService()
    write_ups = WriteUpService()
    audit = AuditLogService()

    with session_scope() as db:
        logger.info("Starting database seeding")

        # 1. Location
        site = locations.get_location_by_name(db, "Site A")
        if site is None:
            site = locations.create_location(db, LocationCreate(name="Site A", notes="Demo site"))
            audit.record_change(db, site, AuditOperation.INSERT)

        # 2. Strains
        strain_ids = []
        for name, bucket_weight in SAMPLE_STRAINS:
            strain = strains.get_strain_by_name(db, name)
            if strain is None:
                strain = strains.create_strain(db, StrainCreate(name=name, bucket_weight=bucket_weight))
            strain_ids.append(strain.id)

        # 3. Users
        owner = users.get_user_by_email(db, "owner@example.com")
        if owner is None:
            owner = users.create_user(db, UserCreate(
                first_name="Olive", last_name="Owner", email="owner@example.com",
                role=Role.SUPER_ADMIN,
            ))
        set_actor(owner.id, "127.0.0.1")

        manager = users.get_user_by_email(db, "manager@example.com")
        if manager is None:
            manager = users.create_user(db, UserCreate(
                employee_id=100, first_name="Max", last_name="Manager", email="manager@example.com",
                role=Role.ADMIN, location_ids=[site.id],
            ))

        trimmer = users.get_user_by_email(db, "trimmer@example.com")
        if trimmer is None:
            trimmer = users.create_user(db, UserCreate(
                employee_id=101, first_name="Tess", last_name="Trimmer", email="trimmer@example.com",
                location_ids=[site.id],
            ))

        # 4. Batch with both strains
        start = date.today() - timedelta(days=3)
        batch = next(iter(batches.list_batches(db, location_id=site.id, status=BatchStatus.IN_PROGRESS)), None)
        if batch is None:
            batch = batches.create_batch(db, BatchCreate(
                location_id=site.id, start_date=start, strain_ids=strain_ids,
            ))
            audit.record_change(db, batch, AuditOperation.INSERT)

        # 5. A few days of work on the first strain
        first_strain = batches.list_batch_strains(db, batch.id)[0]
        for offset in range(3):
            work_date = batch.start_date + timedelta(days=offset)
            if work.find_entry(db, trimmer.id, first_strain.id, work_date) is None:
                work.create_entry(db, WorkEntryCreate(
                    user_id=trimmer.id,
                    batch_strain_id=first_strain.id,
                    work_date=work_date,
                    amount=Decimal("50.25") + offset,
                    hours=Decimal("3.50"),
                ))

        # 6. One open write-up
        if not write_ups.list_for_employee(db, trimmer.id):
            write_ups.create_write_up(db, WriteUpCreate(
                employee_id=trimmer.id,
                issued_by=manager.id,
                severity=WriteUpSeverity.VERBAL_WARNING,
                incident_date=date.today() - timedelta(days=1),
                description="Left the trim room without logging hours",
            ))

        logger.info("Database seeding complete")


if __name__ == "__main__":
    setup_logging()
    try:
        seed()
    except Exception:
        logger.exception("Seeding failed")
        raise
