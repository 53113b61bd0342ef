# tests/services/test_strain_service.py
"""
Tests for StrainService.

Strains are shared by all locations; name and bucket weight freeze once a
batch uses the strain, and such a strain cannot be deleted.
"""

import uuid
from decimal import Decimal

import pytest

from cultivation.schemas.strains import StrainCreate, StrainUpdate
from cultivation.services.exceptions import (
    DuplicateStrainError,
    ImmutableFieldError,
    ReferenceRestrictedError,
    StrainNotFoundError,
)
from cultivation.services.strain_service import StrainService
from tests.conftest import create_strain


@pytest.fixture
def service() -> StrainService:
    return StrainService()


class TestCreateStrain:
    """Tests for create_strain."""

    def test_create(self, db, service):
        """Should persist the strain with its bucket weight."""
        strain = service.create_strain(db, StrainCreate(name="OG Kush", bucket_weight=Decimal("12.5")))

        assert strain.name == "OG Kush"
        assert strain.bucket_weight == Decimal("12.500")

    def test_duplicate_name(self, db, service):
        """Should raise DuplicateStrainError."""
        create_strain(db, "OG Kush")

        with pytest.raises(DuplicateStrainError):
            service.create_strain(db, StrainCreate(name="OG Kush", bucket_weight=Decimal("1")))


class TestReadStrains:
    """Tests for lookups and listing."""

    def test_get_unknown(self, db, service):
        """Should raise StrainNotFoundError."""
        with pytest.raises(StrainNotFoundError):
            service.get_strain(db, uuid.uuid4())

    def test_list_with_search(self, db, service):
        """Should filter by case-insensitive substring."""
        create_strain(db, "OG Kush")
        create_strain(db, "Blue Dream")
        create_strain(db, "Kush Mints")

        assert [s.name for s in service.list_strains(db, search="KUSH")] == ["Kush Mints", "OG Kush"]

    def test_is_referenced(self, db, service, og_kush, batch_strain):
        """Should report strains attached to a batch."""
        unused = create_strain(db, "Blue Dream")

        assert service.is_referenced(db, og_kush.id) is True
        assert service.is_referenced(db, unused.id) is False


class TestUpdateStrain:
    """Tests for update_strain."""

    def test_update_unreferenced(self, db, service, og_kush):
        """Name and bucket weight are editable before first use."""
        updated = service.update_strain(
            db, og_kush.id, StrainUpdate(name="OG Kush #18", bucket_weight=Decimal("13.25"))
        )

        assert updated.name == "OG Kush #18"
        assert updated.bucket_weight == Decimal("13.250")

    def test_bucket_weight_locked_when_referenced(self, db, service, og_kush, batch_strain):
        """Should raise ImmutableFieldError for bucket weight on a used strain."""
        with pytest.raises(ImmutableFieldError) as exc_info:
            service.update_strain(db, og_kush.id, StrainUpdate(bucket_weight=Decimal("9")))

        assert exc_info.value.field == "bucket_weight"

    def test_notes_editable_when_referenced(self, db, service, og_kush, batch_strain):
        """Descriptive fields stay editable."""
        updated = service.update_strain(db, og_kush.id, StrainUpdate(notes="Dense buds", description="Indica"))

        assert updated.notes == "Dense buds"
        assert updated.description == "Indica"

    def test_same_name_is_not_a_change(self, db, service, og_kush, batch_strain):
        """Sending the current name on a used strain is allowed."""
        updated = service.update_strain(db, og_kush.id, StrainUpdate(name="OG Kush", notes="x"))

        assert updated.name == "OG Kush"

    def test_rename_to_existing(self, db, service, og_kush):
        """Should raise DuplicateStrainError."""
        create_strain(db, "Blue Dream")

        with pytest.raises(DuplicateStrainError):
            service.update_strain(db, og_kush.id, StrainUpdate(name="Blue Dream"))


class TestDeleteStrain:
    """Tests for delete_strain."""

    def test_delete_unused(self, db, service, og_kush):
        """Should delete a strain no batch used."""
        strain_id = og_kush.id
        service.delete_strain(db, strain_id)

        with pytest.raises(StrainNotFoundError):
            service.get_strain(db, strain_id)

    def test_delete_referenced(self, db, service, og_kush, batch_strain):
        """Should raise ReferenceRestrictedError."""
        with pytest.raises(ReferenceRestrictedError):
            service.delete_strain(db, og_kush.id)

        assert service.get_strain(db, og_kush.id).name == "OG Kush"
