"""
Tests for OrganizationService and the demo seed
"""
import pytest

from smartstore.core.exceptions import ConflictError
from smartstore.domain.organization import OrganizationCreate, OrganizationUpdate
from smartstore.services.organization_service import OrganizationService, slugify
from smartstore.services.seed_service import SeedService


class TestSlugify:
    """Test slug generation"""

    @pytest.mark.parametrize("name,expected", [
        ("Demo Store", "demo-store"),
        ("  Café & Co. ", "caf-co"),
        ("!!!", "organization"),
    ])
    def test_slugify(self, name, expected):
        assert slugify(name) == expected


class TestOrganizationService:
    """Test tenant management"""

    def test_slug_collision_gets_suffix(self, seeded):
        service = OrganizationService(seeded)

        organization = service.create_organization(OrganizationCreate(name="Demo Store"))

        assert organization.slug == "demo-store-2"
        assert organization.plan == "starter"

    def test_explicit_slug_must_be_unique(self, seeded):
        with pytest.raises(ConflictError):
            OrganizationService(seeded).create_organization(OrganizationCreate(name="Copy", slug="demo-store"))

    def test_update(self, seeded, demo_org):
        organization = OrganizationService(seeded).update_organization(
            demo_org.id, OrganizationUpdate(plan="enterprise", is_active=False),
        )

        assert organization.plan == "enterprise"
        assert organization.is_active is False

    def test_cannot_delete_organization_with_users(self, seeded, demo_org):
        with pytest.raises(ConflictError) as exc:
            OrganizationService(seeded).delete_organization(demo_org.id)

        assert exc.value.details["users"] == 8

    def test_delete_empty_organization(self, seeded):
        service = OrganizationService(seeded)
        organization = service.create_organization(OrganizationCreate(name="Pop-up Shop"))

        service.delete_organization(organization.id)

        _, total = service.list_organizations()
        assert total == 1


class TestSeed:
    """Test the demo seed"""

    def test_second_run_adds_nothing(self, seeded):
        assert SeedService(seeded).seed() == {}
