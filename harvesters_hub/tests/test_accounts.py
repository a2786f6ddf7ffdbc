import unittest

from harvesters_hub import accounts
from harvesters_hub.db import InMemoryDbClient, UnitRecord
from harvesters_hub.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from harvesters_hub.identity import LOGIN_CASCADE, Role, normalize_name, parse_role
from harvesters_hub.schemas import (
    CampusRegistration,
    CommunityRegistration,
    DistrictRegistration,
    SuperAdminRegistration,
)
from harvesters_hub.storage import InMemoryStorageClient


class NormalizationTests(unittest.TestCase):
    def test_normalize_name(self):
        self.assertEqual(normalize_name("  Grace \t  Campus\n"), "grace campus")
        self.assertEqual(normalize_name(None), "")

    def test_unit_record_derives_normalized_name(self):
        record = UnitRecord(role=Role.CELL, display_name=" Cell   ONE ", password="pw")
        self.assertEqual(record.display_name, "Cell ONE")
        self.assertEqual(record.normalized_name, "cell one")

    def test_normalized_name_is_not_settable(self):
        with self.assertRaises(TypeError):
            UnitRecord(
                role=Role.CELL,
                display_name="Cell",
                password="pw",
                normalized_name="something else",
            )

    def test_parse_role(self):
        self.assertEqual(parse_role("Campus"), Role.CAMPUS)
        self.assertEqual(parse_role("super_admin"), Role.SUPER_ADMIN)
        self.assertIsNone(parse_role("pastor"))

    def test_cascade_order(self):
        self.assertEqual(
            [role.value for role in LOGIN_CASCADE],
            ["campus", "district", "community", "cell", "superadmin"],
        )


class RegistrationTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.storage = InMemoryStorageClient()

    def _campus(self, name="Grace Campus", email="grace@example.com"):
        return accounts.register_campus(
            self.db,
            self.storage,
            CampusRegistration(name=name, address="addr", email=email, password="pw"),
            folder="test",
        )

    def test_register_campus(self):
        record = self._campus(name=" Grace   Campus")
        self.assertEqual(record.normalized_name, "grace campus")
        self.assertIs(self.db.get_unit(Role.CAMPUS, record.id), record)

    def test_missing_fields_raise_validation_error(self):
        with self.assertRaises(ValidationError):
            accounts.register_campus(
                self.db,
                self.storage,
                CampusRegistration(name="x", address="", email="a@b", password="pw"),
                folder="test",
            )

    def test_duplicates_raise_conflict(self):
        self._campus()
        with self.assertRaises(ConflictError):
            self._campus(name="Another")
        with self.assertRaises(ConflictError):
            self._campus(name="grace CAMPUS", email="new@example.com")

    def test_same_name_allowed_in_different_collections(self):
        campus = self._campus(name="Victory")
        district = accounts.register_district(
            self.db,
            self.storage,
            DistrictRegistration(
                name="Victory", campus=campus.id, email="d@example.com", password="pw"
            ),
            folder="test",
        )
        self.assertEqual(district.normalized_name, campus.normalized_name)

    def test_community_requires_known_district(self):
        with self.assertRaises(ValidationError):
            accounts.register_community(
                self.db,
                self.storage,
                CommunityRegistration(
                    name="Hope",
                    district="missing",
                    leader="Ada",
                    leaderPhone="1",
                    password="pw",
                ),
                folder="test",
            )

    def test_super_admin_name_is_unique_case_insensitively(self):
        accounts.register_super_admin(
            self.db, SuperAdminRegistration(name="Root", password="pw")
        )
        with self.assertRaises(ConflictError):
            accounts.register_super_admin(
                self.db, SuperAdminRegistration(name=" ROOT ", password="other")
            )


class LoginCascadeTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.campus = self.db.create_unit(
            UnitRecord(
                role=Role.CAMPUS,
                display_name="Victory",
                password="campus-pw",
                email="campus@example.com",
            )
        )
        self.district = self.db.create_unit(
            UnitRecord(
                role=Role.DISTRICT,
                display_name="VICTORY",
                password="district-pw",
                email="district@example.com",
                campus_id=self.campus.id,
            )
        )
        self.admin = self.db.create_unit(
            UnitRecord(role=Role.SUPER_ADMIN, display_name="Root Admin", password="root")
        )

    def test_first_collection_wins(self):
        result = accounts.resolve_login(self.db, "  victory ", "campus-pw")
        self.assertEqual(result.role, Role.CAMPUS)
        self.assertEqual(result.display_name, "Victory")

    def test_shadowed_record_cannot_log_in_by_name(self):
        with self.assertRaises(InvalidCredentialsError):
            accounts.resolve_login(self.db, "victory", "district-pw")

    def test_email_match(self):
        result = accounts.resolve_login(self.db, "district@example.com", "district-pw")
        self.assertEqual(result.role, Role.DISTRICT)
        self.assertEqual(
            result.as_user(),
            {
                "id": self.district.id,
                "name": "VICTORY",
                "email": "district@example.com",
                "logo": "",
            },
        )

    def test_email_match_is_case_sensitive(self):
        with self.assertRaises(NotFoundError):
            accounts.resolve_login(self.db, "DISTRICT@example.com", "district-pw")

    def test_super_admin_is_checked_last(self):
        result = accounts.resolve_login(self.db, "root   admin", "root")
        self.assertEqual(result.role, Role.SUPER_ADMIN)

    def test_restricted_roles(self):
        result = accounts.resolve_login(
            self.db, "victory", "district-pw", roles=(Role.DISTRICT,)
        )
        self.assertEqual(result.id, self.district.id)

    def test_not_found_and_blank_input(self):
        with self.assertRaises(NotFoundError):
            accounts.resolve_login(self.db, "nobody", "pw")
        with self.assertRaises(ValidationError):
            accounts.resolve_login(self.db, "   ", "pw")
        with self.assertRaises(ValidationError):
            accounts.resolve_login(self.db, "victory", "")

    def test_password_compared_exactly(self):
        with self.assertRaises(InvalidCredentialsError):
            accounts.resolve_login(self.db, "victory", "campus-pw ")

    def test_login_by_name(self):
        record = accounts.login_by_name(self.db, Role.SUPER_ADMIN, "ROOT ADMIN", "root")
        self.assertEqual(record.id, self.admin.id)
        with self.assertRaises(InvalidCredentialsError):
            accounts.login_by_name(self.db, Role.SUPER_ADMIN, "missing", "root")


if __name__ == "__main__":
    unittest.main()
