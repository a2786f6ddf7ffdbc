import unittest

from harvesters_hub.db import MediaKind, MediaRecord, MemberRecord, PostgresDbClient, UnitRecord
from harvesters_hub.errors import ConflictError
from harvesters_hub.identity import Role


class PostgresDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    def setUp(self):
        self.db = PostgresDbClient("sqlite+pysqlite:///:memory:")

    def _post(self, **overrides):
        values = dict(
            url="https://example.test/a.jpg",
            media_kind=MediaKind.IMAGE,
            caption="caption",
            uploader_id="u",
            uploader_role=Role.CAMPUS,
            uploader_name="Campus",
            uploader_logo="logo",
        )
        values.update(overrides)
        return self.db.create_media_post(MediaRecord(**values))

    def test_create_and_find_unit(self):
        campus = self.db.create_unit(
            UnitRecord(
                role=Role.CAMPUS,
                display_name="Grace  Campus",
                password="pw",
                email="grace@example.com",
                address="addr",
            )
        )
        fetched = self.db.get_unit(Role.CAMPUS, campus.id)
        self.assertEqual(fetched.display_name, "Grace Campus")
        self.assertEqual(fetched.normalized_name, "grace campus")
        self.assertEqual(fetched.password, "pw")

        self.assertEqual(
            self.db.find_unit(Role.CAMPUS, normalized_name="grace campus").id, campus.id
        )
        self.assertEqual(
            self.db.find_unit(Role.CAMPUS, email="grace@example.com").id, campus.id
        )
        self.assertIsNone(self.db.find_unit(Role.DISTRICT, email="grace@example.com"))
        self.assertIsNone(self.db.find_unit(Role.CAMPUS))
        self.assertIsNone(self.db.get_unit(Role.CAMPUS, "missing"))

    def test_unique_normalized_name(self):
        self.db.create_unit(UnitRecord(role=Role.SUPER_ADMIN, display_name="Root", password="a"))
        with self.assertRaises(ConflictError):
            self.db.create_unit(
                UnitRecord(role=Role.SUPER_ADMIN, display_name="ROOT", password="b")
            )

    def test_list_units_filters_and_orders(self):
        first = self.db.create_unit(
            UnitRecord(
                role=Role.DISTRICT, display_name="A", password="pw",
                email="a@example.com", campus_id="c1", created_at=1.0,
            )
        )
        second = self.db.create_unit(
            UnitRecord(
                role=Role.DISTRICT, display_name="B", password="pw",
                email="b@example.com", campus_id="c1", created_at=2.0,
            )
        )
        self.db.create_unit(
            UnitRecord(
                role=Role.DISTRICT, display_name="C", password="pw",
                email="c@example.com", campus_id="c2", created_at=3.0,
            )
        )
        ids = [record.id for record in self.db.list_units(Role.DISTRICT, campus_id="c1")]
        self.assertEqual(ids, [second.id, first.id])

    def test_members(self):
        self.db.create_member(
            MemberRecord(
                full_name="Ada", address="a", phone="1", email="ada@example.com",
                district_id="d1", cell_id="cell-1",
            )
        )
        self.db.create_member(
            MemberRecord(
                full_name="Ben", address="b", phone="2", email="ben@example.com",
                district_id="d1", cell_id="cell-2",
            )
        )
        self.assertEqual(self.db.find_member_by_email("ada@example.com").full_name, "Ada")
        self.assertEqual(
            [m.full_name for m in self.db.list_members(cell_id="cell-2")], ["Ben"]
        )
        with self.assertRaises(ConflictError):
            self.db.create_member(
                MemberRecord(
                    full_name="Ada 2", address="a", phone="1", email="ada@example.com",
                    district_id="d1", cell_id="cell-1",
                )
            )

    def test_media_posts_newest_first(self):
        old = self._post(created_at=10.0)
        new = self._post(created_at=20.0)
        self.assertEqual([p.id for p in self.db.list_media_posts()], [new.id, old.id])
        fetched = self.db.get_media_post(old.id)
        self.assertEqual(fetched.media_kind, MediaKind.IMAGE)
        self.assertEqual(fetched.uploader_role, Role.CAMPUS)

    def test_toggle_like(self):
        post = self._post()
        self.assertEqual(self.db.toggle_like(post.id, "dev-1"), (1, True))
        self.assertEqual(self.db.toggle_like(post.id, "dev-2"), (2, True))
        self.assertEqual(self.db.toggle_like(post.id, "dev-1"), (1, False))

        stored = self.db.get_media_post(post.id)
        self.assertEqual(stored.liked_by, ["dev-2"])
        self.assertEqual(stored.like_count, len(stored.liked_by))
        self.assertIsNone(self.db.toggle_like("missing", "dev-1"))


if __name__ == "__main__":
    unittest.main()
