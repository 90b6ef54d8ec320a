"""Tests for identity-provider user lifecycle sync."""

from __future__ import annotations

import unittest

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.base import Base
from app.models.user import User
from app.schemas.identity import IdentityEvent
from app.services.identity_sync import apply_identity_event


def _event(event_type: str, **data: object) -> IdentityEvent:
    return IdentityEvent.model_validate({"type": event_type, "data": {"id": "user_42", **data}})


class IdentitySyncTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        self.db.execute(delete(User))
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()

    def test_created_event_inserts_user(self) -> None:
        action = apply_identity_event(
            self.db,
            _event(
                "user.created",
                email_addresses=[{"email_address": "grace@example.com"}, {"email_address": "alt@example.com"}],
                first_name="Grace",
                last_name="Hopper",
                image_url="https://img.example.com/grace.png",
            ),
        )

        self.assertEqual(action, "upserted")
        user = self.db.get(User, "user_42")
        self.assertEqual(user.email, "grace@example.com")
        self.assertEqual(user.name, "Grace Hopper")
        self.assertEqual(user.image_url, "https://img.example.com/grace.png")

    def test_missing_email_is_skipped(self) -> None:
        for event_type in ("user.created", "user.updated"):
            with self.subTest(event_type=event_type):
                action = apply_identity_event(self.db, _event(event_type, first_name="NoMail"))

                self.assertEqual(action, "skipped")
                self.assertIsNone(self.db.get(User, "user_42"))

    def test_updated_event_overwrites_and_tolerates_missing_names(self) -> None:
        apply_identity_event(
            self.db,
            _event("user.created", email_addresses=[{"email_address": "old@example.com"}], first_name="Old"),
        )

        apply_identity_event(
            self.db,
            _event("user.updated", email_addresses=[{"email_address": "new@example.com"}], last_name="Only"),
        )

        user = self.db.get(User, "user_42")
        self.assertEqual(user.email, "new@example.com")
        self.assertEqual(user.name, "Only")

    def test_update_before_create_inserts_user(self) -> None:
        action = apply_identity_event(
            self.db,
            _event("user.updated", email_addresses=[{"email_address": "early@example.com"}]),
        )

        self.assertEqual(action, "upserted")
        self.assertEqual(self.db.get(User, "user_42").name, "")

    def test_deleted_event_removes_user_and_is_idempotent(self) -> None:
        apply_identity_event(
            self.db,
            _event("user.created", email_addresses=[{"email_address": "gone@example.com"}]),
        )

        self.assertEqual(apply_identity_event(self.db, _event("user.deleted")), "deleted")
        self.assertIsNone(self.db.get(User, "user_42"))
        self.assertEqual(apply_identity_event(self.db, _event("user.deleted")), "deleted")

    def test_unknown_event_type_is_ignored(self) -> None:
        self.assertEqual(apply_identity_event(self.db, _event("session.created")), "ignored")


if __name__ == "__main__":
    unittest.main()
