"""Integration tests for the SQL conversation store."""

from __future__ import annotations

import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from sqlalchemy import create_engine, delete, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.base import Base
from app.models.conversation import Conversation
from app.models.message import Message
from app.services.conversations import SqlConversationStore
from app.services.errors import ConversationConflict, ConversationNotFound, StorageError


class ConversationStoreTests(unittest.TestCase):
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
        self.db.execute(delete(Message))
        self.db.execute(delete(Conversation))
        self.db.commit()
        self.store = SqlConversationStore(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def _stored_messages(self, conversation_id: str) -> list[Message]:
        stmt = select(Message).where(Message.conversation_id == conversation_id).order_by(Message.position)
        return list(self.db.scalars(stmt))

    def test_create_then_load_returns_empty_owned_conversation(self) -> None:
        created = self.store.create("user_a")

        loaded = self.store.load(created.id, "user_a")

        self.assertEqual(loaded.id, created.id)
        self.assertEqual(loaded.owner_id, "user_a")
        self.assertEqual(loaded.version, 1)
        self.assertEqual(loaded.messages, [])

    def test_load_is_scoped_to_owner(self) -> None:
        created = self.store.create("user_a")

        with self.assertRaises(ConversationNotFound):
            self.store.load(created.id, "user_b")
        with self.assertRaises(ConversationNotFound):
            self.store.load("does-not-exist", "user_a")

    def test_persist_appends_messages_in_order_and_bumps_version(self) -> None:
        conversation = self.store.create("user_a")
        t0 = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
        conversation.append("user", "Hello", now=t0)
        conversation.append("assistant", "Hi there", now=t0.replace(second=1))

        self.store.persist(conversation)

        self.assertEqual(conversation.version, 2)
        stored = self._stored_messages(conversation.id)
        self.assertEqual([(m.position, m.role, m.content) for m in stored], [(0, "user", "Hello"), (1, "assistant", "Hi there")])

        reloaded = self.store.load(conversation.id, "user_a")
        self.assertEqual(reloaded.version, 2)
        self.assertEqual([m.content for m in reloaded.messages], ["Hello", "Hi there"])
        self.assertEqual(reloaded.messages[0].timestamp, t0)

    def test_second_persist_only_adds_new_tail(self) -> None:
        conversation = self.store.create("user_a")
        conversation.append("user", "First")
        self.store.persist(conversation)

        conversation = self.store.load(conversation.id, "user_a")
        conversation.append("assistant", "Second")
        conversation.append("user", "Third")
        self.store.persist(conversation)

        stored = self._stored_messages(conversation.id)
        self.assertEqual([m.content for m in stored], ["First", "Second", "Third"])
        self.assertEqual([m.position for m in stored], [0, 1, 2])
        self.assertEqual(conversation.version, 3)

    def test_repeated_load_without_mutation_is_identical(self) -> None:
        conversation = self.store.create("user_a")
        conversation.append("user", "Hello")
        conversation.append("assistant", "Hi there")
        self.store.persist(conversation)

        first = self.store.load(conversation.id, "user_a")
        second = self.store.load(conversation.id, "user_a")

        self.assertEqual(first.messages, second.messages)
        self.assertEqual(first.version, second.version)

    def test_concurrent_persist_of_same_conversation_conflicts(self) -> None:
        created = self.store.create("user_a")
        other_db = self.SessionLocal()
        try:
            other_store = SqlConversationStore(other_db)
            first = self.store.load(created.id, "user_a")
            second = other_store.load(created.id, "user_a")

            first.append("user", "From request one")
            second.append("user", "From request two")
            self.store.persist(first)

            with self.assertRaises(ConversationConflict):
                other_store.persist(second)
        finally:
            other_db.close()

        stored = self._stored_messages(created.id)
        self.assertEqual([m.content for m in stored], ["From request one"])

    def test_database_failure_on_persist_is_storage_error(self) -> None:
        conversation = self.store.create("user_a")
        conversation.append("user", "Hello")
        failure = OperationalError("COMMIT", {}, Exception("disk I/O error"))

        with patch.object(self.db, "commit", side_effect=failure):
            with self.assertRaises(StorageError) as ctx:
                self.store.persist(conversation)

        self.assertIs(ctx.exception.__cause__, failure)
        self.assertEqual(conversation.version, 1)
        self.assertEqual(self._stored_messages(conversation.id), [])


if __name__ == "__main__":
    unittest.main()
