"""Unit tests for MongoCommentRepository against mocked collections."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from commentary.domain.error import (
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from commentary.domain.value import ReactionKind, SortOrder
from commentary.persistence.repository import MongoCommentRepository
from tests.conftest import make_comment, make_reply


def _result(**counts):
    return MagicMock(**counts)


@pytest.fixture
def comments():
    collection = MagicMock()
    collection.name = "comments"
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.replace_one = AsyncMock(return_value=_result(matched_count=1))
    collection.update_many = AsyncMock(
        return_value=_result(matched_count=2, modified_count=2)
    )
    collection.update_one = AsyncMock(
        return_value=_result(matched_count=1, modified_count=1)
    )
    collection.delete_many = AsyncMock(return_value=_result(deleted_count=3))
    collection.count_documents = AsyncMock(return_value=0)
    return collection


@pytest.fixture
def counters():
    collection = MagicMock()
    collection.find_one_and_update = AsyncMock(return_value={"_id": "x", "seq": 5})
    return collection


@pytest.fixture
def repo(comments, counters):
    return MongoCommentRepository(comments, counters)


class TestReads:
    """Tests for find_one and find_many."""

    @pytest.mark.asyncio
    async def test_find_one_parses_document(self, repo, comments):
        """Stored documents are parsed into comments, without Mongo's _id."""
        comment = make_comment("c1").with_reply(make_reply("r1"))
        comments.find_one.return_value = comment.to_document()

        found = await repo.find_one(
            {"commentId": "c1"}, sort=[("order", SortOrder.DESCENDING)]
        )

        assert found == comment
        comments.find_one.assert_awaited_once_with(
            {"commentId": "c1"}, {"_id": False}, sort=[("order", SortOrder.DESCENDING)]
        )

    @pytest.mark.asyncio
    async def test_find_one_none(self, repo):
        """No document gives None."""
        assert await repo.find_one({"commentId": "c1"}) is None

    @pytest.mark.asyncio
    async def test_find_many_sorts_cursor(self, repo, comments):
        """The sort is applied to the cursor before reading."""
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.to_list = AsyncMock(
            return_value=[make_comment("c1").to_document(), make_comment("c2", order=2).to_document()]
        )
        comments.find.return_value = cursor

        found = await repo.find_many({"postId": "p1"}, sort=[("order", SortOrder.ASCENDING)])

        assert [c.comment_id for c in found] == ["c1", "c2"]
        cursor.sort.assert_called_once_with([("order", SortOrder.ASCENDING)])

    @pytest.mark.asyncio
    async def test_connection_failure_is_translated(self, repo, comments):
        """Driver connection errors become StorageConnectionError."""
        comments.find_one.side_effect = ServerSelectionTimeoutError("no server")

        with pytest.raises(StorageConnectionError):
            await repo.find_one({})

    @pytest.mark.asyncio
    async def test_other_driver_errors_are_translated(self, repo, comments):
        """Other driver errors become StorageError."""
        comments.find_one.side_effect = OperationFailure("bad query")

        with pytest.raises(StorageError):
            await repo.find_one({"$where": "1"})


class TestWrites:
    """Tests for insert and the version-checked save."""

    @pytest.mark.asyncio
    async def test_insert_stores_camel_case_document(self, repo, comments):
        """Insert writes the stored document shape."""
        comment = make_comment("c1")

        await repo.insert(comment)

        document = comments.insert_one.await_args.args[0]
        assert document["commentId"] == "c1"
        assert document["version"] == 0

    @pytest.mark.asyncio
    async def test_insert_duplicate(self, repo, comments):
        """A unique index violation becomes DuplicateKeyError."""
        comments.insert_one.side_effect = MongoDuplicateKeyError("E11000")

        with pytest.raises(DuplicateKeyError):
            await repo.insert(make_comment("c1"))

    @pytest.mark.asyncio
    async def test_save_matches_on_version(self, repo, comments):
        """Save replaces only the version it read and bumps it."""
        comment = make_comment("c1", version=4)

        saved = await repo.save(comment)

        assert saved.version == 5
        filter, document = comments.replace_one.await_args.args
        assert filter == {"commentId": "c1", "version": 4}
        assert document["version"] == 5

    @pytest.mark.asyncio
    async def test_save_conflict(self, repo, comments):
        """No match on an existing comment means a concurrent write."""
        comments.replace_one.return_value = _result(matched_count=0)
        comments.count_documents.return_value = 1

        with pytest.raises(ConflictError):
            await repo.save(make_comment("c1"))

    @pytest.mark.asyncio
    async def test_save_missing(self, repo, comments):
        """No match and no document means the comment is gone."""
        comments.replace_one.return_value = _result(matched_count=0)

        with pytest.raises(NotFoundError):
            await repo.save(make_comment("c1"))

    @pytest.mark.asyncio
    async def test_save_duplicate_reply(self, repo, comments):
        """A reply ID collision on save becomes DuplicateKeyError."""
        comments.replace_one.side_effect = MongoDuplicateKeyError("E11000")

        with pytest.raises(DuplicateKeyError):
            await repo.save(make_comment("c1").with_reply(make_reply("r1")))


class TestBatchAndAtomicUpdates:
    """Tests for update_many, delete_many, reactions and counters."""

    @pytest.mark.asyncio
    async def test_update_many_sets_and_bumps_version(self, repo, comments):
        """Values go under $set and the version is incremented."""
        result = await repo.update_many({"postId": "p1"}, {"content": "x"})

        assert result.matched_count == 2
        comments.update_many.assert_awaited_once_with(
            {"postId": "p1"}, {"$set": {"content": "x"}, "$inc": {"version": 1}}
        )

    @pytest.mark.asyncio
    async def test_delete_many(self, repo, comments):
        """delete_many reports the deleted count."""
        result = await repo.delete_many({"postId": "p1"})

        assert result.deleted_count == 3

    @pytest.mark.asyncio
    async def test_add_reaction_uses_add_to_set(self, repo, comments):
        """Adding a reaction is a single atomic $addToSet."""
        await repo.add_reaction("c1", ReactionKind.LIKE, "u1")

        comments.update_one.assert_awaited_once_with(
            {"commentId": "c1"},
            {"$addToSet": {"reactions.like": "u1"}, "$inc": {"version": 1}},
        )

    @pytest.mark.asyncio
    async def test_remove_reaction_uses_pull(self, repo, comments):
        """Removing a reaction is a single atomic $pull."""
        await repo.remove_reaction("c1", ReactionKind.DISLIKE, "u1")

        comments.update_one.assert_awaited_once_with(
            {"commentId": "c1"},
            {"$pull": {"reactions.dislike": "u1"}, "$inc": {"version": 1}},
        )

    @pytest.mark.asyncio
    async def test_next_sequence_upserts_counter(self, repo, counters):
        """The counter is namespaced by collection and upserted."""
        value = await repo.next_sequence("order", floor=4)

        assert value == 5
        call = counters.find_one_and_update.await_args
        assert call.args[0] == {"_id": "comments.order"}
        assert call.kwargs["upsert"] is True
        assert call.kwargs["return_document"] == ReturnDocument.AFTER
