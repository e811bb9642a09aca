"""Unit tests for InMemoryCommentRepository."""

import pytest

from commentary.domain.error import ConflictError, DuplicateKeyError, NotFoundError
from commentary.domain.value import ReactionKind, SortOrder
from commentary.persistence.repository.inmemory import InMemoryCommentRepository
from tests.conftest import make_comment, make_reply


@pytest.fixture
def repo():
    return InMemoryCommentRepository()


class TestInsertAndFind:
    """Tests for insert, find_one and find_many."""

    @pytest.mark.asyncio
    async def test_insert_then_find(self, repo):
        """Inserted comments can be read back."""
        comment = make_comment("c1")

        await repo.insert(comment)

        assert await repo.find_one({"commentId": "c1"}) == comment

    @pytest.mark.asyncio
    async def test_stored_copy_is_detached(self, repo):
        """Mutating a read result does not touch the store."""
        await repo.insert(make_comment("c1"))

        found = await repo.find_one({"commentId": "c1"})
        found.reactions.like.append("u9")

        again = await repo.find_one({"commentId": "c1"})
        assert again.reactions.like == []

    @pytest.mark.asyncio
    async def test_duplicate_comment_id(self, repo):
        """commentId is unique."""
        await repo.insert(make_comment("c1", order=1))

        with pytest.raises(DuplicateKeyError):
            await repo.insert(make_comment("c1", order=2))

    @pytest.mark.asyncio
    async def test_duplicate_order(self, repo):
        """order is unique."""
        await repo.insert(make_comment("c1", order=1))

        with pytest.raises(DuplicateKeyError):
            await repo.insert(make_comment("c2", order=1))

    @pytest.mark.asyncio
    async def test_duplicate_reply_id_across_comments(self, repo):
        """replies.replyId is unique across documents."""
        await repo.insert(make_comment("c1", order=1).with_reply(make_reply("r1")))

        with pytest.raises(DuplicateKeyError):
            await repo.insert(make_comment("c2", order=2).with_reply(make_reply("r1")))

    @pytest.mark.asyncio
    async def test_find_many_sorted(self, repo):
        """find_many honours the sort specification."""
        await repo.insert(make_comment("c1", order=1))
        await repo.insert(make_comment("c2", order=2))

        found = await repo.find_many({}, sort=[("order", SortOrder.DESCENDING)])

        assert [c.comment_id for c in found] == ["c2", "c1"]

    @pytest.mark.asyncio
    async def test_find_by_nested_reply_field(self, repo):
        """Filters can reach into the replies list."""
        await repo.insert(make_comment("c1", order=1).with_reply(make_reply("r1")))
        await repo.insert(make_comment("c2", order=2))

        found = await repo.find_one({"replies.replyId": "r1"})

        assert found.comment_id == "c1"


class TestSave:
    """Tests for the version-checked save."""

    @pytest.mark.asyncio
    async def test_save_bumps_version(self, repo):
        """Each save returns the comment with the next version."""
        comment = await repo.insert(make_comment("c1"))

        saved = await repo.save(comment.with_reply(make_reply("r1")))

        assert saved.version == 1
        assert (await repo.find_one({"commentId": "c1"})).version == 1

    @pytest.mark.asyncio
    async def test_save_stale_version_conflicts(self, repo):
        """A save based on an old read is rejected."""
        comment = await repo.insert(make_comment("c1"))
        await repo.save(comment.model_copy(update={"content": "first"}))

        with pytest.raises(ConflictError):
            await repo.save(comment.model_copy(update={"content": "second"}))

        assert (await repo.find_one({"commentId": "c1"})).content == "first"

    @pytest.mark.asyncio
    async def test_save_missing_comment(self, repo):
        """Saving a comment that is not stored raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await repo.save(make_comment("c1"))


class TestBatchOperations:
    """Tests for update_many and delete_many."""

    @pytest.mark.asyncio
    async def test_update_many(self, repo):
        """Matching documents get the new values and a new version."""
        await repo.insert(make_comment("c1", order=1))
        await repo.insert(make_comment("c2", order=2, post_id="p2"))

        result = await repo.update_many({"postId": "p1"}, {"content": "edited"})

        assert result.matched_count == 1
        updated = await repo.find_one({"commentId": "c1"})
        assert updated.content == "edited"
        assert updated.version == 1
        assert (await repo.find_one({"commentId": "c2"})).content == "hello"

    @pytest.mark.asyncio
    async def test_update_many_dotted_path(self, repo):
        """Dotted paths set nested fields."""
        await repo.insert(make_comment("c1"))

        await repo.update_many({"commentId": "c1"}, {"reactions.like": ["u1"]})

        assert (await repo.find_one({"commentId": "c1"})).reactions.like == ["u1"]

    @pytest.mark.asyncio
    async def test_delete_many(self, repo):
        """Matching documents are removed."""
        await repo.insert(make_comment("c1", order=1))
        await repo.insert(make_comment("c2", order=2))

        result = await repo.delete_many({"commentId": {"$in": ["c1", "c2"]}})

        assert result.deleted_count == 2
        assert await repo.find_many({}) == []


class TestReactionsAndSequence:
    """Tests for reaction updates and counters."""

    @pytest.mark.asyncio
    async def test_reactions(self, repo):
        """Reactions behave as sets and bump the version."""
        await repo.insert(make_comment("c1"))

        await repo.add_reaction("c1", ReactionKind.LIKE, "u1")
        await repo.add_reaction("c1", ReactionKind.LIKE, "u1")
        await repo.remove_reaction("c1", ReactionKind.DISLIKE, "u1")

        comment = await repo.find_one({"commentId": "c1"})
        assert comment.reactions.like == ["u1"]
        assert comment.reactions.dislike == []
        assert comment.version == 3

    @pytest.mark.asyncio
    async def test_reaction_on_missing_comment_matches_nothing(self, repo):
        """No document, no match."""
        result = await repo.add_reaction("missing", ReactionKind.LIKE, "u1")

        assert result.matched_count == 0

    @pytest.mark.asyncio
    async def test_next_sequence_respects_floor(self, repo):
        """The counter never falls behind the floor."""
        assert await repo.next_sequence("order") == 1
        assert await repo.next_sequence("order", floor=10) == 11
        assert await repo.next_sequence("order", floor=3) == 12
        assert await repo.next_sequence("other") == 1
