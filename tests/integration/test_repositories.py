"""
Shared contract tests for DesignRepository backends.

Every backend (in-memory, SQLite) must pass these tests:
- Draft compare-and-swap
- Append-only history in commit order
- Promotion only to existing records
- Isolation between bots
"""

import json
import tempfile

import pytest

from flowkit.errors import ConcurrencyConflictError, PromotionNotFoundError
from flowkit.store import (
    DesignRepository,
    InMemoryDesignRepository,
    SqliteDesignRepository,
    VersionedRecord,
    VersionStatus,
    new_version_id,
)


def _record(text="Hello"):
    data = json.dumps({"bot": {"id": "b"}, "note": text}, sort_keys=True).encode()
    return VersionedRecord(
        version_id=new_version_id(),
        status=VersionStatus.DEVELOPMENT,
        checksum=f"sha256:{text}",
        data=data,
        created_at=1700000000000,
    )


@pytest.fixture(params=["memory", "sqlite"])
def repo(request):
    if request.param == "memory":
        yield InMemoryDesignRepository()
    else:
        with tempfile.TemporaryDirectory() as tmpdir:
            yield SqliteDesignRepository(tmpdir, wal_mode=False)


class TestDesignRepository:
    """Contract tests run against every backend."""

    def test_satisfies_protocol(self, repo):
        assert isinstance(repo, DesignRepository)

    @pytest.mark.asyncio
    async def test_empty_bot(self, repo):
        assert await repo.get_draft("nobody") is None
        assert await repo.get_active_production("nobody") is None
        assert await repo.get_version("nobody", "v") is None
        assert await repo.list_versions("nobody") == []

    @pytest.mark.asyncio
    async def test_first_commit(self, repo):
        record = _record()
        await repo.commit_draft("bot1", record, expected_version_id=None)

        draft = await repo.get_draft("bot1")
        assert draft == record
        assert draft.document()["note"] == "Hello"

    @pytest.mark.asyncio
    async def test_first_commit_conflicts_when_draft_exists(self, repo):
        await repo.commit_draft("bot1", _record(), expected_version_id=None)
        with pytest.raises(ConcurrencyConflictError):
            await repo.commit_draft("bot1", _record("other"), expected_version_id=None)

    @pytest.mark.asyncio
    async def test_compare_and_swap(self, repo):
        first = _record("one")
        second = _record("two")
        stale = _record("stale")
        await repo.commit_draft("bot1", first, expected_version_id=None)
        await repo.commit_draft("bot1", second, expected_version_id=first.version_id)

        with pytest.raises(ConcurrencyConflictError) as exc_info:
            await repo.commit_draft("bot1", stale, expected_version_id=first.version_id)

        assert exc_info.value.expected == first.version_id
        assert exc_info.value.actual == second.version_id
        assert (await repo.get_draft("bot1")).version_id == second.version_id
        assert await repo.get_version("bot1", stale.version_id) is None

    @pytest.mark.asyncio
    async def test_history_in_commit_order(self, repo):
        records = [_record(str(i)) for i in range(4)]
        expected = None
        for record in records:
            await repo.commit_draft("bot1", record, expected_version_id=expected)
            expected = record.version_id

        listed = await repo.list_versions("bot1")
        assert [r.version_id for r in listed] == [r.version_id for r in records]

    @pytest.mark.asyncio
    async def test_promote(self, repo):
        first = _record("one")
        second = _record("two")
        await repo.commit_draft("bot1", first, expected_version_id=None)
        await repo.commit_draft("bot1", second, expected_version_id=first.version_id)

        await repo.promote("bot1", first.version_id)

        assert await repo.get_active_production("bot1") == first
        assert (await repo.get_draft("bot1")).version_id == second.version_id

    @pytest.mark.asyncio
    async def test_promote_unknown_keeps_production(self, repo):
        record = _record()
        await repo.commit_draft("bot1", record, expected_version_id=None)
        await repo.promote("bot1", record.version_id)

        with pytest.raises(PromotionNotFoundError):
            await repo.promote("bot1", "01NOTAVERSION0000000000000")

        assert (await repo.get_active_production("bot1")).version_id == record.version_id

    @pytest.mark.asyncio
    async def test_promote_unknown_bot(self, repo):
        with pytest.raises(PromotionNotFoundError):
            await repo.promote("ghost", "v1")

    @pytest.mark.asyncio
    async def test_bots_are_isolated(self, repo):
        a = _record("a")
        b = _record("b")
        await repo.commit_draft("bot-a", a, expected_version_id=None)
        await repo.commit_draft("bot-b", b, expected_version_id=None)

        assert (await repo.get_draft("bot-a")).version_id == a.version_id
        assert await repo.get_version("bot-a", b.version_id) is None
        with pytest.raises(PromotionNotFoundError):
            await repo.promote("bot-a", b.version_id)


class TestSqliteDesignRepository:
    """SQLite specific behavior."""

    @pytest.fixture
    def data_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir

    @pytest.mark.asyncio
    async def test_survives_reopen(self, data_dir):
        record = _record()
        await SqliteDesignRepository(data_dir).commit_draft("bot1", record, expected_version_id=None)

        reopened = SqliteDesignRepository(data_dir)
        assert await reopened.get_draft("bot1") == record

    @pytest.mark.asyncio
    async def test_one_file_per_bot(self, data_dir):
        repo = SqliteDesignRepository(data_dir, wal_mode=False)
        await repo.commit_draft("bot-1", _record(), expected_version_id=None)

        assert repo.exists("bot-1")
        assert not repo.exists("bot-2")

    def test_bot_id_sanitized(self, data_dir):
        repo = SqliteDesignRepository(data_dir)
        path = repo._get_db_path("../../etc/passwd")
        assert path.parent == repo.data_dir
        assert path.name == "bot_etcpasswd.db"

    @pytest.mark.asyncio
    async def test_empty_file_gets_schema(self, data_dir):
        repo = SqliteDesignRepository(data_dir, wal_mode=False)
        repo._get_db_path("bot1").touch()

        assert await repo.get_draft("bot1") is None
        record = _record()
        await repo.commit_draft("bot1", record, expected_version_id=None)
        assert await repo.get_draft("bot1") == record
