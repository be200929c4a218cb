from datetime import datetime, timezone

import pytest

from models import Stopwatch
from core.exceptions import InvalidStopwatchState, StopwatchNotFound
from core.repository import SqlStopwatchRepository
from services.elapsed_service import as_utc


def test_find_all_ordered_excludes_soft_deleted(db_session):
    repository = SqlStopwatchRepository(db_session)
    with repository.transaction():
        for name in ("a", "b", "c"):
            repository.save(Stopwatch(name=name, is_running=False, elapsed=0))

    with repository.transaction():
        repository.soft_delete(2, datetime.now(timezone.utc))

    names = [row.name for row in repository.find_all_ordered()]
    assert names == ["a", "c"]
    assert repository.find_by_id(2) is None
    assert repository.find_by_id(2, for_update=True) is None

    # 紀錄本身仍保留
    deleted = db_session.query(Stopwatch).filter(Stopwatch.id == 2).one()
    assert deleted.deleted_at is not None


def test_transaction_rolls_back_on_error(db_session):
    repository = SqlStopwatchRepository(db_session)
    with repository.transaction():
        repository.save(Stopwatch(name="a", is_running=False, elapsed=0))

    with pytest.raises(RuntimeError):
        with repository.transaction():
            row = repository.find_by_id(1, for_update=True)
            row.elapsed = 999
            repository.save(row)
            raise RuntimeError("boom")

    assert repository.find_by_id(1).elapsed == 0


def test_manager_round_trip_through_sqlite(sql_manager, db_session, clock):
    view = sql_manager.create("A")
    sql_manager.start(view.id)
    clock.advance(90)

    assert sql_manager.list_stopwatches()[0].elapsed == 90

    stopped = sql_manager.stop(view.id)
    assert stopped.elapsed == 90

    row = db_session.query(Stopwatch).filter(Stopwatch.id == view.id).one()
    assert row.is_running is False
    assert row.start_time is None
    assert row.elapsed == 90


def test_failed_precondition_leaves_row_untouched(sql_manager, db_session):
    view = sql_manager.create("A")
    sql_manager.start(view.id)

    with pytest.raises(InvalidStopwatchState):
        sql_manager.update(view.id, name="B", elapsed=5)

    row = db_session.query(Stopwatch).filter(Stopwatch.id == view.id).one()
    assert row.name == "A"
    assert row.elapsed == 0
    assert row.is_running is True


def test_delete_then_list(sql_manager):
    first = sql_manager.create("A")
    second = sql_manager.create("B")

    assert sql_manager.delete(first.id) == "ok"

    assert [v.id for v in sql_manager.list_stopwatches()] == [second.id]
    with pytest.raises(StopwatchNotFound):
        sql_manager.stop(first.id)


def test_find_by_id_beyond_integer_range_returns_none(db_session):
    repository = SqlStopwatchRepository(db_session)

    assert repository.find_by_id(10 ** 20) is None
    assert repository.find_by_id(10 ** 20, for_update=True) is None


def test_soft_delete_uses_given_timestamp(sql_manager, db_session, clock):
    view = sql_manager.create("A")
    clock.advance(45)

    sql_manager.delete(view.id)

    row = db_session.query(Stopwatch).filter(Stopwatch.id == view.id).one()
    assert as_utc(row.deleted_at) == clock.now()
