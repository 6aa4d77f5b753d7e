"""Tests for the in-memory and SQLAlchemy consolidation run stores."""

import dataclasses
from datetime import date
from uuid import uuid4

import pytest

from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from ledger_kernel.domain.periods import FiscalPeriod, FiscalPeriodRef, PeriodStatus
from ledger_kernel.exceptions import ConsolidationRunExistsError
from ledger_modules.consolidation.models import RunOptions, RunStatus
from ledger_modules.consolidation.store import (
    ConsolidationRunStore,
    InMemoryRunStore,
    SqlAlchemyRunStore,
)

JANUARY = FiscalPeriod(FiscalPeriodRef(2024, 1), date(2024, 1, 1), date(2024, 1, 31))
FEBRUARY_REF = FiscalPeriodRef(2024, 2)


@pytest.fixture
def builder(make_group, intercompany_pair):
    parent, sub = intercompany_pair
    return make_group(parent).add(sub)


@pytest.fixture
def database():
    """In-memory SQLite database with the run table created."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield
    drop_tables()
    reset_engine()


def _consolidate(builder, store, actor, **options):
    service = builder.service(store=store)
    return service.run_consolidation(
        builder.id, JANUARY, actor, options=RunOptions(**options) if options else None,
    )


class TestInMemoryRunStore:

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryRunStore(), ConsolidationRunStore)

    def test_completed_run_saved_and_found(self, builder, test_actor_id):
        store = InMemoryRunStore()
        run = _consolidate(builder, store, test_actor_id)

        assert len(store) == 1
        assert store.get(run.id) == run
        found = store.find_completed_run(builder.id, JANUARY.ref)
        assert found.run_id == run.id
        assert found.status == RunStatus.COMPLETED
        assert store.find_completed_run(builder.id, FEBRUARY_REF) is None
        assert store.find_completed_run(uuid4(), JANUARY.ref) is None

    def test_failed_run_is_not_a_completed_run(self, builder, test_actor_id):
        builder.period_statuses[(builder.parent.id, JANUARY.ref)] = PeriodStatus.OPEN
        store = InMemoryRunStore()
        run = _consolidate(builder, store, test_actor_id)

        assert run.status == RunStatus.FAILED
        assert store.get(run.id).status == RunStatus.FAILED
        assert store.find_completed_run(builder.id, JANUARY.ref) is None

    def test_list_runs(self, builder, test_actor_id):
        store = InMemoryRunStore()
        first = _consolidate(builder, store, test_actor_id)
        second = _consolidate(builder, store, test_actor_id, force_regeneration=True)

        summaries = store.list_runs(builder.id)
        assert {s.run_id for s in summaries} == {first.id, second.id}
        assert store.list_runs(uuid4()) == []


class TestSqlAlchemyRunStore:

    def test_satisfies_protocol(self, database):
        with session_scope() as session:
            assert isinstance(SqlAlchemyRunStore(session), ConsolidationRunStore)

    def test_round_trip_summary(self, database, builder, test_actor_id):
        with session_scope() as session:
            run = _consolidate(builder, SqlAlchemyRunStore(session), test_actor_id)

        with session_scope() as session:
            store = SqlAlchemyRunStore(session)
            summary = store.get(run.id)
            assert summary.run_id == run.id
            assert summary.group_id == builder.id
            assert summary.period == JANUARY.ref
            assert summary.status == RunStatus.COMPLETED
            assert store.find_completed_run(builder.id, JANUARY.ref).run_id == run.id
            assert store.find_completed_run(builder.id, FEBRUARY_REF) is None

    def test_payload_holds_serialized_run(self, database, builder, test_actor_id):
        with session_scope() as session:
            run = _consolidate(builder, SqlAlchemyRunStore(session), test_actor_id)

        with session_scope() as session:
            payload = SqlAlchemyRunStore(session).payload(run.id)

        assert payload["id"] == str(run.id)
        assert payload["status"] == "completed"
        assert len(payload["steps"]) == 7
        totals = payload["consolidated_trial_balance"]
        assert totals["total_eliminations"] == {"amount": "500", "currency": "USD"}

    def test_unknown_run(self, database):
        with session_scope() as session:
            store = SqlAlchemyRunStore(session)
            assert store.get(uuid4()) is None
            assert store.payload(uuid4()) is None

    def test_completed_run_blocks_rerun(self, database, builder, test_actor_id):
        with session_scope() as session:
            _consolidate(builder, SqlAlchemyRunStore(session), test_actor_id)

        with session_scope() as session:
            with pytest.raises(ConsolidationRunExistsError):
                _consolidate(builder, SqlAlchemyRunStore(session), test_actor_id)

        with session_scope() as session:
            rerun = _consolidate(
                builder, SqlAlchemyRunStore(session), test_actor_id, force_regeneration=True,
            )
            assert len(SqlAlchemyRunStore(session).list_runs(builder.id)) == 2
        assert rerun.status == RunStatus.COMPLETED

    def test_save_updates_existing_row(self, database, builder, test_actor_id):
        session = get_session()
        try:
            store = SqlAlchemyRunStore(session)
            run = _consolidate(builder, store, test_actor_id)
            store.save(dataclasses.replace(run, status=RunStatus.CANCELLED))
            assert store.get(run.id).status == RunStatus.CANCELLED
            assert store.payload(run.id)["status"] == "cancelled"
            assert len(store.list_runs(builder.id)) == 1
        finally:
            session.rollback()
            session.close()
