"""Relational result store on async SQLAlchemy."""

import logging
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Integer,
    String,
    Table,
    or_,
    select,
    update,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from footprint.conformance_runner.models.test_result import (
    TestCaseResult,
    TestData,
    TestRun,
    TestRunStatus,
    TestRunWithResults,
)
from footprint.conformance_runner.storage.base import (
    DEFAULT_PAGE_SIZE,
    ResultStore,
    sort_results,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TestRunRow(Base):
    __test__ = False
    __tablename__ = "test_runs"

    id = Column(String(64), primary_key=True)
    timestamp = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    company_name = Column(String(255), nullable=False, default="")
    admin_email = Column(String(255), nullable=False, default="", index=True)
    admin_name = Column(String(255), nullable=False, default="")
    tech_spec_version = Column(String(16), nullable=False)
    status = Column(String(16), nullable=True)
    passing_percentage = Column(Integer, nullable=True)


class TestResultRow(Base):
    __test__ = False
    __tablename__ = "test_results"

    test_run_id = Column(String(64), primary_key=True)
    test_key = Column(String(64), primary_key=True)
    timestamp = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    result = Column(JSON, nullable=False)


class TestDataRow(Base):
    __test__ = False
    __tablename__ = "test_data"

    test_run_id = Column(String(64), primary_key=True)
    timestamp = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    data = Column(JSON, nullable=False)


def _to_run(row: TestRunRow) -> TestRun:
    timestamp = row.timestamp
    if timestamp.tzinfo is None:
        # SQLite drops the offset, values are stored in UTC
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return TestRun(
        test_run_id=row.id,
        organization_name=row.company_name,
        admin_email=row.admin_email,
        admin_name=row.admin_name,
        tech_spec_version=row.tech_spec_version,
        status=TestRunStatus(row.status) if row.status else None,
        passing_percentage=row.passing_percentage,
        timestamp=timestamp,
    )


class SqlResultStore(ResultStore):
    """Store persisting runs, results and side data in three tables.

    Upserts are single ``INSERT ... ON CONFLICT`` statements, so writes to the
    same key from the orchestrator and the webhook listener never race.
    """

    def __init__(self, database_url: str, engine: AsyncEngine | None = None) -> None:
        """Initialize the store for a SQLAlchemy async database URL."""
        self.engine = engine or create_async_engine(database_url, future=True)
        self._session_factory = sessionmaker(
            self.engine, expire_on_commit=False, class_=AsyncSession
        )

    def _insert(self, table: Table):
        if self.engine.dialect.name == "postgresql":
            return postgresql.insert(table)
        return sqlite.insert(table)

    async def initialize(self) -> None:
        """Create missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose of the connection pool."""
        await self.engine.dispose()

    async def save_test_run(self, run: TestRun) -> None:
        """Upsert run metadata by run id."""
        values = {
            "timestamp": run.timestamp,
            "company_name": run.organization_name,
            "admin_email": run.admin_email,
            "admin_name": run.admin_name,
            "tech_spec_version": run.tech_spec_version,
            "status": run.status.value if run.status else None,
            "passing_percentage": run.passing_percentage,
        }
        stmt = (
            self._insert(TestRunRow.__table__)
            .values(id=run.test_run_id, **values)
            .on_conflict_do_update(index_elements=["id"], set_=values)
        )
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(stmt)
        except Exception:
            logger.exception(f"Error saving test run {run.test_run_id}")
            raise
        logger.info(f"Test run {run.test_run_id} saved successfully")

    async def update_test_run_status(
        self, test_run_id: str, status: TestRunStatus, passing_percentage: int
    ) -> None:
        """Upsert the aggregate status fields of a run."""
        try:
            async with self._session_factory() as session, session.begin():
                res = await session.execute(
                    update(TestRunRow)
                    .where(TestRunRow.id == test_run_id)
                    .values(status=status.value, passing_percentage=passing_percentage)
                )
        except Exception:
            logger.exception(f"Error updating status of test run {test_run_id}")
            raise

        if res.rowcount == 0:
            logger.warning(f"No test run found with ID {test_run_id} to update")
        else:
            logger.info(
                f"Test run {test_run_id} status updated to {status.value} "
                f"with {passing_percentage}% passing"
            )

    async def save_test_case_result(
        self, test_run_id: str, result: TestCaseResult, overwrite_existing: bool
    ) -> None:
        """Upsert one case result keyed by run id and test key."""
        values = {"timestamp": _utcnow(), "result": result.model_dump(mode="json")}
        stmt = self._insert(TestResultRow.__table__).values(
            test_run_id=test_run_id, test_key=result.test_key, **values
        )
        key = ["test_run_id", "test_key"]
        if overwrite_existing:
            stmt = stmt.on_conflict_do_update(index_elements=key, set_=values)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=key)
        try:
            async with self._session_factory() as session, session.begin():
                res = await session.execute(stmt)
        except Exception:
            logger.exception(f"Error saving test case: {result.name}")
            raise

        if res.rowcount == 0:
            logger.debug(
                f"Result {result.test_key} of {test_run_id} exists, no action taken"
            )

    async def get_test_results(self, test_run_id: str) -> TestRunWithResults | None:
        """Load a run with all of its results."""
        async with self._session_factory() as session:
            run_row = await session.get(TestRunRow, test_run_id)
            if run_row is None:
                return None
            rows = await session.execute(
                select(TestResultRow.result).where(
                    TestResultRow.test_run_id == test_run_id
                )
            )
            results = [TestCaseResult.model_validate(r) for r in rows.scalars()]

        run = _to_run(run_row)
        return TestRunWithResults(**run.model_dump(), results=sort_results(results))

    async def save_test_data(self, test_run_id: str, data: TestData) -> None:
        """Upsert the side data of a run."""
        values = {"timestamp": _utcnow(), "data": data.model_dump(mode="json")}
        stmt = (
            self._insert(TestDataRow.__table__)
            .values(test_run_id=test_run_id, **values)
            .on_conflict_do_update(index_elements=["test_run_id"], set_=values)
        )
        async with self._session_factory() as session, session.begin():
            await session.execute(stmt)
        logger.info(f"Test data of {test_run_id} saved successfully")

    async def get_test_data(self, test_run_id: str) -> TestData | None:
        """Load the side data of a run."""
        async with self._session_factory() as session:
            row = await session.get(TestDataRow, test_run_id)
            if row is None:
                return None
            return TestData.model_validate(row.data)

    async def list_test_runs(
        self,
        admin_email: str | None = None,
        query: str | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[TestRun]:
        """List runs, newest first."""
        stmt = select(TestRunRow)
        if admin_email:
            stmt = stmt.where(TestRunRow.admin_email == admin_email)
        term = (query or "").strip()
        if term:
            pattern = f"%{term}%"
            stmt = stmt.where(
                or_(
                    TestRunRow.company_name.ilike(pattern),
                    TestRunRow.admin_email.ilike(pattern),
                    TestRunRow.admin_name.ilike(pattern),
                )
            )
        offset = (max(1, page) - 1) * page_size
        stmt = stmt.order_by(TestRunRow.timestamp.desc()).limit(page_size).offset(offset)

        async with self._session_factory() as session:
            rows = await session.execute(stmt)
            return [_to_run(row) for row in rows.scalars()]
