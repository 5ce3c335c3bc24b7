"""
SQL corpus store using SQLAlchemy.

Works against SQLite (default) or PostgreSQL. Analysis writebacks run in a
single transaction, so a failure part-way leaves the corpus untouched.
"""

import json
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Generator, Sequence

import structlog
from sqlalchemy import (
    Boolean,
    Column,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    text,
)
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from clause_intel.config import get_settings
from clause_intel.models.analysis import AnalysisResult
from clause_intel.models.corpus import AgreementItem, AgreementPatch, ClauseItem, ClausePatch

logger = structlog.get_logger(__name__)

metadata = MetaData()

agreements_table = Table(
    "agreements",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(512), nullable=False),
    Column("provider", String(512), nullable=False, default=""),
    Column("embedding", Text, nullable=False),
    Column("x", Float, nullable=True),
    Column("y", Float, nullable=True),
)

clauses_table = Table(
    "agreement_clauses",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("agreement_id", String(64), nullable=False, index=True),
    Column("agreement_name", String(512), nullable=False, default=""),
    Column("clause_type", String(255), nullable=False, index=True),
    Column("title", Text, nullable=False, default=""),
    Column("text", Text, nullable=False, default=""),
    Column("summary", Text, nullable=False, default=""),
    Column("risk_level", String(32), nullable=False),
    Column("favorability", String(32), nullable=False),
    Column("embedding", Text, nullable=False),
    Column("x", Float, nullable=True),
    Column("y", Float, nullable=True),
    Column("cluster_id", Integer, nullable=True),
    Column("is_outlier", Boolean, nullable=True),
)

analysis_results_table = Table(
    "analysis_results",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("analysis_type", String(64), nullable=False, index=True),
    Column("title", String(512), nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("data", Text, nullable=False),
    Column("created_at", String(64), nullable=False),
)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


class SqlCorpusStore:
    """
    SQL corpus store.

    Handles corpus reads, analysis writebacks and result history.
    """

    def __init__(self, database_url: str | None = None, echo: bool | None = None):
        settings = get_settings()
        self.database_url = database_url or settings.database_url

        engine_kwargs: dict[str, Any] = {
            "echo": settings.database_echo if echo is None else echo,
        }
        if self.database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(self.database_url):
                # One shared connection, otherwise every checkout sees an empty database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.engine = create_engine(self.database_url, **engine_kwargs)
        self.session_factory = sessionmaker(self.engine, expire_on_commit=False)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Get a database session that commits on success and rolls back on error."""
        with self.session_factory() as session:
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise

    def create_schema(self) -> None:
        """Create tables if they don't exist."""
        metadata.create_all(self.engine)
        logger.info("schema_created", url=self.engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        """Close database connections."""
        self.engine.dispose()

    def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            with self.session() as session:
                session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("database_health_check_failed", error=str(e))
            return False

    # =========================================================================
    # Corpus Operations
    # =========================================================================

    def add_agreement(self, agreement: AgreementItem) -> AgreementItem:
        """Insert an agreement record."""
        with self.session() as session:
            session.execute(
                text("""
                    INSERT INTO agreements (id, name, provider, embedding, x, y)
                    VALUES (:id, :name, :provider, :embedding, :x, :y)
                """),
                {
                    "id": agreement.id,
                    "name": agreement.name,
                    "provider": agreement.provider,
                    "embedding": json.dumps(agreement.embedding),
                    "x": agreement.x,
                    "y": agreement.y,
                },
            )
        logger.debug("agreement_created", agreement_id=agreement.id)
        return agreement

    def add_clause(self, clause: ClauseItem) -> ClauseItem:
        """Insert a clause record."""
        with self.session() as session:
            session.execute(
                text("""
                    INSERT INTO agreement_clauses (
                        id, agreement_id, agreement_name, clause_type, title, text,
                        summary, risk_level, favorability, embedding,
                        x, y, cluster_id, is_outlier
                    ) VALUES (
                        :id, :agreement_id, :agreement_name, :clause_type, :title, :text,
                        :summary, :risk_level, :favorability, :embedding,
                        :x, :y, :cluster_id, :is_outlier
                    )
                """),
                {
                    **clause.model_dump(exclude={"embedding"}),
                    "embedding": json.dumps(clause.embedding),
                },
            )
        logger.debug("clause_created", clause_id=clause.id)
        return clause

    def list_agreements(self) -> list[AgreementItem]:
        """All agreements in id order."""
        with self.session() as session:
            rows = session.execute(
                text("SELECT * FROM agreements ORDER BY id")
            ).mappings().all()
        return [self._row_to_agreement(row) for row in rows]

    def list_clauses(self) -> list[ClauseItem]:
        """All clauses in id order."""
        with self.session() as session:
            rows = session.execute(
                text("SELECT * FROM agreement_clauses ORDER BY id")
            ).mappings().all()
        return [self._row_to_clause(row) for row in rows]

    # =========================================================================
    # Analysis Operations
    # =========================================================================

    def apply_analysis(
        self,
        clause_patches: Sequence[ClausePatch],
        agreement_patches: Sequence[AgreementPatch],
        results: Sequence[AnalysisResult],
    ) -> list[AnalysisResult]:
        """Write clause and agreement patches and append results in one transaction."""
        stored: list[AnalysisResult] = []

        with self.session() as session:
            if clause_patches:
                session.execute(
                    text("""
                        UPDATE agreement_clauses
                        SET x = :x, y = :y, cluster_id = :cluster_id, is_outlier = :is_outlier
                        WHERE id = :clause_id
                    """),
                    [p.model_dump() for p in clause_patches],
                )

            if agreement_patches:
                session.execute(
                    text("UPDATE agreements SET x = :x, y = :y WHERE id = :agreement_id"),
                    [p.model_dump() for p in agreement_patches],
                )

            for result in results:
                inserted = session.execute(
                    analysis_results_table.insert().values(
                        analysis_type=result.analysis_type,
                        title=result.title,
                        description=result.description,
                        data=json.dumps(result.data),
                        created_at=result.created_at.isoformat(),
                    )
                )
                stored.append(
                    result.model_copy(update={"id": inserted.inserted_primary_key[0]})
                )

        logger.info(
            "analysis_applied",
            clauses=len(clause_patches),
            agreements=len(agreement_patches),
            results=len(stored),
        )
        return stored

    def list_results(self, analysis_type: str | None = None) -> list[AnalysisResult]:
        """Result history, oldest first, optionally for one analysis type."""
        query = "SELECT * FROM analysis_results"
        params: dict[str, Any] = {}
        if analysis_type:
            query += " WHERE analysis_type = :analysis_type"
            params["analysis_type"] = analysis_type
        query += " ORDER BY id"

        with self.session() as session:
            rows = session.execute(text(query), params).mappings().all()
        return [self._row_to_result(row) for row in rows]

    def latest_results(self) -> dict[str, AnalysisResult]:
        """Most recent result row per analysis type."""
        with self.session() as session:
            rows = session.execute(
                text("""
                    SELECT * FROM analysis_results
                    WHERE id IN (
                        SELECT MAX(id) FROM analysis_results GROUP BY analysis_type
                    )
                    ORDER BY id
                """)
            ).mappings().all()
        return {row["analysis_type"]: self._row_to_result(row) for row in rows}

    def clear_all(self) -> dict[str, int]:
        """Delete every agreement, clause and analysis result."""
        deleted = {}
        with self.session() as session:
            for key, table in (
                ("agreements", "agreements"),
                ("clauses", "agreement_clauses"),
                ("analysis_results", "analysis_results"),
            ):
                deleted[key] = session.execute(
                    text(f"SELECT COUNT(*) FROM {table}")
                ).scalar_one()
                session.execute(text(f"DELETE FROM {table}"))
        logger.info("corpus_cleared", **deleted)
        return deleted

    # =========================================================================
    # Helpers
    # =========================================================================

    def _row_to_agreement(self, row: Any) -> AgreementItem:
        return AgreementItem(
            id=row["id"],
            name=row["name"],
            provider=row["provider"],
            embedding=json.loads(row["embedding"]),
            x=row["x"],
            y=row["y"],
        )

    def _row_to_clause(self, row: Any) -> ClauseItem:
        return ClauseItem(
            id=row["id"],
            agreement_id=row["agreement_id"],
            agreement_name=row["agreement_name"],
            clause_type=row["clause_type"],
            title=row["title"],
            text=row["text"],
            summary=row["summary"],
            risk_level=row["risk_level"],
            favorability=row["favorability"],
            embedding=json.loads(row["embedding"]),
            x=row["x"],
            y=row["y"],
            cluster_id=row["cluster_id"],
            is_outlier=None if row["is_outlier"] is None else bool(row["is_outlier"]),
        )

    def _row_to_result(self, row: Any) -> AnalysisResult:
        return AnalysisResult(
            id=row["id"],
            analysis_type=row["analysis_type"],
            title=row["title"],
            description=row["description"],
            data=json.loads(row["data"]),
            created_at=row["created_at"],
        )


@lru_cache()
def get_corpus_store() -> SqlCorpusStore:
    """Get cached SQL corpus store with its schema in place."""
    store = SqlCorpusStore()
    store.create_schema()
    return store
