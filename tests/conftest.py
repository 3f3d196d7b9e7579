"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from ai.placements import PlacementMatcher, get_taxonomy
from sponsorship import models
from sponsorship.db import create_session_factory
from sponsorship.models import Base, JobStatus
from sponsorship.pipelines.normalization import ExtractedResult, normalize_extraction


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINT works on sqlite."""

    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """SQLite file with the schema and the seeded placement options."""
    path = tmp_path / "analysis.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    with Session(sync_engine) as session:
        session.add_all(
            models.PlacementOption(
                id=e.id,
                name=e.canonical_name,
                category=e.category,
                is_popular=e.is_popular,
            )
            for e in get_taxonomy().entries
        )
        session.commit()
    sync_engine.dispose()
    return path


@pytest.fixture
def db_engine(db_path: Path) -> AsyncEngine:
    # NullPool: no connection outlives the event loop that opened it
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    _enable_sqlite_savepoints(engine)
    return engine


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(db_engine)


@pytest.fixture
def sync_db(db_path: Path):
    """Synchronous session for assertions outside the event loop."""
    engine = create_engine(f"sqlite:///{db_path}")
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def matcher() -> PlacementMatcher:
    return PlacementMatcher()


@pytest.fixture
def create_job(session_factory: async_sessionmaker[AsyncSession]):
    """Insert a job and its offer shell directly in the given status."""

    async def _create(job_id: str = "job-1", status: JobStatus = JobStatus.ANALYZING, url: str = "https://files.example.com/deck.pdf"):
        async with session_factory() as session:
            session.add(models.AnalysisJob(id=job_id, owner_id="owner-1", source_document_url=url, status=status.value))
            session.add(models.SponsorshipOffer(
                id=job_id,
                user_id="owner-1",
                pdf_public_url=url,
                analysis_status=status.value,
            ))
            await session.commit()
        return job_id

    return _create


@pytest.fixture
def gold_sponsor_payload() -> dict[str, Any]:
    """Extraction-service answer for a one-tier document."""
    return {
        "funding_goal": None,
        "sponsorship_term": "1 season (Fall-Spring)",
        "sponsorship_impact": "equipment & uniforms, field improvements",
        "packages": [
            {"name": "Gold Sponsor", "cost": 500, "placements": ["logo on jersey", "fence banner"]},
        ],
        "total_players_supported": 120,
    }


@pytest.fixture
def gold_sponsor_result(gold_sponsor_payload: dict[str, Any]) -> ExtractedResult:
    return normalize_extraction(gold_sponsor_payload)


class FakeExtractionClient:
    """Stands in for the extraction service; records the text it was given."""

    def __init__(self, result: ExtractedResult | None = None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.texts: list[str] = []

    async def extract(self, document_text: str) -> ExtractedResult:
        self.texts.append(document_text)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_extraction_client() -> Callable[..., FakeExtractionClient]:
    return FakeExtractionClient


def _pdf_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_pdf(pages: list[list[str]]) -> bytes:
    """Minimal text PDF, one list of lines per page, with a valid xref table."""
    objects: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"",  # pages tree, filled in below
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    page_ids = []
    for lines in pages:
        ops = ["BT", "/F1 12 Tf", "14 TL", "72 720 Td"]
        for line in lines:
            ops.append(f"({_pdf_escape(line)}) Tj T*")
        ops.append("ET")
        stream = "\n".join(ops).encode("latin-1")
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")
        content_id = len(objects)
        objects.append(
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Resources << /Font << /F1 3 0 R >> >> /Contents %d 0 R >>" % content_id
        )
        page_ids.append(len(objects))
    kids = " ".join(f"{i} 0 R" for i in page_ids).encode()
    objects[1] = b"<< /Type /Pages /Kids [" + kids + b"] /Count %d >>" % len(page_ids)

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)


@pytest.fixture
def make_pdf() -> Callable[[list[list[str]]], bytes]:
    return build_pdf


@pytest.fixture
def pdf_transport():
    """httpx MockTransport serving a fixed body (or status) for any GET."""

    def _transport(body: bytes = b"", status_code: int = 200) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, content=body, headers={"content-type": "application/pdf"})

        return httpx.MockTransport(handler)

    return _transport
