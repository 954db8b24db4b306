"""Pytest configuration and shared fixtures for OfferScope tests."""

import os
from types import SimpleNamespace

import pytest

from offerscope.core.config import OfferScopeConfig
from offerscope.core.errors import CatalogLookupError, CorpusLookupError
from offerscope.data.catalog import InMemoryCatalog, InMemoryCorpus
from offerscope.offers.types import ContentChunk, Offer

SITE_ID = "site-1"


# ---------------------------------------------------------------------------
# Catalog: IVISKIN G3/G4 are near-duplicate variants of the same product line
# ---------------------------------------------------------------------------

def make_offers():
    return [
        Offer(id="iviskin-g3", site_id=SITE_ID, title="IVISKIN G3 IPL Hair Removal",
              brand="IVISKIN", model="G3", url="https://example.com/g3",
              description="IPL hair removal device with 5 energy levels"),
        Offer(id="iviskin-g4", site_id=SITE_ID, title="IVISKIN G4 IPL Hair Removal",
              brand="IVISKIN", model="G4", url="https://example.com/g4",
              description="IPL hair removal device with ice cooling", aliases=["G-4 Ice"]),
    ]


@pytest.fixture
def offers():
    return make_offers()


@pytest.fixture
def catalog(offers):
    return InMemoryCatalog(offers)


@pytest.fixture
def mixed_catalog(offers):
    """Same model code under two brands."""
    dyson = Offer(id="dyson-g3", site_id=SITE_ID, title="Dyson G3 Vacuum Cleaner",
                  brand="Dyson", model="G3", url="https://example.com/dyson-g3",
                  description="Cordless vacuum")
    return InMemoryCatalog(offers + [dyson])


@pytest.fixture
def config():
    return OfferScopeConfig()


# ---------------------------------------------------------------------------
# Content chunks
# ---------------------------------------------------------------------------

def make_chunks():
    return [
        ContentChunk("c1", "m1", "IVISKIN G3 guide",
                     "The IVISKIN G3 IPL hair removal device weighs 450 g and has 5 energy levels.",
                     similarity=0.82),
        ContentChunk("c2", "m2", "G4 specs",
                     "The G4 model has ice cooling and weighs 520 g.", similarity=0.80),
        ContentChunk("c3", "m2", "IVISKIN G4 review",
                     "IVISKIN G4 review: the ice cooling makes IPL treatment comfortable.", similarity=0.78),
        ContentChunk("c4", "m3", "Comparison",
                     "IVISKIN G3 vs G4: the G-4 adds cooling, the G 3 is lighter.", similarity=0.75),
        ContentChunk("c5", "m4", "Battery notes",
                     "The G-3 battery lasts for a full body session.", similarity=0.60),
        ContentChunk("c6", "m5", "IPL safety",
                     "General IPL safety guide for hair removal at home.", similarity=0.55),
    ]


@pytest.fixture
def chunks():
    return make_chunks()


@pytest.fixture
def corpus(chunks):
    c = InMemoryCorpus()
    for chunk in chunks:
        c.add(SITE_ID, chunk)
    return c


class FailingCatalog:
    """Catalog whose every lookup fails like an unreachable backend."""

    def find_offers(self, site_id, tokens):
        raise CatalogLookupError("search_offers_by_tokens", "connection refused")

    def get_offer(self, site_id, offer_id):
        raise CatalogLookupError("get_offer", "connection refused")


class FailingCorpus:
    def search_chunks(self, site_id, query, query_embedding=None, limit=20):
        raise CorpusLookupError("search_similar_chunks", "connection refused")


# ---------------------------------------------------------------------------
# Fake OpenAI client (client.beta.chat.completions.parse)
# ---------------------------------------------------------------------------

class FakeOpenAI:
    """Returns a fixed parsed object, or raises, and records every call."""

    def __init__(self, parsed=None, error=None):
        self.parsed = parsed
        self.error = error
        self.calls = []
        self.beta = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(parse=self._parse)))

    def _parse(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(parsed=self.parsed, refusal=None)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_openai():
    return FakeOpenAI


# ---------------------------------------------------------------------------
# Postgres availability check (runs once at collection time)
# ---------------------------------------------------------------------------

_DATABASE_URL = os.getenv("DATABASE_URL")


def _postgres_available() -> bool:
    """Return True if a real Postgres server is reachable."""
    if not _DATABASE_URL:
        return False
    try:
        from sqlalchemy import create_engine, text
        eng = create_engine(_DATABASE_URL, connect_args={"connect_timeout": 3})
        with eng.connect() as conn:
            conn.execute(text("SELECT 1"))
        eng.dispose()
        return True
    except Exception:
        return False


_POSTGRES_UP = _postgres_available()

_POSTGRES_REQUIRED_FILES = {
    "test_parity.py",
    "test_catalog_sql.py",
}


def pytest_collection_modifyitems(items, config):
    """Auto-skip Postgres-dependent tests when the DB is not reachable."""
    if _POSTGRES_UP:
        return

    skip_marker = pytest.mark.skip(
        reason="Postgres not available - set DATABASE_URL to run database tests"
    )
    for item in items:
        if getattr(item.fspath, "basename", "") in _POSTGRES_REQUIRED_FILES:
            item.add_marker(skip_marker)
