"""Shared fixtures: in-memory stores seeded with the factories' links."""

import os

import pytest

from factories import LINK_A, LINK_B, LINK_C, OTHER_OWNER_ID, FOREIGN_LINK, make_link
from repositories.memory import InMemoryClickEventStore, InMemoryLinkRepository

# Ensure a MONGODB_URI is present so AppSettings can be instantiated
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/")


@pytest.fixture
def links():
    return [
        make_link(LINK_A, "promo", title="Spring Promo"),
        make_link(LINK_B, "docs"),
        make_link(LINK_C, "retired", active=False),
        make_link(FOREIGN_LINK, "theirs", owner_id=OTHER_OWNER_ID, public=True),
    ]


@pytest.fixture
def link_repo(links):
    return InMemoryLinkRepository(links)


@pytest.fixture
def click_store():
    return InMemoryClickEventStore()
