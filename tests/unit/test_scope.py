"""Unit tests for ScopeResolver."""

from __future__ import annotations

import pytest

from errors import EmptyScopeError, ForbiddenError, NotFoundError
from factories import FOREIGN_LINK, LINK_A, LINK_B, OTHER_OWNER_ID, OWNER_ID
from repositories.memory import InMemoryLinkRepository
from services.scope import Audience, CallerContext, ScopeResolver


@pytest.fixture
def resolver(link_repo):
    return ScopeResolver(link_repo)


@pytest.fixture
def owner():
    return CallerContext(caller_id=OWNER_ID)


class TestForOwner:
    async def test_only_active_links(self, resolver, owner):
        scope = await resolver.for_owner(owner)
        assert scope.multi_link is True
        assert scope.link_ids == frozenset({LINK_A, LINK_B})
        assert scope.entity_slug == "global"
        assert scope.primary is None

    async def test_no_links_is_empty_scope(self, owner):
        resolver = ScopeResolver(InMemoryLinkRepository())
        with pytest.raises(EmptyScopeError):
            await resolver.for_owner(owner)


class TestForLink:
    async def test_by_id(self, resolver, owner):
        scope = await resolver.for_link(LINK_A, owner)
        assert scope.multi_link is False
        assert scope.primary.slug == "promo"
        assert scope.entity_label == "Spring Promo"

    async def test_by_slug(self, resolver, owner):
        scope = await resolver.for_link("DOCS", owner)
        assert scope.link_ids == frozenset({LINK_B})

    async def test_foreign_link_forbidden(self, resolver, owner):
        with pytest.raises(ForbiddenError):
            await resolver.for_link(FOREIGN_LINK, owner)

    async def test_admin_sees_any_link(self, resolver):
        admin = CallerContext(caller_id="admin", is_admin=True)
        scope = await resolver.for_link(FOREIGN_LINK, admin)
        assert scope.owner_id == OTHER_OWNER_ID

    async def test_owned_link_ids_grant_access(self, resolver):
        caller = CallerContext(caller_id="team", owned_link_ids=frozenset({FOREIGN_LINK}))
        scope = await resolver.for_link(FOREIGN_LINK, caller)
        assert scope.link_ids == frozenset({FOREIGN_LINK})

    async def test_unknown_link(self, resolver, owner):
        with pytest.raises(NotFoundError):
            await resolver.for_link("missing", owner)

    @pytest.mark.parametrize(
        "link_ref, expect_multi", [(None, True), ("", True), (LINK_A, False)]
    )
    async def test_resolve(self, resolver, owner, link_ref, expect_multi):
        scope = await resolver.resolve(owner, link_ref)
        assert scope.multi_link is expect_multi


class TestForPublicLink:
    async def test_public_link(self, resolver):
        scope = await resolver.for_public_link("theirs")
        assert scope.audience is Audience.PUBLIC
        assert scope.link_ids == frozenset({FOREIGN_LINK})

    async def test_private_link_forbidden(self, resolver):
        with pytest.raises(ForbiddenError):
            await resolver.for_public_link("promo")

    async def test_missing_slug(self, resolver):
        with pytest.raises(NotFoundError):
            await resolver.for_public_link("nope")
