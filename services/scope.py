"""
Scope resolution.

The caller context comes from the upstream authentication layer as an
opaque ``(caller_id, is_admin, owned_link_ids)`` triple. Resolution turns a
request target (the caller's portfolio, one link, or a public slug) into the
set of links an aggregation applies to, and rejects targets outside it
before the engine runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from errors import EmptyScopeError, ForbiddenError, NotFoundError
from repositories.protocol import LinkRepository
from schemas.models.link import Link
from shared.logging import get_logger

log = get_logger(__name__)


class Audience(str, Enum):
    OWNER = "owner"
    PUBLIC = "public"


@dataclass(frozen=True)
class CallerContext:
    caller_id: str
    is_admin: bool = False
    owned_link_ids: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class Scope:
    """Resolved, already-authorised set of links."""

    links: tuple[Link, ...]
    multi_link: bool
    audience: Audience = Audience.OWNER
    owner_id: Optional[str] = None

    @property
    def link_ids(self) -> frozenset[str]:
        return frozenset(link.id for link in self.links)

    @property
    def links_by_id(self) -> dict[str, Link]:
        return {link.id: link for link in self.links}

    @property
    def primary(self) -> Optional[Link]:
        return None if self.multi_link or not self.links else self.links[0]

    @property
    def entity_label(self) -> str:
        return "All links" if self.primary is None else self.primary.label

    @property
    def entity_slug(self) -> str:
        return "global" if self.primary is None else self.primary.slug


class ScopeResolver:
    def __init__(self, links: LinkRepository) -> None:
        self._links = links

    async def resolve(
        self, caller: CallerContext, link_ref: Optional[str] = None
    ) -> Scope:
        """One link when *link_ref* is given, the caller's portfolio otherwise."""
        if link_ref:
            return await self.for_link(link_ref, caller)
        return await self.for_owner(caller)

    async def for_owner(self, caller: CallerContext) -> Scope:
        """All active links owned by the caller."""
        links = await self._links.list_for_owner(caller.caller_id, active_only=True)
        if not links:
            raise EmptyScopeError("no active links found")
        return Scope(links=tuple(links), multi_link=True, owner_id=caller.caller_id)

    async def for_link(self, link_ref: str, caller: CallerContext) -> Scope:
        """One link, by id or slug, that the caller owns (or any link for admins)."""
        link = await self._find(link_ref)
        if link is None:
            raise NotFoundError("link not found", field="link_id")
        owns = link.owner_id == caller.caller_id or link.id in caller.owned_link_ids
        if not owns and not caller.is_admin:
            log.warning(
                "stats_access_denied",
                reason="not_owner",
                link_id=link.id,
                caller_id=caller.caller_id,
            )
            raise ForbiddenError("access denied")
        return Scope(links=(link,), multi_link=False, owner_id=link.owner_id)

    async def for_public_link(self, slug: str) -> Scope:
        link = await self._links.get_by_slug(slug)
        if link is None:
            raise NotFoundError("link not found")
        if not link.is_public_stats_enabled or not link.is_active:
            raise ForbiddenError("public statistics are not enabled for this link")
        return Scope(links=(link,), multi_link=False, audience=Audience.PUBLIC)

    async def _find(self, link_ref: str) -> Optional[Link]:
        link = await self._links.get(link_ref)
        if link is None:
            link = await self._links.get_by_slug(link_ref)
        return link
