"""
Idea lifecycle: submit, vote toggle, delete, merge, schedule assignment and resets.

Ideas live in Redis as JSON records. Every mutation of existing records goes
through RedisBackend.update_idea or update_ideas, which only commit if none of
the records read was written by someone else in between.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import TypeAdapter

from backend import RedisBackend
from constants import ANONYMOUS_AUTHOR, ANONYMOUS_VOTER, MERGE_DEFAULT_AUTHOR
from errors import ValidationError, NotFoundError, IdeaAlreadyMerged
from schemas.auth import Identity
from schemas.ideas import ActiveIdea, MergedIdea, Idea, IdeaAdapter
from logging_config import get_logger

logger = get_logger(__name__)

IdeaListAdapter = TypeAdapter(list[Idea])


def resolve_voter_key(
    identity: Optional[Identity],
    forwarded_for: Optional[str] = None,
    client_host: Optional[str] = None,
) -> str:
    """Best-effort voter identity: email, else network address, else anonymous.

    This is a weak double-vote heuristic, not a security boundary. Anything that
    wants a stronger voter identity only has to replace this function.
    """
    if identity is not None:
        return identity.email
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    if client_host:
        return client_host
    return ANONYMOUS_VOTER


def _require_text(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class IdeaService:
    def __init__(self, store: RedisBackend):
        self.store = store

    def _load(self, idea_id: str, raw: Optional[dict]) -> Idea:
        if raw is None:
            raise NotFoundError("Idea", idea_id)
        return IdeaAdapter.validate_python(raw)

    def submit(self, title: Optional[str], description: Optional[str], author: Optional[Identity] = None) -> ActiveIdea:
        if not _require_text(title) or not _require_text(description):
            raise ValidationError("Title and description are required")

        idea = ActiveIdea(
            id=str(uuid.uuid4()),
            title=title.strip(),
            description=description.strip(),
            author=author.email if author else ANONYMOUS_AUTHOR,
            created_at=_now(),
        )
        self.store.save_idea(idea.id, idea.model_dump())
        logger.info(f"Idea {idea.id} submitted by {idea.author}")
        return idea

    def get(self, idea_id: str) -> Idea:
        return self._load(idea_id, self.store.get_idea(idea_id))

    def list_ideas(self) -> list[Idea]:
        """All ideas, merged ones included, in store iteration order."""
        return IdeaListAdapter.validate_python(self.store.list_ideas())

    def vote(self, idea_id: str, voter_key: str) -> ActiveIdea:
        """Cast the vote, or retract it if this voter already voted."""

        def toggle(raw: Optional[dict]) -> dict:
            idea = self._load(idea_id, raw)
            if not isinstance(idea, ActiveIdea):
                raise NotFoundError("Idea", idea_id)
            if voter_key in idea.voters:
                idea.voters = [v for v in idea.voters if v != voter_key]
            else:
                idea.voters = idea.voters + [voter_key]
            idea.votes = len(idea.voters)
            idea.version += 1
            return idea.model_dump()

        updated = ActiveIdea.model_validate(self.store.update_idea(idea_id, toggle))
        logger.info(f"Vote toggled on idea {idea_id}: {updated.votes} votes")
        return updated

    def remove(self, idea_id: str) -> None:
        """Delete an idea outright. Slot assignments pointing at it are left dangling."""
        if not self.store.delete_idea(idea_id):
            logger.warning(f"Delete failed: idea {idea_id} not found")
            raise NotFoundError("Idea", idea_id)
        logger.info(f"Idea {idea_id} deleted")

    def merge(
        self,
        idea_ids: Optional[list[str]],
        new_title: Optional[str],
        new_description: Optional[str],
        actor: Optional[Identity] = None,
    ) -> ActiveIdea:
        """Combine ideas into a new one whose voters are the union of theirs.

        The merged idea and the retirement of every source are written in one
        transaction watched on all sources. A vote or another merge landing on a
        source in between forces a retry against the fresh records, so a source
        is retired at most once and its latest voters always carry over.
        """
        if not idea_ids or len(idea_ids) < 2 or not _require_text(new_title) or not _require_text(new_description):
            raise ValidationError("Requires at least two idea IDs and a new title/description")
        if len(set(idea_ids)) != len(idea_ids):
            raise ValidationError("Idea IDs must not repeat")

        merged_id = str(uuid.uuid4())
        created_at = _now()

        def combine(current: dict[str, Optional[dict]]) -> dict[str, dict]:
            sources = []
            for idea_id in idea_ids:
                if current[idea_id] is None:
                    logger.warning(f"Merge rejected: idea {idea_id} not found")
                    raise NotFoundError("Idea", idea_id)
                source = IdeaAdapter.validate_python(current[idea_id])
                if not isinstance(source, ActiveIdea):
                    logger.warning(f"Merge rejected: idea {idea_id} already merged into {source.merged_into}")
                    raise IdeaAlreadyMerged(idea_id)
                sources.append(source)

            # dict keeps first-seen order while de-duplicating
            all_voters = list(dict.fromkeys(voter for source in sources for voter in source.voters))
            merged = ActiveIdea(
                id=merged_id,
                title=new_title.strip(),
                description=new_description.strip(),
                author=actor.email if actor else MERGE_DEFAULT_AUTHOR,
                votes=len(all_voters),
                voters=all_voters,
                created_at=created_at,
                merged_from=list(idea_ids),
            )
            updates = {merged_id: merged.model_dump()}
            for source in sources:
                data = source.model_dump()
                data.update(status="merged", merged_into=merged_id, version=source.version + 1)
                updates[source.id] = MergedIdea.model_validate(data).model_dump()
            return updates

        written = self.store.update_ideas(list(idea_ids), combine)
        merged = ActiveIdea.model_validate(written[merged_id])
        logger.info(f"Merged {len(idea_ids)} ideas into {merged.id} with {merged.votes} unique voters")
        return merged

    def assign(self, idea_id: str, slot_id: Optional[str], room_id: Optional[str]) -> Idea:
        """Place an idea in a slot and room, replacing any earlier assignment."""
        if not _require_text(slot_id) or not _require_text(room_id):
            raise ValidationError("Slot ID and Room ID are required")

        def place(raw: Optional[dict]) -> dict:
            idea = self._load(idea_id, raw)
            idea.slot_id = slot_id
            idea.room_id = room_id
            idea.version += 1
            return idea.model_dump()

        updated = IdeaAdapter.validate_python(self.store.update_idea(idea_id, place))
        logger.info(f"Idea {idea_id} assigned to slot {slot_id} in room {room_id}")
        return updated

    def reset_votes(self) -> int:
        """Clear every vote on every idea. Returns how many ideas were reset."""

        def clear(idea_id: str):
            def mutate(raw: Optional[dict]) -> dict:
                idea = self._load(idea_id, raw)
                idea.voters = []
                idea.votes = 0
                idea.version += 1
                return idea.model_dump()
            return mutate

        reset = 0
        for idea in self.list_ideas():
            try:
                self.store.update_idea(idea.id, clear(idea.id))
                reset += 1
            except NotFoundError:
                logger.debug(f"Idea {idea.id} expired during vote reset")
        logger.info(f"Votes reset on {reset} ideas")
        return reset

    def delete_all(self) -> int:
        deleted = self.store.delete_all_ideas()
        logger.info(f"Deleted {deleted} ideas")
        return deleted
