"""
Async repositories over the JSON store.

Reads go through a CoalescingCache keyed by the request parameters, so concurrent
identical loads share a single store read. Every write invalidates the cached
keys of the affected user (or, for tags and public links, the affected entity).
Store calls run in a worker thread via asyncio.to_thread.
"""
import asyncio
import copy
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from studyhub.services.quiz_session import completion_updates, score_answers
from studyhub.services.study_activity import merge_flags
from studyhub.storage.cache import CoalescingCache, make_key
from studyhub.storage.json_store import RecordNotFoundError, StudyJsonStore

logger = logging.getLogger(__name__)


class SessionAlreadyCompletedError(Exception):
    """Raised when answers are submitted for a quiz session that is already completed."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"quiz session '{session_id}' is already completed")
        self.session_id = session_id


def _new_id() -> str:
    return uuid.uuid4().hex


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _Repository:
    table: str = ""

    def __init__(self, store: StudyJsonStore, cache: CoalescingCache) -> None:
        self.store = store
        self.cache = cache

    async def _run(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(fn, *args, **kwargs)

    async def _cached(self, key: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        value = await self.cache.get_or_load(key, lambda: self._run(fn, *args, **kwargs))
        # Callers get their own copy so the cached value cannot be mutated
        return copy.deepcopy(value)

    def _user_prefix(self, user_id: str, table: Optional[str] = None) -> str:
        return make_key(table or self.table, user_id) + ":"

    def _invalidate_user(self, user_id: str, *tables: str) -> None:
        for table in tables or (self.table,):
            self.cache.invalidate(self._user_prefix(user_id, table))


class _OwnedRepository(_Repository):
    """Records carrying a user_id; records of other users are reported as missing."""

    async def _list(self, user_id: str, **filters: Any) -> List[Dict[str, Any]]:
        key = make_key(self.table, user_id, "list", *(f"{k}={v}" for k, v in sorted(filters.items())))
        return await self._cached(key, self.store.list_records, self.table, user_id=user_id, **filters)

    # PUBLIC_INTERFACE
    async def get(self, user_id: str, record_id: str, subject_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Fetch one of the user's records or raise RecordNotFoundError.

        With subject_id, a record belonging to another subject is also reported as missing.
        """
        key = make_key(self.table, user_id, "get", record_id)
        record = await self._cached(key, self.store.find_record, self.table, id=record_id, user_id=user_id)
        if record is None or (subject_id is not None and record.get("subject_id") != subject_id):
            raise RecordNotFoundError(self.table, record_id)
        return record

    async def _insert(self, user_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        record = {"id": _new_id(), "user_id": user_id, **record}
        await self._run(self.store.insert_record, self.table, record)
        self._invalidate_user(user_id)
        return record

    async def _update(self, user_id: str, record_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        await self.get(user_id, record_id)
        updated = await self._run(self.store.update_record, self.table, record_id, updates)
        self._invalidate_user(user_id)
        return updated

    # PUBLIC_INTERFACE
    async def delete(self, user_id: str, record_id: str, subject_id: Optional[str] = None) -> None:
        """Delete one of the user's records (within subject_id, when given) or raise RecordNotFoundError."""
        filters = {"id": record_id, "user_id": user_id}
        if subject_id is not None:
            filters["subject_id"] = subject_id
        removed = await self._run(self.store.delete_where, self.table, **filters)
        if not removed:
            raise RecordNotFoundError(self.table, record_id)
        self._invalidate_user(user_id)


class SubjectRepository(_OwnedRepository):
    table = "subjects"

    # PUBLIC_INTERFACE
    async def list(self, user_id: str) -> List[Dict[str, Any]]:
        """All of the user's subjects ordered by name."""
        subjects = await self._list(user_id)
        return sorted(subjects, key=lambda s: s.get("name") or "")

    async def create(
        self,
        user_id: str,
        name: str,
        semester: Optional[str] = None,
        exam_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._insert(
            user_id,
            {"name": name, "semester": semester, "exam_date": exam_date, "created_at": _utc_now_iso()},
        )

    async def update(self, user_id: str, subject_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self._update(user_id, subject_id, updates)

    # PUBLIC_INTERFACE
    async def delete(self, user_id: str, subject_id: str) -> None:
        """Delete a subject together with its notes, flashcards and planner items."""
        await self.get(user_id, subject_id)

        notes = await self._run(self.store.list_records, "notes", user_id=user_id, subject_id=subject_id)
        for note in notes:
            await self._run(self.store.delete_where, "note_tags", note_id=note["id"])
            if note.get("public_id"):
                self.cache.invalidate(make_key("public", note["public_id"]) + ":")

        owned_tables = ("notes", "flashcards", "deadlines", "reading_items", "goals")
        for table in owned_tables:
            await self._run(self.store.delete_where, table, user_id=user_id, subject_id=subject_id)
        await super().delete(user_id, subject_id)

        self._invalidate_user(user_id, *owned_tables)
        self.cache.invalidate("note_tags:")
        logger.info("Deleted subject %s with %d note(s) | User: %s", subject_id, len(notes), user_id)


class NoteRepository(_OwnedRepository):
    table = "notes"

    # PUBLIC_INTERFACE
    async def list(self, user_id: str, subject_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """The user's notes, newest first, optionally limited to one subject."""
        filters = {"subject_id": subject_id} if subject_id else {}
        notes = await self._list(user_id, **filters)
        return sorted(notes, key=lambda n: n.get("created_at") or "", reverse=True)

    async def create(self, user_id: str, subject_id: str, title: str, content: str) -> Dict[str, Any]:
        return await self._insert(
            user_id,
            {
                "subject_id": subject_id,
                "title": title,
                "content": content,
                "created_at": _utc_now_iso(),
                "updated_at": None,
                "is_public": False,
                "public_id": None,
            },
        )

    async def update(self, user_id: str, note_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        updated = await self._update(user_id, note_id, {**updates, "updated_at": _utc_now_iso()})
        self._invalidate_public(updated)
        return updated

    async def delete(self, user_id: str, note_id: str) -> None:
        note = await self.get(user_id, note_id)
        await super().delete(user_id, note_id)
        await self._run(self.store.delete_where, "note_tags", note_id=note_id)
        self.cache.invalidate(make_key("note_tags", note_id) + ":")
        self._invalidate_public(note)

    # PUBLIC_INTERFACE
    async def get_public(self, public_id: str) -> Dict[str, Any]:
        """A shared note by its public id. Notes that are not public are reported as missing."""
        key = make_key("public", public_id, "note")
        note = await self._cached(key, self.store.find_record, self.table, public_id=public_id, is_public=True)
        if note is None:
            raise RecordNotFoundError(self.table, public_id)
        return note

    def _invalidate_public(self, note: Dict[str, Any]) -> None:
        if note.get("public_id"):
            self.cache.invalidate(make_key("public", note["public_id"]) + ":")


class TagRepository(_Repository):
    table = "tags"

    # PUBLIC_INTERFACE
    async def list(self) -> List[Dict[str, Any]]:
        tags = await self._cached(make_key("tags", "all"), self.store.list_records, "tags")
        return sorted(tags, key=lambda t: t["name"])

    # PUBLIC_INTERFACE
    async def create(self, name: str) -> Dict[str, Any]:
        """Create a tag; an existing tag with the same name is returned instead."""

        def find_or_insert() -> Dict[str, Any]:
            with self.store.transaction() as data:
                for tag in data["tags"]:
                    if tag.get("name") == name:
                        return dict(tag)
                tag = {"id": _new_id(), "name": name}
                data["tags"].append(tag)
                return dict(tag)

        tag = await self._run(find_or_insert)
        self.cache.invalidate("tags:")
        return tag

    # PUBLIC_INTERFACE
    async def for_note(self, note_id: str) -> List[Dict[str, Any]]:
        """Tags attached to a note, ordered by name."""
        async def load() -> List[Dict[str, Any]]:
            links = await self._run(self.store.list_records, "note_tags", note_id=note_id)
            tag_ids = {link["tag_id"] for link in links}
            tags = await self._run(self.store.list_records, "tags")
            return [t for t in tags if t["id"] in tag_ids]

        tags = copy.deepcopy(await self.cache.get_or_load(make_key("note_tags", note_id, "tags"), load))
        return sorted(tags, key=lambda t: t["name"])

    async def attach(self, note_id: str, tag_id: str) -> None:
        def link() -> None:
            with self.store.transaction() as data:
                if not any(t.get("id") == tag_id for t in data["tags"]):
                    raise RecordNotFoundError("tags", tag_id)
                for existing in data["note_tags"]:
                    if existing.get("note_id") == note_id and existing.get("tag_id") == tag_id:
                        return
                data["note_tags"].append({"note_id": note_id, "tag_id": tag_id})

        await self._run(link)
        self.cache.invalidate(make_key("note_tags", note_id) + ":")

    async def detach(self, note_id: str, tag_id: str) -> None:
        removed = await self._run(self.store.delete_where, "note_tags", note_id=note_id, tag_id=tag_id)
        if not removed:
            raise RecordNotFoundError("note_tags", f"{note_id}/{tag_id}")
        self.cache.invalidate(make_key("note_tags", note_id) + ":")


class QuizSessionRepository(_OwnedRepository):
    table = "quiz_sessions"

    async def list(self, user_id: str, subject_id: Optional[str] = None) -> List[Dict[str, Any]]:
        filters = {"subject_id": subject_id} if subject_id else {}
        sessions = await self._list(user_id, **filters)
        return sorted(sessions, key=lambda s: s.get("started_at") or "", reverse=True)

    async def save(self, session: Dict[str, Any]) -> Dict[str, Any]:
        await self._run(self.store.insert_record, self.table, session)
        self._invalidate_user(session["user_id"])
        return session

    # PUBLIC_INTERFACE
    async def complete(self, user_id: str, session_id: str, answers: Dict[str, Optional[str]]) -> Dict[str, Any]:
        """
        Score answers against a session and mark it completed, in one store transaction.

        Raises:
            RecordNotFoundError: if the user has no such session.
            SessionAlreadyCompletedError: if the session was completed before.
        """

        def score_and_complete() -> Dict[str, Any]:
            with self.store.transaction() as data:
                for record in data[self.table]:
                    if record.get("id") == session_id and record.get("user_id") == user_id:
                        if record.get("completed_at"):
                            raise SessionAlreadyCompletedError(session_id)
                        result = score_answers(record.get("questions") or [], answers)
                        record.update(completion_updates(answers, result))
                        return result
                raise RecordNotFoundError(self.table, session_id)

        result = await self._run(score_and_complete)
        self._invalidate_user(user_id)
        return result


class FlashcardRepository(_OwnedRepository):
    table = "flashcards"

    async def list(self, user_id: str, subject_id: str) -> List[Dict[str, Any]]:
        return await self._list(user_id, subject_id=subject_id)

    async def create(self, user_id: str, subject_id: str, front: str, back: str) -> Dict[str, Any]:
        return await self._insert(user_id, {"subject_id": subject_id, "front": front, "back": back})


class PlannerItemRepository(_OwnedRepository):
    """Deadlines, reading items or goals, depending on the table it is bound to."""

    def __init__(self, store: StudyJsonStore, cache: CoalescingCache, table: str) -> None:
        super().__init__(store, cache)
        self.table = table

    async def list(self, user_id: str, subject_id: str) -> List[Dict[str, Any]]:
        return await self._list(user_id, subject_id=subject_id)

    async def create(self, user_id: str, subject_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._insert(user_id, {"subject_id": subject_id, **fields})

    async def create_many(self, user_id: str, subject_id: str, rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        records = [{"id": _new_id(), "user_id": user_id, "subject_id": subject_id, **row} for row in rows]

        def insert_all() -> None:
            with self.store.transaction() as data:
                data[self.table].extend(records)

        await self._run(insert_all)
        self._invalidate_user(user_id)
        return records

    async def update(self, user_id: str, record_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return await self._update(user_id, record_id, updates)


class ActivityRepository(_Repository):
    table = "study_activity"

    # PUBLIC_INTERFACE
    async def list_between(self, user_id: str, start: str, end: str) -> List[Dict[str, Any]]:
        """The user's daily activity records with start <= date <= end (ISO dates)."""
        key = make_key(self.table, user_id, "range", start, end)

        def load() -> List[Dict[str, Any]]:
            records = self.store.list_records(self.table, user_id=user_id)
            return [r for r in records if start <= str(r.get("date")) <= end]

        activities = await self._cached(key, load)
        return sorted(activities, key=lambda a: a["date"])

    # PUBLIC_INTERFACE
    async def register(self, user_id: str, day: str, flags: Iterable[str]) -> Dict[str, Any]:
        """Set flags on the user's activity for a day, creating the record when missing."""
        flags = list(flags)

        def upsert() -> Dict[str, Any]:
            with self.store.transaction() as data:
                for record in data[self.table]:
                    if record.get("user_id") == user_id and record.get("date") == day:
                        record.update(merge_flags(record, flags))
                        return dict(record)
                record = {"id": _new_id(), "user_id": user_id, "date": day, **merge_flags({}, flags)}
                data[self.table].append(record)
                return dict(record)

        activity = await self._run(upsert)
        self._invalidate_user(user_id)
        logger.debug("Registered activity %s on %s | User: %s", ",".join(flags), day, user_id)
        return activity


@dataclass
class Repositories:
    subjects: SubjectRepository
    notes: NoteRepository
    tags: TagRepository
    quiz_sessions: QuizSessionRepository
    flashcards: FlashcardRepository
    deadlines: PlannerItemRepository
    reading_items: PlannerItemRepository
    goals: PlannerItemRepository
    activity: ActivityRepository


# PUBLIC_INTERFACE
def build_repositories(store: StudyJsonStore, cache: CoalescingCache) -> Repositories:
    """Wire every repository to one store and one shared cache."""
    return Repositories(
        subjects=SubjectRepository(store, cache),
        notes=NoteRepository(store, cache),
        tags=TagRepository(store, cache),
        quiz_sessions=QuizSessionRepository(store, cache),
        flashcards=FlashcardRepository(store, cache),
        deadlines=PlannerItemRepository(store, cache, "deadlines"),
        reading_items=PlannerItemRepository(store, cache, "reading_items"),
        goals=PlannerItemRepository(store, cache, "goals"),
        activity=ActivityRepository(store, cache),
    )
