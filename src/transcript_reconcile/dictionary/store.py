"""Smart dictionary store.

Holds an ordered list of correction rules and reapplies them to new
text. Every change is written straight through to a blob backend as one
JSON document that replaces the previous one.

Example:
    store = SmartDictionary(FileBlobBackend("dictionary.json"))
    store.add_manual("Kubernetes", ["cooper netties"])
    outcome = store.apply_dictionary("we run cooper netties")
    # outcome.result == "we run Kubernetes"
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Iterable, Iterator
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from transcript_reconcile.errors import StorageError, ValidationError
from transcript_reconcile.logging import get_logger
from transcript_reconcile.models.dictionary import ApplyResult, DictionaryEntry, Replacement
from transcript_reconcile.storage import BlobBackend, MemoryBlobBackend

logger = get_logger(__name__)

MANUAL_ID_PREFIX = "dict"
IMPORTED_ID_PREFIX = "imported"


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def _is_blank(value: str | None) -> bool:
    return not value or not value.strip()


def parse_entries(blob: str) -> list[DictionaryEntry]:
    """Parse a serialized dictionary.

    Args:
        blob: JSON text holding a list of entries

    Returns:
        Validated entries, in order

    Raises:
        ValidationError: If the blob is not JSON, not a list, or holds an
            invalid entry
    """
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Dictionary is not valid JSON: {e.msg}", context={"position": e.pos}) from e

    if not isinstance(data, list):
        raise ValidationError(
            "Dictionary must be a list of entries",
            context={"type": type(data).__name__},
        )

    entries = []
    for index, item in enumerate(data):
        try:
            entries.append(DictionaryEntry.model_validate(item))
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid dictionary entry: {e.errors()[0]['msg']}",
                context={"index": index},
            ) from e
    return entries


class SmartDictionary:
    """Persistent, ordered set of correction rules.

    Entry order is insertion order and decides the order rules are
    applied in. Construct one instance per session with the backend it
    should persist to; the backend's blob is loaded immediately.

    Attributes:
        backend: Where the serialized dictionary is read from and written to
    """

    def __init__(
        self,
        backend: BlobBackend | None = None,
        clock: Callable[[], int] | None = None,
    ):
        """Initialize the store and load any persisted entries.

        Args:
            backend: Blob storage; defaults to a fresh in-memory backend
            clock: Returns the current time in epoch ms
        """
        self.backend = backend if backend is not None else MemoryBlobBackend()
        self._clock = clock or now_ms
        self._entries: list[DictionaryEntry] = []
        self._load()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def entries(self) -> tuple[DictionaryEntry, ...]:
        """Entries in application order."""
        return tuple(self._entries)

    @property
    def total_count(self) -> int:
        """Number of entries."""
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DictionaryEntry]:
        return iter(tuple(self._entries))

    def get(self, entry_id: str) -> DictionaryEntry | None:
        """Find an entry by id."""
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def find_by_correct(self, correct: str) -> DictionaryEntry | None:
        """Find an entry by its exact correct value."""
        for entry in self._entries:
            if entry.correct == correct:
                return entry
        return None

    # ------------------------------------------------------------------
    # Adding entries
    # ------------------------------------------------------------------

    def add_manual(self, correct: str, variants: Iterable[str] | None = None) -> DictionaryEntry | None:
        """Add a rule, or merge variants into an existing one.

        Args:
            correct: Correct spelling; surrounding whitespace is trimmed
            variants: Known wrong spellings of it

        Returns:
            The new or existing entry, or None if ``correct`` is blank
        """
        correct = correct.strip() if correct else ""
        if not correct:
            logger.debug("Ignoring dictionary entry with blank correct value")
            return None

        variants = list(variants or [])
        existing = self.find_by_correct(correct)
        if existing is not None:
            added = _merge_variants(existing, variants)
            if added:
                self._save()
                logger.info(
                    f"Merged {added} variant(s) into dictionary entry",
                    extra={"correct": correct},
                )
            return existing

        now = self._clock()
        entry = DictionaryEntry(
            id=self._new_id(MANUAL_ID_PREFIX),
            correct=correct,
            variants=[],
            use_count=0,
            created_at=now,
            last_used_at=now,
        )
        _merge_variants(entry, variants)
        self._entries.append(entry)
        self._save()

        logger.info("Added dictionary entry", extra={"correct": correct, "variants": entry.variants})
        return entry

    # ------------------------------------------------------------------
    # Applying
    # ------------------------------------------------------------------

    def apply_dictionary(self, text: str) -> ApplyResult:
        """Substitute every known variant in ``text``.

        Entries are applied in order, and each entry's variants in order,
        against the running result, so one rule's output can feed a
        later rule. A matching variant has all its occurrences replaced,
        is logged once, and bumps its entry's use count by one.

        Args:
            text: Text to correct

        Returns:
            Corrected text and the ordered replacement log
        """
        result = text
        replacements: list[Replacement] = []

        for entry in self._entries:
            for variant in list(entry.variants):
                if not variant or variant not in result:
                    continue
                result = result.replace(variant, entry.correct)
                replacements.append(Replacement(from_text=variant, to_text=entry.correct))
                entry.use_count += 1
                entry.last_used_at = self._clock()

        if replacements:
            self._save()
            logger.info(
                f"Applied {len(replacements)} dictionary replacement(s)",
                extra={"replacements": [r.to_dict() for r in replacements]},
            )

        return ApplyResult(result=result, replacements=replacements)

    # ------------------------------------------------------------------
    # Management
    # ------------------------------------------------------------------

    def remove_entry(self, entry_id: str) -> bool:
        """Remove an entry by id.

        Returns:
            True if an entry was removed
        """
        entry = self.get(entry_id)
        if entry is None:
            return False

        self._entries.remove(entry)
        self._save()
        logger.with_context(entry_id=entry.id).info("Removed dictionary entry", extra={"correct": entry.correct})
        return True

    def add_variant(self, entry_id: str, variant: str) -> bool:
        """Append a trimmed variant to an entry.

        Returns:
            True if the variant was added
        """
        entry = self.get(entry_id)
        variant = variant.strip() if variant else ""
        if entry is None or not variant or entry.has_variant(variant):
            return False

        entry.variants.append(variant)
        self._save()
        logger.with_context(entry_id=entry.id).info("Added variant", extra={"variant": variant})
        return True

    def remove_variant(self, entry_id: str, variant: str) -> bool:
        """Remove an exact variant from an entry.

        Returns:
            True if the variant was found and removed
        """
        entry = self.get(entry_id)
        if entry is None or not entry.has_variant(variant):
            return False

        entry.variants.remove(variant)
        self._save()
        logger.with_context(entry_id=entry.id).info("Removed variant", extra={"variant": variant})
        return True

    def clear_all(self) -> int:
        """Remove every entry.

        Returns:
            Number of entries removed
        """
        removed = len(self._entries)
        self._entries = []
        self._save()
        logger.info("Cleared dictionary", extra={"removed": removed})
        return removed

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_dictionary(self) -> str:
        """Serialize all entries as indented JSON."""
        return json.dumps(
            [entry.to_dict() for entry in self._entries],
            indent=2,
            ensure_ascii=False,
        )

    def import_dictionary(self, payload: str) -> bool:
        """Merge a serialized dictionary into this one.

        Entries whose correct value already exists only contribute new
        variants. Other entries are appended with a freshly generated id;
        their counters and timestamps are kept. Nothing changes unless the
        whole payload validates.

        Args:
            payload: JSON text, as produced by export_dictionary

        Returns:
            True on success, False if the payload was rejected
        """
        try:
            imported = parse_entries(payload)
        except ValidationError as e:
            logger.error(f"Dictionary import failed: {e.message}", extra=e.context)
            return False

        now = self._clock()
        merged = appended = 0
        for item in imported:
            existing = self.find_by_correct(item.correct)
            if existing is not None:
                _merge_variants(existing, item.variants)
                merged += 1
                continue

            entry = item.model_copy(update={"id": self._new_id(IMPORTED_ID_PREFIX), "variants": []})
            if "created_at" not in item.model_fields_set:
                entry.created_at = now
            if "last_used_at" not in item.model_fields_set:
                entry.last_used_at = now
            _merge_variants(entry, item.variants)
            self._entries.append(entry)
            appended += 1

        self._save()
        logger.info(
            "Imported dictionary",
            extra={"count": len(imported), "appended": appended, "merged": merged},
        )
        return True

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def reload(self) -> None:
        """Discard in-memory entries and load from the backend again."""
        self._entries = []
        self._load()

    def _load(self) -> None:
        try:
            blob = self.backend.read()
        except (StorageError, OSError) as e:
            logger.error(f"Failed to read dictionary: {e}")
            return

        if blob is None:
            return

        try:
            self._entries = parse_entries(blob)
        except ValidationError as e:
            logger.error(f"Failed to load dictionary: {e.message}", extra=e.context)
            return

        logger.debug("Loaded dictionary", extra={"count": len(self._entries)})

        repaired = self._assign_missing_ids()
        if repaired:
            logger.warning(f"Assigned new ids to {repaired} dictionary entries")
            self._save()

    def _assign_missing_ids(self) -> int:
        """Give blank or duplicated ids a fresh one; the first holder keeps its id."""
        seen: set[str] = set()
        repaired = 0
        for entry in self._entries:
            if not entry.id or entry.id in seen:
                entry.id = self._new_id(MANUAL_ID_PREFIX)
                repaired += 1
            seen.add(entry.id)
        return repaired

    def _save(self) -> None:
        try:
            self.backend.write(self.export_dictionary())
        except (StorageError, OSError) as e:
            logger.error(f"Failed to save dictionary: {e}")

    def _new_id(self, prefix: str) -> str:
        while True:
            entry_id = f"{prefix}_{self._clock()}_{uuid4().hex[:6]}"
            if self.get(entry_id) is None:
                return entry_id


def _merge_variants(entry: DictionaryEntry, variants: Iterable[str]) -> int:
    """Append non-blank variants the entry doesn't have yet."""
    added = 0
    for variant in variants:
        if _is_blank(variant) or entry.has_variant(variant):
            continue
        entry.variants.append(variant)
        added += 1
    return added
