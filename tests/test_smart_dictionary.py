"""Tests for the smart dictionary store."""

import json
import logging

import pytest

from transcript_reconcile.dictionary import SmartDictionary, parse_entries
from transcript_reconcile.errors import StorageError, ValidationError
from transcript_reconcile.models.dictionary import Replacement
from transcript_reconcile.storage import FileBlobBackend, MemoryBlobBackend


class FakeClock:
    """Clock returning a controllable epoch-ms value."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


class FailingBackend(MemoryBlobBackend):
    """Backend whose writes always fail."""

    def write(self, blob: str) -> None:
        raise StorageError("disk full")


@pytest.fixture
def backend():
    return MemoryBlobBackend()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(backend, clock):
    return SmartDictionary(backend, clock=clock)


class TestAddManual:
    """Tests for add_manual."""

    def test_blank_correct_rejected(self, store, backend):
        """Test that blank correct values add nothing."""
        assert store.add_manual("   ", ["x"]) is None
        assert store.add_manual("") is None

        assert len(store) == 0
        assert backend.write_count == 0

    def test_new_entry(self, store, backend, clock):
        """Test creating a new entry."""
        entry = store.add_manual("  Kubernetes ", ["cooper netties", "", "  ", "kuber nettis"])

        assert entry is not None
        assert entry.id.startswith("dict_")
        assert entry.correct == "Kubernetes"
        assert entry.variants == ["cooper netties", "kuber nettis"]
        assert entry.use_count == 0
        assert entry.created_at == clock.now
        assert entry.last_used_at == clock.now
        assert store.total_count == 1
        assert backend.write_count == 1

    def test_duplicate_variants_collapsed(self, store):
        """Test that variants are unique within an entry."""
        entry = store.add_manual("cat", ["kat", "kat"])
        assert entry.variants == ["kat"]

    def test_existing_entry_merges_variants(self, store):
        """Test adding to an existing correct value."""
        first = store.add_manual("cat", ["kat"])
        first.use_count = 4

        second = store.add_manual(" cat ", ["kat", "", "catt"])

        assert second is first
        assert second.variants == ["kat", "catt"]
        assert second.use_count == 4
        assert store.total_count == 1

    def test_insertion_order_kept(self, store):
        """Test that entries stay in insertion order."""
        store.add_manual("one")
        store.add_manual("two")
        store.add_manual("three")

        assert [e.correct for e in store.entries] == ["one", "two", "three"]

    def test_ids_unique(self, store):
        """Test that ids differ even with a frozen clock."""
        ids = {store.add_manual(f"word{i}").id for i in range(20)}
        assert len(ids) == 20

    def test_exact_match_only(self, store):
        """Test that correct values are compared without case folding."""
        store.add_manual("Cat")
        store.add_manual("cat")
        assert store.total_count == 2


class TestApplyDictionary:
    """Tests for apply_dictionary."""

    def test_simple_replacement(self, store):
        """Test replacing one variant."""
        store.add_manual("Kubernetes", ["cooper netties"])

        outcome = store.apply_dictionary("we run cooper netties in prod")

        assert outcome.result == "we run Kubernetes in prod"
        assert outcome.replacements == [Replacement("cooper netties", "Kubernetes")]
        assert outcome.changed

    def test_all_occurrences_counted_once(self, store, clock):
        """Test that many occurrences bump use_count by one."""
        entry = store.add_manual("cat", ["kat"])
        clock.now += 500

        outcome = store.apply_dictionary("kat and kat and kat")

        assert outcome.result == "cat and cat and cat"
        assert len(outcome.replacements) == 1
        assert entry.use_count == 1
        assert entry.last_used_at == clock.now

    def test_cascading_rules(self, store):
        """Test that an earlier rule's output feeds a later rule."""
        first = store.add_manual("B", ["A"])
        second = store.add_manual("C", ["B"])

        outcome = store.apply_dictionary("A")

        assert outcome.result == "C"
        assert outcome.replacements == [Replacement("A", "B"), Replacement("B", "C")]
        assert first.use_count == 1
        assert second.use_count == 1

    def test_rule_order_matters(self, store):
        """Test that reversing insertion order stops the cascade."""
        store.add_manual("C", ["B"])
        store.add_manual("B", ["A"])

        outcome = store.apply_dictionary("A")

        assert outcome.result == "B"
        assert outcome.replacements == [Replacement("A", "B")]

    def test_earlier_rule_can_remove_later_match(self, store):
        """Test that a substitution can hide a later variant."""
        store.add_manual("xyz", ["ab"])
        later = store.add_manual("Q", ["b"])

        outcome = store.apply_dictionary("ab")

        assert outcome.result == "xyz"
        assert later.use_count == 0

    def test_no_match_is_noop(self, store, backend):
        """Test that no match means no replacements and no write."""
        store.add_manual("cat", ["kat"])
        writes = backend.write_count

        outcome = store.apply_dictionary("a dog")

        assert outcome.result == "a dog"
        assert outcome.replacements == []
        assert not outcome.changed
        assert backend.write_count == writes

    def test_match_persists_counts(self, store, backend):
        """Test that a match writes updated counts through."""
        store.add_manual("cat", ["kat"])
        writes = backend.write_count

        store.apply_dictionary("kat")

        assert backend.write_count == writes + 1
        assert json.loads(backend.blob)[0]["useCount"] == 1

    def test_to_dict(self, store):
        """Test the serialized replacement log."""
        store.add_manual("cat", ["kat"])
        outcome = store.apply_dictionary("kat")

        assert outcome.to_dict() == {
            "result": "cat",
            "replacements": [{"from": "kat", "to": "cat"}],
        }


class TestManagement:
    """Tests for remove_entry, add_variant, remove_variant and clear_all."""

    def test_remove_entry(self, store, backend):
        """Test removing an entry."""
        entry = store.add_manual("cat", ["kat"])
        writes = backend.write_count

        assert store.remove_entry(entry.id) is True
        assert store.total_count == 0
        assert backend.write_count == writes + 1

    def test_remove_missing_entry(self, store, backend):
        """Test that removing an unknown id is a no-op."""
        store.add_manual("cat")
        writes = backend.write_count

        assert store.remove_entry("nope") is False
        assert store.total_count == 1
        assert backend.write_count == writes

    def test_add_variant(self, store):
        """Test adding a trimmed variant."""
        entry = store.add_manual("cat", ["kat"])

        assert store.add_variant(entry.id, "  catt ") is True
        assert entry.variants == ["kat", "catt"]

    def test_add_variant_rejects_blank_and_duplicates(self, store, backend):
        """Test add_variant no-ops."""
        entry = store.add_manual("cat", ["kat"])
        writes = backend.write_count

        assert store.add_variant(entry.id, "   ") is False
        assert store.add_variant(entry.id, "kat") is False
        assert store.add_variant("missing", "x") is False
        assert entry.variants == ["kat"]
        assert backend.write_count == writes

    def test_remove_variant(self, store):
        """Test removing an exact variant."""
        entry = store.add_manual("cat", ["kat", "catt"])

        assert store.remove_variant(entry.id, "kat") is True
        assert entry.variants == ["catt"]

    def test_remove_variant_exact_only(self, store):
        """Test that remove_variant doesn't trim or fold case."""
        entry = store.add_manual("cat", ["kat"])

        assert store.remove_variant(entry.id, " kat") is False
        assert store.remove_variant(entry.id, "KAT") is False
        assert store.remove_variant("missing", "kat") is False
        assert entry.variants == ["kat"]

    def test_clear_all(self, store, backend):
        """Test clearing the dictionary."""
        store.add_manual("one")
        store.add_manual("two")

        assert store.clear_all() == 2
        assert store.total_count == 0
        assert json.loads(backend.blob) == []

    def test_mutations_log_entry_id(self, store, caplog):
        """Test that per-entry log records carry the entry id."""
        caplog.set_level(logging.INFO, logger="transcript_reconcile")
        entry = store.add_manual("cat", ["kat"])

        store.add_variant(entry.id, "catt")
        store.remove_variant(entry.id, "kat")
        store.remove_entry(entry.id)

        messages = {r.getMessage(): r for r in caplog.records}
        for message in ("Added variant", "Removed variant", "Removed dictionary entry"):
            assert messages[message].entry_id == entry.id
        assert messages["Added variant"].variant == "catt"

    def test_get_and_find(self, store):
        """Test lookups by id and correct value."""
        entry = store.add_manual("cat")

        assert store.get(entry.id) is entry
        assert store.find_by_correct("cat") is entry
        assert store.get("missing") is None
        assert store.find_by_correct("dog") is None


class TestImportExport:
    """Tests for export_dictionary and import_dictionary."""

    def test_export_shape(self, store):
        """Test exported fields use camelCase keys."""
        store.add_manual("cat", ["kat"])

        data = json.loads(store.export_dictionary())

        assert len(data) == 1
        assert set(data[0]) == {"id", "correct", "variants", "useCount", "createdAt", "lastUsedAt"}
        assert data[0]["correct"] == "cat"
        assert data[0]["variants"] == ["kat"]

    def test_round_trip_into_new_store(self, store, clock):
        """Test importing an export into an empty store."""
        original = store.add_manual("cat", ["kat"])
        store.apply_dictionary("kat")
        exported = store.export_dictionary()

        other = SmartDictionary(MemoryBlobBackend(), clock=clock)
        assert other.import_dictionary(exported) is True

        imported = other.entries[0]
        assert imported.id != original.id
        assert imported.id.startswith("imported_")
        assert imported.correct == "cat"
        assert imported.variants == ["kat"]
        assert imported.use_count == 1
        assert imported.created_at == original.created_at

    def test_import_merges_existing(self, store):
        """Test that matching entries only gain variants."""
        entry = store.add_manual("cat", ["kat"])
        payload = json.dumps(
            [{"id": "x", "correct": "cat", "variants": ["kat", "catt"], "useCount": 9}]
        )

        assert store.import_dictionary(payload) is True

        assert store.total_count == 1
        assert entry.id != "x"
        assert entry.variants == ["kat", "catt"]
        assert entry.use_count == 0

    def test_import_fills_missing_fields(self, store, clock):
        """Test a minimal compatible payload."""
        payload = json.dumps([{"correct": "dog", "variants": ["dawg"]}])

        assert store.import_dictionary(payload) is True

        entry = store.entries[0]
        assert entry.use_count == 0
        assert entry.created_at == clock.now
        assert entry.last_used_at == clock.now

    def test_import_duplicates_within_payload(self, store):
        """Test that repeated correct values in one payload merge."""
        payload = json.dumps(
            [
                {"correct": "dog", "variants": ["dawg"]},
                {"correct": "dog", "variants": ["dog1"]},
            ]
        )

        assert store.import_dictionary(payload) is True
        assert store.total_count == 1
        assert store.entries[0].variants == ["dawg", "dog1"]

    def test_import_rejects_non_array(self, store, backend):
        """Test that a malformed payload changes nothing."""
        store.add_manual("cat")
        before = store.entries
        writes = backend.write_count

        assert store.import_dictionary("{not an array}") is False
        assert store.import_dictionary('{"correct": "dog"}') is False

        assert store.entries == before
        assert len(store) == 1
        assert backend.write_count == writes

    def test_import_rejects_invalid_entry(self, store):
        """Test that one bad entry fails the whole import."""
        payload = json.dumps(
            [
                {"correct": "dog", "variants": ["dawg"]},
                {"correct": "   ", "variants": ["x"]},
            ]
        )

        assert store.import_dictionary(payload) is False
        assert store.total_count == 0

    def test_import_drops_blank_variants(self, store):
        """Test that empty variants never get stored."""
        payload = json.dumps([{"correct": "dog", "variants": ["", "dawg"]}])

        assert store.import_dictionary(payload) is True
        assert store.entries[0].variants == ["dawg"]


class TestPersistence:
    """Tests for loading and saving through the backend."""

    def test_reload_from_backend(self, store, backend, clock):
        """Test that a new store sees saved entries."""
        store.add_manual("cat", ["kat"])
        store.add_manual("dog", ["dawg"])

        reopened = SmartDictionary(backend, clock=clock)

        assert [e.correct for e in reopened.entries] == ["cat", "dog"]
        assert [e.id for e in reopened.entries] == [e.id for e in store.entries]

    def test_malformed_blob_gives_empty_store(self):
        """Test that corrupt persisted data is ignored."""
        store = SmartDictionary(MemoryBlobBackend("this is not json"))
        assert store.total_count == 0

    def test_non_list_blob_gives_empty_store(self):
        """Test that a non-list blob is ignored."""
        store = SmartDictionary(MemoryBlobBackend('{"correct": "cat"}'))
        assert store.total_count == 0

    def test_blank_and_duplicate_ids_are_replaced(self, clock):
        """Test that loaded entries always end up with unique ids."""
        backend = MemoryBlobBackend(
            json.dumps(
                [
                    {"correct": "one"},
                    {"correct": "two"},
                    {"id": "same", "correct": "three"},
                    {"id": "same", "correct": "four"},
                ]
            )
        )

        store = SmartDictionary(backend, clock=clock)

        ids = [e.id for e in store.entries]
        assert len(set(ids)) == 4
        assert all(ids)
        assert ids[2] == "same"
        assert backend.write_count == 1
        assert [e["id"] for e in json.loads(backend.blob)] == ids

    def test_remove_entry_after_id_repair(self, clock):
        """Test removing one of several entries that had no id."""
        backend = MemoryBlobBackend(json.dumps([{"correct": "one"}, {"correct": "two"}]))
        store = SmartDictionary(backend, clock=clock)

        assert not store.remove_entry("")
        assert store.remove_entry(store.entries[1].id)
        assert [e.correct for e in store.entries] == ["one"]

    def test_well_formed_blob_is_not_rewritten(self, store, backend, clock):
        """Test that loading valid data performs no write."""
        store.add_manual("cat")
        writes = backend.write_count

        SmartDictionary(backend, clock=clock)

        assert backend.write_count == writes

    def test_reload_discards_memory(self, backend, clock):
        """Test reload() re-reads the backend."""
        store = SmartDictionary(backend, clock=clock)
        store.add_manual("cat")
        backend.blob = "[]"

        store.reload()

        assert store.total_count == 0

    def test_save_failure_is_absorbed(self, clock):
        """Test that a failing backend doesn't break mutations."""
        store = SmartDictionary(FailingBackend(), clock=clock)

        entry = store.add_manual("cat", ["kat"])

        assert entry is not None
        assert store.apply_dictionary("kat").result == "cat"

    def test_file_backend(self, tmp_path, clock):
        """Test persistence to a real file."""
        path = tmp_path / "dictionary.json"
        store = SmartDictionary(FileBlobBackend(path), clock=clock)
        store.add_manual("Kubernetes", ["cooper netties"])

        assert path.exists()
        reopened = SmartDictionary(FileBlobBackend(path), clock=clock)
        assert reopened.apply_dictionary("cooper netties").result == "Kubernetes"

    def test_default_backend_is_memory(self):
        """Test constructing without a backend."""
        store = SmartDictionary()
        assert isinstance(store.backend, MemoryBlobBackend)


class TestParseEntries:
    """Tests for parse_entries."""

    def test_valid(self):
        """Test parsing a valid blob."""
        entries = parse_entries('[{"id": "a", "correct": "cat", "variants": ["kat"]}]')
        assert entries[0].correct == "cat"

    def test_invalid_json(self):
        """Test that bad JSON raises ValidationError."""
        with pytest.raises(ValidationError):
            parse_entries("[")

    def test_negative_count(self):
        """Test that counters must be non-negative."""
        with pytest.raises(ValidationError) as exc_info:
            parse_entries('[{"correct": "cat", "useCount": -1}]')
        assert exc_info.value.context == {"index": 0}
