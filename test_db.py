"""Tests for the key-value database and legacy migration."""

import json
import logging

import pytest

from mnemo.engine.db import (CARDS_KEY, FOLDERS_KEY, SETTINGS_KEY, Database,
                             LegacyStore, load_state, save)
from mnemo.engine.errors import StorageError
from mnemo.engine.store import CardStore, restore


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "data" / "mnemo.sqlite"))
    yield database
    database.close()


def test_set_and_get(db):
    cards = [{"id": "1", "word": "كتاب", "meaning": "Kitap"}]
    db.set(CARDS_KEY, cards)
    assert db.get(CARDS_KEY) == cards

    db.set(CARDS_KEY, [])
    assert db.get(CARDS_KEY) == []


def test_missing_key_is_none(db):
    assert db.get(FOLDERS_KEY) is None


def test_values_survive_reopen(tmp_path):
    path = str(tmp_path / "mnemo.sqlite")
    first = Database(path)
    first.set(SETTINGS_KEY, {"text_model": "gemini-2.5-flash"})
    first.close()

    second = Database(path)
    assert second.get(SETTINGS_KEY) == {"text_model": "gemini-2.5-flash"}
    second.close()


def test_closed_database_raises_storage_error(tmp_path):
    database = Database(str(tmp_path / "mnemo.sqlite"))
    database.close()
    with pytest.raises(StorageError):
        database.set(CARDS_KEY, [])
    with pytest.raises(StorageError):
        database.get(CARDS_KEY)


def test_fresh_install_loads_nothing(db, tmp_path):
    state = load_state(db, LegacyStore(tmp_path))
    assert state == {CARDS_KEY: None, FOLDERS_KEY: None, SETTINGS_KEY: None}


def test_legacy_data_is_migrated_once(db, tmp_path):
    legacy_cards = [{"id": "1", "word": "قلم", "meaning": "Kalem"}]
    (tmp_path / "cards.json").write_text(json.dumps(legacy_cards), encoding="utf-8")

    state = load_state(db, LegacyStore(tmp_path))
    assert state[CARDS_KEY] == legacy_cards
    assert db.get(CARDS_KEY) == legacy_cards

    # The database copy wins from now on
    db.set(CARDS_KEY, [])
    assert load_state(db, LegacyStore(tmp_path))[CARDS_KEY] == []


def test_corrupt_legacy_file_is_skipped(db, tmp_path, caplog):
    (tmp_path / "folders.json").write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.ERROR):
        state = load_state(db, LegacyStore(tmp_path))
    assert state[FOLDERS_KEY] is None
    assert "Migration error" in caplog.text


def test_save_logs_instead_of_raising(tmp_path, caplog):
    database = Database(str(tmp_path / "mnemo.sqlite"))
    database.close()
    with caplog.at_level(logging.ERROR):
        assert save(database, CARDS_KEY, []) is False
    assert "Failed to save cards" in caplog.text


def test_save_returns_true(db):
    assert save(db, FOLDERS_KEY, [{"id": "f", "name": "Food"}]) is True
    assert db.get(FOLDERS_KEY) == [{"id": "f", "name": "Food"}]


def test_camel_case_legacy_cards_keep_their_content(db, tmp_path):
    legacy_cards = [{
        "id": "c1",
        "folderId": "f1",
        "turkishMeaning": "Kitap",
        "arabicWord": "كتاب (Kitab)",
        "keyword": "KİTABE",
        "story": "Kitap kitabeye yaslanmış.",
        "imagePrompt": "a book leaning on an inscription",
        "imageUrl": "data:image/png;base64,eA==",
        "status": "active",
        "intervalIndex": 3,
        "nextReviewTime": 123456,
    }]
    legacy_folders = [{"id": "f1", "name": "Kitaplar", "createdAt": 99}]
    (tmp_path / "cards.json").write_text(json.dumps(legacy_cards, ensure_ascii=False), encoding="utf-8")
    (tmp_path / "folders.json").write_text(json.dumps(legacy_folders), encoding="utf-8")

    store = CardStore()
    restore(store, load_state(db, LegacyStore(tmp_path)))

    card = store.get_card("c1")
    assert (card.meaning, card.word, card.interval_index, card.next_review_time) == (
        "Kitap", "كتاب (Kitab)", 3, 123456)
    assert card.is_active
    assert card.image_prompt == "a book leaning on an inscription"
    assert card.image_ref == "data:image/png;base64,eA=="
    assert store.folder_name(card) == "Kitaplar"
    assert store.get_folder("f1").created_at == 99
