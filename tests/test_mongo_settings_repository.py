from unittest.mock import MagicMock

import pytest
from pymongo import ReturnDocument

from slot_engine.domain.entities.outcome_override import OutcomeOverride, OverrideState
from slot_engine.infrastructure.persistence.mongo_settings_repository import SETTINGS_ID, MongoSettingsRepository


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def repository(collection):
    db = MagicMock()
    db.game_settings = collection
    return MongoSettingsRepository(db)


def test_get_settings_maps_document(repository, collection):
    collection.find_one.return_value = {"_id": SETTINGS_ID, "outcome_override": "WIN", "updated_at": 1234}

    assert repository.get_settings() == OverrideState(OutcomeOverride.WIN, 1234)
    collection.find_one.assert_called_once_with({"_id": SETTINGS_ID})


def test_get_settings_without_record(repository, collection):
    collection.find_one.return_value = None
    assert repository.get_settings() is None


def test_invalid_stored_value_reads_as_rng(repository, collection):
    collection.find_one.return_value = {"_id": SETTINGS_ID, "outcome_override": "JACKPOT", "updated_at": 1}
    assert repository.get_settings().outcome_override == OutcomeOverride.RNG


def test_save_settings_upserts(repository, collection):
    collection.find_one_and_update.return_value = {"_id": SETTINGS_ID, "outcome_override": "LOSS", "updated_at": 99}

    state = repository.save_settings(OutcomeOverride.LOSS)

    assert state == OverrideState(OutcomeOverride.LOSS, 99)
    query, update = collection.find_one_and_update.call_args[0]
    kwargs = collection.find_one_and_update.call_args[1]
    assert query == {"_id": SETTINGS_ID}
    assert update["$set"]["outcome_override"] == "LOSS"
    assert "created_at" in update["$setOnInsert"]
    assert kwargs["upsert"] is True
    assert kwargs["return_document"] == ReturnDocument.AFTER


def test_initialize_only_sets_on_insert(repository, collection):
    collection.find_one_and_update.return_value = {"_id": SETTINGS_ID, "outcome_override": "WIN", "updated_at": 5}

    state = repository.initialize()

    update = collection.find_one_and_update.call_args[0][1]
    assert "$set" not in update
    assert update["$setOnInsert"]["outcome_override"] == "RNG"
    # An existing armed value survives a restart
    assert state.outcome_override == OutcomeOverride.WIN


def test_consume_armed_is_conditional(repository, collection):
    collection.find_one_and_update.return_value = {"_id": SETTINGS_ID, "outcome_override": "WIN", "updated_at": 5}

    consumed, state = repository.consume_armed()

    assert consumed == OutcomeOverride.WIN
    assert state.outcome_override == OutcomeOverride.RNG
    query, update = collection.find_one_and_update.call_args[0]
    assert query == {"_id": SETTINGS_ID, "outcome_override": {"$in": ["WIN", "LOSS"]}}
    assert update["$set"]["outcome_override"] == "RNG"
    assert collection.find_one_and_update.call_args[1]["return_document"] == ReturnDocument.BEFORE


def test_consume_with_nothing_armed(repository, collection):
    collection.find_one_and_update.return_value = None
    assert repository.consume_armed() is None
