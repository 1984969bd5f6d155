"""MongoDB settings repository implementation"""
import logging
from typing import Optional, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database

from slot_engine.application.ports.settings_repository_port import SettingsRepositoryPort
from slot_engine.domain.entities.outcome_override import OutcomeOverride, OverrideState, now_ms

logger = logging.getLogger(__name__)

SETTINGS_ID = "game_settings"
ARMED_VALUES = [OutcomeOverride.WIN.value, OutcomeOverride.LOSS.value]


class MongoSettingsRepository(SettingsRepositoryPort):
    """MongoDB implementation of the settings repository

    One document holds the live record; writes are upserts on a fixed _id.
    """

    def __init__(self, db: Database):
        self.db = db
        self.collection = db.game_settings

    def initialize(self) -> OverrideState:
        """Insert the default record unless one exists"""
        now = now_ms()
        document = self.collection.find_one_and_update(
            {"_id": SETTINGS_ID},
            {
                "$setOnInsert": {
                    "outcome_override": OutcomeOverride.RNG.value,
                    "updated_at": now,
                    "created_at": now
                }
            },
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        if document.get("created_at") == now:
            logger.info("Initialized default game settings")
        return self._to_state(document)

    def get_settings(self) -> Optional[OverrideState]:
        """Get the settings record from MongoDB"""
        document = self.collection.find_one({"_id": SETTINGS_ID})
        if not document:
            return None
        return self._to_state(document)

    def save_settings(self, outcome_override: OutcomeOverride) -> OverrideState:
        """Overwrite the override, creating the record on first write"""
        now = now_ms()
        document = self.collection.find_one_and_update(
            {"_id": SETTINGS_ID},
            {
                "$set": {"outcome_override": outcome_override.value, "updated_at": now},
                "$setOnInsert": {"created_at": now}
            },
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return self._to_state(document)

    def consume_armed(self) -> Optional[Tuple[OutcomeOverride, OverrideState]]:
        """Conditional reset: only one caller can match an armed record"""
        now = now_ms()
        previous = self.collection.find_one_and_update(
            {"_id": SETTINGS_ID, "outcome_override": {"$in": ARMED_VALUES}},
            {"$set": {"outcome_override": OutcomeOverride.RNG.value, "updated_at": now}},
            return_document=ReturnDocument.BEFORE
        )
        if not previous:
            return None
        consumed = OutcomeOverride.parse(previous.get("outcome_override"))
        return consumed, OverrideState(OutcomeOverride.RNG, now)

    @staticmethod
    def _to_state(document: dict) -> OverrideState:
        value = document.get("outcome_override") or OutcomeOverride.RNG.value
        try:
            outcome_override = OutcomeOverride.parse(value)
        except ValueError:
            logger.warning(f"Stored outcome override {value!r} is invalid, treating as RNG")
            outcome_override = OutcomeOverride.RNG
        return OverrideState(
            outcome_override=outcome_override,
            updated_at=int(document.get("updated_at") or now_ms())
        )
