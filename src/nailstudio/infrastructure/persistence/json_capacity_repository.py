"""JSON-file-backed implementation of CapacityRepository."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from nailstudio.domain.exceptions import EntityNotFoundError
from nailstudio.domain.model.capacity import WeeklyCapacity
from nailstudio.domain.repository.capacity_repository import CapacityRepository
from nailstudio.infrastructure.persistence.json_file import JsonFile


class JsonCapacityRepository(CapacityRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, default=[])

    # --- CapacityRepository interface -----------------------------------------

    def get(self, week_start: date) -> WeeklyCapacity | None:
        key = week_start.isoformat()
        for raw in self._file.load():
            if raw["week_start"] == key:
                return self._to_domain(raw)
        return None

    def latest_before(self, week_start: date) -> WeeklyCapacity | None:
        key = week_start.isoformat()
        earlier = [raw for raw in self._file.load() if raw["week_start"] < key]
        if not earlier:
            return None
        return self._to_domain(max(earlier, key=lambda raw: raw["week_start"]))

    def create_if_absent(self, record: WeeklyCapacity) -> WeeklyCapacity:
        with self._file.locked():
            records = self._file.load()
            key = record.week_start.isoformat()
            for raw in records:
                if raw["week_start"] == key:
                    return self._to_domain(raw)
            records.append(self._to_raw(record))
            self._file.persist(records)
            return WeeklyCapacity(
                week_start=record.week_start,
                weekly_capacity=record.weekly_capacity,
                orders_count=record.orders_count,
            )

    def increment_orders_if(self, week_start: date, expected_count: int) -> bool:
        with self._file.locked():
            records = self._file.load()
            raw = self._find(records, week_start)
            if raw is None or raw["orders_count"] != expected_count:
                return False
            if expected_count >= raw["weekly_capacity"]:
                return False
            raw["orders_count"] = expected_count + 1
            self._file.persist(records)
            return True

    def update_capacity(self, week_start: date, weekly_capacity: int) -> None:
        with self._file.locked():
            records = self._file.load()
            self._require(records, week_start)["weekly_capacity"] = weekly_capacity
            self._file.persist(records)

    def reset_orders(self, week_start: date) -> None:
        with self._file.locked():
            records = self._file.load()
            self._require(records, week_start)["orders_count"] = 0
            self._file.persist(records)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _find(records: list[dict], week_start: date) -> dict | None:
        key = week_start.isoformat()
        for raw in records:
            if raw["week_start"] == key:
                return raw
        return None

    def _require(self, records: list[dict], week_start: date) -> dict:
        raw = self._find(records, week_start)
        if raw is None:
            raise EntityNotFoundError(
                f"No capacity record for week {week_start.isoformat()}"
            )
        return raw

    @staticmethod
    def _to_raw(record: WeeklyCapacity) -> dict:
        return {
            "week_start": record.week_start.isoformat(),
            "weekly_capacity": record.weekly_capacity,
            "orders_count": record.orders_count,
        }

    @staticmethod
    def _to_domain(raw: dict) -> WeeklyCapacity:
        return WeeklyCapacity(
            week_start=date.fromisoformat(raw["week_start"]),
            weekly_capacity=raw["weekly_capacity"],
            orders_count=raw.get("orders_count", 0),
        )
