"""JSON-file-backed implementation of PromoRepository.

Promo definitions and usage records live in separate files so the usage
log can grow without rewriting the definitions on every read.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from nailstudio.domain.model.promo import (
    PromoCode,
    PromoType,
    PromoUsageRecord,
    normalize_code,
)
from nailstudio.domain.model.value_objects import Money
from nailstudio.domain.repository.promo_repository import PromoRepository
from nailstudio.infrastructure.persistence.json_file import JsonFile


class JsonPromoRepository(PromoRepository):

    def __init__(self, codes_path: Path, usage_path: Path) -> None:
        self._codes = JsonFile(codes_path, default=[])
        self._usage = JsonFile(usage_path, default=[])

    # --- PromoRepository interface --------------------------------------------

    def get_by_code(self, code: str) -> PromoCode | None:
        code = normalize_code(code)
        for raw in self._codes.load():
            if normalize_code(raw["code"]) == code:
                return self._to_domain(raw)
        return None

    def get_by_id(self, promo_id: str) -> PromoCode | None:
        for raw in self._codes.load():
            if raw["id"] == promo_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[PromoCode]:
        return [self._to_domain(raw) for raw in self._codes.load()]

    def save(self, promo: PromoCode) -> None:
        with self._codes.locked():
            records = self._codes.load()
            replaced = False
            for i, raw in enumerate(records):
                if raw["id"] == promo.id:
                    records[i] = self._to_raw(promo)
                    replaced = True
                    break
            if not replaced:
                records.append(self._to_raw(promo))
            self._codes.persist(records)

    def increment_uses_if(self, usage: PromoUsageRecord, expected_uses: int) -> bool:
        # Lock order: codes, then usage.
        with self._codes.locked(), self._usage.locked():
            usage_records = self._usage.load()
            if any(
                _same_redemption(raw, usage.promo_code_id, usage.order_id)
                for raw in usage_records
            ):
                return False
            records = self._codes.load()
            for raw in records:
                if raw["id"] != usage.promo_code_id:
                    continue
                if raw.get("uses_count", 0) != expected_uses:
                    return False
                max_uses = raw.get("max_uses")
                if max_uses is not None and expected_uses >= max_uses:
                    return False
                raw["uses_count"] = expected_uses + 1
                self._codes.persist(records)
                usage_records.append(self._usage_to_raw(usage))
                self._usage.persist(usage_records)
                return True
            return False

    def find_usage(self, promo_id: str, order_id: int) -> PromoUsageRecord | None:
        for raw in self._usage.load():
            if _same_redemption(raw, promo_id, order_id):
                return PromoUsageRecord(
                    promo_code_id=raw["promo_code_id"],
                    user_id=raw.get("user_id"),
                    order_id=raw["order_id"],
                    created_at=datetime.fromisoformat(raw["created_at"]),
                )
        return None

    def count_usage(self, promo_id: str, user_id: str) -> int:
        return sum(
            1
            for raw in self._usage.load()
            if raw["promo_code_id"] == promo_id and raw.get("user_id") == user_id
        )

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _usage_to_raw(record: PromoUsageRecord) -> dict:
        return {
            "promo_code_id": record.promo_code_id,
            "user_id": record.user_id,
            "order_id": record.order_id,
            "created_at": record.created_at.isoformat(),
        }

    @staticmethod
    def _to_raw(promo: PromoCode) -> dict:
        return {
            "id": promo.id,
            "code": promo.code,
            "type": promo.type.value,
            "value": str(promo.value),
            "description": promo.description,
            "active": promo.active,
            "start_date": promo.start_date.isoformat() if promo.start_date else None,
            "end_date": promo.end_date.isoformat() if promo.end_date else None,
            "min_order_amount": (
                str(promo.min_order_amount.to_decimal())
                if promo.min_order_amount is not None
                else None
            ),
            "max_uses": promo.max_uses,
            "uses_count": promo.uses_count,
            "per_user_limit": promo.per_user_limit,
            "combinable": promo.combinable,
        }

    @staticmethod
    def _to_domain(raw: dict) -> PromoCode:
        return PromoCode(
            id=raw["id"],
            code=raw["code"],
            type=PromoType(raw["type"]),
            value=Decimal(str(raw.get("value", "0"))),
            description=raw.get("description", ""),
            active=raw.get("active", True),
            start_date=_parse_datetime(raw.get("start_date")),
            end_date=_parse_datetime(raw.get("end_date")),
            min_order_amount=(
                Money.of(raw["min_order_amount"])
                if raw.get("min_order_amount") is not None
                else None
            ),
            max_uses=raw.get("max_uses"),
            uses_count=raw.get("uses_count", 0),
            per_user_limit=raw.get("per_user_limit"),
            combinable=raw.get("combinable", False),
        )


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _same_redemption(raw: dict, promo_id: str, order_id: int) -> bool:
    return raw["promo_code_id"] == promo_id and raw.get("order_id") == order_id
