"""Runtime settings, read once from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from nailstudio.domain.exceptions import ValidationError
from nailstudio.domain.model.capacity import DEFAULT_WEEKLY_CAPACITY
from nailstudio.domain.model.value_objects import Money
from nailstudio.domain.service.pricing_calculator import SetupFeeMode

# When installed in editable mode the project root is the repo root.
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    design_setup_fee: Money = Money(0)
    setup_fee_mode: SetupFeeMode = SetupFeeMode.PER_UNIT
    default_weekly_capacity: int = DEFAULT_WEEKLY_CAPACITY
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None

    @staticmethod
    def from_env(environ: dict[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        try:
            fee_mode = SetupFeeMode(env.get("NAILSTUDIO_SETUP_FEE_MODE", "per_unit"))
        except ValueError:
            raise ValidationError(
                "NAILSTUDIO_SETUP_FEE_MODE must be 'per_unit' or 'per_set'"
            )

        raw_capacity = env.get("NAILSTUDIO_DEFAULT_WEEKLY_CAPACITY", "")
        try:
            capacity = int(raw_capacity) if raw_capacity else DEFAULT_WEEKLY_CAPACITY
        except ValueError:
            raise ValidationError(
                f"Invalid NAILSTUDIO_DEFAULT_WEEKLY_CAPACITY: {raw_capacity!r}"
            )
        if capacity < 1:
            raise ValidationError("NAILSTUDIO_DEFAULT_WEEKLY_CAPACITY must be at least 1")

        setup_fee = Money.of(env.get("NAILSTUDIO_DESIGN_SETUP_FEE", "0") or "0")
        if setup_fee.cents < 0:
            raise ValidationError("NAILSTUDIO_DESIGN_SETUP_FEE cannot be negative")

        data_dir = env.get("NAILSTUDIO_DATA_DIR")
        return Settings(
            data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
            design_setup_fee=setup_fee,
            setup_fee_mode=fee_mode,
            default_weekly_capacity=capacity,
            stripe_secret_key=env.get("STRIPE_SECRET_KEY") or None,
            stripe_webhook_secret=env.get("STRIPE_WEBHOOK_SECRET") or None,
        )
