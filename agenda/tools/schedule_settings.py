"""
Schedule configuration resolution from the flat key-value settings table.

Several generations of admin screens wrote the same setting under
different names. Each logical field has a priority-ordered list of
accepted keys; the first non-empty one wins. Missing fields fall back to
``settings.schedule_defaults`` so the booking flow stays available.
"""

import json
import logging
import unicodedata
from typing import Optional

from pydantic import ValidationError

from agenda.config import settings
from agenda.schemas.schedule_schema import ScheduleConfig, Weekday
from agenda.tools.store import InMemoryStore

logger = logging.getLogger(__name__)

# First key is canonical: updates are written there.
SETTING_KEYS: dict[str, tuple[str, ...]] = {
    "opening_time": ("horario_abertura", "hora_abertura"),
    "closing_time": ("horario_fechamento", "hora_fechamento"),
    "break_start": ("intervalo_inicio", "almoco_inicio"),
    "break_end": ("intervalo_fim", "almoco_fim"),
    "slot_duration_minutes": ("duracao_slot",),
    "working_days": ("dias_funcionamento", "dias_semana"),
}

WEEKDAY_NAMES: dict[str, Weekday] = {
    "segunda": Weekday.MON, "segunda-feira": Weekday.MON, "seg": Weekday.MON,
    "terca": Weekday.TUE, "terca-feira": Weekday.TUE, "ter": Weekday.TUE,
    "quarta": Weekday.WED, "quarta-feira": Weekday.WED, "qua": Weekday.WED,
    "quinta": Weekday.THU, "quinta-feira": Weekday.THU, "qui": Weekday.THU,
    "sexta": Weekday.FRI, "sexta-feira": Weekday.FRI, "sex": Weekday.FRI,
    "sabado": Weekday.SAT, "sab": Weekday.SAT,
    "domingo": Weekday.SUN, "dom": Weekday.SUN,
    "monday": Weekday.MON, "mon": Weekday.MON,
    "tuesday": Weekday.TUE, "tue": Weekday.TUE,
    "wednesday": Weekday.WED, "wed": Weekday.WED,
    "thursday": Weekday.THU, "thu": Weekday.THU,
    "friday": Weekday.FRI, "fri": Weekday.FRI,
    "saturday": Weekday.SAT, "sat": Weekday.SAT,
    "sunday": Weekday.SUN, "sun": Weekday.SUN,
}

CANONICAL_DAY_NAMES: dict[Weekday, str] = {
    Weekday.MON: "segunda",
    Weekday.TUE: "terca",
    Weekday.WED: "quarta",
    Weekday.THU: "quinta",
    Weekday.FRI: "sexta",
    Weekday.SAT: "sabado",
    Weekday.SUN: "domingo",
}


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def parse_working_days(raw: str) -> frozenset[Weekday]:
    """Parse a stored working-days value.

    Accepts a comma-separated list of day names ("segunda,terca,sábado"),
    or a JSON array of either names or seven Monday-first booleans.

    Raises:
        ValueError: On unknown day names or a malformed boolean list.
    """
    text = raw.strip()
    items: list
    if text.startswith("["):
        try:
            items = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Malformed working days JSON: {raw!r}") from exc
        if items and all(isinstance(item, bool) for item in items):
            if len(items) != 7:
                raise ValueError(f"Expected 7 weekday flags, got {len(items)}")
            return frozenset(Weekday(i) for i, flag in enumerate(items) if flag)
    else:
        items = text.split(",")

    days: set[Weekday] = set()
    for item in items:
        name = _strip_accents(str(item)).strip().lower()
        if not name:
            continue
        if name not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown weekday name: {item!r}")
        days.add(WEEKDAY_NAMES[name])
    return frozenset(days)


def format_working_days(days: frozenset[Weekday]) -> str:
    return ",".join(CANONICAL_DAY_NAMES[d] for d in sorted(days))


def _lookup(stored: dict[str, str], field_name: str) -> Optional[str]:
    for key in SETTING_KEYS[field_name]:
        value = stored.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def default_schedule_config() -> ScheduleConfig:
    defaults = settings.schedule_defaults
    return ScheduleConfig(
        opening_time=defaults.opening_time,
        closing_time=defaults.closing_time,
        break_start=defaults.break_start,
        break_end=defaults.break_end,
        slot_duration_minutes=defaults.slot_duration_minutes,
        working_days=parse_working_days(defaults.working_days),
    )


def resolve_schedule_config(stored: dict[str, str]) -> ScheduleConfig:
    """Build a ScheduleConfig from raw key-value settings.

    Missing keys are filled from defaults with a warning. A stored
    configuration that violates the schedule invariants is discarded in
    favour of the full default configuration, logged as an error.
    """
    defaults = settings.schedule_defaults
    fallback = {
        "opening_time": defaults.opening_time,
        "closing_time": defaults.closing_time,
        "break_start": defaults.break_start,
        "break_end": defaults.break_end,
        "slot_duration_minutes": str(defaults.slot_duration_minutes),
        "working_days": defaults.working_days,
    }

    values: dict[str, str] = {}
    missing: list[str] = []
    for field_name in SETTING_KEYS:
        found = _lookup(stored, field_name)
        if found is None:
            missing.append(field_name)
            found = fallback[field_name]
        values[field_name] = found

    if missing:
        logger.warning("Schedule settings missing, using defaults for: %s", ", ".join(missing))

    try:
        return ScheduleConfig(
            opening_time=values["opening_time"],
            closing_time=values["closing_time"],
            break_start=values["break_start"],
            break_end=values["break_end"],
            slot_duration_minutes=int(values["slot_duration_minutes"]),
            working_days=parse_working_days(values["working_days"]),
        )
    except (ValidationError, ValueError) as exc:
        logger.error("Stored schedule settings are invalid, using defaults: %s", exc)
        return default_schedule_config()


def load_schedule_config(store: InMemoryStore) -> ScheduleConfig:
    """Read the current schedule configuration. Never cached."""
    return resolve_schedule_config(store.get_settings())


def update_schedule_config(store: InMemoryStore, config: ScheduleConfig) -> None:
    """Persist a validated configuration under the canonical keys.

    Legacy aliases are removed so they can never shadow the new values.
    """
    values = {
        "opening_time": config.opening_time,
        "closing_time": config.closing_time,
        "break_start": config.break_start,
        "break_end": config.break_end,
        "slot_duration_minutes": str(config.slot_duration_minutes),
        "working_days": format_working_days(config.working_days),
    }
    with store.transaction():
        for field_name, value in values.items():
            canonical, *aliases = SETTING_KEYS[field_name]
            store.set_setting(canonical, value)
            for alias in aliases:
                store.delete_setting(alias)
    logger.info("Schedule configuration updated")


def initialize_defaults(store: InMemoryStore) -> ScheduleConfig:
    """Write the default schedule configuration and return it."""
    config = default_schedule_config()
    update_schedule_config(store, config)
    return config
