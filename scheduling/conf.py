from django.conf import settings

DEFAULTS = {
    "SLOT_STEP_MINUTES": 60,
    "STUDENT_CONFLICT_WINDOW_MINUTES": 30,
    "STUDENT_CONFLICT_MODE": "window",
    "BOOKING_LINK_TTL_DAYS": 7,
    "MAX_BUFFER_MINUTES": 120,
}

STUDENT_CONFLICT_MODES = ("window", "overlap")


def get_setting(name: str):
    """Read a key of settings.SCHEDULING, falling back to DEFAULTS."""
    overrides = getattr(settings, "SCHEDULING", {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]


def student_conflict_mode() -> str:
    mode = get_setting("STUDENT_CONFLICT_MODE")
    if mode not in STUDENT_CONFLICT_MODES:
        raise ValueError(f"SCHEDULING['STUDENT_CONFLICT_MODE'] must be one of {STUDENT_CONFLICT_MODES}, got {mode!r}")
    return mode
