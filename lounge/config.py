# lounge/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Storage ───────────────────────────────────────────────────────────
    DATA_DIR: str = "log"                      # ledger, layout and daily buckets live here
    MEMBER_FILE: str = "membership.csv"
    LOG_BUCKET_PREFIX: str = "lounge"          # lounge-YYYY-MM-DD.json

    @property
    def ACTIVE_USERS_FILE(self) -> str:
        return os.path.join(self.DATA_DIR, "active_users.json")

    @property
    def LAYOUT_FILE(self) -> str:
        return os.path.join(self.DATA_DIR, "device_layout.json")

    @property
    def LOG_DIR(self) -> str:
        return self.DATA_DIR

    # ── Station pool ──────────────────────────────────────────────────────
    PRIMARY_STATION_COUNT: int = 16                         # PCs 1..16, exclusive
    AUXILIARY_STATIONS: dict[int, str] = {17: "Xbox", 18: "PS4"}   # shared consoles

    # ── Slot grid (station layout) ────────────────────────────────────────
    PREFERRED_SLOT_ORDER: list[int] = [16, 15, 14, 11, 12, 13, 10, 9, 8, 7, 6, 5, 1, 2, 3, 4, 17, 18]
    SLOT_ROW_LENGTHS: list[int] = [3, 3, 3, 3, 4]
    SLOT_SPACING_X: float = 110
    SLOT_SPACING_Y: float = 110
    SLOT_MARGIN: float = 24
    STATION_ICON_SIZE: float = 64
    GRID_WIDTH_RATIO: float = 0.75             # right quarter holds the overflow column
    STATION_CANVAS_WIDTH: float = 700          # used until the first real resize
    STATION_CANVAS_HEIGHT: float = 420

    # ── Radial placement (active occupants) ───────────────────────────────
    OCCUPANT_CANVAS_WIDTH: float = 900
    OCCUPANT_CANVAS_HEIGHT: float = 700
    MARKER_SIZE: float = 48
    CARD_WIDTH: float = 150
    CARD_HEIGHT: float = 64
    CARD_GAP: float = 8
    PLACEMENT_MARGIN: float = 12
    RING_BASE_RADIUS: float = 170
    RING_STEP: float = 160
    RING_PACK_FACTOR: float = 0.95
    OVERLAP_FACTOR: float = 0.70
    PLACEMENT_MAX_ATTEMPTS: int = 24
    ANGLE_NUDGE_FRACTION: float = 0.35
    RADIUS_NUDGE: float = 12
    RESIZE_THRESHOLD: float = 8

    # ── Timers ────────────────────────────────────────────────────────────
    UI_REFRESH_SECONDS: float = 1.0            # elapsed-usage displays
    ROLLOVER_CHECK_SECONDS: float = 300.0      # daily bucket rotation check
    HOST_LOOP_INTERVAL: float = 0.25

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    APP_LOG_DIR: str = "logs"                  # relative to the repository root
    APP_LOG_FILE: str = "lounge.log"
    APP_LOG_MAX_BYTES: int = 5 * 1024 * 1024
    APP_LOG_BACKUP_COUNT: int = 10

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
