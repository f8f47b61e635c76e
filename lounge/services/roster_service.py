# lounge/services/roster_service.py
"""
Membership roster (membership.csv).
Searched for check-in autocomplete; a previously unseen occupant id is
appended on check-in. The roster is a convenience for the operator and
carries none of the ledger guarantees, so every I/O failure here is
logged and ignored.
"""

import csv
import os
from typing import Optional

from lounge.models.member import Member
from lounge.utils.logger import get_logger

logger = get_logger(__name__)

NAME_HEADERS = {"student name", "name"}
ID_HEADERS = {"student number", "id", "student id"}
# Column positions used when the file has no recognisable header row
FALLBACK_NAME_COL = 2
FALLBACK_ID_COL = 3


class MemberRoster:
    def __init__(self, path: str):
        self.path = path
        self.members: list[Member] = []
        self._name_col = FALLBACK_NAME_COL
        self._id_col = FALLBACK_ID_COL

    def load(self) -> int:
        self.members = []
        if not os.path.exists(self.path):
            return 0
        try:
            with open(self.path, newline="", encoding="utf-8") as f:
                rows = list(csv.reader(f))
        except (OSError, csv.Error) as e:
            logger.warning(f"[Roster] Cannot read {self.path}: {e}")
            return 0
        if not rows:
            return 0

        name_idx = id_idx = None
        for i, cell in enumerate(rows[0]):
            key = cell.strip().lower()
            if key in NAME_HEADERS:
                name_idx = i
            if key in ID_HEADERS:
                id_idx = i

        start = 0
        if name_idx is not None and id_idx is not None:
            self._name_col, self._id_col = name_idx, id_idx
            start = 1
        else:
            self._name_col, self._id_col = FALLBACK_NAME_COL, FALLBACK_ID_COL

        for row in rows[start:]:
            if self._name_col >= len(row) or self._id_col >= len(row):
                continue
            name = row[self._name_col].strip()
            member_id = row[self._id_col].strip()
            if not name or not member_id:
                continue
            self.members.append(Member(name=name, id=member_id))
        logger.info(f"[Roster] Loaded {len(self.members)} members from {self.path}")
        return len(self.members)

    def search(self, query: str) -> list[Member]:
        q = query.strip().lower()
        if not q:
            return []
        return [m for m in self.members if q in m.name.lower() or q in m.id.lower()]

    def by_id(self, member_id: str) -> Optional[Member]:
        for m in self.members:
            if m.id == member_id:
                return m
        return None

    def next_guest_id(self) -> str:
        """Id handed to a walk-in with no card ("No ID?")."""
        return f"LOUNGE-{len(self.members) + 1}"

    def append(self, member: Member) -> None:
        """Rewrite the CSV with all existing rows plus the new member."""
        rows: list[list[str]] = []
        try:
            if os.path.exists(self.path):
                with open(self.path, newline="", encoding="utf-8") as f:
                    rows = list(csv.reader(f))
            new_row = [""] * (max(self._name_col, self._id_col) + 1)
            new_row[self._name_col] = member.name
            new_row[self._id_col] = member.id
            rows.append(new_row)
            with open(self.path, "w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerows(rows)
        except (OSError, csv.Error) as e:
            logger.error(f"[Roster] Failed to append {member.id} to {self.path}: {e}", exc_info=True)
            return
        self.members.append(member)
        logger.info(f"[Roster] Added member {member.name} ({member.id})")
