from __future__ import annotations

from dataclasses import dataclass
import sqlite3

from ..errors import DocumentNotFound, ValidationError

PARTY_TYPES = ("customer", "supplier", "both")


@dataclass
class Party:
    party_id: int | None
    user_id: int
    name: str
    party_type: str = "customer"
    phone: str | None = None
    email: str | None = None
    billing_address: str | None = None
    shipping_address: str | None = None
    supply_place: str | None = None


class PartiesRepo:
    """Customers and suppliers share one table; party_type tells them apart."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @staticmethod
    def _normalize_text(s: str | None) -> str | None:
        if s is None:
            return None
        return s.strip() or None

    def _validate(self, p: Party) -> None:
        if not (p.name or "").strip():
            raise ValidationError("Party name cannot be empty.")
        if p.party_type not in PARTY_TYPES:
            raise ValidationError(f"Unknown party type: {p.party_type}")

    # ---- Queries ----------------------------------------------------------

    def list_parties(self, user_id: int, party_type: str | None = None) -> list[Party]:
        """
        party_type='customer' also returns parties marked 'both' (same for
        'supplier').
        """
        if party_type:
            rows = self.conn.execute(
                "SELECT * FROM parties WHERE user_id=? AND party_type IN (?, 'both') "
                "ORDER BY name COLLATE NOCASE",
                (user_id, party_type),
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM parties WHERE user_id=? ORDER BY name COLLATE NOCASE",
                (user_id,),
            ).fetchall()
        return [Party(**r) for r in rows]

    def get(self, party_id: int) -> Party | None:
        r = self.conn.execute("SELECT * FROM parties WHERE party_id=?", (party_id,)).fetchone()
        return Party(**r) if r else None

    # ---- Mutations --------------------------------------------------------

    def create(self, p: Party) -> int:
        self._validate(p)
        cur = self.conn.execute(
            """
            INSERT INTO parties(
                user_id, name, party_type, phone, email,
                billing_address, shipping_address, supply_place
            ) VALUES (?,?,?,?,?,?,?,?)
            """,
            (
                p.user_id, p.name.strip(), p.party_type,
                self._normalize_text(p.phone), self._normalize_text(p.email),
                self._normalize_text(p.billing_address), self._normalize_text(p.shipping_address),
                self._normalize_text(p.supply_place),
            ),
        )
        return int(cur.lastrowid)

    def update(self, p: Party) -> None:
        self._validate(p)
        cur = self.conn.execute(
            """
            UPDATE parties
               SET name=?, party_type=?, phone=?, email=?,
                   billing_address=?, shipping_address=?, supply_place=?
             WHERE party_id=? AND user_id=?
            """,
            (
                p.name.strip(), p.party_type,
                self._normalize_text(p.phone), self._normalize_text(p.email),
                self._normalize_text(p.billing_address), self._normalize_text(p.shipping_address),
                self._normalize_text(p.supply_place),
                p.party_id, p.user_id,
            ),
        )
        if cur.rowcount == 0:
            raise DocumentNotFound(f"Party #{p.party_id} was not found.")
