from __future__ import annotations
from dataclasses import dataclass
import sqlite3

from ..transactions import immediate_tx
from ...errors import NotFoundError, ValidationError
from ...utils.validators import ensure_non_empty, parse_money, parse_quantity

_COLUMNS = "item_id, name, CAST(price AS REAL) AS price, category, stock_quantity, is_active"


@dataclass
class Item:
    item_id: int | None
    name: str
    price: float
    category: str | None
    stock_quantity: int
    is_active: bool


def _row_to_item(r: sqlite3.Row) -> Item:
    return Item(
        item_id=r["item_id"],
        name=r["name"],
        price=float(r["price"]),
        category=r["category"],
        stock_quantity=int(r["stock_quantity"]),
        is_active=bool(r["is_active"]),
    )


class ItemsRepo:
    """
    Bakery items. Plain lookup data: the engines only read price/active/stock,
    and snapshot the price into their own rows.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    # ---- Queries ----------------------------------------------------------

    def list_items(self, active_only: bool = False) -> list[Item]:
        sql = f"SELECT {_COLUMNS} FROM items"
        if active_only:
            sql += " WHERE is_active = 1"
        sql += " ORDER BY item_id"
        return [_row_to_item(r) for r in self.conn.execute(sql)]

    def get(self, item_id: int) -> Item | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM items WHERE item_id=?", (item_id,)
        ).fetchone()
        return _row_to_item(r) if r else None

    def get_many(self, item_ids: list[int]) -> dict[int, Item]:
        if not item_ids:
            return {}
        marks = ",".join("?" for _ in item_ids)
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM items WHERE item_id IN ({marks})", list(item_ids)
        ).fetchall()
        return {int(r["item_id"]): _row_to_item(r) for r in rows}

    # ---- Mutations --------------------------------------------------------

    def create(
        self,
        name: str,
        price: float,
        category: str | None = None,
        stock_quantity: int = 0,
        is_active: bool = True,
    ) -> int:
        name_n = ensure_non_empty(name, "Name")
        price_n = parse_money(price, "Price")
        stock_n = parse_quantity(stock_quantity, "Stock quantity")
        with immediate_tx(self.conn):
            cur = self.conn.execute(
                "INSERT INTO items(name, price, category, stock_quantity, is_active) "
                "VALUES (?, ?, ?, ?, ?)",
                (name_n, price_n, (category or None), stock_n, 1 if is_active else 0),
            )
            return int(cur.lastrowid)

    def update_price(self, item_id: int, price: float) -> None:
        """
        Changes the live price only. Existing assignments and deliveries keep
        the unit_price they were recorded with.
        """
        price_n = parse_money(price, "Price")
        with immediate_tx(self.conn):
            cur = self.conn.execute(
                "UPDATE items SET price=? WHERE item_id=?", (price_n, item_id)
            )
            if cur.rowcount == 0:
                raise NotFoundError(f"Item {item_id} not found.")

    def set_active(self, item_id: int, active: bool) -> None:
        with immediate_tx(self.conn):
            cur = self.conn.execute(
                "UPDATE items SET is_active=? WHERE item_id=?", (1 if active else 0, item_id)
            )
            if cur.rowcount == 0:
                raise NotFoundError(f"Item {item_id} not found.")

    def decrement_stock(self, item_id: int, quantity: int) -> None:
        """
        Take `quantity` units out of stock. No commit here: runs inside the
        caller's transaction so it is atomic with the assignment insert.
        """
        if quantity < 0:
            raise ValidationError("Quantity cannot be negative.")
        cur = self.conn.execute(
            "UPDATE items SET stock_quantity = stock_quantity - ? "
            "WHERE item_id=? AND stock_quantity >= ?",
            (quantity, item_id, quantity),
        )
        if cur.rowcount == 0:
            raise ValidationError("Insufficient stock for assignment")
