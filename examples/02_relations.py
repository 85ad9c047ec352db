"""
Example 02: Relations

This example demonstrates has_one, has_many and belongs_to relations loaded
with one secondary query per relation.
"""

from __future__ import annotations

import logging
import sqlite3
import tempfile
from dataclasses import dataclass
from pathlib import Path

from row_orm import ConnectionConfig, Engine, EngineOptions, belongs_to, has_many, has_one, pk


@dataclass
class Address:
    address_id: int = pk(ai=True)
    customer_id: int = 0
    city: str = ""


@dataclass
class Purchase:
    purchase_id: int = pk(ai=True)
    customer_id: int = 0
    amount: float = 0.0
    customer: Customer | None = belongs_to("customer")


@dataclass
class Customer:
    customer_id: int = pk(ai=True)
    name: str = ""
    address: Address | None = has_one("address")
    purchases: list[Purchase] = has_many("purchase")


def main():
    # Show every statement the engine runs
    logging.basicConfig(level=logging.INFO, format="  SQL> %(message)s")

    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.executescript("""
        CREATE TABLE customer (customer_id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT);
        CREATE TABLE address (address_id INTEGER PRIMARY KEY AUTOINCREMENT,
                              customer_id INTEGER, city TEXT);
        CREATE TABLE purchase (purchase_id INTEGER PRIMARY KEY AUTOINCREMENT,
                              customer_id INTEGER, amount REAL);
    """)
    conn.commit()
    conn.close()

    config = ConnectionConfig(driver="sqlite", database=db_path)
    engine = Engine.from_config(config, EngineOptions(echo=True))
    for record_type in (Customer, Address, Purchase):
        engine.add_table(record_type)

    customers = [Customer(name="Alice"), Customer(name="Bob")]
    engine.insert_batch(customers)
    engine.insert(Address(customer_id=customers[0].customer_id, city="Lisbon"))
    engine.insert_batch(
        [
            Purchase(customer_id=customers[0].customer_id, amount=99.99),
            Purchase(customer_id=customers[0].customer_id, amount=49.99),
            Purchase(customer_id=customers[1].customer_id, amount=75.00),
        ]
    )

    print("\n=== Loading customers: 1 root query + 1 query per relation ===\n")
    for customer in engine.select(Customer, "SELECT * FROM customer ORDER BY name"):
        city = customer.address.city if customer.address else "-"
        print(f"{customer.name} ({city}): {[o.amount for o in customer.purchases]}")

    print("\n=== Loading purchases: customers shared by foreign key ===\n")
    purchases = engine.select(Purchase, "SELECT * FROM purchase ORDER BY purchase_id")
    print(f"purchases 1 and 2 share a customer object: {purchases[0].customer is purchases[1].customer}")

    engine.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
