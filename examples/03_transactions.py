"""
Example 03: Transactions

This example demonstrates transaction management with automatic rollback on errors.
"""

import sqlite3
import tempfile
from dataclasses import dataclass
from pathlib import Path

from row_orm import ConnectionConfig, Engine, RowAffectMismatchError, is_row_affect_error, pk


@dataclass
class Account:
    account_id: int = pk(ai=True)
    owner: str = ""
    balance: int = 0


def transfer(tx, source: int, target: int, amount: int) -> None:
    tx.execute_checked(
        1,
        "UPDATE account SET balance = balance - ? WHERE account_id = ? AND balance >= ?",
        amount,
        source,
        amount,
    )
    tx.execute_checked(
        1, "UPDATE account SET balance = balance + ? WHERE account_id = ?", amount, target
    )


def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE account (
            account_id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner TEXT NOT NULL,
            balance INTEGER NOT NULL
        )
    """)
    conn.commit()
    conn.close()

    config = ConnectionConfig(driver="sqlite", database=db_path)
    engine = Engine.from_config(config)
    engine.insert_batch([Account(owner="Alice", balance=100), Account(owner="Bob", balance=20)])

    def balances():
        return engine.select_raw_set("SELECT owner, balance FROM account ORDER BY account_id")

    print("=== Transaction Management ===\n")

    # Example 1: Successful transaction
    print("1. Successful transaction:")
    with engine.transaction() as tx:
        transfer(tx, 1, 2, 30)
        # Commits automatically on exit
    print(f"   Balances: {balances()}\n")

    # Example 2: Row-count check fails, everything rolls back
    print("2. Failed transaction (insufficient funds):")
    try:
        with engine.transaction() as tx:
            transfer(tx, 2, 1, 500)
    except RowAffectMismatchError as e:
        print(f"   Rolled back: {e} (row affect error: {is_row_affect_error(e)})")
    print(f"   Balances: {balances()}\n")

    # Example 3: do_transaction returns the callback's value
    print("3. do_transaction:")

    def open_account(tx):
        account = Account(owner="Carol", balance=0)
        tx.insert(account)
        return account.account_id

    new_id = engine.do_transaction(open_account)
    print(f"   Opened account {new_id}")
    print(f"   Balances: {balances()}\n")

    engine.close()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
