#!/usr/bin/env python3
"""
01_basic_key_value.py - pytyrant Basic Key/Value Example

This is the foundational example for understanding the pytyrant client.

What this example demonstrates:
- Using connect() for one-liner connection
- Storing, appending to and removing records
- Counters with addint and adddouble
- Proper resource cleanup with context managers

Prerequisites:
    - ttserver running on localhost:1978 (default port)
    - pytyrant installed: pip install pytyrant

Expected Output:
    Connecting to Tyrant at localhost:1978...
    greeting = b'Hello, Tyrant!'
    log = b'line 1\\nline 2\\n'
    visits = 3
    balance = 12.75

Run with:
    python 01_basic_key_value.py
"""

from pytyrant import RecordExistsError, connect

KEYS = ["greeting", "log", "visits", "balance"]


def main():
    print("Connecting to Tyrant at localhost:1978...")
    with connect("localhost", 1978) as client:
        # Start from a clean slate
        client.outlist(KEYS)

        client.put("greeting", "Hello, Tyrant!")
        print(f"greeting = {client.get('greeting')!r}")

        # putkeep never overwrites
        try:
            client.putkeep("greeting", "Goodbye")
        except RecordExistsError:
            pass

        client.putcat("log", "line 1\n")
        client.putcat("log", "line 2\n")
        print(f"log = {client.get('log')!r}")

        for _ in range(3):
            visits = client.addint("visits", 1)
        print(f"visits = {visits}")

        client.adddouble("balance", 10.5)
        balance = client.adddouble("balance", 2.25)
        print(f"balance = {balance}")

        client.outlist(KEYS)


if __name__ == "__main__":
    main()
