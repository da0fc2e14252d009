#!/usr/bin/env python3
"""
03_table_queries.py - pytyrant Table Database Example

What this example demonstrates:
- Storing records as column maps with TableClient
- Building queries with conditions, ordering and limits
- Fetching selected columns, counting and removing matches

Prerequisites:
    - ttserver hosting a table database:
        ttserver "people.tct"

Expected Output:
    Adults by age: [b'carol', b'alice']
    Names: [b'Bob', b'Alice', b'Carol']
    Adults: 2

Run with:
    python 03_table_queries.py
"""

from pytyrant import ITDECIMAL, QCNUMGE, QCSTRBW, QONUMASC, QONUMDESC, TableClient


def main():
    with TableClient("localhost", 1978) as table:
        table.vanish()
        table.setindex("age", ITDECIMAL)

        table.put("alice", {"name": "Alice", "age": 31})
        table.put("bob", {"name": "Bob", "age": 17})
        table.put("carol", {"name": "Carol", "age": 45})

        adults = table.query().addcond("age", QCNUMGE, 18).setorder("age", QONUMDESC)
        print(f"Adults by age: {adults.search()}")

        names = [cols[b"name"] for cols in table.query().setorder("age", QONUMASC).searchget(["name"])]
        print(f"Names: {names}")

        print(f"Adults: {adults.searchcount()}")

        # Remove everyone whose name begins with B
        table.query().addcond("name", QCSTRBW, "B").searchout()

        uid = table.genuid()
        table.put(uid, {"name": "Dave", "age": 52})
        print(f"Generated primary key {uid}: {table.get(uid)}")


if __name__ == "__main__":
    main()
