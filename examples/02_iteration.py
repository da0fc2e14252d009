#!/usr/bin/env python3
"""
02_iteration.py - pytyrant Iteration Example

What this example demonstrates:
- Walking every key with the server-side iterator
- Prefix lookups with fwmkeys
- Reading several records at once with mget
- Streaming keys through RxPY operators

Key Concepts:
- The iterator belongs to the connection: one traversal at a time per client
- Traversal order is decided by the server

Prerequisites:
    - ttserver running on localhost:1978

Run with:
    python 02_iteration.py
"""

from reactivex import operators as ops

from pytyrant import TyrantClient, observe_keys


def main():
    with TyrantClient("localhost", 1978) as client:
        client.putlist({f"user:{i}": f"name-{i}" for i in range(5)})

        print("=== All keys ===")
        it = client.iterator()
        while (key := it.next()) is not None:
            print(f"  {key.decode()}")

        print("\n=== Prefix lookup (max 3) ===")
        keys = client.fwmkeys("user:", 3)
        for key, value in client.mget(keys).items():
            print(f"  {key.decode()} -> {value.decode()}")

        print("\n=== Reactive count ===")
        observe_keys(client).pipe(
            ops.filter(lambda k: k.startswith(b"user:")),
            ops.count(),
        ).subscribe(on_next=lambda n: print(f"  {n} user records"))

        client.outlist(client.fwmkeys("user:"))


if __name__ == "__main__":
    main()
