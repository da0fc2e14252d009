#!/usr/bin/env python3
"""
04_error_handling.py - pytyrant Error Handling Example

What this example demonstrates:
- Telling "no record" and "existing record" apart from real failures
- Recovering from a dropped connection
- Hints carried by client exceptions
- Enabling debug logging for the client

Prerequisites:
    - ttserver running on localhost:1978

Run with:
    python 04_error_handling.py
"""

import logging

from pytyrant import (
    ConnectFailedError,
    NotConnectedError,
    ReceiveError,
    RecordExistsError,
    RecordNotFoundError,
    SendError,
    TyrantClient,
    TyrantError,
)


def get_or_default(client, key, default=b""):
    try:
        return client.get(key)
    except RecordNotFoundError:
        return default


def main():
    logging.basicConfig(level=logging.INFO)
    logging.getLogger("pytyrant").setLevel(logging.DEBUG)

    try:
        client = TyrantClient("localhost", 1978, connect_timeout_ms=2000)
    except ConnectFailedError as e:
        print(f"Cannot connect ({e.reason.value}): {e}")
        return

    with client:
        print(f"missing -> {get_or_default(client, 'missing', b'<none>')!r}")

        client.put("once", "first")
        try:
            client.putkeep("once", "second")
        except RecordExistsError as e:
            print(f"Kept existing value: {e}")

        client.close()
        try:
            client.rnum()
        except NotConnectedError as e:
            print(f"{e}")

        client.open()
        try:
            print(f"Records: {client.rnum()}")
        except (SendError, ReceiveError):
            # The connection is already closed; reopen and retry once
            client.open()
            print(f"Records: {client.rnum()}")
        except TyrantError as e:
            print(f"Unexpected failure: {e}")

        client.out("once")


if __name__ == "__main__":
    main()
