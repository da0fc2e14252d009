# Copyright (c) 2026 Firefly Software Solutions Inc.
# Licensed under the Apache License, Version 2.0

"""
In-process Tyrant server emulator for tests.

Speaks the binary protocol over real TCP sockets against an in-memory
store, so tests exercise the client's full socket path. It models the
server only as far as the tests need: hash-style key/value records, a
per-connection iterator, table records stored as NUL-joined column
buffers, and a small subset of search conditions.
"""

from __future__ import annotations

import math
import socketserver
import struct
import threading

from pytyrant.protocol import HEADER_SIZE, Command, Header, ProtocolError

FRACTION_SCALE = 1_000_000_000_000


def i32(value: int) -> bytes:
    return struct.pack(">i", value)


def i64(value: int) -> bytes:
    return struct.pack(">q", value)


def sized(data: bytes) -> bytes:
    return i32(len(data)) + data


def ok(*parts: bytes) -> bytes:
    return b"\x00" + b"".join(parts)


def fail(status: int = 1) -> bytes:
    return bytes([status])


def listing(items: list[bytes]) -> bytes:
    return ok(i32(len(items)), *(sized(item) for item in items))


def join_columns(columns: dict[bytes, bytes]) -> bytes:
    tokens: list[bytes] = []
    for name, value in columns.items():
        tokens.extend((name, value))
    return b"\x00".join(tokens)


def split_columns(data: bytes) -> dict[bytes, bytes]:
    if not data:
        return {}
    tokens = data.split(b"\x00")
    it = iter(tokens)
    return dict(zip(it, it))


class EmulatorState:
    """Database state shared by every connection to one emulator."""

    def __init__(self) -> None:
        self.records: dict[bytes, bytes] = {}
        self.lock = threading.Lock()
        self.uid = 0
        self.indexes: dict[bytes, int] = {}
        self.copies: list[bytes] = []
        self.restores: list[tuple[bytes, int, int]] = []
        self.master: tuple[bytes, int, int, int] | None = None
        self.optimized: list[bytes] = []
        self.requests: list[Command] = []
        self.rejected: list[str] = []


class _Handler(socketserver.StreamRequestHandler):
    state: EmulatorState

    def setup(self) -> None:
        super().setup()
        self.state = self.server.state  # type: ignore[attr-defined]
        self.cursor: list[bytes] | None = None

    # Request field readers

    def _read(self, size: int) -> bytes:
        data = self.rfile.read(size) if size else b""
        if len(data) < size:
            raise EOFError
        return data

    def _int(self) -> int:
        return struct.unpack(">i", self._read(4))[0]

    def _long(self) -> int:
        return struct.unpack(">q", self._read(8))[0]

    def _ulong(self) -> int:
        return struct.unpack(">Q", self._read(8))[0]

    def handle(self) -> None:
        try:
            while True:
                head = self.rfile.read(HEADER_SIZE)
                if len(head) < HEADER_SIZE:
                    return
                try:
                    header = Header.from_bytes(head)
                except ProtocolError as e:
                    # A real server drops the connection on a bad frame.
                    self.state.rejected.append(str(e))
                    return
                method = self.COMMANDS[header.command]
                self.state.requests.append(header.command)
                with self.state.lock:
                    response = method(self)
                if response is not None:
                    self.wfile.write(response)
        except (EOFError, ConnectionError):
            return

    # Key/value commands

    def _key_value(self) -> tuple[bytes, bytes]:
        ksiz, vsiz = self._int(), self._int()
        return self._read(ksiz), self._read(vsiz)

    def do_put(self) -> bytes:
        key, value = self._key_value()
        self.state.records[key] = value
        return ok()

    def do_putkeep(self) -> bytes:
        key, value = self._key_value()
        if key in self.state.records:
            return fail()
        self.state.records[key] = value
        return ok()

    def do_putcat(self) -> bytes:
        key, value = self._key_value()
        self.state.records[key] = self.state.records.get(key, b"") + value
        return ok()

    def do_putshl(self) -> bytes:
        ksiz, vsiz, width = self._int(), self._int(), self._int()
        key, value = self._read(ksiz), self._read(vsiz)
        joined = self.state.records.get(key, b"") + value
        self.state.records[key] = joined[-width:] if width > 0 else b""
        return ok()

    def do_putnr(self) -> None:
        key, value = self._key_value()
        self.state.records[key] = value
        return None

    def do_out(self) -> bytes:
        key = self._read(self._int())
        if self.state.records.pop(key, None) is None:
            return fail()
        return ok()

    def do_get(self) -> bytes:
        key = self._read(self._int())
        if key not in self.state.records:
            return fail()
        return ok(sized(self.state.records[key]))

    def do_mget(self) -> bytes:
        count = self._int()
        keys = [self._read(self._int()) for _ in range(count)]
        found = [(k, self.state.records[k]) for k in keys if k in self.state.records]
        parts = [i32(len(k)) + i32(len(v)) + k + v for k, v in found]
        return ok(i32(len(found)), *parts)

    def do_vsiz(self) -> bytes:
        key = self._read(self._int())
        if key not in self.state.records:
            return fail()
        return ok(i32(len(self.state.records[key])))

    def do_iterinit(self) -> bytes:
        self.cursor = list(self.state.records)
        return ok()

    def do_iternext(self) -> bytes:
        while self.cursor:
            key = self.cursor.pop(0)
            if key in self.state.records:
                return ok(sized(key))
        return fail()

    def do_fwmkeys(self) -> bytes:
        psiz, limit = self._int(), self._int()
        prefix = self._read(psiz)
        keys = sorted(k for k in self.state.records if k.startswith(prefix))
        if limit >= 0:
            keys = keys[:limit]
        return listing(keys)

    def do_addint(self) -> bytes:
        ksiz, num = self._int(), self._int()
        key = self._read(ksiz)
        current = self.state.records.get(key)
        if current is None:
            total = num
        elif len(current) != 4:
            return fail()
        else:
            total = struct.unpack("<i", current)[0] + num
        self.state.records[key] = struct.pack("<i", total)
        return ok(i32(total))

    def do_adddouble(self) -> bytes:
        ksiz, integ, fract = self._int(), self._long(), self._long()
        key = self._read(ksiz)
        num = integ + fract / FRACTION_SCALE
        current = self.state.records.get(key)
        if current is None:
            total = num
        elif len(current) != 8:
            return fail()
        else:
            total = struct.unpack("<d", current)[0] + num
        self.state.records[key] = struct.pack("<d", total)
        part, whole = math.modf(total)
        return ok(i64(int(whole)), i64(int(part * FRACTION_SCALE)))

    def do_ext(self) -> bytes:
        nsiz, _opts, ksiz, vsiz = self._int(), self._int(), self._int(), self._int()
        name, key, value = self._read(nsiz), self._read(ksiz), self._read(vsiz)
        if name != b"echo":
            return fail()
        return ok(sized(key + b"=" + value))

    # Management commands

    def do_sync(self) -> bytes:
        return ok()

    def do_optimize(self) -> bytes:
        self.state.optimized.append(self._read(self._int()))
        return ok()

    def do_vanish(self) -> bytes:
        self.state.records.clear()
        return ok()

    def do_copy(self) -> bytes:
        self.state.copies.append(self._read(self._int()))
        return ok()

    def do_restore(self) -> bytes:
        psiz, ts, opts = self._int(), self._ulong(), self._int()
        self.state.restores.append((self._read(psiz), ts, opts))
        return ok()

    def do_setmst(self) -> bytes:
        hsiz, port, ts, opts = self._int(), self._int(), self._ulong(), self._int()
        self.state.master = (self._read(hsiz), port, ts, opts)
        return ok()

    def do_rnum(self) -> bytes:
        return ok(i64(len(self.state.records)))

    def do_size(self) -> bytes:
        return ok(i64(sum(len(k) + len(v) for k, v in self.state.records.items())))

    def do_stat(self) -> bytes:
        text = f"version\t1.1.41-emulator\nrnum\t{len(self.state.records)}\ntype\ttable\n"
        return ok(sized(text.encode()))

    # Versatile functions

    def do_misc(self) -> bytes:
        nsiz, _opts, argc = self._int(), self._int(), self._int()
        name = self._read(nsiz)
        args = [self._read(self._int()) for _ in range(argc)]
        function = self.MISC.get(name)
        if function is None:
            return fail()
        return function(self, args)

    def misc_putlist(self, args: list[bytes]) -> bytes:
        it = iter(args)
        for key, value in zip(it, it):
            self.state.records[key] = value
        return listing([])

    def misc_outlist(self, args: list[bytes]) -> bytes:
        for key in args:
            self.state.records.pop(key, None)
        return listing([])

    def misc_getlist(self, args: list[bytes]) -> bytes:
        result: list[bytes] = []
        for key in args:
            if key in self.state.records:
                result.extend((key, self.state.records[key]))
        return listing(result)

    def misc_put(self, args: list[bytes]) -> bytes:
        if not args or len(args) % 2 == 0:
            return fail()
        self.state.records[args[0]] = join_columns(split_columns(b"\x00".join(args[1:])))
        return listing([])

    def misc_putkeep(self, args: list[bytes]) -> bytes:
        if args and args[0] in self.state.records:
            return fail()
        return self.misc_put(args)

    def misc_putcat(self, args: list[bytes]) -> bytes:
        if not args:
            return fail()
        columns = split_columns(self.state.records.get(args[0], b""))
        it = iter(args[1:])
        for name, value in zip(it, it):
            columns.setdefault(name, value)
        self.state.records[args[0]] = join_columns(columns)
        return listing([])

    def misc_out(self, args: list[bytes]) -> bytes:
        if not args or self.state.records.pop(args[0], None) is None:
            return fail()
        return listing([])

    def misc_get(self, args: list[bytes]) -> bytes:
        if not args or args[0] not in self.state.records:
            return fail()
        result: list[bytes] = []
        for name, value in split_columns(self.state.records[args[0]]).items():
            result.extend((name, value))
        return listing(result)

    def misc_setindex(self, args: list[bytes]) -> bytes:
        if len(args) != 2:
            return fail()
        self.state.indexes[args[0]] = int(args[1])
        return listing([])

    def misc_genuid(self, args: list[bytes]) -> bytes:
        self.state.uid += 1
        return listing([str(self.state.uid).encode()])

    def misc_search(self, args: list[bytes]) -> bytes:
        conditions: list[tuple[bytes, int, bytes]] = []
        order: tuple[bytes, int] | None = None
        limit, skip = -1, -1
        mode: list[bytes] | None = None
        for arg in args:
            tokens = arg.split(b"\x00")
            kind = tokens[0]
            if kind == b"addcond":
                conditions.append((tokens[1], int(tokens[2]), tokens[3]))
            elif kind == b"setorder":
                order = (tokens[1], int(tokens[2]))
            elif kind == b"setlimit":
                limit, skip = int(tokens[1]), int(tokens[2])
            elif kind in (b"get", b"count", b"out"):
                mode = tokens
            else:
                return fail()

        hits: list[tuple[bytes, dict[bytes, bytes]]] = []
        for pkey, value in self.state.records.items():
            columns = split_columns(value)
            if all(_matches(pkey, columns, c) for c in conditions):
                hits.append((pkey, columns))

        if order is not None:
            name, otype = order
            numeric = otype in (2, 3)

            def sort_key(hit: tuple[bytes, dict[bytes, bytes]]) -> object:
                raw = hit[0] if name == b"" else hit[1].get(name, b"")
                return float(raw or 0) if numeric else raw

            hits.sort(key=sort_key, reverse=otype in (1, 3))

        if skip > 0:
            hits = hits[skip:]
        if limit >= 0:
            hits = hits[:limit]

        if mode is None:
            return listing([pkey for pkey, _ in hits])
        if mode[0] == b"count":
            return listing([str(len(hits)).encode()])
        if mode[0] == b"out":
            for pkey, _ in hits:
                del self.state.records[pkey]
            return listing([])

        names = mode[1:]
        result: list[bytes] = []
        for pkey, columns in hits:
            selected = {b"": pkey, **columns}
            if names:
                selected = {n: v for n, v in selected.items() if n in names}
            result.append(join_columns(selected))
        return listing(result)

    COMMANDS = {
        Command.PUT: do_put,
        Command.PUTKEEP: do_putkeep,
        Command.PUTCAT: do_putcat,
        Command.PUTSHL: do_putshl,
        Command.PUTNR: do_putnr,
        Command.OUT: do_out,
        Command.GET: do_get,
        Command.MGET: do_mget,
        Command.VSIZ: do_vsiz,
        Command.ITERINIT: do_iterinit,
        Command.ITERNEXT: do_iternext,
        Command.FWMKEYS: do_fwmkeys,
        Command.ADDINT: do_addint,
        Command.ADDDOUBLE: do_adddouble,
        Command.EXT: do_ext,
        Command.SYNC: do_sync,
        Command.OPTIMIZE: do_optimize,
        Command.VANISH: do_vanish,
        Command.COPY: do_copy,
        Command.RESTORE: do_restore,
        Command.SETMST: do_setmst,
        Command.RNUM: do_rnum,
        Command.SIZE: do_size,
        Command.STAT: do_stat,
        Command.MISC: do_misc,
    }

    MISC = {
        b"putlist": misc_putlist,
        b"outlist": misc_outlist,
        b"getlist": misc_getlist,
        b"put": misc_put,
        b"putkeep": misc_putkeep,
        b"putcat": misc_putcat,
        b"out": misc_out,
        b"get": misc_get,
        b"setindex": misc_setindex,
        b"genuid": misc_genuid,
        b"search": misc_search,
    }


def _matches(pkey: bytes, columns: dict[bytes, bytes], condition: tuple[bytes, int, bytes]) -> bool:
    name, op, expr = condition
    negate = bool(op & (1 << 24))
    op &= ~((1 << 24) | (1 << 25))
    value = pkey if name == b"" else columns.get(name)
    if value is None:
        return False
    if op == 0:
        result = value == expr
    elif op == 1:
        result = expr in value
    elif op == 2:
        result = value.startswith(expr)
    elif op == 3:
        result = value.endswith(expr)
    elif 8 <= op <= 12:
        try:
            left, right = float(value), float(expr)
        except ValueError:
            return False
        result = {
            8: left == right,
            9: left > right,
            10: left >= right,
            11: left < right,
            12: left <= right,
        }[op]
    else:
        return False
    return result != negate


class TyrantEmulator(socketserver.ThreadingTCPServer):
    """
    Threaded TCP server speaking the Tyrant protocol.

    Example:
        >>> with TyrantEmulator() as server:
        ...     server.start()
        ...     client = TyrantClient(*server.address)
    """

    daemon_threads = True
    allow_reuse_address = True

    def __init__(self, host: str = "127.0.0.1", port: int = 0) -> None:
        super().__init__((host, port), _Handler)
        self.state = EmulatorState()
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int]:
        host, port = self.server_address[:2]
        return host, port

    def start(self) -> None:
        self._thread = threading.Thread(target=self.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self.shutdown()
        self.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
