"""Command-line flags with typed access and deprecated-name fallbacks."""

from __future__ import annotations

import csv
import enum
import io
import re
from dataclasses import dataclass, field
from datetime import timedelta
from fractions import Fraction
from typing import Any, Iterator

import regex

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class FlagError(Exception):
    """Raised for undefined flags, wrong types and invalid flag values."""


class FlagKind(enum.Enum):
    STRING = "string"
    STRING_SLICE = "stringSlice"
    BOOL = "bool"
    INT = "int"
    INT64 = "int64"
    FLOAT64 = "float64"
    DURATION = "duration"


_DURATION_UNITS = {
    "ns": Fraction(1),
    "us": Fraction(1000),
    "µs": Fraction(1000),
    "μs": Fraction(1000),
    "ms": Fraction(1_000_000),
    "s": Fraction(1_000_000_000),
    "m": Fraction(60_000_000_000),
    "h": Fraction(3_600_000_000_000),
}
_DURATION_PART = re.compile(r"(\d*\.?\d*)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"1h30m"``, ``"2m"`` or ``"300ms"``."""
    original = text
    sign = 1
    if text[:1] in "+-" and text:
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise FlagError(f'time: invalid duration "{original}"')
    total = Fraction(0)
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match or match.group(1) in ("", "."):
            raise FlagError(f'time: invalid duration "{original}"')
        total += Fraction(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return timedelta(microseconds=sign * round(total / 1000))


def _trim_fraction(whole: int, frac: int, digits: int) -> str:
    if not frac:
        return str(whole)
    return f"{whole}." + f"{frac:0{digits}d}".rstrip("0")


def format_duration(value: timedelta) -> str:
    """Format a duration the way ``parse_duration`` reads it, e.g. ``"1m0s"``."""
    micros = value // timedelta(microseconds=1)
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_trim_fraction(micros // 1000, micros % 1000, 3)}ms"
    hours, rest = divmod(micros, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    seconds = _trim_fraction(rest // 1_000_000, rest % 1_000_000, 6) + "s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{sign}{minutes}m{seconds}"
    return f"{sign}{seconds}"


_DECIMAL_BYTES = re.compile(r"^(-?\d+(?:\.\d+)?)\s?([KMGTPE]B?|B?)$", re.IGNORECASE)
_BINARY_BYTES = re.compile(r"^(-?\d+(?:\.\d+)?)\s?([KMGTPE]iB?)$", re.IGNORECASE)
_PREFIX_POWER = {"": 0, "K": 1, "M": 2, "G": 3, "T": 4, "P": 5, "E": 6}


def parse_bytes(text: str) -> int:
    """Parse a human-readable size such as ``"1MB"`` (decimal) or ``"1MiB"`` (binary)."""
    match = _BINARY_BYTES.match(text)
    base = 1024
    if not match:
        match = _DECIMAL_BYTES.match(text)
        base = 1000
    if not match:
        raise FlagError("error parsing value=" + text)
    power = _PREFIX_POWER[match.group(2)[:1].upper().replace("B", "")]
    return int(Fraction(match.group(1)) * base**power)


_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def _parse_int(raw: str) -> int:
    if not re.fullmatch(r"[+-]?\d+", raw):
        raise FlagError(f'invalid syntax: "{raw}"')
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise FlagError(f'value out of range: "{raw}"')
    return value


def _parse_csv(raw: str) -> list[str]:
    if raw == "":
        return []
    return next(csv.reader(io.StringIO(raw)))


@dataclass
class Flag:
    """A named, typed flag and its current value."""

    name: str
    kind: FlagKind
    default: Any
    usage: str = ""
    value: Any = None
    changed: bool = False
    _touched: bool = field(default=False, repr=False)

    def __post_init__(self) -> None:
        if self.value is None:
            self.value = list(self.default) if self.kind is FlagKind.STRING_SLICE else self.default

    def set(self, raw: str) -> None:
        """Set the value from its textual form; slices append after the first set."""
        kind = self.kind
        if kind is FlagKind.STRING:
            self.value = raw
        elif kind is FlagKind.STRING_SLICE:
            try:
                items = _parse_csv(raw)
            except csv.Error as exc:
                raise FlagError(f"invalid slice value '{raw}': {exc}") from exc
            self.value = self.value + items if self._touched else items
        elif kind is FlagKind.BOOL:
            if raw in _TRUE:
                self.value = True
            elif raw in _FALSE:
                self.value = False
            else:
                raise FlagError(f'invalid syntax: "{raw}"')
        elif kind in (FlagKind.INT, FlagKind.INT64):
            self.value = _parse_int(raw)
        elif kind is FlagKind.FLOAT64:
            try:
                self.value = float(raw)
            except ValueError as exc:
                raise FlagError(f'invalid syntax: "{raw}"') from exc
        else:
            self.value = parse_duration(raw)
        self._touched = True

    def replace(self, items: list[str]) -> None:
        """Replace the whole value of a slice flag."""
        if self.kind is not FlagKind.STRING_SLICE:
            raise FlagError(f"flag {self.name} is not a slice")
        self.value = list(items)
        self._touched = True

    def __str__(self) -> str:
        kind = self.kind
        if kind is FlagKind.STRING_SLICE:
            out = io.StringIO()
            csv.writer(out, lineterminator="").writerow(self.value)
            return "[" + out.getvalue() + "]"
        if kind is FlagKind.BOOL:
            return "true" if self.value else "false"
        if kind is FlagKind.FLOAT64:
            text = repr(float(self.value))
            return text[:-2] if text.endswith(".0") else text
        if kind is FlagKind.DURATION:
            return format_duration(self.value)
        return str(self.value)


class FlagSet:
    """A named collection of flags that parses ``--name=value`` arguments."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.args: list[str] = []
        self._flags: dict[str, Flag] = {}

    def _add(self, name: str, kind: FlagKind, default: Any, usage: str) -> Flag:
        if name in self._flags:
            raise FlagError(f"{self.name} flag redefined: {name}")
        flag = Flag(name, kind, default, usage)
        self._flags[name] = flag
        return flag

    def add_string(self, name: str, default: str = "", usage: str = "") -> Flag:
        return self._add(name, FlagKind.STRING, default, usage)

    def add_string_slice(self, name: str, default: list[str] | None = None, usage: str = "") -> Flag:
        return self._add(name, FlagKind.STRING_SLICE, list(default or []), usage)

    def add_bool(self, name: str, default: bool = False, usage: str = "") -> Flag:
        return self._add(name, FlagKind.BOOL, default, usage)

    def add_int(self, name: str, default: int = 0, usage: str = "") -> Flag:
        return self._add(name, FlagKind.INT, default, usage)

    def add_int64(self, name: str, default: int = 0, usage: str = "") -> Flag:
        return self._add(name, FlagKind.INT64, default, usage)

    def add_float64(self, name: str, default: float = 0.0, usage: str = "") -> Flag:
        return self._add(name, FlagKind.FLOAT64, float(default), usage)

    def add_duration(self, name: str, default: timedelta = timedelta(0), usage: str = "") -> Flag:
        return self._add(name, FlagKind.DURATION, default, usage)

    def add_flag_set(self, other: FlagSet | None) -> None:
        """Add the flags of ``other`` that this set does not define yet."""
        if other is None:
            return
        for flag in other:
            self._flags.setdefault(flag.name, flag)

    def parse(self, args: list[str]) -> None:
        """Parse arguments, setting flags and collecting positional arguments."""
        queue = list(args)
        while queue:
            arg = queue.pop(0)
            if arg == "--":
                self.args.extend(queue)
                return
            if not arg.startswith("-") or arg == "-":
                self.args.append(arg)
                continue
            if not arg.startswith("--"):
                raise FlagError(f"unknown shorthand flag in {arg}")
            name, sep, raw = arg[2:].partition("=")
            flag = self._flags.get(name)
            if flag is None:
                raise FlagError(f"unknown flag: --{name}")
            if not sep:
                if flag.kind is FlagKind.BOOL:
                    raw = "true"
                elif queue:
                    raw = queue.pop(0)
                else:
                    raise FlagError(f"flag needs an argument: --{name}")
            try:
                flag.set(raw)
            except FlagError as exc:
                raise FlagError(f'invalid argument "{raw}" for "--{name}" flag: {exc}') from exc
            flag.changed = True

    def lookup(self, name: str) -> Flag | None:
        return self._flags.get(name)

    def changed(self, name: str) -> bool:
        flag = self._flags.get(name)
        return flag is not None and flag.changed

    def get(self, name: str, kind: FlagKind) -> Any:
        """Return the value of a flag, checking that it exists and has ``kind``."""
        flag = self._flags.get(name)
        if flag is None:
            raise FlagError(f"flag accessed but not defined: {name}")
        if flag.kind is not kind:
            raise FlagError(f"trying to get {kind.value} value of flag of type {flag.kind.value}")
        return list(flag.value) if kind is FlagKind.STRING_SLICE else flag.value

    def __iter__(self) -> Iterator[Flag]:
        return iter(sorted(self._flags.values(), key=lambda f: f.name))


class ParsedFlags:
    """Typed access to the values of a parsed FlagSet."""

    def __init__(self, flag_set: FlagSet | None = None) -> None:
        self.flag_set = flag_set if flag_set is not None else FlagSet("")

    def parse(self, args: list[str]) -> None:
        self.flag_set.parse(args)

    def _pick(self, deprecated: str, new_name: str) -> str:
        return deprecated if self.flag_set.changed(deprecated) else new_name

    def must_string(self, name: str) -> str:
        return self.flag_set.get(name, FlagKind.STRING)

    def must_deprecated_string(self, deprecated: str, new_name: str) -> str:
        return self.must_string(self._pick(deprecated, new_name))

    def must_string_slice(self, name: str) -> list[str]:
        return self.flag_set.get(name, FlagKind.STRING_SLICE)

    def must_deprecated_string_slice(self, deprecated: str, new_name: str) -> list[str]:
        return self.must_string_slice(self._pick(deprecated, new_name))

    def must_bool(self, name: str) -> bool:
        return self.flag_set.get(name, FlagKind.BOOL)

    def must_deprecated_bool(self, deprecated: str, new_name: str) -> bool:
        return self.must_bool(self._pick(deprecated, new_name))

    def must_int64(self, name: str) -> int:
        return self.flag_set.get(name, FlagKind.INT64)

    def must_deprecated_int64(self, deprecated: str, new_name: str) -> int:
        return self.must_int64(self._pick(deprecated, new_name))

    def must_int(self, name: str) -> int:
        return self.flag_set.get(name, FlagKind.INT)

    def must_deprecated_int(self, deprecated: str, new_name: str) -> int:
        return self.must_int(self._pick(deprecated, new_name))

    def must_float64(self, name: str) -> float:
        return self.flag_set.get(name, FlagKind.FLOAT64)

    def must_deprecated_float64(self, deprecated: str, new_name: str) -> float:
        return self.must_float64(self._pick(deprecated, new_name))

    def must_duration(self, name: str) -> timedelta:
        return self.flag_set.get(name, FlagKind.DURATION)

    def must_deprecated_duration(self, deprecated: str, new_name: str) -> timedelta:
        return self.must_duration(self._pick(deprecated, new_name))

    def must_human_readable_bytes(self, name: str) -> int:
        value = self.must_string(name)
        return parse_bytes(value) if value else 0

    def must_deprecated_human_readable_bytes(self, deprecated: str, new_name: str) -> int:
        return self.must_human_readable_bytes(self._pick(deprecated, new_name))

    def must_regexp(self, name: str) -> regex.Pattern:
        value = self.must_string(name)
        try:
            return regex.compile(value)
        except regex.error as exc:
            raise FlagError(f"invalid regular expression '{value}': {exc}") from exc

    def must_deprecated_regexp(self, deprecated: str, new_name: str) -> regex.Pattern:
        return self.must_regexp(self._pick(deprecated, new_name))