"""Parses Kubernetes resource quantity strings."""

from decimal import Decimal, InvalidOperation

_DECIMAL_SUFFIXES = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "": Decimal(1),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}

_BINARY_SUFFIXES = {
    "Ki": Decimal(2) ** 10,
    "Mi": Decimal(2) ** 20,
    "Gi": Decimal(2) ** 30,
    "Ti": Decimal(2) ** 40,
    "Pi": Decimal(2) ** 50,
    "Ei": Decimal(2) ** 60,
}

def parse_quantity(quantity):
    """
    Parses a quantity such as "250m", "12345n", "1.5", "128Mi", "1G" or "2e3" into a Decimal
    in base units (cores for CPU, bytes for memory).
    """

    if isinstance(quantity, (int, float, Decimal)):
        return Decimal(str(quantity))

    text = str(quantity).strip()
    if not text:
        raise ValueError("empty quantity")

    # Binary suffixes are two characters, so they are checked first.
    for suffix, multiplier in _BINARY_SUFFIXES.items():
        if text.endswith(suffix):
            return _number(text[: -len(suffix)], quantity) * multiplier

    # An exponent (e.g. "2e3") is part of the number, not an "E" (exa) suffix.
    suffix = text[-1] if text[-1] in _DECIMAL_SUFFIXES and not text[-1].isdigit() else ""
    number = text[: -len(suffix)] if suffix else text
    return _number(number, quantity) * _DECIMAL_SUFFIXES[suffix]

def _number(text, original):
    try:
        value = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"invalid quantity: {original!r}") from e
    if not value.is_finite():
        raise ValueError(f"invalid quantity: {original!r}")
    return value

def parse_cpu_millicores(quantity):
    """Parses a CPU quantity into millicores."""

    return float(parse_quantity(quantity) * 1000)

def parse_memory_bytes(quantity):
    """Parses a memory quantity into bytes."""

    return float(parse_quantity(quantity))
