from ._errors import CorruptData

#: The default limit on how deeply collections may nest in decoded input.
MAX_DEPTH = 32


def as_bytes(buf):
    if isinstance(buf, (bytes, bytearray)):
        return buf
    # call `memoryview` first, since `bytes(1)` is actually valid
    return bytes(memoryview(buf))


def as_str(buf):
    if isinstance(buf, str):
        return buf
    try:
        return as_bytes(buf).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CorruptData(f"Input is not valid UTF-8: {exc}") from None


def check_max_depth(max_depth):
    if not isinstance(max_depth, int) or isinstance(max_depth, bool):
        raise TypeError("max_depth must be an int")
    if max_depth < 0:
        raise ValueError("max_depth must be >= 0")
    return max_depth
