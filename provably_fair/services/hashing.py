import hmac, hashlib, re, secrets

from provably_fair.services.errors import InvalidParameterError

UNIT_HEX_CHARS = 13                 # 52 bits
UNIT_DIVISOR = 0xFFFFFFFFFFFFF      # 2**52 - 1
SERVER_SEED_BYTES = 32
CLIENT_SEED_BYTES = 16

_SERVER_SEED_RE = re.compile(r"[0-9a-fA-F]{%d}" % (SERVER_SEED_BYTES * 2))


def _to_bytes(value: bytes | str) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def sha256(data: bytes | str) -> str:
    return hashlib.sha256(_to_bytes(data)).hexdigest()


def hmac_sha256(key: bytes | str, message: bytes | str) -> str:
    return hmac.new(_to_bytes(key), _to_bytes(message), hashlib.sha256).hexdigest()


def hash_to_unit_float(digest: str) -> float:
    """Map the first 52 bits of a hex digest onto [0, 1].

    The slice is parsed as an integer and divided exactly once, so every
    implementation that follows the same path gets the same double.
    """
    head = digest[:UNIT_HEX_CHARS]
    if len(head) < UNIT_HEX_CHARS:
        raise InvalidParameterError(f"digest too short: {digest!r}")
    try:
        value = int(head, 16)
    except ValueError:
        raise InvalidParameterError(f"digest is not hex: {digest!r}") from None
    return value / UNIT_DIVISOR


def generate_seed_bytes(n: int) -> bytes:
    return secrets.token_bytes(n)


def generate_server_seed() -> str:
    return generate_seed_bytes(SERVER_SEED_BYTES).hex()


def generate_client_seed() -> str:
    return generate_seed_bytes(CLIENT_SEED_BYTES).hex()


def validate_server_seed(server_seed: str) -> str:
    if not isinstance(server_seed, str) or not _SERVER_SEED_RE.fullmatch(server_seed):
        raise InvalidParameterError(
            f"server seed must be {SERVER_SEED_BYTES * 2} hex characters"
        )
    return server_seed
