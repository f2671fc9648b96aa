import bcrypt
from fastapi.concurrency import run_in_threadpool

from .config import settings

# bcrypt only reads the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def _hash(password: str, rounds: int) -> str:
    secret = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


async def get_password_hash(password: str, rounds: int = None) -> str:
    """Hash off the event loop; the cost factor defaults to ``BCRYPT_ROUNDS``."""
    return await run_in_threadpool(_hash, password, rounds or settings.BCRYPT_ROUNDS)
