import bcrypt

# bcrypt only looks at the first 72 bytes of a password
_MAX_BYTES = 72


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8")[:_MAX_BYTES], bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8")[:_MAX_BYTES], password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
