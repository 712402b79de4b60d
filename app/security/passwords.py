from pwdlib import PasswordHash


password_hash = PasswordHash.recommended()


def hash_pin(raw_pin: str) -> str:
    return password_hash.hash(raw_pin)


def verify_pin(raw_pin: str, hashed_pin: str) -> bool:
    return password_hash.verify(raw_pin, hashed_pin)
