from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72

def _truncate(password: str) -> str:
    encoded = str(password).encode("utf-8")[:MAX_PASSWORD_BYTES]
    return encoded.decode("utf-8", errors="ignore")

def hash_password(password: str) -> str:
    return pwd_context.hash(_truncate(password))

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(_truncate(plain_password), hashed_password)
