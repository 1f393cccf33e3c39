import secrets
import string
import uuid

REQUEST_ID_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase
REQUEST_ID_LENGTH = 20


def generate_session_id() -> str:
    return str(uuid.uuid4())


def generate_request_id(length: int = REQUEST_ID_LENGTH) -> str:
    return "".join(secrets.choice(REQUEST_ID_ALPHABET) for _ in range(length))
