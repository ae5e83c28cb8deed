"""Development-only key generator, excluded from the compiled registry."""

import secrets


def post(request, params) -> dict:
    return {"key": secrets.token_hex(16)}
