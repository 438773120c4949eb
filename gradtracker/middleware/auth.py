from fastapi import Request

BEARER_PREFIX = "Bearer "

def _get_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization")
    if auth and auth.startswith(BEARER_PREFIX):
        return auth.split(" ", 1)[1].strip() or None
    return None

async def auth_middleware(request: Request, call_next):
    # resolves identity only; routes decide whether it is required
    issuer = request.app.state.token_issuer
    token = _get_token(request)
    request.state.user_id = issuer.extract_user_id(token) if token else None
    return await call_next(request)
