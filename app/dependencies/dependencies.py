import hmac
from typing import Optional
from fastapi import Header, Request
from app.exceptions import UnauthorizedException
from app.image_service.service import ImageService

def get_image_service(request: Request) -> ImageService:
    """Dependency provider for ImageService"""
    return request.app.state.service

def verify_api_key(request: Request, x_api_key: Optional[str] = Header(None)):
    """Rejects requests without the shared API key; open access when no key is configured."""
    expected = request.app.state.settings.api_key
    if not expected:
        return
    if not x_api_key or not hmac.compare_digest(x_api_key.encode(), expected.encode()):
        raise UnauthorizedException()
