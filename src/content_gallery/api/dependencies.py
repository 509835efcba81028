"""FastAPI dependencies backed by components stored on app.state."""

from typing import Annotated

from fastapi import Depends, Request

from content_gallery.auth.resolver import AuthResolver
from content_gallery.config.settings import Settings
from content_gallery.content.factory import ContentClientFactory
from content_gallery.content.services import GalleryService
from content_gallery.proxy.handler import ProxyHandler


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def get_auth_resolver(request: Request) -> AuthResolver:
    return request.app.state.auth_resolver  # type: ignore[no-any-return]


def get_client_factory(request: Request) -> ContentClientFactory:
    return request.app.state.client_factory  # type: ignore[no-any-return]


def get_proxy_handler(request: Request) -> ProxyHandler:
    return request.app.state.proxy_handler  # type: ignore[no-any-return]


def get_gallery_service(request: Request) -> GalleryService:
    return request.app.state.gallery_service  # type: ignore[no-any-return]


SettingsDep = Annotated[Settings, Depends(get_settings_dep)]
AuthResolverDep = Annotated[AuthResolver, Depends(get_auth_resolver)]
ClientFactoryDep = Annotated[ContentClientFactory, Depends(get_client_factory)]
ProxyHandlerDep = Annotated[ProxyHandler, Depends(get_proxy_handler)]
GalleryServiceDep = Annotated[GalleryService, Depends(get_gallery_service)]
