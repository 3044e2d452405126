"""
Routes declared by the host application.

Inkwell does not know how the host declares its pages; it asks a
RouteProvider for route templates and registered endpoints, then keeps only
the ones that can be rendered to a static file.
"""

from dataclasses import dataclass
from typing import Tuple

from .models import PageToGenerate


@dataclass(frozen=True)
class Endpoint:
    pattern: str
    methods: Tuple[str, ...] = ('GET',)
    display_name: str = ''
    is_component: bool = False
    is_fallback: bool = False


class RouteProvider:
    """Interface for the host application's routing table."""

    def declared_routes(self):
        """Route templates of the host's page components."""
        return []

    def registered_endpoints(self):
        """Endpoints registered directly with the host's router."""
        return []


class StaticRouteProvider(RouteProvider):
    def __init__(self, routes=(), endpoints=()):
        self.routes = list(routes)
        self.endpoints = list(endpoints)

    def declared_routes(self):
        return list(self.routes)

    def registered_endpoints(self):
        return list(self.endpoints)


def is_parameterized(route):
    return '{' in route


def declared_routes_to_pages(routes, index_page_html='index.html'):
    """Map parameterless route templates to ``route/<index_page_html>``."""
    pages = []
    for route in routes:
        if not route or is_parameterized(route):
            continue
        stripped = route.strip('/')
        output_file = f"{stripped}/{index_page_html}" if stripped else index_page_html
        pages.append(PageToGenerate(url=route, output_file=output_file))
    return pages


def is_static_endpoint(endpoint):
    """True for GET endpoints that produce a single static resource."""
    pattern = endpoint.pattern
    if not pattern or not pattern.strip():
        return False
    if 'GET' not in {method.upper() for method in endpoint.methods}:
        return False
    if endpoint.is_component or endpoint.is_fallback:
        return False
    if '_framework' in pattern or is_parameterized(pattern):
        return False
    if 'static files' in (endpoint.display_name or ''):
        return False
    return True


def endpoints_to_pages(endpoints):
    """Map static GET endpoints to pages whose output file is the route."""
    pages = []
    for endpoint in endpoints:
        if not is_static_endpoint(endpoint):
            continue
        output_file = endpoint.pattern[1:] if endpoint.pattern.startswith('/') else endpoint.pattern
        pages.append(PageToGenerate(url=endpoint.pattern, output_file=output_file))
    return pages
