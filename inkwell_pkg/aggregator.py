import logging

from .models import ContentToCopy, PageToGenerate
from .routes import declared_routes_to_pages, endpoints_to_pages


class PageAggregator:
    """
    Collects every page and copy item a build has to produce.

    Pages come out in a fixed order: content pages, tag pages, declared
    routes, registered endpoints, then pages listed in the settings. Entries
    are not de-duplicated.
    """

    def __init__(self, content_services=(), route_provider=None, index_page_html='index.html', extra_pages=(), assets=()):
        self.content_services = list(content_services)
        self.route_provider = route_provider
        self.index_page_html = index_page_html
        self.extra_pages = list(extra_pages)
        self.assets = list(assets)
        self.logger = logging.getLogger('Inkwell.Aggregator')

    def content_pages(self):
        pages = []
        for service in self.content_services:
            pages.extend(service.content_pages_to_generate())
        return pages

    def tag_pages(self):
        pages = []
        for service in self.content_services:
            pages.extend(service.tag_pages_to_generate())
        return pages

    def route_pages(self):
        if self.route_provider is None:
            return []
        return declared_routes_to_pages(self.route_provider.declared_routes(), self.index_page_html)

    def endpoint_pages(self):
        if self.route_provider is None:
            return []
        return endpoints_to_pages(self.route_provider.registered_endpoints())

    def configured_pages(self):
        pages = []
        for entry in self.extra_pages:
            if isinstance(entry, PageToGenerate):
                pages.append(entry)
            else:
                pages.append(PageToGenerate(url=entry['url'], output_file=entry['output_file']))
        return pages

    def pages_to_generate(self):
        pages = (
            self.content_pages()
            + self.tag_pages()
            + self.route_pages()
            + self.endpoint_pages()
            + self.configured_pages()
        )
        self.logger.debug(f"Aggregated {len(pages)} pages to generate")
        return pages

    def content_to_copy(self):
        copies = []
        for service in self.content_services:
            copies.extend(service.content_to_copy())
        for asset in self.assets:
            if isinstance(asset, ContentToCopy):
                copies.append(asset)
            else:
                copies.append(ContentToCopy(asset['source'], asset.get('target', '')))
        return copies
