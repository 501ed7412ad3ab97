from __future__ import annotations

import dataclasses
from typing import Optional

import fastapi

from eagerpage import EagerPaginator, Page


@dataclasses.dataclass
class PageRequest:
    """ Page number and page size, as requested by the client """
    # Page number. 1-based. Validated by the paginator
    page: str

    # Page size. `None` means the default from QuerySettings
    per_page: Optional[int] = None

    def get_page(self, paginator: EagerPaginator) -> Page:
        """ Load the requested page, according to the paginator's invalid page policy """
        return paginator.page(self.page)


def page_request(*,
        page: str = fastapi.Query(
            '1',
            title='Page number',
            description='1-based. Example: `3`',
        ),
        per_page: Optional[int] = fastapi.Query(
            None,
            title='Page size',
            description='The number of items per page. Limited by the server.',
            ge=1,
        ),
) -> PageRequest:
    """ Get the page number and page size from the request parameters

    The page number is not parsed here: the paginator decides what to do with invalid numbers.

    Example:
        @app.get('/api/orders/')
        def orders(query=Depends(query_object), req=Depends(page_request)):
            collection = Collection(query, Order, settings)
            paginator = EagerPaginator(collection, connection, per_page=req.per_page)
            page = req.get_page(paginator)
            return {'orders': list(page), 'meta': page.meta()}
    """
    return PageRequest(page=page, per_page=per_page)
