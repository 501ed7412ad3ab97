""" FastAPI dependencies: Query Object and page number from URL parameters """

from .query_object import query_object, ArgumentValueError
from .page_request import page_request, PageRequest
