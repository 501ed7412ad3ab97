class BaseEagerpageException(AssertionError):  # `AssertionError` to be caught together with input validation errors
    pass


class QueryObjectError(BaseEagerpageException):
    """ Invalid input provided by the User

    Reported when there's something wrong with the Query Object
    """

    def __init__(self, err: str):
        super().__init__(f'Query object error: {err}')


class InvalidColumnError(BaseEagerpageException):
    """ Query mentioned an invalid column name

    Reported when a column mentioned by name is not found on the SqlAlchemy model
    """

    def __init__(self, model: str, column_name: str, where: str):
        self.model = model
        self.column_name = column_name
        self.where = where

        super().__init__(f'Invalid column "{column_name}" for "{model}" specified in {where}')


class InvalidAnnotationError(InvalidColumnError):
    """ Query requested an annotation that is not registered in QuerySettings.annotations """


class InvalidPage(BaseEagerpageException):
    """ The requested page number is not valid

    Reported by the paginator when the invalid-page policy is "reject"
    """


class PageNotAnInteger(InvalidPage):
    """ The page number is not an integer """


class EmptyPage(InvalidPage):
    """ The page number is out of range: less than 1, or beyond the last page """


class InconsistentResultError(BaseEagerpageException):
    """ Rows seen by the narrow query went missing by the time full records were fetched

    This happens when rows are deleted concurrently between the two queries.
    Use a transaction with a proper isolation level to get a stable snapshot.
    """

    def __init__(self, missing: list):
        self.missing = missing
        super().__init__(f'Records not found while fetching a page: {missing!r}')


class CannotAggregateError(BaseEagerpageException):
    """ Failed to count rows with an aggregate query

    Enable `QuerySettings.count_fallback` to count by materializing the narrow query instead.
    """

