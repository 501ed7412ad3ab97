from functools import wraps


# Borrowed from: funcy
def collecting(func):
    """ Convert a generator to a list-returning function

    Example:
        @collecting
        def count():
            yield 1
            yield 2
            yield 3
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        return list(
            func(*args, **kwargs)
        )
    return wrapper


def first_mention(*iterables) -> list:
    """ Chain iterables, drop duplicates, keep the order of first mention

    Example:
        first_mention(['a', 'b'], ['b', 'c']) #-> ['a', 'b', 'c']
    """
    return list(dict.fromkeys(
        item
        for iterable in iterables
        for item in iterable
    ))
