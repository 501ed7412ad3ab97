""" Information about SqlAlchemy models: columns, names, primary keys """

from . import columns, models, names, primary_key
