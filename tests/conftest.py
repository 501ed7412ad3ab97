import os
import pytest
import sqlalchemy as sa
import sqlalchemy.orm


@pytest.fixture(scope='function')
def engine() -> sa.engine.Engine:
    # SQLite: the connection is shared with the threads FastAPI runs endpoints in
    connect_args = {'check_same_thread': False} if DATABASE_URL.startswith('sqlite') else {}
    engine = sa.engine.create_engine(DATABASE_URL, connect_args=connect_args)

    # SQLite: let SqlAlchemy control transactions, otherwise SAVEPOINTs are unreliable with pysqlite
    if engine.dialect.name == 'sqlite':
        @sa.event.listens_for(engine, 'connect')
        def do_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @sa.event.listens_for(engine, 'begin')
        def do_begin(conn):
            conn.exec_driver_sql('BEGIN')

    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope='function')
def connection(engine: sa.engine.Engine) -> sa.engine.Connection:
    with engine.connect() as conn:
        yield conn


@pytest.fixture(scope='function')
def ssn(connection: sa.engine.Connection) -> sa.orm.Session:
    """ ORM Session that works within the connection's transaction """
    with sa.orm.Session(bind=connection) as ssn:
        yield ssn


# URL of the database to connect to
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite://')
