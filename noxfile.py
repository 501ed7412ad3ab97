import nox.sessions

# Defaults
nox.options.reuse_existing_virtualenvs = True
nox.options.sessions = [
    'tests',
    'tests_sqlalchemy',
    'tests_fastapi',
]

# Versions
PYTHON_VERSIONS = ['3.9', '3.10', '3.11', '3.12']
SQLALCHEMY_VERSIONS = [
    # Releases that changed something relevant: Select, Result, events
    *(f'2.0.{x}' for x in (0, 10, 20, 25, 30, 36)),
    '2.1.4',
]
FASTAPI_VERSIONS = [
    '0.100.1', '0.103.2', '0.104.1', '0.109.2', '0.110.3', '0.115.0',
]


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.sessions.Session, *, overrides: dict[str, str] = {}):
    """ pytest, with coverage unless pinned versions are tested """
    session.install('.[test]')

    if overrides:
        session.install(*(f'{name}=={version}' for name, version in overrides.items()))

    # Test
    args = []
    if not overrides:
        args.append('--cov=eagerpage')

    session.run('pytest', 'tests/', *args)


@nox.session(python=PYTHON_VERSIONS[-1])
@nox.parametrize('sqlalchemy', SQLALCHEMY_VERSIONS)
def tests_sqlalchemy(session: nox.sessions.Session, sqlalchemy):
    """ pytest with a pinned SqlAlchemy """
    tests(session, overrides={'sqlalchemy': sqlalchemy})


@nox.session(python=PYTHON_VERSIONS[-1])
@nox.parametrize('fastapi', FASTAPI_VERSIONS)
def tests_fastapi(session: nox.sessions.Session, fastapi):
    """ pytest with a pinned FastAPI: the integration module """
    tests(session, overrides={'fastapi': fastapi})
