import asyncio
import inspect
import pathlib
import sys
from datetime import date
from uuid import UUID, uuid4

import pytest
from sqlalchemy.pool import NullPool

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from siteledger.db.init import init_database  # noqa: E402
from siteledger.db.session import create_engine_for, create_session_factory  # noqa: E402
from siteledger.services.changes import ChangeBroker, install_change_hooks  # noqa: E402
from siteledger.services.gateway import LedgerGateway  # noqa: E402

REFERENCE_DATE = date(2024, 3, 7)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            arguments = {name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
            loop.run_until_complete(test_function(**arguments))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


@pytest.fixture()
def session_factory(tmp_path: pathlib.Path):
    db_path = tmp_path / "ledger.db"
    engine = create_engine_for(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    asyncio.run(init_database(engine))
    yield create_session_factory(engine)
    asyncio.run(engine.dispose())


@pytest.fixture()
def broker() -> ChangeBroker:
    return ChangeBroker()


@pytest.fixture()
def change_hooks(broker: ChangeBroker):
    hooks = install_change_hooks(broker)
    yield hooks
    hooks.remove()


@pytest.fixture()
def user_id() -> UUID:
    return uuid4()


@pytest.fixture()
def gateway(session_factory, broker: ChangeBroker, user_id: UUID) -> LedgerGateway:
    return LedgerGateway(session_factory, user_id, broker=broker, today=lambda: REFERENCE_DATE)
