from datetime import datetime, timedelta
from typing import Callable, Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base
from db.repositories import LedgerDocumentRepository
from services.party_fund import PartyFundService
from tests.constants import START
from tests.helpers.time_utils import DEFAULT_TIME_GEN

engine: Engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
session_factory = sessionmaker(engine)


@pytest.fixture(scope="function")
def test_session() -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function", autouse=True)
def reset_db() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def _reset_default_time_gen() -> None:
    DEFAULT_TIME_GEN.reset()


@pytest.fixture(scope="function")
def clock() -> Callable[[], datetime]:
    ticks = iter(range(1_000_000))
    return lambda: START + timedelta(minutes=next(ticks))


@pytest.fixture(scope="function")
def repository(test_session: Session) -> LedgerDocumentRepository:
    return LedgerDocumentRepository(test_session)


@pytest.fixture(scope="function")
def service(repository: LedgerDocumentRepository, clock: Callable[[], datetime]) -> PartyFundService:
    ids = iter(range(1_000_000))
    return PartyFundService(repository, clock=clock, id_factory=lambda: f"tx-{next(ids):04d}")
