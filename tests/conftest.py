import copy

import pytest
from fastapi.testclient import TestClient

from earnout_tee.attestation import SoftwareAttester
from earnout_tee.keys import SigningIdentity
from earnout_tee.main import create_app
from earnout_tee.service import ComputeService

TEST_SEED = bytes(range(32))

SCENARIO_DOCUMENTS = [
    {"journalEntryId": "JE-1", "credits": [{"account": "Sales Revenue", "amount": 50000}]},
    {"employeeDetails": {}, "grossPay": 20000},
]


class StepClock:
    """Millisecond clock that advances by ``step`` on every read."""

    def __init__(self, start: int = 1_760_000_000_000, step: int = 1):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def identity():
    return SigningIdentity.from_seed(TEST_SEED, kid="tee-test")


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def attester(identity, clock):
    return SoftwareAttester(identity, clock=clock)


@pytest.fixture
def service(attester):
    return ComputeService(attester)


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


@pytest.fixture
def documents():
    return copy.deepcopy(SCENARIO_DOCUMENTS)
