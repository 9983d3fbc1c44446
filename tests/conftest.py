from pathlib import Path

import pytest

from tests.fakes import T0, FakeLedger, FakeWallet
from vestclaim.claim import ClaimService
from vestclaim.config import VestingConfig
from vestclaim.query import VestingQueryService


@pytest.fixture
def config(tmp_path: Path) -> VestingConfig:
    return VestingConfig(
        rpc_urls=("http://127.0.0.1:8545",),
        wallet_path=tmp_path / "wallet.json",
    )


@pytest.fixture
def clock():
    class Clock:
        now = T0 + 500

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def query_service(wallet, ledger, config, clock) -> VestingQueryService:
    return VestingQueryService(wallet, ledger, config, clock=clock)


@pytest.fixture
def claim_service(wallet, ledger, config, clock) -> ClaimService:
    return ClaimService(wallet, ledger, config, clock=clock)
