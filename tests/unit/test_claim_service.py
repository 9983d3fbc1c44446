from tests.fakes import PASSWORD, SIGNER, T0, TOKEN, TX_HASH, FakeWallet
from vestclaim.claim import ClaimService
from vestclaim.schedule import TokenInfo, VestingSchedule


def _schedule(total=1000, released=0):
    return VestingSchedule(total_amount=total, released_amount=released, start_time=T0, end_time=T0 + 1000)


def _submitted(ledger):
    return [c for c in ledger.calls if c[0] == "submit_release"]


def test_claim_success(claim_service, ledger):
    ledger.metadata[TOKEN] = TokenInfo(TOKEN, "Vibe", "VIBE", 0)
    ledger.schedules[TOKEN] = _schedule(released=100)
    ledger.balances[(SIGNER.address, TOKEN)] = 500

    result = claim_service.claim_vested_tokens(PASSWORD, TOKEN)

    assert result["success"] is True
    assert result["message"] == "Successfully claimed 400 VIBE!"
    assert result["claimed"] == {"amount": "400", "raw_amount": "400"}
    assert result["transaction"] == {"hash": TX_HASH, "block_number": 19_000_000}
    assert result["new_balance"] == "500"
    assert result["raw_new_balance"] == "500"
    assert ledger.submitted == [(SIGNER.address, SIGNER.address, TOKEN)]


def test_claim_steps_run_in_order(claim_service, ledger):
    ledger.schedules[TOKEN] = _schedule()

    claim_service.claim_vested_tokens(PASSWORD, TOKEN)

    assert [c[0] for c in ledger.calls] == [
        "read_token_metadata",
        "read_schedule",
        "submit_release",
        "await_confirmation",
        "read_balance",
    ]


def test_wrong_password_never_contacts_ledger(claim_service, ledger, wallet):
    ledger.schedules[TOKEN] = _schedule()

    result = claim_service.claim_vested_tokens("hunter2", TOKEN)

    assert result["success"] is False
    assert result["code"] == "InvalidPassword"
    assert result["category"] == "Unauthorized"
    assert result["error"] == "Invalid password"
    assert wallet.unlock_calls == 1
    assert ledger.calls == []


def test_no_wallet(ledger, config, clock):
    service = ClaimService(FakeWallet(exists=False), ledger, config, clock=clock)

    result = service.claim_vested_tokens(PASSWORD, TOKEN)

    assert result["code"] == "NoWallet"
    assert ledger.calls == []


def test_invalid_token_address_checked_before_unlock(claim_service, wallet):
    result = claim_service.claim_vested_tokens(PASSWORD, "0xdeadbeef")

    assert result["code"] == "InvalidTokenAddress"
    assert wallet.unlock_calls == 0


def test_missing_schedule(claim_service, ledger):
    result = claim_service.claim_vested_tokens(PASSWORD, TOKEN)

    assert result["code"] == "ScheduleNotFound"
    assert result["token_symbol"] == "VIBE"
    assert _submitted(ledger) == []


def test_nothing_to_claim_does_not_submit(claim_service, ledger, clock):
    ledger.schedules[TOKEN] = _schedule(released=500)

    result = claim_service.claim_vested_tokens(PASSWORD, TOKEN)

    assert result["code"] == "NothingToClaim"
    assert result["category"] == "BusinessRuleViolation"
    assert _submitted(ledger) == []


def test_nothing_to_claim_before_start(claim_service, ledger, clock):
    ledger.schedules[TOKEN] = _schedule()
    clock.now = T0 - 1

    result = claim_service.claim_vested_tokens(PASSWORD, TOKEN)

    assert result["code"] == "NothingToClaim"
    assert _submitted(ledger) == []


def test_schedule_fetch_failure(claim_service, ledger):
    ledger.schedule_error = TimeoutError("read timed out")

    result = claim_service.claim_vested_tokens(PASSWORD, TOKEN)

    assert result["code"] == "ScheduleFetchFailed"
    assert "read timed out" in result["error"]


def test_revert_on_submit(claim_service, ledger):
    ledger.schedules[TOKEN] = _schedule()
    ledger.submit_error = ValueError("execution reverted: nothing to release")

    result = claim_service.claim_vested_tokens(PASSWORD, TOKEN)

    assert result["code"] == "TransactionReverted"
    assert result["token_address"] == TOKEN
    assert "transaction_hash" not in result


def test_failed_receipt_is_reverted(claim_service, ledger):
    ledger.schedules[TOKEN] = _schedule()
    ledger.receipt_status = 0

    result = claim_service.claim_vested_tokens(PASSWORD, TOKEN)

    assert result["code"] == "TransactionReverted"
    assert result["transaction_hash"] == TX_HASH
    assert len(ledger.submitted) == 1


def test_confirmation_failure_keeps_hash_and_does_not_resend(claim_service, ledger):
    ledger.schedules[TOKEN] = _schedule()
    ledger.confirm_error = RuntimeError("node went away")

    result = claim_service.claim_vested_tokens(PASSWORD, TOKEN)

    assert result["code"] == "ClaimFailed"
    assert result["error"] == "Claim failed: node went away"
    assert result["transaction_hash"] == TX_HASH
    assert len(ledger.submitted) == 1


def test_unlock_failure_other_than_password_is_claim_failed(ledger, config, clock):
    class BrokenWallet(FakeWallet):
        def unlock(self, password):
            raise OSError("keystore unreadable")

    service = ClaimService(BrokenWallet(), ledger, config, clock=clock)

    result = service.claim_vested_tokens(PASSWORD, TOKEN)

    assert result["code"] == "ClaimFailed"
    assert "keystore unreadable" in result["error"]
    assert ledger.calls == []


def test_balance_read_failure_after_confirmation_is_still_success(claim_service, ledger):
    ledger.metadata[TOKEN] = TokenInfo(TOKEN, "Vibe", "VIBE", 0)
    ledger.schedules[TOKEN] = _schedule()
    ledger.balance_error = ValueError("execution reverted: balanceOf")

    result = claim_service.claim_vested_tokens(PASSWORD, TOKEN)

    assert result["success"] is True
    assert result["claimed"] == {"amount": "500", "raw_amount": "500"}
    assert result["transaction"] == {"hash": TX_HASH, "block_number": 19_000_000}
    assert result["new_balance"] is None
    assert result["raw_new_balance"] is None
    assert "warning" in result
    assert len(ledger.submitted) == 1
