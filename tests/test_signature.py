import time

from conftest import ALICE_KEY, BOB_KEY, SIGNATURE_CONFIG, TestWallet

from app.auth.signature import SignatureFailure, authenticate, expected_message

NOW = 1_760_000_000_000  # ms


def _check(wallet, signed, now_ms=NOW, address=None):
    return authenticate(
        address or wallet.address,
        signed["signature"],
        signed["message"],
        signed["timestamp"],
        SIGNATURE_CONFIG,
        now_ms=now_ms,
    )


def test_expected_message_lowercases_wallet():
    msg = expected_message("0xAbCdEF0000000000000000000000000000000001", 42, "LupoVerify Quest Submission")
    assert msg == (
        "LupoVerify Quest Submission\n"
        "Wallet: 0xabcdef0000000000000000000000000000000001\n"
        "Timestamp: 42"
    )


def test_valid_signature_accepted():
    alice = TestWallet(ALICE_KEY)
    result = _check(alice, alice.sign(timestamp=NOW - 1000))
    assert result.valid
    assert result.reason is None


def test_lowercase_claimed_address_accepted():
    alice = TestWallet(ALICE_KEY)
    result = _check(alice, alice.sign(timestamp=NOW), address=alice.address.lower())
    assert result.valid


def test_expired_signature_rejected_even_if_cryptographically_valid():
    alice = TestWallet(ALICE_KEY)
    result = _check(alice, alice.sign(timestamp=NOW - 5 * 60 * 1000 - 1))
    assert not result.valid
    assert result.failure is SignatureFailure.EXPIRED
    assert "expired" in result.reason.lower()


def test_future_timestamp_outside_window_rejected():
    alice = TestWallet(ALICE_KEY)
    result = _check(alice, alice.sign(timestamp=NOW + 6 * 60 * 1000))
    assert result.failure is SignatureFailure.EXPIRED


def test_edge_of_window_accepted():
    alice = TestWallet(ALICE_KEY)
    assert _check(alice, alice.sign(timestamp=NOW - 5 * 60 * 1000)).valid


def test_wrong_wallet_casing_in_message_rejected():
    alice = TestWallet(ALICE_KEY)
    shouting = "0x" + alice.address[2:].upper()
    message = f"{SIGNATURE_CONFIG.title}\nWallet: {shouting}\nTimestamp: {NOW}"
    result = _check(alice, alice.sign(timestamp=NOW, message=message))
    assert result.failure is SignatureFailure.MALFORMED_MESSAGE


def test_timestamp_mismatch_in_message_rejected():
    alice = TestWallet(ALICE_KEY)
    signed = alice.sign(timestamp=NOW, message=expected_message(alice.address, NOW - 1, SIGNATURE_CONFIG.title))
    result = _check(alice, signed)
    assert result.failure is SignatureFailure.MALFORMED_MESSAGE


def test_signature_from_other_wallet_rejected():
    alice, bob = TestWallet(ALICE_KEY), TestWallet(BOB_KEY)
    # bob signs a message that claims alice's wallet
    signed = bob.sign(timestamp=NOW, message=expected_message(alice.address, NOW, SIGNATURE_CONFIG.title))
    result = _check(alice, signed)
    assert result.failure is SignatureFailure.BAD_SIGNATURE


def test_garbage_signature_is_invalid_not_an_exception():
    alice = TestWallet(ALICE_KEY)
    signed = alice.sign(timestamp=NOW)
    signed["signature"] = "0xdeadbeef"
    result = _check(alice, signed)
    assert result.failure is SignatureFailure.BAD_SIGNATURE


def test_defaults_to_wall_clock():
    alice = TestWallet(ALICE_KEY)
    signed = alice.sign(timestamp=int(time.time() * 1000))
    assert authenticate(
        alice.address, signed["signature"], signed["message"], signed["timestamp"], SIGNATURE_CONFIG
    ).valid
