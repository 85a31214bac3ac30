from datetime import datetime, timedelta, timezone

import pytest

from analytics_server.core.exceptions import AuthenticationFailed, InvalidPayload, StaleSession
from analytics_server.services.authenticator import (
    check_freshness,
    compute_mac,
    decode_mac,
    format_session_timestamp,
    session_timestamp,
    verify_mac,
)

from conftest import NOW, SCORE_BODY, SECRET

def test_mac_round_trip():
    claimed = decode_mac(compute_mac(SECRET, SCORE_BODY))
    verify_mac(SECRET, SCORE_BODY, claimed)

def test_known_vector():
    # RFC 4231 test case 2
    mac = compute_mac("Jefe", b"what do ya want for nothing?")
    assert mac == "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"

def test_single_byte_change_fails():
    claimed = decode_mac(compute_mac(SECRET, SCORE_BODY))
    tampered = SCORE_BODY.replace(b'"10"', b'"11"')
    with pytest.raises(AuthenticationFailed):
        verify_mac(SECRET, tampered, claimed)

def test_wrong_secret_fails():
    claimed = decode_mac(compute_mac("other", SCORE_BODY))
    with pytest.raises(AuthenticationFailed):
        verify_mac(SECRET, SCORE_BODY, claimed)

def test_whitespace_change_fails():
    claimed = decode_mac(compute_mac(SECRET, SCORE_BODY))
    with pytest.raises(AuthenticationFailed):
        verify_mac(SECRET, SCORE_BODY + b" ", claimed)

@pytest.mark.parametrize("header", [None, "", "zz", "abc", "0x12", "ab cd"])
def test_undecodable_code(header):
    with pytest.raises(AuthenticationFailed):
        decode_mac(header)

def test_session_timestamp_parses_remainder_after_first_dash():
    ts = session_timestamp("abc-2024.01.01-00.00.00")
    assert ts == datetime(2024, 1, 1, tzinfo=timezone.utc)

@pytest.mark.parametrize("session_id", [
    "abc",
    "abc-",
    "abc-2024-01-01T00:00:00",
    "abc-2024.01.01",
    "a-b-2024.01.01-00.00.00",
    "abc-2024.1.1-0.0.0",
    "abc-24.01.01-00.00.00",
])
def test_malformed_session_id(session_id):
    with pytest.raises(InvalidPayload):
        session_timestamp(session_id)

def test_format_matches_parse():
    assert session_timestamp("u-" + format_session_timestamp(NOW)) == NOW

def test_freshness_window_is_exclusive():
    window = timedelta(minutes=10)
    check_freshness(NOW, NOW)
    check_freshness(NOW - window + timedelta(seconds=1), NOW)
    check_freshness(NOW + window - timedelta(seconds=1), NOW)
    with pytest.raises(StaleSession):
        check_freshness(NOW - window, NOW)
    with pytest.raises(StaleSession):
        check_freshness(NOW + window, NOW)

def test_stale_session_is_invalid_payload():
    with pytest.raises(InvalidPayload):
        check_freshness(NOW - timedelta(hours=1), NOW)
