"""
Ready-to-run example submission for integration testing.
"""
from __future__ import annotations
import shlex
from datetime import datetime

from .authenticator import compute_mac, format_session_timestamp
from .results import PerformanceResults, PerformanceResultsAttribute, PerformanceResultsEvent

EXAMPLE_USER_ID = "d1ac887243389d94544e4d9cc5524ab5"
EXAMPLE_BUILD_INFO = "1.0.0.7"

def example_results(now: datetime) -> PerformanceResults:
    return PerformanceResults(
        session_id=f"{EXAMPLE_USER_ID}-{format_session_timestamp(now)}",
        user_id=EXAMPLE_USER_ID,
        build_info=EXAMPLE_BUILD_INFO,
        events=[
            PerformanceResultsEvent(
                event_name="Score",
                attributes=[PerformanceResultsAttribute(name="Score.Num", value="0")],
            )
        ],
    )

def example_command(secret: str, host: str, now: datetime) -> str:
    body = example_results(now).to_json()
    mac = compute_mac(secret, body.encode("utf-8"))
    return (
        "curl -v -H 'Content-Type: application/json' "
        f"-H 'Authorization: {mac}' "
        f"https://{host}/v1/user/performance -d {shlex.quote(body)}\n"
    )
