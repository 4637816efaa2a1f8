"""
Tests for the sibling-service adapters over httpx.MockTransport.
"""

from __future__ import annotations

import json

import httpx
import pytest

from claimchat.application.exceptions import DownstreamRejectedError
from claimchat.infrastructure.http.circuit_breaker import CircuitBreaker
from claimchat.infrastructure.http.resilient_client import ResilientClient
from claimchat.infrastructure.services.eligibility_client import DelayTrackerClient, EligibilityEngineClient
from claimchat.infrastructure.services.journey_matcher_client import JourneyMatcherClient
from claimchat.infrastructure.services.station_client import TimetableStationLookup

from support import direct_route


def _http(name: str, handler) -> ResilientClient:
    return ResilientClient(
        name,
        f"http://{name}",
        CircuitBreaker(name),
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=lambda _: None,
    )


ROUTES_BODY = {
    "routes": [
        {
            "legs": [
                {"from": "PAD", "to": "BHM", "departure": "08:00", "arrival": "09:30", "operator": "GW"},
                {"from": "BHM", "to": "BRI", "departure": "09:45", "arrival": "11:00", "operator": "XC"},
            ],
            "totalDuration": "3h 0m",
        },
        {"legs": [{"from": "PAD", "to": "BRI", "departure": "09:00", "arrival": "10:45", "operator": "GW"}]},
    ]
}


def test_journey_matcher_query_and_parsing():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=ROUTES_BODY)

    routes = JourneyMatcherClient(_http("journey-matcher", handler)).find_routes(
        "PAD", "BRI", "2024-11-19", "08:30", correlation_id="corr-1", offset=3
    )

    params = dict(seen[0].url.params)
    assert seen[0].url.path == "/routes"
    assert params == {"from": "PAD", "to": "BRI", "date": "2024-11-19", "time": "08:30", "offset": "3"}
    assert seen[0].headers["X-Correlation-ID"] == "corr-1"
    assert routes[0].is_direct is False
    assert routes[0].interchange_station == "BHM"
    assert routes[1].is_direct is True
    assert routes[1].departure == "09:00"


def test_journey_matcher_omits_zero_offset():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"routes": []})

    routes = JourneyMatcherClient(_http("journey-matcher", handler)).find_routes(
        "PAD", "BRI", "2024-11-19", "08:30", correlation_id="corr-1"
    )

    assert routes == []
    assert "offset" not in seen[0].url.params


def test_journey_matcher_client_error_propagates():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "no routes"})

    with pytest.raises(DownstreamRejectedError) as excinfo:
        JourneyMatcherClient(_http("journey-matcher", handler)).find_routes(
            "PAD", "BRI", "2024-11-19", "08:30", correlation_id="corr-1"
        )
    assert excinfo.value.status_code == 404


def test_eligibility_check_posts_journey():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"eligible": True, "delay_minutes": 45, "compensation_amount": "£25.00"})

    verdict = EligibilityEngineClient(_http("eligibility-engine", handler)).check_eligibility(
        "journey-123", "2024-11-19", direct_route("08:31"), "corr-1"
    )

    assert bodies[0]["journey_id"] == "journey-123"
    assert bodies[0]["route"]["legs"][0]["departure"] == "08:31"
    assert verdict.eligible is True
    assert verdict.delay_minutes == 45
    assert verdict.compensation_amount == "£25.00"


def test_claim_status_reads_claims():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["user_id"] == "user-1"
        return httpx.Response(200, json={"claims": [{"id": "c-1", "status": "paid", "travel_date": "2024-11-01"}]})

    [claim] = EligibilityEngineClient(_http("eligibility-engine", handler)).claim_status("user-1", "corr-1")

    assert claim.claim_id == "c-1"
    assert claim.status == "paid"


def test_tracking_registration_accepts_camel_case_id():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"trackingId": "trk-9"})

    tracking_id = DelayTrackerClient(_http("delay-tracker", handler)).register_journey(
        "journey-123", "user-1", "2024-11-20", None, "corr-1"
    )

    assert tracking_id == "trk-9"


def test_station_search():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/stations/search"
        assert request.url.params["q"] == "paddington"
        return httpx.Response(200, json=[{"crs": "pad", "name": "London Paddington"}, {"name": "no crs"}])

    lookup = TimetableStationLookup("http://timetable", client=httpx.Client(transport=httpx.MockTransport(handler)))

    [station] = lookup.search("paddington", "corr-1")

    assert station.crs == "PAD"
    assert station.name == "London Paddington"


def test_station_search_failures_read_as_no_match():
    def server_error(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    def network_error(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    for handler in (server_error, network_error):
        lookup = TimetableStationLookup("http://timetable", client=httpx.Client(transport=httpx.MockTransport(handler)))
        assert lookup.search("paddington") == []
