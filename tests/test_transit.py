# tests/test_transit.py
import asyncio

import httpx

from safewalk.models.routing import Coordinate, WeightVector
from safewalk.models.transit import BUS, WALK, Itinerary
from safewalk.services.routing_service import RoutingService
from safewalk.services.safety_model import CostConfig, WeightModelConfig
from safewalk.services.transit_client import TransitClient, fallback_itinerary
from safewalk.services.transit_splicer import splice_itinerary, walking_endpoints
from tests.conftest import A, C, E, F

ORIGIN = Coordinate(lon=A[0], lat=A[1])
DESTINATION = Coordinate(lon=F[0], lat=F[1])
NIGHT_SAFE = WeightVector(light=7.5, cctv=4.5, blind=6.0)


def provider_payload():
    """
    Walk A -> C, bus C -> E, walk E -> F; walking legs carry no coordinates.
    """
    return {
        "result": {
            "searchType": 0,
            "path": [
                {
                    "pathType": 2,
                    "info": {"totalTime": 25, "totalDistance": 1800, "payment": 1500},
                    "subPath": [
                        {"trafficType": 3, "sectionTime": 4, "distance": 300},
                        {
                            "trafficType": 2,
                            "sectionTime": 15,
                            "distance": 1200,
                            "startX": C[0],
                            "startY": C[1],
                            "endX": E[0],
                            "endY": E[1],
                            "lane": [{"busNo": "146"}],
                            "passStopList": {
                                "stations": [
                                    {"x": str(C[0]), "y": str(C[1]), "stationName": "Yeoksam"},
                                    {"x": str(E[0]), "y": str(E[1]), "stationName": "Seolleung"},
                                ]
                            },
                        },
                        {"trafficType": 3, "sectionTime": 6, "distance": 300},
                    ],
                }
            ],
        }
    }


def client_for(handler, api_key="test-key", timeout_s=1.0):
    return TransitClient(
        base_url="https://transit.example/route",
        api_key=api_key,
        timeout_s=timeout_s,
        transport=httpx.MockTransport(handler),
    )


def fetch(client):
    return asyncio.run(client.fetch_itinerary(ORIGIN, DESTINATION))


def assert_is_direct_walk(itinerary):
    assert itinerary.is_fallback
    assert len(itinerary.path) == 1
    segments = itinerary.path[0].sub_path
    assert len(segments) == 1
    walk = segments[0]
    assert walk.traffic_type == WALK
    assert (walk.start_x, walk.start_y) == (ORIGIN.lon, ORIGIN.lat)
    assert (walk.end_x, walk.end_y) == (DESTINATION.lon, DESTINATION.lat)


def test_provider_response_is_parsed():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json=provider_payload())

    itinerary = fetch(client_for(handler))

    assert seen["SX"] == str(ORIGIN.lon)
    assert seen["EY"] == str(DESTINATION.lat)
    assert seen["apiKey"] == "test-key"
    assert not itinerary.is_fallback

    bus = itinerary.path[0].sub_path[1]
    assert bus.traffic_type == BUS
    assert bus.pass_stop_list.stations[0].station_name == "Yeoksam"
    assert bus.pass_stop_list.stations[1].x == E[0]


def test_missing_api_key_falls_back_without_calling_provider():
    def handler(request):
        raise AssertionError("provider must not be called")

    assert_is_direct_walk(fetch(client_for(handler, api_key=None)))


def test_http_error_falls_back():
    assert_is_direct_walk(fetch(client_for(lambda request: httpx.Response(503))))


def test_network_error_falls_back():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    assert_is_direct_walk(fetch(client_for(handler)))


def test_timeout_falls_back():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    assert_is_direct_walk(fetch(client_for(handler)))


def test_slow_response_is_cut_off_at_the_overall_timeout():
    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json=provider_payload())

    loop_time = []

    async def timed():
        loop = asyncio.get_running_loop()
        start = loop.time()
        itinerary = await client_for(handler, timeout_s=0.05).fetch_itinerary(ORIGIN, DESTINATION)
        loop_time.append(loop.time() - start)
        return itinerary

    assert_is_direct_walk(asyncio.run(timed()))
    assert loop_time[0] < 1.0


def test_invalid_provider_url_falls_back():
    def handler(request):
        raise httpx.InvalidURL("bad provider url")

    assert_is_direct_walk(fetch(client_for(handler)))


def test_malformed_payloads_fall_back():
    payloads = [
        b"<html>not json</html>",
        b'{"error": {"code": 500, "msg": "server error"}}',
        b'{"result": {"path": []}}',
        b'{"result": {"path": [{"subPath": [{"sectionTime": 3}]}]}}',
        b"[1, 2, 3]",
    ]
    for body in payloads:
        itinerary = fetch(client_for(lambda request, body=body: httpx.Response(200, content=body)))
        assert_is_direct_walk(itinerary)


def test_walking_endpoints_are_inferred_from_neighbours():
    itinerary = Itinerary.model_validate(provider_payload()["result"])
    segments = itinerary.path[0].sub_path

    start, end = walking_endpoints(segments, 0, ORIGIN, DESTINATION)
    assert start == ORIGIN
    assert (end.lon, end.lat) == C

    start, end = walking_endpoints(segments, 2, ORIGIN, DESTINATION)
    assert (start.lon, start.lat) == E
    assert end == DESTINATION


def make_router(manager):
    return RoutingService(manager, weight_config=WeightModelConfig(), cost_config=CostConfig())


def test_splice_attaches_safe_paths_to_walking_legs(sample_manager):
    itinerary = Itinerary.model_validate(provider_payload()["result"])

    spliced, count = splice_itinerary(
        itinerary,
        sample_manager.snapshot,
        NIGHT_SAFE,
        make_router(sample_manager),
        ORIGIN,
        DESTINATION,
    )

    assert count == 2
    first_walk, bus, last_walk = spliced.path[0].sub_path

    # A -> D -> C avoids the dark street, [lat, lon] order
    assert first_walk.safe_path[0] == [A[1], A[0]]
    assert first_walk.safe_path[-1] == [C[1], C[0]]
    assert len(first_walk.safe_path) == 5

    assert last_walk.safe_path == [[E[1], E[0]], [F[1], F[0]]]

    # vehicle leg untouched, provider extras kept
    assert bus.safe_path is None
    assert bus == itinerary.path[0].sub_path[1]
    assert bus.model_dump(by_alias=True)["lane"] == [{"busNo": "146"}]

    # input itinerary not modified
    assert itinerary.path[0].sub_path[0].safe_path is None


def test_splice_keeps_walking_leg_without_path_when_unreachable(sample_manager):
    itinerary = fallback_itinerary(ORIGIN, DESTINATION)

    spliced, count = splice_itinerary(
        itinerary,
        sample_manager.snapshot,
        NIGHT_SAFE,
        make_router(sample_manager),
        ORIGIN,
        DESTINATION,
    )

    assert count == 0
    walk = spliced.path[0].sub_path[0]
    assert walk.safe_path is None
    assert (walk.start_x, walk.start_y) == (ORIGIN.lon, ORIGIN.lat)


def test_itinerary_serialises_with_provider_field_names():
    dumped = fallback_itinerary(ORIGIN, DESTINATION).model_dump(by_alias=True)
    segment = dumped["path"][0]["subPath"][0]
    assert segment["trafficType"] == WALK
    assert segment["startX"] == ORIGIN.lon
    assert dumped["isFallback"] is True
