# safewalk/services/transit_splicer.py

from typing import List, Optional, Tuple

from safewalk.core.logger import logger
from safewalk.models.routing import Coordinate, WeightVector
from safewalk.models.transit import Itinerary, TransitSegment
from safewalk.services.graph_manager import NetworkSnapshot
from safewalk.services.routing_service import RoutingService, to_lat_lon


def _segment_start(segment: TransitSegment) -> Optional[Coordinate]:
    if segment.start_x is None or segment.start_y is None:
        return None
    return Coordinate(lat=segment.start_y, lon=segment.start_x)


def _segment_end(segment: TransitSegment) -> Optional[Coordinate]:
    if segment.end_x is None or segment.end_y is None:
        return None
    return Coordinate(lat=segment.end_y, lon=segment.end_x)


def walking_endpoints(
    segments: List[TransitSegment],
    index: int,
    origin: Coordinate,
    destination: Coordinate,
) -> Tuple[Coordinate, Coordinate]:
    """
    Start and end of the walking segment at index.

    Providers often leave walking legs without coordinates; the leg then
    starts where the previous leg ended (or at the trip origin) and ends where
    the next leg starts (or at the trip destination).
    """
    segment = segments[index]

    start = _segment_start(segment)
    if start is None:
        previous = _segment_end(segments[index - 1]) if index > 0 else None
        start = previous or origin

    end = _segment_end(segment)
    if end is None:
        following = _segment_start(segments[index + 1]) if index + 1 < len(segments) else None
        end = following or destination

    return start, end


def splice_itinerary(
    itinerary: Itinerary,
    snapshot: NetworkSnapshot,
    weights: WeightVector,
    router: RoutingService,
    origin: Coordinate,
    destination: Coordinate,
) -> Tuple[Itinerary, int]:
    """
    Attach a safety-aware path to every walking segment of every alternative.

    Vehicle segments are left untouched. A walking segment with no path keeps
    safe_path=None so the consumer falls back to its straight endpoints.
    Returns a new itinerary and the number of segments that received a path.
    """
    spliced = itinerary.model_copy(deep=True)
    count = 0

    for alternative in spliced.path:
        segments = alternative.sub_path
        for index, segment in enumerate(segments):
            if not segment.is_walking:
                continue

            start, end = walking_endpoints(segments, index, origin, destination)
            result, _, _ = router.route_between(snapshot, start, end, weights)

            if result.found:
                segment.safe_path = to_lat_lon(result.coordinates)
                count += 1
            else:
                segment.safe_path = None
                logger.info(
                    "No walking path for segment {} ({:.6f}, {:.6f}) -> ({:.6f}, {:.6f}); "
                    "keeping straight-line endpoints.",
                    index,
                    start.lat,
                    start.lon,
                    end.lat,
                    end.lon,
                )

    return spliced, count
