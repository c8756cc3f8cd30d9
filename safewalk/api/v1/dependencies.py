# safewalk/api/v1/dependencies.py
from safewalk.services.graph_manager import GraphManager
from safewalk.services.request_tracker import RouteRequestTracker
from safewalk.services.routing_service import RoutingService
from safewalk.services.transit_client import TransitClient

# Single shared instances
graph_manager = GraphManager()
routing_service = RoutingService(graph_manager=graph_manager)
transit_client = TransitClient()
request_tracker = RouteRequestTracker()
