# jiantu_travel/routes/websocket/itinerary.py
"""WebSocket handlers for itinerary editing events."""

import logging

from .base import BaseWebSocketHandler, NAMESPACE

logger = logging.getLogger(__name__)


class ItineraryHandler(BaseWebSocketHandler):
    """Maps UI events onto the client's ItineraryPlanner.

    Every handler replies through the planner's ``itinerary_state`` push;
    bad input is answered with an ``error`` event and leaves state as is.
    """

    def register_handlers(self):
        """Register itinerary event handlers."""

        @self.socketio.on('get_itinerary', namespace=NAMESPACE)
        def handle_get_itinerary(data=None):
            self.dispatch('get_itinerary', lambda p: self.emit_to_client('itinerary_state', p.snapshot()))

        @self.socketio.on('map_click', namespace=NAMESPACE)
        def handle_map_click(data):
            self.dispatch('map_click', lambda p: p.add_from_map_click(data['lat'], data['lng']))

        @self.socketio.on('add_waypoint', namespace=NAMESPACE)
        def handle_add_waypoint(data):
            self.dispatch('add_waypoint', lambda p: p.add_waypoint(
                data['name'],
                data['lat'],
                data['lng'],
                stay_duration=data.get('stay_duration'),
                notes=data.get('notes'),
                at_end=data.get('at_end', True),
            ))

        @self.socketio.on('search_place', namespace=NAMESPACE)
        def handle_search_place(data):
            self.log_event('search_place', data)
            self.dispatch('search_place', lambda p: p.add_from_search(data.get('query', '')))

        @self.socketio.on('add_recommendation', namespace=NAMESPACE)
        def handle_add_recommendation(data):
            self.dispatch('add_recommendation', lambda p: p.add_from_recommendation(str(data['place_id'])))

        @self.socketio.on('remove_waypoint', namespace=NAMESPACE)
        def handle_remove_waypoint(data):
            self.dispatch('remove_waypoint', lambda p: p.remove_waypoint(data['id']))

        @self.socketio.on('update_waypoint', namespace=NAMESPACE)
        def handle_update_waypoint(data):
            self.dispatch('update_waypoint', lambda p: p.update_waypoint(
                data['id'],
                **{k: data[k] for k in ('name', 'stay_duration', 'notes') if k in data},
            ))

        @self.socketio.on('move_waypoint', namespace=NAMESPACE)
        def handle_move_waypoint(data):
            self.dispatch('move_waypoint', lambda p: p.move_waypoint(data['index'], data['direction']))

        @self.socketio.on('reorder_waypoint', namespace=NAMESPACE)
        def handle_reorder_waypoint(data):
            self.dispatch('reorder_waypoint', lambda p: p.reorder(data['from_index'], data['to_index']))

        @self.socketio.on('drag_start', namespace=NAMESPACE)
        def handle_drag_start(data):
            self.dispatch('drag_start', lambda p: p.drag_start(data['index']))

        @self.socketio.on('drag_over', namespace=NAMESPACE)
        def handle_drag_over(data):
            self.dispatch('drag_over', lambda p: p.drag_over(data['index']))

        @self.socketio.on('drag_end', namespace=NAMESPACE)
        def handle_drag_end(data=None):
            self.dispatch('drag_end', lambda p: p.drag_end())

        @self.socketio.on('drag_cancel', namespace=NAMESPACE)
        def handle_drag_cancel(data=None):
            self.dispatch('drag_cancel', lambda p: p.drag_cancel())

        @self.socketio.on('set_start_time', namespace=NAMESPACE)
        def handle_set_start_time(data):
            self.dispatch('set_start_time', lambda p: p.set_start_time(data['start_time']))

        @self.socketio.on('refresh_route', namespace=NAMESPACE)
        def handle_refresh_route(data=None):
            self.dispatch('refresh_route', lambda p: p.refresh_route())

        @self.socketio.on('optimize_route', namespace=NAMESPACE)
        def handle_optimize_route(data=None):
            self.log_event('optimize_route')
            self.dispatch('optimize_route', lambda p: p.optimize())
