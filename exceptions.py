class SignalingError(Exception):
    """Base class for errors raised by the signaling relay."""


class InvalidTransitionError(SignalingError):
    def __init__(self, state, event):
        self.state = state
        self.event = event
        super().__init__(f"Event {event.value} is not allowed in state {state.value}")


class RoomReassignmentError(SignalingError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Session already belongs to room {current}, cannot join {requested}")
