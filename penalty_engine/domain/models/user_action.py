"""Reservation-related actions that collaborators ask the engine to authorize."""

from enum import Enum


class UserAction(str, Enum):
    """Actions gated by active sanctions."""

    CREATE_RESERVATION = "create_reservation"
    MODIFY_RESERVATION = "modify_reservation"
    CANCEL_RESERVATION = "cancel_reservation"
    JOIN_WAITING_LIST = "join_waiting_list"

    @property
    def label(self) -> str:
        """Lower-case, space separated label for messages."""
        return self.value.replace("_", " ")
