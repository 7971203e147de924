"""Map committed state changes onto realtime broadcasts.

Each helper is called after the write it reports has committed. Delivery
failures are logged and swallowed; the persisted state stays correct and
clients pick it up on their next pull.
"""

from flask import current_app

from quizarena.errors import DeliveryError
from quizarena.models import GameState, Team
from quizarena.realtime.hub import current_hub

GAME_STATUS_CHANGE = 'gameStatusChange'
TEAM_STATUS_CHANGE = 'teamStatusChange'
LEADERBOARD_UPDATE = 'leaderboardUpdate'
GAME_COMPLETE = 'gameComplete'


def notify_game_status(state: GameState) -> bool:
    payload = state.status_payload()
    try:
        current_hub().broadcast_global(GAME_STATUS_CHANGE, payload)
    except DeliveryError as exc:
        current_app.logger.warning(f"[notify] {GAME_STATUS_CHANGE} not delivered: {exc.message}")
        return False
    current_app.logger.info(f"[notify] {GAME_STATUS_CHANGE} {payload}")
    return True


def notify_team_status(team: Team) -> bool:
    payload = team.status_payload()
    try:
        current_hub().broadcast_to_team(team.team_name, TEAM_STATUS_CHANGE, payload)
    except DeliveryError as exc:
        current_app.logger.warning(f"[notify] {TEAM_STATUS_CHANGE} for {team.team_name} not delivered: {exc.message}")
        return False
    current_app.logger.info(f"[notify] {TEAM_STATUS_CHANGE} {payload}")
    return True


def notify_leaderboard(leaderboard, remaining_slots: int) -> bool:
    try:
        hub = current_hub()
        hub.broadcast_global(LEADERBOARD_UPDATE, {'leaderboard': leaderboard, 'remainingSlots': remaining_slots})
        if remaining_slots <= 0:
            hub.broadcast_global(GAME_COMPLETE, {})
    except DeliveryError as exc:
        current_app.logger.warning(f"[notify] leaderboard not delivered: {exc.message}")
        return False
    return True
