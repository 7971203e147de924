from quizarena.realtime.hub import RealtimeHub, current_hub, team_room

__all__ = ['RealtimeHub', 'current_hub', 'team_room']
