"""Player-side round logic: countdown display, anti-cheat monitor, session wiring."""

from quizarena.client.anticheat import AntiCheatMonitor, MonitorState
from quizarena.client.countdown import Countdown, format_remaining
from quizarena.client.session import PlayerSession

__all__ = ['AntiCheatMonitor', 'MonitorState', 'Countdown', 'format_remaining', 'PlayerSession']
