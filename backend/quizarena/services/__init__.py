"""Quiz domain services: round state, timer, teams, submissions, notifications.

Routes and socket handlers import from here, keeping transport concerns
separate from the round mechanics.
"""
