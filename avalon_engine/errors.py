"""Errors raised by the engine.

Command errors (:class:`IllegalAction`, :class:`ShapeMismatch`,
:class:`RoleViolation`) are raised synchronously by the client façade and
leave the shared record untouched. :class:`ChannelClosed` and
:class:`ConfigurationError` are fatal for the driver loop.
"""
from __future__ import annotations


class GameError(Exception):
    """Base class for every engine error."""


# -------------------- Command errors -------------------- #

class IllegalAction(GameError):
    """The caller is not allowed to act right now."""


class NotCrownHolder(IllegalAction):
    pass


class NotTeamMember(IllegalAction):
    pass


class NotClairvoyanceHolder(IllegalAction):
    pass


class NotGuesser(IllegalAction):
    pass


class WrongPhase(IllegalAction):
    pass


class StaleRound(IllegalAction):
    """The command was issued for a round that is already over."""


class ShapeMismatch(GameError):
    """The payload has the wrong shape (size, ids, values)."""


class WrongTeamSize(ShapeMismatch):
    pass


class UnknownPlayer(ShapeMismatch):
    pass


class RoleViolation(GameError):
    """A good-aligned player tried to fail a mission."""


# -------------------- Fatal errors -------------------- #

class ChannelClosed(GameError):
    """The counterpart of a channel is gone."""


class ConfigurationError(GameError, ValueError):
    """Unsupported player count or mission index."""


__all__ = [
    "GameError",
    "IllegalAction",
    "NotCrownHolder",
    "NotTeamMember",
    "NotClairvoyanceHolder",
    "NotGuesser",
    "WrongPhase",
    "StaleRound",
    "ShapeMismatch",
    "WrongTeamSize",
    "UnknownPlayer",
    "RoleViolation",
    "ChannelClosed",
    "ConfigurationError",
]
