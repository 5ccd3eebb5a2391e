"""Exception types raised by the sync and valuation services.

Fatal categories (structure, stat definitions, season, standings, teams)
share the SyncError base so the API layer can fail a whole sync in one place.
Per-batch statistics failures are never raised past the Stats Attacher.
"""


class TradrError(Exception):
    """Base class for all service-level errors."""


class YahooApiError(TradrError):
    """Raised when the Yahoo API answers with a non-2xx status or a non-JSON body."""

    def __init__(self, status_code: int, message: str, body_excerpt: str = "") -> None:
        self.status_code = status_code
        self.message = message
        self.body_excerpt = body_excerpt
        detail = f"Yahoo API error {status_code}: {message}"
        if body_excerpt:
            detail = f"{detail} (body: {body_excerpt})"
        super().__init__(detail)


class SyncError(TradrError):
    """Base class for errors that abort a league sync."""


class StructureMismatchError(SyncError):
    """Raised when a required field is absent after trying every known response shape."""


class EmptyRosterError(StructureMismatchError):
    """Raised when a team roster is missing or parses to zero athletes."""


class NoTeamsError(SyncError):
    """Raised when a league response parses to zero teams."""


class StatDefinitionsUnavailableError(SyncError):
    """Raised when a game's stat categories cannot be resolved."""


class SeasonUnavailableError(SyncError):
    """Raised when a game's season cannot be read from the game resource."""


class StandingsUnresolvedError(SyncError):
    """Raised when one or more teams have no win/loss/tie record after the standings fallback."""

    def __init__(self, unresolved: list[str]) -> None:
        self.unresolved = unresolved
        super().__init__(
            f"Standings unresolved for {len(unresolved)} team(s): {', '.join(unresolved)}"
        )


class InvalidDraftPickError(TradrError, ValueError):
    """Raised when a draft pick round is outside the supported range."""
