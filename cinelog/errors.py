class CinelogError(Exception):
    """Base class for errors raised by the import pipeline and its collaborators."""


class FeedUnavailable(CinelogError):
    """The Letterboxd feed could not be fetched (relay error or network failure)."""

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status


class FeedParseError(CinelogError):
    """The fetched feed is not a well-formed RSS document."""


class MovieNotResolvable(CinelogError):
    """A movie is missing from the catalog and could not be materialized from TMDB."""


class TmdbError(CinelogError):
    """TMDB answered with something other than a movie or a plain 404."""

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status
