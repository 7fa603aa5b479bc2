"""Error hierarchy for planner failures.

Collaborators (generation, persistence, calendar) classify failures as
transient (should retry) or permanent (should not retry) so tenacity retry
decorators can pick them apart:

    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def generate_schedule(goal: StudyGoal):
        ...

The core (grid building, mutations) never raises these.
"""


class PlannerError(Exception):
    """Base exception for all planner errors."""

    pass


class TransientError(PlannerError):
    """Temporary failure that may succeed on retry.

    Examples: network timeouts, 503 from the generation API.
    """

    pass


class RateLimitError(TransientError):
    """Rate limit exceeded - needs longer backoff."""

    pass


class PermanentError(PlannerError):
    """Failure that won't succeed on retry.

    Examples: rejected API key, invalid request payload.
    """

    pass


class AuthenticationError(PermanentError):
    """ID token invalid, expired or revoked - the user must sign in again."""

    pass


class NotAuthenticatedError(PermanentError):
    """An operation needing a user was called without one."""

    def __init__(self, message: str = "User is not authenticated.") -> None:
        super().__init__(message)


class ConfigurationError(PermanentError):
    """Required configuration is missing or still a placeholder."""

    pass


class SessionClosedError(PermanentError):
    """A tutor or user session was used after sign-out."""

    pass


class GenerationError(PlannerError):
    """The AI returned nothing usable.

    The message is shown to the user as-is; the caller offers a retry
    (e.g. going back to goal setup). No partial result is ever accepted.
    """

    pass


class StoreError(PlannerError):
    """A document store read or write failed.

    The message is user-readable; the underlying SDK error is chained.
    """

    pass
