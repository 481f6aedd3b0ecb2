from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.game.sessions.types import SessionSnapshot


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    PRECONDITION_FAILED = "precondition_failed"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    TRANSIENT = "transient"
    INTERNAL = "internal"


class ErrorCode(str, Enum):
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    CHALLENGE_NOT_FOUND = "CHALLENGE_NOT_FOUND"

    SESSION_NOT_ACTIVE = "SESSION_NOT_ACTIVE"
    SESSION_ALREADY_STARTED = "SESSION_ALREADY_STARTED"
    SESSION_ABANDONED = "SESSION_ABANDONED"
    SESSION_COMPLETED = "SESSION_COMPLETED"
    SESSION_FULL = "SESSION_FULL"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    SESSION_DELETE_FORBIDDEN = "SESSION_DELETE_FORBIDDEN"
    NO_CHALLENGES_AVAILABLE = "NO_CHALLENGES_AVAILABLE"
    CHALLENGE_ALREADY_COMPLETED = "CHALLENGE_ALREADY_COMPLETED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NO_CHANGES_LEFT = "NO_CHANGES_LEFT"
    MAX_BONUS_REACHED = "MAX_BONUS_REACHED"
    AD_REWARD_NOT_EARNED = "AD_REWARD_NOT_EARNED"
    PENDING_CHALLENGE_EXISTS = "PENDING_CHALLENGE_EXISTS"
    NO_PENDING_CHALLENGE = "NO_PENDING_CHALLENGE"

    NOT_SESSION_MEMBER = "NOT_SESSION_MEMBER"
    CANNOT_JOIN_OWN_SESSION = "CANNOT_JOIN_OWN_SESSION"
    ONLY_CREATOR_CAN_DELETE = "ONLY_CREATOR_CAN_DELETE"
    ONLY_REQUESTER_CAN_CANCEL = "ONLY_REQUESTER_CAN_CANCEL"
    SELF_SUBMISSION_FORBIDDEN = "SELF_SUBMISSION_FORBIDDEN"
    PREMIUM_REQUIRED = "PREMIUM_REQUIRED"
    BOTH_PREMIUM_REQUIRED = "BOTH_PREMIUM_REQUIRED"
    FREE_CHALLENGE_LIMIT_EXCEEDED = "FREE_CHALLENGE_LIMIT_EXCEEDED"

    INVALID_SESSION_CODE = "INVALID_SESSION_CODE"
    INVALID_CHALLENGE_TEXT = "INVALID_CHALLENGE_TEXT"
    INVALID_CHALLENGE_COUNT = "INVALID_CHALLENGE_COUNT"
    INVALID_INTENSITY = "INVALID_INTENSITY"
    INVALID_GENDER = "INVALID_GENDER"
    INVALID_MEDIA_TYPE = "INVALID_MEDIA_TYPE"

    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    CONCURRENT_UPDATE_CONFLICT = "CONCURRENT_UPDATE_CONFLICT"

    CODE_GENERATION_FAILED = "CODE_GENERATION_FAILED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class GameSessionError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL
    code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    message: str = "Something went wrong"
    # Set when the failed operation still has a side effect that must be committed.
    keeps_changes: bool = False

    def __init__(
        self,
        message: str | None = None,
        *,
        snapshot: SessionSnapshot | None = None,
    ) -> None:
        self.message = message or type(self).message
        self.snapshot = snapshot
        super().__init__(self.message)


class NotFoundError(GameSessionError):
    kind = ErrorKind.NOT_FOUND


class PreconditionFailedError(GameSessionError):
    kind = ErrorKind.PRECONDITION_FAILED


class AuthorizationError(GameSessionError):
    kind = ErrorKind.AUTHORIZATION


class InvalidInputError(GameSessionError):
    kind = ErrorKind.VALIDATION


class TransientError(GameSessionError):
    kind = ErrorKind.TRANSIENT


class SessionNotFoundError(NotFoundError):
    code = ErrorCode.SESSION_NOT_FOUND
    message = "Session not found"


class ChallengeNotFoundError(NotFoundError):
    code = ErrorCode.CHALLENGE_NOT_FOUND
    message = "Challenge not found"


class SessionNotActiveError(PreconditionFailedError):
    code = ErrorCode.SESSION_NOT_ACTIVE
    message = "The session is not active"


class SessionAlreadyStartedError(PreconditionFailedError):
    code = ErrorCode.SESSION_ALREADY_STARTED
    message = "This session has already started"


class SessionAbandonedError(PreconditionFailedError):
    code = ErrorCode.SESSION_ABANDONED
    message = "This session was abandoned"


class SessionCompletedError(PreconditionFailedError):
    code = ErrorCode.SESSION_COMPLETED
    message = "This session is over"


class SessionFullError(PreconditionFailedError):
    code = ErrorCode.SESSION_FULL
    message = "This session already has two players"


class SessionExpiredError(PreconditionFailedError):
    code = ErrorCode.SESSION_EXPIRED
    message = "This session has expired"
    keeps_changes = True


class SessionDeleteForbiddenError(PreconditionFailedError):
    code = ErrorCode.SESSION_DELETE_FORBIDDEN
    message = "A session in progress cannot be deleted"


class NoChallengesAvailableError(PreconditionFailedError):
    code = ErrorCode.NO_CHALLENGES_AVAILABLE
    message = "No challenges match these settings"


class ChallengeAlreadyCompletedError(PreconditionFailedError):
    code = ErrorCode.CHALLENGE_ALREADY_COMPLETED
    message = "This challenge was already completed"


class NotYourTurnError(PreconditionFailedError):
    code = ErrorCode.NOT_YOUR_TURN
    message = "It is not your turn to validate"


class NoChangesLeftError(PreconditionFailedError):
    code = ErrorCode.NO_CHANGES_LEFT
    message = "You have no challenge changes left"


class MaxBonusReachedError(PreconditionFailedError):
    code = ErrorCode.MAX_BONUS_REACHED
    message = "You already have the maximum number of bonus changes (3)"


class AdRewardNotEarnedError(PreconditionFailedError):
    code = ErrorCode.AD_REWARD_NOT_EARNED
    message = "The ad was not watched to the end"


class PendingChallengeExistsError(PreconditionFailedError):
    code = ErrorCode.PENDING_CHALLENGE_EXISTS
    message = "A partner challenge is already pending"


class NoPendingChallengeError(PreconditionFailedError):
    code = ErrorCode.NO_PENDING_CHALLENGE
    message = "There is no pending partner challenge"


class NotSessionMemberError(AuthorizationError):
    code = ErrorCode.NOT_SESSION_MEMBER
    message = "You are not a member of this session"


class CannotJoinOwnSessionError(AuthorizationError):
    code = ErrorCode.CANNOT_JOIN_OWN_SESSION
    message = "You cannot join your own session"


class OnlyCreatorCanDeleteError(AuthorizationError):
    code = ErrorCode.ONLY_CREATOR_CAN_DELETE
    message = "Only the creator can delete this session"


class OnlyRequesterCanCancelError(AuthorizationError):
    code = ErrorCode.ONLY_REQUESTER_CAN_CANCEL
    message = "Only the player who asked can cancel the request"


class SelfSubmissionForbiddenError(AuthorizationError):
    code = ErrorCode.SELF_SUBMISSION_FORBIDDEN
    message = "You cannot answer your own request"


class PremiumRequiredError(AuthorizationError):
    code = ErrorCode.PREMIUM_REQUIRED
    message = "This feature requires Premium"


class BothPremiumRequiredError(AuthorizationError):
    code = ErrorCode.BOTH_PREMIUM_REQUIRED
    message = "Both players need Premium"


class FreeChallengeLimitExceededError(AuthorizationError):
    code = ErrorCode.FREE_CHALLENGE_LIMIT_EXCEEDED
    message = "More than 15 challenges per player requires Premium"


class InvalidSessionCodeError(InvalidInputError):
    code = ErrorCode.INVALID_SESSION_CODE
    message = "This code is not valid"


class InvalidChallengeTextError(InvalidInputError):
    code = ErrorCode.INVALID_CHALLENGE_TEXT
    message = "The challenge must be between 10 and 500 characters"


class InvalidChallengeCountError(InvalidInputError):
    code = ErrorCode.INVALID_CHALLENGE_COUNT
    message = "Invalid number of challenges"


class InvalidIntensityError(InvalidInputError):
    code = ErrorCode.INVALID_INTENSITY
    message = "Intensity must be between 1 and 4"


class InvalidGenderError(InvalidInputError):
    code = ErrorCode.INVALID_GENDER
    message = "Unknown gender"


class InvalidMediaTypeError(InvalidInputError):
    code = ErrorCode.INVALID_MEDIA_TYPE
    message = "Unknown media type"


class StoreUnavailableError(TransientError):
    code = ErrorCode.STORE_UNAVAILABLE
    message = "Connection problem, please try again"


class ConcurrentUpdateConflictError(TransientError):
    code = ErrorCode.CONCURRENT_UPDATE_CONFLICT
    message = "The session changed at the same time, please try again"


class CodeGenerationFailedError(GameSessionError):
    code = ErrorCode.CODE_GENERATION_FAILED
    message = "Could not generate a unique session code"
