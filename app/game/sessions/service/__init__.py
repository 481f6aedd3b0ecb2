from __future__ import annotations

from .internal import (
    _build_change_quota,
    _build_session_snapshot,
    _is_join_window_expired,
    _load_session_or_raise,
    _resolve_role,
)
from .partner_challenges import (
    cancel_partner_challenge_request,
    normalize_partner_challenge_text,
    request_partner_challenge,
    submit_partner_challenge,
)
from .sessions_create import create_session, validate_session_settings
from .sessions_join import join_session
from .sessions_manage import (
    abandon_session,
    delete_session,
    end_session,
    expire_stale_waiting_sessions,
)
from .sessions_queries import get_active_sessions, get_session, get_session_history
from .turns_change import add_bonus_change, change_challenge, get_change_quota, swap_challenge
from .turns_complete import complete_challenge


class GameSessionService:
    _build_change_quota = staticmethod(_build_change_quota)
    _build_session_snapshot = staticmethod(_build_session_snapshot)
    _is_join_window_expired = staticmethod(_is_join_window_expired)
    _load_session_or_raise = staticmethod(_load_session_or_raise)
    _resolve_role = staticmethod(_resolve_role)
    validate_session_settings = staticmethod(validate_session_settings)
    normalize_partner_challenge_text = staticmethod(normalize_partner_challenge_text)
    create_session = staticmethod(create_session)
    join_session = staticmethod(join_session)
    abandon_session = staticmethod(abandon_session)
    end_session = staticmethod(end_session)
    delete_session = staticmethod(delete_session)
    expire_stale_waiting_sessions = staticmethod(expire_stale_waiting_sessions)
    get_session = staticmethod(get_session)
    get_active_sessions = staticmethod(get_active_sessions)
    get_session_history = staticmethod(get_session_history)
    complete_challenge = staticmethod(complete_challenge)
    get_change_quota = staticmethod(get_change_quota)
    change_challenge = staticmethod(change_challenge)
    swap_challenge = staticmethod(swap_challenge)
    add_bonus_change = staticmethod(add_bonus_change)
    request_partner_challenge = staticmethod(request_partner_challenge)
    submit_partner_challenge = staticmethod(submit_partner_challenge)
    cancel_partner_challenge_request = staticmethod(cancel_partner_challenge_request)


__all__ = ["GameSessionService"]
