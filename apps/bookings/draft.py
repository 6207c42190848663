"""
Booking draft and wizard state machine.

Everything here is immutable: the wizard moves by feeding actions through
reduce(state, action) -> new state. Views persist the state in the
session (see session.py) and perform the network side effects the new
state asks for (see pending_fetches).

Steps:
  1           branch
  2           barber
  3           primary service
  4 .. 3+N    one step per session of the chosen service
"""
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from django.conf import settings

FIRST_SESSION_STEP = 4


class InvalidActionError(ValueError):
    """The action cannot apply to the current state (bad index, no date yet, ...)."""


# ── Draft ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SessionPlan:
    date: Optional[str] = None
    time: Optional[str] = None
    add_on_ids: Tuple[str, ...] = ()

    @property
    def is_scheduled(self) -> bool:
        return bool(self.date and self.time)

    def toggle_add_on(self, add_on_id: str) -> 'SessionPlan':
        if add_on_id in self.add_on_ids:
            ids = tuple(i for i in self.add_on_ids if i != add_on_id)
        else:
            ids = self.add_on_ids + (add_on_id,)
        return replace(self, add_on_ids=ids)


@dataclass(frozen=True)
class BookingDraft:
    branch_id: Optional[str] = None
    barber_id: Optional[str] = None
    service_id: Optional[str] = None
    sessions: Tuple[SessionPlan, ...] = ()
    deposit_only: bool = False

    @property
    def session_count(self) -> int:
        return len(self.sessions) if self.service_id else 1

    def with_session(self, index: int, session: SessionPlan) -> 'BookingDraft':
        sessions = list(self.sessions)
        sessions[index] = session
        return replace(self, sessions=tuple(sessions))


def is_complete(draft: BookingDraft) -> bool:
    """Branch, barber and service chosen, and every session has a date and a time."""
    return bool(
        draft.branch_id
        and draft.barber_id
        and draft.service_id
        and draft.sessions
        and all(s.is_scheduled for s in draft.sessions)
    )


# ── Wizard state ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class WizardState:
    draft: BookingDraft = field(default_factory=BookingDraft)
    step: int = 1
    ready_to_confirm: bool = False

    # Month shown on session steps and whether auto-advance already ran
    month_offset: int = 0
    auto_advanced: bool = False

    # Results are tagged with the request that produced them
    available_days: Tuple[str, ...] = ()
    days_key: Optional[Tuple[str, int]] = None
    slots: Tuple[str, ...] = ()
    slots_key: Optional[Tuple[int, str, str]] = None

    @property
    def total_steps(self) -> int:
        return 3 + self.draft.session_count

    @property
    def session_index(self) -> Optional[int]:
        """Index of the session edited on the current step, if any."""
        index = self.step - FIRST_SESSION_STEP
        if self.draft.service_id and 0 <= index < len(self.draft.sessions):
            return index
        return None

    @property
    def is_complete(self) -> bool:
        return is_complete(self.draft)


def step_is_satisfied(state: WizardState) -> bool:
    draft = state.draft
    if state.step == 1:
        return bool(draft.branch_id)
    if state.step == 2:
        return bool(draft.barber_id)
    if state.step == 3:
        return bool(draft.service_id)
    index = state.session_index
    return index is not None and draft.sessions[index].is_scheduled


# ── Actions ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SelectBranch:
    branch_id: str
    advance: bool = False   # picked from the intro overlay: jump to the barber step


@dataclass(frozen=True)
class SelectBarber:
    barber_id: Optional[str]


@dataclass(frozen=True)
class SelectService:
    service_id: str
    session_count: int


@dataclass(frozen=True)
class SelectDate:
    index: int
    date: str


@dataclass(frozen=True)
class SelectTime:
    index: int
    time: str


@dataclass(frozen=True)
class ToggleAddOn:
    index: int
    add_on_id: str


@dataclass(frozen=True)
class SetDepositOnly:
    deposit_only: bool


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Previous:
    pass


@dataclass(frozen=True)
class ChangeMonth:
    offset: int


@dataclass(frozen=True)
class MonthLoaded:
    barber_id: str
    requested_offset: int
    offset: int
    days: Tuple[str, ...]
    auto_advanced: bool = False


@dataclass(frozen=True)
class SlotsLoaded:
    index: int
    barber_id: str
    date: str
    slots: Tuple[str, ...]


# ── Reducer ───────────────────────────────────────────────────────────────────

def _reset_calendar(state: WizardState) -> WizardState:
    return replace(
        state,
        month_offset=0,
        auto_advanced=False,
        available_days=(),
        days_key=None,
        slots=(),
        slots_key=None,
    )


def _session(state: WizardState, index: int) -> SessionPlan:
    if not 0 <= index < len(state.draft.sessions):
        raise InvalidActionError(f"Session {index} does not exist.")
    return state.draft.sessions[index]


def _select_branch(state, action):
    draft = state.draft
    step = state.step
    if action.branch_id != draft.branch_id:
        draft = BookingDraft(branch_id=action.branch_id, deposit_only=draft.deposit_only)
        state = _reset_calendar(replace(state, draft=draft))
        step = 1
    if action.advance:
        step = 2
    return replace(state, step=step, ready_to_confirm=False)


def _select_barber(state, action):
    draft = state.draft
    if action.barber_id == draft.barber_id:
        return state
    # Services are barber-scoped, so the service choice goes with the barber
    draft = replace(draft, barber_id=action.barber_id, service_id=None, sessions=())
    step = min(state.step, 2)
    return _reset_calendar(replace(state, draft=draft, step=step, ready_to_confirm=False))


def _select_service(state, action):
    if action.session_count < 1:
        raise InvalidActionError('A service needs at least one session.')
    draft = state.draft
    if action.service_id == draft.service_id and len(draft.sessions) == action.session_count:
        return state
    draft = replace(
        draft,
        service_id=action.service_id,
        sessions=tuple(SessionPlan() for _ in range(action.session_count)),
    )
    # Later steps belonged to the old session plan
    step = min(state.step, 3)
    return replace(state, draft=draft, step=step, slots=(), slots_key=None, ready_to_confirm=False)


def _select_date(state, action):
    session = _session(state, action.index)
    draft = state.draft.with_session(action.index, replace(session, date=action.date, time=None))
    return replace(state, draft=draft, slots=(), slots_key=None, ready_to_confirm=False)


def _select_time(state, action):
    session = _session(state, action.index)
    if action.index != state.session_index:
        raise InvalidActionError('Times can only be picked for the session on screen.')
    if not session.date:
        raise InvalidActionError('Pick a date before picking a time.')
    key = (action.index, state.draft.barber_id, session.date)
    if state.slots_key == key and action.time not in state.slots:
        raise InvalidActionError(f"{action.time} is not available on {session.date}.")
    draft = state.draft.with_session(action.index, replace(session, time=action.time))
    return replace(state, draft=draft)


def _toggle_add_on(state, action):
    session = _session(state, action.index)
    draft = state.draft.with_session(action.index, session.toggle_add_on(action.add_on_id))
    return replace(state, draft=draft)


def _set_deposit_only(state, action):
    return replace(state, draft=replace(state.draft, deposit_only=bool(action.deposit_only)))


def _next(state, action):
    if not step_is_satisfied(state):
        return state
    if state.step >= state.total_steps:
        return replace(state, ready_to_confirm=True)
    state = replace(state, step=state.step + 1)
    if state.step >= FIRST_SESSION_STEP:
        state = _reset_calendar(state)
    return state


def _previous(state, action):
    if state.step <= 1:
        return state
    draft = state.draft
    if state.step == 2:
        draft = replace(draft, barber_id=None)
    elif state.step == 3:
        draft = replace(draft, service_id=None, sessions=())
    else:
        index = state.session_index
        if index is not None:
            draft = draft.with_session(index, SessionPlan())
    state = replace(state, draft=draft, step=state.step - 1, ready_to_confirm=False)
    if state.step >= FIRST_SESSION_STEP:
        state = _reset_calendar(state)
    return state


def _change_month(state, action):
    limit = getattr(settings, 'AVAILABILITY_LOOKAHEAD_MONTHS', 12)
    offset = max(0, min(int(action.offset), limit))
    if offset == state.month_offset:
        return state
    return replace(state, month_offset=offset, available_days=(), days_key=None)


def _month_loaded(state, action):
    if action.barber_id != state.draft.barber_id or action.requested_offset != state.month_offset:
        return state  # stale: barber or month changed since the request
    return replace(
        state,
        month_offset=action.offset,
        auto_advanced=state.auto_advanced or action.auto_advanced,
        available_days=tuple(action.days),
        days_key=(action.barber_id, action.offset),
    )


def _slots_loaded(state, action):
    index = state.session_index
    if (
        index != action.index
        or action.barber_id != state.draft.barber_id
        or state.draft.sessions[index].date != action.date
    ):
        return state  # stale: a newer date (or barber) superseded this request
    return replace(
        state,
        slots=tuple(action.slots),
        slots_key=(action.index, action.barber_id, action.date),
    )


_HANDLERS = {
    SelectBranch: _select_branch,
    SelectBarber: _select_barber,
    SelectService: _select_service,
    SelectDate: _select_date,
    SelectTime: _select_time,
    ToggleAddOn: _toggle_add_on,
    SetDepositOnly: _set_deposit_only,
    Next: _next,
    Previous: _previous,
    ChangeMonth: _change_month,
    MonthLoaded: _month_loaded,
    SlotsLoaded: _slots_loaded,
}


def reduce(state: WizardState, action) -> WizardState:
    try:
        handler = _HANDLERS[type(action)]
    except KeyError:
        raise InvalidActionError(f"Unknown action {type(action).__name__}.") from None
    return handler(state, action)


def apply(state: WizardState, *actions) -> WizardState:
    for action in actions:
        state = reduce(state, action)
    return state


# ── Side effects requested by a state ─────────────────────────────────────────

def pending_fetches(state: WizardState) -> dict:
    """
    What the view must load for the current step:
      'month' : (barber_id, offset) when the displayed month is not loaded
      'slots' : (index, barber_id, date) when the active session's times are not loaded
    """
    wanted = {}
    index = state.session_index
    barber_id = state.draft.barber_id
    if index is None or not barber_id:
        return wanted
    if state.days_key != (barber_id, state.month_offset):
        wanted['month'] = (barber_id, state.month_offset)
    session = state.draft.sessions[index]
    if session.date and state.slots_key != (index, barber_id, session.date):
        wanted['slots'] = (index, barber_id, session.date)
    return wanted


# ── Session storage ───────────────────────────────────────────────────────────

def to_dict(state: WizardState) -> dict:
    draft = state.draft
    return {
        'draft': {
            'branch_id': draft.branch_id,
            'barber_id': draft.barber_id,
            'service_id': draft.service_id,
            'deposit_only': draft.deposit_only,
            'sessions': [
                {'date': s.date, 'time': s.time, 'add_on_ids': list(s.add_on_ids)}
                for s in draft.sessions
            ],
        },
        'step': state.step,
        'ready_to_confirm': state.ready_to_confirm,
        'month_offset': state.month_offset,
        'auto_advanced': state.auto_advanced,
        'available_days': list(state.available_days),
        'days_key': list(state.days_key) if state.days_key else None,
        'slots': list(state.slots),
        'slots_key': list(state.slots_key) if state.slots_key else None,
    }


def from_dict(data) -> WizardState:
    if not data:
        return WizardState()
    raw = data.get('draft', {})
    draft = BookingDraft(
        branch_id=raw.get('branch_id'),
        barber_id=raw.get('barber_id'),
        service_id=raw.get('service_id'),
        deposit_only=bool(raw.get('deposit_only')),
        sessions=tuple(
            SessionPlan(s.get('date'), s.get('time'), tuple(s.get('add_on_ids') or ()))
            for s in raw.get('sessions', [])
        ),
    )
    step = int(data.get('step', 1))
    return WizardState(
        draft=draft,
        step=max(1, min(step, 3 + draft.session_count)),
        ready_to_confirm=bool(data.get('ready_to_confirm')),
        month_offset=int(data.get('month_offset', 0)),
        auto_advanced=bool(data.get('auto_advanced')),
        available_days=tuple(data.get('available_days') or ()),
        days_key=tuple(data['days_key']) if data.get('days_key') else None,
        slots=tuple(data.get('slots') or ()),
        slots_key=tuple(data['slots_key']) if data.get('slots_key') else None,
    )
