"""
Session helper for the booking wizard.

The whole wizard state (see draft.WizardState) is stored as a plain dict
in request.session['booking']:
{
    "draft": {
        "branch_id":    "<uuid>",
        "barber_id":    "<uuid>",
        "service_id":   "<uuid>",
        "deposit_only": false,
        "sessions": [{"date": "YYYY-MM-DD", "time": "HH:MM", "add_on_ids": ["<uuid>"]}]
    },
    "step": 4,
    "month_offset": 0,
    "auto_advanced": false,
    ...
}

Use the helpers below instead of accessing session['booking'] directly.
"""
from .draft import WizardState, from_dict, to_dict

SESSION_KEY = 'booking'


def get_wizard_state(request) -> WizardState:
    return from_dict(request.session.get(SESSION_KEY))


def set_wizard_state(request, state: WizardState) -> None:
    request.session[SESSION_KEY] = to_dict(state)
    request.session.modified = True


def clear_wizard_state(request) -> None:
    request.session.pop(SESSION_KEY, None)
    request.session.modified = True
