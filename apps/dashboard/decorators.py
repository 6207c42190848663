"""
Dashboard authentication decorators.

The staff schedule API is consumed by the schedule editor over HTTP, so
unauthenticated / non-staff requests get a JSON 401/403 instead of a
redirect to a login page.
"""
from functools import wraps
from django.http import JsonResponse


def dashboard_admin_required(view_func):
    """Require is_authenticated + is_staff. Answer JSON 401/403 otherwise."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({'error': 'Authentication required.'}, status=401)
        if not request.user.is_staff:
            return JsonResponse({'error': 'Your account does not have admin access.'}, status=403)
        return view_func(request, *args, **kwargs)
    return wrapper
