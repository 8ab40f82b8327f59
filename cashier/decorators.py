from functools import wraps

from django.contrib.auth.views import redirect_to_login


def role_required(roles):
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(request, *args, **kwargs):
            user = request.user
            if user.is_authenticated and getattr(user, "role_label", None) in roles:
                return view_func(request, *args, **kwargs)
            return redirect_to_login(request.get_full_path(), login_url="/admin/login/")
        return _wrapped_view
    return decorator
