import logging

from django.contrib import messages
from django.shortcuts import redirect
from django.urls import reverse_lazy
from django.utils.decorators import method_decorator
from django.utils.http import url_has_allowed_host_and_scheme
from django.views import View
from django.views.generic import FormView

from backend_api import BackendError, services
from shop.decorators import storefront_login_required
from stores import AuthStore
from stores.base import USER_INFO_KEY

from .forms import ChangePasswordForm, LoginForm, ProfileForm, SignUpForm

logger = logging.getLogger(__name__)


class _NextUrlMixin:
    """Honor a same-host ?next=... after a successful form."""

    def get_success_url(self):
        raw = (self.request.POST.get("next") or self.request.GET.get("next", "")).strip()
        if raw and url_has_allowed_host_and_scheme(raw, allowed_hosts={self.request.get_host()}):
            return raw
        return str(self.success_url)

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        ctx["next"] = self.request.GET.get("next", "")
        return ctx


class LoginView(_NextUrlMixin, FormView):
    """Exchange credentials for a backend token kept in the session."""
    template_name = "accounts/login.html"
    form_class = LoginForm
    success_url = reverse_lazy("core:home")

    def dispatch(self, request, *args, **kwargs):
        if AuthStore(request).is_authenticated:
            return redirect(self.success_url)
        return super().dispatch(request, *args, **kwargs)

    def form_valid(self, form):
        if not AuthStore(self.request).login(form.cleaned_data["email"], form.cleaned_data["password"]):
            return self.form_invalid(form)
        return super().form_valid(form)


class SignUpView(_NextUrlMixin, FormView):
    """Create the account on the backend and sign the visitor in."""
    template_name = "accounts/signup.html"
    form_class = SignUpForm
    success_url = reverse_lazy("core:home")

    def form_valid(self, form):
        data = form.cleaned_data
        if not AuthStore(self.request).signup(data["username"], data["email"], data["password1"]):
            return self.form_invalid(form)
        return super().form_valid(form)


class LogoutView(View):
    http_method_names = ["post"]

    def post(self, request):
        AuthStore(request).logout()
        return redirect("core:home")


@method_decorator(storefront_login_required, name="dispatch")
class ProfileView(FormView):
    template_name = "accounts/profile.html"
    form_class = ProfileForm
    success_url = reverse_lazy("accounts:profile")

    def get_initial(self):
        info = AuthStore(self.request).user_info or {}
        return {"username": info.get("username", ""), "email": info.get("email", "")}

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        ctx.setdefault("password_form", ChangePasswordForm())
        return ctx

    def form_valid(self, form):
        auth = AuthStore(self.request)
        try:
            data = services.update_profile(form.cleaned_data, auth.token) or {}
        except BackendError as exc:
            messages.error(self.request, exc.message)
            return self.form_invalid(form)
        user = data.get("user") or {**(auth.user_info or {}), **form.cleaned_data}
        self.request.session[USER_INFO_KEY] = user
        messages.success(self.request, "Profile updated.")
        return super().form_valid(form)


@method_decorator(storefront_login_required, name="dispatch")
class ChangePasswordView(FormView):
    template_name = "accounts/profile.html"
    form_class = ChangePasswordForm
    success_url = reverse_lazy("accounts:profile")

    def get(self, request, *args, **kwargs):
        return redirect("accounts:profile")

    def get_context_data(self, **kwargs):
        ctx = super().get_context_data(**kwargs)
        ctx["password_form"] = ctx.pop("form")
        ctx["form"] = ProfileForm(initial={
            "username": (AuthStore(self.request).user_info or {}).get("username", ""),
            "email": (AuthStore(self.request).user_info or {}).get("email", ""),
        })
        return ctx

    def form_valid(self, form):
        try:
            services.change_password(
                form.cleaned_data["current_password"], form.cleaned_data["new_password"], AuthStore(self.request).token
            )
        except BackendError as exc:
            messages.error(self.request, exc.message)
            return self.form_invalid(form)
        logger.info("Password changed for %s.", (AuthStore(self.request).user_info or {}).get("username"))
        messages.success(self.request, "Password changed.")
        return super().form_valid(form)
