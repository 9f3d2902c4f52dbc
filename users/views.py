import logging

from django.shortcuts import redirect, get_object_or_404, render
from django.urls import reverse_lazy
from django.contrib.auth.views import LoginView, LogoutView
from django.contrib.auth import get_user_model
from django.contrib import messages
from django.views.generic import TemplateView
from django.views import View

from .forms import UserCreateForm, ProfileForm, LoginForm
from .roles import ServiceAccessMixin, ROLE_CONFIGS

logger = logging.getLogger(__name__)

User = get_user_model()


class UserLoginView(LoginView):
    template_name = 'users/login.html'
    authentication_form = LoginForm
    redirect_authenticated_user = True

    def get_success_url(self):
        # Every role lands on the dashboard; its content depends on the role
        return self.get_redirect_url() or reverse_lazy('admin_panel:dashboard')

    def form_valid(self, form):
        response = super().form_valid(form)
        logger.info("User %s signed in as %s", self.request.user.username, self.request.user.effective_role)
        return response


class UserLogoutView(LogoutView):
    next_page = reverse_lazy('users:login')


class UserManagementView(ServiceAccessMixin, TemplateView):
    """Admin screen: list users, create a user with a role, delete users"""
    template_name = 'users/user_management.html'
    service_id = 'user-management'

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        search_query = self.request.GET.get('search', '').strip()
        role_filter = self.request.GET.get('role', '').strip()

        users = User.objects.all().order_by('username')
        if search_query:
            users = [
                user for user in users
                if search_query.lower() in user.username.lower()
                or search_query.lower() in user.email.lower()
                or search_query.lower() in user.get_full_name().lower()
            ]
        if role_filter:
            users = [user for user in users if user.effective_role == role_filter]

        context.update({
            'page': 'user-management',
            'users': users,
            'form': kwargs.get('form') or UserCreateForm(),
            'roles': ROLE_CONFIGS.values(),
            'search_query': search_query,
            'role_filter': role_filter,
            'total_users': User.objects.count(),
        })
        return context

    def post(self, request, *args, **kwargs):
        # 1. HANDLE CREATE USER
        if 'create_user' in request.POST:
            form = UserCreateForm(request.POST)
            if form.is_valid():
                user = form.save()
                logger.info("User %s created by %s", user.username, request.user.username)
                messages.success(request, f"User '{user.username}' created successfully!")
                return redirect('users:user_management')

            messages.error(request, "Could not create the user. Please check the form.")
            return render(request, self.template_name, self.get_context_data(form=form))

        # 2. HANDLE DELETE USER
        if 'delete_user' in request.POST:
            user = get_object_or_404(User, pk=request.POST.get('user_id'))
            if user == request.user:
                messages.error(request, "You cannot delete your own account.")
                return redirect('users:user_management')

            username = user.username
            user.delete()
            logger.info("User %s deleted by %s", username, request.user.username)
            messages.success(request, f"User '{username}' deleted successfully!")
            return redirect('users:user_management')

        # Fallback for unexpected POST requests
        return redirect('users:user_management')


class ProfileEditView(ServiceAccessMixin, View):
    template_name = 'users/profile_edit.html'
    service_id = 'profile'

    def get(self, request):
        form = ProfileForm(instance=request.user)
        return render(request, self.template_name, {'form': form, 'page': 'profile'})

    def post(self, request):
        form = ProfileForm(request.POST, instance=request.user)
        if form.is_valid():
            form.save()
            messages.success(request, "Profile updated successfully.")
            return redirect('users:profile')

        messages.error(request, "Profile could not be updated.")
        return render(request, self.template_name, {'form': form, 'page': 'profile'})
