# stores/signals.py
from django.dispatch import Signal

# Sent by AuthStore with `request` and `user` (backend profile dict).
storefront_login = Signal()
storefront_logout = Signal()
