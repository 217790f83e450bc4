from django.contrib.auth.signals import user_logged_in, user_logged_out
from django.dispatch import receiver

from apps.common import get_logger
from .container import build_cart_manager
from .identity import identity_from_request

logger = get_logger(__name__).bind(component="carts", layer="signals")


@receiver(user_logged_in, dispatch_uid="carts.reconcile_on_login")
def reconcile_cart_on_login(sender, request=None, user=None, **kwargs):
    if request is None or user is None or not hasattr(request, "session"):
        return
    # A token is needed here so a saved cart can be restored onto the session.
    identity = identity_from_request(request, create=True, user=user)
    logger.debug("Login received", user_id=identity.user_id)
    build_cart_manager().handle_login(identity)


@receiver(user_logged_out, dispatch_uid="carts.release_on_logout")
def release_cart_on_logout(sender, request=None, user=None, **kwargs):
    if request is None or user is None:
        return
    identity = identity_from_request(request, user=user)
    if not identity.has_session:
        return
    logger.debug("Logout received", user_id=identity.user_id)
    build_cart_manager().handle_logout(identity)
