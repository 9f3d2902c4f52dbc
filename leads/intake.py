# leads/intake.py
"""
Recording an incoming quote request: the lead itself and, for signed-in
users, a 'requested' entry in their services.
"""
import logging

logger = logging.getLogger(__name__)


def record_quote_request(store, user, lead, service_type, service_name, details=None):
    """
    Add `lead` to the quote leads and, when `user` is signed in, a requested
    user service. Returns (lead record, created).
    """
    record, created = store.quote_leads.add(dict(lead, status='new'))

    if created:
        logger.info("Quote request %s received for %s", record['id'], record['insurance_type'])

    if user is not None and user.is_authenticated:
        service, service_created = store.user_services.add({
            'user_id': user.service_owner_id,
            'service_type': service_type,
            'service_name': service_name,
            'status': 'requested',
            'details': details or {},
        })
        if not service_created:
            logger.info("User %s already requested %s", user.username, service_name)

    return record, created
