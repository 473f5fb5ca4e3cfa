'''
    Per-caller rate limit for every vault endpoint (default 10/second).

    FILE_VAULT['USERID_THROTTLE_RATE'] feeds
    REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['userid'] in core/settings.py, and
    the views opt in through throttle_classes.

    Callers are counted by UserId. Share links can be fetched without one, so
    anonymous requests are counted by client address instead (DRF's get_ident).
    Counters live in Django's cache; point CACHES at a shared backend and the
    limit holds across workers.
'''

from rest_framework.exceptions import Throttled
from rest_framework.throttling import SimpleRateThrottle

from .permissions import get_user_id


class UserIdRateThrottle(SimpleRateThrottle):
    scope = 'userid'

    def get_cache_key(self, request, view):
        user_id = get_user_id(request)
        if user_id:
            ident = f'user:{user_id}'
        else:
            ident = f'addr:{self.get_ident(request)}'
        return self.cache_format % {'scope': self.scope, 'ident': ident}

    def throttle_failure(self):
        # wait feeds DRF's Retry-After header
        raise Throttled(detail="Call Limit Reached", wait=self.wait())
