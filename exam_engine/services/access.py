"""
Access Checks
Who is calling, and whether they hold the manage-exams capability
"""
from flask import session


class AuthorityCheck:
    """Capability lookup consumed by the attempt engine"""

    def current_user(self):
        """Return the calling user id, or None when unauthenticated"""
        raise NotImplementedError

    def is_authority(self, user_id):
        """True if user_id may manage exams and see correctness data"""
        raise NotImplementedError


class SessionAuthority(AuthorityCheck):
    """
    Reads the caller from the Flask session

    Guests carry user_id -1 and count as unauthenticated.
    """

    def __init__(self, roles=('admin', 'teacher')):
        self.roles = tuple(roles)

    def current_user(self):
        user_id = session.get('user_id')
        if user_id is None:
            return None
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            return None
        return user_id if user_id > 0 else None

    def is_authority(self, user_id):
        if user_id is None or user_id != self.current_user():
            return False
        return session.get('role') in self.roles


class StaticAuthority(AuthorityCheck):
    """Fixed set of authority ids, for scripts and tests"""

    def __init__(self, authority_ids=(), current=None):
        self.authority_ids = set(authority_ids)
        self.current = current

    def current_user(self):
        return self.current

    def is_authority(self, user_id):
        return user_id is not None and user_id in self.authority_ids
