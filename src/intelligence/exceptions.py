"""Errors raised by the subscription intelligence engine."""


class IntelligenceError(Exception):
    """Base error for the intelligence engine."""


class AccountNotFound(IntelligenceError):
    """The user or its subscription account cannot be resolved."""

    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"No subscription account for user {user_id}.")
