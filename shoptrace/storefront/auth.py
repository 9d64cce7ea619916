"""Login and logout against the built-in demo accounts."""

import logging
import uuid
from typing import Dict, Optional

from shoptrace.metrics import LOGIN_ATTEMPTS, LOGIN_FAILURES, LOGIN_SUCCESS, LOGOUT_SUCCESS
from shoptrace.telemetry import SpanStatus

from .base import Workflow
from .models import DEMO_ACCOUNTS, Account, User

logger = logging.getLogger(__name__)


class AuthWorkflow(Workflow):
    def __init__(self, *args, accounts: Optional[Dict[str, Account]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.accounts = accounts if accounts is not None else DEMO_ACCOUNTS
        self.user: Optional[User] = None

    def login(self, email: str, password: str) -> Optional[User]:
        """Check credentials; on success start a new session for the user."""
        with self.tracer.span("user_authentication") as span:
            # Reported before the session exists, so it lands in the previous
            # session or is dropped when none is active.
            self.sessions.track_action("login_attempt", {"email": email})
            span.set_attributes({"user.email": email, "auth.method": "multi-user"})
            span.add_event("login_attempt")
            self.metrics.increment_counter(LOGIN_ATTEMPTS)

            self._simulate_latency(500)

            account = self.accounts.get(email)
            if account is None or account.password != password:
                self.sessions.track_action(
                    "login_failed", {"email": email, "reason": "invalid_credentials"}
                )
                span.add_event("login_failure", {"failure.reason": "invalid_credentials"})
                self.metrics.increment_counter(LOGIN_FAILURES)
                span.set_status(SpanStatus.ERROR, "Invalid credentials")
                logger.info(f"Login failed: invalid credentials for {email}")
                return None

            user = User(
                id=str(uuid.uuid4()),
                email=email,
                name=account.name,
                demographics=account.demographics,
            )
            self.sessions.start_session(user.id, user.name)
            self.sessions.track_action(
                "login_success", {"user_name": user.name, "user_email": user.email}
            )
            span.set_attributes(
                {
                    "user.id": user.id,
                    "user.name": user.name,
                    "user.demographics": user.demographics,
                }
            )
            span.add_event("login_success")
            self.metrics.increment_counter(LOGIN_SUCCESS)
            self.user = user
            logger.info(f"Login success: {user.name} ({user.email})")
            return user

    def logout(self) -> None:
        with self.tracer.span("user_logout") as span:
            span.add_event("logout_initiated")
            self.sessions.track_action("logout")
            self.sessions.end_current_session()

            self._simulate_latency(200)

            self.metrics.increment_counter(LOGOUT_SUCCESS)
            span.add_event("logout_success")
            self.user = None
            logger.info("Logout success")
