# tests/test_auth_service.py
"""
Auth service state machine.

Every operation publishes Loading, then exactly one terminal state, and
returns that terminal state. Failures surface as Error(message).
"""

import asyncio
from dataclasses import replace

import pytest

from albumauth.application.services.auth_service import AuthService
from albumauth.domain.models import (
    Error,
    Idle,
    Loading,
    LoginSuccess,
    LogoutSuccess,
    OtpVerified,
    PasswordResetSuccess,
    PhoneNumberFound,
    SignupSuccess,
)
from albumauth.services.otp import StaticOtpIssuer


def run(coro):
    return asyncio.run(coro)


class TestStateDiscipline:

    def test_starts_idle(self, auth_service):
        assert auth_service.state == Idle()

    def test_loading_then_single_terminal_state(self, auth_service, recorded_states, bob):
        result = run(auth_service.register(bob))
        assert result == SignupSuccess()
        assert recorded_states == [Loading(), SignupSuccess()]
        assert not recorded_states[0].is_terminal
        assert recorded_states[1].is_terminal
        assert auth_service.state == SignupSuccess()

    def test_terminal_state_persists_until_reset(self, auth_service, bob):
        run(auth_service.register(bob))
        assert auth_service.state == SignupSuccess()
        assert auth_service.reset_ui_state() == Idle()
        assert auth_service.state == Idle()

    def test_reset_when_idle_is_noop(self, auth_service):
        assert auth_service.reset_ui_state() == Idle()
        assert auth_service.reset_ui_state() == Idle()
        assert auth_service.state == Idle()

    def test_store_failure_becomes_error_state(self, auth_service, persistence, recorded_states):
        persistence.close()
        result = run(auth_service.login("alice", "secret"))
        assert isinstance(result, Error)
        assert result.message.startswith("Storage error")
        assert recorded_states[-1] == result
        assert not isinstance(auth_service.state, Loading)

    def test_unexpected_exception_becomes_error_state(self, persistence, session_store):
        class ExplodingIssuer(StaticOtpIssuer):
            def verify(self, phone_number, otp):
                raise RuntimeError("issuer offline")

        service = AuthService(persistence, session_store, ExplodingIssuer())
        result = run(service.verify_otp("01712345678", "111111"))
        assert result == Error("issuer offline")
        assert service.state == Error("issuer offline")


class TestRegister:

    def test_duplicate_username_is_rejected(self, auth_service, persistence, bob):
        assert run(auth_service.register(bob)) == SignupSuccess()
        second = replace(bob, phone_number="01912345678")
        assert run(auth_service.register(second)) == Error("Username already registered")
        assert [a.username for a in persistence.list_accounts()] == ["bob"]

    def test_concurrent_duplicate_registrations(self, auth_service, persistence, bob):
        async def scenario():
            return await asyncio.gather(auth_service.register(bob), auth_service.register(bob))

        results = run(scenario())
        assert results.count(SignupSuccess()) == 1
        assert results.count(Error("Username already registered")) == 1
        assert len(persistence.list_accounts()) == 1

    def test_no_field_validation_in_service(self, auth_service, persistence, bob):
        """Field rules belong to the caller; the service only enforces uniqueness."""
        odd = replace(bob, username="x", phone_number="123")
        assert run(auth_service.register(odd)) == SignupSuccess()
        assert persistence.username_exists("x")

    def test_signup_verification_default_is_configurable(self, persistence, session_store, bob):
        service = AuthService(persistence, session_store, StaticOtpIssuer(), verified_on_signup=False)
        run(service.register(bob))
        assert persistence.get_account_by_username("bob").is_verified is False

    def test_explicit_flag_wins_over_default(self, persistence, session_store, bob):
        service = AuthService(persistence, session_store, StaticOtpIssuer(), verified_on_signup=False)
        run(service.register(replace(bob, is_verified=True)))
        assert persistence.get_account_by_username("bob").is_verified is True


class TestLoginLogout:

    def test_login_writes_session(self, auth_service, session_store, persistence, alice):
        run(auth_service.register(alice))
        assert run(auth_service.login("alice", "secret")) == LoginSuccess()

        session = session_store.read()
        account = persistence.get_account_by_username("alice")
        assert session.is_logged_in
        assert session.user_id == account.id
        assert session.username == "alice"
        assert auth_service.is_logged_in()
        assert auth_service.current_username() == "alice"
        assert auth_service.current_session() == session

    def test_logout_clears_session(self, auth_service, session_store, alice):
        run(auth_service.register(alice))
        run(auth_service.login("alice", "secret"))
        assert run(auth_service.logout()) == LogoutSuccess()

        session = session_store.read()
        assert session.is_logged_in is False
        assert session.user_id is None
        assert session.username is None

    @pytest.mark.parametrize("username, password", [("alice", "wrong1"), ("nobody", "secret")])
    def test_failed_login_is_generic(self, auth_service, session_store, alice, username, password):
        run(auth_service.register(alice))
        result = run(auth_service.login(username, password))
        assert result == Error("Invalid credentials or account not verified")
        assert session_store.read().is_logged_in is False

    def test_unverified_login_allowed_by_default(self, auth_service, alice):
        run(auth_service.register(replace(alice, is_verified=False)))
        assert run(auth_service.login("alice", "secret")) == LoginSuccess()

    def test_unverified_login_rejected_when_required(self, persistence, session_store, alice):
        service = AuthService(
            persistence, session_store, StaticOtpIssuer(), login_requires_verification=True
        )
        run(service.register(replace(alice, is_verified=False)))
        assert run(service.login("alice", "secret")) == Error("Invalid credentials or account not verified")

        run(service.verify_otp(alice.phone_number, "111111"))
        assert run(service.login("alice", "secret")) == LoginSuccess()

    def test_session_feed_reports_login_and_logout(self, auth_service, alice):
        seen = []
        auth_service.session_feed.add_listener(lambda session: seen.append(session.username))
        run(auth_service.register(alice))
        run(auth_service.login("alice", "secret"))
        run(auth_service.logout())
        assert seen == ["alice", None]


class TestPhoneAndOtp:

    def test_check_phone_number_found(self, auth_service, alice):
        run(auth_service.register(alice))
        assert run(auth_service.check_phone_number("01712345678")) == PhoneNumberFound("01712345678")

    def test_check_phone_number_missing(self, auth_service):
        result = run(auth_service.check_phone_number("01712345678"))
        assert result == Error("No account found with this phone number")

    def test_correct_otp_verifies_every_account_with_phone(self, auth_service, persistence, alice):
        run(auth_service.register(replace(alice, is_verified=False)))
        run(auth_service.register(replace(alice, username="alice2", is_verified=False)))

        assert run(auth_service.verify_otp("01712345678", "111111")) == OtpVerified()
        assert all(a.is_verified for a in persistence.list_accounts())

    def test_wrong_otp_leaves_accounts_unverified(self, auth_service, persistence, alice):
        run(auth_service.register(replace(alice, is_verified=False)))

        result = run(auth_service.verify_otp("01712345678", "000000"))
        assert result == Error("Invalid OTP. Please enter 111111")
        assert persistence.get_account_by_username("alice").is_verified is False


class TestResetPassword:

    def test_successful_reset(self, auth_service, alice):
        run(auth_service.register(alice))
        result = run(auth_service.reset_password("alice", "01712345678", "newpass", "newpass"))
        assert result == PasswordResetSuccess()
        assert run(auth_service.login("alice", "newpass")) == LoginSuccess()

    def test_reset_only_touches_named_account(self, auth_service, bob):
        run(auth_service.register(bob))
        run(auth_service.register(replace(bob, username="bob2", password="other_pw")))
        run(auth_service.reset_password("bob", "01812345678", "newpass", "newpass"))
        assert run(auth_service.login("bob2", "other_pw")) == LoginSuccess()

    def test_invalid_password_fails_fast(self, auth_service, alice):
        run(auth_service.register(alice))
        result = run(auth_service.reset_password("alice", "01712345678", "abc", "abc"))
        assert result == Error("Password must be at least 6 characters")

    def test_mismatched_confirmation(self, auth_service, alice):
        run(auth_service.register(alice))
        result = run(auth_service.reset_password("alice", "01712345678", "newpass", "newpasx"))
        assert result == Error("Passwords do not match")

    def test_unknown_username_phone_pair(self, auth_service, alice):
        run(auth_service.register(alice))
        result = run(auth_service.reset_password("alice", "01812345678", "newpass", "newpass"))
        assert result == Error("No account found with this username and phone number")


class TestAccountLifecycle:

    def test_end_to_end_signup_login_delete(self, auth_service, persistence, session_store, bob):
        assert run(auth_service.register(bob)) == SignupSuccess()
        auth_service.reset_ui_state()

        assert run(auth_service.login("bob", "secret1")) == LoginSuccess()
        assert session_store.read().username == "bob"
        auth_service.reset_ui_state()

        assert run(auth_service.delete_current_account()) == LogoutSuccess()
        assert persistence.get_account_by_username("bob") is None
        assert session_store.read().is_logged_in is False

    def test_delete_without_session(self, auth_service):
        result = run(auth_service.delete_current_account())
        assert result == Error("No user is currently logged in")

    def test_get_current_account(self, auth_service, bob):
        assert run(auth_service.get_current_account()) is None
        run(auth_service.register(bob))
        run(auth_service.login("bob", "secret1"))

        account = run(auth_service.get_current_account())
        assert account.username == "bob"
        assert account.email == "b@x.com"

    def test_get_current_account_does_not_change_state(self, auth_service, recorded_states):
        run(auth_service.get_current_account())
        assert recorded_states == []
        assert auth_service.state == Idle()

    def test_list_accounts_newest_first(self, auth_service, alice, bob):
        run(auth_service.register(alice))
        run(auth_service.register(bob))
        assert [a.username for a in run(auth_service.list_accounts())] == ["bob", "alice"]
