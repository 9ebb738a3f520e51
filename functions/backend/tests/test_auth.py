import unittest
from unittest.mock import MagicMock

from backend.auth import (
    FirebaseIdentityProvider,
    IdpCredential,
    InMemoryIdentityProvider,
    SessionChannel,
    SessionManager,
)
from backend.errors import AuthError
from shared.types import Session

ALICE = Session(uid="u1", display_name="Alice", email="a@example.com")
BOB = Session(uid="u2", display_name="Bob")


class SessionManagerTests(unittest.TestCase):
    def setUp(self):
        self.provider = InMemoryIdentityProvider(accounts={"alice": ALICE, "bob": BOB})
        self.manager = SessionManager(self.provider)
        self.seen = []

    def test_subscriber_gets_current_state_immediately(self):
        self.manager.subscribe_session_changes(self.seen.append)
        self.assertEqual(self.seen, [None])

    def test_sign_in_publishes_session(self):
        self.manager.subscribe_session_changes(self.seen.append)
        session = self.manager.begin_sign_in(IdpCredential(id_token="alice"))

        self.assertEqual(session, ALICE)
        self.assertEqual(self.manager.current_session(), ALICE)
        self.assertEqual(self.seen, [None, ALICE])

    def test_sign_in_failure_carries_provider_code(self):
        with self.assertRaises(AuthError) as ctx:
            self.manager.begin_sign_in(IdpCredential(id_token="mallory"))
        self.assertEqual(ctx.exception.code, "auth/invalid-idp-response")
        self.assertIsNone(self.manager.current_session())

    def test_sign_out_without_session_publishes_none(self):
        self.manager.subscribe_session_changes(self.seen.append)
        self.manager.end_session()

        self.assertIsNone(self.manager.current_session())
        self.assertEqual(self.seen, [None, None])

    def test_sign_out_clears_session(self):
        self.manager.begin_sign_in(IdpCredential(id_token="alice"))
        self.manager.subscribe_session_changes(self.seen.append)
        self.manager.end_session()

        self.assertEqual(self.seen, [ALICE, None])
        self.assertIsNone(self.manager.id_token())

    def test_sign_out_failure_propagates(self):
        self.provider.sign_out_error = AuthError("boom", code="auth/internal-error")
        self.manager.begin_sign_in(IdpCredential(id_token="alice"))
        with self.assertRaises(AuthError):
            self.manager.end_session()
        self.assertEqual(self.manager.current_session(), ALICE)

    def test_unsubscribe_stops_delivery(self):
        subscription = self.manager.subscribe_session_changes(self.seen.append)
        subscription.unsubscribe()
        subscription.unsubscribe()
        self.manager.begin_sign_in(IdpCredential(id_token="alice"))
        self.assertEqual(self.seen, [None])

    def test_refresh_only_publishes_identity_change(self):
        self.manager.begin_sign_in(IdpCredential(id_token="alice"))
        self.manager.subscribe_session_changes(self.seen.append)

        self.assertEqual(self.manager.refresh_session(), ALICE)
        self.assertEqual(self.seen, [ALICE])

    def test_refresh_without_session_is_noop(self):
        self.assertIsNone(self.manager.refresh_session())

    def test_sign_in_options_select_account(self):
        options = self.manager.sign_in_options()
        self.assertEqual(options["providerId"], "google.com")
        self.assertEqual(options["customParameters"], {"prompt": "select_account"})


class SessionChannelTests(unittest.TestCase):
    def test_failing_handler_does_not_block_others(self):
        channel = SessionChannel()
        seen = []

        def broken(session):
            raise RuntimeError("handler bug")

        channel.subscribe(broken)
        channel.subscribe(seen.append)
        channel.publish(ALICE)
        self.assertEqual(seen, [None, ALICE])

    def test_same_identity_is_not_redelivered(self):
        channel = SessionChannel()
        seen = []
        channel.subscribe(seen.append)
        channel.publish(ALICE)
        channel.publish(ALICE)
        channel.publish(BOB)
        self.assertEqual(seen, [None, ALICE, BOB])


def _response(status_code, payload):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = ""
    return response


class FirebaseIdentityProviderTests(unittest.TestCase):
    def setUp(self):
        self.provider = FirebaseIdentityProvider(api_key="key-123")
        self.provider.http = MagicMock()

    def test_requires_api_key(self):
        with self.assertRaises(ValueError):
            FirebaseIdentityProvider(api_key="")

    def test_sign_in_with_google_id_token(self):
        self.provider.http.post.return_value = _response(
            200,
            {
                "localId": "u1",
                "displayName": "Alice",
                "email": "a@example.com",
                "photoUrl": "https://photo",
                "idToken": "id-tok",
                "refreshToken": "refresh-tok",
            },
        )

        result = self.provider.sign_in_with_idp(IdpCredential(id_token="google-tok"))

        self.assertEqual(
            result.session,
            Session(
                uid="u1",
                display_name="Alice",
                email="a@example.com",
                photo_url="https://photo",
            ),
        )
        self.assertEqual(result.refresh_token, "refresh-tok")
        args, kwargs = self.provider.http.post.call_args
        self.assertTrue(args[0].endswith("accounts:signInWithIdp"))
        self.assertEqual(kwargs["params"], {"key": "key-123"})
        self.assertEqual(
            kwargs["json"]["postBody"], "id_token=google-tok&providerId=google.com"
        )

    def test_sign_in_error_maps_provider_code(self):
        self.provider.http.post.return_value = _response(
            400, {"error": {"code": 400, "message": "INVALID_IDP_RESPONSE : bad token"}}
        )
        with self.assertRaises(AuthError) as ctx:
            self.provider.sign_in_with_idp(IdpCredential(access_token="tok"))
        self.assertEqual(ctx.exception.code, "auth/invalid-idp-response")
        self.assertIn("INVALID_IDP_RESPONSE", ctx.exception.message)

    def test_sign_in_requires_a_token(self):
        with self.assertRaises(AuthError) as ctx:
            self.provider.sign_in_with_idp(IdpCredential())
        self.assertEqual(ctx.exception.code, "auth/invalid-credential")
        self.provider.http.post.assert_not_called()

    def test_refresh_looks_up_user(self):
        self.provider.http.post.side_effect = [
            _response(200, {"id_token": "new-id", "refresh_token": "new-refresh"}),
            _response(200, {"users": [{"localId": "u1", "displayName": "Alice"}]}),
        ]
        result = self.provider.refresh("old-refresh")
        self.assertEqual(result.session.uid, "u1")
        self.assertEqual(result.id_token, "new-id")
        self.assertEqual(result.refresh_token, "new-refresh")


if __name__ == "__main__":
    unittest.main()
