import unittest
from unittest.mock import patch

from backend.auth import FirebaseIdentityProvider, InMemoryIdentityProvider
from backend.config import Settings
from backend.dependencies import (
    get_client_context,
    get_identity_provider,
    reset_dependencies,
)


class IdentityProviderWiringTests(unittest.TestCase):
    def setUp(self):
        reset_dependencies()
        self.addCleanup(reset_dependencies)

    @patch("backend.dependencies.get_settings")
    def test_missing_api_key_is_a_config_error(self, mock_settings):
        mock_settings.return_value = Settings(
            use_in_memory_backends=False, firebase_api_key=None
        )
        with self.assertLogs("backend.dependencies", level="ERROR"):
            with self.assertRaises(ValueError):
                get_identity_provider()

    @patch("backend.dependencies.get_settings")
    def test_api_key_selects_firebase_provider(self, mock_settings):
        mock_settings.return_value = Settings(
            use_in_memory_backends=False, firebase_api_key="key-123"
        )
        provider = get_identity_provider()
        self.assertIsInstance(provider, FirebaseIdentityProvider)
        self.assertEqual(provider.api_key, "key-123")

    @patch("backend.dependencies.get_settings")
    def test_in_memory_toggle(self, mock_settings):
        mock_settings.return_value = Settings(use_in_memory_backends=True)
        self.assertIsInstance(get_identity_provider(), InMemoryIdentityProvider)


class ClientContextTests(unittest.TestCase):
    def setUp(self):
        reset_dependencies()
        self.addCleanup(reset_dependencies)

    @patch("backend.dependencies.get_settings")
    def test_contexts_are_per_client(self, mock_settings):
        mock_settings.return_value = Settings(use_in_memory_backends=True)

        first = get_client_context("a")
        self.assertIs(get_client_context("a"), first)
        second = get_client_context("b")

        self.assertIsNot(first.sessions, second.sessions)
        self.assertIsNot(first.feed, second.feed)
        self.assertIs(first.sessions.provider, second.sessions.provider)
        self.assertEqual(
            [event.as_dict() for event in first.feed.drain()],
            [{"port": "receiveUser", "payload": None}],
        )


if __name__ == "__main__":
    unittest.main()
