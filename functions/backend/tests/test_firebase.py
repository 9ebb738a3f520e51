import unittest
from unittest.mock import patch

from backend.config import Settings
from backend.firebase import get_firestore_client, init_firebase


class InitFirebaseTests(unittest.TestCase):
    @patch("backend.firebase.firebase_admin")
    def test_reuses_existing_app(self, mock_admin):
        mock_admin.get_app.return_value = "existing"
        self.assertEqual(init_firebase(Settings()), "existing")
        mock_admin.initialize_app.assert_not_called()

    @patch("backend.firebase.credentials")
    @patch("backend.firebase.firebase_admin")
    def test_initialises_from_settings(self, mock_admin, mock_credentials):
        mock_admin.get_app.side_effect = ValueError("no app")
        settings = Settings(
            firebase_project_id="demo",
            firebase_storage_bucket="demo.appspot.com",
            google_application_credentials="/secrets/sa.json",
        )

        init_firebase(settings)

        mock_credentials.Certificate.assert_called_once_with("/secrets/sa.json")
        mock_admin.initialize_app.assert_called_once_with(
            mock_credentials.Certificate.return_value,
            {"projectId": "demo", "storageBucket": "demo.appspot.com"},
        )

    @patch("backend.firebase.credentials")
    @patch("backend.firebase.firebase_admin")
    def test_default_credentials(self, mock_admin, mock_credentials):
        mock_admin.get_app.side_effect = ValueError("no app")
        init_firebase(Settings(google_application_credentials=None))
        mock_credentials.ApplicationDefault.assert_called_once_with()

    @patch("backend.firebase.firestore")
    @patch("backend.firebase.init_firebase")
    def test_firestore_client_uses_app(self, mock_init, mock_firestore):
        client = get_firestore_client(Settings())
        mock_firestore.client.assert_called_once_with(mock_init.return_value)
        self.assertIs(client, mock_firestore.client.return_value)


class SettingsTests(unittest.TestCase):
    def test_web_config_uses_js_keys(self):
        settings = Settings(
            firebase_api_key="k",
            firebase_database_url="https://demo.firebaseio.com",
            firebase_measurement_id="G-1",
        )
        config = settings.web_config()
        self.assertEqual(config["apiKey"], "k")
        self.assertEqual(config["databaseURL"], "https://demo.firebaseio.com")
        self.assertEqual(config["measurementId"], "G-1")
        self.assertEqual(len(config), 8)

    def test_in_memory_flag_by_field_name(self):
        self.assertTrue(Settings(use_in_memory_backends=True).use_in_memory_backends)


if __name__ == "__main__":
    unittest.main()
