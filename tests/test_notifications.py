"""Tests for event builders and system notifications."""

from unittest.mock import MagicMock, patch

from modbridge import notifications
from modbridge.notifications import Notification, NotificationType, send_notification


class TestNotification:
    """Tests for Notification dataclass."""

    def test_notification_default_type(self) -> None:
        """Should default to INFO type."""
        notif = Notification(title="Title", message="Message")
        assert notif.type == NotificationType.INFO


class TestBuilders:
    """Tests for the event builders."""

    def test_mod_installed(self) -> None:
        """Should name the mod and its version."""
        event = notifications.mod_installed("songloader", "0.10.0")
        assert event.message == "Successfully downloaded and installed songloader v0.10.0"
        assert event.type == NotificationType.SUCCESS

    def test_mod_not_enabled_trims_version(self) -> None:
        """The advisory should show the game version without build metadata."""
        event = notifications.mod_not_enabled("songloader", "1.28.0_4124311467")
        assert "v1.28.0." in event.message
        assert "4124311467" not in event.message
        assert event.type == NotificationType.WARNING

    def test_import_failed(self) -> None:
        """Should include the error text."""
        event = notifications.import_failed(ValueError("bad zip"))
        assert event.message == "Failed to import file: bad zip"
        assert event.type == NotificationType.ERROR

    def test_sync_failed(self) -> None:
        """Should carry the fixed title."""
        event = notifications.sync_failed("boom")
        assert event.title == "Failed to sync mods"
        assert event.message == "boom"


class TestSendNotification:
    """Tests for send_notification function."""

    @patch("modbridge.notifications.platform.system")
    @patch("modbridge.notifications._notify_linux")
    def test_linux_notification(self, mock_notify: MagicMock, mock_system: MagicMock) -> None:
        """Should use Linux notification on Linux."""
        mock_system.return_value = "Linux"
        mock_notify.return_value = True

        notif = Notification(title="Test", message="Message")
        assert send_notification(notif) is True
        mock_notify.assert_called_once_with(notif)

    @patch("modbridge.notifications.platform.system")
    @patch("modbridge.notifications._notify_macos")
    def test_macos_notification(self, mock_notify: MagicMock, mock_system: MagicMock) -> None:
        """Should use macOS notification on Darwin."""
        mock_system.return_value = "Darwin"
        mock_notify.return_value = True

        assert send_notification(Notification(title="Test", message="Message")) is True
        mock_notify.assert_called_once()

    @patch("modbridge.notifications.platform.system")
    def test_unsupported_platform(self, mock_system: MagicMock) -> None:
        """Should return False on unsupported platform."""
        mock_system.return_value = "FreeBSD"
        assert send_notification(Notification(title="Test", message="Message")) is False

    @patch("modbridge.notifications.subprocess.run")
    def test_linux_urgency_for_errors(self, mock_run: MagicMock) -> None:
        """Errors should be sent with critical urgency."""
        notifications._notify_linux(
            Notification(title="T", message="M", type=NotificationType.ERROR)
        )
        args = mock_run.call_args[0][0]
        assert args[args.index("--urgency") + 1] == "critical"

    @patch("modbridge.notifications.subprocess.run", side_effect=FileNotFoundError)
    def test_linux_without_notify_send(self, mock_run: MagicMock) -> None:
        """A missing notify-send should not raise."""
        assert notifications._notify_linux(Notification(title="T", message="M")) is False

    @patch("modbridge.notifications.subprocess.run")
    def test_windows_escapes_message(self, mock_run: MagicMock) -> None:
        """Quotes, backticks and dollars should not reach PowerShell unescaped."""
        notifications._notify_windows(
            Notification(title="Failed", message='bad "$(Remove-Item x)" `a')
        )
        script = mock_run.call_args[0][0][-1]
        assert 'CreateTextNode("bad `"`$(Remove-Item x)`" ``a")' in script
        assert '"$(Remove-Item x)"' not in script
