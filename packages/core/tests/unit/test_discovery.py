from unittest.mock import MagicMock, patch

from cqlbridge.discovery import CLIENT_ENTRY_POINT_GROUP, discover_clients


@patch("cqlbridge.discovery.entry_points")
def test_discover_clients(mock_entry_points):
    good = MagicMock()
    good.name = "cassandra"
    good.load.return_value = "ClientClass"
    broken = MagicMock()
    broken.name = "broken"
    broken.load.side_effect = ImportError("missing driver")
    mock_entry_points.return_value = [good, broken]

    clients = discover_clients()

    mock_entry_points.assert_called_once_with(group=CLIENT_ENTRY_POINT_GROUP)
    assert clients == {"cassandra": "ClientClass"}
