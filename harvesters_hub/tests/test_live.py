import unittest
from unittest.mock import MagicMock, patch

import requests

from harvesters_hub.errors import UpstreamError
from harvesters_hub.live import YOUTUBE_SEARCH_URL, fetch_live_feed


class LiveFeedTests(unittest.TestCase):
    @patch("harvesters_hub.live.requests.get")
    def test_passes_through_response(self, mock_get):
        response = MagicMock()
        response.json.return_value = {"items": [{"id": {"videoId": "abc"}}]}
        mock_get.return_value = response

        payload = fetch_live_feed("key", "channel", timeout=5)

        self.assertEqual(payload, {"items": [{"id": {"videoId": "abc"}}]})
        mock_get.assert_called_once_with(
            YOUTUBE_SEARCH_URL,
            params={
                "part": "snippet",
                "channelId": "channel",
                "eventType": "live",
                "type": "video",
                "key": "key",
            },
            timeout=5,
        )

    def test_requires_configuration(self):
        with self.assertRaises(UpstreamError):
            fetch_live_feed(None, "channel")

    @patch("harvesters_hub.live.requests.get")
    def test_http_failure_is_upstream_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("boom")
        with self.assertRaises(UpstreamError):
            fetch_live_feed("key", "channel")


if __name__ == "__main__":
    unittest.main()
